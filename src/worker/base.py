"""큐 폴링 워커 공통 루프.

상태는 두 가지뿐이다.
- idle: 큐가 비어 있음 → backoff만큼 쉬고 대기 시간을 두 배로 늘린다.
- draining: 작업을 꺼냄 → 대기 시간을 floor로 되돌리고 작업을 처리한다.

stop()이 호출되면 다음 반복 경계에서 루프를 빠져나온다.
대기(sleep)는 Event.wait으로 구현되어 있어 stop() 즉시 깨어난다.
이미 꺼낸 작업은 끝까지 처리(ack / retry / dead letter)한 뒤에 멈춘다.
"""

import threading
from typing import Callable

from loguru import logger
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session

from client.image_store import ImageStoreClient
from core.config import settings
from model.database import engine
from model.movie import ImageOutcome
from repository.movie_repository import MovieRepository
from repository.task_queue import Delivery, QueueError, TaskDecodeError, WorkQueue
from worker.backoff import Backoff


class QueueWorker:
    name: str = "worker"
    failed_outcome: ImageOutcome = ImageOutcome.DEAD_LETTERED

    def __init__(
        self,
        queue: WorkQueue,
        store: ImageStoreClient,
        session_factory: Callable[[], Session] | None = None,
        backoff: Backoff | None = None,
        max_attempts: int | None = None,
        stop_event: threading.Event | None = None,
    ):
        self.queue = queue
        self.store = store
        self.session_factory = session_factory or (lambda: Session(engine))
        self.backoff = backoff or Backoff(
            settings.WORKER_POLL_FLOOR_SECONDS, settings.WORKER_POLL_CEILING_SECONDS
        )
        self.max_attempts = max(1, max_attempts or settings.WORKER_MAX_ATTEMPTS)
        self.stop_event = stop_event or threading.Event()

    # --- 서브클래스 구현 ---

    @property
    def queue_name(self) -> str:
        raise NotImplementedError

    def next_task(self, repo: MovieRepository) -> Delivery | None:
        raise NotImplementedError

    def handle(self, repo: MovieRepository, delivery: Delivery) -> None:
        raise NotImplementedError

    # --- 루프 ---

    def run(self) -> None:
        """stop()이 호출될 때까지 큐를 비운다."""
        logger.info(f"[{self.name}] started (queue={self.queue_name}, max_attempts={self.max_attempts})")
        self.restore_inflight()

        while not self.stop_event.is_set():
            self.run_once()

        logger.info(f"[{self.name}] stopped")

    def run_once(self) -> bool:
        """한 번 폴링한다. 작업을 처리했으면 True."""
        with self.session_factory() as session:
            repo = MovieRepository(session, self.queue)

            try:
                delivery = self.next_task(repo)
            except TaskDecodeError as e:
                # 깨진 항목은 이미 dead 리스트로 옮겨졌다. 큐에는 다른 작업이 남아 있을 수 있다.
                logger.warning(f"[{self.name}] Skipped malformed entry in {self.queue_name}: {e}")
                return True
            except QueueError as e:
                interval = self.backoff.next_interval()
                logger.error(f"[{self.name}] Failed to get task from queue, retrying in {interval}s: {e}")
                self.sleep(interval)
                return False

            if delivery is None:
                interval = self.backoff.next_interval()
                logger.debug(f"[{self.name}] No tasks in {self.queue_name}, waiting {interval}s")
                self.sleep(interval)
                return False

            self.backoff.reset()
            try:
                self.handle(repo, delivery)
            except QueueError as e:
                # ack/retry에 실패한 작업은 processing 리스트에 남아
                # 다음 기동 때 restore_inflight로 복구된다.
                logger.error(f"[{self.name}] Task {delivery.task.id} left in-flight: {e}")
            except SQLAlchemyError as e:
                session.rollback()
                logger.opt(exception=e).error(f"[{self.name}] Database error while handling task {delivery.task.id}")
                try:
                    self.handle_failure(repo, delivery, e, retryable=True)
                except QueueError as qe:
                    logger.error(f"[{self.name}] Task {delivery.task.id} left in-flight: {qe}")
                self.sleep(self.backoff.next_interval())
            return True

    def stop(self) -> None:
        self.stop_event.set()

    def sleep(self, seconds: float) -> None:
        self.stop_event.wait(seconds)

    def restore_inflight(self) -> int:
        try:
            restored = self.queue.restore_inflight(self.queue_name)
        except QueueError as e:
            logger.error(f"[{self.name}] Failed to restore in-flight tasks: {e}")
            return 0
        if restored:
            logger.warning(f"[{self.name}] Restored {restored} in-flight task(s) to {self.queue_name}")
        return restored

    # --- 실패 처리 ---

    def handle_failure(
        self,
        repo: MovieRepository,
        delivery: Delivery,
        error: Exception,
        retryable: bool | None = None,
    ) -> None:
        """재시도 가능한 오류면 큐 tail에 다시 넣고, 아니면 dead letter로 보낸다.

        retryable을 생략하면 error.retryable을 따른다. (ImageStoreError 계열)
        """
        if retryable is None:
            retryable = getattr(error, "retryable", False)
        task = delivery.task
        movie_id = getattr(task, "movie_id", None)
        attempt = task.attempts + 1

        if retryable and attempt < self.max_attempts:
            retried = repo.retry_task(delivery)
            logger.warning(
                f"[{self.name}] Task {task.id} failed (attempt {attempt}/{self.max_attempts}), requeued: {error}"
            )
            if movie_id:
                repo.record_image_event(
                    movie_id, ImageOutcome.RETRY_SCHEDULED, task_id=retried.id, detail=str(error)
                )
            return

        repo.dead_letter_task(delivery)
        logger.error(
            f"[{self.name}] Task {task.id} dropped after attempt {attempt}/{self.max_attempts} "
            f"({type(error).__name__}): {error}"
        )
        if movie_id:
            repo.record_image_event(
                movie_id,
                self.failed_outcome,
                task_id=task.id,
                detail=f"{type(error).__name__}: {error}",
                external_id=getattr(task, "external_id", None),
            )
