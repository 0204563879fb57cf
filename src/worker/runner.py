"""워커 실행 진입점.

별도 프로세스 (src/ 에서):
    python -m worker.upload_worker
    python -m worker.delete_worker

API 프로세스 안에서 함께 돌릴 때는 RUN_WORKERS_IN_APP=true로 설정하면
lifespan이 start_background_workers()로 스레드를 띄운다.
"""

import signal
import threading

from loguru import logger

from client.image_store import ImageStoreClient
from core.config import settings
from core.redis import get_redis
from model.database import create_db_and_tables
from repository.task_queue import WorkQueue
from utility.logger import setup_logger
from worker.base import QueueWorker


def build_store_client() -> ImageStoreClient:
    return ImageStoreClient(
        endpoint=settings.IMAGE_STORE_ENDPOINT,
        api_key=settings.IMAGE_STORE_API_KEY,
        timeout=settings.IMAGE_STORE_TIMEOUT_SECONDS,
    )


def build_worker(worker_cls: type[QueueWorker], store: ImageStoreClient | None = None) -> QueueWorker:
    return worker_cls(queue=WorkQueue(get_redis()), store=store or build_store_client())


def run_worker(worker_cls: type[QueueWorker]) -> None:
    """워커 하나를 포그라운드에서 실행한다. SIGINT/SIGTERM으로 종료."""
    setup_logger(settings.LOG_LEVEL, json_logs=settings.LOG_JSON)
    create_db_and_tables()

    with build_store_client() as store:
        worker = build_worker(worker_cls, store)

        def _shutdown(signum, _frame):
            logger.info(f"Received signal {signum}, stopping {worker.name}")
            worker.stop()

        signal.signal(signal.SIGINT, _shutdown)
        signal.signal(signal.SIGTERM, _shutdown)

        worker.run()


class BackgroundWorkers:
    """API 프로세스 안에서 워커들을 데몬 스레드로 실행한다."""

    def __init__(self, workers: list[QueueWorker], store: ImageStoreClient):
        self.workers = workers
        self.store = store
        self.threads: list[threading.Thread] = []

    def start(self) -> None:
        for worker in self.workers:
            thread = threading.Thread(target=worker.run, name=worker.name, daemon=True)
            thread.start()
            self.threads.append(thread)

    def stop(self, timeout: float | None = None) -> None:
        timeout = timeout if timeout is not None else settings.IMAGE_STORE_TIMEOUT_SECONDS
        for worker in self.workers:
            worker.stop()
        for thread in self.threads:
            thread.join(timeout)
        self.store.close()


def start_background_workers(worker_classes: list[type[QueueWorker]]) -> BackgroundWorkers:
    store = build_store_client()
    background = BackgroundWorkers([build_worker(cls, store) for cls in worker_classes], store)
    background.start()
    return background
