import time

from loguru import logger
from sqlalchemy.exc import SQLAlchemyError

from client.image_store import ImageStoreError
from core.config import settings
from model.movie import ImageOutcome, MovieImage
from model.task import DeleteTask, UploadTask
from repository.movie_repository import MovieRepository
from repository.task_queue import Delivery, QueueError
from worker.base import QueueWorker


def build_filename(task: UploadTask) -> str:
    """movie_<movie id>_image_<unix 초>_<task id 앞 8자리>.jpg

    같은 영화의 이미지가 같은 초에 업로드돼도 task id로 구분된다.
    """
    return f"movie_{task.movie_id}_image_{int(time.time())}_{task.id.hex[:8]}.jpg"


class UploadWorker(QueueWorker):
    name = "upload-worker"
    failed_outcome = ImageOutcome.DEAD_LETTERED

    @property
    def queue_name(self) -> str:
        return settings.UPLOAD_QUEUE_NAME

    def next_task(self, repo: MovieRepository) -> Delivery[UploadTask] | None:
        return repo.get_next_upload_task()

    def handle(self, repo: MovieRepository, delivery: Delivery[UploadTask]) -> None:
        task = delivery.task

        if repo.get_by_id(task.movie_id) is None:
            logger.warning(f"[{self.name}] Movie {task.movie_id} no longer exists, discarding task {task.id}")
            repo.ack_task(delivery)
            repo.record_image_event(
                task.movie_id, ImageOutcome.DISCARDED, task_id=task.id, detail="movie deleted"
            )
            return

        filename = build_filename(task)
        try:
            stored = self.store.upload(task.image, filename)
        except ImageStoreError as e:
            self.handle_failure(repo, delivery, e)
            return

        try:
            repo.create_movie_image(
                MovieImage(movie_id=task.movie_id, image_url=stored.url, external_id=stored.external_id)
            )
        except SQLAlchemyError as e:
            self.recover_failed_insert(repo, delivery, stored.external_id, e)
            return

        repo.ack_task(delivery)
        repo.record_image_event(
            task.movie_id, ImageOutcome.UPLOADED, task_id=task.id, external_id=stored.external_id
        )
        logger.info(f"[{self.name}] Image {stored.external_id} attached to movie {task.movie_id}")

    def recover_failed_insert(
        self, repo: MovieRepository, delivery: Delivery[UploadTask], external_id: str, error: Exception
    ) -> None:
        """업로드는 됐지만 DB insert가 실패한 경우.

        같은 external_id 행이 이미 있으면 그 이미지는 살아 있는 것이므로 지우지 않는다.
        행이 없을 때만 원격 삭제를 예약한다. 조회조차 실패하면 판단할 수 없으므로 로그만 남긴다.
        """
        task = delivery.task
        try:
            existing = repo.get_movie_image_by_external_id(external_id)
        except SQLAlchemyError as lookup_error:
            repo.session.rollback()
            logger.error(
                f"[{self.name}] Uploaded image {external_id} for movie {task.movie_id} could not be saved "
                f"or checked, needs reconciliation: {error} / {lookup_error}"
            )
            repo.ack_task(delivery)
            return

        if existing is not None:
            logger.warning(
                f"[{self.name}] Image {external_id} is already attached to movie {existing.movie_id}, "
                f"skipping remote delete: {error}"
            )
            repo.ack_task(delivery)
            repo.record_image_event(
                task.movie_id,
                ImageOutcome.DISCARDED,
                task_id=task.id,
                external_id=external_id,
                detail=f"external id already attached to movie {existing.movie_id}",
            )
            return

        logger.error(
            f"[{self.name}] Uploaded image {external_id} for movie {task.movie_id} "
            f"but failed to save it, scheduling remote delete: {error}"
        )
        self.compensate(repo, task, external_id)
        repo.ack_task(delivery)

    def compensate(self, repo: MovieRepository, task: UploadTask, external_id: str) -> None:
        """DB에 남기지 못한 원격 이미지를 삭제 큐로 보낸다."""
        repo.record_image_event(
            task.movie_id, ImageOutcome.ORPHANED, task_id=task.id, external_id=external_id
        )
        try:
            repo.add_delete_task_to_queue(DeleteTask(external_id=external_id, movie_id=task.movie_id))
        except QueueError as e:
            logger.error(f"[{self.name}] Orphaned remote image {external_id} needs manual cleanup: {e}")


if __name__ == "__main__":
    from worker.runner import run_worker

    run_worker(UploadWorker)
