from loguru import logger
from sqlalchemy.exc import SQLAlchemyError

from client.image_store import ImageStoreError
from core.config import settings
from model.movie import ImageOutcome
from model.task import DeleteTask
from repository.movie_repository import MovieRepository
from repository.task_queue import Delivery
from worker.base import QueueWorker


class DeleteWorker(QueueWorker):
    """외부 저장소에서 이미지를 지우고, 성공했을 때만 DB 행을 지운다.

    원격 삭제가 실패하면 행은 그대로 둔다. (실제로 지워졌는지 알 수 없으므로)
    """

    name = "delete-worker"
    failed_outcome = ImageOutcome.DELETE_FAILED

    @property
    def queue_name(self) -> str:
        return settings.DELETE_QUEUE_NAME

    def next_task(self, repo: MovieRepository) -> Delivery[DeleteTask] | None:
        return repo.get_next_delete_task()

    def handle(self, repo: MovieRepository, delivery: Delivery[DeleteTask]) -> None:
        task = delivery.task

        try:
            self.store.delete(task.external_id)
        except ImageStoreError as e:
            self.handle_failure(repo, delivery, e)
            return

        try:
            removed = repo.delete_movie_image(task.external_id)
        except SQLAlchemyError as e:
            repo.session.rollback()
            logger.error(
                f"[{self.name}] Image {task.external_id} deleted remotely but its row remains: {e}"
            )
            repo.ack_task(delivery)
            return

        repo.ack_task(delivery)
        if not removed:
            logger.info(f"[{self.name}] No image row for {task.external_id} (already gone)")
        if task.movie_id:
            repo.record_image_event(
                task.movie_id, ImageOutcome.DELETED, task_id=task.id, external_id=task.external_id
            )
        logger.info(f"[{self.name}] Image {task.external_id} deleted")


if __name__ == "__main__":
    from worker.runner import run_worker

    run_worker(DeleteWorker)
