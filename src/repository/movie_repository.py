import uuid
from datetime import UTC, datetime

from loguru import logger
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session, func, select

from core.config import settings
from model.movie import ImageEvent, ImageOutcome, IndicativeRating, Movie, MovieImage
from model.pagination import Pagination
from model.task import DeleteTask, UploadTask
from repository.task_queue import Delivery, WorkQueue


class MovieRepository:
    """영화/이미지 영속화 + 이미지 작업 큐 경계.

    API(프로듀서)와 워커(컨슈머)가 같은 인터페이스를 쓴다.
    큐 연산은 DB 세션과 무관하게 WorkQueue에 위임한다.
    """

    def __init__(self, session: Session, queue: WorkQueue):
        self.session = session
        self.queue = queue

    # --- 등급 ---

    def get_all_indicative_ratings(self) -> list[IndicativeRating]:
        return list(
            self.session.exec(select(IndicativeRating).order_by(IndicativeRating.description)).all()
        )

    def get_indicative_rating(self, rating_id: uuid.UUID) -> IndicativeRating | None:
        return self.session.get(IndicativeRating, rating_id)

    # --- 영화 ---

    def create(self, movie: Movie) -> Movie:
        self.session.add(movie)
        self.session.commit()
        self.session.refresh(movie)
        logger.info(f"Movie created: {movie.id}")
        return movie

    def get_by_id(self, movie_id: uuid.UUID, include_deleted: bool = False) -> Movie | None:
        movie = self.session.get(Movie, movie_id)
        if movie is None or (movie.deleted_at is not None and not include_deleted):
            return None
        return movie

    def get_all_by_user_id(self, user_id: uuid.UUID, pagination: Pagination) -> Pagination:
        where = (Movie.user_id == user_id, Movie.deleted_at.is_(None))
        total = self.session.exec(select(func.count()).select_from(Movie).where(*where)).one()
        movies = self.session.exec(
            select(Movie)
            .where(*where)
            .order_by(Movie.created_at.desc())
            .offset(pagination.offset)
            .limit(pagination.limit)
        ).all()
        return pagination.with_rows(list(movies), total)

    def update(self, movie: Movie, updates: dict) -> Movie:
        for key, value in updates.items():
            setattr(movie, key, value)
        movie.updated_at = datetime.now(UTC)
        self.session.add(movie)
        self.session.commit()
        self.session.refresh(movie)
        return movie

    def mark_deleted(self, movie: Movie) -> Movie:
        movie.deleted_at = datetime.now(UTC)
        self.session.add(movie)
        self.session.commit()
        self.session.refresh(movie)
        return movie

    # --- 영화 이미지 ---

    def get_images(self, movie_id: uuid.UUID) -> list[MovieImage]:
        return list(
            self.session.exec(
                select(MovieImage)
                .where(MovieImage.movie_id == movie_id)
                .order_by(MovieImage.created_at)
            ).all()
        )

    def get_movie_image(self, image_id: uuid.UUID) -> MovieImage | None:
        return self.session.get(MovieImage, image_id)

    def get_movie_image_by_external_id(self, external_id: str) -> MovieImage | None:
        return self.session.exec(
            select(MovieImage).where(MovieImage.external_id == external_id)
        ).first()

    def create_movie_image(self, image: MovieImage) -> MovieImage:
        try:
            self.session.add(image)
            self.session.commit()
        except SQLAlchemyError:
            self.session.rollback()
            raise
        self.session.refresh(image)
        return image

    def delete_movie_image(self, external_id: str) -> bool:
        """외부 id로 이미지 행을 삭제한다. 행이 없으면 False."""
        image = self.get_movie_image_by_external_id(external_id)
        if image is None:
            return False
        try:
            self.session.delete(image)
            self.session.commit()
        except SQLAlchemyError:
            self.session.rollback()
            raise
        return True

    # --- 이미지 이벤트 (감사 기록) ---

    def record_image_event(
        self,
        movie_id: uuid.UUID,
        outcome: ImageOutcome,
        task_id: uuid.UUID | None = None,
        detail: str | None = None,
        external_id: str | None = None,
    ) -> None:
        """파이프라인 결과를 남긴다. 기록 실패는 로그만 남기고 삼킨다.

        이벤트는 부가 정보이므로 본 작업(업로드/삭제)의 성패에 영향을 주지 않는다.
        """
        event = ImageEvent(
            movie_id=movie_id,
            task_id=task_id,
            outcome=outcome,
            detail=detail,
            external_id=external_id,
        )
        try:
            self.session.add(event)
            self.session.commit()
        except SQLAlchemyError as e:
            self.session.rollback()
            logger.warning(f"Failed to record image event {outcome.value} for movie {movie_id}: {e}")

    def get_image_events(self, movie_id: uuid.UUID) -> list[ImageEvent]:
        return list(
            self.session.exec(
                select(ImageEvent).where(ImageEvent.movie_id == movie_id).order_by(ImageEvent.id)
            ).all()
        )

    # --- 작업 큐 ---

    def add_upload_task_to_queue(self, task: UploadTask) -> None:
        self.queue.enqueue(settings.UPLOAD_QUEUE_NAME, task)
        logger.info(f"Upload task {task.id} queued for movie {task.movie_id}")

    def get_next_upload_task(self) -> Delivery[UploadTask] | None:
        return self.queue.dequeue(settings.UPLOAD_QUEUE_NAME, UploadTask)

    def add_delete_task_to_queue(self, task: DeleteTask) -> None:
        self.queue.enqueue(settings.DELETE_QUEUE_NAME, task)
        logger.info(f"Delete task {task.id} queued for image {task.external_id}")

    def get_next_delete_task(self) -> Delivery[DeleteTask] | None:
        return self.queue.dequeue(settings.DELETE_QUEUE_NAME, DeleteTask)

    def ack_task(self, delivery: Delivery) -> None:
        self.queue.ack(delivery)

    def retry_task(self, delivery: Delivery):
        return self.queue.retry(delivery)

    def dead_letter_task(self, delivery: Delivery) -> None:
        self.queue.dead_letter(delivery)

    def restore_inflight_tasks(self, queue_name: str) -> int:
        return self.queue.restore_inflight(queue_name)
