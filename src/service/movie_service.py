import uuid

from fastapi import UploadFile
from loguru import logger
from sqlmodel import Session, select

from core.config import settings
from core.exceptions import (
    Forbidden,
    IndicativeRatingNotFound,
    InvalidImage,
    InvalidPayload,
    MovieImageNotFound,
    MovieNotFound,
    QueueUnavailable,
    TooManyImages,
)
from model.movie import ImageOutcome, IndicativeRating, Movie, MovieImage
from model.pagination import Pagination
from model.task import DeleteTask, UploadTask
from model.user import User
from processor.convert import ImageConversionError, to_jpeg_bytes
from repository.movie_repository import MovieRepository
from repository.task_queue import QueueError

# 관람 등급 기본 데이터 (id 고정 → 재기동해도 중복 생성되지 않음)
INDICATIVE_RATINGS = [
    ("dffab792-689b-11ef-b065-0242ac110002", "AL", "https://imagedelivery.net/Zphe8Y_ziiz_0wgSXjC_Qg/eaa56fbb-6f29-4be8-1bcb-a717e5f1e900/public"),
    ("dffb1391-689b-11ef-b065-0242ac110002", "A10", "https://imagedelivery.net/Zphe8Y_ziiz_0wgSXjC_Qg/bc21525d-e8e0-4b1e-3cfb-baaae79b6800/public"),
    ("dffb1acb-689b-11ef-b065-0242ac110002", "A12", "https://imagedelivery.net/Zphe8Y_ziiz_0wgSXjC_Qg/e8f234fa-b114-456f-f51b-0a5ce3c15700/public"),
    ("dffb1b9a-689b-11ef-b065-0242ac110002", "A14", "https://imagedelivery.net/Zphe8Y_ziiz_0wgSXjC_Qg/76c45af1-dcd9-40e7-9188-b87cfe71f600/public"),
    ("dffb1d12-689b-11ef-b065-0242ac110002", "A16", "https://imagedelivery.net/Zphe8Y_ziiz_0wgSXjC_Qg/d123bf65-a7ad-4c86-bab7-358679d6d000/public"),
    ("dffb1d82-689b-11ef-b065-0242ac110002", "A18", "https://imagedelivery.net/Zphe8Y_ziiz_0wgSXjC_Qg/36cccb63-b5cd-4ed4-f8cf-e01dad4bff00/public"),
]


def seed_indicative_ratings(session: Session) -> int:
    """없는 관람 등급만 추가하고, 추가한 개수를 반환한다."""
    existing = set(session.exec(select(IndicativeRating.id)).all())
    added = 0
    for rating_id, description, image_url in INDICATIVE_RATINGS:
        rid = uuid.UUID(rating_id)
        if rid in existing:
            continue
        session.add(IndicativeRating(id=rid, description=description, image_url=image_url))
        added += 1
    session.commit()
    return added


def create_movie(
    repo: MovieRepository,
    user: User,
    title: str,
    duration: int,
    indicative_rating_id: uuid.UUID,
    images: list[UploadFile],
) -> Movie:
    """영화를 저장하고, 첨부 이미지를 업로드 큐에 넣는다.

    영화 행은 동기적으로 저장된다. 이미지 업로드는 워커가 나중에 처리하므로
    응답 시점의 영화에는 이미지가 없다. 이미지 단위 실패(변환, 큐 적재)는
    영화 생성을 실패시키지 않는다.
    """
    title = title.strip()
    if not title:
        raise InvalidPayload("title은 비어 있을 수 없습니다")

    if len(images) > settings.MAX_MOVIE_IMAGES:
        raise TooManyImages(f"이미지는 최대 {settings.MAX_MOVIE_IMAGES}장까지 첨부할 수 있습니다")

    for upload in images:
        if upload.content_type and not upload.content_type.startswith("image/"):
            raise InvalidImage(f"이미지 파일이 아닙니다: {upload.filename}")

    if not repo.get_indicative_rating(indicative_rating_id):
        raise IndicativeRatingNotFound

    movie = repo.create(
        Movie(
            title=title,
            duration=duration,
            indicative_rating_id=indicative_rating_id,
            user_id=user.id,
        )
    )

    queued = enqueue_images(repo, movie, user.id, images)
    logger.info(f"Movie {movie.id} created with {queued}/{len(images)} image task(s) queued")
    return movie


def enqueue_images(
    repo: MovieRepository, movie: Movie, user_id: uuid.UUID, images: list[UploadFile]
) -> int:
    """이미지마다 UploadTask를 만들어 큐에 넣는다. 실제로 넣은 개수를 반환한다."""
    queued = 0
    for index, upload in enumerate(images, start=1):
        label = f"image #{index} ({upload.filename or 'unnamed'})"

        try:
            data = to_jpeg_bytes(upload.file)
        except ImageConversionError as e:
            logger.warning(f"Skipping {label} of movie {movie.id}: {e}")
            repo.record_image_event(movie.id, ImageOutcome.CONVERSION_FAILED, detail=f"{label}: {e}")
            continue

        task = UploadTask(movie_id=movie.id, user_id=user_id, image=data)
        try:
            repo.add_upload_task_to_queue(task)
        except QueueError as e:
            logger.error(f"Failed to enqueue {label} of movie {movie.id}: {e}")
            repo.record_image_event(
                movie.id, ImageOutcome.ENQUEUE_FAILED, task_id=task.id, detail=f"{label}: {e}"
            )
            continue

        repo.record_image_event(movie.id, ImageOutcome.QUEUED, task_id=task.id, detail=label)
        queued += 1
    return queued


def get_owned_movie(repo: MovieRepository, movie_id: uuid.UUID, user: User) -> Movie:
    movie = repo.get_by_id(movie_id)
    if not movie:
        raise MovieNotFound
    if movie.user_id != user.id:
        raise Forbidden("본인이 등록한 영화만 관리할 수 있습니다")
    return movie


def list_movies(repo: MovieRepository, user: User, pagination: Pagination) -> Pagination:
    return repo.get_all_by_user_id(user.id, pagination)


def update_movie(repo: MovieRepository, movie_id: uuid.UUID, user: User, updates: dict) -> Movie:
    """전달된 필드만 수정한다. (title, duration, indicative_rating_id)"""
    if not updates:
        raise InvalidPayload("수정할 필드를 하나 이상 입력해주세요")

    movie = get_owned_movie(repo, movie_id, user)

    if "title" in updates:
        updates["title"] = updates["title"].strip()
        if not updates["title"]:
            raise InvalidPayload("title은 비어 있을 수 없습니다")

    if "indicative_rating_id" in updates and not repo.get_indicative_rating(
        updates["indicative_rating_id"]
    ):
        raise IndicativeRatingNotFound

    return repo.update(movie, updates)


def delete_movie(repo: MovieRepository, movie_id: uuid.UUID, user: User) -> int:
    """영화를 삭제 상태로 바꾸고, 모든 이미지의 삭제 작업을 큐에 넣는다.

    이미지 행은 삭제 워커가 외부 저장소 삭제를 마친 뒤에 지운다.
    큐에 넣은 삭제 작업 수를 반환한다.
    """
    movie = get_owned_movie(repo, movie_id, user)
    images = repo.get_images(movie.id)
    repo.mark_deleted(movie)

    scheduled = 0
    for image in images:
        try:
            schedule_image_deletion(repo, image)
            scheduled += 1
        except QueueError as e:
            logger.error(f"Failed to enqueue deletion of image {image.external_id}: {e}")
            repo.record_image_event(
                movie.id, ImageOutcome.ENQUEUE_FAILED, detail=str(e), external_id=image.external_id
            )

    logger.info(f"Movie {movie.id} deleted, {scheduled}/{len(images)} image deletion(s) queued")
    return scheduled


def delete_movie_image(
    repo: MovieRepository, movie_id: uuid.UUID, image_id: uuid.UUID, user: User
) -> DeleteTask:
    movie = get_owned_movie(repo, movie_id, user)
    image = repo.get_movie_image(image_id)
    if not image or image.movie_id != movie.id:
        raise MovieImageNotFound

    try:
        return schedule_image_deletion(repo, image)
    except QueueError as e:
        logger.error(f"Failed to enqueue deletion of image {image.external_id}: {e}")
        raise QueueUnavailable


def schedule_image_deletion(repo: MovieRepository, image: MovieImage) -> DeleteTask:
    task = DeleteTask(external_id=image.external_id, movie_id=image.movie_id)
    repo.add_delete_task_to_queue(task)
    repo.record_image_event(
        image.movie_id, ImageOutcome.DELETE_QUEUED, task_id=task.id, external_id=image.external_id
    )
    return task


def get_image_events(repo: MovieRepository, movie_id: uuid.UUID, user: User):
    movie = repo.get_by_id(movie_id, include_deleted=True)
    if not movie:
        raise MovieNotFound
    if movie.user_id != user.id:
        raise Forbidden("본인이 등록한 영화만 관리할 수 있습니다")
    return repo.get_image_events(movie.id)
