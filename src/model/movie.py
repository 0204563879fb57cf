import uuid
from datetime import UTC, datetime
from enum import Enum

from sqlmodel import Field, SQLModel


class IndicativeRating(SQLModel, table=True):
    __tablename__ = "indicative_rating"

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    description: str = Field(max_length=4, unique=True)  # AL, A10, ..., A18
    image_url: str = Field(max_length=255)
    created_at: datetime = Field(default_factory=lambda: datetime.now(UTC))


class Movie(SQLModel, table=True):
    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    title: str = Field(max_length=255, index=True)
    duration: int  # 분 단위
    indicative_rating_id: uuid.UUID = Field(foreign_key="indicative_rating.id")
    user_id: uuid.UUID = Field(foreign_key="user.id", index=True)
    created_at: datetime = Field(default_factory=lambda: datetime.now(UTC))
    updated_at: datetime | None = None
    # 삭제 요청 시점. 이미지 삭제 작업이 끝날 때까지 행은 남아 있다.
    deleted_at: datetime | None = None


class MovieImage(SQLModel, table=True):
    __tablename__ = "movie_image"

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    movie_id: uuid.UUID = Field(foreign_key="movie.id", index=True)
    image_url: str = Field(max_length=255)
    external_id: str = Field(max_length=255, unique=True)
    created_at: datetime = Field(default_factory=lambda: datetime.now(UTC))


class ImageOutcome(str, Enum):
    QUEUED = "queued"
    CONVERSION_FAILED = "conversion_failed"
    ENQUEUE_FAILED = "enqueue_failed"
    UPLOADED = "uploaded"
    RETRY_SCHEDULED = "retry_scheduled"
    DEAD_LETTERED = "dead_lettered"
    ORPHANED = "orphaned"
    DELETE_QUEUED = "delete_queued"
    DELETED = "deleted"
    DELETE_FAILED = "delete_failed"
    DISCARDED = "discarded"


class ImageEvent(SQLModel, table=True):
    """이미지 파이프라인 결과 기록 (append-only).

    업로드/삭제 결과가 HTTP 응답으로 돌아가지 않기 때문에,
    클라이언트가 영화별로 조회할 수 있도록 여기에 남긴다.
    """

    __tablename__ = "image_event"

    id: int | None = Field(default=None, primary_key=True)
    movie_id: uuid.UUID = Field(index=True)
    task_id: uuid.UUID | None = None
    outcome: ImageOutcome
    detail: str | None = None
    external_id: str | None = None
    created_at: datetime = Field(default_factory=lambda: datetime.now(UTC))
