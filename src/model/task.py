"""큐를 오가는 작업(task) 레코드.

DB에 저장되지 않고 Redis 리스트 안에서만 JSON 문자열로 존재한다.
이미지 바이트는 JSON에 담을 수 없으므로 base64로 인코딩한다.
"""

import base64
import uuid
from datetime import UTC, datetime

from pydantic import BaseModel, Field, field_serializer, field_validator


class QueuedTask(BaseModel):
    id: uuid.UUID = Field(default_factory=uuid.uuid4)
    attempts: int = 0
    enqueued_at: datetime = Field(default_factory=lambda: datetime.now(UTC))

    def next_attempt(self):
        """재시도용 복사본. attempts만 1 증가시킨다."""
        return self.model_copy(update={"attempts": self.attempts + 1})


class UploadTask(QueuedTask):
    movie_id: uuid.UUID
    user_id: uuid.UUID
    image: bytes

    @field_validator("image", mode="before")
    @classmethod
    def _decode_image(cls, value):
        if isinstance(value, str):
            return base64.b64decode(value, validate=True)
        return value

    @field_serializer("image")
    def _encode_image(self, value: bytes) -> str:
        return base64.b64encode(value).decode("ascii")


class DeleteTask(QueuedTask):
    external_id: str
    movie_id: uuid.UUID | None = None
