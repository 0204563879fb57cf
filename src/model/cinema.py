import uuid
from datetime import UTC, datetime

from sqlmodel import Field, SQLModel


class Cinema(SQLModel, table=True):
    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    name: str = Field(max_length=255)
    location: str = Field(max_length=255)
    user_id: uuid.UUID = Field(foreign_key="user.id", index=True)
    created_at: datetime = Field(default_factory=lambda: datetime.now(UTC))
    updated_at: datetime | None = None


class CinemaRoom(SQLModel, table=True):
    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    cinema_id: uuid.UUID = Field(foreign_key="cinema.id", index=True)
    name: str = Field(max_length=255)
    rows: int
    columns: int
    seat_count: int
    created_at: datetime = Field(default_factory=lambda: datetime.now(UTC))


class Seat(SQLModel, table=True):
    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    cinema_room_id: uuid.UUID = Field(foreign_key="cinemaroom.id", index=True)
    seat_identifier: str = Field(max_length=5)  # 예: "A1", "C12"
    created_at: datetime = Field(default_factory=lambda: datetime.now(UTC))
