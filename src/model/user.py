import uuid
from datetime import UTC, date, datetime
from enum import Enum

from sqlmodel import Field, SQLModel


class Role(str, Enum):
    USER = "user"
    ADMIN_LEVEL_1 = "admin_level_1"
    ADMIN_LEVEL_2 = "admin_level_2"
    ADMIN_LEVEL_3 = "admin_level_3"


# 권한 비교용 레벨. 숫자가 클수록 상위 권한.
ROLE_LEVELS = {
    Role.USER: 0,
    Role.ADMIN_LEVEL_1: 1,
    Role.ADMIN_LEVEL_2: 2,
    Role.ADMIN_LEVEL_3: 3,
}


class User(SQLModel, table=True):
    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    first_name: str = Field(max_length=255)
    last_name: str = Field(max_length=255)
    email: str = Field(max_length=255, unique=True, index=True)
    hashed_password: str
    role: Role = Field(default=Role.USER)
    birth_date: date
    created_at: datetime = Field(default_factory=lambda: datetime.now(UTC))
