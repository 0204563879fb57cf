"""pytest 공용 fixture.

모든 API 테스트는 in-memory SQLite DB와 dict 기반 Redis 대역(FakeRedis)을 사용하여 격리된다.
- engine / session: 테스트마다 새 in-memory DB (관람 등급 seed 포함)
- redis_client: 큐/세션용 FakeRedis
- client: get_session, get_redis를 오버라이드한 TestClient
- auth_headers / admin_headers / second_admin_headers: 로그인한 유저의 Authorization 헤더
"""

import io
import sys
import uuid
from collections import defaultdict
from pathlib import Path

import pytest
import redis
from fastapi.testclient import TestClient
from PIL import Image
from sqlalchemy.pool import StaticPool
from sqlmodel import Session, SQLModel, create_engine, select

# src/ 디렉토리를 import path에 추가
sys.path.insert(0, str(Path(__file__).resolve().parent.parent / "src"))

from core.redis import get_redis
from main import app
from model.database import get_session
from model.user import Role, User
from repository.task_queue import WorkQueue
from service.movie_service import seed_indicative_ratings

RATING_AL = "dffab792-689b-11ef-b065-0242ac110002"
RATING_A18 = "dffb1d82-689b-11ef-b065-0242ac110002"
PASSWORD = "Secret#123"


class FakeRedis:
    """테스트에 필요한 Redis 명령만 흉내 내는 in-memory 대역. (decode_responses=True 기준)"""

    def __init__(self):
        self.lists: dict[str, list[str]] = defaultdict(list)
        self.values: dict[str, str] = {}

    # --- 문자열 ---
    def set(self, name, value, ex=None):
        self.values[name] = value
        return True

    def get(self, name):
        return self.values.get(name)

    def delete(self, *names):
        removed = 0
        for name in names:
            removed += int(self.values.pop(name, None) is not None)
            removed += int(self.lists.pop(name, None) is not None)
        return removed

    # --- 리스트 ---
    def rpush(self, name, *values):
        self.lists[name].extend(values)
        return len(self.lists[name])

    def lmove(self, first_list, second_list, src="LEFT", dest="RIGHT"):
        source = self.lists.get(first_list)
        if not source:
            return None
        value = source.pop(0) if src == "LEFT" else source.pop()
        if dest == "LEFT":
            self.lists[second_list].insert(0, value)
        else:
            self.lists[second_list].append(value)
        return value

    def lrem(self, name, count, value):
        items = self.lists.get(name, [])
        removed = 0
        while value in items and (count == 0 or removed < abs(count)):
            items.remove(value)
            removed += 1
        return removed

    def llen(self, name):
        return len(self.lists.get(name, []))

    def lrange(self, name, start, end):
        items = self.lists.get(name, [])
        stop = len(items) if end == -1 else end + 1
        return list(items[start:stop])

    # --- MULTI/EXEC ---
    def pipeline(self, transaction=True):
        return FakePipeline(self)


class FakePipeline:
    """명령을 모아 두었다가 execute()에서 한꺼번에 적용한다."""

    def __init__(self, target: FakeRedis):
        self.target = target
        self.commands: list[tuple[str, tuple]] = []

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self.commands.clear()
        return False

    def __getattr__(self, name):
        def _queue(*args):
            self.commands.append((name, args))
            return self

        return _queue

    def execute(self):
        results = [getattr(self.target, name)(*args) for name, args in self.commands]
        self.commands.clear()
        return results


class BrokenRedis:
    """모든 명령이 연결 오류를 내는 Redis 대역."""

    def __getattr__(self, name):
        def _fail(*args, **kwargs):
            raise redis.ConnectionError("redis is down")

        return _fail


@pytest.fixture()
def engine():
    """테스트마다 새 in-memory SQLite DB를 생성한다.

    StaticPool을 사용해야 모든 커넥션이 같은 in-memory DB를 공유한다.
    """
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    SQLModel.metadata.create_all(engine)
    with Session(engine) as s:
        seed_indicative_ratings(s)
    return engine


@pytest.fixture()
def session(engine):
    with Session(engine) as s:
        yield s


@pytest.fixture()
def redis_client():
    return FakeRedis()


@pytest.fixture()
def work_queue(redis_client):
    return WorkQueue(redis_client)


@pytest.fixture()
def client(session, redis_client):
    """get_session, get_redis를 테스트용으로 오버라이드한 TestClient."""

    def _override():
        yield session

    app.dependency_overrides[get_session] = _override
    app.dependency_overrides[get_redis] = lambda: redis_client
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


def register_payload(email: str, password: str = PASSWORD, **overrides) -> dict:
    payload = {
        "first_name": "Test",
        "last_name": "User",
        "email": email,
        "confirm_email": email,
        "password": password,
        "confirm_password": password,
        "birth_date": "1990-05-17",
    }
    payload.update(overrides)
    return payload


def login(client: TestClient, email: str, password: str = PASSWORD) -> dict:
    resp = client.post("/v1/users/sign-in", data={"username": email, "password": password})
    token = resp.json()["access_token"]
    return {"Authorization": f"Bearer {token}"}


def register_and_login(
    client: TestClient, session: Session, email: str, role: Role = Role.USER
) -> dict:
    """유저를 가입시키고 (필요하면 권한을 올린 뒤) 로그인하여 Authorization 헤더를 반환한다."""
    client.post("/v1/users", json=register_payload(email))
    if role != Role.USER:
        user = session.exec(select(User).where(User.email == email)).one()
        user.role = role
        session.add(user)
        session.commit()
    return login(client, email)


def make_image_file(filename: str = "poster.png", color: str = "blue") -> tuple[str, io.BytesIO, str]:
    """테스트용 PNG 이미지 파일을 메모리에서 생성한다."""
    buf = io.BytesIO()
    Image.new("RGB", (64, 48), color=color).save(buf, format="PNG")
    buf.seek(0)
    return (filename, buf, "image/png")


@pytest.fixture()
def auth_headers(client, session):
    """일반 사용자(role=user)의 인증 헤더."""
    return register_and_login(client, session, "user1@test.com")


@pytest.fixture()
def admin_headers(client, session):
    """admin_level_1 사용자의 인증 헤더."""
    return register_and_login(client, session, "admin1@test.com", Role.ADMIN_LEVEL_1)


@pytest.fixture()
def second_admin_headers(client, session):
    """두 번째 admin_level_1 사용자 (소유권 테스트용)."""
    return register_and_login(client, session, "admin2@test.com", Role.ADMIN_LEVEL_1)


@pytest.fixture()
def superadmin_headers(client, session):
    return register_and_login(client, session, "root@test.com", Role.ADMIN_LEVEL_3)


def make_movie(session: Session, title: str = "Dune", deleted: bool = False):
    """워커 테스트용: 소유자와 영화 행을 직접 만든다."""
    from datetime import UTC, date, datetime

    from model.movie import Movie

    owner = User(
        first_name="Owner",
        last_name="Admin",
        email=f"owner-{title.lower()}@test.com",
        hashed_password="x",
        role=Role.ADMIN_LEVEL_1,
        birth_date=date(1990, 1, 1),
    )
    session.add(owner)
    session.commit()

    movie = Movie(
        title=title,
        duration=155,
        indicative_rating_id=uuid.UUID(RATING_AL),
        user_id=owner.id,
        deleted_at=datetime.now(UTC) if deleted else None,
    )
    session.add(movie)
    session.commit()
    session.refresh(movie)
    return movie
