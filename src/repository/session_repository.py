import uuid

import redis

from core.config import settings


class SessionRepository:
    """로그인 세션 저장소.

    사용자당 활성 토큰 하나만 Redis에 보관한다. (session_<user id> → token)
    다시 로그인하면 이전 토큰은 더 이상 인증되지 않는다.
    """

    def __init__(self, client: redis.Redis):
        self.client = client

    def create(self, user_id: uuid.UUID, token: str) -> None:
        self.client.set(
            self._key(user_id),
            token,
            ex=settings.SESSION_EXPIRE_HOURS * 3600,
        )

    def get_token(self, user_id: uuid.UUID) -> str | None:
        return self.client.get(self._key(user_id))

    def delete(self, user_id: uuid.UUID) -> None:
        self.client.delete(self._key(user_id))

    @staticmethod
    def _key(user_id: uuid.UUID) -> str:
        return f"session_{user_id}"
