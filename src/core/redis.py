from functools import lru_cache

import redis

from core.config import settings


@lru_cache()
def get_redis() -> redis.Redis:
    """공용 Redis 클라이언트. (커넥션 풀은 클라이언트 내부에서 관리)

    decode_responses=True → 모든 값을 str로 주고받는다.
    큐 엔트리와 세션 토큰 모두 JSON/텍스트이므로 bytes가 필요 없다.
    """
    return redis.Redis.from_url(settings.REDIS_URL, decode_responses=True)
