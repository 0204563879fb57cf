
import redis
from fastapi import Depends
from fastapi.security import OAuth2PasswordBearer
from sqlmodel import Session

from core.exceptions import Forbidden, InvalidToken
from core.redis import get_redis
from core.security import verify_token
from model.database import get_session
from model.user import ROLE_LEVELS, Role, User
from repository.movie_repository import MovieRepository
from repository.session_repository import SessionRepository
from repository.task_queue import WorkQueue

# OAuth2PasswordBearer:
# - Swagger UI에 "Authorize" 버튼을 자동 생성
# - 요청 헤더에서 "Authorization: Bearer <token>"을 추출
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/v1/users/sign-in")


def get_session_repository(client: redis.Redis = Depends(get_redis)) -> SessionRepository:
    return SessionRepository(client)


def get_work_queue(client: redis.Redis = Depends(get_redis)) -> WorkQueue:
    return WorkQueue(client)


def get_movie_repository(
    session: Session = Depends(get_session),
    queue: WorkQueue = Depends(get_work_queue),
) -> MovieRepository:
    return MovieRepository(session, queue)


def get_current_user(
    token: str = Depends(oauth2_scheme),
    session: Session = Depends(get_session),
    sessions: SessionRepository = Depends(get_session_repository),
) -> User:
    """JWT 토큰에서 현재 사용자를 추출한다.

    흐름:
    1. OAuth2PasswordBearer가 헤더에서 토큰 추출
    2. verify_token으로 서명, 만료, 클레임 형식 검증
    3. Redis에 저장된 활성 세션 토큰과 같은지 확인 (재로그인 시 이전 토큰 무효)
    4. claims.sub (user id)로 DB에서 사용자 조회
    """
    claims = verify_token(token)
    if not claims:
        raise InvalidToken
    user_id = claims.sub

    if sessions.get_token(user_id) != token:
        raise InvalidToken("세션이 만료되었거나 다른 곳에서 다시 로그인했습니다")

    user = session.get(User, user_id)
    if not user:
        raise InvalidToken("사용자를 찾을 수 없습니다")

    return user


def require_role(min_role: Role):
    """최소 권한 레벨을 요구하는 의존성을 만든다.

    사용법:
        @router.post("", dependencies=[Depends(require_role(Role.ADMIN_LEVEL_1))])
    """

    def _dependency(current_user: User = Depends(get_current_user)) -> User:
        if ROLE_LEVELS.get(current_user.role, -1) < ROLE_LEVELS[min_role]:
            raise Forbidden
        return current_user

    return _dependency
