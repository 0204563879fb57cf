from datetime import date

from loguru import logger
from sqlmodel import Session, select

from core.config import settings
from core.exceptions import DuplicateEmail, InvalidCredentials
from core.security import create_access_token, hash_password, verify_password
from model.user import Role, User
from repository.session_repository import SessionRepository


def register(
    session: Session,
    *,
    first_name: str,
    last_name: str,
    email: str,
    password: str,
    birth_date: date,
    role: Role = Role.USER,
) -> User:
    """새 사용자를 등록한다.

    1. 이메일 중복 확인 (소문자로 정규화한 값 기준)
    2. 패스워드를 bcrypt로 해싱
    3. DB에 저장
    """
    email = email.strip().lower()
    existing = session.exec(select(User).where(User.email == email)).first()
    if existing:
        raise DuplicateEmail

    user = User(
        first_name=first_name.strip(),
        last_name=last_name.strip(),
        email=email,
        hashed_password=hash_password(password),
        birth_date=birth_date,
        role=role,
    )
    session.add(user)
    session.commit()
    session.refresh(user)
    logger.info(f"User registered: {user.id} ({user.role.value})")
    return user


def login(email: str, password: str, session: Session, sessions: SessionRepository) -> str:
    """이메일/패스워드를 확인하고 JWT를 반환한다.

    발급한 토큰은 사용자의 활성 세션으로 Redis에 저장된다.
    """
    user = session.exec(select(User).where(User.email == email.strip().lower())).first()
    if not user:
        raise InvalidCredentials

    if not verify_password(password, user.hashed_password):
        raise InvalidCredentials

    token = create_access_token(user.id, user.role)
    sessions.create(user.id, token)
    return token


def ensure_superadmin(session: Session) -> User | None:
    """설정에 최고 관리자 계정이 있으면 없을 때만 만든다."""
    if not settings.SUPERADMIN_EMAIL or not settings.SUPERADMIN_PASSWORD:
        return None

    email = settings.SUPERADMIN_EMAIL.strip().lower()
    existing = session.exec(select(User).where(User.email == email)).first()
    if existing:
        return existing

    return register(
        session,
        first_name="Super",
        last_name="Admin",
        email=email,
        password=settings.SUPERADMIN_PASSWORD,
        birth_date=date.today(),
        role=Role.ADMIN_LEVEL_3,
    )
