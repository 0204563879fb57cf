import uuid
from datetime import UTC, datetime, timedelta

import jwt
from pwdlib.hashers.bcrypt import BcryptHasher
from pydantic import BaseModel, ValidationError

from core.config import settings
from model.user import Role

pwd_hash = BcryptHasher()


def hash_password(plain: str) -> str:
    return pwd_hash.hash(plain)


def verify_password(plain: str, hashed: str) -> bool:
    return pwd_hash.verify(plain, hashed)


# --- 액세스 토큰 ---
# HS256 서명. payload는 누구나 디코딩할 수 있으므로 식별자와 권한만 담는다.
#   {"sub": "<user id>", "role": "admin_level_1", "exp": <unix ts>}


class TokenClaims(BaseModel):
    sub: uuid.UUID
    role: Role
    exp: datetime


def create_access_token(
    user_id: uuid.UUID, role: Role, expires_delta: timedelta | None = None
) -> str:
    """사용자 id와 권한을 담은 JWT를 발급한다. expires_delta가 없으면 JWT_EXPIRE_MINUTES."""
    expire = datetime.now(UTC) + (expires_delta or timedelta(minutes=settings.JWT_EXPIRE_MINUTES))
    payload = {"sub": str(user_id), "role": role.value, "exp": expire}
    return jwt.encode(payload, settings.JWT_SECRET_KEY, algorithm=settings.JWT_ALGORITHM)


def verify_token(token: str) -> TokenClaims | None:
    """서명, 만료, 클레임 형식을 검증한다. 하나라도 어긋나면 None."""
    try:
        payload = jwt.decode(token, settings.JWT_SECRET_KEY, algorithms=[settings.JWT_ALGORITHM])
    except jwt.PyJWTError:
        return None

    try:
        return TokenClaims.model_validate(payload)
    except ValidationError:
        return None
