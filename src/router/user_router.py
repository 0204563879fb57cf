import re
import uuid
from datetime import date

from fastapi import APIRouter, Depends, status
from fastapi.security import OAuth2PasswordRequestForm
from pydantic import BaseModel, EmailStr, Field, field_validator, model_validator
from sqlmodel import Session

from core.dependencies import get_current_user, get_session_repository, require_role
from model.database import get_session
from model.user import Role, User
from repository.session_repository import SessionRepository
from service import auth_service

router = APIRouter(prefix="/v1/users", tags=["users"])

# 8자 이상, 소문자/대문자/숫자/특수문자(!@#$&*) 각각 하나 이상
STRONG_PASSWORD = re.compile(r"^(?=.*[a-z])(?=.*[A-Z])(?=.*\d)(?=.*[!@#$&*])[A-Za-z\d!@#$&*]{8,}$")
MAX_AGE_YEARS = 200


# --- 요청/응답 스키마 ---

class RegisterRequest(BaseModel):
    first_name: str = Field(min_length=1, max_length=255)
    last_name: str = Field(min_length=1, max_length=255)
    email: EmailStr
    confirm_email: EmailStr
    password: str = Field(max_length=255)
    confirm_password: str
    birth_date: date

    @field_validator("password")
    @classmethod
    def _strong_password(cls, value: str) -> str:
        if not STRONG_PASSWORD.match(value):
            raise ValueError(
                "password must be at least 8 characters long and contain an uppercase letter, "
                "a lowercase letter, a number and a special character (!@#$&*)"
            )
        return value

    @field_validator("birth_date")
    @classmethod
    def _reasonable_birth_date(cls, value: date) -> date:
        today = date.today()
        if value > today:
            raise ValueError("birth date cannot be in the future")
        if today.year - value.year > MAX_AGE_YEARS:
            raise ValueError(f"birth date indicates an age over {MAX_AGE_YEARS} years")
        return value

    @model_validator(mode="after")
    def _confirmations_match(self):
        if self.email.lower() != self.confirm_email.lower():
            raise ValueError("email and confirm_email do not match")
        if self.password != self.confirm_password:
            raise ValueError("password and confirm_password do not match")
        return self


class AdminRegisterRequest(RegisterRequest):
    role: Role = Role.ADMIN_LEVEL_1


class UserResponse(BaseModel):
    id: uuid.UUID
    first_name: str
    last_name: str
    email: str
    role: Role
    birth_date: date


class TokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"


def _register(req: RegisterRequest, session: Session, role: Role) -> UserResponse:
    user = auth_service.register(
        session,
        first_name=req.first_name,
        last_name=req.last_name,
        email=req.email,
        password=req.password,
        birth_date=req.birth_date,
        role=role,
    )
    return UserResponse.model_validate(user, from_attributes=True)


# --- 엔드포인트 ---

@router.post("", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
def register(req: RegisterRequest, session: Session = Depends(get_session)):
    """회원가입: 일반 사용자(role=user)로 생성."""
    return _register(req, session, Role.USER)


@router.post(
    "/admin",
    response_model=UserResponse,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(require_role(Role.ADMIN_LEVEL_3))],
)
def register_admin(req: AdminRegisterRequest, session: Session = Depends(get_session)):
    """관리자 계정 생성. 최고 관리자(admin_level_3)만 호출할 수 있다."""
    return _register(req, session, req.role)


@router.post("/sign-in", response_model=TokenResponse)
def sign_in(
    form: OAuth2PasswordRequestForm = Depends(),
    session: Session = Depends(get_session),
    sessions: SessionRepository = Depends(get_session_repository),
):
    """로그인: 이메일 + 패스워드 → JWT 토큰 반환.

    OAuth2 표준 필드명이 username이므로 form.username에 이메일을 넣는다.
    """
    token = auth_service.login(form.username, form.password, session, sessions)
    return TokenResponse(access_token=token)


@router.get("/me", response_model=UserResponse)
def get_me(current_user: User = Depends(get_current_user)):
    """현재 로그인한 사용자 정보 조회. (토큰 필수)"""
    return UserResponse.model_validate(current_user, from_attributes=True)
