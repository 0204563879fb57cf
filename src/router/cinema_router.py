import uuid
from datetime import datetime

from fastapi import APIRouter, Depends, Query, status
from pydantic import BaseModel, Field
from sqlmodel import Session

from core.dependencies import require_role
from model.database import get_session
from model.pagination import DEFAULT_LIMIT, MAX_LIMIT, Pagination
from model.user import Role, User
from service import cinema_service

router = APIRouter(prefix="/v1/cinemas", tags=["cinemas"])

require_admin = require_role(Role.ADMIN_LEVEL_1)


class CinemaRequest(BaseModel):
    name: str = Field(min_length=1, max_length=255)
    location: str = Field(min_length=1, max_length=255)


class CinemaResponse(BaseModel):
    id: uuid.UUID
    name: str
    location: str
    created_at: datetime


class RoomRequest(BaseModel):
    name: str = Field(min_length=1, max_length=255)
    rows: int = Field(ge=1, le=26)
    columns: int = Field(ge=1, le=50)


class RoomResponse(BaseModel):
    id: uuid.UUID
    name: str
    rows: int
    columns: int
    seat_count: int


class SeatResponse(BaseModel):
    id: uuid.UUID
    seat_identifier: str


def _cinema(c) -> CinemaResponse:
    return CinemaResponse.model_validate(c, from_attributes=True)


@router.post("", response_model=CinemaResponse, status_code=status.HTTP_201_CREATED)
def create_cinema(
    req: CinemaRequest,
    current_user: User = Depends(require_admin),
    session: Session = Depends(get_session),
):
    return _cinema(cinema_service.create_cinema(req.name, req.location, current_user.id, session))


@router.get("")
def list_cinemas(
    page: int = Query(1, ge=1),
    limit: int = Query(DEFAULT_LIMIT, ge=1, le=MAX_LIMIT),
    current_user: User = Depends(require_admin),
    session: Session = Depends(get_session),
):
    result = cinema_service.list_cinemas(
        current_user.id, Pagination(page=page, limit=limit), session
    )
    return result.model_copy(update={"rows": [_cinema(c) for c in result.rows]})


@router.get("/{cinema_id}", response_model=CinemaResponse)
def get_cinema(
    cinema_id: uuid.UUID,
    current_user: User = Depends(require_admin),
    session: Session = Depends(get_session),
):
    return _cinema(cinema_service.get_cinema_or_raise(cinema_id, current_user.id, session))


@router.delete("/{cinema_id}")
def delete_cinema(
    cinema_id: uuid.UUID,
    current_user: User = Depends(require_admin),
    session: Session = Depends(get_session),
):
    cinema_service.delete_cinema(cinema_id, current_user.id, session)
    return {"detail": "Deleted"}


@router.post(
    "/{cinema_id}/rooms", response_model=RoomResponse, status_code=status.HTTP_201_CREATED
)
def create_room(
    cinema_id: uuid.UUID,
    req: RoomRequest,
    current_user: User = Depends(require_admin),
    session: Session = Depends(get_session),
):
    room = cinema_service.create_room(
        cinema_id, current_user.id, req.name, req.rows, req.columns, session
    )
    return RoomResponse.model_validate(room, from_attributes=True)


@router.get("/{cinema_id}/rooms", response_model=list[RoomResponse])
def list_rooms(
    cinema_id: uuid.UUID,
    current_user: User = Depends(require_admin),
    session: Session = Depends(get_session),
):
    return [
        RoomResponse.model_validate(r, from_attributes=True)
        for r in cinema_service.list_rooms(cinema_id, current_user.id, session)
    ]


@router.get("/{cinema_id}/rooms/{room_id}/seats", response_model=list[SeatResponse])
def list_seats(
    cinema_id: uuid.UUID,
    room_id: uuid.UUID,
    current_user: User = Depends(require_admin),
    session: Session = Depends(get_session),
):
    return [
        SeatResponse.model_validate(s, from_attributes=True)
        for s in cinema_service.list_seats(cinema_id, room_id, current_user.id, session)
    ]
