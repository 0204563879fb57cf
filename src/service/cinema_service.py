import string
import uuid
from datetime import UTC, datetime

from sqlmodel import Session, func, select

from core.exceptions import CinemaNotFound, Forbidden, RoomNotFound
from model.cinema import Cinema, CinemaRoom, Seat
from model.pagination import Pagination

ROW_LABELS = string.ascii_uppercase  # 최대 26줄


def create_cinema(name: str, location: str, user_id: uuid.UUID, session: Session) -> Cinema:
    cinema = Cinema(name=name.strip(), location=location.strip(), user_id=user_id)
    session.add(cinema)
    session.commit()
    session.refresh(cinema)
    return cinema


def list_cinemas(user_id: uuid.UUID, pagination: Pagination, session: Session) -> Pagination:
    """해당 사용자가 등록한 영화관 목록 (최신순, 페이지 단위)."""
    total = session.exec(
        select(func.count()).select_from(Cinema).where(Cinema.user_id == user_id)
    ).one()
    cinemas = session.exec(
        select(Cinema)
        .where(Cinema.user_id == user_id)
        .order_by(Cinema.created_at.desc())
        .offset(pagination.offset)
        .limit(pagination.limit)
    ).all()
    return pagination.with_rows(list(cinemas), total)


def get_cinema_or_raise(cinema_id: uuid.UUID, user_id: uuid.UUID, session: Session) -> Cinema:
    """ID로 영화관을 조회하고, 소유권을 검증한다."""
    cinema = session.get(Cinema, cinema_id)
    if not cinema:
        raise CinemaNotFound
    if cinema.user_id != user_id:
        raise Forbidden
    return cinema


def delete_cinema(cinema_id: uuid.UUID, user_id: uuid.UUID, session: Session) -> None:
    """영화관과 그 아래 상영관, 좌석을 함께 삭제한다."""
    cinema = get_cinema_or_raise(cinema_id, user_id, session)

    rooms = session.exec(select(CinemaRoom).where(CinemaRoom.cinema_id == cinema.id)).all()
    for room in rooms:
        for seat in session.exec(select(Seat).where(Seat.cinema_room_id == room.id)).all():
            session.delete(seat)
        session.flush()
        session.delete(room)
    session.flush()
    session.delete(cinema)
    session.commit()


def create_room(
    cinema_id: uuid.UUID,
    user_id: uuid.UUID,
    name: str,
    rows: int,
    columns: int,
    session: Session,
) -> CinemaRoom:
    """상영관을 만들고 rows x columns 좌석(A1, A2, ..., B1, ...)을 생성한다."""
    cinema = get_cinema_or_raise(cinema_id, user_id, session)

    room = CinemaRoom(
        cinema_id=cinema.id,
        name=name.strip(),
        rows=rows,
        columns=columns,
        seat_count=rows * columns,
    )
    session.add(room)
    session.flush()
    session.add_all(
        Seat(cinema_room_id=room.id, seat_identifier=f"{ROW_LABELS[r]}{c}")
        for r in range(rows)
        for c in range(1, columns + 1)
    )
    cinema.updated_at = datetime.now(UTC)
    session.add(cinema)
    session.commit()
    session.refresh(room)
    return room


def list_rooms(cinema_id: uuid.UUID, user_id: uuid.UUID, session: Session) -> list[CinemaRoom]:
    cinema = get_cinema_or_raise(cinema_id, user_id, session)
    return list(
        session.exec(
            select(CinemaRoom).where(CinemaRoom.cinema_id == cinema.id).order_by(CinemaRoom.name)
        ).all()
    )


def list_seats(
    cinema_id: uuid.UUID, room_id: uuid.UUID, user_id: uuid.UUID, session: Session
) -> list[Seat]:
    cinema = get_cinema_or_raise(cinema_id, user_id, session)
    room = session.get(CinemaRoom, room_id)
    if not room or room.cinema_id != cinema.id:
        raise RoomNotFound

    seats = session.exec(select(Seat).where(Seat.cinema_room_id == room.id)).all()
    # "A10"이 "A2"보다 앞에 오지 않도록 (줄, 번호) 순서로 정렬
    return sorted(seats, key=lambda s: (s.seat_identifier[0], int(s.seat_identifier[1:])))
