from datetime import date, time
from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from app.db.session import get_db
from app.api.deps import Principal, ensure_self_or_admin, get_current_principal, get_current_user
from app.models.reservation import Reservation, ReservationStatus
from app.models.user import User
from app.schemas.reservation import (
    AvailabilityCheck,
    CheckInResponse,
    QuickReserveRequest,
    Reservation as ReservationSchema,
    ReservationCreate,
)
from app.schemas.study_room import AvailableSlots, RoomDetail, RoomOccupancy, RoomSeatsStatus
from app.services import availability
from app.services import reservations as reservation_service
from app.services.cache import SeatStatusCache, get_cache

router = APIRouter(prefix="/reservations", tags=["Reservations"])


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _resolve_booking_user(requested: Optional[UUID], principal: Principal) -> UUID:
    """Users book for themselves; admins must name the user."""
    if principal.is_admin:
        if requested is None:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="user_id is required")
        return requested
    if requested is not None and requested != principal.id:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="You can only reserve for yourself")
    return principal.id


def _load_owned(db: Session, reservation_id: UUID, principal: Principal) -> Reservation:
    reservation = reservation_service.get_reservation(db, reservation_id)
    ensure_self_or_admin(principal, reservation.user_id)
    return reservation


def _parse_status(value: str) -> ReservationStatus:
    try:
        return ReservationStatus(value)
    except ValueError:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=f"Invalid reservation status {value!r}")


def _list(query) -> List[ReservationSchema]:
    rows = query.order_by(Reservation.date.desc(), Reservation.start_time).all()
    return [reservation_service.serialize_reservation(r) for r in rows]


def _visible(db: Session):
    return db.query(Reservation).filter(Reservation.is_deleted == False)  # noqa: E712


# ---------------------------------------------------------------------------
# Booking
# ---------------------------------------------------------------------------


@router.post("", response_model=ReservationSchema, status_code=status.HTTP_201_CREATED)
def create_reservation(
    data: ReservationCreate,
    db: Session = Depends(get_db),
    cache: SeatStatusCache = Depends(get_cache),
    principal: Principal = Depends(get_current_principal),
):
    data.user_id = _resolve_booking_user(data.user_id, principal)
    reservation = reservation_service.create_reservation(db, data, cache=cache)
    return reservation_service.serialize_reservation(reservation)


@router.post("/quick-reserve", response_model=ReservationSchema, status_code=status.HTTP_201_CREATED)
def quick_reserve(
    data: QuickReserveRequest,
    db: Session = Depends(get_db),
    cache: SeatStatusCache = Depends(get_cache),
    principal: Principal = Depends(get_current_principal),
):
    """Reserve the first free seat in any open room for the requested range."""
    data.user_id = _resolve_booking_user(data.user_id, principal)
    reservation = reservation_service.quick_reserve(db, data, cache=cache)
    return reservation_service.serialize_reservation(reservation)


# ---------------------------------------------------------------------------
# Availability
# ---------------------------------------------------------------------------


@router.get("/check-availability", response_model=AvailabilityCheck)
def check_availability(
    seat_id: UUID,
    date: date,
    start_time: time,
    end_time: time,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
):
    return reservation_service.check_seat_availability(db, seat_id, date, start_time, end_time)


@router.get("/available-slots", response_model=AvailableSlots)
def available_slots(
    study_room_id: UUID,
    date: date,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
):
    return availability.available_slots(db, study_room_id, date)


@router.get("/study-rooms/status", response_model=List[RoomOccupancy])
def all_rooms_status(
    date: Optional[date] = Query(None),
    start_time: Optional[time] = Query(None),
    end_time: Optional[time] = Query(None),
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
):
    """Occupancy of every room for a range; defaults to the current hour."""
    on_date, start_time, end_time = availability.resolve_range(date, start_time, end_time)
    return availability.all_rooms_status(db, on_date, start_time, end_time)


@router.get("/study-rooms/{room_id}/detail", response_model=RoomDetail)
def room_detail(
    room_id: UUID,
    date: Optional[date] = Query(None),
    start_time: Optional[time] = Query(None),
    end_time: Optional[time] = Query(None),
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
):
    on_date, start_time, end_time = availability.resolve_range(date, start_time, end_time)
    room = availability.get_room(db, room_id)
    return availability.room_detail(db, room, on_date, start_time, end_time)


@router.get("/study-room/{room_id}/status", response_model=RoomOccupancy)
def room_status(
    room_id: UUID,
    date: Optional[date] = Query(None),
    start_time: Optional[time] = Query(None),
    end_time: Optional[time] = Query(None),
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
):
    on_date, start_time, end_time = availability.resolve_range(date, start_time, end_time)
    room = availability.get_room(db, room_id)
    return availability.room_occupancy(db, room, on_date, start_time, end_time)


@router.get("/study-room/{room_id}/seats-status", response_model=RoomSeatsStatus)
def room_seats_status(
    room_id: UUID,
    date: Optional[date] = Query(None),
    start_time: Optional[time] = Query(None),
    end_time: Optional[time] = Query(None),
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
):
    on_date, start_time, end_time = availability.resolve_range(date, start_time, end_time)
    room = availability.get_room(db, room_id)
    return availability.room_seats_status(db, room, on_date, start_time, end_time)


# ---------------------------------------------------------------------------
# Queries
# ---------------------------------------------------------------------------


@router.get("/user/{user_id}", response_model=List[ReservationSchema])
def list_user_reservations(
    user_id: UUID,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
):
    ensure_self_or_admin(principal, user_id)
    return _list(_visible(db).filter(Reservation.user_id == user_id))


@router.get("/user/{user_id}/status/{reservation_status}", response_model=List[ReservationSchema])
def list_user_reservations_by_status(
    user_id: UUID,
    reservation_status: str,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
):
    ensure_self_or_admin(principal, user_id)
    wanted = _parse_status(reservation_status)
    return _list(_visible(db).filter(Reservation.user_id == user_id, Reservation.status == wanted))


@router.get("/seat/{seat_id}", response_model=List[ReservationSchema])
def list_seat_reservations(
    seat_id: UUID,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
):
    return _list(_visible(db).filter(Reservation.seat_id == seat_id))


@router.get("/study-room/{room_id}", response_model=List[ReservationSchema])
def list_room_reservations(
    room_id: UUID,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
):
    return _list(_visible(db).filter(Reservation.study_room_id == room_id))


@router.get("/date/{on_date}", response_model=List[ReservationSchema])
def list_reservations_on_date(
    on_date: date,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
):
    return _list(_visible(db).filter(Reservation.date == on_date))


@router.get("/{reservation_id}", response_model=ReservationSchema)
def get_reservation(
    reservation_id: UUID,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
):
    return reservation_service.serialize_reservation(_load_owned(db, reservation_id, principal))


# ---------------------------------------------------------------------------
# Status changes
# ---------------------------------------------------------------------------


@router.put("/{reservation_id}/cancel", response_model=ReservationSchema)
def cancel_reservation(
    reservation_id: UUID,
    db: Session = Depends(get_db),
    cache: SeatStatusCache = Depends(get_cache),
    principal: Principal = Depends(get_current_principal),
):
    _load_owned(db, reservation_id, principal)
    reservation = reservation_service.cancel_reservation(db, reservation_id, cache=cache)
    return reservation_service.serialize_reservation(reservation)


@router.put("/{reservation_id}/complete", response_model=ReservationSchema)
def complete_reservation(
    reservation_id: UUID,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
):
    _load_owned(db, reservation_id, principal)
    reservation = reservation_service.complete_reservation(db, reservation_id)
    return reservation_service.serialize_reservation(reservation)


@router.post("/{reservation_id}/check-in", response_model=CheckInResponse)
def check_in(
    reservation_id: UUID,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    reservation = reservation_service.check_in(db, reservation_id, current_user.id)
    return CheckInResponse(
        message="Checked in",
        reservation=reservation_service.serialize_reservation(reservation),
    )
