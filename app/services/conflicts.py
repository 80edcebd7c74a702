from datetime import date, time
from typing import List, Optional
from uuid import UUID

from sqlalchemy.orm import Session

from app.models.reservation import Reservation, ReservationStatus


def intervals_overlap(start1: time, end1: time, start2: time, end2: time) -> bool:
    """Half-open intervals [start1, end1) and [start2, end2) share an instant."""
    return start1 < end2 and start2 < end1


def active_reservations(db: Session):
    """Reservations that still hold their slot: not cancelled, not soft-deleted."""
    return db.query(Reservation).filter(
        Reservation.status != ReservationStatus.CANCELLED,
        Reservation.is_deleted == False,  # noqa: E712
    )


def _overlapping(query, start_time: time, end_time: time, exclude_id: Optional[UUID]):
    query = query.filter(
        Reservation.start_time < end_time,
        Reservation.end_time > start_time,
    )
    if exclude_id is not None:
        query = query.filter(Reservation.id != exclude_id)
    return query.order_by(Reservation.start_time).all()


def find_seat_conflicts(
    db: Session,
    seat_id: UUID,
    on_date: date,
    start_time: time,
    end_time: time,
    exclude_id: Optional[UUID] = None,
) -> List[Reservation]:
    query = active_reservations(db).filter(
        Reservation.seat_id == seat_id,
        Reservation.date == on_date,
    )
    return _overlapping(query, start_time, end_time, exclude_id)


def find_user_conflicts(
    db: Session,
    user_id: UUID,
    on_date: date,
    start_time: time,
    end_time: time,
    exclude_id: Optional[UUID] = None,
) -> List[Reservation]:
    query = active_reservations(db).filter(
        Reservation.user_id == user_id,
        Reservation.date == on_date,
    )
    return _overlapping(query, start_time, end_time, exclude_id)
