"""
Reservation lifecycle: booking, quick booking, check-in, cancel/complete and
the admin soft-delete / status adjustment paths.

Every mutating function validates fully before writing and commits once.
Overlap checks are check-then-act against the database; two concurrent
requests for the same slot can both pass validation.
"""
import logging
from datetime import datetime, timedelta
from typing import Optional
from uuid import UUID

from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.exceptions import (
    BusinessRuleError,
    CheckInTimeError,
    ReservationConflictError,
    ResourceNotFoundError,
    UnauthorizedError,
)
from app.models.reservation import Reservation, ReservationStatus
from app.models.seat import Seat, SeatStatus
from app.models.study_room import StudyRoom, StudyRoomStatus
from app.models.user import User
from app.schemas.reservation import (
    AdminReservation as AdminReservationSchema,
    AvailabilityCheck as AvailabilityCheckSchema,
    QuickReserveRequest,
    Reservation as ReservationSchema,
    ReservationCreate,
)
from app.services.blacklist import ensure_not_blacklisted
from app.services.cache import SeatStatusCache
from app.services.conflicts import active_reservations, find_seat_conflicts, find_user_conflicts
from app.utils.clock import local_now, parse_hhmm

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def serialize_reservation(reservation: Reservation) -> ReservationSchema:
    out = ReservationSchema.model_validate(reservation)
    out.username = reservation.user.username if reservation.user else None
    out.seat_number = reservation.seat.seat_number if reservation.seat else None
    out.study_room_name = reservation.study_room.name if reservation.study_room else None
    return out


def serialize_admin_reservation(reservation: Reservation) -> AdminReservationSchema:
    base = serialize_reservation(reservation)
    return AdminReservationSchema(
        **base.model_dump(),
        is_deleted=reservation.is_deleted,
        adjusted_by=reservation.adjusted_by,
        adjusted_at=reservation.adjusted_at,
    )


def get_reservation(db: Session, reservation_id: UUID) -> Reservation:
    reservation = (
        db.query(Reservation)
        .filter(Reservation.id == reservation_id, Reservation.is_deleted == False)  # noqa: E712
        .first()
    )
    if not reservation:
        raise ResourceNotFoundError("Reservation", reservation_id)
    return reservation


def within_opening_hours(room: StudyRoom, start_time, end_time) -> bool:
    return start_time >= parse_hhmm(room.open_time) and end_time <= parse_hhmm(room.close_time)


def _conflict_payload(reservation: Reservation) -> dict:
    return serialize_reservation(reservation).model_dump(mode="json")


def _invalidate(cache: Optional[SeatStatusCache], reservation: Reservation) -> None:
    if cache is None:
        return
    cache.invalidate_seat(reservation.seat_id)
    cache.invalidate_room(reservation.study_room_id)


# ---------------------------------------------------------------------------
# Booking
# ---------------------------------------------------------------------------


def create_reservation(
    db: Session,
    data: ReservationCreate,
    cache: Optional[SeatStatusCache] = None,
    now: Optional[datetime] = None,
) -> Reservation:
    """
    Validate and persist a booking. Checks run in a fixed order and the first
    failure wins:

      1. fields present and start < end
      2. user exists and is not blacklisted
      3. seat and room exist, seat belongs to room
      4. seat physical status is AVAILABLE
      5. interval inside the room's opening hours
      6. date within [today, today + BOOKING_HORIZON_DAYS]
      7. no overlapping active reservation on the seat
      8. no overlapping active reservation for the user
      9. user below the daily reservation limit
    """
    now = now or local_now()

    if data.user_id is None:
        raise BusinessRuleError("user_id is required")
    if data.start_time >= data.end_time:
        raise BusinessRuleError("start_time must be before end_time")

    user = db.query(User).filter(User.id == data.user_id).first()
    if not user:
        raise ResourceNotFoundError("User", data.user_id)
    ensure_not_blacklisted(user, now)

    seat = db.query(Seat).filter(Seat.id == data.seat_id).first()
    if not seat:
        raise ResourceNotFoundError("Seat", data.seat_id)
    room = db.query(StudyRoom).filter(StudyRoom.id == data.study_room_id).first()
    if not room:
        raise ResourceNotFoundError("Study room", data.study_room_id)
    if seat.study_room_id != room.id:
        raise BusinessRuleError("Seat does not belong to this study room")

    if seat.status != SeatStatus.AVAILABLE:
        raise BusinessRuleError(f"Seat is not available, physical status is {seat.status.value}")

    if not within_opening_hours(room, data.start_time, data.end_time):
        raise BusinessRuleError(
            f"Reservation must be within opening hours {room.open_time}-{room.close_time}"
        )

    today = now.date()
    if data.date < today:
        raise BusinessRuleError("Cannot reserve a past date")
    if data.date > today + timedelta(days=settings.BOOKING_HORIZON_DAYS):
        raise BusinessRuleError(
            f"Reservations can be made at most {settings.BOOKING_HORIZON_DAYS} days in advance"
        )

    seat_conflicts = find_seat_conflicts(db, seat.id, data.date, data.start_time, data.end_time)
    if seat_conflicts:
        raise ReservationConflictError(
            "Seat is already reserved for this time",
            conflict=_conflict_payload(seat_conflicts[0]),
        )

    user_conflicts = find_user_conflicts(db, user.id, data.date, data.start_time, data.end_time)
    if user_conflicts:
        raise ReservationConflictError(
            "You already have a reservation overlapping this time",
            conflict=_conflict_payload(user_conflicts[0]),
        )

    same_day = (
        active_reservations(db)
        .filter(Reservation.user_id == user.id, Reservation.date == data.date)
        .count()
    )
    if same_day >= settings.DAILY_RESERVATION_LIMIT:
        raise BusinessRuleError(
            f"At most {settings.DAILY_RESERVATION_LIMIT} reservations per day are allowed"
        )

    reservation = Reservation(
        user_id=user.id,
        seat_id=seat.id,
        study_room_id=room.id,
        date=data.date,
        start_time=data.start_time,
        end_time=data.end_time,
        remarks=data.remarks,
        status=ReservationStatus.CONFIRMED,
    )
    db.add(reservation)
    db.commit()
    db.refresh(reservation)
    _invalidate(cache, reservation)
    logger.info(
        "Reservation %s created: seat %s on %s %s-%s",
        reservation.id, seat.seat_number, data.date, data.start_time, data.end_time,
    )
    return reservation


def quick_reserve(
    db: Session,
    data: QuickReserveRequest,
    cache: Optional[SeatStatusCache] = None,
    now: Optional[datetime] = None,
) -> Reservation:
    """Book the first free seat in the first open room that covers the range."""
    if data.user_id is None:
        raise BusinessRuleError("user_id is required")
    if data.start_time > data.end_time:
        raise BusinessRuleError("start_time must not be after end_time")

    if find_user_conflicts(db, data.user_id, data.date, data.start_time, data.end_time):
        raise BusinessRuleError("You already have a reservation overlapping this time")

    rooms = (
        db.query(StudyRoom)
        .filter(StudyRoom.status == StudyRoomStatus.AVAILABLE)
        .order_by(StudyRoom.name)
        .all()
    )
    for room in rooms:
        if not within_opening_hours(room, data.start_time, data.end_time):
            continue
        seats = (
            db.query(Seat)
            .filter(Seat.study_room_id == room.id, Seat.status == SeatStatus.AVAILABLE)
            .order_by(Seat.seat_number)
            .all()
        )
        for seat in seats:
            if find_seat_conflicts(db, seat.id, data.date, data.start_time, data.end_time):
                continue
            return create_reservation(
                db,
                ReservationCreate(
                    user_id=data.user_id,
                    seat_id=seat.id,
                    study_room_id=room.id,
                    date=data.date,
                    start_time=data.start_time,
                    end_time=data.end_time,
                ),
                cache=cache,
                now=now,
            )

    raise BusinessRuleError("No seat is available for the requested time")


def check_seat_availability(
    db: Session,
    seat_id: UUID,
    on_date,
    start_time,
    end_time,
    now: Optional[datetime] = None,
) -> AvailabilityCheckSchema:
    """
    Whether a booking for this seat and range would be accepted. Opening
    hours, the booking window and the seat's physical status are checked
    before overlapping reservations.
    """
    now = now or local_now()
    if start_time >= end_time:
        raise BusinessRuleError("start_time must be before end_time")

    seat = db.query(Seat).filter(Seat.id == seat_id).first()
    if not seat:
        raise ResourceNotFoundError("Seat", seat_id)
    room = seat.study_room

    def result(available: bool, message: Optional[str] = None, conflicts=()) -> AvailabilityCheckSchema:
        return AvailabilityCheckSchema(
            seat_id=seat.id,
            date=on_date,
            start_time=start_time,
            end_time=end_time,
            available=available,
            message=message,
            conflicts=[serialize_reservation(r) for r in conflicts],
        )

    if not within_opening_hours(room, start_time, end_time):
        return result(False, f"Outside opening hours {room.open_time}-{room.close_time}")

    today = now.date()
    if on_date < today or on_date > today + timedelta(days=settings.BOOKING_HORIZON_DAYS):
        return result(
            False, f"Date must be within {settings.BOOKING_HORIZON_DAYS} days from today"
        )

    if seat.status != SeatStatus.AVAILABLE:
        return result(False, f"Seat is not available, physical status is {seat.status.value}")

    conflicts = find_seat_conflicts(db, seat.id, on_date, start_time, end_time)
    if conflicts:
        return result(False, "Seat is already reserved for this time", conflicts)
    return result(True)


# ---------------------------------------------------------------------------
# Status changes
# ---------------------------------------------------------------------------


def check_in(
    db: Session,
    reservation_id: UUID,
    user_id: UUID,
    now: Optional[datetime] = None,
) -> Reservation:
    now = now or local_now()

    reservation = get_reservation(db, reservation_id)
    if reservation.user_id != user_id:
        raise UnauthorizedError("You can only check in to your own reservation")

    ensure_not_blacklisted(reservation.user, now)

    if reservation.status != ReservationStatus.PENDING:
        raise BusinessRuleError(
            f"Cannot check in to a reservation with status {reservation.status.value}"
        )

    start = datetime.combine(reservation.date, reservation.start_time)
    end = datetime.combine(reservation.date, reservation.end_time)
    opens_at = start - timedelta(minutes=settings.CHECK_IN_WINDOW_MINUTES)
    if now < opens_at:
        raise CheckInTimeError(
            f"Check-in opens {settings.CHECK_IN_WINDOW_MINUTES} minutes before the start time",
            kind=CheckInTimeError.TOO_EARLY,
        )
    if now > end:
        raise CheckInTimeError("The reservation has already ended", kind=CheckInTimeError.TOO_LATE)

    reservation.status = ReservationStatus.CHECKED_IN
    db.commit()
    db.refresh(reservation)
    return reservation


def cancel_reservation(
    db: Session,
    reservation_id: UUID,
    cache: Optional[SeatStatusCache] = None,
) -> Reservation:
    reservation = get_reservation(db, reservation_id)
    if reservation.status != ReservationStatus.PENDING:
        raise BusinessRuleError(
            f"Only confirmed reservations can be cancelled, current status is {reservation.status.value}"
        )
    reservation.status = ReservationStatus.CANCELLED
    db.commit()
    db.refresh(reservation)
    _invalidate(cache, reservation)
    return reservation


def complete_reservation(db: Session, reservation_id: UUID) -> Reservation:
    reservation = get_reservation(db, reservation_id)
    if reservation.status not in (ReservationStatus.PENDING, ReservationStatus.CHECKED_IN):
        raise BusinessRuleError(
            f"Cannot complete a reservation with status {reservation.status.value}"
        )
    reservation.status = ReservationStatus.COMPLETED
    db.commit()
    db.refresh(reservation)
    return reservation


# ---------------------------------------------------------------------------
# Admin
# ---------------------------------------------------------------------------


def soft_delete_reservation(
    db: Session,
    reservation_id: UUID,
    admin_id: UUID,
    cache: Optional[SeatStatusCache] = None,
    now: Optional[datetime] = None,
) -> Reservation:
    reservation = get_reservation(db, reservation_id)
    if reservation.status == ReservationStatus.CHECKED_IN:
        raise BusinessRuleError("A checked-in reservation cannot be deleted")
    reservation.is_deleted = True
    reservation.deleted_by = admin_id
    reservation.deleted_at = (now or local_now()).date()
    db.commit()
    _invalidate(cache, reservation)
    return reservation


def adjust_status(
    db: Session,
    reservation_id: UUID,
    new_status: ReservationStatus,
    admin_id: UUID,
    now: Optional[datetime] = None,
) -> Reservation:
    """Admins may only correct a NO_SHOW into CHECKED_IN."""
    reservation = get_reservation(db, reservation_id)
    if reservation.status != ReservationStatus.NO_SHOW or new_status != ReservationStatus.CHECKED_IN:
        raise BusinessRuleError("Only NO_SHOW reservations can be adjusted, and only to CHECKED_IN")
    reservation.status = ReservationStatus.CHECKED_IN
    reservation.adjusted_by = admin_id
    reservation.adjusted_at = (now or local_now()).date()
    db.commit()
    db.refresh(reservation)
    return reservation
