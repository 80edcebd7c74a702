from datetime import date, datetime, time, timedelta
from typing import Dict, Iterable, List, Optional, Set, Tuple
from uuid import UUID

from sqlalchemy.orm import Session

from app.core.exceptions import BusinessRuleError, ResourceNotFoundError
from app.models.reservation import Reservation
from app.models.seat import Seat, SeatStatus
from app.models.study_room import StudyRoom, StudyRoomStatus
from app.schemas.seat import ReservedSlot, SeatRealTimeStatus, SeatTimeSlotStatus
from app.schemas.study_room import (
    AvailableSlots,
    FreeSlot,
    RoomDetail,
    RoomOccupancy,
    RoomSeatsStatus,
    SeatOccupancy,
    StudyRoom as StudyRoomSchema,
)
from app.services.conflicts import active_reservations, find_seat_conflicts
from app.services.reservations import within_opening_hours
from app.utils.clock import local_now, parse_hhmm


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def get_room(db: Session, room_id: UUID) -> StudyRoom:
    room = db.query(StudyRoom).filter(StudyRoom.id == room_id).first()
    if not room:
        raise ResourceNotFoundError("Study room", room_id)
    return room


def get_seat(db: Session, seat_id: UUID) -> Seat:
    seat = db.query(Seat).filter(Seat.id == seat_id).first()
    if not seat:
        raise ResourceNotFoundError("Seat", seat_id)
    return seat


def default_range(now: Optional[datetime] = None) -> Tuple[date, time, time]:
    """The current clock hour: [HH:00, HH+1:00), capped at midnight."""
    now = now or local_now()
    start = now.replace(minute=0, second=0, microsecond=0)
    end = start + timedelta(hours=1)
    end_time = end.time() if end.date() == start.date() else time(23, 59)
    return start.date(), start.time(), end_time


def resolve_range(
    on_date: Optional[date],
    start_time: Optional[time],
    end_time: Optional[time],
    now: Optional[datetime] = None,
) -> Tuple[date, time, time]:
    default_date, default_start, default_end = default_range(now)
    on_date = on_date or default_date
    start_time = start_time or default_start
    end_time = end_time or default_end
    if start_time >= end_time:
        raise BusinessRuleError("start_time must be before end_time")
    return on_date, start_time, end_time


def free_intervals(open_time: time, close_time: time, busy: Iterable[Tuple[time, time]]) -> List[Tuple[time, time]]:
    """Gaps inside [open_time, close_time) not covered by any busy interval."""
    gaps = []
    cursor = open_time
    for start, end in sorted(busy):
        if end <= cursor:
            continue
        if start >= close_time:
            break
        if start > cursor:
            gaps.append((cursor, start))
        cursor = max(cursor, end)
    if cursor < close_time:
        gaps.append((cursor, close_time))
    return gaps


def _reservations_on(db: Session, room_id: UUID, on_date: date) -> List[Reservation]:
    return (
        active_reservations(db)
        .filter(Reservation.study_room_id == room_id, Reservation.date == on_date)
        .order_by(Reservation.start_time)
        .all()
    )


def _occupied_seat_ids(db: Session, room_id: UUID, on_date: date, start_time: time, end_time: time) -> Set[UUID]:
    rows = (
        active_reservations(db)
        .with_entities(Reservation.seat_id)
        .filter(
            Reservation.study_room_id == room_id,
            Reservation.date == on_date,
            Reservation.start_time < end_time,
            Reservation.end_time > start_time,
        )
        .distinct()
        .all()
    )
    return {row[0] for row in rows}


def _slot(reservation: Reservation) -> ReservedSlot:
    return ReservedSlot(
        reservation_id=reservation.id,
        start_time=reservation.start_time,
        end_time=reservation.end_time,
        status=reservation.status.value,
    )


def _seat_occupancy(seats: List[Seat], occupied: Set[UUID]) -> List[SeatOccupancy]:
    out = []
    for seat in seats:
        if seat.status != SeatStatus.AVAILABLE:
            state = "UNAVAILABLE"
        elif seat.id in occupied:
            state = "OCCUPIED"
        else:
            state = "AVAILABLE"
        out.append(SeatOccupancy(
            seat_id=seat.id,
            seat_number=seat.seat_number,
            physical_status=seat.status.value,
            status=state,
        ))
    return out


def _room_seats(db: Session, room_id: UUID) -> List[Seat]:
    return db.query(Seat).filter(Seat.study_room_id == room_id).order_by(Seat.seat_number).all()


# ---------------------------------------------------------------------------
# Room views
# ---------------------------------------------------------------------------


def room_occupancy(db: Session, room: StudyRoom, on_date: date, start_time: time, end_time: time) -> RoomOccupancy:
    total = db.query(Seat).filter(Seat.study_room_id == room.id).count()
    occupied = len(_occupied_seat_ids(db, room.id, on_date, start_time, end_time))
    if occupied == 0:
        state = "EMPTY"
    elif occupied >= total:
        state = "FULL"
    else:
        state = "AVAILABLE"
    return RoomOccupancy(
        study_room_id=room.id,
        name=room.name,
        date=on_date,
        start_time=start_time,
        end_time=end_time,
        status=state,
        total_seats=total,
        occupied_seats=occupied,
        available_seats=max(0, total - occupied),
    )


def all_rooms_status(db: Session, on_date: date, start_time: time, end_time: time) -> List[RoomOccupancy]:
    out = []
    for room in db.query(StudyRoom).order_by(StudyRoom.name).all():
        occupancy = room_occupancy(db, room, on_date, start_time, end_time)
        if not within_opening_hours(room, start_time, end_time):
            occupancy.status = "CLOSED"
        elif occupancy.status == "EMPTY":
            occupancy.status = "AVAILABLE"
        out.append(occupancy)
    return out


def room_seats_status(db: Session, room: StudyRoom, on_date: date, start_time: time, end_time: time) -> RoomSeatsStatus:
    occupied = _occupied_seat_ids(db, room.id, on_date, start_time, end_time)
    return RoomSeatsStatus(
        study_room_id=room.id,
        date=on_date,
        start_time=start_time,
        end_time=end_time,
        seats=_seat_occupancy(_room_seats(db, room.id), occupied),
    )


def room_detail(db: Session, room: StudyRoom, on_date: date, start_time: time, end_time: time) -> RoomDetail:
    seats = _room_seats(db, room.id)
    occupied = _occupied_seat_ids(db, room.id, on_date, start_time, end_time)
    usable = [s for s in seats if s.status == SeatStatus.AVAILABLE]
    occupied_usable = sum(1 for s in usable if s.id in occupied)

    if not usable:
        state = "NO_AVAILABLE_SEATS"
    elif occupied_usable >= len(usable):
        state = "FULL"
    elif occupied_usable == 0:
        state = "EMPTY"
    else:
        state = "AVAILABLE"

    return RoomDetail(
        room=StudyRoomSchema.model_validate(room),
        physical_status=room.status.value,
        status=state,
        date=on_date,
        start_time=start_time,
        end_time=end_time,
        total_seats=len(seats),
        physically_available_seats=len(usable),
        occupied_seats=len(occupied),
        seats=_seat_occupancy(seats, occupied),
    )


def available_slots(db: Session, room_id: UUID, on_date: date, now: Optional[datetime] = None) -> AvailableSlots:
    """
    Free time gaps per bookable seat for one day. The date must fall inside the
    room's own ``max_advance_days`` window.
    """
    now = now or local_now()
    room = get_room(db, room_id)
    if room.status != StudyRoomStatus.AVAILABLE:
        raise BusinessRuleError(f"Study room is not open for reservations ({room.status.value})")

    today = now.date()
    max_days = room.max_advance_days if room.max_advance_days is not None else 7
    if on_date < today or on_date > today + timedelta(days=max_days):
        raise BusinessRuleError(f"Date must be within {max_days} days from today")

    open_time = parse_hhmm(room.open_time)
    close_time = parse_hhmm(room.close_time)

    busy_by_seat: Dict[UUID, List[Tuple[time, time]]] = {}
    for r in _reservations_on(db, room.id, on_date):
        busy_by_seat.setdefault(r.seat_id, []).append((r.start_time, r.end_time))

    seats = _room_seats(db, room.id)
    usable = [s for s in seats if s.status == SeatStatus.AVAILABLE]
    seat_availability = {}
    for seat in usable:
        gaps = free_intervals(open_time, close_time, busy_by_seat.get(seat.id, []))
        seat_availability[seat.seat_number] = [FreeSlot(start_time=s, end_time=e) for s, e in gaps]

    return AvailableSlots(
        study_room_id=room.id,
        date=on_date,
        open_time=room.open_time,
        close_time=room.close_time,
        total_seats=len(seats),
        available_seats=sum(1 for gaps in seat_availability.values() if gaps),
        seat_availability=seat_availability,
    )


# ---------------------------------------------------------------------------
# Seat views
# ---------------------------------------------------------------------------


def seat_real_time_status(db: Session, seat: Seat, on_date: Optional[date] = None, now: Optional[datetime] = None) -> SeatRealTimeStatus:
    now = now or local_now()
    on_date = on_date or now.date()
    reservations = (
        active_reservations(db)
        .filter(Reservation.seat_id == seat.id, Reservation.date == on_date)
        .order_by(Reservation.start_time)
        .all()
    )
    slots = [_slot(r) for r in reservations]

    current = None
    if seat.status != SeatStatus.AVAILABLE:
        state = "UNAVAILABLE"
    elif on_date == now.date() and not (
        parse_hhmm(seat.study_room.open_time) <= now.time() < parse_hhmm(seat.study_room.close_time)
    ):
        state = "CLOSED"
    else:
        state = "AVAILABLE"
        if on_date == now.date():
            for r, slot in zip(reservations, slots):
                if r.start_time <= now.time() < r.end_time:
                    current = slot
                    state = "OCCUPIED"
                    break

    return SeatRealTimeStatus(
        seat_id=seat.id,
        seat_number=seat.seat_number,
        date=on_date,
        physical_status=seat.status,
        status=state,
        current_reservation=current,
        reserved_slots=slots,
    )


def seat_time_slot_status(db: Session, seat: Seat, on_date: date, start_time: time, end_time: time) -> SeatTimeSlotStatus:
    conflicts = []
    if seat.status != SeatStatus.AVAILABLE:
        state = "UNAVAILABLE"
    elif not within_opening_hours(seat.study_room, start_time, end_time):
        state = "CLOSED"
    else:
        conflicts = find_seat_conflicts(db, seat.id, on_date, start_time, end_time)
        state = "RESERVED" if conflicts else "AVAILABLE"

    return SeatTimeSlotStatus(
        seat_id=seat.id,
        seat_number=seat.seat_number,
        date=on_date,
        start_time=start_time,
        end_time=end_time,
        physical_status=seat.status,
        status=state,
        conflicts=[_slot(r) for r in conflicts],
    )
