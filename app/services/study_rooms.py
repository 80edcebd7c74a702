import logging
from typing import List, Optional
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.exceptions import BusinessRuleError
from app.models.reservation import Reservation
from app.models.seat import Seat, SeatStatus
from app.models.study_room import StudyRoom
from app.schemas.study_room import StudyRoomCreate, StudyRoomUpdate
from app.services.availability import get_room
from app.services.cache import SeatStatusCache
from app.utils.clock import parse_hhmm

logger = logging.getLogger(__name__)


def seat_number_for(index: int) -> str:
    """Seat numbers generated for a room's capacity: 001, 002, ..."""
    return f"{index:03d}"


def _has_reservations(db: Session, seat_ids: List[UUID]) -> bool:
    if not seat_ids:
        return False
    return db.query(Reservation.id).filter(Reservation.seat_id.in_(seat_ids)).first() is not None


def _add_missing_seats(db: Session, room: StudyRoom, capacity: int) -> int:
    existing = {
        number for (number,) in db.query(Seat.seat_number).filter(Seat.study_room_id == room.id).all()
    }
    added = 0
    for i in range(1, capacity + 1):
        number = seat_number_for(i)
        if number in existing:
            continue
        db.add(Seat(study_room_id=room.id, seat_number=number, status=SeatStatus.AVAILABLE))
        added += 1
    return added


def _surplus_seats(db: Session, room: StudyRoom, capacity: int) -> List[Seat]:
    """Seats with a purely numeric number above the new capacity."""
    seats = db.query(Seat).filter(Seat.study_room_id == room.id).all()
    return [s for s in seats if s.seat_number.isdigit() and int(s.seat_number) > capacity]


def create_room(db: Session, data: StudyRoomCreate) -> StudyRoom:
    values = data.model_dump()
    if not values.get("image_url"):
        values["image_url"] = settings.DEFAULT_ROOM_IMAGE_URL
    room = StudyRoom(**values)
    db.add(room)
    db.flush()
    _add_missing_seats(db, room, room.capacity)
    db.commit()
    db.refresh(room)
    logger.info("Study room %s created with %d seats.", room.name, room.capacity)
    return room


def update_room(
    db: Session,
    room_id: UUID,
    data: StudyRoomUpdate,
    cache: Optional[SeatStatusCache] = None,
) -> StudyRoom:
    """
    Partial update. A capacity change adds the missing numbered seats when
    growing and deletes the seats numbered above the new capacity when
    shrinking; a shrink that would drop a seat with reservations is rejected.
    """
    room = get_room(db, room_id)
    changes = data.model_dump(exclude_unset=True)

    open_time = changes.get("open_time") or room.open_time
    close_time = changes.get("close_time") or room.close_time
    if parse_hhmm(open_time) >= parse_hhmm(close_time):
        raise BusinessRuleError("open_time must be before close_time")

    new_capacity = changes.get("capacity")
    removed: List[Seat] = []
    if new_capacity is not None and new_capacity != room.capacity:
        if new_capacity > room.capacity:
            _add_missing_seats(db, room, new_capacity)
        else:
            removed = _surplus_seats(db, room, new_capacity)
            if _has_reservations(db, [s.id for s in removed]):
                raise BusinessRuleError(
                    "Cannot reduce capacity: some of the removed seats have reservations"
                )
            for seat in removed:
                db.delete(seat)

    for field, value in changes.items():
        setattr(room, field, value)

    db.commit()
    db.refresh(room)

    if cache is not None:
        if new_capacity is not None:
            cache.invalidate_room(room.id)
            for seat in removed:
                cache.invalidate_seat(seat.id)
        # cached seat statuses include the CLOSED check
        if "open_time" in changes or "close_time" in changes:
            for (seat_id,) in db.query(Seat.id).filter(Seat.study_room_id == room.id).all():
                cache.invalidate_seat(seat_id)
    return room


def delete_room(db: Session, room_id: UUID, cache: Optional[SeatStatusCache] = None) -> None:
    room = get_room(db, room_id)
    seat_ids = [s.id for s in db.query(Seat).filter(Seat.study_room_id == room.id).all()]
    if _has_reservations(db, seat_ids):
        raise BusinessRuleError("Cannot delete a study room whose seats have reservations")
    db.query(Seat).filter(Seat.study_room_id == room.id).delete(synchronize_session="fetch")
    db.delete(room)
    db.commit()
    if cache is not None:
        cache.invalidate_room(room_id)
        for seat_id in seat_ids:
            cache.invalidate_seat(seat_id)


def clean_orphaned_seats(db: Session) -> int:
    """Delete seats whose study room no longer exists. Returns the count."""
    room_ids = select(StudyRoom.id)
    orphans = db.query(Seat).filter(~Seat.study_room_id.in_(room_ids)).all()
    if not orphans:
        return 0
    for seat in orphans:
        db.delete(seat)
    db.commit()
    logger.info("Removed %d orphaned seat(s).", len(orphans))
    return len(orphans)
