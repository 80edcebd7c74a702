import logging
from datetime import date, time
from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from app.db.session import get_db
from app.api.deps import Principal, get_current_admin, get_current_principal
from app.models.admin import Admin
from app.models.seat import Seat, SeatStatus
from app.schemas.common import CountResponse, MessageResponse
from app.schemas.seat import (
    Seat as SeatSchema,
    SeatBatchCreate,
    SeatBatchCreateResponse,
    SeatCreate,
    SeatRealTimeStatus,
    SeatStatusUpdate,
    SeatTimeSlotStatus,
)
from app.services import availability
from app.services.cache import SeatStatusCache, get_cache

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/seats", tags=["Seats"])


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _number_taken(db: Session, room_id: UUID, seat_number: str) -> bool:
    return (
        db.query(Seat.id)
        .filter(Seat.study_room_id == room_id, Seat.seat_number == seat_number)
        .first()
        is not None
    )


# ---------------------------------------------------------------------------
# Reads
# ---------------------------------------------------------------------------


@router.get("/study-room/{room_id}", response_model=List[SeatSchema])
def list_room_seats(
    room_id: UUID,
    db: Session = Depends(get_db),
    cache: SeatStatusCache = Depends(get_cache),
    principal: Principal = Depends(get_current_principal),
):
    cached = cache.get_room_seats(room_id)
    if cached is not None:
        return cached

    room = availability.get_room(db, room_id)
    seats = db.query(Seat).filter(Seat.study_room_id == room.id).order_by(Seat.seat_number).all()
    data = [SeatSchema.model_validate(s).model_dump(mode="json") for s in seats]
    cache.set_room_seats(room_id, data)
    return data


@router.get("/{seat_id}", response_model=SeatSchema)
def get_seat(
    seat_id: UUID,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
):
    return availability.get_seat(db, seat_id)


@router.get("/{seat_id}/real-time-status", response_model=SeatRealTimeStatus)
def seat_real_time_status(
    seat_id: UUID,
    date: Optional[date] = Query(None, description="Defaults to today"),
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
):
    seat = availability.get_seat(db, seat_id)
    return availability.seat_real_time_status(db, seat, date)


@router.get("/{seat_id}/status-for-time-slot", response_model=SeatTimeSlotStatus)
def seat_time_slot_status(
    seat_id: UUID,
    date: date,
    start_time: time,
    end_time: time,
    db: Session = Depends(get_db),
    cache: SeatStatusCache = Depends(get_cache),
    principal: Principal = Depends(get_current_principal),
):
    if start_time >= end_time:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="start_time must be before end_time")

    cached = cache.get_seat_status(seat_id, date, start_time, end_time)
    if cached is not None:
        return cached

    seat = availability.get_seat(db, seat_id)
    result = availability.seat_time_slot_status(db, seat, date, start_time, end_time)
    cache.set_seat_status(seat_id, date, start_time, end_time, result.model_dump(mode="json"))
    return result


# ---------------------------------------------------------------------------
# Admin writes
# ---------------------------------------------------------------------------


@router.post("", response_model=SeatSchema, status_code=status.HTTP_201_CREATED)
def create_seat(
    data: SeatCreate,
    db: Session = Depends(get_db),
    cache: SeatStatusCache = Depends(get_cache),
    current_admin: Admin = Depends(get_current_admin),
):
    room = availability.get_room(db, data.study_room_id)
    if _number_taken(db, room.id, data.seat_number):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Seat number {data.seat_number} already exists in this study room",
        )
    seat = Seat(**data.model_dump())
    db.add(seat)
    db.commit()
    db.refresh(seat)
    cache.invalidate_room(room.id)
    return seat


@router.post("/batch/{room_id}", response_model=SeatBatchCreateResponse, status_code=status.HTTP_201_CREATED)
def batch_create_seats(
    room_id: UUID,
    data: SeatBatchCreate,
    db: Session = Depends(get_db),
    cache: SeatStatusCache = Depends(get_cache),
    current_admin: Admin = Depends(get_current_admin),
):
    """Create seats ``<prefix>1`` .. ``<prefix><count>``, skipping numbers already in use."""
    room = availability.get_room(db, room_id)
    existing = {n for (n,) in db.query(Seat.seat_number).filter(Seat.study_room_id == room.id).all()}

    skipped = []
    created = 0
    for i in range(1, data.count + 1):
        number = f"{data.prefix}{i}"
        if number in existing:
            skipped.append(number)
            continue
        db.add(Seat(study_room_id=room.id, seat_number=number, status=SeatStatus.AVAILABLE))
        created += 1

    db.commit()
    cache.invalidate_room(room.id)
    return SeatBatchCreateResponse(study_room_id=room.id, created_count=created, skipped=skipped)


@router.put("/{seat_id}/status", response_model=SeatSchema)
def update_seat_status(
    seat_id: UUID,
    data: SeatStatusUpdate,
    db: Session = Depends(get_db),
    cache: SeatStatusCache = Depends(get_cache),
    current_admin: Admin = Depends(get_current_admin),
):
    try:
        new_status = SeatStatus(data.status.upper())
    except ValueError:
        allowed = ", ".join(s.value for s in SeatStatus)
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Invalid seat status {data.status!r}, expected one of {allowed}",
        )

    seat = availability.get_seat(db, seat_id)
    seat.status = new_status
    db.commit()
    db.refresh(seat)
    cache.invalidate_seat(seat.id)
    cache.invalidate_room(seat.study_room_id)
    return seat


@router.delete("/{seat_id}", response_model=MessageResponse)
def delete_seat(
    seat_id: UUID,
    db: Session = Depends(get_db),
    cache: SeatStatusCache = Depends(get_cache),
    current_admin: Admin = Depends(get_current_admin),
):
    seat = availability.get_seat(db, seat_id)
    room_id = seat.study_room_id
    if seat.reservations:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Cannot delete a seat that has reservations",
        )
    db.delete(seat)
    db.commit()
    cache.invalidate_seat(seat_id)
    cache.invalidate_room(room_id)
    return MessageResponse(message="Seat deleted")


@router.delete("/study-room/{room_id}", response_model=CountResponse)
def delete_room_seats(
    room_id: UUID,
    db: Session = Depends(get_db),
    cache: SeatStatusCache = Depends(get_cache),
    current_admin: Admin = Depends(get_current_admin),
):
    room = availability.get_room(db, room_id)
    seats = db.query(Seat).filter(Seat.study_room_id == room.id).all()
    if any(seat.reservations for seat in seats):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Cannot delete seats that have reservations",
        )
    seat_ids = [seat.id for seat in seats]
    for seat in seats:
        db.delete(seat)
    db.commit()
    for seat_id in seat_ids:
        cache.invalidate_seat(seat_id)
    cache.invalidate_room(room.id)
    logger.info("Deleted %d seat(s) of study room %s.", len(seat_ids), room_id)
    return CountResponse(message=f"Deleted {len(seat_ids)} seat(s)", count=len(seat_ids))
