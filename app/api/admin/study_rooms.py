from datetime import date, time
from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, File, Query, UploadFile, status
from sqlalchemy.orm import Session

from app.db.session import get_db
from app.api.deps import get_current_admin
from app.models.admin import Admin
from app.schemas.common import CountResponse, MessageResponse
from app.schemas.seat import SeatRealTimeStatus, SeatTimeSlotStatus
from app.schemas.study_room import (
    AvailableSlots,
    StudyRoom as StudyRoomSchema,
    StudyRoomCreate,
    StudyRoomStatusUpdate,
    StudyRoomUpdate,
)
from app.models.seat import Seat
from app.models.study_room import StudyRoom
from app.services import availability, study_rooms
from app.services.cache import SeatStatusCache, get_cache
from app.utils.uploads import save_room_image

router = APIRouter(prefix="/admins/study-rooms", tags=["Admin - Study Rooms"])


@router.get("", response_model=List[StudyRoomSchema])
def list_study_rooms(
    db: Session = Depends(get_db),
    current_admin: Admin = Depends(get_current_admin),
):
    return db.query(StudyRoom).order_by(StudyRoom.name).all()


@router.post("", response_model=StudyRoomSchema, status_code=status.HTTP_201_CREATED)
def create_study_room(
    data: StudyRoomCreate,
    db: Session = Depends(get_db),
    current_admin: Admin = Depends(get_current_admin),
):
    """Create a room and its seats ``001`` .. ``capacity``."""
    return study_rooms.create_room(db, data)


@router.post("/clean-orphaned-seats", response_model=CountResponse)
def clean_orphaned_seats(
    db: Session = Depends(get_db),
    current_admin: Admin = Depends(get_current_admin),
):
    count = study_rooms.clean_orphaned_seats(db)
    return CountResponse(message=f"Removed {count} orphaned seat(s)", count=count)


@router.get("/{room_id}", response_model=StudyRoomSchema)
def get_study_room(
    room_id: UUID,
    db: Session = Depends(get_db),
    current_admin: Admin = Depends(get_current_admin),
):
    return availability.get_room(db, room_id)


@router.put("/{room_id}", response_model=StudyRoomSchema)
def update_study_room(
    room_id: UUID,
    data: StudyRoomUpdate,
    db: Session = Depends(get_db),
    cache: SeatStatusCache = Depends(get_cache),
    current_admin: Admin = Depends(get_current_admin),
):
    return study_rooms.update_room(db, room_id, data, cache=cache)


@router.put("/{room_id}/status", response_model=StudyRoomSchema)
def update_study_room_status(
    room_id: UUID,
    data: StudyRoomStatusUpdate,
    db: Session = Depends(get_db),
    current_admin: Admin = Depends(get_current_admin),
):
    room = availability.get_room(db, room_id)
    room.status = data.status
    db.commit()
    db.refresh(room)
    return room


@router.post("/{room_id}/upload-image", response_model=StudyRoomSchema)
def upload_study_room_image(
    room_id: UUID,
    file: UploadFile = File(...),
    db: Session = Depends(get_db),
    current_admin: Admin = Depends(get_current_admin),
):
    room = availability.get_room(db, room_id)
    room.image_url = save_room_image(file)
    db.commit()
    db.refresh(room)
    return room


@router.delete("/{room_id}", response_model=MessageResponse)
def delete_study_room(
    room_id: UUID,
    db: Session = Depends(get_db),
    cache: SeatStatusCache = Depends(get_cache),
    current_admin: Admin = Depends(get_current_admin),
):
    study_rooms.delete_room(db, room_id, cache=cache)
    return MessageResponse(message="Study room deleted")


# ---------------------------------------------------------------------------
# Seat views for a room
# ---------------------------------------------------------------------------


@router.get("/{room_id}/seats/real-time-status", response_model=List[SeatRealTimeStatus])
def room_seats_real_time_status(
    room_id: UUID,
    date: Optional[date] = Query(None, description="Defaults to today"),
    db: Session = Depends(get_db),
    current_admin: Admin = Depends(get_current_admin),
):
    room = availability.get_room(db, room_id)
    seats = db.query(Seat).filter(Seat.study_room_id == room.id).order_by(Seat.seat_number).all()
    return [availability.seat_real_time_status(db, seat, date) for seat in seats]


@router.get("/{room_id}/seats/status-for-time-slot", response_model=List[SeatTimeSlotStatus])
def room_seats_time_slot_status(
    room_id: UUID,
    date: date,
    start_time: time,
    end_time: time,
    db: Session = Depends(get_db),
    current_admin: Admin = Depends(get_current_admin),
):
    on_date, start_time, end_time = availability.resolve_range(date, start_time, end_time)
    room = availability.get_room(db, room_id)
    seats = db.query(Seat).filter(Seat.study_room_id == room.id).order_by(Seat.seat_number).all()
    return [availability.seat_time_slot_status(db, seat, on_date, start_time, end_time) for seat in seats]


@router.get("/{room_id}/available-slots", response_model=AvailableSlots)
def room_available_slots(
    room_id: UUID,
    date: date,
    db: Session = Depends(get_db),
    current_admin: Admin = Depends(get_current_admin),
):
    return availability.available_slots(db, room_id, date)
