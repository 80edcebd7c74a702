from typing import List, Optional
from pydantic import BaseModel, UUID4
from datetime import date, datetime, time

from app.models.reservation import ReservationStatus


# Reservation: Create (POST /reservations)
class ReservationCreate(BaseModel):
    user_id: Optional[UUID4] = None  # defaults to the caller
    seat_id: UUID4
    study_room_id: UUID4
    date: date
    start_time: time
    end_time: time
    remarks: Optional[str] = None


# POST /reservations/quick-reserve
class QuickReserveRequest(BaseModel):
    user_id: Optional[UUID4] = None
    date: date
    start_time: time
    end_time: time


class Reservation(BaseModel):
    id: UUID4
    user_id: UUID4
    seat_id: UUID4
    study_room_id: UUID4
    date: date
    start_time: time
    end_time: time
    status: ReservationStatus
    remarks: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    # Joined display fields
    username: Optional[str] = None
    seat_number: Optional[str] = None
    study_room_name: Optional[str] = None

    class Config:
        from_attributes = True


class AdminReservation(Reservation):
    is_deleted: bool = False
    adjusted_by: Optional[UUID4] = None
    adjusted_at: Optional[date] = None


class StatusAdjust(BaseModel):
    status: str


class CheckInResponse(BaseModel):
    message: str
    reservation: Reservation


class AvailabilityCheck(BaseModel):
    seat_id: UUID4
    date: date
    start_time: time
    end_time: time
    available: bool
    message: Optional[str] = None
    conflicts: List[Reservation]
