from typing import Annotated, List, Optional
from pydantic import BaseModel, Field, UUID4
from datetime import date, datetime, time

from app.models.seat import SeatStatus


class SeatCreate(BaseModel):
    study_room_id: UUID4
    seat_number: Annotated[str, Field(min_length=1, max_length=10)]
    status: SeatStatus = SeatStatus.AVAILABLE


# POST /seats/batch/{room_id}
class SeatBatchCreate(BaseModel):
    count: Annotated[int, Field(gt=0, le=500)]
    prefix: Annotated[str, Field(max_length=6)] = ""


class SeatBatchCreateResponse(BaseModel):
    study_room_id: UUID4
    created_count: int
    skipped: List[str]


class SeatStatusUpdate(BaseModel):
    # Validated in the handler so a bad value reports the allowed set
    status: str


class Seat(BaseModel):
    id: UUID4
    seat_number: str
    study_room_id: UUID4
    status: SeatStatus
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class ReservedSlot(BaseModel):
    reservation_id: UUID4
    start_time: time
    end_time: time
    status: str


class SeatRealTimeStatus(BaseModel):
    seat_id: UUID4
    seat_number: str
    date: date
    physical_status: SeatStatus
    status: str  # UNAVAILABLE, CLOSED, OCCUPIED, AVAILABLE
    current_reservation: Optional[ReservedSlot] = None
    reserved_slots: List[ReservedSlot]


class SeatTimeSlotStatus(BaseModel):
    seat_id: UUID4
    seat_number: str
    date: date
    start_time: time
    end_time: time
    physical_status: SeatStatus
    status: str  # UNAVAILABLE, CLOSED, RESERVED, AVAILABLE
    conflicts: List[ReservedSlot]
