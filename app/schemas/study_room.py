from typing import Annotated, Dict, List, Optional
from pydantic import BaseModel, Field, UUID4, model_validator
from datetime import date, datetime, time

from app.models.study_room import StudyRoomStatus

# Opening hours are plain HH:MM strings
HHMM = Annotated[str, Field(pattern=r"^([01]\d|2[0-3]):[0-5]\d$")]


class StudyRoomBase(BaseModel):
    name: Annotated[str, Field(min_length=1, max_length=100)]
    location: Optional[str] = None
    capacity: Annotated[int, Field(gt=0)]
    description: Optional[str] = None
    open_time: HHMM = "08:00"
    close_time: HHMM
    max_advance_days: Annotated[int, Field(ge=0)] = 7
    image_url: Optional[str] = None

    @model_validator(mode="after")
    def check_hours(self):
        if self.open_time >= self.close_time:
            raise ValueError("open_time must be before close_time")
        return self


class StudyRoomCreate(StudyRoomBase):
    status: StudyRoomStatus = StudyRoomStatus.AVAILABLE


class StudyRoomUpdate(BaseModel):
    name: Optional[Annotated[str, Field(min_length=1, max_length=100)]] = None
    location: Optional[str] = None
    capacity: Optional[Annotated[int, Field(gt=0)]] = None
    description: Optional[str] = None
    open_time: Optional[HHMM] = None
    close_time: Optional[HHMM] = None
    max_advance_days: Optional[Annotated[int, Field(ge=0)]] = None
    image_url: Optional[str] = None


class StudyRoomStatusUpdate(BaseModel):
    status: StudyRoomStatus


class StudyRoom(BaseModel):
    id: UUID4
    name: str
    location: Optional[str] = None
    capacity: int
    description: Optional[str] = None
    open_time: str
    close_time: str
    max_advance_days: Optional[int] = None
    status: StudyRoomStatus
    image_url: Optional[str] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


# --- Time-range status views ---

class TimeRange(BaseModel):
    date: date
    start_time: time
    end_time: time


class RoomOccupancy(BaseModel):
    study_room_id: UUID4
    name: str
    date: date
    start_time: time
    end_time: time
    status: str  # EMPTY, FULL, AVAILABLE, CLOSED
    total_seats: int
    occupied_seats: int
    available_seats: int


class SeatOccupancy(BaseModel):
    seat_id: UUID4
    seat_number: str
    physical_status: str
    status: str  # OCCUPIED, AVAILABLE, UNAVAILABLE


class RoomSeatsStatus(BaseModel):
    study_room_id: UUID4
    date: date
    start_time: time
    end_time: time
    seats: List[SeatOccupancy]


class RoomDetail(BaseModel):
    room: StudyRoom
    physical_status: str
    status: str  # NO_AVAILABLE_SEATS, FULL, EMPTY, AVAILABLE
    date: date
    start_time: time
    end_time: time
    total_seats: int
    physically_available_seats: int
    occupied_seats: int
    seats: List[SeatOccupancy]


class FreeSlot(BaseModel):
    start_time: time
    end_time: time


class AvailableSlots(BaseModel):
    study_room_id: UUID4
    date: date
    open_time: str
    close_time: str
    total_seats: int
    available_seats: int
    seat_availability: Dict[str, List[FreeSlot]]  # seat_number -> free gaps
