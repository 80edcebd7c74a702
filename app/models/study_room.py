import uuid
import enum
from sqlalchemy import Column, String, DateTime, Integer, Text, Uuid, func, Enum as SAEnum
from sqlalchemy.orm import relationship
from app.db.session import Base


class StudyRoomStatus(str, enum.Enum):
    AVAILABLE = "AVAILABLE"
    UNAVAILABLE = "UNAVAILABLE"
    MAINTENANCE = "MAINTENANCE"


class StudyRoom(Base):
    __tablename__ = "study_rooms"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    name = Column(String(100), nullable=False)
    location = Column(String(255), nullable=True)
    capacity = Column(Integer, nullable=False)
    description = Column(Text, nullable=True)
    open_time = Column(String(5), nullable=False, default="08:00")  # HH:MM
    close_time = Column(String(5), nullable=False, default="22:00")  # HH:MM
    max_advance_days = Column(Integer, nullable=True, default=7)
    status = Column(SAEnum(StudyRoomStatus, native_enum=False), nullable=False, default=StudyRoomStatus.AVAILABLE)
    image_url = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    seats = relationship("Seat", back_populates="study_room", order_by="Seat.seat_number")
