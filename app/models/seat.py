import uuid
import enum
from sqlalchemy import Column, String, DateTime, ForeignKey, UniqueConstraint, Uuid, func, Enum as SAEnum
from sqlalchemy.orm import relationship
from app.db.session import Base


class SeatStatus(str, enum.Enum):
    """Physical status, set by admins independently of reservations."""
    AVAILABLE = "AVAILABLE"
    UNAVAILABLE = "UNAVAILABLE"
    RESERVED = "RESERVED"


class Seat(Base):
    __tablename__ = "seats"
    __table_args__ = (
        UniqueConstraint("study_room_id", "seat_number", name="uq_seat_room_number"),
    )

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    seat_number = Column(String(10), nullable=False)
    study_room_id = Column(Uuid, ForeignKey("study_rooms.id"), nullable=False, index=True)
    status = Column(SAEnum(SeatStatus, native_enum=False), nullable=False, default=SeatStatus.AVAILABLE)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    study_room = relationship("StudyRoom", back_populates="seats")
    reservations = relationship("Reservation", back_populates="seat")
