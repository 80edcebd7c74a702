import uuid
import enum
from sqlalchemy import (
    Column, String, Boolean, Date, DateTime, Time, Text, ForeignKey, Uuid, func, Index, Enum as SAEnum,
)
from sqlalchemy.orm import relationship
from app.db.session import Base


class ReservationStatus(str, enum.Enum):
    PENDING = "PENDING"        # booked, waiting for check-in
    CONFIRMED = "PENDING"      # alias: a confirmed booking is a pending one
    CHECKED_IN = "CHECKED_IN"
    CANCELLED = "CANCELLED"
    NO_SHOW = "NO_SHOW"
    COMPLETED = "COMPLETED"

    @classmethod
    def _missing_(cls, value):
        # Accept member names (including the CONFIRMED alias) case-insensitively
        if isinstance(value, str):
            return cls.__members__.get(value.upper())
        return None


class Reservation(Base):
    __tablename__ = "reservations"
    __table_args__ = (
        Index("ix_reservations_seat_date", "seat_id", "date"),
        Index("ix_reservations_user_date", "user_id", "date"),
    )

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id = Column(Uuid, ForeignKey("users.id"), nullable=False, index=True)
    seat_id = Column(Uuid, ForeignKey("seats.id"), nullable=False, index=True)
    study_room_id = Column(Uuid, ForeignKey("study_rooms.id"), nullable=False, index=True)
    date = Column(Date, nullable=False, index=True)
    start_time = Column(Time, nullable=False)
    end_time = Column(Time, nullable=False)
    status = Column(
        SAEnum(ReservationStatus, native_enum=False, length=20),
        nullable=False,
        default=ReservationStatus.PENDING,
        index=True,
    )
    remarks = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    # Soft delete
    is_deleted = Column(Boolean, nullable=False, default=False, index=True)
    deleted_by = Column(Uuid, ForeignKey("admins.id"), nullable=True)
    deleted_at = Column(Date, nullable=True)

    # Admin status adjustment audit
    adjusted_by = Column(Uuid, ForeignKey("admins.id"), nullable=True)
    adjusted_at = Column(Date, nullable=True)

    user = relationship("User", back_populates="reservations")
    seat = relationship("Seat", back_populates="reservations")
    study_room = relationship("StudyRoom")
