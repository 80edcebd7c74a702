import uuid
from sqlalchemy import Column, String, Boolean, DateTime, Integer, Uuid, func
from sqlalchemy.orm import relationship
from app.db.session import Base


class User(Base):
    __tablename__ = "users"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    username = Column(String(50), unique=True, nullable=False, index=True)
    password_hash = Column(String(255), nullable=False)
    no_show_count = Column(Integer, nullable=True, default=0)
    is_blacklisted = Column(Boolean, nullable=False, default=False, index=True)
    blacklist_start_time = Column(DateTime, nullable=True)  # naive local time
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    reservations = relationship("Reservation", back_populates="user")
    feedback = relationship("Feedback", back_populates="user")
