import uuid
import enum
from sqlalchemy import Column, String, DateTime, Text, ForeignKey, Uuid, func, Enum as SAEnum
from sqlalchemy.orm import relationship
from app.db.session import Base


class FeedbackStatus(str, enum.Enum):
    PENDING = "PENDING"
    PROCESSED = "PROCESSED"


class Feedback(Base):
    __tablename__ = "feedback"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id = Column(Uuid, ForeignKey("users.id"), nullable=False, index=True)
    content = Column(Text, nullable=False)
    type = Column(String(50), nullable=False)
    status = Column(SAEnum(FeedbackStatus, native_enum=False), nullable=False, default=FeedbackStatus.PENDING, index=True)
    response = Column(Text, nullable=True)
    processor_id = Column(Uuid, ForeignKey("admins.id"), nullable=True)
    processed_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    user = relationship("User", back_populates="feedback")
    processor = relationship("Admin")
