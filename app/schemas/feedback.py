from typing import Annotated, Optional
from pydantic import BaseModel, Field, UUID4
from datetime import datetime

from app.models.feedback import FeedbackStatus


class FeedbackCreate(BaseModel):
    content: Annotated[str, Field(min_length=1)]
    type: Annotated[str, Field(min_length=1, max_length=50)]


class FeedbackProcess(BaseModel):
    response: Annotated[str, Field(min_length=1)]


class Feedback(BaseModel):
    id: UUID4
    user_id: UUID4
    content: str
    type: str
    status: FeedbackStatus
    response: Optional[str] = None
    processor_id: Optional[UUID4] = None
    processed_at: Optional[datetime] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True
