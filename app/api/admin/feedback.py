from datetime import datetime, timezone
from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from app.db.session import get_db
from app.api.deps import get_current_admin
from app.models.admin import Admin
from app.models.feedback import Feedback, FeedbackStatus
from app.schemas.feedback import Feedback as FeedbackSchema, FeedbackProcess

router = APIRouter(prefix="/admin/feedback", tags=["Admin - Feedback"])


@router.get("", response_model=List[FeedbackSchema])
def list_all_feedback(
    status: Optional[FeedbackStatus] = Query(None, description="PENDING or PROCESSED"),
    db: Session = Depends(get_db),
    current_admin: Admin = Depends(get_current_admin),
):
    query = db.query(Feedback)
    if status:
        query = query.filter(Feedback.status == status)
    return query.order_by(Feedback.created_at.desc()).all()


@router.put("/{feedback_id}/process", response_model=FeedbackSchema)
def process_feedback(
    feedback_id: UUID,
    data: FeedbackProcess,
    db: Session = Depends(get_db),
    current_admin: Admin = Depends(get_current_admin),
):
    feedback = db.query(Feedback).filter(Feedback.id == feedback_id).first()
    if not feedback:
        raise HTTPException(status_code=404, detail="Feedback not found")

    feedback.status = FeedbackStatus.PROCESSED
    feedback.response = data.response
    feedback.processor_id = current_admin.id
    feedback.processed_at = datetime.now(timezone.utc)
    db.commit()
    db.refresh(feedback)
    return feedback
