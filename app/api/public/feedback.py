from typing import List
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from app.db.session import get_db
from app.api.deps import Principal, ensure_self_or_admin, get_current_principal, get_current_user
from app.models.feedback import Feedback, FeedbackStatus
from app.models.user import User
from app.schemas.feedback import Feedback as FeedbackSchema, FeedbackCreate

router = APIRouter(prefix="/feedback", tags=["Feedback"])


@router.post("", response_model=FeedbackSchema, status_code=status.HTTP_201_CREATED)
def submit_feedback(
    data: FeedbackCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    feedback = Feedback(
        user_id=current_user.id,
        content=data.content,
        type=data.type,
        status=FeedbackStatus.PENDING,
    )
    db.add(feedback)
    db.commit()
    db.refresh(feedback)
    return feedback


@router.get("", response_model=List[FeedbackSchema])
def list_my_feedback(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return (
        db.query(Feedback)
        .filter(Feedback.user_id == current_user.id)
        .order_by(Feedback.created_at.desc())
        .all()
    )


@router.get("/{feedback_id}", response_model=FeedbackSchema)
def get_feedback(
    feedback_id: UUID,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
):
    feedback = db.query(Feedback).filter(Feedback.id == feedback_id).first()
    if not feedback:
        raise HTTPException(status_code=404, detail="Feedback not found")
    ensure_self_or_admin(principal, feedback.user_id)
    return feedback
