from typing import List
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from app.db.session import get_db
from app.core.security import ROLE_USER, create_access_token, get_password_hash, verify_password
from app.api.deps import Principal, ensure_self_or_admin, get_current_admin, get_current_principal, get_current_user
from app.models.admin import Admin
from app.models.user import User
from app.schemas.common import MessageResponse
from app.schemas.user import (
    BlacklistEntry,
    BlacklistStatus,
    LoginRequest,
    LoginResponse,
    PasswordChange,
    User as UserSchema,
    UserCreate,
)
from app.services import blacklist as blacklist_service

router = APIRouter(prefix="/users", tags=["Users"])


@router.post("/register", response_model=UserSchema, status_code=status.HTTP_201_CREATED)
def register(body: UserCreate, db: Session = Depends(get_db)):
    if db.query(User).filter(User.username == body.username).first():
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Username already exists",
        )
    user = User(
        username=body.username,
        password_hash=get_password_hash(body.password),
        no_show_count=0,
        is_blacklisted=False,
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


@router.post("/login", response_model=LoginResponse)
def login(body: LoginRequest, db: Session = Depends(get_db)):
    user = db.query(User).filter(User.username == body.username).first()
    if not user or not verify_password(body.password, user.password_hash):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Incorrect username or password",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return LoginResponse(
        user_id=user.id,
        username=user.username,
        created_at=user.created_at,
        token=create_access_token(subject=user.username, user_id=str(user.id), role=ROLE_USER),
    )


@router.put("/change-password", response_model=MessageResponse)
def change_password(
    body: PasswordChange,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    if body.user_id != current_user.id:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="You can only change your own password")
    if not verify_password(body.old_password, current_user.password_hash):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Old password is incorrect")
    current_user.password_hash = get_password_hash(body.new_password)
    db.commit()
    return MessageResponse(message="Password changed")


# ---------------------------------------------------------------------------
# Blacklist (admin)
# ---------------------------------------------------------------------------


@router.get("/blacklist", response_model=List[BlacklistEntry])
def list_blacklist(
    db: Session = Depends(get_db),
    current_admin: Admin = Depends(get_current_admin),
):
    return blacklist_service.list_blacklisted(db)


@router.post("/blacklist/{user_id}", response_model=UserSchema)
def add_to_blacklist(
    user_id: UUID,
    db: Session = Depends(get_db),
    current_admin: Admin = Depends(get_current_admin),
):
    return blacklist_service.add_to_blacklist(db, user_id)


@router.delete("/blacklist/{user_id}", response_model=UserSchema)
def remove_from_blacklist(
    user_id: UUID,
    db: Session = Depends(get_db),
    current_admin: Admin = Depends(get_current_admin),
):
    return blacklist_service.remove_from_blacklist(db, user_id)


# ---------------------------------------------------------------------------
# Profile
# ---------------------------------------------------------------------------


@router.get("/{user_id}", response_model=UserSchema)
def get_user(
    user_id: UUID,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
):
    ensure_self_or_admin(principal, user_id)
    user = db.query(User).filter(User.id == user_id).first()
    if not user:
        raise HTTPException(status_code=404, detail="User not found")
    return user


@router.get("/{user_id}/blacklist-status", response_model=BlacklistStatus)
def get_blacklist_status(
    user_id: UUID,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
):
    ensure_self_or_admin(principal, user_id)
    return blacklist_service.blacklist_status(db, user_id)
