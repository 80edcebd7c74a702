from typing import List
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from app.db.session import get_db
from app.core.config import settings
from app.core.security import ROLE_ADMIN, create_access_token, get_password_hash, verify_password
from app.api.deps import get_current_admin
from app.models.admin import Admin
from app.models.user import User
from app.schemas.admin import Admin as AdminSchema, AdminCreate, AdminLoginResponse, AdminPasswordChange
from app.schemas.common import MessageResponse
from app.schemas.user import AdminPasswordReset, LoginRequest, User as UserSchema

router = APIRouter(prefix="/admins", tags=["Admins"])


@router.post("/register", response_model=AdminSchema, status_code=status.HTTP_201_CREATED)
def register(body: AdminCreate, db: Session = Depends(get_db)):
    if body.verification_code != settings.ADMIN_VERIFICATION_CODE:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Invalid verification code",
        )
    if db.query(Admin).filter(Admin.username == body.username).first():
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Username already exists",
        )
    admin = Admin(username=body.username, password_hash=get_password_hash(body.password))
    db.add(admin)
    db.commit()
    db.refresh(admin)
    return admin


@router.post("/login", response_model=AdminLoginResponse)
def login(body: LoginRequest, db: Session = Depends(get_db)):
    admin = db.query(Admin).filter(Admin.username == body.username).first()
    if not admin or not verify_password(body.password, admin.password_hash):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Incorrect username or password",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return AdminLoginResponse(
        admin_id=admin.id,
        username=admin.username,
        created_at=admin.created_at,
        token=create_access_token(subject=admin.username, user_id=str(admin.id), role=ROLE_ADMIN),
    )


@router.put("/change-password", response_model=MessageResponse)
def change_password(
    body: AdminPasswordChange,
    db: Session = Depends(get_db),
    current_admin: Admin = Depends(get_current_admin),
):
    if not verify_password(body.old_password, current_admin.password_hash):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Old password is incorrect")
    current_admin.password_hash = get_password_hash(body.new_password)
    db.commit()
    return MessageResponse(message="Password changed")


# ---------------------------------------------------------------------------
# User management
# ---------------------------------------------------------------------------


@router.get("/users", response_model=List[UserSchema])
def list_users(
    db: Session = Depends(get_db),
    current_admin: Admin = Depends(get_current_admin),
):
    return db.query(User).order_by(User.created_at.desc()).all()


@router.put("/users/change-password", response_model=MessageResponse)
def reset_user_password(
    body: AdminPasswordReset,
    db: Session = Depends(get_db),
    current_admin: Admin = Depends(get_current_admin),
):
    user = db.query(User).filter(User.id == body.user_id).first()
    if not user:
        raise HTTPException(status_code=404, detail="User not found")
    user.password_hash = get_password_hash(body.new_password)
    db.commit()
    return MessageResponse(message="Password changed")


@router.get("/{admin_id}", response_model=AdminSchema)
def get_admin(
    admin_id: UUID,
    db: Session = Depends(get_db),
    current_admin: Admin = Depends(get_current_admin),
):
    admin = db.query(Admin).filter(Admin.id == admin_id).first()
    if not admin:
        raise HTTPException(status_code=404, detail="Admin not found")
    return admin
