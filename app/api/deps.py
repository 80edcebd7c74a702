from dataclasses import dataclass
from typing import Any, Dict, Optional
from uuid import UUID

from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.security import ROLE_ADMIN, ROLE_USER, decode_token
from app.db.session import get_db
from app.models.admin import Admin
from app.models.user import User

oauth2_scheme = OAuth2PasswordBearer(tokenUrl=f"{settings.API_PREFIX}/users/login")


@dataclass
class Principal:
    id: UUID
    username: str
    role: str

    @property
    def is_admin(self) -> bool:
        return self.role == ROLE_ADMIN


def _credentials_error() -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )


def get_token_payload(token: str = Depends(oauth2_scheme)) -> Dict[str, Any]:
    payload = decode_token(token)
    if payload is None:
        raise _credentials_error()
    return payload


def _payload_id(payload: Dict[str, Any]) -> UUID:
    try:
        return UUID(payload["userId"])
    except ValueError:
        raise _credentials_error()


def get_current_principal(
    payload: Dict[str, Any] = Depends(get_token_payload),
    db: Session = Depends(get_db),
) -> Principal:
    """Any authenticated caller, user or admin."""
    principal_id = _payload_id(payload)
    role = payload["role"]
    model = Admin if role == ROLE_ADMIN else User
    account: Optional[Any] = db.query(model).filter(model.id == principal_id).first()
    if account is None or role not in (ROLE_USER, ROLE_ADMIN):
        raise _credentials_error()
    return Principal(id=account.id, username=account.username, role=role)


def get_current_user(
    payload: Dict[str, Any] = Depends(get_token_payload),
    db: Session = Depends(get_db),
) -> User:
    if payload["role"] != ROLE_USER:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="User account required")
    user = db.query(User).filter(User.id == _payload_id(payload)).first()
    if not user:
        raise _credentials_error()
    return user


def get_current_admin(
    payload: Dict[str, Any] = Depends(get_token_payload),
    db: Session = Depends(get_db),
) -> Admin:
    if payload["role"] != ROLE_ADMIN:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Admin privileges required")
    admin = db.query(Admin).filter(Admin.id == _payload_id(payload)).first()
    if not admin:
        raise _credentials_error()
    return admin


def ensure_self_or_admin(principal: Principal, user_id: UUID) -> None:
    if not principal.is_admin and principal.id != user_id:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Not allowed to access another user's data")
