from typing import Optional
from pydantic import BaseModel, UUID4
from datetime import datetime

from app.schemas.user import Username, NewPassword


# POST /admins/register
class AdminCreate(BaseModel):
    username: Username
    password: NewPassword
    verification_code: str


class Admin(BaseModel):
    id: UUID4
    username: str
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class AdminLoginResponse(BaseModel):
    admin_id: UUID4
    username: str
    created_at: Optional[datetime] = None
    token: str
    token_type: str = "bearer"


class AdminPasswordChange(BaseModel):
    old_password: str
    new_password: NewPassword
