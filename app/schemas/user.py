from typing import Annotated, Optional
from pydantic import BaseModel, Field, UUID4
from datetime import datetime


Username = Annotated[str, Field(min_length=3, max_length=50)]
NewPassword = Annotated[str, Field(min_length=8, max_length=20)]


# Properties to receive via API on creation (POST /users/register)
class UserCreate(BaseModel):
    username: Username
    password: Annotated[str, Field(min_length=1)]


class LoginRequest(BaseModel):
    username: str
    password: str


class User(BaseModel):
    id: UUID4
    username: str
    no_show_count: Optional[int] = None
    is_blacklisted: bool
    blacklist_start_time: Optional[datetime] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class LoginResponse(BaseModel):
    user_id: UUID4
    username: str
    created_at: Optional[datetime] = None
    token: str
    token_type: str = "bearer"


# PUT /users/change-password
class PasswordChange(BaseModel):
    user_id: UUID4
    old_password: str
    new_password: NewPassword


# PUT /admins/users/change-password
class AdminPasswordReset(BaseModel):
    user_id: UUID4
    new_password: NewPassword


# --- Blacklist ---

class BlacklistEntry(BaseModel):
    user_id: UUID4
    username: str
    blacklist_time: Optional[datetime] = None
    remaining_time: int  # milliseconds
    reason: str


class BlacklistStatus(BaseModel):
    user_id: UUID4
    is_blacklisted: bool
    no_show_count: int
    blacklist_start_time: Optional[datetime] = None
    blacklist_end_time: Optional[datetime] = None
    remaining_time: int  # milliseconds
