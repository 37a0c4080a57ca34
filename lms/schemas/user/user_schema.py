from pydantic import BaseModel, EmailStr, Field, field_validator
from typing import Optional
from datetime import datetime

from lms.models.user.user_model import UserRole


class UserBase(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    email: EmailStr


# Body of POST /users/register.
class UserCreate(UserBase):
    password: str = Field(..., min_length=6)
    role: UserRole = UserRole.STUDENT

    @field_validator("role")
    @classmethod
    def _reject_admin_self_registration(cls, value: UserRole) -> UserRole:
        if value == UserRole.ADMIN:
            raise ValueError("admin_registration_not_allowed")
        return value


# Body of PUT /users/me; omitted fields keep their value.
class UserUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=100)
    email: Optional[EmailStr] = None
    password: Optional[str] = Field(default=None, min_length=6)


class LoginRequest(BaseModel):
    email: EmailStr
    password: str


class Token(BaseModel):
    access_token: str
    token_type: str = "bearer"


# No password hash in API responses.
class User(UserBase):
    id: int
    role: UserRole
    is_active: bool
    created_at: Optional[datetime] = None
    last_login_at: Optional[datetime] = None

    class Config:
        from_attributes = True
