from datetime import datetime
from typing import Optional

from pydantic import BaseModel, EmailStr, Field, field_validator

from app.core.enums import UserRole


class UserCreate(BaseModel):
    email: EmailStr
    password: str = Field(min_length=8, max_length=72)
    name: str | None = None
    phone: str | None = None


class TutorCreate(UserCreate):
    bio: str | None = None


class UserRead(BaseModel):
    id: int
    email: EmailStr
    name: str | None = None
    role: str
    phone: Optional[str] = None
    whatsapp: Optional[str] = None
    telegram: Optional[str] = None
    bio: Optional[str] = None
    created_at: datetime

    class Config:
        from_attributes = True


class UserBrief(BaseModel):
    id: int
    email: str
    name: str | None = None
    role: str

    class Config:
        from_attributes = True


class ProfileUpdate(BaseModel):
    name: str | None = Field(default=None, min_length=1, max_length=255)
    phone: str | None = None
    whatsapp: str | None = None
    telegram: str | None = None
    bio: str | None = None


class AdminUserUpdate(ProfileUpdate):
    role: UserRole | None = None

    @field_validator("role")
    @classmethod
    def role_not_null(cls, v):
        if v is None:
            raise ValueError("role cannot be null")
        return v


class PasswordSet(BaseModel):
    password: str = Field(min_length=8, max_length=72)
