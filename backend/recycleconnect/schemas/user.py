"""
Pydantic schemas for User entity.
"""
from pydantic import EmailStr, field_validator
from typing import Optional
from datetime import datetime
from recycleconnect.models.user import UserRole
from recycleconnect.schemas.base import CamelModel


class UserBase(CamelModel):
    """Base user schema."""
    username: str
    email: EmailStr
    full_name: str
    phone: Optional[str] = None
    address: Optional[str] = None
    city: Optional[str] = None
    role: UserRole


class UserCreate(UserBase):
    """Schema for registration."""
    password: str

    @field_validator("username", "full_name")
    @classmethod
    def not_blank(cls, v: str, info) -> str:
        v = v.strip()
        if not v:
            label = "Username" if info.field_name == "username" else "Full name"
            raise ValueError(f"{label} is required")
        return v

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v: str) -> str:
        return v.strip().lower()


class UserLogin(CamelModel):
    """Schema for user login."""
    email: EmailStr
    password: str

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v: str) -> str:
        return v.strip().lower()

    @field_validator("password")
    @classmethod
    def password_present(cls, v: str) -> str:
        if not v:
            raise ValueError("Please enter your password")
        return v


class UserProfileUpdate(CamelModel):
    """Schema for profile update. Username, email and role are fixed."""
    full_name: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[str] = None
    city: Optional[str] = None
    profile_complete: Optional[bool] = None
    role: Optional[UserRole] = None  # Accepted only when unchanged

    @field_validator("full_name")
    @classmethod
    def full_name_not_blank(cls, v: Optional[str]) -> Optional[str]:
        if v is not None and not v.strip():
            raise ValueError("Full name is required")
        return v.strip() if v is not None else v


class UserResponse(UserBase):
    """Schema for user response (never carries the password)."""
    id: int
    profile_complete: bool = False
    created_at: datetime


class UserRecord(UserResponse):
    """Stored user, as handed out by the store."""
    hashed_password: str
