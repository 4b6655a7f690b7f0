from pydantic import BaseModel, EmailStr, Field
from typing import Optional, List
from datetime import datetime
from enum import Enum


class UserRole(str, Enum):
    """User roles (not hierarchical)"""
    USER = "user"
    CREATOR = "creator"
    ADMIN = "admin"


class UserBase(BaseModel):
    """Base user schema"""
    email: EmailStr
    name: Optional[str] = Field(None, max_length=100)
    photo: Optional[str] = None


class UserRegister(UserBase):
    """Schema for explicit registration"""
    bio: Optional[str] = Field(None, max_length=500)


class SessionRequest(UserBase):
    """Schema for issuing a session cookie (POST /jwt)"""
    pass


class ProfileUpdate(BaseModel):
    """Schema for profile updates (email and role cannot be changed here)"""
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    photo: Optional[str] = None
    bio: Optional[str] = Field(None, max_length=500)

    class Config:
        extra = "forbid"


class RoleUpdate(BaseModel):
    """Schema for admin role changes"""
    role: UserRole


class UserInDB(UserBase):
    """Schema for user in database"""
    bio: Optional[str] = None
    role: UserRole = UserRole.USER
    participated_contests: List[str] = []
    won_contests: List[str] = []
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)
