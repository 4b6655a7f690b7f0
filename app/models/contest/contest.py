from pydantic import BaseModel, Field, field_validator
from typing import Optional
from datetime import datetime
from enum import Enum


class ContestStatus(str, Enum):
    """
    Contest status types - State Machine

    State Transitions:
    - PENDING -> CONFIRMED (admin approves)
    - PENDING -> REJECTED (admin rejects, terminal)
    - CONFIRMED -> ENDED (winner declared, terminal)
    """
    PENDING = "pending"  # Creator can edit, not visible to public
    CONFIRMED = "confirmed"  # Approved, open for registration and submissions
    REJECTED = "rejected"
    ENDED = "ended"  # Winner declared


PUBLIC_STATUSES = (ContestStatus.CONFIRMED, ContestStatus.ENDED)

# Fields a creator may change while the contest is pending
CONTENT_FIELDS = ("name", "type", "description", "prize", "entry_fee", "image", "task", "deadline")


class ContestCreate(BaseModel):
    """Schema for creating a contest"""
    name: str = Field(..., min_length=1, max_length=200)
    type: str = Field(..., min_length=1, max_length=100, description="Contest category")
    description: Optional[str] = None
    prize: float = Field(..., ge=0)
    entry_fee: float = Field(0, ge=0)
    image: Optional[str] = None
    task: Optional[str] = Field(None, description="Task instructions for participants")
    deadline: Optional[datetime] = None


class ContestUpdate(BaseModel):
    """Schema for updating a contest (only allowed in PENDING status)"""
    name: Optional[str] = Field(None, min_length=1, max_length=200)
    type: Optional[str] = Field(None, min_length=1, max_length=100)
    description: Optional[str] = None
    prize: Optional[float] = Field(None, ge=0)
    entry_fee: Optional[float] = Field(None, ge=0)
    image: Optional[str] = None
    task: Optional[str] = None
    deadline: Optional[datetime] = None

    class Config:
        extra = "forbid"

    @field_validator("name", "type", "prize", "entry_fee")
    @classmethod
    def not_null(cls, value, info):
        # Omit a field to keep it; required fields cannot be cleared
        if value is None:
            raise ValueError(f"{info.field_name} cannot be null")
        return value


class StatusUpdate(BaseModel):
    """Schema for admin approval/rejection"""
    status: ContestStatus


class WinnerSnapshot(BaseModel):
    """Copy of the winner's profile taken at declaration time; never refreshed"""
    name: Optional[str] = None
    email: str
    photo: Optional[str] = None

    @classmethod
    def from_user(cls, user: Optional[dict], fallback_email: str, fallback_name: Optional[str] = None) -> "WinnerSnapshot":
        if not user:
            return cls(name=fallback_name, email=fallback_email)
        return cls(
            name=user.get("name") or fallback_name,
            email=user.get("email", fallback_email),
            photo=user.get("photo")
        )
