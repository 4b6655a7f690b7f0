"""
Core module for application infrastructure.
"""
from app.core.exceptions import (
    AppError,
    ValidationFailed,
    Unauthenticated,
    Forbidden,
    NotFound,
    Conflict,
    DuplicateRegistration,
    AlreadyDecided,
    InvalidTransition,
)
from app.core.logging_setup import configure_logging

__all__ = [
    "AppError",
    "ValidationFailed",
    "Unauthenticated",
    "Forbidden",
    "NotFound",
    "Conflict",
    "DuplicateRegistration",
    "AlreadyDecided",
    "InvalidTransition",
    "configure_logging",
]
