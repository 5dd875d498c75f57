"""
Database Models Module
Contains SQLAlchemy ORM models for all database tables.

All models must be imported here to be registered with SQLAlchemy
and created during Base.metadata.create_all().
"""

from marketplace.db.base import Base
from marketplace.models.base import BaseModel
from marketplace.models.user import User, UserRole
from marketplace.models.service import Service
from marketplace.models.booking import (
    Booking,
    BookingStatus,
    BookingStatusHistory,
    PaymentStatus,
    BOOKING_TRANSITIONS,
)
from marketplace.models.review import Review
from marketplace.models.error_log import ErrorLog

__all__ = [
    "Base",
    "BaseModel",
    "User",
    "UserRole",
    "Service",
    "Booking",
    "BookingStatus",
    "BookingStatusHistory",
    "PaymentStatus",
    "BOOKING_TRANSITIONS",
    "Review",
    "ErrorLog",
]
