"""
Booking Pydantic Schemas
Request and response models for the booking lifecycle endpoints.

Range checks on duration and scheduled date are done by BookingService so
that API callers and direct service callers get the same ValidationError.
"""

from pydantic import BaseModel, Field, ConfigDict
from typing import List, Optional
from datetime import datetime
from decimal import Decimal
from uuid import UUID

from marketplace.core.constants import MAX_NOTES_LENGTH
from marketplace.models.booking import BookingStatus, PaymentStatus
from marketplace.schemas.service import ServiceSummary
from marketplace.schemas.user import UserSummary


class Address(BaseModel):
    """
    Customer postal address captured when the booking is made.

    ``coordinates`` is [longitude, latitude] when the client knows it.
    """
    street: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    zip_code: Optional[str] = None
    coordinates: Optional[List[float]] = Field(None, min_length=2, max_length=2)


class BookingCreate(BaseModel):
    """
    Schema for creating a booking. The customer is the authenticated user.

    Example request body:
        {
            "service_id": "123e4567-e89b-12d3-a456-426614174000",
            "scheduled_date": "2030-05-01T09:00:00Z",
            "duration": 120,
            "customer_notes": "Ring twice",
            "customer_address": {"street": "1 Main St", "city": "Springfield"}
        }
    """
    service_id: UUID
    scheduled_date: datetime
    duration: int = Field(..., description="Minutes, 15 to 480")
    customer_notes: Optional[str] = Field(None, max_length=MAX_NOTES_LENGTH)
    customer_address: Optional[Address] = None


class BookingStatusUpdate(BaseModel):
    """
    Provider status change.

    Example request body:
        {"status": "accepted", "provider_notes": "See you then"}
    """
    status: BookingStatus
    provider_notes: Optional[str] = Field(None, max_length=MAX_NOTES_LENGTH)


class StatusHistoryEntry(BaseModel):
    status: BookingStatus
    timestamp: datetime
    notes: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)


class BookingResponse(BaseModel):
    id: UUID
    customer_id: UUID
    provider_id: UUID
    service_id: UUID
    customer: Optional[UserSummary] = None
    provider: Optional[UserSummary] = None
    service: Optional[ServiceSummary] = None
    scheduled_date: datetime
    duration: int
    total_amount: Decimal
    status: BookingStatus
    customer_notes: Optional[str] = None
    provider_notes: Optional[str] = None
    customer_address: Optional[Address] = None
    payment_status: PaymentStatus
    is_review_submitted: bool
    completed_at: Optional[datetime] = None
    status_history: List[StatusHistoryEntry] = Field(default_factory=list)
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class BookingStats(BaseModel):
    """
    Dashboard counters for the caller.

    total_earnings is always 0 for customers.
    """
    total_bookings: int
    completed_bookings: int
    pending_bookings: int
    total_earnings: Decimal
