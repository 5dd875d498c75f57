"""
Booking Endpoints
RESTful API for the booking lifecycle.

Endpoints:
- POST /bookings             - Create booking (customer)
- GET  /bookings             - List caller's bookings
- GET  /bookings/stats       - Caller's booking counters and earnings
- GET  /bookings/{id}        - Booking details (customer or provider)
- PUT  /bookings/{id}/status - Accept / reject / complete (provider)
- PUT  /bookings/{id}/cancel - Cancel (customer)

All endpoints require authentication. Business errors raised by
BookingService are mapped to status codes by the error handler.
"""

from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from marketplace.api.v1.deps import get_current_user, get_notifier
from marketplace.core.constants import DEFAULT_PAGE_SIZE, MAX_PAGE_SIZE
from marketplace.core.exceptions import ValidationError
from marketplace.db.session import get_db
from marketplace.models.booking import BookingStatus
from marketplace.models.user import User
from marketplace.schemas.booking import (
    BookingCreate,
    BookingResponse,
    BookingStats,
    BookingStatusUpdate,
)
from marketplace.schemas.common import Page
from marketplace.services.booking_service import BookingService
from marketplace.services.notification_service import Notifier
from marketplace.services.stats_service import StatsService


router = APIRouter(
    prefix="/bookings",
    tags=["Bookings"]
)


@router.post(
    "",
    response_model=BookingResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a booking",
    description="""
    Book a service. The amount is fixed now from the service's hourly rate
    and never recomputed. The provider is notified in real time.
    """
)
def create_booking(
    data: BookingCreate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    notifier: Notifier = Depends(get_notifier)
):
    """
    Errors:
    - 400: date not in the future, duration outside 15..480
    - 403: caller is not a customer
    - 404: service not found

    Example request:
        POST /api/v1/bookings
        {
            "service_id": "123e4567-e89b-12d3-a456-426614174000",
            "scheduled_date": "2030-05-01T09:00:00Z",
            "duration": 120,
            "customer_address": {"street": "1 Main St", "city": "Springfield"}
        }
    """
    return BookingService.create_booking(db, notifier, current_user, data)


@router.get(
    "",
    response_model=Page[BookingResponse],
    summary="List my bookings",
    description="Bookings where the caller is the customer or the provider (per role), newest first"
)
def list_bookings(
    status_filter: Optional[str] = Query(None, alias="status", description="Exact status or 'all'"),
    page: int = Query(1, ge=1),
    limit: int = Query(DEFAULT_PAGE_SIZE, ge=1, le=MAX_PAGE_SIZE),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    booking_status = None
    if status_filter and status_filter != "all":
        try:
            booking_status = BookingStatus(status_filter)
        except ValueError:
            raise ValidationError(f"Unknown booking status: {status_filter}")

    bookings, total = BookingService.list_bookings(
        db,
        user_id=current_user.id,
        role=current_user.role,
        page=page,
        page_size=limit,
        status=booking_status,
    )
    return Page[BookingResponse].build(bookings, total, page, limit)


@router.get("/stats", response_model=BookingStats, summary="My booking stats")
def booking_stats(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    return StatsService.booking_stats(db, current_user.id, current_user.role)


@router.get("/{booking_id}", response_model=BookingResponse, summary="Get booking")
def get_booking(
    booking_id: UUID,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    return BookingService.get_booking(db, booking_id, current_user.id)


@router.put(
    "/{booking_id}/status",
    response_model=BookingResponse,
    summary="Update booking status",
    description="Provider moves a booking pending -> accepted/rejected or accepted -> completed"
)
def update_booking_status(
    booking_id: UUID,
    body: BookingStatusUpdate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    notifier: Notifier = Depends(get_notifier)
):
    """
    Errors:
    - 403: caller is not the booking's provider
    - 404: booking not found
    - 409: transition not allowed from the current status
    """
    return BookingService.transition_booking(
        db,
        notifier,
        booking_id=booking_id,
        acting_user_id=current_user.id,
        acting_role=current_user.role,
        new_status=body.status,
        notes=body.provider_notes,
    )


@router.put("/{booking_id}/cancel", response_model=BookingResponse, summary="Cancel booking")
def cancel_booking(
    booking_id: UUID,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    notifier: Notifier = Depends(get_notifier)
):
    """Customer cancels a pending or accepted booking; the provider is notified."""
    return BookingService.cancel_booking(db, notifier, booking_id, current_user.id)
