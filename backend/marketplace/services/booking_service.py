"""
Booking Service - Business Logic Layer
The booking ledger: owns booking state and its transition rules.

Key responsibilities:
- Create bookings (amount fixed at creation from the service's hourly rate)
- Provider status transitions and customer cancellation, both guarded by
  ``BOOKING_TRANSITIONS`` and by who is acting
- Provider earnings on completion
- Lookups and paginated listings scoped to the caller
- Notifying the other party of every change

Concurrency:
    Status changes are compare-and-swap UPDATEs keyed on the status that
    was checked (``WHERE id = :id AND status = :expected``). If two requests
    race from the same status, exactly one UPDATE matches a row; the other
    gets InvalidTransitionError. Earnings use an in-database increment
    (``total_earnings = total_earnings + :amount``) in the same transaction
    as the status change, so completion applies both or neither.

Unlike most services, the lifecycle methods commit themselves: the
notification must only go out once the change is durable.
"""

from datetime import datetime, timezone
from decimal import Decimal, ROUND_HALF_UP
from typing import Any, Dict, List, Optional, Tuple
from uuid import UUID
import logging

from sqlalchemy import update
from sqlalchemy.orm import Session

from marketplace.core.constants import (
    EVENT_BOOKING_UPDATE,
    EVENT_NEW_BOOKING,
    MAX_BOOKING_DURATION,
    MAX_NOTES_LENGTH,
    MIN_BOOKING_DURATION,
)
from marketplace.core.exceptions import (
    ForbiddenError,
    InvalidTransitionError,
    NotFoundError,
    ValidationError,
)
from marketplace.models.booking import (
    Booking,
    BookingStatus,
    BookingStatusHistory,
    is_allowed_transition,
)
from marketplace.models.user import User, UserRole
from marketplace.schemas.booking import BookingCreate, BookingResponse
from marketplace.services.catalog_service import CatalogService
from marketplace.services.notification_service import Notifier, safe_publish
from marketplace.services.pagination import paginate

logger = logging.getLogger(__name__)

CENTS = Decimal("0.01")


def compute_total_amount(rate, duration_minutes: int) -> Decimal:
    """
    Price of a booking: hourly rate x minutes / 60, rounded to cents.

    Example:
        compute_total_amount(Decimal("25"), 120)  # Decimal("50.00")
    """
    amount = Decimal(str(rate)) * Decimal(duration_minutes) / Decimal(60)
    return amount.quantize(CENTS, rounding=ROUND_HALF_UP)


def as_utc(value: datetime) -> datetime:
    """Naive datetimes are taken to be UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def party_column(role: UserRole):
    """Booking column that ties a booking to a user acting in ``role``."""
    if role == UserRole.CUSTOMER:
        return Booking.customer_id
    if role == UserRole.PROVIDER:
        return Booking.provider_id
    raise ValueError(f"Unknown role: {role!r}")


def booking_payload(booking: Booking) -> Dict[str, Any]:
    """JSON-safe snapshot of a booking for notifications."""
    return BookingResponse.model_validate(booking).model_dump(mode="json")


class BookingService:
    """
    Service class for the booking lifecycle.

    All methods take a database session as parameter; the lifecycle
    methods also take the ``Notifier`` used to reach the other party.
    """

    @staticmethod
    def create_booking(
        db: Session,
        notifier: Notifier,
        customer: User,
        data: BookingCreate,
        now: Optional[datetime] = None,
    ) -> Booking:
        """
        Create a pending booking for ``customer``.

        Steps:
        1. Validate date (strictly future) and duration (15..480 minutes)
        2. Look up the active service for its provider and hourly rate
        3. Fix total_amount = rate x duration / 60
        4. Persist with status=pending and an empty history
        5. Tell the provider a new request arrived

        Raises:
            ForbiddenError: caller is not a customer
            ValidationError: date not in the future, duration out of range
            NotFoundError: service absent or inactive
        """
        if customer.role != UserRole.CUSTOMER:
            raise ForbiddenError("Access denied. Customer role required.")

        now = now or datetime.now(timezone.utc)
        scheduled_date = as_utc(data.scheduled_date)
        if scheduled_date <= now:
            raise ValidationError("Booking date must be in the future")

        if not MIN_BOOKING_DURATION <= data.duration <= MAX_BOOKING_DURATION:
            raise ValidationError(
                f"Duration must be between {MIN_BOOKING_DURATION} and {MAX_BOOKING_DURATION} minutes"
            )

        if data.customer_notes and len(data.customer_notes) > MAX_NOTES_LENGTH:
            raise ValidationError(f"Notes cannot exceed {MAX_NOTES_LENGTH} characters")

        service = CatalogService.get_bookable_service(db, data.service_id)

        booking = Booking(
            customer_id=customer.id,
            provider_id=service.provider_id,
            service_id=service.id,
            scheduled_date=scheduled_date,
            duration=data.duration,
            total_amount=compute_total_amount(service.rate, data.duration),
            status=BookingStatus.PENDING,
            customer_notes=data.customer_notes,
            customer_address=data.customer_address.model_dump() if data.customer_address else None,
        )
        db.add(booking)
        db.commit()
        db.refresh(booking)

        logger.info(
            f"[Booking] {booking.id} created by customer {customer.id} "
            f"for service {service.id} ({booking.total_amount})"
        )

        safe_publish(notifier, booking.provider_id, EVENT_NEW_BOOKING, {
            "booking": booking_payload(booking),
            "message": "New booking request received!",
        })
        return booking

    @staticmethod
    def get_booking(db: Session, booking_id: UUID, requesting_user_id: UUID) -> Booking:
        """
        Get a booking visible to the caller.

        Raises:
            NotFoundError: no such booking
            ForbiddenError: caller is neither its customer nor its provider
        """
        booking = BookingService._load(db, booking_id)
        if not booking.involves(requesting_user_id):
            raise ForbiddenError("Not authorized to view this booking")
        return booking

    @staticmethod
    def list_bookings(
        db: Session,
        user_id: UUID,
        role: UserRole,
        page: int,
        page_size: int,
        status: Optional[BookingStatus] = None,
    ) -> Tuple[List[Booking], int]:
        """
        Bookings where the user is the customer (role=customer) or the
        provider (role=provider), newest first.

        Returns:
            (page of bookings, total matching)
        """
        query = db.query(Booking).filter(party_column(role) == user_id)
        if status is not None:
            query = query.filter(Booking.status == status)
        return paginate(query.order_by(Booking.created_at.desc()), page, page_size)

    @staticmethod
    def transition_booking(
        db: Session,
        notifier: Notifier,
        booking_id: UUID,
        acting_user_id: UUID,
        acting_role: UserRole,
        new_status: BookingStatus,
        notes: Optional[str] = None,
    ) -> Booking:
        """
        Provider-driven status change.

        Legal moves: pending -> accepted, pending -> rejected,
        accepted -> completed. Completing stamps completed_at and adds the
        booking amount to the provider's total earnings in the same
        transaction. Notes, when given, are appended to provider_notes and
        recorded on the history entry.

        Raises:
            NotFoundError: no such booking
            ForbiddenError: caller is not this booking's provider
            InvalidTransitionError: move not allowed from the current status,
                or the status changed underneath this request
            ValidationError: notes too long
        """
        booking = BookingService._load(db, booking_id)

        if acting_role != UserRole.PROVIDER or acting_user_id != booking.provider_id:
            raise ForbiddenError("Not authorized to update this booking")

        current = booking.status
        if not is_allowed_transition(current, new_status, UserRole.PROVIDER):
            raise InvalidTransitionError(
                f"Cannot change booking from {current.value} to {new_status.value}"
            )

        values: Dict[str, Any] = {}
        if notes:
            if len(notes) > MAX_NOTES_LENGTH:
                raise ValidationError(f"Notes cannot exceed {MAX_NOTES_LENGTH} characters")
            values["provider_notes"] = (
                f"{booking.provider_notes}\n{notes}" if booking.provider_notes else notes
            )

        now = datetime.now(timezone.utc)
        if new_status == BookingStatus.COMPLETED:
            values["completed_at"] = now

        try:
            BookingService._swap_status(db, booking, current, new_status, now, notes, values)

            if new_status == BookingStatus.COMPLETED:
                BookingService._credit_earnings(db, booking.provider_id, booking.total_amount)

            db.commit()
        except Exception:
            db.rollback()
            raise

        db.refresh(booking)
        logger.info(f"[Booking] {booking.id} {current.value} -> {new_status.value} by provider {acting_user_id}")

        safe_publish(notifier, booking.customer_id, EVENT_BOOKING_UPDATE, {
            "booking": booking_payload(booking),
            "message": f"Your booking status has been updated to {new_status.value}",
        })
        return booking

    @staticmethod
    def cancel_booking(
        db: Session,
        notifier: Notifier,
        booking_id: UUID,
        acting_user_id: UUID,
    ) -> Booking:
        """
        Customer cancellation of a pending or accepted booking.

        Raises:
            NotFoundError: no such booking
            ForbiddenError: caller is not this booking's customer
            InvalidTransitionError: booking is not pending/accepted, or its
                status changed underneath this request
        """
        booking = BookingService._load(db, booking_id)

        if acting_user_id != booking.customer_id:
            raise ForbiddenError("Not authorized to cancel this booking")

        current = booking.status
        if not is_allowed_transition(current, BookingStatus.CANCELLED, UserRole.CUSTOMER):
            raise InvalidTransitionError("Cannot cancel booking in current status")

        now = datetime.now(timezone.utc)
        try:
            BookingService._swap_status(db, booking, current, BookingStatus.CANCELLED, now, None, {})
            db.commit()
        except Exception:
            db.rollback()
            raise

        db.refresh(booking)
        logger.info(f"[Booking] {booking.id} cancelled by customer {acting_user_id}")

        safe_publish(notifier, booking.provider_id, EVENT_BOOKING_UPDATE, {
            "booking": booking_payload(booking),
            "message": "A booking has been cancelled by the customer",
        })
        return booking

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _load(db: Session, booking_id: UUID) -> Booking:
        booking = db.query(Booking).filter(Booking.id == booking_id).first()
        if not booking:
            raise NotFoundError("Booking not found")
        return booking

    @staticmethod
    def _swap_status(
        db: Session,
        booking: Booking,
        expected: BookingStatus,
        new_status: BookingStatus,
        now: datetime,
        notes: Optional[str],
        values: Dict[str, Any],
    ) -> None:
        """Conditional status UPDATE plus its history row; caller commits."""
        result = db.execute(
            update(Booking)
            .where(Booking.id == booking.id, Booking.status == expected)
            .values(status=new_status, updated_at=now, **values)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount != 1:
            logger.warning(f"[Booking] {booking.id} lost a concurrent update from {expected.value}")
            raise InvalidTransitionError("Booking status was changed by another request")

        db.add(BookingStatusHistory(
            booking_id=booking.id,
            status=new_status,
            timestamp=now,
            notes=notes,
        ))
        db.flush()

    @staticmethod
    def _credit_earnings(db: Session, provider_id: UUID, amount: Decimal) -> None:
        """Atomic in-database increment of the provider's total earnings."""
        result = db.execute(
            update(User)
            .where(User.id == provider_id)
            .values(total_earnings=User.total_earnings + amount)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount != 1:
            raise NotFoundError("Provider not found")
