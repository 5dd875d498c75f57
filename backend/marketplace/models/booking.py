"""
Booking Models
A booking is one scheduled engagement between a customer and a provider
for a specific service.

Status machine (single source of truth is ``BOOKING_TRANSITIONS``):

    pending  -> accepted   (provider)
    pending  -> rejected   (provider)
    pending  -> cancelled  (customer)
    accepted -> completed  (provider)
    accepted -> cancelled  (customer)

rejected, completed and cancelled are terminal. ``in-progress`` is a valid
stored value but no operation moves a booking into it.

Bookings are never deleted; every status change after creation appends a
``BookingStatusHistory`` row.
"""

import enum

from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    Enum as SQLEnum,
    ForeignKey,
    Index,
    Integer,
    JSON,
    Numeric,
    String,
    Text,
)
from sqlalchemy.orm import relationship

from marketplace.models.base import BaseModel, utcnow
from marketplace.models.user import UserRole


class BookingStatus(str, enum.Enum):
    """Booking lifecycle states."""
    PENDING = "pending"
    ACCEPTED = "accepted"
    REJECTED = "rejected"
    IN_PROGRESS = "in-progress"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class PaymentStatus(str, enum.Enum):
    """Payment tracking only; the booking lifecycle never changes it."""
    PENDING = "pending"
    PAID = "paid"
    REFUNDED = "refunded"


# current status -> {next status: role allowed to make the change}
BOOKING_TRANSITIONS = {
    BookingStatus.PENDING: {
        BookingStatus.ACCEPTED: UserRole.PROVIDER,
        BookingStatus.REJECTED: UserRole.PROVIDER,
        BookingStatus.CANCELLED: UserRole.CUSTOMER,
    },
    BookingStatus.ACCEPTED: {
        BookingStatus.COMPLETED: UserRole.PROVIDER,
        BookingStatus.CANCELLED: UserRole.CUSTOMER,
    },
}


def is_allowed_transition(current: BookingStatus, new: BookingStatus, role: UserRole) -> bool:
    """True if ``role`` may move a booking from ``current`` to ``new``."""
    return BOOKING_TRANSITIONS.get(current, {}).get(new) == role


class Booking(BaseModel):
    """
    Booking record.

    Fields:
        customer_id / provider_id / service_id: immutable references
        scheduled_date: when the work takes place (future at creation)
        duration: minutes, 15..480
        total_amount: rate x duration / 60, fixed at creation
        status: BookingStatus
        customer_notes / provider_notes: free text
        customer_address: street, city, state, zip_code, coordinates
            captured at booking time
        payment_status: PaymentStatus
        is_review_submitted: set once by the first accepted review
        completed_at: set once when the booking is completed
    """

    __tablename__ = "bookings"

    customer_id = Column(ForeignKey("users.id"), nullable=False)
    provider_id = Column(ForeignKey("users.id"), nullable=False)
    service_id = Column(ForeignKey("services.id"), nullable=False)

    scheduled_date = Column(DateTime(timezone=True), nullable=False, index=True)
    duration = Column(Integer, nullable=False, comment="Duration in minutes")
    total_amount = Column(Numeric(12, 2), nullable=False)

    status = Column(
        SQLEnum(BookingStatus),
        default=BookingStatus.PENDING,
        nullable=False
    )

    customer_notes = Column(String(500), nullable=True)
    provider_notes = Column(Text, nullable=True)
    customer_address = Column(JSON, nullable=True)

    payment_status = Column(
        SQLEnum(PaymentStatus),
        default=PaymentStatus.PENDING,
        nullable=False
    )
    is_review_submitted = Column(Boolean, default=False, nullable=False)
    completed_at = Column(DateTime(timezone=True), nullable=True)

    customer = relationship("User", foreign_keys=[customer_id])
    provider = relationship("User", foreign_keys=[provider_id])
    service = relationship("Service")
    status_history = relationship(
        "BookingStatusHistory",
        back_populates="booking",
        order_by="BookingStatusHistory.timestamp",
        cascade="all, delete-orphan"
    )

    __table_args__ = (
        Index("ix_bookings_customer_status", "customer_id", "status"),
        Index("ix_bookings_provider_status", "provider_id", "status"),
    )

    def __repr__(self):
        return f"<Booking(id={self.id}, status={self.status}, total={self.total_amount})>"

    def involves(self, user_id) -> bool:
        """True if the user is the customer or the provider on this booking."""
        return user_id in (self.customer_id, self.provider_id)


class BookingStatusHistory(BaseModel):
    """Append-only log entry for one status change."""

    __tablename__ = "booking_status_history"

    booking_id = Column(
        ForeignKey("bookings.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )
    status = Column(SQLEnum(BookingStatus), nullable=False)
    timestamp = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    notes = Column(String(500), nullable=True)

    booking = relationship("Booking", back_populates="status_history")
