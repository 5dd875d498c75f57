"""
Review Model
A customer's feedback on one completed booking.

Exactly one review may exist per booking; the UNIQUE constraint on
``booking_id`` is what enforces it under concurrent submissions.
"""

from sqlalchemy import Boolean, CheckConstraint, Column, ForeignKey, Integer, String
from sqlalchemy.orm import relationship

from marketplace.models.base import BaseModel


class Review(BaseModel):
    """Review record. Created once, never updated by the application."""

    __tablename__ = "reviews"

    booking_id = Column(ForeignKey("bookings.id"), nullable=False, unique=True)
    customer_id = Column(ForeignKey("users.id"), nullable=False)
    provider_id = Column(ForeignKey("users.id"), nullable=False, index=True)
    service_id = Column(ForeignKey("services.id"), nullable=False)

    rating = Column(Integer, nullable=False, index=True)
    comment = Column(String(500), nullable=True)

    # Always true: reviews can only come from completed bookings
    is_verified = Column(Boolean, default=True, nullable=False)
    helpful_votes = Column(Integer, default=0, nullable=False)

    customer = relationship("User", foreign_keys=[customer_id])
    service = relationship("Service")

    __table_args__ = (
        CheckConstraint("rating >= 1 AND rating <= 5", name="ck_reviews_rating_range"),
    )

    def __repr__(self):
        return f"<Review(id={self.id}, booking={self.booking_id}, rating={self.rating})>"
