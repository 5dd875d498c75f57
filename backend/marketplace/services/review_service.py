"""
Review Service - Business Logic Layer
Customer reviews of completed bookings and provider rating aggregation.

Key responsibilities:
- One review per completed booking, written by that booking's customer
- Folding each new rating into the provider's running mean
- Review listings and per-provider statistics

The provider rating is an incremental mean:

    new_average = (old_average * old_count + rating) / (old_count + 1)

The update isn't commutative step by step, so it can't be a plain
in-database increment. It is a compare-and-swap that uses rating_count as
a version number and retries when another submission got there first.
"""

from decimal import Decimal, ROUND_HALF_UP
from typing import Dict, List, Optional, Tuple
from uuid import UUID
import logging

from sqlalchemy import func, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from marketplace.core.constants import (
    MAX_NOTES_LENGTH,
    MAX_RATING,
    MIN_RATING,
    RATING_UPDATE_MAX_ATTEMPTS,
)
from marketplace.core.exceptions import (
    ConflictError,
    ForbiddenError,
    InvalidStateError,
    NotFoundError,
    ValidationError,
)
from marketplace.models.booking import Booking, BookingStatus
from marketplace.models.review import Review
from marketplace.models.user import User
from marketplace.services.pagination import paginate

logger = logging.getLogger(__name__)


def validate_rating(rating) -> int:
    """
    Raises:
        ValidationError: rating is not an integer in 1..5
    """
    if isinstance(rating, bool) or not isinstance(rating, int):
        raise ValidationError("Rating must be an integer between 1 and 5")
    if not MIN_RATING <= rating <= MAX_RATING:
        raise ValidationError("Rating must be between 1 and 5")
    return rating


def round_rating(value: float) -> float:
    """Round half up to one decimal (4.25 -> 4.3)."""
    return float(Decimal(str(value)).quantize(Decimal("0.1"), rounding=ROUND_HALF_UP))


class ReviewService:
    """Service class for review-related business logic."""

    @staticmethod
    def submit_review(
        db: Session,
        booking_id: UUID,
        customer_id: UUID,
        rating: int,
        comment: Optional[str] = None,
    ) -> Review:
        """
        Submit the review for a completed booking.

        On success the review is stored, the booking is flagged
        is_review_submitted and the provider's rating is updated, all in
        one transaction.

        Raises:
            ValidationError: rating outside 1..5, comment too long
            NotFoundError: no such booking
            InvalidStateError: booking is not completed
            ForbiddenError: caller is not the booking's customer
            ConflictError: booking already reviewed
        """
        validate_rating(rating)
        if comment and len(comment) > MAX_NOTES_LENGTH:
            raise ValidationError(f"Comment cannot exceed {MAX_NOTES_LENGTH} characters")

        booking = db.query(Booking).filter(Booking.id == booking_id).first()
        if not booking:
            raise NotFoundError("Booking not found")

        if booking.status != BookingStatus.COMPLETED:
            raise InvalidStateError("Can only review completed bookings")

        if booking.customer_id != customer_id:
            raise ForbiddenError("Not authorized to review this booking")

        if db.query(Review.id).filter(Review.booking_id == booking_id).first():
            raise ConflictError("Review already exists for this booking")

        review = Review(
            booking_id=booking.id,
            customer_id=customer_id,
            provider_id=booking.provider_id,
            service_id=booking.service_id,
            rating=rating,
            comment=comment,
        )

        try:
            db.add(review)
            db.flush()  # UNIQUE(booking_id) fires here on a concurrent duplicate

            booking.is_review_submitted = True
            ReviewService.update_provider_rating(db, booking.provider_id, rating, commit=False)

            db.commit()
        except IntegrityError:
            db.rollback()
            raise ConflictError("Review already exists for this booking")
        except Exception:
            db.rollback()
            raise

        db.refresh(review)
        logger.info(f"[Review] {review.id} ({rating}*) for booking {booking_id} by customer {customer_id}")
        return review

    @staticmethod
    def update_provider_rating(
        db: Session,
        provider_id: UUID,
        new_rating: int,
        commit: bool = True,
    ) -> Tuple[float, int]:
        """
        Fold one rating into the provider's running mean.

        Each attempt reads (average, count) and writes the new pair only if
        count is still what was read. A miss means another rating landed in
        between: re-read and try again.

        Returns:
            (new average, new count)

        Raises:
            ValidationError: rating outside 1..5
            NotFoundError: no such user
            ConflictError: still losing the race after
                RATING_UPDATE_MAX_ATTEMPTS attempts
        """
        validate_rating(new_rating)

        for attempt in range(1, RATING_UPDATE_MAX_ATTEMPTS + 1):
            row = db.query(User.rating_average, User.rating_count).filter(User.id == provider_id).first()
            if row is None:
                raise NotFoundError("Provider not found")

            old_average, old_count = row.rating_average or 0.0, row.rating_count or 0
            new_count = old_count + 1
            new_average = (old_average * old_count + new_rating) / new_count

            result = db.execute(
                update(User)
                .where(User.id == provider_id, User.rating_count == old_count)
                .values(rating_average=new_average, rating_count=new_count)
                .execution_options(synchronize_session=False)
            )
            if result.rowcount == 1:
                if commit:
                    db.commit()
                return new_average, new_count

            logger.debug(f"[Review] Rating CAS miss for provider {provider_id} (attempt {attempt})")

        raise ConflictError("Provider rating is being updated concurrently, try again")

    @staticmethod
    def get_review(db: Session, review_id: UUID) -> Review:
        review = db.query(Review).filter(Review.id == review_id).first()
        if not review:
            raise NotFoundError("Review not found")
        return review

    @staticmethod
    def list_reviews(
        db: Session,
        page: int,
        page_size: int,
        provider_id: Optional[UUID] = None,
    ) -> Tuple[List[Review], int]:
        """Reviews, optionally for one provider, newest first."""
        query = db.query(Review)
        if provider_id is not None:
            query = query.filter(Review.provider_id == provider_id)
        return paginate(query.order_by(Review.created_at.desc()), page, page_size)

    @staticmethod
    def provider_stats(db: Session, provider_id: UUID) -> Dict:
        """
        Review statistics computed from the stored reviews.

        A provider without reviews gets zeros, not an error.

        Returns:
            {
                "total_reviews": 3,
                "average_rating": 4.3,
                "rating_distribution": {1: 0, 2: 0, 3: 0, 4: 2, 5: 1}
            }
        """
        rows = (
            db.query(Review.rating, func.count(Review.id))
            .filter(Review.provider_id == provider_id)
            .group_by(Review.rating)
            .all()
        )

        distribution = {star: 0 for star in range(MIN_RATING, MAX_RATING + 1)}
        for rating, count in rows:
            distribution[int(rating)] = int(count)

        total = sum(distribution.values())
        if total == 0:
            return {"total_reviews": 0, "average_rating": 0.0, "rating_distribution": distribution}

        average = sum(star * count for star, count in distribution.items()) / total
        return {
            "total_reviews": total,
            "average_rating": round_rating(average),
            "rating_distribution": distribution,
        }
