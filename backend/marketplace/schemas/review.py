"""
Review Pydantic Schemas
"""

from pydantic import BaseModel, Field, ConfigDict
from typing import Dict, Optional
from datetime import datetime
from uuid import UUID

from marketplace.core.constants import MAX_NOTES_LENGTH
from marketplace.schemas.service import ServiceSummary
from marketplace.schemas.user import UserSummary


class ReviewCreate(BaseModel):
    """
    Schema for submitting a review on a completed booking.

    The 1..5 range is checked by ReviewService.

    Example request body:
        {"booking_id": "...", "rating": 5, "comment": "Spotless work"}
    """
    booking_id: UUID
    rating: int
    comment: Optional[str] = Field(None, max_length=MAX_NOTES_LENGTH)


class ReviewResponse(BaseModel):
    id: UUID
    booking_id: UUID
    customer_id: UUID
    provider_id: UUID
    service_id: UUID
    customer: Optional[UserSummary] = None
    service: Optional[ServiceSummary] = None
    rating: int
    comment: Optional[str] = None
    is_verified: bool
    helpful_votes: int
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class ProviderReviewStats(BaseModel):
    """
    Example:
        {
            "total_reviews": 3,
            "average_rating": 4.3,
            "rating_distribution": {"1": 0, "2": 0, "3": 0, "4": 2, "5": 1}
        }
    """
    total_reviews: int
    average_rating: float
    rating_distribution: Dict[int, int]
