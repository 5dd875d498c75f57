"""
Review Endpoints

Endpoints:
- GET  /reviews                              - List reviews (optionally by provider)
- POST /reviews                              - Review a completed booking (customer)
- GET  /reviews/{id}                         - Review details
- GET  /reviews/provider/{provider_id}/stats - Provider rating statistics

Reading reviews doesn't require authentication.
"""

from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from marketplace.api.v1.deps import require_customer
from marketplace.core.constants import DEFAULT_PAGE_SIZE, MAX_PAGE_SIZE
from marketplace.db.session import get_db
from marketplace.models.user import User
from marketplace.schemas.common import Page
from marketplace.schemas.review import ProviderReviewStats, ReviewCreate, ReviewResponse
from marketplace.services.review_service import ReviewService

router = APIRouter(
    prefix="/reviews",
    tags=["Reviews"]
)


@router.get("", response_model=Page[ReviewResponse], summary="List reviews")
def list_reviews(
    provider_id: Optional[UUID] = Query(None),
    page: int = Query(1, ge=1),
    limit: int = Query(DEFAULT_PAGE_SIZE, ge=1, le=MAX_PAGE_SIZE),
    db: Session = Depends(get_db)
):
    reviews, total = ReviewService.list_reviews(db, page=page, page_size=limit, provider_id=provider_id)
    return Page[ReviewResponse].build(reviews, total, page, limit)


@router.post(
    "",
    response_model=ReviewResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Submit review"
)
def create_review(
    data: ReviewCreate,
    current_user: User = Depends(require_customer),
    db: Session = Depends(get_db)
):
    """
    Errors:
    - 400: rating outside 1..5, booking not completed
    - 403: caller is not the booking's customer
    - 404: booking not found
    - 409: booking already reviewed
    """
    return ReviewService.submit_review(
        db,
        booking_id=data.booking_id,
        customer_id=current_user.id,
        rating=data.rating,
        comment=data.comment,
    )


@router.get(
    "/provider/{provider_id}/stats",
    response_model=ProviderReviewStats,
    summary="Provider review stats"
)
def provider_review_stats(provider_id: UUID, db: Session = Depends(get_db)):
    return ReviewService.provider_stats(db, provider_id)


@router.get("/{review_id}", response_model=ReviewResponse, summary="Get review")
def get_review(review_id: UUID, db: Session = Depends(get_db)):
    return ReviewService.get_review(db, review_id)
