"""
Provider Endpoints

Endpoints:
- GET /providers/search - Find providers by name, skills or bio, optionally by category
- GET /providers/{id}   - Public profile with active services and booking stats
"""

from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from marketplace.core.constants import DEFAULT_PROVIDERS_PAGE_SIZE, MAX_PAGE_SIZE
from marketplace.db.session import get_db
from marketplace.schemas.common import Page
from marketplace.schemas.provider import ProviderProfileResponse, ProviderSearchResult, ProviderStats
from marketplace.schemas.service import ServiceResponse
from marketplace.schemas.user import UserResponse
from marketplace.services.catalog_service import CatalogService
from marketplace.services.stats_service import StatsService

router = APIRouter(
    prefix="/providers",
    tags=["Providers"]
)


@router.get(
    "/search",
    response_model=Page[ProviderSearchResult],
    summary="Search providers"
)
def search_providers(
    search: Optional[str] = Query(None, description="Matches name, skills and bio"),
    category: Optional[str] = Query(None, description="Only providers with an active listing in this category, or 'all'"),
    page: int = Query(1, ge=1),
    limit: int = Query(DEFAULT_PROVIDERS_PAGE_SIZE, ge=1, le=MAX_PAGE_SIZE),
    db: Session = Depends(get_db)
):
    """
    Example:
        GET /api/v1/providers/search?search=plumb&category=plumbing
    """
    results, total = CatalogService.search_providers(
        db,
        page=page,
        page_size=limit,
        search=search,
        category=category,
    )
    items = [
        ProviderSearchResult(
            provider=UserResponse.from_user(r["provider"]),
            services=[ServiceResponse.model_validate(s) for s in r["services"]],
        )
        for r in results
    ]
    return Page[ProviderSearchResult].build(items, total, page, limit)


@router.get("/{provider_id}", response_model=ProviderProfileResponse, summary="Provider profile")
def get_provider_profile(provider_id: UUID, db: Session = Depends(get_db)):
    profile = StatsService.provider_profile(db, provider_id)
    return ProviderProfileResponse(
        provider=UserResponse.from_user(profile["provider"]),
        services=[ServiceResponse.model_validate(s) for s in profile["services"]],
        stats=ProviderStats(**profile["stats"]),
    )
