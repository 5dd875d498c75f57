"""
Service Listing Endpoints
Public catalog browsing plus provider listing management.

Endpoints:
- GET    /services      - Search active listings
- POST   /services      - Create listing (provider only)
- GET    /services/provider/my-services - Caller's own listings (provider only)
- GET    /services/{id} - Listing details
- PUT    /services/{id} - Update own listing
- DELETE /services/{id} - Deactivate own listing
"""

from decimal import Decimal
from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from marketplace.api.v1.deps import get_current_user, require_provider
from marketplace.core.constants import DEFAULT_SERVICES_PAGE_SIZE, MAX_PAGE_SIZE
from marketplace.db.session import get_db
from marketplace.models.user import User
from marketplace.schemas.common import Page
from marketplace.schemas.service import ServiceCreate, ServiceResponse, ServiceUpdate
from marketplace.services.catalog_service import CatalogService

router = APIRouter(
    prefix="/services",
    tags=["Services"]
)


@router.get(
    "",
    response_model=Page[ServiceResponse],
    summary="Search services",
    description="Active listings, newest first, filtered by text, category and hourly rate"
)
def list_services(
    search: Optional[str] = Query(None, description="Matches title, description and tags"),
    category: Optional[str] = Query(None, description="Category or 'all'"),
    min_rate: Optional[Decimal] = Query(None, ge=0),
    max_rate: Optional[Decimal] = Query(None, ge=0),
    page: int = Query(1, ge=1),
    limit: int = Query(DEFAULT_SERVICES_PAGE_SIZE, ge=1, le=MAX_PAGE_SIZE),
    db: Session = Depends(get_db)
):
    services, total = CatalogService.list_services(
        db,
        page=page,
        page_size=limit,
        search=search,
        category=category,
        min_rate=min_rate,
        max_rate=max_rate,
    )
    return Page[ServiceResponse].build(services, total, page, limit)


@router.post(
    "",
    response_model=ServiceResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a service listing"
)
def create_service(
    data: ServiceCreate,
    current_user: User = Depends(require_provider),
    db: Session = Depends(get_db)
):
    return CatalogService.create_service(db, current_user, data)


@router.get(
    "/provider/my-services",
    response_model=List[ServiceResponse],
    summary="My listings",
    description="All of the caller's listings, including deactivated ones, newest first"
)
def my_services(
    current_user: User = Depends(require_provider),
    db: Session = Depends(get_db)
):
    return CatalogService.list_provider_services(db, current_user)


@router.get("/{service_id}", response_model=ServiceResponse, summary="Get service details")
def get_service(service_id: UUID, db: Session = Depends(get_db)):
    return CatalogService.get_service(db, service_id)


@router.put("/{service_id}", response_model=ServiceResponse, summary="Update own listing")
def update_service(
    service_id: UUID,
    data: ServiceUpdate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Only the owning provider can update; anyone else gets 404."""
    return CatalogService.update_service(db, current_user, service_id, data)


@router.delete("/{service_id}", response_model=ServiceResponse, summary="Deactivate own listing")
def deactivate_service(
    service_id: UUID,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    return CatalogService.deactivate_service(db, current_user, service_id)
