"""
Service Listing Pydantic Schemas
Request and response models for the catalog endpoints.
"""

from pydantic import BaseModel, Field, ConfigDict, field_validator
from typing import List, Optional
from datetime import datetime
from decimal import Decimal
from uuid import UUID

from marketplace.core.constants import (
    DEFAULT_SERVICE_DURATION,
    MAX_SERVICE_DESCRIPTION_LENGTH,
    MAX_SERVICE_TITLE_LENGTH,
    SERVICE_CATEGORIES,
)


def _check_category(value: Optional[str]) -> Optional[str]:
    if value is not None and value not in SERVICE_CATEGORIES:
        raise ValueError(f"category must be one of: {', '.join(SERVICE_CATEGORIES)}")
    return value


class ServiceCreate(BaseModel):
    """
    Schema for creating a listing. The provider is the authenticated user.

    Example request body:
        {
            "title": "Deep house cleaning",
            "description": "Kitchen, bathrooms and floors",
            "category": "cleaning",
            "rate": "25.00",
            "duration": 120,
            "tags": ["eco"]
        }
    """
    title: str = Field(..., min_length=1, max_length=MAX_SERVICE_TITLE_LENGTH)
    description: str = Field(..., min_length=1, max_length=MAX_SERVICE_DESCRIPTION_LENGTH)
    category: str = Field(..., examples=["cleaning"])
    rate: Decimal = Field(..., ge=0, max_digits=10, decimal_places=2, description="Hourly rate")
    duration: int = Field(DEFAULT_SERVICE_DURATION, gt=0, description="Typical duration in minutes")
    tags: List[str] = Field(default_factory=list)
    images: List[str] = Field(default_factory=list)
    requirements: List[str] = Field(default_factory=list)

    @field_validator("category")
    @classmethod
    def validate_category(cls, v):
        return _check_category(v)


class ServiceUpdate(BaseModel):
    """All fields optional - only provided fields are updated."""
    title: Optional[str] = Field(None, min_length=1, max_length=MAX_SERVICE_TITLE_LENGTH)
    description: Optional[str] = Field(None, min_length=1, max_length=MAX_SERVICE_DESCRIPTION_LENGTH)
    category: Optional[str] = None
    rate: Optional[Decimal] = Field(None, ge=0, max_digits=10, decimal_places=2)
    duration: Optional[int] = Field(None, gt=0)
    tags: Optional[List[str]] = None
    images: Optional[List[str]] = None
    requirements: Optional[List[str]] = None
    is_active: Optional[bool] = None

    @field_validator("category")
    @classmethod
    def validate_category(cls, v):
        return _check_category(v)


class ServiceProvider(BaseModel):
    """Provider card shown next to a listing."""
    id: UUID
    name: str
    email: str
    rating_average: float
    rating_count: int
    profile_data: dict = Field(default_factory=dict)

    model_config = ConfigDict(from_attributes=True)


class ServiceSummary(BaseModel):
    """Compact listing reference embedded in bookings and reviews."""
    id: UUID
    title: str
    category: str
    rate: Decimal

    model_config = ConfigDict(from_attributes=True)


class ServiceResponse(BaseModel):
    id: UUID
    provider_id: UUID
    provider: Optional[ServiceProvider] = None
    title: str
    description: str
    category: str
    rate: Decimal
    duration: int
    is_active: bool
    tags: List[str] = Field(default_factory=list)
    images: List[str] = Field(default_factory=list)
    requirements: List[str] = Field(default_factory=list)
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)
