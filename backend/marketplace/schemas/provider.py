"""
Provider Profile Schemas
"""

from decimal import Decimal
from typing import List

from pydantic import BaseModel

from marketplace.schemas.service import ServiceResponse
from marketplace.schemas.user import UserResponse


class ProviderStats(BaseModel):
    total_bookings: int
    completed_bookings: int
    total_earnings: Decimal


class ProviderProfileResponse(BaseModel):
    """Public provider page: profile, active listings and booking stats."""
    provider: UserResponse
    services: List[ServiceResponse]
    stats: ProviderStats


class ProviderSearchResult(BaseModel):
    """One provider hit with the active listings that matched."""
    provider: UserResponse
    services: List[ServiceResponse]
