"""
User Pydantic Schemas
Request and response models for authentication and profile endpoints.
"""

from pydantic import BaseModel, EmailStr, Field, ConfigDict
from typing import Optional, Dict, Any
from uuid import UUID
from datetime import datetime
from decimal import Decimal

from marketplace.models.user import UserRole


# ============================================================================
# Authentication Schemas
# ============================================================================

class UserCreate(BaseModel):
    """
    Schema for user registration request.

    Example:
        {
            "name": "Jane Doe",
            "email": "jane@example.com",
            "password": "secret123",
            "role": "provider",
            "profile_data": {"phone": "555-0100", "skills": ["plumbing"]}
        }
    """
    name: str = Field(
        ...,
        min_length=1,
        max_length=50,
        description="Display name",
        examples=["Jane Doe"]
    )
    email: EmailStr = Field(
        ...,
        description="Valid email address for authentication",
        examples=["jane@example.com"]
    )
    password: str = Field(
        ...,
        min_length=6,
        description="Password (minimum 6 characters)"
    )
    role: UserRole = Field(
        ...,
        description="customer or provider"
    )
    profile_data: Dict[str, Any] = Field(
        default_factory=dict,
        description="Optional profile fields"
    )


class LoginRequest(BaseModel):
    """Schema for user login request."""
    email: EmailStr
    password: str


class Token(BaseModel):
    """
    Schema for JWT token response.

    Returned by /register, /login, and /refresh endpoints.
    """
    access_token: str = Field(
        ...,
        description="JWT access token for API authentication"
    )
    refresh_token: str = Field(
        ...,
        description="JWT refresh token for obtaining new access tokens"
    )
    token_type: str = Field(
        default="bearer",
        description="Token type (always 'bearer' for JWT)"
    )


class RefreshTokenRequest(BaseModel):
    """Schema for refresh token request."""
    refresh_token: str


# ============================================================================
# User Profile Schemas
# ============================================================================

class RatingSummary(BaseModel):
    """Provider rating aggregate."""
    average: float
    count: int


class UserResponse(BaseModel):
    """
    Public view of a user. Never includes password_hash.

    ``rating`` is assembled from the two rating columns by
    ``UserResponse.from_user``.
    """
    id: UUID
    name: str
    email: str
    role: UserRole
    profile_data: Dict[str, Any] = Field(default_factory=dict)
    is_active: bool
    rating: RatingSummary
    total_earnings: Decimal
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)

    @classmethod
    def from_user(cls, user) -> "UserResponse":
        return cls(
            id=user.id,
            name=user.name,
            email=user.email,
            role=user.role,
            profile_data=user.profile_data or {},
            is_active=user.is_active,
            rating=RatingSummary(average=user.rating_average, count=user.rating_count),
            total_earnings=user.total_earnings,
            created_at=user.created_at,
            updated_at=user.updated_at,
        )


class UserSummary(BaseModel):
    """Compact user reference embedded in bookings and reviews."""
    id: UUID
    name: str
    email: str

    model_config = ConfigDict(from_attributes=True)


class UserUpdate(BaseModel):
    """
    Schema for profile update request.

    All fields are optional - only provided fields will be updated.
    ``profile_data`` is merged into the stored profile, not replaced.
    """
    name: Optional[str] = Field(None, min_length=1, max_length=50)
    profile_data: Optional[Dict[str, Any]] = None


# ============================================================================
# Helper Schemas
# ============================================================================

class TokenPayload(BaseModel):
    """
    Decoded JWT payload (internal use).

    - sub: Subject (user_id)
    - exp: Expiration timestamp
    - type: Token type (access or refresh)
    """
    sub: str
    exp: int
    type: str
