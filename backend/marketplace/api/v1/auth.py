"""
Authentication Endpoints
Handles user registration, login, and token refresh.

Endpoints:
- POST /auth/register - Create new user account
- POST /auth/login - Authenticate and get tokens
- POST /auth/refresh - Get new access token using refresh token
"""

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session
from uuid import UUID
import logging

from marketplace.core.exceptions import AuthenticationError
from marketplace.db.session import get_db
from marketplace.schemas.user import LoginRequest, RefreshTokenRequest, Token, UserCreate
from marketplace.services import auth_service

# Logger for auth events
auth_logger = logging.getLogger("auth")

router = APIRouter()


def _issue_tokens(user_id: UUID) -> Token:
    return Token(
        access_token=auth_service.create_access_token(user_id),
        refresh_token=auth_service.create_refresh_token(user_id),
        token_type="bearer"
    )


@router.post(
    "/register",
    response_model=Token,
    status_code=status.HTTP_201_CREATED,
    summary="Register new user",
    description="Create a customer or provider account and return authentication tokens"
)
def register(user_data: UserCreate, db: Session = Depends(get_db)) -> Token:
    """
    Register a new user account.

    Errors:
    - 409: Email already registered
    - 422: Invalid input (email format, password too short, unknown role)

    Example:
        POST /api/v1/auth/register
        {
            "name": "Jane Doe",
            "email": "jane@example.com",
            "password": "secret123",
            "role": "customer"
        }
    """
    user = auth_service.create_user(db, user_data)
    return _issue_tokens(user.id)


@router.post(
    "/login",
    response_model=Token,
    summary="Login user",
    description="Authenticate user with email and password, return tokens"
)
def login(credentials: LoginRequest, db: Session = Depends(get_db)) -> Token:
    """
    Authenticate user and get JWT tokens.

    Unknown email, wrong password and deactivated accounts all get the
    same 401 so the response doesn't reveal which one it was.
    """
    user = auth_service.authenticate_user(db, credentials.email, credentials.password)
    if user is None:
        auth_logger.warning(f"Failed login for {credentials.email}")
        raise AuthenticationError("Invalid credentials")

    auth_logger.info(f"Login {user.id}")
    return _issue_tokens(user.id)


@router.post(
    "/refresh",
    response_model=Token,
    summary="Refresh access token"
)
def refresh(body: RefreshTokenRequest, db: Session = Depends(get_db)) -> Token:
    """Exchange a valid refresh token for a new token pair."""
    payload = auth_service.verify_token(body.refresh_token, expected_type="refresh")
    if payload is None:
        raise AuthenticationError("Invalid refresh token")

    user = auth_service.get_user_by_id(db, UUID(payload.sub))
    if user is None or not user.is_active:
        raise AuthenticationError("Invalid refresh token")

    return _issue_tokens(user.id)
