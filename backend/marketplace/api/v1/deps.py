"""
API Dependencies
Common dependencies used across API endpoints.

This module provides:
- User authentication (JWT validation)
- Role checks
- The notification transport handed to the service layer

Dependencies are injected into FastAPI endpoints using Depends().
Tests swap them out with ``app.dependency_overrides``.
"""

from fastapi import Depends, Request
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.orm import Session
from typing import Optional

from marketplace.core.exceptions import AuthenticationError, ForbiddenError
from marketplace.db.session import get_db
from marketplace.models.user import User, UserRole
from marketplace.services.auth_service import resolve_token_user
from marketplace.services.notification_service import Notifier, notification_manager


# Extracts "Authorization: Bearer <token>" from request headers
security = HTTPBearer(auto_error=False)


def get_current_user(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    db: Session = Depends(get_db)
) -> User:
    """
    Extract and validate current user from JWT token.

    The user is also stored on ``request.state`` so the error middleware can
    attach it to logged errors.

    Raises:
        AuthenticationError: missing, invalid or expired token, unknown or
            deactivated user
    """
    if credentials is None:
        raise AuthenticationError("No token provided")

    user = resolve_token_user(db, credentials.credentials)
    if user is None:
        raise AuthenticationError("Invalid token")

    request.state.user = user
    return user


def require_customer(current_user: User = Depends(get_current_user)) -> User:
    if current_user.role != UserRole.CUSTOMER:
        raise ForbiddenError("Access denied. Customer role required.")
    return current_user


def require_provider(current_user: User = Depends(get_current_user)) -> User:
    if current_user.role != UserRole.PROVIDER:
        raise ForbiddenError("Access denied. Provider role required.")
    return current_user


def get_notifier() -> Notifier:
    """Notification transport used by the booking lifecycle."""
    return notification_manager
