"""
Domain Exceptions
Error taxonomy raised by the service layer.

Services never raise HTTPException directly. They raise one of the
exceptions below and the error handler registered in
``marketplace.middleware.error_handler`` turns it into a JSON response
with the matching status code.
"""

from fastapi import status


class MarketplaceError(Exception):
    """Base class for every expected business error."""

    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = "Request could not be processed"

    def __init__(self, detail: str = None):
        self.detail = detail or self.default_detail
        super().__init__(self.detail)


class ValidationError(MarketplaceError):
    """Malformed or out-of-range input."""

    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = "Invalid input"


class AuthenticationError(MarketplaceError):
    """Missing, invalid or expired credentials."""

    status_code = status.HTTP_401_UNAUTHORIZED
    default_detail = "Invalid credentials"


class ForbiddenError(MarketplaceError):
    """Caller lacks the relationship required for the operation."""

    status_code = status.HTTP_403_FORBIDDEN
    default_detail = "Not authorized"


class NotFoundError(MarketplaceError):
    """Referenced entity does not exist."""

    status_code = status.HTTP_404_NOT_FOUND
    default_detail = "Not found"


class InvalidTransitionError(MarketplaceError):
    """Booking status change not allowed from the current status."""

    status_code = status.HTTP_409_CONFLICT
    default_detail = "Status transition not allowed"


class InvalidStateError(MarketplaceError):
    """Entity is not in the state the operation requires."""

    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = "Operation not allowed in current state"


class ConflictError(MarketplaceError):
    """Uniqueness violation (duplicate review, registered email)."""

    status_code = status.HTTP_409_CONFLICT
    default_detail = "Resource already exists"
