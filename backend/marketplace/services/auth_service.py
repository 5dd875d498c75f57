"""
Authentication Service
Handles JWT token creation, verification, and user accounts.

This service provides core authentication functionality:
- JWT token generation (access + refresh tokens)
- Token verification and decoding
- User authentication (login)
- User registration with password hashing
- Profile lookups and updates
"""

from datetime import datetime, timedelta, timezone
from typing import Optional
from uuid import UUID
import logging

from jose import JWTError, jwt
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from marketplace.core.config import settings
from marketplace.core.exceptions import ConflictError
from marketplace.core.security import hash_password, verify_password
from marketplace.models.user import User
from marketplace.schemas.user import UserCreate, UserUpdate, TokenPayload

logger = logging.getLogger(__name__)

# Algorithm used for signing tokens (HS256 = HMAC with SHA-256)
ALGORITHM = "HS256"


# ============================================================================
# JWT Token Functions
# ============================================================================

def _create_token(user_id: UUID, token_type: str, lifetime_seconds: int) -> str:
    expire = datetime.now(timezone.utc) + timedelta(seconds=lifetime_seconds)
    payload = {
        "sub": str(user_id),  # Subject (user ID)
        "exp": expire,  # Expiration time
        "type": token_type  # access / refresh
    }
    return jwt.encode(payload, settings.SECRET_KEY, algorithm=ALGORITHM)


def create_access_token(user_id: UUID) -> str:
    """
    Create a short-lived JWT access token for a user.

    Example:
        token = create_access_token(user.id)
        # Use in header: Authorization: Bearer {token}
    """
    return _create_token(user_id, "access", settings.JWT_EXPIRATION)


def create_refresh_token(user_id: UUID) -> str:
    """Create a long-lived JWT refresh token for a user."""
    return _create_token(user_id, "refresh", settings.REFRESH_TOKEN_EXPIRATION)


def verify_token(token: str, expected_type: str = "access") -> Optional[TokenPayload]:
    """
    Verify and decode a JWT token.

    Validates token signature, expiration, and type.

    Args:
        token: JWT token string to verify
        expected_type: Expected token type ("access" or "refresh")

    Returns:
        TokenPayload if token is valid, None if invalid
    """
    try:
        payload = jwt.decode(token, settings.SECRET_KEY, algorithms=[ALGORITHM])
    except JWTError:
        # Bad signature, expired, malformed...
        return None

    user_id = payload.get("sub")
    token_type = payload.get("type")
    exp = payload.get("exp")

    if not user_id or not token_type or not exp:
        return None

    if token_type != expected_type:
        return None

    return TokenPayload(sub=user_id, exp=exp, type=token_type)


def resolve_token_user(db: Session, token: str) -> Optional[User]:
    """Return the active user an access token belongs to, or None."""
    payload = verify_token(token, expected_type="access")
    if payload is None:
        return None
    try:
        user_id = UUID(payload.sub)
    except ValueError:
        return None
    user = get_user_by_id(db, user_id)
    if user is None or not user.is_active:
        return None
    return user


# ============================================================================
# User Authentication Functions
# ============================================================================

def authenticate_user(db: Session, email: str, password: str) -> Optional[User]:
    """
    Authenticate a user by email and password.

    Deactivated accounts never authenticate.

    Returns:
        User object if credentials are valid, None otherwise
    """
    user = get_user_by_email(db, email)
    if not user:
        return None

    if not verify_password(password, user.password_hash):
        return None

    if not user.is_active:
        logger.info(f"[Auth] Login refused for deactivated account {user.id}")
        return None

    return user


# ============================================================================
# User CRUD Functions
# ============================================================================

def create_user(db: Session, user_data: UserCreate) -> User:
    """
    Create a new user account.

    Hashes the password before storing and creates a new user record.

    Raises:
        ConflictError: If the email is already registered
    """
    email = user_data.email.lower()
    if get_user_by_email(db, email):
        raise ConflictError("User already exists")

    user = User(
        name=user_data.name,
        email=email,
        password_hash=hash_password(user_data.password),
        role=user_data.role,
        profile_data=user_data.profile_data or {},
    )

    db.add(user)
    try:
        db.commit()
    except IntegrityError:
        # Lost a race with a concurrent registration of the same email
        db.rollback()
        raise ConflictError("User already exists")
    db.refresh(user)

    logger.info(f"[Auth] Registered {user.role.value} {user.id}")
    return user


def get_user_by_id(db: Session, user_id: UUID) -> Optional[User]:
    """Get user by ID, None if not found."""
    return db.query(User).filter(User.id == user_id).first()


def get_user_by_email(db: Session, email: str) -> Optional[User]:
    """Get user by email address (case-insensitive), None if not found."""
    return db.query(User).filter(User.email == email.lower()).first()


def update_user(db: Session, user: User, user_data: UserUpdate) -> User:
    """
    Update user profile.

    Only updates fields that are provided in user_data. ``profile_data`` is
    merged key by key into the existing profile.
    """
    update_dict = user_data.model_dump(exclude_unset=True)

    if update_dict.get("name"):
        user.name = update_dict["name"]

    if update_dict.get("profile_data") is not None:
        # New dict so SQLAlchemy sees the JSON column as changed
        user.profile_data = {**(user.profile_data or {}), **update_dict["profile_data"]}

    db.commit()
    db.refresh(user)
    return user
