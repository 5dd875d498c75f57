"""
Password Hashing
bcrypt through passlib's CryptContext.

Only hashes ever reach the users table; login compares the submitted
password against the stored hash.
"""

from passlib.context import CryptContext


pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")


def hash_password(password: str) -> str:
    """Salted bcrypt hash for storage in ``User.password_hash``."""
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """
    Check a login attempt against a stored hash.

    Example:
        verify_password("secret123", user.password_hash)  # True / False
    """
    return pwd_context.verify(plain_password, hashed_password)
