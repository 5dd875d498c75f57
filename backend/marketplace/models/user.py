"""
User Model
Represents customers and service providers.

Each user has:
- Unique email for authentication
- Bcrypt password hash (never stored in plain text)
- A role: customer (books services, writes reviews) or provider
  (offers services, receives bookings and earnings)
- Free-form profile data (phone, address, skills, bio, ...)
- Derived provider fields: rating {average, count} and total earnings.
  These are only ever changed through atomic UPDATE statements issued by
  the review and booking services.
"""

import enum

from sqlalchemy import Boolean, Column, Float, Integer, JSON, Numeric, String, Enum as SQLEnum

from marketplace.models.base import BaseModel


class UserRole(str, enum.Enum):
    """Closed set of marketplace roles."""
    CUSTOMER = "customer"
    PROVIDER = "provider"


class User(BaseModel):
    """
    User model for authentication, profile and provider aggregates.

    Fields:
        id (UUID): Primary key, inherited from BaseModel
        name (str): Display name
        email (str): Unique email address for login
        password_hash (str): Bcrypt hashed password
        role (UserRole): customer or provider
        profile_data (dict): phone, address, city, skills, hourly_rate, bio...
        is_active (bool): Deactivated accounts cannot log in
        rating_average (float): Running mean of all review ratings
        rating_count (int): Number of ratings folded into the mean,
            also used as the version for compare-and-swap updates
        total_earnings (Decimal): Sum of total_amount over completed bookings
    """

    __tablename__ = "users"

    name = Column(
        String(50),
        nullable=False,
        comment="User's display name"
    )

    email = Column(
        String(255),
        unique=True,
        nullable=False,
        index=True,
        comment="User's email address for authentication"
    )

    password_hash = Column(
        String(255),
        nullable=False,
        comment="Bcrypt hashed password"
    )

    role = Column(
        SQLEnum(UserRole),
        nullable=False,
        index=True,
        comment="User role (customer, provider)"
    )

    # Flexible JSON so profile fields can grow without schema migrations
    profile_data = Column(
        JSON,
        default=dict,
        nullable=False,
        comment="Profile data (phone, address, skills, bio, ...)"
    )

    is_active = Column(
        Boolean,
        default=True,
        nullable=False
    )

    rating_average = Column(
        Float,
        default=0.0,
        nullable=False,
        comment="Running mean of review ratings"
    )

    rating_count = Column(
        Integer,
        default=0,
        nullable=False,
        comment="Number of ratings in rating_average"
    )

    total_earnings = Column(
        Numeric(12, 2),
        default=0,
        nullable=False,
        comment="Sum of completed booking amounts"
    )

    def __repr__(self):
        return f"<User(id={self.id}, email={self.email}, role={self.role})>"
