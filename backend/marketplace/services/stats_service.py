"""
Stats Service
On-demand booking counters and earnings for dashboards and provider pages.

Everything is computed from the bookings table at read time; nothing here
is cached or stored.
"""

from decimal import Decimal
from typing import Dict
from uuid import UUID

from sqlalchemy import case, func
from sqlalchemy.orm import Session

from marketplace.core.exceptions import NotFoundError
from marketplace.models.booking import Booking, BookingStatus
from marketplace.models.user import User, UserRole
from marketplace.services.booking_service import CENTS, party_column
from marketplace.services.catalog_service import CatalogService


def _money(value) -> Decimal:
    return Decimal(str(value or 0)).quantize(CENTS)


class StatsService:
    """Service class for derived booking statistics."""

    @staticmethod
    def booking_stats(db: Session, user_id: UUID, role: UserRole) -> Dict:
        """
        Counters over the bookings the user takes part in as ``role``.

        total_earnings is the sum of total_amount over the provider's
        completed bookings; it is always 0 for customers.

        Returns:
            {
                "total_bookings": 7,
                "completed_bookings": 3,
                "pending_bookings": 2,
                "total_earnings": Decimal("150.00")
            }
        """
        completed = Booking.status == BookingStatus.COMPLETED
        row = db.query(
            func.count(Booking.id),
            func.sum(case((completed, 1), else_=0)),
            func.sum(case((Booking.status == BookingStatus.PENDING, 1), else_=0)),
            func.sum(case((completed, Booking.total_amount), else_=0)),
        ).filter(party_column(role) == user_id).one()

        total, completed_count, pending_count, earnings = row

        return {
            "total_bookings": int(total or 0),
            "completed_bookings": int(completed_count or 0),
            "pending_bookings": int(pending_count or 0),
            "total_earnings": _money(earnings) if role == UserRole.PROVIDER else _money(0),
        }

    @staticmethod
    def provider_profile(db: Session, provider_id: UUID, services_limit: int = 50) -> Dict:
        """
        Public provider page data.

        Raises:
            NotFoundError: id is unknown or not a provider
        """
        provider = db.query(User).filter(
            User.id == provider_id,
            User.role == UserRole.PROVIDER
        ).first()
        if not provider:
            raise NotFoundError("Provider not found")

        services, _ = CatalogService.list_services(
            db, page=1, page_size=services_limit, provider_id=provider.id
        )
        stats = StatsService.booking_stats(db, provider.id, UserRole.PROVIDER)

        return {
            "provider": provider,
            "services": services,
            "stats": {
                "total_bookings": stats["total_bookings"],
                "completed_bookings": stats["completed_bookings"],
                "total_earnings": stats["total_earnings"],
            },
        }
