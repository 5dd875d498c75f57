"""
Catalog Service - Business Logic Layer
Service listings offered by providers.

Key responsibilities:
- Create / update / deactivate listings (owner only)
- Public search with category, rate and free-text filters
- Lookup of bookable listings for the booking service
- A provider's own listings, and provider search
"""

from typing import Dict, List, Optional, Tuple
from uuid import UUID
import logging

from sqlalchemy import String, cast, or_, select
from sqlalchemy.orm import Session

from marketplace.core.exceptions import ForbiddenError, NotFoundError
from marketplace.models.service import Service
from marketplace.models.user import User, UserRole
from marketplace.schemas.service import ServiceCreate, ServiceUpdate
from marketplace.services.pagination import paginate

logger = logging.getLogger(__name__)


class CatalogService:
    """
    Service class for listing-related business logic.

    All methods take a database session as parameter.
    """

    @staticmethod
    def create_service(db: Session, provider: User, data: ServiceCreate) -> Service:
        """
        Create a listing owned by ``provider``.

        Raises:
            ForbiddenError: caller is not a provider
        """
        if provider.role != UserRole.PROVIDER:
            raise ForbiddenError("Access denied. Provider role required.")

        service = Service(
            provider_id=provider.id,
            title=data.title,
            description=data.description,
            category=data.category,
            rate=data.rate,
            duration=data.duration,
            tags=data.tags,
            images=data.images,
            requirements=data.requirements,
        )
        db.add(service)
        db.commit()
        db.refresh(service)

        logger.info(f"[Catalog] Provider {provider.id} created service {service.id}")
        return service

    @staticmethod
    def get_service(db: Session, service_id: UUID) -> Service:
        """
        Get a listing by id, active or not.

        Raises:
            NotFoundError: no such listing
        """
        service = db.query(Service).filter(Service.id == service_id).first()
        if not service:
            raise NotFoundError("Service not found")
        return service

    @staticmethod
    def get_bookable_service(db: Session, service_id: UUID) -> Service:
        """Active listing by id; inactive listings are treated as absent."""
        service = db.query(Service).filter(
            Service.id == service_id,
            Service.is_active.is_(True)
        ).first()
        if not service:
            raise NotFoundError("Service not found")
        return service

    @staticmethod
    def list_services(
        db: Session,
        page: int,
        page_size: int,
        search: Optional[str] = None,
        category: Optional[str] = None,
        min_rate=None,
        max_rate=None,
        provider_id: Optional[UUID] = None,
    ) -> Tuple[List[Service], int]:
        """
        Search active listings, newest first.

        ``category="all"`` means no category filter.

        Returns:
            (page of services, total matching)
        """
        query = db.query(Service).filter(Service.is_active.is_(True))

        if search:
            pattern = f"%{search.strip()}%"
            query = query.filter(or_(
                Service.title.ilike(pattern),
                Service.description.ilike(pattern),
                cast(Service.tags, String).ilike(pattern),
            ))

        if category and category != "all":
            query = query.filter(Service.category == category)

        if min_rate is not None:
            query = query.filter(Service.rate >= min_rate)
        if max_rate is not None:
            query = query.filter(Service.rate <= max_rate)

        if provider_id is not None:
            query = query.filter(Service.provider_id == provider_id)

        return paginate(query.order_by(Service.created_at.desc()), page, page_size)

    @staticmethod
    def list_provider_services(db: Session, provider: User) -> List[Service]:
        """
        Every listing the provider owns, inactive ones included, newest first.

        This is the provider's own management view; public search only ever
        shows active listings.
        """
        return (
            db.query(Service)
            .filter(Service.provider_id == provider.id)
            .order_by(Service.created_at.desc())
            .all()
        )

    @staticmethod
    def search_providers(
        db: Session,
        page: int,
        page_size: int,
        search: Optional[str] = None,
        category: Optional[str] = None,
    ) -> Tuple[List[Dict], int]:
        """
        Find active providers by name, skills or bio (case-insensitive).

        With a category (other than "all"), only providers that have an
        active listing in that category match, and only those listings are
        attached.

        Returns:
            ([{"provider": User, "services": [Service, ...]}, ...], total)
        """
        query = db.query(User).filter(
            User.role == UserRole.PROVIDER,
            User.is_active.is_(True)
        )

        if search:
            pattern = f"%{search.strip()}%"
            query = query.filter(or_(
                User.name.ilike(pattern),
                cast(User.profile_data["skills"], String).ilike(pattern),
                User.profile_data["bio"].as_string().ilike(pattern),
            ))

        by_category = bool(category) and category != "all"
        if by_category:
            offering = select(Service.provider_id).where(
                Service.category == category,
                Service.is_active.is_(True)
            )
            query = query.filter(User.id.in_(offering))

        providers, total = paginate(query.order_by(User.name, User.id), page, page_size)

        results = []
        for provider in providers:
            services = db.query(Service).filter(
                Service.provider_id == provider.id,
                Service.is_active.is_(True)
            )
            if by_category:
                services = services.filter(Service.category == category)
            results.append({
                "provider": provider,
                "services": services.order_by(Service.created_at.desc()).all(),
            })

        return results, total

    @staticmethod
    def update_service(db: Session, provider: User, service_id: UUID, data: ServiceUpdate) -> Service:
        """
        Update a listing the provider owns.

        Rate changes never affect existing bookings, whose amount was fixed
        when they were created.

        Raises:
            NotFoundError: listing absent or owned by someone else
        """
        service = db.query(Service).filter(
            Service.id == service_id,
            Service.provider_id == provider.id
        ).first()
        if not service:
            raise NotFoundError("Service not found or unauthorized")

        for field, value in data.model_dump(exclude_unset=True).items():
            setattr(service, field, value)

        db.commit()
        db.refresh(service)
        return service

    @staticmethod
    def deactivate_service(db: Session, provider: User, service_id: UUID) -> Service:
        """Soft delete: listing disappears from search and can't be booked."""
        service = db.query(Service).filter(
            Service.id == service_id,
            Service.provider_id == provider.id
        ).first()
        if not service:
            raise NotFoundError("Service not found or unauthorized")

        service.is_active = False
        db.commit()
        db.refresh(service)

        logger.info(f"[Catalog] Service {service.id} deactivated")
        return service
