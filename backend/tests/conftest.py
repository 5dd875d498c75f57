"""
Shared fixtures.

Every test gets a fresh SQLite database file, a handful of seeded users and
services, and a notifier that records what would have been pushed.
"""

import os

# Settings are read at import time, so these must exist first
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("SECRET_KEY", "test-secret-key")

from datetime import datetime, timedelta, timezone
from decimal import Decimal

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import sessionmaker

from marketplace.api.v1.deps import get_notifier
from marketplace.db.session import build_engine, get_db
from marketplace.models import Base, BookingStatus, Service, UserRole
from marketplace.schemas.user import UserCreate
from marketplace.services import auth_service
from marketplace.services.auth_service import create_access_token
from marketplace.services.notification_service import Notifier

PASSWORD = "secret123"


class RecordingNotifier(Notifier):
    """Keeps every published event in memory."""

    def __init__(self):
        self.events = []

    def publish(self, user_id, event, payload):
        self.events.append((user_id, event, payload))

    def for_user(self, user_id):
        return [(event, payload) for uid, event, payload in self.events if uid == user_id]


class FailingNotifier(Notifier):
    def publish(self, user_id, event, payload):
        raise ConnectionError("push gateway down")


@pytest.fixture
def engine(tmp_path):
    engine = build_engine(f"sqlite:///{tmp_path / 'marketplace.db'}")
    Base.metadata.create_all(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def notifier():
    return RecordingNotifier()


def make_user(db, name, email, role):
    return auth_service.create_user(db, UserCreate(
        name=name,
        email=email,
        password=PASSWORD,
        role=role,
    ))


@pytest.fixture
def customer(db):
    return make_user(db, "Carla Customer", "carla@example.com", UserRole.CUSTOMER)


@pytest.fixture
def other_customer(db):
    return make_user(db, "Oscar Customer", "oscar@example.com", UserRole.CUSTOMER)


@pytest.fixture
def provider(db):
    return make_user(db, "Paula Provider", "paula@example.com", UserRole.PROVIDER)


@pytest.fixture
def other_provider(db):
    return make_user(db, "Peter Provider", "peter@example.com", UserRole.PROVIDER)


@pytest.fixture
def service(db, provider):
    service = Service(
        provider_id=provider.id,
        title="Deep house cleaning",
        description="Kitchen, bathrooms and floors",
        category="cleaning",
        rate=Decimal("25.00"),
        duration=120,
        tags=["eco"],
    )
    db.add(service)
    db.commit()
    db.refresh(service)
    return service


@pytest.fixture
def future_date():
    return datetime.now(timezone.utc) + timedelta(days=3)


def force_status(db, booking, status):
    """Put a booking straight into ``status``, bypassing the lifecycle."""
    booking.status = status
    db.commit()
    db.refresh(booking)
    return booking


@pytest.fixture
def make_booking(db, notifier, customer, service, future_date):
    """Factory for bookings created through BookingService."""
    from marketplace.schemas.booking import BookingCreate
    from marketplace.services.booking_service import BookingService

    def _make(duration=120, status=BookingStatus.PENDING, **overrides):
        data = BookingCreate(
            service_id=overrides.pop("service_id", service.id),
            scheduled_date=overrides.pop("scheduled_date", future_date),
            duration=duration,
            **overrides,
        )
        booking = BookingService.create_booking(db, notifier, customer, data)
        if status != BookingStatus.PENDING:
            force_status(db, booking, status)
        return booking

    return _make


def auth_headers(user) -> dict:
    return {"Authorization": f"Bearer {create_access_token(user.id)}"}


@pytest.fixture
def client(session_factory, notifier):
    from marketplace.main import app

    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_notifier] = lambda: notifier
    yield TestClient(app)
    app.dependency_overrides.clear()
