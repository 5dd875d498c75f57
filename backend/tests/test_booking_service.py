"""
Booking ledger tests: creation, the status machine, who may act,
earnings on completion and notifications.
"""

import threading
from datetime import datetime, timedelta, timezone
from decimal import Decimal
from uuid import uuid4

import pytest

from conftest import FailingNotifier
from marketplace.core.constants import EVENT_BOOKING_UPDATE, EVENT_NEW_BOOKING
from marketplace.core.exceptions import (
    ForbiddenError,
    InvalidTransitionError,
    NotFoundError,
    ValidationError,
)
from marketplace.models import Booking, BookingStatus, BookingStatusHistory, User, UserRole
from marketplace.schemas.booking import Address, BookingCreate
from marketplace.services.booking_service import (
    BookingService,
    as_utc,
    compute_total_amount,
    party_column,
)

ALL_STATUSES = list(BookingStatus)
PROVIDER_MOVES = {
    (BookingStatus.PENDING, BookingStatus.ACCEPTED),
    (BookingStatus.PENDING, BookingStatus.REJECTED),
    (BookingStatus.ACCEPTED, BookingStatus.COMPLETED),
}


def earnings_of(db, user_id):
    db.expire_all()
    return db.query(User.total_earnings).filter(User.id == user_id).scalar()


# ============================================================================
# Amounts and helpers
# ============================================================================

@pytest.mark.parametrize("rate, minutes, expected", [
    (Decimal("25"), 120, Decimal("50.00")),
    (Decimal("30"), 90, Decimal("45.00")),
    (Decimal("10"), 15, Decimal("2.50")),
    (Decimal("19.99"), 20, Decimal("6.66")),
    (Decimal("0.05"), 15, Decimal("0.01")),
])
def test_compute_total_amount(rate, minutes, expected):
    assert compute_total_amount(rate, minutes) == expected


def test_as_utc_treats_naive_as_utc():
    naive = datetime(2030, 1, 1, 9, 0)
    assert as_utc(naive) == datetime(2030, 1, 1, 9, 0, tzinfo=timezone.utc)

    plus_two = timezone(timedelta(hours=2))
    assert as_utc(datetime(2030, 1, 1, 11, 0, tzinfo=plus_two)).hour == 9


def test_party_column_rejects_unknown_role():
    assert party_column(UserRole.CUSTOMER) is Booking.customer_id
    assert party_column(UserRole.PROVIDER) is Booking.provider_id
    with pytest.raises(ValueError):
        party_column("admin")


# ============================================================================
# create_booking
# ============================================================================

def test_create_booking_fixes_amount_and_starts_pending(db, notifier, customer, provider, service, future_date):
    data = BookingCreate(
        service_id=service.id,
        scheduled_date=future_date,
        duration=120,
        customer_notes="Ring twice",
        customer_address=Address(street="1 Main St", city="Springfield", coordinates=[12.5, 41.9]),
    )
    booking = BookingService.create_booking(db, notifier, customer, data)

    assert booking.status == BookingStatus.PENDING
    assert booking.total_amount == Decimal("50.00")
    assert booking.customer_id == customer.id
    assert booking.provider_id == provider.id
    assert booking.completed_at is None
    assert booking.is_review_submitted is False
    assert booking.status_history == []
    assert booking.customer_address["city"] == "Springfield"


def test_create_booking_notifies_provider(db, notifier, customer, provider, make_booking):
    booking = make_booking()

    events = notifier.for_user(provider.id)
    assert len(events) == 1
    event, payload = events[0]
    assert event == EVENT_NEW_BOOKING
    assert payload["booking"]["id"] == str(booking.id)
    assert payload["message"] == "New booking request received!"
    assert notifier.for_user(customer.id) == []


def test_rate_change_does_not_touch_existing_bookings(db, service, make_booking):
    booking = make_booking(duration=60)
    assert booking.total_amount == Decimal("25.00")

    service.rate = Decimal("100.00")
    db.commit()

    db.refresh(booking)
    assert booking.total_amount == Decimal("25.00")
    assert make_booking(duration=60).total_amount == Decimal("100.00")


def test_create_booking_accepts_naive_future_date(db, notifier, customer, service):
    naive = datetime.now(timezone.utc).replace(tzinfo=None) + timedelta(days=1)
    data = BookingCreate(service_id=service.id, scheduled_date=naive, duration=60)
    booking = BookingService.create_booking(db, notifier, customer, data)
    assert booking.status == BookingStatus.PENDING


@pytest.mark.parametrize("offset", [timedelta(0), timedelta(minutes=-1), timedelta(days=-30)])
def test_create_booking_rejects_dates_not_in_future(db, notifier, customer, service, offset):
    now = datetime(2030, 1, 1, 12, 0, tzinfo=timezone.utc)
    data = BookingCreate(service_id=service.id, scheduled_date=now + offset, duration=60)

    with pytest.raises(ValidationError):
        BookingService.create_booking(db, notifier, customer, data, now=now)

    assert db.query(Booking).count() == 0
    assert notifier.events == []


@pytest.mark.parametrize("duration, ok", [
    (14, False), (15, True), (60, True), (480, True), (481, False), (0, False), (-30, False),
])
def test_create_booking_duration_bounds(db, notifier, customer, service, future_date, duration, ok):
    data = BookingCreate(service_id=service.id, scheduled_date=future_date, duration=duration)
    if ok:
        assert BookingService.create_booking(db, notifier, customer, data).duration == duration
    else:
        with pytest.raises(ValidationError):
            BookingService.create_booking(db, notifier, customer, data)
        assert db.query(Booking).count() == 0


def test_create_booking_unknown_service(db, notifier, customer, future_date):
    data = BookingCreate(service_id=uuid4(), scheduled_date=future_date, duration=60)
    with pytest.raises(NotFoundError):
        BookingService.create_booking(db, notifier, customer, data)


def test_create_booking_inactive_service(db, notifier, customer, service, future_date):
    service.is_active = False
    db.commit()

    data = BookingCreate(service_id=service.id, scheduled_date=future_date, duration=60)
    with pytest.raises(NotFoundError):
        BookingService.create_booking(db, notifier, customer, data)


def test_providers_cannot_book(db, notifier, other_provider, service, future_date):
    data = BookingCreate(service_id=service.id, scheduled_date=future_date, duration=60)
    with pytest.raises(ForbiddenError):
        BookingService.create_booking(db, notifier, other_provider, data)


# ============================================================================
# Status machine
# ============================================================================

@pytest.mark.parametrize("current", ALL_STATUSES, ids=lambda s: s.value)
@pytest.mark.parametrize("target", ALL_STATUSES, ids=lambda s: s.value)
def test_provider_transition_grid(db, notifier, provider, make_booking, current, target):
    booking = make_booking(status=current)

    if (current, target) in PROVIDER_MOVES:
        updated = BookingService.transition_booking(
            db, notifier, booking.id, provider.id, UserRole.PROVIDER, target
        )
        assert updated.status == target
        assert [h.status for h in updated.status_history] == [target]
    else:
        with pytest.raises(InvalidTransitionError):
            BookingService.transition_booking(
                db, notifier, booking.id, provider.id, UserRole.PROVIDER, target
            )
        db.refresh(booking)
        assert booking.status == current
        assert booking.status_history == []


@pytest.mark.parametrize("current", ALL_STATUSES, ids=lambda s: s.value)
def test_customer_cancel_grid(db, notifier, customer, make_booking, current):
    booking = make_booking(status=current)

    if current in (BookingStatus.PENDING, BookingStatus.ACCEPTED):
        cancelled = BookingService.cancel_booking(db, notifier, booking.id, customer.id)
        assert cancelled.status == BookingStatus.CANCELLED
    else:
        with pytest.raises(InvalidTransitionError):
            BookingService.cancel_booking(db, notifier, booking.id, customer.id)
        db.refresh(booking)
        assert booking.status == current


def test_history_records_each_change_in_order(db, notifier, provider, make_booking):
    booking = make_booking()
    BookingService.transition_booking(
        db, notifier, booking.id, provider.id, UserRole.PROVIDER, BookingStatus.ACCEPTED, notes="On my way"
    )
    booking = BookingService.transition_booking(
        db, notifier, booking.id, provider.id, UserRole.PROVIDER, BookingStatus.COMPLETED, notes="All done"
    )

    history = booking.status_history
    assert [h.status for h in history] == [BookingStatus.ACCEPTED, BookingStatus.COMPLETED]
    assert [h.notes for h in history] == ["On my way", "All done"]
    assert booking.provider_notes == "On my way\nAll done"


def test_notes_too_long_leave_booking_untouched(db, notifier, provider, make_booking):
    booking = make_booking()
    with pytest.raises(ValidationError):
        BookingService.transition_booking(
            db, notifier, booking.id, provider.id, UserRole.PROVIDER,
            BookingStatus.ACCEPTED, notes="x" * 501
        )
    db.refresh(booking)
    assert booking.status == BookingStatus.PENDING


def test_transition_unknown_booking(db, notifier, provider):
    with pytest.raises(NotFoundError):
        BookingService.transition_booking(
            db, notifier, uuid4(), provider.id, UserRole.PROVIDER, BookingStatus.ACCEPTED
        )
    with pytest.raises(NotFoundError):
        BookingService.cancel_booking(db, notifier, uuid4(), provider.id)


# ============================================================================
# Who may act
# ============================================================================

def test_only_the_bookings_provider_may_transition(db, notifier, customer, other_provider, make_booking):
    booking = make_booking()

    with pytest.raises(ForbiddenError):
        BookingService.transition_booking(
            db, notifier, booking.id, other_provider.id, UserRole.PROVIDER, BookingStatus.ACCEPTED
        )
    with pytest.raises(ForbiddenError):
        BookingService.transition_booking(
            db, notifier, booking.id, customer.id, UserRole.CUSTOMER, BookingStatus.ACCEPTED
        )

    db.refresh(booking)
    assert booking.status == BookingStatus.PENDING


def test_forbidden_is_reported_before_invalid_transition(db, notifier, other_provider, make_booking):
    booking = make_booking(status=BookingStatus.COMPLETED)
    with pytest.raises(ForbiddenError):
        BookingService.transition_booking(
            db, notifier, booking.id, other_provider.id, UserRole.PROVIDER, BookingStatus.ACCEPTED
        )


def test_only_the_bookings_customer_may_cancel(db, notifier, provider, other_customer, make_booking):
    booking = make_booking()

    with pytest.raises(ForbiddenError):
        BookingService.cancel_booking(db, notifier, booking.id, provider.id)
    with pytest.raises(ForbiddenError):
        BookingService.cancel_booking(db, notifier, booking.id, other_customer.id)

    db.refresh(booking)
    assert booking.status == BookingStatus.PENDING


def test_get_booking_visibility(db, customer, provider, other_customer, make_booking):
    booking = make_booking()

    assert BookingService.get_booking(db, booking.id, customer.id).id == booking.id
    assert BookingService.get_booking(db, booking.id, provider.id).id == booking.id
    with pytest.raises(ForbiddenError):
        BookingService.get_booking(db, booking.id, other_customer.id)
    with pytest.raises(NotFoundError):
        BookingService.get_booking(db, uuid4(), customer.id)


# ============================================================================
# Completion and earnings
# ============================================================================

def test_completion_credits_provider_once(db, notifier, provider, make_booking):
    booking = make_booking(duration=120)
    BookingService.transition_booking(
        db, notifier, booking.id, provider.id, UserRole.PROVIDER, BookingStatus.ACCEPTED
    )
    assert earnings_of(db, provider.id) == Decimal("0")

    completed = BookingService.transition_booking(
        db, notifier, booking.id, provider.id, UserRole.PROVIDER, BookingStatus.COMPLETED
    )
    assert completed.completed_at is not None
    assert earnings_of(db, provider.id) == Decimal("50.00")

    with pytest.raises(InvalidTransitionError):
        BookingService.transition_booking(
            db, notifier, booking.id, provider.id, UserRole.PROVIDER, BookingStatus.COMPLETED
        )
    assert earnings_of(db, provider.id) == Decimal("50.00")


def test_earnings_accumulate_across_bookings(db, notifier, provider, make_booking):
    for minutes in (60, 90, 30):
        booking = make_booking(duration=minutes, status=BookingStatus.ACCEPTED)
        BookingService.transition_booking(
            db, notifier, booking.id, provider.id, UserRole.PROVIDER, BookingStatus.COMPLETED
        )
    assert earnings_of(db, provider.id) == Decimal("75.00")


def test_rejected_and_cancelled_bookings_earn_nothing(db, notifier, customer, provider, make_booking):
    rejected = make_booking()
    BookingService.transition_booking(
        db, notifier, rejected.id, provider.id, UserRole.PROVIDER, BookingStatus.REJECTED
    )
    cancelled = make_booking(status=BookingStatus.ACCEPTED)
    BookingService.cancel_booking(db, notifier, cancelled.id, customer.id)

    assert earnings_of(db, provider.id) == Decimal("0")


def test_concurrent_completions_lose_no_earnings(session_factory, notifier, provider, make_booking):
    durations = [15, 30, 45, 60, 90, 120, 240, 480]
    bookings = [make_booking(duration=d, status=BookingStatus.ACCEPTED) for d in durations]
    expected = sum((b.total_amount for b in bookings), Decimal("0"))
    barrier = threading.Barrier(len(bookings))
    errors = []

    def complete(booking_id):
        session = session_factory()
        try:
            barrier.wait()
            BookingService.transition_booking(
                session, notifier, booking_id, provider.id, UserRole.PROVIDER, BookingStatus.COMPLETED
            )
        except Exception as e:
            errors.append(e)
        finally:
            session.close()

    threads = [threading.Thread(target=complete, args=(b.id,)) for b in bookings]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert errors == []
    check = session_factory()
    assert check.query(User.total_earnings).filter(User.id == provider.id).scalar() == expected
    check.close()


def test_concurrent_completions_of_one_booking_credit_once(session_factory, notifier, provider, make_booking):
    booking = make_booking(status=BookingStatus.ACCEPTED)
    barrier = threading.Barrier(4)
    outcomes = []

    def complete():
        session = session_factory()
        try:
            barrier.wait()
            BookingService.transition_booking(
                session, notifier, booking.id, provider.id, UserRole.PROVIDER, BookingStatus.COMPLETED
            )
            outcomes.append("ok")
        except InvalidTransitionError:
            outcomes.append("lost")
        finally:
            session.close()

    threads = [threading.Thread(target=complete) for _ in range(4)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert sorted(outcomes) == ["lost", "lost", "lost", "ok"]
    check = session_factory()
    assert check.query(User.total_earnings).filter(User.id == provider.id).scalar() == Decimal("50.00")
    check.close()


def test_losing_a_completion_race_changes_nothing(session_factory, notifier, provider, make_booking):
    booking = make_booking(status=BookingStatus.ACCEPTED)

    # Second session has already read the booking as accepted
    stale = session_factory()
    assert stale.get(Booking, booking.id).status == BookingStatus.ACCEPTED

    winner = session_factory()
    BookingService.transition_booking(
        winner, notifier, booking.id, provider.id, UserRole.PROVIDER, BookingStatus.COMPLETED
    )
    winner.close()

    with pytest.raises(InvalidTransitionError):
        BookingService.transition_booking(
            stale, notifier, booking.id, provider.id, UserRole.PROVIDER, BookingStatus.COMPLETED
        )
    stale.close()

    check = session_factory()
    assert check.query(User.total_earnings).filter(User.id == provider.id).scalar() == Decimal("50.00")
    assert check.query(BookingStatusHistory).filter(BookingStatusHistory.booking_id == booking.id).count() == 1
    check.close()


def test_cancel_racing_completion_keeps_completion(session_factory, notifier, customer, provider, make_booking):
    booking = make_booking(status=BookingStatus.ACCEPTED)

    stale = session_factory()
    stale.get(Booking, booking.id)

    winner = session_factory()
    BookingService.transition_booking(
        winner, notifier, booking.id, provider.id, UserRole.PROVIDER, BookingStatus.COMPLETED
    )
    winner.close()

    with pytest.raises(InvalidTransitionError):
        BookingService.cancel_booking(stale, notifier, booking.id, customer.id)
    stale.close()

    check = session_factory()
    assert check.get(Booking, booking.id).status == BookingStatus.COMPLETED
    check.close()


def test_failed_earnings_credit_rolls_back_completion(db, notifier, provider, make_booking, monkeypatch):
    booking = make_booking(status=BookingStatus.ACCEPTED)

    def broken_credit(db, provider_id, amount):
        raise RuntimeError("ledger unavailable")

    monkeypatch.setattr(BookingService, "_credit_earnings", staticmethod(broken_credit))

    with pytest.raises(RuntimeError):
        BookingService.transition_booking(
            db, notifier, booking.id, provider.id, UserRole.PROVIDER, BookingStatus.COMPLETED
        )

    db.refresh(booking)
    assert booking.status == BookingStatus.ACCEPTED
    assert booking.completed_at is None
    assert booking.status_history == []
    assert earnings_of(db, provider.id) == Decimal("0")


# ============================================================================
# Listing
# ============================================================================

def test_list_bookings_scoped_by_role_and_newest_first(db, customer, provider, make_booking):
    first = make_booking(duration=30)
    second = make_booking(duration=60)
    third = make_booking(duration=90)

    mine, total = BookingService.list_bookings(db, customer.id, UserRole.CUSTOMER, page=1, page_size=10)
    assert total == 3
    assert [b.id for b in mine] == [third.id, second.id, first.id]

    theirs, total = BookingService.list_bookings(db, provider.id, UserRole.PROVIDER, page=1, page_size=10)
    assert total == 3

    # A customer id matched against provider_id finds nothing
    none, total = BookingService.list_bookings(db, customer.id, UserRole.PROVIDER, page=1, page_size=10)
    assert (none, total) == ([], 0)


def test_list_bookings_pagination_and_status_filter(db, customer, make_booking):
    for _ in range(3):
        make_booking()
    for _ in range(2):
        make_booking(status=BookingStatus.ACCEPTED)

    page, total = BookingService.list_bookings(db, customer.id, UserRole.CUSTOMER, page=2, page_size=2)
    assert total == 5
    assert len(page) == 2

    last, _ = BookingService.list_bookings(db, customer.id, UserRole.CUSTOMER, page=3, page_size=2)
    assert len(last) == 1

    accepted, total = BookingService.list_bookings(
        db, customer.id, UserRole.CUSTOMER, page=1, page_size=10, status=BookingStatus.ACCEPTED
    )
    assert total == 2
    assert all(b.status == BookingStatus.ACCEPTED for b in accepted)


def test_list_bookings_rejects_bad_page(db, customer):
    with pytest.raises(ValidationError):
        BookingService.list_bookings(db, customer.id, UserRole.CUSTOMER, page=0, page_size=10)


# ============================================================================
# Notifications
# ============================================================================

def test_transition_notifies_customer(db, notifier, customer, provider, make_booking):
    booking = make_booking()
    BookingService.transition_booking(
        db, notifier, booking.id, provider.id, UserRole.PROVIDER, BookingStatus.ACCEPTED
    )

    events = notifier.for_user(customer.id)
    assert len(events) == 1
    event, payload = events[0]
    assert event == EVENT_BOOKING_UPDATE
    assert payload["booking"]["status"] == "accepted"
    assert payload["message"] == "Your booking status has been updated to accepted"


def test_cancel_notifies_provider(db, notifier, customer, provider, make_booking):
    booking = make_booking()
    BookingService.cancel_booking(db, notifier, booking.id, customer.id)

    event, payload = notifier.for_user(provider.id)[-1]
    assert event == EVENT_BOOKING_UPDATE
    assert payload["booking"]["status"] == "cancelled"
    assert payload["message"] == "A booking has been cancelled by the customer"


def test_failed_transition_sends_nothing(db, notifier, provider, make_booking):
    booking = make_booking(status=BookingStatus.REJECTED)
    notifier.events.clear()

    with pytest.raises(InvalidTransitionError):
        BookingService.transition_booking(
            db, notifier, booking.id, provider.id, UserRole.PROVIDER, BookingStatus.ACCEPTED
        )
    assert notifier.events == []


def test_notifier_failure_does_not_fail_the_operation(db, customer, provider, service, future_date):
    notifier = FailingNotifier()
    data = BookingCreate(service_id=service.id, scheduled_date=future_date, duration=60)

    booking = BookingService.create_booking(db, notifier, customer, data)
    booking = BookingService.transition_booking(
        db, notifier, booking.id, provider.id, UserRole.PROVIDER, BookingStatus.ACCEPTED
    )
    assert booking.status == BookingStatus.ACCEPTED

    booking = BookingService.cancel_booking(db, notifier, booking.id, customer.id)
    assert booking.status == BookingStatus.CANCELLED
