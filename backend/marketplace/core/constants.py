"""
Application Constants
Defines constant values used throughout the application.

This module contains all application-wide constants including:
- Booking duration and note limits
- Review rating bounds
- Service categories
- Pagination defaults
- Notification event names
"""

# Booking duration bounds (minutes)
MIN_BOOKING_DURATION = 15
MAX_BOOKING_DURATION = 480

# Free text limits
MAX_NOTES_LENGTH = 500  # customer/provider notes, review comments
MAX_SERVICE_TITLE_LENGTH = 100
MAX_SERVICE_DESCRIPTION_LENGTH = 500

# Review rating bounds (inclusive)
MIN_RATING = 1
MAX_RATING = 5

# Service Categories
SERVICE_CATEGORIES = [
    "cleaning",
    "plumbing",
    "electrical",
    "gardening",
    "painting",
    "carpentry",
    "tutoring",
    "other",
]

# Default listing duration for new services (minutes)
DEFAULT_SERVICE_DURATION = 60

# Pagination
DEFAULT_PAGE_SIZE = 10  # Bookings and reviews
DEFAULT_SERVICES_PAGE_SIZE = 12  # Catalog grid
DEFAULT_PROVIDERS_PAGE_SIZE = 20  # Provider search
MAX_PAGE_SIZE = 100  # Maximum items per page

# Rating CAS retries before giving up under contention
RATING_UPDATE_MAX_ATTEMPTS = 10

# Notification events
EVENT_NEW_BOOKING = "newBooking"
EVENT_BOOKING_UPDATE = "bookingUpdate"
