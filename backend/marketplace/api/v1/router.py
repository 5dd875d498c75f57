"""
API v1 Main Router
Aggregates all v1 API endpoints into a single router.

Structure:
- /auth/*          - Registration, login, token refresh
- /users/*         - Current user profile
- /services/*      - Service catalog
- /bookings/*      - Booking lifecycle and stats
- /reviews/*       - Reviews and provider rating stats
- /providers/*     - Public provider profiles
- /notifications/* - Real-time booking events (WebSocket)
"""

from fastapi import APIRouter

from marketplace.api.v1 import auth, bookings, notifications, providers, reviews, services, users


# Create main v1 router
# This router will be included in main.py with prefix /api/v1
api_router = APIRouter()

# No authentication required for these endpoints
api_router.include_router(
    auth.router,
    prefix="/auth",
    tags=["Authentication"],
)

api_router.include_router(
    users.router,
    prefix="/users",
    tags=["Users"],
)

# Routers below define their own prefix
api_router.include_router(services.router)
api_router.include_router(bookings.router)
api_router.include_router(reviews.router)
api_router.include_router(providers.router)
api_router.include_router(notifications.router)
