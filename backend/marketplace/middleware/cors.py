"""
CORS Middleware Configuration
Enables Cross-Origin Resource Sharing for frontend-backend communication.
"""

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from marketplace.core.config import settings


def setup_cors(app: FastAPI) -> None:
    """
    Configure CORS middleware for the FastAPI application.

    Allowed origins come from the CORS_ORIGINS setting (comma separated).
    """
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,  # Allow cookies and auth headers
        allow_methods=["*"],
        allow_headers=["*"],
    )
