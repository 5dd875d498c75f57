"""
Main FastAPI Application
Entry point for the Service Marketplace API.

This module creates and configures the FastAPI application instance,
sets up logging and middleware, and defines the health check endpoints.

Run with:
    uvicorn marketplace.main:app --reload
"""

from datetime import datetime, timezone
import logging

from fastapi import FastAPI

from marketplace.api.v1.router import api_router
from marketplace.core.config import settings
from marketplace.db.session import engine, SessionLocal
from marketplace.middleware.cors import setup_cors
from marketplace.middleware.error_handler import ErrorHandlerMiddleware, register_exception_handlers
from marketplace.models import Base
from marketplace.services.error_logging import configure_error_logging, configure_logging

logger = logging.getLogger(__name__)

configure_logging(settings.LOG_LEVEL, settings.LOG_DIR)

app = FastAPI(
    title=settings.PROJECT_NAME,
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc",
    description="""
    Services marketplace REST API.

    Features:
    - Customer and provider accounts with JWT authentication
    - Service catalog search
    - Booking lifecycle: request, accept/reject, complete, cancel
    - Reviews with provider rating aggregation
    - Real-time booking notifications over WebSocket
    """
)

setup_cors(app)
app.add_middleware(ErrorHandlerMiddleware)
register_exception_handlers(app)


@app.on_event("startup")
async def startup_event():
    """
    Create missing tables and hook the error logger to the database.

    Note: In production, use migrations instead of
    Base.metadata.create_all() for schema changes.
    """
    Base.metadata.create_all(bind=engine)
    logger.info("Database tables created/verified")

    configure_error_logging(SessionLocal)
    logger.info("API documentation available at /docs")


@app.on_event("shutdown")
async def shutdown_event():
    logger.info("Application shutdown complete")


@app.get("/health", tags=["Health"], summary="Health Check")
async def health_check():
    """Used by monitoring tools and container orchestrators."""
    return {
        "status": "ok",
        "version": "1.0.0",
        "api": settings.PROJECT_NAME,
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }


@app.get("/", tags=["Root"], summary="API Root")
async def root():
    return {
        "message": "Welcome to the Service Marketplace API",
        "version": "1.0.0",
        "docs": "/docs",
        "health": "/health"
    }


app.include_router(
    api_router,
    prefix=f"/api/{settings.API_VERSION}",
)
