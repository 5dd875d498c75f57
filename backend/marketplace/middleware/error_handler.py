"""
Error Handler Middleware

- ``register_exception_handlers`` maps the domain exceptions raised by the
  service layer to JSON responses with their status code.
- ``ErrorHandlerMiddleware`` catches anything else, logs it through the
  error logging service and returns a generic 500 with an error id.
"""

import logging
from typing import Callable

from fastapi import FastAPI, Request, Response
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

from marketplace.core.exceptions import MarketplaceError
from marketplace.services.error_logging import error_logger

logger = logging.getLogger(__name__)


async def marketplace_error_handler(request: Request, exc: MarketplaceError) -> JSONResponse:
    """Expected business errors: the message is safe to show to the user."""
    logger.info(f"{request.method} {request.url.path} -> {exc.status_code} {type(exc).__name__}: {exc.detail}")
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.detail})


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(MarketplaceError, marketplace_error_handler)


class ErrorHandlerMiddleware(BaseHTTPMiddleware):
    """
    Middleware that catches all unhandled exceptions and logs them.
    """

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        try:
            return await call_next(request)

        except Exception as exc:
            error_id = error_logger.log_error(
                exc,
                request=request,
                user=getattr(request.state, 'user', None),
                severity="critical",
                context={"unhandled": True}
            )

            return JSONResponse(
                status_code=500,
                content={
                    "detail": "Something went wrong!",
                    "error_id": str(error_id) if error_id else None
                }
            )
