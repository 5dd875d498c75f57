"""
Error Logging Service

Logging setup plus an error logger that:
- Writes to the console and, when LOG_DIR is set, to rotating log files
- Stores unhandled errors in the database for querying
- Captures context (user, request, traceback)
- Sanitizes sensitive data

Usage:
    from marketplace.services.error_logging import error_logger

    try:
        # some code
    except Exception as e:
        error_logger.log_error(e, request=request, user=current_user)
"""

import logging
import sys
import traceback
from datetime import datetime, timezone
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Any, Dict, Optional
from uuid import UUID

from marketplace.models.error_log import ErrorLog


logger = logging.getLogger("error_logging")

LOG_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"
DETAILED_LOG_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(funcName)s:%(lineno)d | %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# Sensitive fields to sanitize
SENSITIVE_FIELDS = {'password', 'password_hash', 'token', 'access_token', 'refresh_token',
                    'authorization', 'api_key', 'secret', 'credential'}


def configure_logging(level: str = "INFO", log_dir: Optional[str] = None) -> None:
    """
    Configure the root logger once.

    Adds a console handler and, if ``log_dir`` is writable, an errors-only
    file and a detailed file, both rotated at 10 MB.
    """
    root_logger = logging.getLogger()
    if getattr(root_logger, "_marketplace_configured", False):
        return

    root_logger.setLevel(getattr(logging, level.upper(), logging.INFO))

    console = logging.StreamHandler()
    console.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT))
    root_logger.addHandler(console)

    if log_dir:
        logs_path = Path(log_dir)
        try:
            logs_path.mkdir(parents=True, exist_ok=True)

            errors_handler = RotatingFileHandler(
                logs_path / "errors.log",
                maxBytes=10 * 1024 * 1024,  # 10 MB
                backupCount=10,
                encoding='utf-8'
            )
            errors_handler.setLevel(logging.ERROR)
            errors_handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT))
            root_logger.addHandler(errors_handler)

            detailed_handler = RotatingFileHandler(
                logs_path / "app_detailed.log",
                maxBytes=10 * 1024 * 1024,  # 10 MB
                backupCount=5,
                encoding='utf-8'
            )
            detailed_handler.setLevel(logging.DEBUG)
            detailed_handler.setFormatter(logging.Formatter(DETAILED_LOG_FORMAT, datefmt=DATE_FORMAT))
            root_logger.addHandler(detailed_handler)
        except OSError as e:
            logger.warning(f"Cannot write to logs directory {logs_path}: {e}; file logging disabled")

    root_logger._marketplace_configured = True


def sanitize_data(data: Any, depth: int = 0) -> Any:
    """
    Sanitize sensitive data from dictionaries and strings.
    Replaces sensitive field values with '[REDACTED]'.
    """
    if depth > 10:  # Prevent infinite recursion
        return "[MAX_DEPTH]"

    if isinstance(data, dict):
        sanitized = {}
        for key, value in data.items():
            key_lower = str(key).lower()
            if any(sensitive in key_lower for sensitive in SENSITIVE_FIELDS):
                sanitized[key] = "[REDACTED]"
            else:
                sanitized[key] = sanitize_data(value, depth + 1)
        return sanitized
    elif isinstance(data, list):
        return [sanitize_data(item, depth + 1) for item in data]
    elif isinstance(data, str):
        if len(data) > 20 and data.startswith("eyJ"):  # JWT token pattern
            return "[REDACTED_TOKEN]"
        return data
    else:
        return data


def truncate_string(s: str, max_length: int = 10000) -> str:
    """Truncate string to max length."""
    if len(s) > max_length:
        return s[:max_length] + f"... [TRUNCATED, total {len(s)} chars]"
    return s


class ErrorLogger:
    """
    Error logging service that writes to the log and to the database.
    """

    def __init__(self):
        self.db_session_factory = None

    def set_db_session_factory(self, factory):
        """Set the database session factory for DB logging."""
        self.db_session_factory = factory

    def log_error(
        self,
        error: Exception,
        request: Optional[Any] = None,
        user: Optional[Any] = None,
        severity: str = "error",
        context: Optional[Dict] = None,
        save_to_db: bool = True
    ) -> Optional[UUID]:
        """
        Log an error with full context.

        Args:
            error: The exception that occurred
            request: FastAPI Request object (optional)
            user: Current user object (optional)
            severity: debug, info, warning, error, critical
            context: Additional context data
            save_to_db: Whether to save to database

        Returns:
            UUID of the error log entry if saved to DB, None otherwise
        """
        error_type = type(error).__name__
        error_message = str(error)

        if error.__traceback__ is not None:
            stack_trace = ''.join(traceback.format_exception(type(error), error, error.__traceback__))
            frames = traceback.extract_tb(error.__traceback__)
            last_frame = frames[-1] if frames else None
        else:
            stack_trace = ''.join(traceback.format_exception(*sys.exc_info())) if sys.exc_info()[0] else ""
            last_frame = None

        request_method = request_path = request_query = client_ip = None
        if request is not None:
            request_method = request.method
            request_path = str(request.url.path)
            request_query = str(request.url.query) or None
            client_ip = request.client.host if request.client else None

        user_id = getattr(user, "id", None)
        user_email = getattr(user, "email", None)

        log_message = f"{error_type}: {error_message} | User: {user_email or 'anonymous'} | Path: {request_path or 'N/A'}"
        log_level = getattr(logging, severity.upper(), logging.ERROR)
        logger.log(log_level, log_message, exc_info=error if log_level >= logging.ERROR else None)

        if not (save_to_db and self.db_session_factory):
            return None

        try:
            db = self.db_session_factory()
            try:
                error_log = ErrorLog(
                    timestamp=datetime.now(timezone.utc),
                    error_type=error_type,
                    error_code=str(getattr(error, 'status_code', '')) or None,
                    severity=severity,
                    module=last_frame.filename if last_frame else None,
                    function=last_frame.name if last_frame else None,
                    line_number=str(last_frame.lineno) if last_frame else None,
                    user_id=user_id,
                    user_email=user_email,
                    request_method=request_method,
                    request_path=request_path,
                    request_query=request_query,
                    client_ip=client_ip,
                    message=truncate_string(error_message, 1000),
                    stack_trace=truncate_string(stack_trace, 20000),
                    context_data=sanitize_data(context) if context else None,
                )
                db.add(error_log)
                db.commit()
                db.refresh(error_log)
                logger.debug(f"Error logged to DB with ID: {error_log.id}")
                return error_log.id
            finally:
                db.close()
        except Exception as db_err:
            logger.error(f"Failed to save error to database: {db_err}")
            return None


# Singleton instance
error_logger = ErrorLogger()


def configure_error_logging(db_session_factory):
    """
    Configure the error logging system with database support.
    Call this during app startup.
    """
    error_logger.set_db_session_factory(db_session_factory)
    logger.info("Error logging system configured")
