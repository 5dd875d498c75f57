"""
Error Log Model
Stores unhandled application errors for debugging and monitoring.
"""

from sqlalchemy import Column, DateTime, JSON, String, Text, Uuid

from marketplace.models.base import BaseModel, utcnow


class ErrorLog(BaseModel):
    """
    One unhandled error with the request and user context it happened in.
    Rows are written by ``ErrorLogger.log_error``.
    """
    __tablename__ = "error_logs"

    timestamp = Column(DateTime(timezone=True), default=utcnow, nullable=False, index=True)

    error_type = Column(String(255), nullable=False, index=True)  # e.g. "OperationalError"
    error_code = Column(String(50), nullable=True)  # HTTP status code when known
    severity = Column(String(20), default="error", nullable=False)

    module = Column(String(255), nullable=True)
    function = Column(String(255), nullable=True)
    line_number = Column(String(20), nullable=True)

    user_id = Column(Uuid(as_uuid=True), nullable=True, index=True)
    user_email = Column(String(255), nullable=True)

    request_method = Column(String(10), nullable=True)
    request_path = Column(String(500), nullable=True)
    request_query = Column(Text, nullable=True)
    client_ip = Column(String(50), nullable=True)

    message = Column(Text, nullable=False)
    stack_trace = Column(Text, nullable=True)
    context_data = Column(JSON, nullable=True)  # Sanitized extra context

    def __repr__(self):
        return f"<ErrorLog(id={self.id}, type={self.error_type}, message={self.message[:50]}...)>"
