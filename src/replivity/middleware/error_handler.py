"""
Error handlers that sanitize responses to prevent information leakage
"""
import logging
import re
from typing import Any, Dict

from fastapi import Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import IntegrityError, OperationalError, SQLAlchemyError

from ..config import config
from ..exceptions import ErrorResponse
from ..logging_config import get_request_id

logger = logging.getLogger(__name__)


class ErrorSanitizer:
    """
    Sanitizes error text before it reaches a client

    Removes file paths, SQL statements, connection strings and email addresses.
    """

    PATH_PATTERN = re.compile(r'(?:[A-Z]:\\|(?<![\w.])/)[^\s\'"<>|]+')
    SQL_PATTERN = re.compile(r'\b(SELECT|INSERT|UPDATE|DELETE|CREATE|DROP|ALTER|GRANT|REVOKE)\s+.*', re.IGNORECASE)
    CONNECTION_PATTERN = re.compile(r'(postgresql|postgres|mysql|sqlite|mongodb)(\+\w+)?://[^\s\'"<>]*')
    EMAIL_PATTERN = re.compile(r'\b[A-Za-z0-9._%+-]+@[A-Za-z0-9.-]+\.[A-Za-z]{2,}\b')

    SENSITIVE_KEYS = {"password", "token", "secret", "api_key", "apikey", "connection_string"}

    @classmethod
    def sanitize_message(cls, message: str) -> str:
        """
        Sanitize error message to remove sensitive information

        Args:
            message: Original error message

        Returns:
            Sanitized message safe for API response
        """
        if not message:
            return "An error occurred"

        message = cls.CONNECTION_PATTERN.sub('[REDACTED_CONNECTION]', message)
        message = cls.PATH_PATTERN.sub('[REDACTED_PATH]', message)
        message = cls.SQL_PATTERN.sub('SQL statement [REDACTED]', message)
        message = cls.EMAIL_PATTERN.sub('[REDACTED_EMAIL]', message)

        if len(message) > 500:
            message = message[:500] + "... [truncated]"

        return message

    @classmethod
    def sanitize_details(cls, details: Dict[str, Any]) -> Dict[str, Any]:
        """Sanitize a details dict, dropping sensitive keys"""
        if not details:
            return {}

        sanitized = {}
        for key, value in details.items():
            if key.lower() in cls.SENSITIVE_KEYS:
                continue

            if isinstance(value, str):
                sanitized[key] = cls.sanitize_message(value)
            elif isinstance(value, dict):
                sanitized[key] = cls.sanitize_details(value)
            elif isinstance(value, (list, tuple)):
                sanitized[key] = [
                    cls.sanitize_message(item) if isinstance(item, str) else item
                    for item in value
                ]
            else:
                sanitized[key] = value

        return sanitized


async def database_error_handler(request: Request, exc: SQLAlchemyError) -> JSONResponse:
    """Handle database errors without leaking SQL, schema or connection details"""
    request_id = get_request_id()

    logger.error(
        f"Database error (request_id: {request_id}): {type(exc).__name__}",
        exc_info=True,
        extra={"path": request.url.path, "method": request.method},
    )

    if isinstance(exc, IntegrityError):
        error_message = "Database constraint violation. The operation could not be completed."
        error_code = "DATABASE_CONSTRAINT_ERROR"
    elif isinstance(exc, OperationalError):
        error_message = "Database connection error. Please try again later."
        error_code = "DATABASE_CONNECTION_ERROR"
    else:
        error_message = "A database error occurred. Please try again later."
        error_code = "DATABASE_ERROR"

    error_response = ErrorResponse.create(
        message=error_message,
        code=error_code,
        status_code=500,
        request_id=request_id,
        details={"error_type": type(exc).__name__},
    )
    return JSONResponse(content=error_response, status_code=500)


async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Handle validation errors with safe field-level information"""
    request_id = get_request_id()

    safe_errors = []
    for error in exc.errors():
        loc = error.get("loc", [])
        field = ".".join(str(part) for part in loc if part not in ("body", "query", "path"))
        safe_errors.append({
            "field": field,
            "message": ErrorSanitizer.sanitize_message(str(error.get("msg", "Validation error"))),
            "type": error.get("type", "value_error"),
        })

    logger.warning(
        f"Validation error on {request.method} {request.url.path}: "
        f"{', '.join(e['field'] for e in safe_errors)}"
    )

    error_response = ErrorResponse.create(
        message="Request validation failed. Please check your input.",
        code="VALIDATION_ERROR",
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        request_id=request_id,
        details={"errors": safe_errors},
    )
    return JSONResponse(content=error_response, status_code=status.HTTP_422_UNPROCESSABLE_ENTITY)


async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """
    Handle all uncaught exceptions with full sanitization

    This is the last line of defense - catches everything else
    """
    request_id = get_request_id()

    logger.error(
        f"Unhandled exception (request_id: {request_id}): {type(exc).__name__}",
        exc_info=True,
        extra={"path": request.url.path, "method": request.method},
    )

    details = {"error_type": type(exc).__name__}
    if config.is_dev:
        details["error"] = ErrorSanitizer.sanitize_message(str(exc))

    error_response = ErrorResponse.create(
        message="An unexpected error occurred. Please try again later.",
        code="INTERNAL_ERROR",
        status_code=500,
        request_id=request_id,
        details=details,
    )
    return JSONResponse(content=error_response, status_code=500)
