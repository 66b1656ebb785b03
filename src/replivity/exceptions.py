"""
Domain exceptions and exception handlers with request ID support
Standardized error response format: { code, message, status_code, details?, request_id }
"""
import logging
from typing import Any, Dict, Optional

from fastapi import Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from .logging_config import get_request_id

logger = logging.getLogger(__name__)


class ReplivityError(Exception):
    """Base class for errors raised by the service layer"""

    code = "INTERNAL_ERROR"
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details = details


class BadRequestError(ReplivityError):
    code = "BAD_REQUEST"
    status_code = status.HTTP_400_BAD_REQUEST


class ForbiddenError(ReplivityError):
    code = "FORBIDDEN"
    status_code = status.HTTP_403_FORBIDDEN


class NotFoundError(ReplivityError):
    code = "NOT_FOUND"
    status_code = status.HTTP_404_NOT_FOUND


class ConflictError(ReplivityError):
    code = "CONFLICT"
    status_code = status.HTTP_409_CONFLICT


class NoActiveSubscription(ForbiddenError):
    code = "NO_ACTIVE_SUBSCRIPTION"

    def __init__(self, message: str = "No active subscription found", details=None):
        super().__init__(message, details)


class UsageLimitExceeded(ForbiddenError):
    code = "USAGE_LIMIT_EXCEEDED"

    def __init__(
        self,
        used: int,
        limit: int,
        plan: Optional[str] = None,
        message: str = "Usage limit exceeded for current billing period",
    ):
        super().__init__(
            message,
            {"used": used, "limit": limit, "plan": plan},
        )


class AIProviderError(ReplivityError):
    """The language model could not be reached or returned nothing usable"""

    code = "AI_PROVIDER_ERROR"
    status_code = status.HTTP_502_BAD_GATEWAY


class ErrorResponse:
    """
    Standard error response format

    Schema: { code, message, status_code, details?, request_id }
    """

    @staticmethod
    def create(
        message: str,
        code: str,
        status_code: int,
        request_id: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> dict:
        """
        Create standardized error response

        Args:
            message: Human-readable error message
            code: Error code (e.g., "VALIDATION_ERROR", "FORBIDDEN", "USAGE_LIMIT_EXCEEDED")
            status_code: HTTP status code
            request_id: Request ID from context (auto-fetched if None)
            details: Optional additional error details

        Returns:
            Dictionary with error details
        """
        if request_id is None:
            request_id = get_request_id()

        response = {
            "code": code,
            "message": message,
            "status_code": status_code,
        }
        if request_id:
            response["request_id"] = request_id
        if details:
            response["details"] = details
        return response


ERROR_CODE_MAP = {
    400: "BAD_REQUEST",
    401: "UNAUTHORIZED",
    403: "FORBIDDEN",
    404: "NOT_FOUND",
    405: "METHOD_NOT_ALLOWED",
    409: "CONFLICT",
    422: "VALIDATION_ERROR",
    429: "RATE_LIMITED",
    500: "INTERNAL_ERROR",
    502: "BAD_GATEWAY",
    503: "SERVICE_UNAVAILABLE",
}


async def replivity_exception_handler(request: Request, exc: ReplivityError) -> JSONResponse:
    """Translate service-layer errors into their HTTP status"""
    if exc.status_code >= 500:
        logger.error(f"{exc.code}: {exc.message}", extra={"path": request.url.path})
    else:
        logger.warning(f"{exc.code}: {exc.message}", extra={"path": request.url.path})

    return JSONResponse(
        status_code=exc.status_code,
        content=ErrorResponse.create(
            message=exc.message,
            code=exc.code,
            status_code=exc.status_code,
            details=exc.details,
        ),
    )


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    """Handle HTTP exceptions with request ID"""
    error_code = ERROR_CODE_MAP.get(exc.status_code, "HTTP_ERROR")
    detail = exc.detail
    error_message = str(detail) if detail else f"HTTP {exc.status_code} error"
    error_details = None

    if isinstance(detail, dict):
        error_message = detail.get("message", str(detail))
        error_code = detail.get("error", error_code)
        error_details = {k: v for k, v in detail.items() if k not in ["error", "message", "code"]} or None

    logger.warning(f"HTTP {exc.status_code}: {error_message}", extra={"path": request.url.path})

    return JSONResponse(
        status_code=exc.status_code,
        content=ErrorResponse.create(
            message=error_message,
            code=error_code,
            status_code=exc.status_code,
            details=error_details,
        ),
        headers=getattr(exc, "headers", None),
    )
