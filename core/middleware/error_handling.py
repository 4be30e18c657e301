"""
Error handling middleware with security-compliant error sanitization.
Prevents sensitive data leakage while keeping the `{"msg": ...}` response shape.
"""

import logging
import traceback
from typing import Any, Callable
from fastapi import Request, Response, status
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException
from sqlalchemy.exc import SQLAlchemyError, IntegrityError, OperationalError
import re

from core.errors import CareerSyncError

logger = logging.getLogger(__name__)

GENERIC_ERROR_MESSAGE = "Something went wrong, try again later"

# Patterns for sensitive data that should never be logged
SENSITIVE_PATTERNS = [
    re.compile(r'password["\s:=]+[^"\s,}]+', re.IGNORECASE),
    re.compile(r'token["\s:=]+[^"\s,}]+', re.IGNORECASE),
    re.compile(r'api[_-]?key["\s:=]+[^"\s,}]+', re.IGNORECASE),
    re.compile(r'secret["\s:=]+[^"\s,}]+', re.IGNORECASE),
    re.compile(r'authorization["\s:]+[^"\s,}]+', re.IGNORECASE),
    re.compile(r'\b\d{3}-\d{2}-\d{4}\b'),  # SSN
    re.compile(r'\b\d{16}\b'),  # Credit card
]


def sanitize_error_message(message: str) -> str:
    """
    Remove sensitive information from error messages.

    Args:
        message: Original error message

    Returns:
        Sanitized error message
    """
    sanitized = str(message)
    for pattern in SENSITIVE_PATTERNS:
        sanitized = pattern.sub('[REDACTED]', sanitized)
    return sanitized


def get_safe_error_details(exc: Exception) -> dict[str, Any]:
    """
    Extract safe error details (debug only) without exposing sensitive information.
    """
    return {
        "type": type(exc).__name__,
        "message": sanitize_error_message(str(exc)),
        "traceback": traceback.format_exc(),
    }


def format_validation_errors(exc: RequestValidationError) -> list[dict[str, Any]]:
    """
    Format validation errors into a user-friendly structure.

    Raw input values are never echoed back.
    """
    errors = []
    for error in exc.errors():
        errors.append(
            {
                "field": ".".join(str(loc) for loc in error["loc"]),
                "message": sanitize_error_message(error["msg"]),
                "type": error["type"],
            }
        )
    return errors


def _validation_summary(details: list[dict[str, Any]]) -> str:
    if not details:
        return "Invalid request"
    first = details[0]
    field = first["field"].split(".")[-1]
    if first["type"] == "missing":
        return f"Please provide {field}"
    return f"Invalid value for {field}: {first['message']}"


class ErrorHandlingMiddleware:
    """
    Last-resort error handler wrapping the whole ASGI app.

    Anything that escapes the exception handlers becomes a 500 with a generic
    message; the stack trace is only logged.
    """

    def __init__(self, app: Callable, debug: bool = False):
        """
        Initialize error handling middleware.

        Args:
            app: The ASGI application
            debug: Whether to include detailed error information
        """
        self.app = app
        self.debug = debug

    async def __call__(self, scope: dict, receive: Callable, send: Callable) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        try:
            await self.app(scope, receive, send)
        except Exception as exc:
            response = self._handle_exception(exc, scope)
            await response(scope, receive, send)

    def _handle_exception(self, exc: Exception, scope: dict) -> Response:
        request_path = scope.get("path", "unknown")
        request_method = scope.get("method", "unknown")

        if isinstance(exc, CareerSyncError):
            return JSONResponse(
                status_code=exc.status_code,
                content={exc.body_key: exc.message},
            )

        status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
        if isinstance(exc, OperationalError):
            status_code = status.HTTP_503_SERVICE_UNAVAILABLE
            logger.error(
                f"Database operational error: {request_method} {request_path}",
                exc_info=True,
            )
        else:
            logger.error(
                f"Unhandled exception: {request_method} {request_path} - "
                f"{type(exc).__name__}: {sanitize_error_message(str(exc))}",
                exc_info=True,
            )

        content: dict[str, Any] = {"msg": GENERIC_ERROR_MESSAGE}
        if self.debug:
            content["details"] = get_safe_error_details(exc)
        return JSONResponse(status_code=status_code, content=content)


def setup_error_handlers(app):
    """
    Set up exception handlers for FastAPI application.

    Args:
        app: FastAPI application instance
    """

    @app.exception_handler(CareerSyncError)
    async def careersync_exception_handler(request: Request, exc: CareerSyncError):
        """Render typed service errors."""
        if exc.status_code >= 500:
            logger.error(
                f"{exc.code}: {request.method} {request.url.path} - {exc.message}"
            )
        else:
            logger.info(
                f"{exc.code}: {request.method} {request.url.path} - {exc.message}"
            )
        # Service messages are fixed strings; they are rendered as-is
        return JSONResponse(
            status_code=exc.status_code,
            content={exc.body_key: exc.message},
        )

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        """Handle HTTP exceptions (unknown routes, wrong methods)."""
        message = exc.detail
        if exc.status_code == status.HTTP_404_NOT_FOUND and message == "Not Found":
            message = "Route does not exist"
        return JSONResponse(
            status_code=exc.status_code,
            content={"msg": sanitize_error_message(message)},
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        """Handle validation errors."""
        details = format_validation_errors(exc)
        logger.info(
            f"Validation error: {request.method} {request.url.path} - {details}"
        )
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={"msg": _validation_summary(details), "details": details},
        )

    @app.exception_handler(IntegrityError)
    async def integrity_exception_handler(request: Request, exc: IntegrityError):
        """Unique-constraint races surface here."""
        logger.warning(
            f"Database integrity error: {request.method} {request.url.path}"
        )
        return JSONResponse(
            status_code=status.HTTP_409_CONFLICT,
            content={"msg": "Resource already exists"},
        )

    @app.exception_handler(SQLAlchemyError)
    async def sqlalchemy_exception_handler(request: Request, exc: SQLAlchemyError):
        logger.error(
            f"SQLAlchemy error: {request.method} {request.url.path}",
            exc_info=True,
        )
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"msg": GENERIC_ERROR_MESSAGE},
        )

    @app.exception_handler(Exception)
    async def generic_exception_handler(request: Request, exc: Exception):
        """Handle all other exceptions."""
        logger.error(
            f"Unhandled exception: {request.method} {request.url.path} - "
            f"{type(exc).__name__}: {sanitize_error_message(str(exc))}",
            exc_info=True,
        )
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"msg": GENERIC_ERROR_MESSAGE},
        )
