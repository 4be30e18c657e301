"""
Core middleware package.

This package provides the HTTP boundary components:
- Error handling with sensitive data sanitization
- Structured logging with credential and PII masking
- Redis-based rate limiting for authentication endpoints
- Cookie-based session authentication
- Role gates and ownership checks
"""

from core.middleware.error_handling import (
    ErrorHandlingMiddleware,
    setup_error_handlers,
    sanitize_error_message,
)

from core.middleware.logging import (
    StructuredLoggingMiddleware,
    setup_logging,
)

from core.middleware.rate_limiting import (
    RateLimitMiddleware,
    RateLimitRule,
    RateLimitWindow,
    SlidingWindowRateLimiter,
    default_auth_rules,
)

from core.middleware.authentication import (
    AuthenticationMiddleware,
    get_current_user,
)

from core.middleware.authorization import (
    authorize_roles,
    check_permissions,
)

__all__ = [
    # Error handling
    "ErrorHandlingMiddleware",
    "setup_error_handlers",
    "sanitize_error_message",
    # Logging
    "StructuredLoggingMiddleware",
    "setup_logging",
    # Rate limiting
    "RateLimitMiddleware",
    "RateLimitRule",
    "RateLimitWindow",
    "SlidingWindowRateLimiter",
    "default_auth_rules",
    # Authentication
    "AuthenticationMiddleware",
    "get_current_user",
    # Authorization
    "authorize_roles",
    "check_permissions",
]
