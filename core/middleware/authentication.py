"""
Authentication middleware for cookie-based sessions.

This middleware:
1. Reads the signed ``accessToken`` cookie
2. Verifies the cookie signature and the JWT inside it
3. Loads the token-user projection into the request state
4. Rejects protected routes when any of the above fails
"""

import logging
from typing import Callable, Optional

import jwt
from fastapi import Request, status
from fastapi.responses import JSONResponse
from pydantic import ValidationError

from core.errors import UnauthenticatedError
from core.security import (
    ACCESS_TOKEN_COOKIE,
    TokenUser,
    unsign_cookie_value,
    verify_jwt_token,
)

logger = logging.getLogger(__name__)

AUTHENTICATION_INVALID = "Authentication Invalid"

# Public endpoints that don't require authentication (relative to the API prefix)
PUBLIC_ENDPOINTS = [
    "/auth/register",
    "/auth/login",
    "/auth/logout",
    "/auth/verify-Email",
    "/auth/resend-verification",
]

# Public prefixes (relative to the API prefix)
PUBLIC_API_PREFIXES = [
    "/organization/public",
]

# Public paths outside the API prefix
PUBLIC_PATHS = ["/", "/health", "/ready", "/docs", "/redoc", "/openapi.json"]
PUBLIC_PATH_PREFIXES = ["/docs", "/redoc"]


class TokenInvalidError(Exception):
    """Raised when the session cookie is missing, tampered with or expired."""


def decode_session_cookie(cookie_value: Optional[str]) -> TokenUser:
    """
    Turn a signed access-token cookie into the token-user projection.

    Raises:
        TokenInvalidError: On a missing cookie, bad signature or bad JWT
    """
    if not cookie_value:
        raise TokenInvalidError("No session cookie")

    token = unsign_cookie_value(cookie_value)
    if token is None:
        raise TokenInvalidError("Cookie signature mismatch")

    try:
        payload = verify_jwt_token(token)
    except jwt.ExpiredSignatureError:
        raise TokenInvalidError("Token has expired")
    except jwt.InvalidTokenError as e:
        raise TokenInvalidError(f"Invalid token: {e}")

    try:
        return TokenUser.model_validate(payload.get("user") or {})
    except ValidationError:
        raise TokenInvalidError("Token payload missing user")


class AuthenticationMiddleware:
    """
    Populates ``request.state.user`` from the session cookie.

    Public endpoints pass through (with the user attached if a valid cookie
    happens to be present); every other path answers 401 without one.
    """

    def __init__(self, app: Callable, api_prefix: str = "/api/v1"):
        """
        Args:
            app: ASGI application
            api_prefix: Prefix under which the versioned API is mounted
        """
        self.app = app
        self.api_prefix = api_prefix.rstrip("/")

    async def __call__(self, scope: dict, receive: Callable, send: Callable) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        request = Request(scope)
        path = request.url.path
        is_public = self._is_public_endpoint(path)

        try:
            token_user = decode_session_cookie(request.cookies.get(ACCESS_TOKEN_COOKIE))
        except TokenInvalidError as e:
            if is_public:
                await self.app(scope, receive, send)
                return
            logger.info(f"Rejected unauthenticated request to {path}: {e}")
            response = JSONResponse(
                status_code=status.HTTP_401_UNAUTHORIZED,
                content={"msg": AUTHENTICATION_INVALID},
            )
            await response(scope, receive, send)
            return

        scope.setdefault("state", {})["user"] = token_user
        await self.app(scope, receive, send)

    def _is_public_endpoint(self, path: str) -> bool:
        """
        Check if endpoint is public (no auth required).

        Args:
            path: Request path

        Returns:
            True if endpoint is public
        """
        if path in PUBLIC_PATHS:
            return True
        if any(path.startswith(prefix) for prefix in PUBLIC_PATH_PREFIXES):
            return True

        # Nothing outside the API prefix reads a session; routing 404s the rest
        if not path.startswith(self.api_prefix):
            return True
        relative = path[len(self.api_prefix):].rstrip("/")
        if relative in PUBLIC_ENDPOINTS:
            return True
        return any(relative.startswith(prefix) for prefix in PUBLIC_API_PREFIXES)


def get_current_user(request: Request) -> TokenUser:
    """
    Get the authenticated token-user from the request state.

    Raises:
        UnauthenticatedError: If no session was attached
    """
    user = getattr(request.state, "user", None)
    if user is None:
        raise UnauthenticatedError(AUTHENTICATION_INVALID)
    return user
