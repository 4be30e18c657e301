"""
Security utilities for authentication.

Provides:
- bcrypt password hashing and verification
- Random verification and refresh token generation
- JWT creation and validation (PyJWT)
- HMAC-signed session cookies carrying the access and refresh JWTs
"""

import base64
import hashlib
import hmac
import logging
import secrets
from datetime import datetime, timedelta, timezone
from typing import Any, Optional

import bcrypt
import jwt
from fastapi import Response
from pydantic import BaseModel, ConfigDict, Field

from core.config import settings

logger = logging.getLogger(__name__)

ACCESS_TOKEN_COOKIE = "accessToken"
REFRESH_TOKEN_COOKIE = "refreshToken"
LOGOUT_SENTINEL = "logout"

_SIGNED_PREFIX = "s:"


class TokenUser(BaseModel):
    """Minimal identity embedded in session tokens. Never carries the password."""

    model_config = ConfigDict(populate_by_name=True)

    name: str
    user_id: str = Field(alias="userId")
    role: str


def create_token_user(user: Any) -> TokenUser:
    """Build the token-user projection from a user row."""
    role = getattr(user.role, "value", user.role)
    return TokenUser(name=user.name, user_id=str(user.id), role=role)


# ==================== Passwords ==================== #

# bcrypt refuses longer inputs
MAX_PASSWORD_BYTES = 72


def password_too_long(password: str) -> bool:
    return len(password.encode("utf-8")) > MAX_PASSWORD_BYTES


def hash_password(password: str, rounds: Optional[int] = None) -> str:
    """Hash a password using bcrypt with the configured cost factor."""
    salt = bcrypt.gensalt(rounds=rounds or settings.bcrypt_rounds)
    return bcrypt.hashpw(password.encode("utf-8"), salt).decode("utf-8")


def verify_password(plain_password: str, hashed_password: Optional[str]) -> bool:
    """Verify a password against its bcrypt hash."""
    if not plain_password or not hashed_password:
        return False
    try:
        return bcrypt.checkpw(
            plain_password.encode("utf-8"), hashed_password.encode("utf-8")
        )
    except ValueError:
        logger.warning("Stored password hash is malformed")
        return False


# ==================== Random tokens ==================== #

def generate_verification_token() -> str:
    """Random hex token for email verification links."""
    return secrets.token_hex(40)


def generate_refresh_token() -> str:
    """Opaque random value stored in refresh-token records."""
    return secrets.token_hex(40)


# ==================== JWT ==================== #

def create_jwt(
    payload: dict[str, Any],
    secret_key: Optional[str] = None,
    algorithm: Optional[str] = None,
    expires_delta: Optional[timedelta] = None,
) -> str:
    """
    Create a signed JWT.

    Args:
        payload: Claims to embed
        secret_key: Signing secret (defaults to JWT_SECRET)
        algorithm: Signing algorithm (defaults to JWT_ALGORITHM)
        expires_delta: Lifetime (defaults to JWT_LIFETIME_HOURS)

    Returns:
        Encoded token
    """
    if not payload:
        raise ValueError("JWT payload is empty")

    now = datetime.now(timezone.utc)
    if expires_delta is None:
        expires_delta = timedelta(hours=settings.jwt_lifetime_hours)

    to_encode = dict(payload)
    to_encode.update({"iat": now, "exp": now + expires_delta})
    return jwt.encode(
        to_encode,
        secret_key or settings.jwt_secret,
        algorithm=algorithm or settings.jwt_algorithm,
    )


def verify_jwt_token(
    token: str,
    secret_key: Optional[str] = None,
    algorithm: Optional[str] = None,
) -> dict[str, Any]:
    """
    Decode and verify a JWT.

    Raises:
        jwt.ExpiredSignatureError: If the token has expired
        jwt.InvalidTokenError: If the token is malformed or the signature fails
    """
    return jwt.decode(
        token,
        secret_key or settings.jwt_secret,
        algorithms=[algorithm or settings.jwt_algorithm],
    )


# ==================== Signed cookies ==================== #

def _cookie_signature(value: str, secret: str) -> str:
    digest = hmac.new(
        secret.encode("utf-8"), value.encode("utf-8"), hashlib.sha256
    ).digest()
    return base64.urlsafe_b64encode(digest).decode("ascii").rstrip("=")


def sign_cookie_value(value: str, secret: Optional[str] = None) -> str:
    """Sign a cookie value as ``s:<value>.<signature>``."""
    secret = secret or settings.cookie_signing_key
    return f"{_SIGNED_PREFIX}{value}.{_cookie_signature(value, secret)}"


def unsign_cookie_value(signed: Optional[str], secret: Optional[str] = None) -> Optional[str]:
    """
    Verify a signed cookie value.

    Returns:
        The original value, or None if the cookie is unsigned or tampered with
    """
    if not signed or not signed.startswith(_SIGNED_PREFIX):
        return None

    body = signed[len(_SIGNED_PREFIX):]
    value, sep, signature = body.rpartition(".")
    if not sep or not value:
        return None

    secret = secret or settings.cookie_signing_key
    if not hmac.compare_digest(signature, _cookie_signature(value, secret)):
        return None
    return value


def attach_cookies_to_response(
    response: Response,
    token_user: TokenUser,
    refresh_token: Optional[str] = None,
) -> None:
    """
    Set the access and refresh cookies on a response.

    The access token embeds the token-user projection; the refresh token embeds
    the projection plus the refresh value from the user's refresh-token record.
    """
    user_claims = token_user.model_dump(by_alias=True)
    lifetime = timedelta(hours=settings.jwt_lifetime_hours)

    access_jwt = create_jwt({"user": user_claims}, expires_delta=lifetime)
    refresh_payload: dict[str, Any] = {"user": user_claims}
    if refresh_token:
        refresh_payload["refreshToken"] = refresh_token
    refresh_jwt = create_jwt(refresh_payload, expires_delta=lifetime)

    max_age = int(lifetime.total_seconds())
    for name, value in (
        (ACCESS_TOKEN_COOKIE, access_jwt),
        (REFRESH_TOKEN_COOKIE, refresh_jwt),
    ):
        response.set_cookie(
            key=name,
            value=sign_cookie_value(value),
            max_age=max_age,
            expires=max_age,
            httponly=True,
            secure=settings.is_production,
            samesite="lax",
        )


def clear_auth_cookies(response: Response) -> None:
    """Overwrite both session cookies with a sentinel that expires immediately."""
    for name in (ACCESS_TOKEN_COOKIE, REFRESH_TOKEN_COOKIE):
        response.set_cookie(
            key=name,
            value=LOGOUT_SENTINEL,
            expires=1,
            httponly=True,
            secure=settings.is_production,
            samesite="lax",
        )
