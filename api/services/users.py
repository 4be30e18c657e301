"""
User service functions for the authentication endpoints.

Covers registration, email verification, login with refresh-token reuse,
and the authenticated profile/password updates.
"""

from typing import Any, Dict, Optional
import hmac
import logging

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from starlette.concurrency import run_in_threadpool

from api.schemas.auth import (
    LoginRequest,
    RegisterRequest,
    UpdatePasswordRequest,
    UpdateUserRequest,
)
from core.config import settings
from core.errors import BadRequestError, ConflictError, UnauthenticatedError
from core.integrations.email import EmailService
from core.security import (
    TokenUser,
    create_token_user,
    generate_refresh_token,
    generate_verification_token,
    hash_password,
    password_too_long,
    verify_password,
)
from core.utils.datetime import add_minutes, is_past, now, to_iso
from core.utils.validators import normalize_email
from database.models.users import RefreshToken, User, UserRole

logger = logging.getLogger(__name__)

INVALID_CREDENTIALS = "Invalid Credentials"
PASSWORD_TOO_LONG = "Password is too long"


async def get_user_by_email(db: AsyncSession, email: Optional[str]) -> Optional[User]:
    if not email:
        return None
    result = await db.execute(select(User).where(User.email == normalize_email(email)))
    return result.scalar_one_or_none()


async def get_user_by_id(db: AsyncSession, user_id: int | str) -> Optional[User]:
    return await db.get(User, int(user_id))


def serialize_user_summary(user: User) -> Dict[str, Any]:
    """Public profile fields. Never includes the password hash or tokens."""
    return {
        "id": user.id,
        "name": user.name,
        "lastName": user.last_name,
        "email": user.email,
        "phone": user.phone,
        "role": user.role.value,
        "location": {"country": user.location_country, "city": user.location_city},
        "profileImage": user.profile_image,
        "isVerified": user.is_verified,
        "createdAt": to_iso(user.created_at),
    }


def _issue_verification_token(user: User) -> None:
    user.verification_token = generate_verification_token()
    user.verification_token_expires = add_minutes(
        now(), settings.verification_token_ttl_minutes
    )


async def _send_verification(mailer: EmailService, user: User, origin: str) -> None:
    # Delivery failures are logged; the user record stays as written
    sent = await run_in_threadpool(
        mailer.send_verification_email,
        user.name,
        user.email,
        user.verification_token,
        origin,
    )
    if not sent:
        logger.warning(f"Verification email for user {user.id} could not be delivered")


async def register(
    db: AsyncSession,
    data: RegisterRequest,
    mailer: EmailService,
    origin: str,
) -> Dict[str, str]:
    """
    Create an unverified account and mail its verification link.

    Raises:
        BadRequestError: A required field is missing
        ConflictError: The email is already registered
    """
    location = data.location
    if not all(
        [
            data.name,
            data.email,
            data.password,
            data.last_name,
            location and location.country,
            location and location.city,
            data.role,
            data.phone,
        ]
    ):
        raise BadRequestError("Please provide all the values")

    if data.role == UserRole.EMPLOYER and not all(
        [data.company_name, data.company_size, data.industry]
    ):
        raise BadRequestError(
            "Employer must provide companyName, companySize, and industry"
        )

    if password_too_long(data.password):
        raise BadRequestError(PASSWORD_TOO_LONG)

    if await get_user_by_email(db, data.email):
        raise ConflictError("Email already exists")

    is_employer = data.role == UserRole.EMPLOYER
    user = User(
        name=data.name,
        email=normalize_email(data.email),
        password=await run_in_threadpool(hash_password, data.password),
        last_name=data.last_name,
        role=data.role,
        phone=data.phone,
        location_country=location.country,
        location_city=location.city,
        company_name=data.company_name if is_employer else None,
        company_size=data.company_size if is_employer else None,
        industry=data.industry if is_employer else None,
        is_verified=False,
    )
    _issue_verification_token(user)
    db.add(user)
    await db.commit()

    logger.info(f"Registered {user.role.value} account {user.id}")
    await _send_verification(mailer, user, origin)

    return {"msg": "Success! Please check your email to verify your account"}


async def verify_email(
    db: AsyncSession, email: Optional[str], verification_token: Optional[str]
) -> Dict[str, str]:
    """
    Consume a verification token. Tokens are single use.

    Raises:
        UnauthenticatedError: Unknown email, expired token or token mismatch
    """
    user = await get_user_by_email(db, email)
    if not user:
        raise UnauthenticatedError("Please provide valid email address")

    if user.verification_token_expires is None or is_past(user.verification_token_expires):
        raise UnauthenticatedError("Verification token expired. Please request a new one.")

    if not verification_token or not user.verification_token or not hmac.compare_digest(
        verification_token, user.verification_token
    ):
        raise UnauthenticatedError("Verification Failed")

    user.is_verified = True
    user.verified_at = now()
    user.verification_token = None
    user.verification_token_expires = None
    await db.commit()

    logger.info(f"User {user.id} verified their email")
    return {"msg": "Email Verified"}


async def resend_verification(
    db: AsyncSession,
    email: Optional[str],
    mailer: EmailService,
    origin: str,
) -> Dict[str, str]:
    """
    Replace the pending verification token and mail it again.

    Raises:
        BadRequestError: No email given, or the account is already verified
        UnauthenticatedError: No account for the email
    """
    if not email:
        raise BadRequestError("Please provide email")

    user = await get_user_by_email(db, email)
    if not user:
        raise UnauthenticatedError("No account found with this email")
    if user.is_verified:
        raise BadRequestError("Account already verified")

    _issue_verification_token(user)
    await db.commit()
    await _send_verification(mailer, user, origin)

    return {"msg": "Verification email resent. Please check your inbox."}


async def login(
    db: AsyncSession,
    data: LoginRequest,
    ip: Optional[str] = None,
    user_agent: Optional[str] = None,
) -> tuple[TokenUser, str]:
    """
    Check credentials and resolve the refresh value for the session cookies.

    The most recent refresh-token record is reused while valid; an invalidated
    record blocks login. Without a record a new one is created for this client.

    Returns:
        Tuple of (token_user, refresh_token)

    Raises:
        BadRequestError: Email or password missing
        UnauthenticatedError: Unknown user, wrong password, unverified account,
            or an invalidated refresh token
    """
    if not data.email or not data.password:
        raise BadRequestError("Please provide email and password")

    user = await get_user_by_email(db, data.email)
    if not user:
        raise UnauthenticatedError(INVALID_CREDENTIALS)

    if not await run_in_threadpool(verify_password, data.password, user.password):
        raise UnauthenticatedError(INVALID_CREDENTIALS)

    if not user.is_verified:
        raise UnauthenticatedError("Please verify your email")

    token_user = create_token_user(user)

    result = await db.execute(
        select(RefreshToken)
        .where(RefreshToken.user_id == user.id)
        .order_by(RefreshToken.created_at.desc(), RefreshToken.id.desc())
        .limit(1)
    )
    existing = result.scalar_one_or_none()

    if existing is not None:
        if not existing.is_valid:
            logger.warning(f"Login blocked for user {user.id}: refresh token invalidated")
            raise UnauthenticatedError(INVALID_CREDENTIALS)
        return token_user, existing.refresh_token

    record = RefreshToken(
        refresh_token=generate_refresh_token(),
        user_id=user.id,
        is_valid=True,
        ip=ip,
        user_agent=user_agent,
    )
    db.add(record)
    await db.commit()

    logger.info(f"User {user.id} logged in")
    return token_user, record.refresh_token


async def update_user(
    db: AsyncSession, identity: TokenUser, data: UpdateUserRequest
) -> TokenUser:
    """
    Change the caller's email and name.

    Returns:
        The refreshed token-user projection
    """
    if not data.email or not data.name:
        raise BadRequestError("Please provide all values")

    user = await get_user_by_id(db, identity.user_id)
    if not user:
        raise UnauthenticatedError("Authentication Invalid")

    email = normalize_email(data.email)
    if email != user.email:
        other = await get_user_by_email(db, email)
        if other and other.id != user.id:
            raise ConflictError("Email already exists")

    user.email = email
    user.name = data.name
    await db.commit()

    return create_token_user(user)


async def update_user_password(
    db: AsyncSession, identity: TokenUser, data: UpdatePasswordRequest
) -> Dict[str, str]:
    if not data.old_password or not data.new_password:
        raise BadRequestError("Please provide both values")
    if data.old_password == data.new_password:
        raise BadRequestError("New password must be different from the old password")
    if password_too_long(data.new_password):
        raise BadRequestError(PASSWORD_TOO_LONG)

    user = await get_user_by_id(db, identity.user_id)
    if not user:
        raise UnauthenticatedError("Authentication Invalid")

    if not await run_in_threadpool(verify_password, data.old_password, user.password):
        raise UnauthenticatedError(INVALID_CREDENTIALS)

    user.password = await run_in_threadpool(hash_password, data.new_password)
    await db.commit()

    logger.info(f"User {user.id} changed their password")
    return {"msg": "Success! Password Updated."}
