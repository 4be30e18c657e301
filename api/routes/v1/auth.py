"""
Authentication endpoints.

Provides:
- Registration with email verification
- Login/logout with signed session cookies
- Profile and password updates for the signed-in user
"""

import logging
from typing import Optional

from fastapi import APIRouter, Body, Depends, Query, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from api.dependencies import (
    get_client_ip,
    get_db,
    get_email_service,
    get_request_origin,
    get_user_agent,
    require_user,
)
from api.schemas.auth import (
    LoginRequest,
    RegisterRequest,
    ResendVerificationRequest,
    UpdatePasswordRequest,
    UpdateUserRequest,
    VerifyEmailRequest,
)
from api.services import users as user_service
from core.integrations.email import EmailService
from core.security import TokenUser, attach_cookies_to_response, clear_auth_cookies

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["authentication"])


@router.post(
    "/register",
    status_code=status.HTTP_201_CREATED,
    summary="Register",
    description="Create an unverified talent or employer account and send a verification email.",
)
async def register(
    data: RegisterRequest,
    db: AsyncSession = Depends(get_db),
    mailer: EmailService = Depends(get_email_service),
    origin: str = Depends(get_request_origin),
):
    return await user_service.register(db, data, mailer, origin)


@router.post("/login", summary="Login")
async def login(
    data: LoginRequest,
    response: Response,
    db: AsyncSession = Depends(get_db),
    ip: Optional[str] = Depends(get_client_ip),
    user_agent: Optional[str] = Depends(get_user_agent),
):
    """Check credentials and set the session cookies."""
    token_user, refresh_token = await user_service.login(db, data, ip, user_agent)
    attach_cookies_to_response(response, token_user, refresh_token)
    return {"tokenUser": token_user.model_dump(by_alias=True)}


@router.get("/logout", summary="Logout")
async def logout(response: Response):
    clear_auth_cookies(response)
    return {"msg": "user logged out!"}


@router.api_route("/verify-Email", methods=["GET", "POST"], summary="Verify Email")
async def verify_email(
    verification_token: Optional[str] = Query(None, alias="verificationToken"),
    email: Optional[str] = Query(None),
    body: Optional[VerifyEmailRequest] = Body(None),
    db: AsyncSession = Depends(get_db),
):
    """Consume a verification token given in the query string or JSON body."""
    if body is not None:
        verification_token = body.verification_token or verification_token
        email = body.email or email
    return await user_service.verify_email(db, email, verification_token)


@router.post("/resend-verification", summary="Resend Verification Email")
async def resend_verification(
    data: ResendVerificationRequest,
    db: AsyncSession = Depends(get_db),
    mailer: EmailService = Depends(get_email_service),
    origin: str = Depends(get_request_origin),
):
    return await user_service.resend_verification(db, data.email, mailer, origin)


@router.patch("/updateUser", summary="Update Current User")
async def update_user(
    data: UpdateUserRequest,
    response: Response,
    current_user: TokenUser = Depends(require_user),
    db: AsyncSession = Depends(get_db),
):
    """Change email and name, then reissue the session cookies."""
    token_user = await user_service.update_user(db, current_user, data)
    attach_cookies_to_response(response, token_user)
    return {"user": token_user.model_dump(by_alias=True)}


@router.get("/showCurrentUser", summary="Show Current User")
async def show_current_user(current_user: TokenUser = Depends(require_user)):
    return {"user": current_user.model_dump(by_alias=True)}


@router.patch("/updateUserPassword", summary="Update Password")
async def update_user_password(
    data: UpdatePasswordRequest,
    current_user: TokenUser = Depends(require_user),
    db: AsyncSession = Depends(get_db),
):
    return await user_service.update_user_password(db, current_user, data)
