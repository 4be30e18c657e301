"""FastAPI dependencies for dependency injection."""

from functools import lru_cache
from typing import Optional

from fastapi import Request

from core.config import settings
from core.integrations.email import EmailService
from core.middleware.authentication import get_current_user
from core.middleware.authorization import authorize_roles
from core.security import TokenUser
from core.storage.local import LocalStorage
from database.engine import get_db
from database.models.users import UserRole

__all__ = [
    "get_db",
    "require_user",
    "require_talent",
    "require_employer",
    "get_email_service",
    "get_cv_storage",
    "get_request_origin",
    "get_client_ip",
    "get_user_agent",
]


async def require_user(request: Request) -> TokenUser:
    """Require an authenticated user of any role."""
    return get_current_user(request)


require_talent = authorize_roles(UserRole.TALENT)
require_employer = authorize_roles(UserRole.EMPLOYER)


@lru_cache
def get_email_service() -> EmailService:
    """Process-wide mail service, built once from settings."""
    return EmailService()


@lru_cache
def get_cv_storage() -> LocalStorage:
    return LocalStorage(base_path=settings.upload_dir)


def get_request_origin(request: Request) -> str:
    """Origin used to build links in outgoing emails."""
    return request.headers.get("origin") or settings.frontend_origin


def get_client_ip(request: Request) -> Optional[str]:
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return request.client.host if request.client else None


def get_user_agent(request: Request) -> Optional[str]:
    return request.headers.get("user-agent")
