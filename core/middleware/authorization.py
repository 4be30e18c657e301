"""
Authorization checks for the talent/employer split and resource ownership.

Two rules only:
1. Route-level role gates (``authorize_roles``)
2. Strict owner equality on mutable resources (``check_permissions``)

There is no role hierarchy and no admin override.
"""

import logging
from typing import Any, Callable

from fastapi import Request

from core.errors import UnauthenticatedError
from core.middleware.authentication import get_current_user
from core.security import TokenUser

logger = logging.getLogger(__name__)

ROLE_NOT_ALLOWED = "Unauthorized to access this route"
NOT_RESOURCE_OWNER = "Not authorized to access this route"


def authorize_roles(*allowed_roles: Any) -> Callable:
    """
    Dependency to require one of the given roles.

    Args:
        allowed_roles: Allowed roles (UserRole members or their string values)

    Returns:
        FastAPI dependency resolving to the authenticated token-user
    """
    allowed = {getattr(role, "value", role) for role in allowed_roles}

    async def dependency(request: Request) -> TokenUser:
        user = get_current_user(request)
        if user.role not in allowed:
            logger.warning(
                f"User {user.user_id} with role {user.role} attempted action "
                f"requiring roles: {sorted(allowed)}"
            )
            raise UnauthenticatedError(ROLE_NOT_ALLOWED)
        return user

    return dependency


def check_permissions(identity: TokenUser, resource_owner_id: Any) -> None:
    """
    Require the caller to own the resource.

    Args:
        identity: Authenticated token-user
        resource_owner_id: Owner id recorded on the resource

    Raises:
        UnauthenticatedError: If ids differ after string normalization
    """
    if str(identity.user_id) == str(resource_owner_id):
        return
    logger.warning(
        f"User {identity.user_id} denied access to resource owned by {resource_owner_id}"
    )
    raise UnauthenticatedError(NOT_RESOURCE_OWNER)
