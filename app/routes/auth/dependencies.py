from typing import Optional
from fastapi import Depends, Request

from app.config import settings
from app.core.exceptions import Forbidden, Unauthenticated
from app.database import Database, get_database
from app.models.auth.token import Principal
from app.models.auth.user import UserRole
from app.services.auth.permissions import require_role
from app.services.auth.security import security_service
from app.services.auth.user import UserService


def _token_from_request(request: Request) -> Optional[str]:
    return request.cookies.get(settings.cookie_name)


async def get_optional_principal(request: Request) -> Optional[Principal]:
    """Principal from the session cookie, or None for anonymous callers"""
    return security_service.verify_token(_token_from_request(request))


async def get_current_principal(request: Request) -> Principal:
    """Authenticated principal; absent or invalid token is rejected"""
    token = _token_from_request(request)
    if not token:
        raise Unauthenticated("Unauthorized")

    principal = security_service.verify_token(token)
    if principal is None:
        raise Unauthenticated("Invalid token")
    return principal


async def require_creator(principal: Principal = Depends(get_current_principal)) -> Principal:
    """Creator-capable users (creators and admins), trusted from the token"""
    return require_role(principal, UserRole.CREATOR, UserRole.ADMIN)


async def require_admin(
    principal: Principal = Depends(get_current_principal),
    database: Database = Depends(get_database)
) -> Principal:
    """
    Admin check for irreversible actions: the token claim must say admin and
    the stored user must still be an admin.
    """
    require_role(principal, UserRole.ADMIN)

    user = await UserService(database).get_by_email(principal.email)
    if not user or user.get("role") != UserRole.ADMIN.value:
        raise Forbidden("Admin access revoked")
    return principal
