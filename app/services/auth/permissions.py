from app.core.exceptions import Forbidden
from app.models.auth.token import Principal
from app.models.auth.user import UserRole


def require_role(principal: Principal, *roles: UserRole) -> Principal:
    """Raise Forbidden unless the principal holds one of the roles"""
    if principal.role not in roles:
        raise Forbidden("You do not have permission to perform this action")
    return principal


def require_ownership(principal: Principal, owner_email: str) -> Principal:
    """Raise Forbidden unless the principal is the resource owner"""
    if not owner_email or principal.email.lower() != owner_email.lower():
        raise Forbidden("You can only access your own resources")
    return principal


def is_owner_or_admin(principal: Principal, owner_email: str) -> bool:
    if principal.is_admin:
        return True
    return bool(owner_email) and principal.email.lower() == owner_email.lower()
