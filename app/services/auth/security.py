from jose import JWTError, jwt
from datetime import datetime, timedelta
from typing import Optional

import structlog

from app.config import settings
from app.models.auth.token import Principal
from app.models.auth.user import UserRole

log = structlog.get_logger(__name__)


class SecurityService:
    """Service for signing and verifying session tokens"""

    def __init__(
        self,
        secret_key: str = settings.access_token_secret,
        algorithm: str = settings.algorithm,
        expire_days: int = settings.access_token_expire_days
    ):
        self.secret_key = secret_key
        self.algorithm = algorithm
        self.expire_days = expire_days

    def create_access_token(self, email: str, role: str, expires_delta: Optional[timedelta] = None) -> str:
        """Create JWT access token carrying email and role"""
        role_value = role.value if isinstance(role, UserRole) else role
        expire = datetime.utcnow() + (expires_delta or timedelta(days=self.expire_days))
        to_encode = {
            "sub": email,
            "email": email,
            "role": role_value,
            "exp": expire,
            "type": "access"
        }
        return jwt.encode(to_encode, self.secret_key, algorithm=self.algorithm)

    def verify_token(self, token: Optional[str]) -> Optional[Principal]:
        """Verify and decode JWT token; any failure yields None"""
        if not token:
            return None
        try:
            payload = jwt.decode(token, self.secret_key, algorithms=[self.algorithm])
        except JWTError as e:
            log.info("token_rejected", reason=str(e))
            return None

        if payload.get("type") != "access":
            return None

        email = payload.get("email") or payload.get("sub")
        role = payload.get("role")
        if not email or role not in {r.value for r in UserRole}:
            return None

        return Principal(email=email, role=role)


security_service = SecurityService()
