from pydantic import BaseModel
from app.models.auth.user import UserRole


class Principal(BaseModel):
    """Authenticated identity attached to a request (token claims)"""
    email: str
    role: UserRole = UserRole.USER

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN
