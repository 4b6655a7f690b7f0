from typing import Optional, Dict, List, Tuple
from datetime import datetime

import structlog
from pymongo.errors import DuplicateKeyError

from app.core.exceptions import Forbidden, NotFound, ValidationFailed
from app.database import Database
from app.models.auth.user import UserRole, UserInDB


log = structlog.get_logger(__name__)


def normalize_email(email: Optional[str]) -> str:
    return (email or "").strip().lower()


class UserService:
    """Service for user accounts, roles and profiles"""

    def __init__(self, database: Database):
        self.users = database.users

    async def get_by_email(self, email: str) -> Optional[Dict]:
        """Get user by email"""
        return await self.users.get_by({"email": normalize_email(email)})

    async def require_user(self, email: str) -> Dict:
        user = await self.get_by_email(email)
        if not user:
            raise NotFound("User not found")
        return user

    async def _create(self, email: str, name: Optional[str], photo: Optional[str], bio: Optional[str] = None) -> Dict:
        user = UserInDB(email=email, name=name, photo=photo, bio=bio).model_dump(mode="python")
        user["role"] = UserRole.USER.value
        try:
            await self.users.insert(user)
        except DuplicateKeyError:
            # Created by a concurrent request; the stored one wins
            return await self.get_by_email(email)
        log.info("user_created", email=email)
        return user

    async def upsert_on_login(self, email: str, name: Optional[str] = None, photo: Optional[str] = None) -> Dict:
        """
        Create the user on first sight (role `user`), otherwise fill in
        name/photo from the login provider where the stored value is empty.
        """
        email = normalize_email(email)
        if not email:
            raise ValidationFailed("Email is required")

        existing = await self.get_by_email(email)
        if not existing:
            return await self._create(email, name, photo)

        changes = {}
        if name and not existing.get("name"):
            changes["name"] = name
        if photo and not existing.get("photo"):
            changes["photo"] = photo
        if changes:
            changes["updated_at"] = datetime.utcnow()
            await self.users.update_where({"email": email}, changes)
            existing.update(changes)
        return existing

    async def register(
        self,
        email: str,
        name: Optional[str] = None,
        photo: Optional[str] = None,
        bio: Optional[str] = None
    ) -> Tuple[bool, Dict]:
        """Explicit registration. Returns (created, user)."""
        email = normalize_email(email)
        existing = await self.get_by_email(email)
        if existing:
            return False, existing
        return True, await self._create(email, name, photo, bio)

    async def list_users(self, role: Optional[UserRole] = None) -> List[Dict]:
        query = {"role": role.value} if role else {}
        return await self.users.find_all(query, sort=[("created_at", -1)])

    async def get_role(self, email: str) -> str:
        """Role lookup; unknown users are plain users"""
        user = await self.get_by_email(email)
        if not user:
            return UserRole.USER.value
        return user.get("role") or UserRole.USER.value

    async def set_role(self, email: str, role: UserRole, acting_admin: str) -> Dict:
        """Change a user's role (admin only, checked by the caller)"""
        email = normalize_email(email)
        if email == normalize_email(acting_admin) and role != UserRole.ADMIN:
            raise Forbidden("Admins cannot demote themselves")

        user = await self.users.compare_and_set(
            {"email": email},
            {"$set": {"role": role.value, "updated_at": datetime.utcnow()}}
        )
        if not user:
            raise NotFound("User not found")
        log.info("user_role_changed", email=email, role=role.value, by=acting_admin)
        return user

    async def update_profile(self, email: str, changes: Dict) -> Dict:
        """Update name/photo/bio of the given user"""
        email = normalize_email(email)
        changes = {k: v for k, v in changes.items() if k in ("name", "photo", "bio")}
        if not changes:
            return await self.require_user(email)

        changes["updated_at"] = datetime.utcnow()
        user = await self.users.compare_and_set({"email": email}, {"$set": changes})
        if not user:
            raise NotFound("User not found")
        return user

    async def participated(self, email: str) -> List[str]:
        user = await self.get_by_email(email)
        return list(user.get("participated_contests", [])) if user else []
