from typing import Optional, List, Dict
from datetime import datetime
import re

import structlog

from app.core.exceptions import Forbidden, NotFound, InvalidTransition
from app.database import Database, to_object_id
from app.models.auth.token import Principal
from app.models.contest.contest import ContestStatus, ContestCreate, ContestUpdate, CONTENT_FIELDS
from app.services.contest.lifecycle import ContestLifecycle


log = structlog.get_logger(__name__)

SORT_OPTIONS = {
    "participants": [("participants", -1), ("created_at", -1)],
    "newest": [("created_at", -1)],
    "prize": [("prize", -1), ("created_at", -1)],
}

MAX_LIST_LIMIT = 100


class ContestService:
    """Service for contest operations and status changes"""

    def __init__(self, database: Database):
        self.contests = database.contests

    async def create_contest(
        self,
        contest_data: ContestCreate,
        principal: Principal,
        creator_name: Optional[str] = None
    ) -> Dict:
        """Create a new contest; always starts as pending with no participants"""
        now = datetime.utcnow()
        contest = {
            **contest_data.model_dump(),
            "creator_email": principal.email,
            "creator_name": creator_name,
            "participants": 0,
            "registrants": [],
            "status": ContestStatus.PENDING.value,
            "winner": None,
            "winner_submission_id": None,
            "declared_at": None,
            "created_at": now,
            "updated_at": now
        }

        await self.contests.insert(contest)
        log.info("contest_created", contest_id=str(contest["_id"]), creator=principal.email)
        return contest

    async def get_contest(self, contest_id: str) -> Dict:
        contest = await self.contests.get(contest_id)
        if not contest:
            raise NotFound("Contest not found")
        return contest

    async def get_visible_contest(self, contest_id: str, principal: Optional[Principal]) -> Dict:
        """Pending and rejected contests are only visible to their creator and admins"""
        contest = await self.get_contest(contest_id)
        if not ContestLifecycle.is_visible(contest, principal):
            raise NotFound("Contest not found")
        return contest

    async def list_contests(
        self,
        principal: Optional[Principal] = None,
        search: Optional[str] = None,
        sort: Optional[str] = None,
        limit: Optional[int] = None,
        status: Optional[ContestStatus] = None,
        creator_email: Optional[str] = None
    ) -> List[Dict]:
        """List contests the caller may see, with optional search/sort/limit"""
        query = ContestLifecycle.visibility_filter(principal, status=status, creator_email=creator_email)
        if query is None:
            return []

        if search:
            pattern = {"$regex": re.escape(search.strip()), "$options": "i"}
            query["$or"] = [{"name": pattern}, {"type": pattern}]

        if limit is not None:
            limit = max(1, min(int(limit), MAX_LIST_LIMIT))

        return await self.contests.find_all(
            query,
            sort=SORT_OPTIONS.get(sort, SORT_OPTIONS["newest"]),
            limit=limit
        )

    async def get_popular_contests(self, limit: int = 6) -> List[Dict]:
        """Confirmed contests with the most participants"""
        return await self.contests.find_all(
            {"status": ContestStatus.CONFIRMED.value},
            sort=SORT_OPTIONS["participants"],
            limit=limit
        )

    async def update_contest(self, contest_id: str, update_data: ContestUpdate, principal: Principal) -> Dict:
        """Edit content fields (creator only, pending only)"""
        contest = await self.get_contest(contest_id)
        ContestLifecycle.ensure_editable(contest, principal)

        changes = {
            field: value
            for field, value in update_data.model_dump(exclude_unset=True).items()
            if field in CONTENT_FIELDS
        }
        changes["updated_at"] = datetime.utcnow()

        # Conditional on pending: a concurrent approval wins over the edit
        updated = await self.contests.compare_and_set(
            {
                "_id": contest["_id"],
                "status": ContestStatus.PENDING.value,
                "creator_email": principal.email
            },
            {"$set": changes}
        )
        if not updated:
            raise Forbidden("Edit not allowed once the contest has been reviewed")
        return updated

    async def set_status(self, contest_id: str, status: ContestStatus, principal: Principal) -> Dict:
        """Approve or reject a pending contest (admin, checked by the caller)"""
        target = ContestStatus(status)
        if target not in ContestLifecycle.ADMIN_TARGETS:
            raise InvalidTransition(f"Status '{target.value}' cannot be set directly")

        contest = await self.get_contest(contest_id)
        current = contest.get("status")
        ContestLifecycle.ensure_transition(current, target)

        updated = await self.contests.compare_and_set(
            {"_id": contest["_id"], "status": current},
            {"$set": {"status": target.value, "updated_at": datetime.utcnow()}}
        )
        if not updated:
            # Status moved underneath us; report against the fresh value
            fresh = await self.get_contest(contest_id)
            ContestLifecycle.ensure_transition(fresh.get("status"), target)
            raise InvalidTransition("Contest status changed concurrently, please retry")

        log.info("contest_status_changed", contest_id=contest_id, source=current, target=target.value, by=principal.email)
        return updated

    async def delete_contest(self, contest_id: str, principal: Principal) -> bool:
        """Creator deletes while pending; admin deletes at any status"""
        contest = await self.get_contest(contest_id)
        ContestLifecycle.ensure_deletable(contest, principal)

        if principal.is_admin:
            deleted = await self.contests.delete(contest_id)
        else:
            deleted = await self.contests.delete_where({
                "_id": to_object_id(contest_id),
                "status": ContestStatus.PENDING.value
            })
            if not deleted:
                raise Forbidden("Only pending contests can be deleted")

        log.info("contest_deleted", contest_id=contest_id, by=principal.email)
        return deleted
