from typing import Optional, Dict, List
from datetime import datetime

import structlog

from app.core.exceptions import AlreadyDecided, Forbidden, NotFound, ValidationFailed
from app.database import Database
from app.models.auth.token import Principal
from app.models.contest.contest import ContestStatus, WinnerSnapshot
from app.services.auth.permissions import is_owner_or_admin
from app.services.contest.lifecycle import ContestLifecycle


log = structlog.get_logger(__name__)


class SubmissionService:
    """Task submissions and winner declaration"""

    def __init__(self, database: Database):
        self.submissions = database.submissions
        self.contests = database.contests
        self.users = database.users

    async def create_submission(
        self,
        contest_id: str,
        principal: Principal,
        content: str,
        user_name: Optional[str] = None
    ) -> Dict:
        """Record a submission; multiple submissions per user are allowed"""
        if not content or not content.strip():
            raise ValidationFailed("Submission content is required")

        contest = await self.contests.get(contest_id)
        if not contest:
            raise NotFound("Contest not found")
        contest_id = str(contest["_id"])

        submission = {
            "contest_id": contest_id,
            "user_email": principal.email,
            "user_name": user_name,
            "content": content.strip(),
            "submitted_at": datetime.utcnow(),
            "is_winner": False,
            "declared_at": None
        }
        await self.submissions.insert(submission)
        return submission

    async def get_submission(self, submission_id: str) -> Dict:
        submission = await self.submissions.get(submission_id)
        if not submission:
            raise NotFound("Submission not found")
        return submission

    async def get_contest_submissions(self, contest_id: str, principal: Principal) -> List[Dict]:
        """Entries for a contest; visible to its creator and admins"""
        contest = await self.contests.get(contest_id)
        if not contest:
            raise NotFound("Contest not found")
        if not is_owner_or_admin(principal, contest.get("creator_email")):
            raise Forbidden("Only the contest creator can view submissions")

        return await self.submissions.find_all(
            {"contest_id": str(contest["_id"])},
            sort=[("submitted_at", -1)]
        )

    async def get_user_submissions(self, email: str) -> List[Dict]:
        return await self.submissions.find_all({"user_email": email}, sort=[("submitted_at", -1)])

    async def declare_winner(self, submission_id: str, principal: Principal) -> Dict:
        """
        Declare a submission the winner of its contest.

        The contest document is closed first with a conditional update
        (confirmed and no winner yet -> ended with winner snapshot); only the
        request that wins that update goes on to flag the submission and
        update the user's won contests.
        """
        submission = await self.get_submission(submission_id)
        contest = await self.contests.get(submission["contest_id"])
        if not contest:
            raise NotFound("Contest not found")

        if contest.get("creator_email") != principal.email:
            raise Forbidden("Only the contest creator can declare a winner")

        contest_id = str(contest["_id"])
        if await self.submissions.get_by({"contest_id": contest_id, "is_winner": True}):
            log.warning("winner_already_declared", contest_id=contest_id)
            raise AlreadyDecided()

        winner_user = await self.users.get_by({"email": submission["user_email"]})
        snapshot = WinnerSnapshot.from_user(
            winner_user,
            fallback_email=submission["user_email"],
            fallback_name=submission.get("user_name")
        )
        now = datetime.utcnow()

        closed = await self.contests.compare_and_set(
            {
                "_id": contest["_id"],
                "status": ContestStatus.CONFIRMED.value,
                "winner": None
            },
            {"$set": {
                "status": ContestStatus.ENDED.value,
                "winner": snapshot.model_dump(),
                "winner_submission_id": str(submission["_id"]),
                "declared_at": now,
                "updated_at": now
            }}
        )
        if not closed:
            fresh = await self.contests.get(contest_id) or contest
            if fresh.get("winner") or fresh.get("status") == ContestStatus.ENDED.value:
                log.warning("winner_already_declared", contest_id=contest_id)
                raise AlreadyDecided()
            ContestLifecycle.ensure_transition(fresh.get("status"), ContestStatus.ENDED)
            raise AlreadyDecided()

        await self.submissions.update_many({"contest_id": contest_id}, {"$set": {"is_winner": False}})
        await self.submissions.update_one(
            submission["_id"],
            {"$set": {"is_winner": True, "declared_at": now}}
        )
        await self.users.update_where(
            {"email": submission["user_email"]},
            {"$addToSet": {"won_contests": contest_id}}
        )

        log.info("winner_declared", contest_id=contest_id, submission_id=str(submission["_id"]), winner=snapshot.email)
        submission.update({"is_winner": True, "declared_at": now})
        return {"submission": submission, "contest": closed}
