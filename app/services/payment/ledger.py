"""
Registration & Payment Ledger

One payment per (contest, payer). The contest document is the serialization
point: the payer is claimed onto `contest.registrants` and the participant
counter is incremented in one conditional update, so two identical
concurrent registrations cannot both succeed.
"""
from typing import Optional, Dict, List
from datetime import datetime

import structlog
from pymongo.errors import DuplicateKeyError

from app.core.exceptions import Conflict, DuplicateRegistration, NotFound, ValidationFailed
from app.database import Database
from app.models.contest.contest import ContestStatus
from app.services.auth.user import normalize_email


log = structlog.get_logger(__name__)


class LedgerService:
    """Records registrations (payments) and keeps participant bookkeeping in sync"""

    def __init__(self, database: Database):
        self.payments = database.payments
        self.contests = database.contests
        self.users = database.users

    async def find_payment(self, contest_id: str, email: str) -> Optional[Dict]:
        return await self.payments.get_by({"contest_id": contest_id, "email": normalize_email(email)})

    async def is_registered(self, contest_id: str, email: str) -> bool:
        return await self.find_payment(contest_id, email) is not None

    async def register(
        self,
        contest_id: str,
        payer_email: str,
        amount: float,
        transaction_id: Optional[str] = None
    ) -> Dict:
        """
        Register payer for contest.

        Write sequence after the claim: insert payment, then add the contest
        to the user's participated set. A failure after the claim is not
        compensated and surfaces as a server error.
        """
        payer_email = normalize_email(payer_email)
        if not contest_id or not payer_email or amount is None:
            raise ValidationFailed("Missing payment data")
        if amount <= 0:
            raise ValidationFailed("Amount must be greater than zero")

        contest = await self.contests.get(contest_id)
        if not contest:
            raise NotFound("Contest not found")
        contest_id = str(contest["_id"])

        if await self.find_payment(contest_id, payer_email):
            log.warning("registration_duplicate", contest_id=contest_id, email=payer_email)
            raise DuplicateRegistration()

        claimed = await self.contests.compare_and_set(
            {
                "_id": contest["_id"],
                "status": ContestStatus.CONFIRMED.value,
                "registrants": {"$ne": payer_email}
            },
            {
                "$addToSet": {"registrants": payer_email},
                "$inc": {"participants": 1},
                "$set": {"updated_at": datetime.utcnow()}
            }
        )
        if not claimed:
            fresh = await self.contests.get(contest_id)
            if fresh and payer_email in fresh.get("registrants", []):
                log.warning("registration_duplicate", contest_id=contest_id, email=payer_email)
                raise DuplicateRegistration()
            log.warning("registration_closed", contest_id=contest_id, status=(fresh or {}).get("status"))
            raise Conflict("Contest is not open for registration")

        payment = {
            "contest_id": contest_id,
            "email": payer_email,
            "amount": float(amount),
            "transaction_id": transaction_id,
            "created_at": datetime.utcnow()
        }
        try:
            await self.payments.insert(payment)
        except DuplicateKeyError:
            # Payment recorded by a writer that bypassed the contest claim
            raise DuplicateRegistration()

        await self.users.update_where(
            {"email": payer_email},
            {"$addToSet": {"participated_contests": contest_id}}
        )

        log.info("registration_recorded", contest_id=contest_id, email=payer_email, amount=payment["amount"])
        return payment

    async def payments_for_user(self, email: str) -> List[Dict]:
        return await self.payments.find_all({"email": normalize_email(email)}, sort=[("created_at", -1)])

    async def payments_for_contest(self, contest_id: str) -> List[Dict]:
        return await self.payments.find_all({"contest_id": contest_id}, sort=[("created_at", 1)])
