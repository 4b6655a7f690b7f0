from typing import Dict, FrozenSet, Optional

from app.core.exceptions import Forbidden, InvalidTransition
from app.models.auth.token import Principal
from app.models.contest.contest import ContestStatus, PUBLIC_STATUSES
from app.services.auth.permissions import is_owner_or_admin


class ContestLifecycle:
    """
    Allowed contest status transitions.

        pending   -> confirmed | rejected   (admin)
        confirmed -> ended                  (winner declaration)
        rejected, ended                     (terminal)
    """

    TRANSITIONS: Dict[ContestStatus, FrozenSet[ContestStatus]] = {
        ContestStatus.PENDING: frozenset({ContestStatus.CONFIRMED, ContestStatus.REJECTED}),
        ContestStatus.CONFIRMED: frozenset({ContestStatus.ENDED}),
        ContestStatus.REJECTED: frozenset(),
        ContestStatus.ENDED: frozenset(),
    }

    # Transitions an admin may request directly; `ended` only comes from a winner
    ADMIN_TARGETS = frozenset({ContestStatus.CONFIRMED, ContestStatus.REJECTED})

    @classmethod
    def can_transition(cls, source, target) -> bool:
        try:
            source, target = ContestStatus(source), ContestStatus(target)
        except ValueError:
            return False
        return target in cls.TRANSITIONS[source]

    @classmethod
    def ensure_transition(cls, source, target):
        if not cls.can_transition(source, target):
            source = getattr(source, "value", source)
            target = getattr(target, "value", target)
            raise InvalidTransition(f"Cannot change contest status from '{source}' to '{target}'")

    @classmethod
    def is_terminal(cls, status) -> bool:
        return not cls.TRANSITIONS[ContestStatus(status)]

    @staticmethod
    def ensure_editable(contest: Dict, principal: Principal):
        """Content fields change only while pending, and only by the creator"""
        if contest.get("creator_email") != principal.email:
            raise Forbidden("Only the contest creator can edit this contest")
        if contest.get("status") != ContestStatus.PENDING.value:
            raise Forbidden("Edit not allowed once the contest has been reviewed")

    @staticmethod
    def ensure_deletable(contest: Dict, principal: Principal):
        """Creator may delete while pending; admins may delete at any status"""
        if principal.is_admin:
            return
        if contest.get("creator_email") != principal.email:
            raise Forbidden("Only the contest creator can delete this contest")
        if contest.get("status") != ContestStatus.PENDING.value:
            raise Forbidden("Only pending contests can be deleted")

    @staticmethod
    def is_visible(contest: Dict, principal: Optional[Principal]) -> bool:
        if contest.get("status") in {s.value for s in PUBLIC_STATUSES}:
            return True
        return principal is not None and is_owner_or_admin(principal, contest.get("creator_email"))

    @staticmethod
    def visibility_filter(
        principal: Optional[Principal],
        status: Optional[ContestStatus] = None,
        creator_email: Optional[str] = None
    ) -> Optional[Dict]:
        """
        Build the listing filter for the caller.

        Returns None when the caller asked for something they cannot see at
        all (the listing is then empty).
        """
        query: Dict = {}
        if creator_email:
            query["creator_email"] = creator_email

        if principal is not None and principal.is_admin:
            if status:
                query["status"] = status.value
            return query

        own_data = principal is not None and creator_email is not None and creator_email == principal.email
        public = [s.value for s in PUBLIC_STATUSES]

        if own_data:
            if status:
                query["status"] = status.value
            return query

        if status:
            if status.value not in public:
                return None
            query["status"] = status.value
        else:
            query["status"] = {"$in": public}
        return query
