from typing import Optional
from fastapi import APIRouter, Depends, Query

from app.core.exceptions import Forbidden
from app.database import Database, get_database
from app.models.auth.token import Principal
from app.models.contest.contest import ContestCreate, ContestUpdate, ContestStatus, StatusUpdate
from app.models.payment.payment import ContestRegistration
from app.routes.auth.dependencies import (
    get_current_principal,
    get_optional_principal,
    require_admin,
    require_creator
)
from app.services.auth.permissions import is_owner_or_admin
from app.services.auth.user import UserService
from app.services.contest.contest import ContestService
from app.services.contest.leaderboard import LeaderboardService
from app.services.payment.ledger import LedgerService
from app.utils.response import success_response, serialize_document

router = APIRouter(prefix="/contests", tags=["Contests"])


def convert_contest_to_json(contest: dict) -> dict:
    """Convert contest document to JSON-serializable format"""
    # Registrant emails are ledger bookkeeping, not public data
    return serialize_document(contest, hidden=("registrants",))


@router.get("")
async def get_contests(
    search: Optional[str] = Query(None, max_length=100),
    sort: Optional[str] = Query(None, pattern="^(participants|newest|prize)$"),
    limit: Optional[int] = Query(None, ge=1, le=100),
    status: Optional[ContestStatus] = Query(None),
    creator_email: Optional[str] = Query(None, alias="creatorEmail"),
    principal: Optional[Principal] = Depends(get_optional_principal),
    database: Database = Depends(get_database)
):
    """
    List contests.

    - Public callers see confirmed and ended contests
    - `creatorEmail` equal to the caller shows all of the caller's contests
    - Admins see everything and may filter by status
    """
    contest_service = ContestService(database)
    contests = await contest_service.list_contests(
        principal=principal,
        search=search,
        sort=sort,
        limit=limit,
        status=status,
        creator_email=creator_email.strip().lower() if creator_email else None
    )

    data = [convert_contest_to_json(c) for c in contests]

    # Creator dashboard: decorate own contests with entry counts
    if principal and creator_email and is_owner_or_admin(principal, creator_email.strip().lower()):
        counts = await LeaderboardService(database).get_submission_counts(c["id"] for c in data)
        for contest in data:
            contest["submission_count"] = counts.get(contest["id"], 0)

    return success_response(
        message="Contests retrieved successfully",
        data={"contests": data, "total": len(data)}
    )


@router.get("/popular")
async def get_popular_contests(
    limit: int = Query(6, ge=1, le=50),
    database: Database = Depends(get_database)
):
    """Confirmed contests with the most participants"""
    contests = await ContestService(database).get_popular_contests(limit=limit)
    return success_response(
        message="Popular contests retrieved successfully",
        data={"contests": [convert_contest_to_json(c) for c in contests]}
    )


@router.get("/{contest_id}")
async def get_contest(
    contest_id: str,
    principal: Optional[Principal] = Depends(get_optional_principal),
    database: Database = Depends(get_database)
):
    """Get a single contest"""
    contest = await ContestService(database).get_visible_contest(contest_id, principal)
    return success_response(
        message="Contest retrieved successfully",
        data={"contest": convert_contest_to_json(contest)}
    )


@router.post("")
async def create_contest(
    contest_data: ContestCreate,
    principal: Principal = Depends(require_creator),
    database: Database = Depends(get_database)
):
    """
    Create a new contest (creators and admins).

    - Always starts in PENDING status with 0 participants
    - Becomes public once an admin confirms it
    """
    user = await UserService(database).get_by_email(principal.email)
    contest = await ContestService(database).create_contest(
        contest_data=contest_data,
        principal=principal,
        creator_name=(user or {}).get("name")
    )
    return success_response(
        message="Contest created successfully. Waiting for admin approval.",
        data={"contest": convert_contest_to_json(contest)},
        status_code=201
    )


@router.put("/{contest_id}")
async def update_contest(
    contest_id: str,
    update_data: ContestUpdate,
    principal: Principal = Depends(get_current_principal),
    database: Database = Depends(get_database)
):
    """Edit a contest (creator only, PENDING status only)"""
    contest = await ContestService(database).update_contest(contest_id, update_data, principal)
    return success_response(
        message="Contest updated successfully",
        data={"contest": convert_contest_to_json(contest)}
    )


@router.delete("/{contest_id}")
async def delete_contest(
    contest_id: str,
    principal: Principal = Depends(get_current_principal),
    database: Database = Depends(get_database)
):
    """Delete a contest (creator while PENDING, admin at any status)"""
    await ContestService(database).delete_contest(contest_id, principal)
    return success_response(message="Contest deleted successfully", data={"deleted": True})


@router.patch("/status/{contest_id}")
async def change_contest_status(
    contest_id: str,
    status_data: StatusUpdate,
    principal: Principal = Depends(require_admin),
    database: Database = Depends(get_database)
):
    """Approve or reject a pending contest (admin only)"""
    contest = await ContestService(database).set_status(contest_id, status_data.status, principal)
    return success_response(
        message=f"Contest {contest['status']}",
        data={"contest": convert_contest_to_json(contest)}
    )


@router.post("/{contest_id}/register")
async def register_for_contest(
    contest_id: str,
    registration: ContestRegistration,
    principal: Principal = Depends(get_current_principal),
    database: Database = Depends(get_database)
):
    """Register (pay) for a confirmed contest"""
    payment = await LedgerService(database).register(
        contest_id=contest_id,
        payer_email=principal.email,
        amount=registration.amount,
        transaction_id=registration.transaction_id
    )
    return success_response(
        message="Registered successfully",
        data={"payment": serialize_document(payment)},
        status_code=201
    )


@router.get("/{contest_id}/registration")
async def get_registration_status(
    contest_id: str,
    principal: Principal = Depends(get_current_principal),
    database: Database = Depends(get_database)
):
    """Whether the caller has registered for the contest"""
    registered = await LedgerService(database).is_registered(contest_id, principal.email)
    return success_response(message="Registration status retrieved", data={"registered": registered})


@router.get("/{contest_id}/payments")
async def get_contest_payments(
    contest_id: str,
    principal: Principal = Depends(get_current_principal),
    database: Database = Depends(get_database)
):
    """Payments recorded for a contest (creator or admin)"""
    contest = await ContestService(database).get_contest(contest_id)
    if not is_owner_or_admin(principal, contest.get("creator_email")):
        raise Forbidden("Only the contest creator can view payments")

    payments = await LedgerService(database).payments_for_contest(str(contest["_id"]))
    return success_response(
        message="Payments retrieved successfully",
        data={"payments": [serialize_document(p) for p in payments], "total": len(payments)}
    )
