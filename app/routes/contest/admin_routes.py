from typing import Optional
from fastapi import APIRouter, Depends, Query

from app.database import Database, get_database
from app.models.auth.token import Principal
from app.models.contest.contest import ContestStatus, StatusUpdate
from app.routes.auth.dependencies import require_admin
from app.routes.contest.contest_routes import convert_contest_to_json
from app.services.contest.contest import ContestService
from app.utils.response import success_response

router = APIRouter(prefix="/admin", tags=["Admin"])


@router.get("/contests")
async def get_all_contests(
    status: Optional[ContestStatus] = Query(None),
    search: Optional[str] = Query(None, max_length=100),
    limit: Optional[int] = Query(None, ge=1, le=100),
    principal: Principal = Depends(require_admin),
    database: Database = Depends(get_database)
):
    """All contests regardless of status, optionally filtered by status"""
    contests = await ContestService(database).list_contests(
        principal=principal,
        search=search,
        limit=limit,
        status=status
    )
    return success_response(
        message="Contests retrieved successfully",
        data={"contests": [convert_contest_to_json(c) for c in contests], "total": len(contests)}
    )


@router.patch("/contests/{contest_id}/status")
async def change_contest_status(
    contest_id: str,
    status_data: StatusUpdate,
    principal: Principal = Depends(require_admin),
    database: Database = Depends(get_database)
):
    """Approve or reject a pending contest"""
    contest = await ContestService(database).set_status(contest_id, status_data.status, principal)
    return success_response(
        message=f"Contest {contest['status']}",
        data={"contest": convert_contest_to_json(contest)}
    )
