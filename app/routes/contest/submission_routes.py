from typing import Optional
from fastapi import APIRouter, Depends, Query

from app.core.exceptions import ValidationFailed
from app.database import Database, get_database
from app.models.auth.token import Principal
from app.models.contest.submission import SubmissionCreate
from app.routes.auth.dependencies import get_current_principal
from app.routes.contest.contest_routes import convert_contest_to_json
from app.services.auth.user import UserService
from app.services.contest.submission import SubmissionService
from app.utils.response import success_response, serialize_document

router = APIRouter(prefix="/submissions", tags=["Submissions"])


def convert_submission_to_json(submission: dict) -> dict:
    """Convert submission document to JSON"""
    return serialize_document(submission)


@router.post("")
async def submit_task(
    submission_data: SubmissionCreate,
    principal: Principal = Depends(get_current_principal),
    database: Database = Depends(get_database)
):
    """Submit an entry to a contest"""
    user = await UserService(database).get_by_email(principal.email)
    submission = await SubmissionService(database).create_submission(
        contest_id=submission_data.contest_id,
        principal=principal,
        content=submission_data.content,
        user_name=(user or {}).get("name")
    )
    return success_response(
        message="Submission received",
        data={"submission": convert_submission_to_json(submission)},
        status_code=201
    )


@router.get("")
async def get_submissions(
    contest_id: Optional[str] = Query(None, alias="contestId"),
    principal: Principal = Depends(get_current_principal),
    database: Database = Depends(get_database)
):
    """Entries for a contest (contest creator or admin)"""
    if not contest_id:
        raise ValidationFailed("contestId is required")
    return await _contest_submissions(contest_id, principal, database)


@router.get("/me")
async def get_my_submissions(
    principal: Principal = Depends(get_current_principal),
    database: Database = Depends(get_database)
):
    """The caller's own submissions"""
    submissions = await SubmissionService(database).get_user_submissions(principal.email)
    return success_response(
        message="Submissions retrieved successfully",
        data={"submissions": [convert_submission_to_json(s) for s in submissions], "total": len(submissions)}
    )


@router.get("/{contest_id}")
async def get_contest_submissions(
    contest_id: str,
    principal: Principal = Depends(get_current_principal),
    database: Database = Depends(get_database)
):
    """Entries for a contest (contest creator or admin)"""
    return await _contest_submissions(contest_id, principal, database)


async def _contest_submissions(contest_id: str, principal: Principal, database: Database):
    submissions = await SubmissionService(database).get_contest_submissions(contest_id, principal)
    return success_response(
        message="Submissions retrieved successfully",
        data={"submissions": [convert_submission_to_json(s) for s in submissions], "total": len(submissions)}
    )


@router.patch("/{submission_id}/winner")
async def declare_winner(
    submission_id: str,
    principal: Principal = Depends(get_current_principal),
    database: Database = Depends(get_database)
):
    """
    Declare a submission the winner (contest creator only).

    - Contest must be confirmed and have no winner yet
    - Contest moves to ENDED with a snapshot of the winner's profile
    """
    result = await SubmissionService(database).declare_winner(submission_id, principal)
    return success_response(
        message="Winner declared successfully",
        data={
            "submission": convert_submission_to_json(result["submission"]),
            "contest": convert_contest_to_json(result["contest"])
        }
    )


@router.patch("/winner/{submission_id}")
async def declare_winner_legacy(
    submission_id: str,
    principal: Principal = Depends(get_current_principal),
    database: Database = Depends(get_database)
):
    """Same as PATCH /submissions/{id}/winner"""
    return await declare_winner(submission_id, principal, database)
