from typing import Optional
from fastapi import APIRouter, Depends, Query

from app.database import Database, get_database
from app.services.contest.leaderboard import LeaderboardService
from app.utils.response import success_response

router = APIRouter(tags=["Leaderboard"])


@router.get("/leaderboard")
async def get_leaderboard(
    limit: Optional[int] = Query(None, ge=1, le=100, description="Number of top users to return"),
    database: Database = Depends(get_database)
):
    """
    Users ranked by contests won.

    Users without a win are not listed; equal win counts are ordered by email.
    """
    leaderboard = await LeaderboardService(database).get_leaderboard(limit=limit)
    return success_response(
        message="Leaderboard retrieved successfully",
        data={"leaderboard": leaderboard, "total_users": len(leaderboard)}
    )


@router.get("/winners")
async def get_recent_winners(
    limit: int = Query(6, ge=1, le=50),
    database: Database = Depends(get_database)
):
    """Most recent contest winners"""
    winners = await LeaderboardService(database).get_recent_winners(limit=limit)
    return success_response(
        message="Recent winners retrieved successfully",
        data={"winners": winners}
    )
