from typing import List, Dict, Iterable, Optional

from app.database import Database, to_object_id


class LeaderboardService:
    """Read-only projections over users, contests and submissions"""

    def __init__(self, database: Database):
        self.users = database.users
        self.contests = database.contests
        self.submissions = database.submissions

    async def get_leaderboard(self, limit: Optional[int] = None) -> List[Dict]:
        """
        Users ranked by number of contests won.

        Users without a win are excluded. Equal win counts are ordered by
        email so the ranking is stable between calls.
        """
        winners = await self.users.find_all({"won_contests": {"$exists": True, "$ne": []}})

        rows = [
            {
                "name": user.get("name"),
                "photo": user.get("photo"),
                "email": user.get("email"),
                "wins": len(set(user.get("won_contests", [])))
            }
            for user in winners
            if user.get("won_contests")
        ]
        rows.sort(key=lambda row: (-row["wins"], row["email"] or ""))

        if limit:
            rows = rows[:limit]
        for rank, row in enumerate(rows, start=1):
            row["rank"] = rank
        return rows

    async def get_recent_winners(self, limit: int = 6) -> List[Dict]:
        """
        Most recently declared winners joined with their user and contest.

        Rows whose user or contest no longer exists are skipped and the scan
        continues until `limit` complete rows are found.
        """
        winning = self.submissions.find(
            {"is_winner": True},
            sort=[("declared_at", -1), ("submitted_at", -1)]
        )

        rows = []
        async for submission in winning:
            if len(rows) >= limit:
                break
            user = await self.users.get_by({"email": submission.get("user_email")})
            contest = await self.contests.get(submission.get("contest_id"))
            if not user or not contest:
                continue
            rows.append({
                "name": user.get("name"),
                "photo": user.get("photo"),
                "contest_name": contest.get("name"),
                "prize": contest.get("prize"),
                "declared_at": submission.get("declared_at")
            })
        return rows

    async def get_submission_counts(self, contest_ids: Iterable[str]) -> Dict[str, int]:
        """Number of submissions per contest"""
        contest_ids = list(contest_ids)
        if not contest_ids:
            return {}
        pipeline = [
            {"$match": {"contest_id": {"$in": contest_ids}}},
            {"$group": {"_id": "$contest_id", "count": {"$sum": 1}}}
        ]
        counts = {contest_id: 0 for contest_id in contest_ids}
        for row in await self.submissions.aggregate(pipeline):
            counts[row["_id"]] = row["count"]
        return counts

    async def get_user_stats(self, email: str) -> Dict:
        """Participation and win totals for a profile page"""
        user = await self.users.get_by({"email": email}) or {}
        participated = len(set(user.get("participated_contests", [])))
        won = len(set(user.get("won_contests", [])))
        return {
            "participated": participated,
            "won": won,
            "win_rate": round(won / participated * 100, 1) if participated else 0.0
        }

    async def get_won_contests(self, email: str) -> List[Dict]:
        """Contests the user won (weak references that no longer resolve are skipped)"""
        user = await self.users.get_by({"email": email}) or {}
        ids = [to_object_id(cid) for cid in user.get("won_contests", [])]
        ids = [oid for oid in ids if oid is not None]
        if not ids:
            return []
        return await self.contests.find_all({"_id": {"$in": ids}}, sort=[("declared_at", -1)])
