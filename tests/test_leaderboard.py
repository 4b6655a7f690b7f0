from datetime import datetime, timedelta

import pytest

from app.services.contest.leaderboard import LeaderboardService


async def _user(database, email, name, won=()):
    await database.users.insert({
        "email": email,
        "name": name,
        "photo": f"https://img.example.org/{name}.png",
        "role": "user",
        "participated_contests": list(won),
        "won_contests": list(won),
    })


@pytest.mark.asyncio
async def test_leaderboard_ranks_by_wins_and_skips_zero(client, database):
    await _user(database, "a@skillspire.io", "A", won=["c1", "c2"])
    await _user(database, "b@skillspire.io", "B")
    await _user(database, "c@skillspire.io", "C", won=["c3"])

    r = await client.get("/leaderboard")
    rows = r.json()["data"]["leaderboard"]
    assert [row["name"] for row in rows] == ["A", "C"]
    assert rows[0] == {
        "name": "A",
        "photo": "https://img.example.org/A.png",
        "email": "a@skillspire.io",
        "wins": 2,
        "rank": 1
    }


@pytest.mark.asyncio
async def test_leaderboard_ties_are_ordered_by_email(database):
    await _user(database, "zed@skillspire.io", "Zed", won=["c1"])
    await _user(database, "amy@skillspire.io", "Amy", won=["c2"])

    rows = await LeaderboardService(database).get_leaderboard()
    assert [row["email"] for row in rows] == ["amy@skillspire.io", "zed@skillspire.io"]

    rows = await LeaderboardService(database).get_leaderboard(limit=1)
    assert len(rows) == 1


@pytest.mark.asyncio
async def test_recent_winners_newest_first_and_drops_dangling(client, database):
    await _user(database, "w1@skillspire.io", "First", won=["x"])
    await _user(database, "w2@skillspire.io", "Second", won=["y"])
    now = datetime.utcnow()

    contest_ids = []
    for name, prize in (("Old Contest", 100), ("New Contest", 200)):
        contest_ids.append(await database.contests.insert({"name": name, "prize": prize, "status": "ended"}))

    rows = [
        (contest_ids[0], "w1@skillspire.io", now - timedelta(days=2)),
        (contest_ids[1], "w2@skillspire.io", now - timedelta(days=1)),
        (contest_ids[1], "ghost@skillspire.io", now),  # user no longer exists
        ("64b7f0c2a1b2c3d4e5f60718", "w1@skillspire.io", now),  # contest no longer exists
    ]
    for contest_id, email, declared_at in rows:
        await database.submissions.insert({
            "contest_id": contest_id,
            "user_email": email,
            "content": "entry",
            "is_winner": True,
            "submitted_at": declared_at,
            "declared_at": declared_at,
        })

    r = await client.get("/winners")
    winners = r.json()["data"]["winners"]
    assert [(w["name"], w["contest_name"], w["prize"]) for w in winners] == [
        ("Second", "New Contest", 200),
        ("First", "Old Contest", 100),
    ]


@pytest.mark.asyncio
async def test_recent_winners_default_limit_is_six(database):
    await _user(database, "w@skillspire.io", "W")
    contest_id = await database.contests.insert({"name": "C", "prize": 1})
    for _ in range(8):
        await database.submissions.insert({
            "contest_id": contest_id,
            "user_email": "w@skillspire.io",
            "is_winner": True,
            "declared_at": datetime.utcnow(),
        })

    rows = await LeaderboardService(database).get_recent_winners()
    assert len(rows) == 6


@pytest.mark.asyncio
async def test_recent_winners_fill_limit_past_dangling_rows(database):
    await _user(database, "w@skillspire.io", "W")
    contest_id = await database.contests.insert({"name": "C", "prize": 1})
    now = datetime.utcnow()

    # The newest winners point at users that no longer exist
    for minutes in range(3):
        await database.submissions.insert({
            "contest_id": contest_id,
            "user_email": f"gone{minutes}@skillspire.io",
            "is_winner": True,
            "declared_at": now - timedelta(minutes=minutes),
        })
    for hours in range(1, 4):
        await database.submissions.insert({
            "contest_id": contest_id,
            "user_email": "w@skillspire.io",
            "is_winner": True,
            "declared_at": now - timedelta(hours=hours),
        })

    rows = await LeaderboardService(database).get_recent_winners(limit=2)
    assert [row["name"] for row in rows] == ["W", "W"]


@pytest.mark.asyncio
async def test_submission_counts_empty(database):
    assert await LeaderboardService(database).get_submission_counts([]) == {}


@pytest.mark.asyncio
async def test_submission_counts(database):
    for contest_id in ("a", "a", "b"):
        await database.submissions.insert({"contest_id": contest_id, "is_winner": False})

    counts = await LeaderboardService(database).get_submission_counts(["a", "b", "c"])
    assert counts == {"a": 2, "b": 1, "c": 0}
