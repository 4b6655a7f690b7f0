import asyncio

import pytest

from conftest import create_contest


async def _submit(client, contest_id, session, content="https://example.org/my-entry"):
    r = await client.post("/submissions", json={"contestId": contest_id, "content": content}, headers=session.headers)
    assert r.status_code == 201, r.text
    return r.json()["data"]["submission"]["id"]


@pytest.mark.asyncio
async def test_full_contest_scenario(client, creator, admin, make_user):
    contest_id = await create_contest(client, creator)
    contest = (await client.get(f"/contests/{contest_id}", headers=creator.headers)).json()["data"]["contest"]
    assert (contest["status"], contest["participants"]) == ("pending", 0)

    r = await client.patch(f"/contests/status/{contest_id}", json={"status": "confirmed"}, headers=admin.headers)
    assert r.json()["data"]["contest"]["status"] == "confirmed"

    user = await make_user(name="Uma User", photo="https://img.example.org/uma.png")
    r = await client.post("/payments", json={"contestId": contest_id, "amount": 10}, headers=user.headers)
    assert r.status_code == 201
    contest = (await client.get(f"/contests/{contest_id}")).json()["data"]["contest"]
    assert contest["participants"] == 1
    me = (await client.get("/users/me", headers=user.headers)).json()["data"]["user"]
    assert me["participated_contests"] == [contest_id]

    submission_id = await _submit(client, contest_id, user)

    r = await client.patch(f"/submissions/{submission_id}/winner", headers=creator.headers)
    assert r.status_code == 200, r.text
    assert r.json()["data"]["submission"]["is_winner"] is True

    contest = (await client.get(f"/contests/{contest_id}")).json()["data"]["contest"]
    assert contest["status"] == "ended"
    assert contest["winner"] == {
        "name": "Uma User",
        "email": user.email,
        "photo": "https://img.example.org/uma.png"
    }
    assert contest["winner_submission_id"] == submission_id

    me = (await client.get("/users/me", headers=user.headers)).json()["data"]
    assert me["user"]["won_contests"] == [contest_id]
    assert me["stats"] == {"participated": 1, "won": 1, "win_rate": 100.0}


@pytest.mark.asyncio
async def test_second_declaration_is_rejected_and_first_winner_kept(client, confirmed_contest, creator, make_user, database):
    first, second = await make_user(), await make_user()
    first_sub = await _submit(client, confirmed_contest, first)
    second_sub = await _submit(client, confirmed_contest, second)

    assert (await client.patch(f"/submissions/{first_sub}/winner", headers=creator.headers)).status_code == 200
    r = await client.patch(f"/submissions/winner/{second_sub}", headers=creator.headers)
    assert r.status_code == 409
    assert r.json()["message"] == "Winner already declared for this contest"

    winners = await database.submissions.find_all({"contest_id": confirmed_contest, "is_winner": True})
    assert [str(s["_id"]) for s in winners] == [first_sub]
    contest = await database.contests.get(confirmed_contest)
    assert contest["winner"]["email"] == first.email
    loser = await database.users.get_by({"email": second.email})
    assert loser["won_contests"] == []


@pytest.mark.asyncio
async def test_concurrent_declarations_pick_one_winner(client, confirmed_contest, creator, make_user, database):
    entrants = [await make_user() for _ in range(3)]
    submission_ids = [await _submit(client, confirmed_contest, u) for u in entrants]

    responses = await asyncio.gather(*(
        client.patch(f"/submissions/{sid}/winner", headers=creator.headers) for sid in submission_ids
    ))
    assert sorted(r.status_code for r in responses) == [200, 409, 409]

    winners = await database.submissions.find_all({"contest_id": confirmed_contest, "is_winner": True})
    assert len(winners) == 1
    won = await database.users.find_all({"won_contests": confirmed_contest})
    assert len(won) == 1


@pytest.mark.asyncio
async def test_only_contest_creator_declares(client, confirmed_contest, admin, make_user):
    user = await make_user()
    submission_id = await _submit(client, confirmed_contest, user)

    assert (await client.patch(f"/submissions/{submission_id}/winner", headers=user.headers)).status_code == 403
    assert (await client.patch(f"/submissions/{submission_id}/winner", headers=admin.headers)).status_code == 403


@pytest.mark.asyncio
async def test_unknown_submission_is_404(client, creator):
    r = await client.patch("/submissions/64b7f0c2a1b2c3d4e5f60718/winner", headers=creator.headers)
    assert r.status_code == 404


@pytest.mark.asyncio
async def test_pending_contest_cannot_end(client, creator, make_user):
    contest_id = await create_contest(client, creator)
    user = await make_user()
    submission_id = await _submit(client, contest_id, user)

    r = await client.patch(f"/submissions/{submission_id}/winner", headers=creator.headers)
    assert r.status_code == 409
    assert r.json()["message"] == "Cannot change contest status from 'pending' to 'ended'"


@pytest.mark.asyncio
async def test_winner_snapshot_is_not_live(client, confirmed_contest, creator, make_user):
    user = await make_user(name="Old Name")
    submission_id = await _submit(client, confirmed_contest, user)
    await client.patch(f"/submissions/{submission_id}/winner", headers=creator.headers)

    r = await client.patch(f"/users/profile/{user.email}", json={"name": "New Name"}, headers=user.headers)
    assert r.status_code == 200

    contest = (await client.get(f"/contests/{confirmed_contest}")).json()["data"]["contest"]
    assert contest["winner"]["name"] == "Old Name"


@pytest.mark.asyncio
async def test_multiple_submissions_per_user_allowed(client, confirmed_contest, creator, make_user):
    user = await make_user()
    await _submit(client, confirmed_contest, user, content="first try")
    await _submit(client, confirmed_contest, user, content="second try")

    r = await client.get("/submissions", params={"contestId": confirmed_contest}, headers=creator.headers)
    submissions = r.json()["data"]["submissions"]
    assert len(submissions) == 2
    assert all(s["is_winner"] is False for s in submissions)

    r = await client.get("/submissions/me", headers=user.headers)
    assert r.json()["data"]["total"] == 2


@pytest.mark.asyncio
async def test_submission_listing_is_for_creator_and_admin(client, confirmed_contest, admin, make_user):
    user = await make_user()
    await _submit(client, confirmed_contest, user)

    assert (await client.get(f"/submissions/{confirmed_contest}", headers=admin.headers)).status_code == 200
    assert (await client.get(f"/submissions/{confirmed_contest}", headers=user.headers)).status_code == 403
    assert (await client.get("/submissions", headers=admin.headers)).status_code == 400


@pytest.mark.asyncio
async def test_submission_to_unknown_contest_is_404(client, make_user):
    user = await make_user()
    r = await client.post(
        "/submissions",
        json={"contestId": "64b7f0c2a1b2c3d4e5f60718", "content": "hello"},
        headers=user.headers
    )
    assert r.status_code == 404


@pytest.mark.asyncio
async def test_empty_submission_is_400(client, confirmed_contest, make_user):
    user = await make_user()
    r = await client.post("/submissions", json={"contestId": confirmed_contest, "content": "   "}, headers=user.headers)
    assert r.status_code == 400
