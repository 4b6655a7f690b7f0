import uuid
from dataclasses import dataclass

import httpx
import pytest_asyncio
from httpx import AsyncClient
from mongomock_motor import AsyncMongoMockClient

from app.database import Database
from app.main import app
from app.services.auth.security import security_service


@dataclass
class Session:
    email: str
    role: str
    headers: dict


def cookie_for(email: str, role: str = "user") -> dict:
    token = security_service.create_access_token(email, role)
    return {"Cookie": f"token={token}"}


@pytest_asyncio.fixture
async def database():
    db = Database(AsyncMongoMockClient(), f"skillspire_test_{uuid.uuid4().hex[:8]}")
    await db.create_indexes()
    app.state.database = db
    yield db
    app.state.database = None


@pytest_asyncio.fixture
async def client(database):
    async with AsyncClient(transport=httpx.ASGITransport(app=app), base_url="http://test") as ac:
        yield ac


@pytest_asyncio.fixture
async def make_user(database):
    """Insert a user with the given role and return its session"""
    async def _make(email: str = None, role: str = "user", name: str = None, photo: str = None) -> Session:
        email = email or f"user-{uuid.uuid4().hex[:8]}@skillspire.io"
        await database.users.insert({
            "email": email,
            "name": name or email.split("@")[0],
            "photo": photo,
            "bio": None,
            "role": role,
            "participated_contests": [],
            "won_contests": [],
        })
        return Session(email=email, role=role, headers=cookie_for(email, role))
    return _make


CONTEST_PAYLOAD = {
    "name": "Logo Design Sprint",
    "type": "design",
    "description": "Design a logo for a local bakery",
    "prize": 500,
    "entry_fee": 10,
    "task": "Upload a link to your logo",
}


async def create_contest(client, creator: Session, **overrides) -> str:
    r = await client.post("/contests", json={**CONTEST_PAYLOAD, **overrides}, headers=creator.headers)
    assert r.status_code == 201, r.text
    return r.json()["data"]["contest"]["id"]


@pytest_asyncio.fixture
async def creator(make_user):
    return await make_user(role="creator", name="Casey Creator")


@pytest_asyncio.fixture
async def admin(make_user):
    return await make_user(role="admin", name="Ada Admin")


@pytest_asyncio.fixture
async def confirmed_contest(client, creator, admin):
    """Id of a contest created by `creator` and confirmed by `admin`"""
    contest_id = await create_contest(client, creator)
    r = await client.patch(f"/contests/status/{contest_id}", json={"status": "confirmed"}, headers=admin.headers)
    assert r.status_code == 200, r.text
    return contest_id
