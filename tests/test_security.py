from datetime import timedelta

import pytest
from jose import jwt

from app.config import settings
from app.services.auth.security import SecurityService, security_service


def test_token_carries_email_and_role():
    token = security_service.create_access_token("sam@skillspire.io", "creator")
    principal = security_service.verify_token(token)
    assert principal.email == "sam@skillspire.io"
    assert principal.role.value == "creator"


@pytest.mark.parametrize("token", [None, "", "not-a-jwt", "a.b.c"])
def test_garbage_tokens_fail_closed(token):
    assert security_service.verify_token(token) is None


def test_expired_token_is_rejected():
    token = security_service.create_access_token("sam@skillspire.io", "user", expires_delta=timedelta(seconds=-5))
    assert security_service.verify_token(token) is None


def test_token_signed_with_other_secret_is_rejected():
    forged = SecurityService(secret_key="someone-else").create_access_token("sam@skillspire.io", "admin")
    assert security_service.verify_token(forged) is None


def test_token_with_unknown_role_is_rejected():
    token = jwt.encode(
        {"sub": "sam@skillspire.io", "email": "sam@skillspire.io", "role": "superuser", "type": "access"},
        settings.access_token_secret,
        algorithm=settings.algorithm
    )
    assert security_service.verify_token(token) is None


def test_token_of_wrong_type_is_rejected():
    token = jwt.encode(
        {"sub": "sam@skillspire.io", "email": "sam@skillspire.io", "role": "user", "type": "refresh"},
        settings.access_token_secret,
        algorithm=settings.algorithm
    )
    assert security_service.verify_token(token) is None


@pytest.mark.asyncio
async def test_protected_route_without_cookie_is_401(client):
    r = await client.get("/users/me")
    assert r.status_code == 401
    assert r.json() == {"success": False, "message": "Unauthorized"}


@pytest.mark.asyncio
async def test_protected_route_with_invalid_cookie_is_401(client):
    r = await client.get("/users/me", headers={"Cookie": "token=tampered"})
    assert r.status_code == 401
    assert r.json()["message"] == "Invalid token"
