from fastapi import APIRouter, Depends

from app.config import settings
from app.database import Database, get_database
from app.models.auth.user import SessionRequest
from app.services.auth.security import security_service
from app.services.auth.user import UserService
from app.utils.response import success_response, serialize_document

router = APIRouter(tags=["Authentication"])


@router.post("/jwt")
async def issue_session(
    session_data: SessionRequest,
    database: Database = Depends(get_database)
):
    """
    Issue a session cookie for an identity confirmed by the login provider.

    - Creates the user with role `user` on first sight
    - Token carries email and the stored role
    """
    user_service = UserService(database)
    user = await user_service.upsert_on_login(
        email=session_data.email,
        name=session_data.name,
        photo=session_data.photo
    )

    token = security_service.create_access_token(user["email"], user.get("role", "user"))

    response = success_response(
        message="Session issued",
        data={"user": serialize_document(user), "role": user.get("role", "user")}
    )
    response.set_cookie(
        key=settings.cookie_name,
        value=token,
        httponly=True,
        secure=settings.cookie_secure,
        samesite=settings.cookie_samesite,
        max_age=settings.access_token_expire_days * 24 * 3600
    )
    return response


@router.post("/logout")
async def logout():
    """Clear the session cookie"""
    response = success_response(message="Logged out")
    response.delete_cookie(
        key=settings.cookie_name,
        httponly=True,
        secure=settings.cookie_secure,
        samesite=settings.cookie_samesite
    )
    return response
