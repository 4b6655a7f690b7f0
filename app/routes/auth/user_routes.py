from typing import Optional
from fastapi import APIRouter, Depends, Query

from app.database import Database, get_database
from app.models.auth.token import Principal
from app.models.auth.user import UserRegister, ProfileUpdate, RoleUpdate, UserRole
from app.routes.auth.dependencies import get_current_principal, require_admin
from app.services.auth.permissions import require_ownership, is_owner_or_admin
from app.services.auth.user import UserService, normalize_email
from app.services.contest.leaderboard import LeaderboardService
from app.core.exceptions import Forbidden
from app.utils.response import success_response, serialize_document

router = APIRouter(prefix="/users", tags=["Users"])


@router.post("")
async def register_user(
    user_data: UserRegister,
    database: Database = Depends(get_database)
):
    """Explicit registration; an existing email is returned unchanged"""
    created, user = await UserService(database).register(
        email=user_data.email,
        name=user_data.name,
        photo=user_data.photo,
        bio=user_data.bio
    )
    if not created:
        return success_response(message="User exists", data={"user": serialize_document(user)})

    return success_response(
        message="User created successfully",
        data={"user": serialize_document(user)},
        status_code=201
    )


@router.get("")
async def list_users(
    role: Optional[UserRole] = Query(None),
    principal: Principal = Depends(require_admin),
    database: Database = Depends(get_database)
):
    """List all users (admin only)"""
    users = await UserService(database).list_users(role=role)
    return success_response(
        message="Users retrieved successfully",
        data={"users": [serialize_document(u) for u in users], "total": len(users)}
    )


@router.get("/me")
async def get_me(
    principal: Principal = Depends(get_current_principal),
    database: Database = Depends(get_database)
):
    """Own profile with participation stats"""
    user = await UserService(database).require_user(principal.email)
    stats = await LeaderboardService(database).get_user_stats(principal.email)
    return success_response(
        message="Profile retrieved successfully",
        data={"user": serialize_document(user), "stats": stats}
    )


@router.get("/role/{email}")
async def get_user_role(email: str, database: Database = Depends(get_database)):
    """Role lookup; unknown emails report `user`"""
    role = await UserService(database).get_role(email)
    return success_response(message="Role retrieved", data={"role": role})


@router.patch("/role/{email}")
async def change_user_role(
    email: str,
    role_data: RoleUpdate,
    principal: Principal = Depends(require_admin),
    database: Database = Depends(get_database)
):
    """Change a user's role (admin only)"""
    user = await UserService(database).set_role(email, role_data.role, acting_admin=principal.email)
    return success_response(message="Role updated successfully", data={"user": serialize_document(user)})


@router.patch("/profile/{email}")
async def update_profile(
    email: str,
    profile_data: ProfileUpdate,
    principal: Principal = Depends(get_current_principal),
    database: Database = Depends(get_database)
):
    """Update own name, photo or bio"""
    require_ownership(principal, normalize_email(email))
    user = await UserService(database).update_profile(
        principal.email,
        profile_data.model_dump(exclude_unset=True)
    )
    return success_response(message="Profile updated successfully", data={"user": serialize_document(user)})


@router.get("/participated/{email}")
async def get_participated_contests(
    email: str,
    principal: Principal = Depends(get_current_principal),
    database: Database = Depends(get_database)
):
    """Contest ids the user registered for (self or admin)"""
    email = normalize_email(email)
    if not is_owner_or_admin(principal, email):
        raise Forbidden("You can only access your own resources")

    contest_ids = await UserService(database).participated(email)
    return success_response(message="Participated contests retrieved", data={"contests": contest_ids})


@router.get("/won/{email}")
async def get_won_contests(email: str, database: Database = Depends(get_database)):
    """Contests the user has won (public, feeds profile pages)"""
    contests = await LeaderboardService(database).get_won_contests(normalize_email(email))
    return success_response(
        message="Won contests retrieved",
        data={"contests": [serialize_document(c, hidden=("registrants",)) for c in contests]}
    )
