"""
User API endpoints.

Account owners can read and edit their own profile. Listing, status changes,
deletion and edits to other accounts need ADMIN or SUPER_ADMIN, and only a
SUPER_ADMIN may modify a SUPER_ADMIN account or grant that role.
"""

from typing import Annotated, Any

from fastapi import APIRouter, Depends, Path
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.dependencies import Pagination
from app.config import ADMIN_ROLES, UserRole, UserStatus
from app.core.auth import AdminClaims, CurrentUser
from app.core.database import get_db
from app.core.exceptions import ForbiddenError, NotFoundError
from app.core.logging import get_logger
from app.models.user import Users
from app.schemas.base import MessageResponse
from app.schemas.user import UserListResponse, UserResponse, UserStatusUpdate, UserUpdate
from app.services import users as user_store

logger = get_logger(__name__)

router = APIRouter(prefix="/users", tags=["users"])

# Fields only an admin may change, on any account including their own
ADMIN_ONLY_FIELDS = frozenset({"role", "status", "user_type", "membership_category"})


async def _get_user_or_404(db: AsyncSession, user_id: str) -> Users:
    user = await user_store.get_user_by_id(db, user_id)
    if user is None:
        raise NotFoundError(f"User with ID {user_id} not found")
    return user


def _guard_super_admin(caller_role: str, target: Users) -> None:
    if target.role == UserRole.SUPER_ADMIN and caller_role != UserRole.SUPER_ADMIN.value:
        raise ForbiddenError("Only a super admin can modify a super admin account")


@router.get("/me", response_model=UserResponse)
async def get_me(current_user: CurrentUser) -> UserResponse:
    return UserResponse.model_validate(current_user)


@router.get("", response_model=UserListResponse)
async def list_users(
    claims: AdminClaims,
    pagination: Pagination,
    db: Annotated[AsyncSession, Depends(get_db)],
) -> UserListResponse:
    """
    List users, newest first.

    SUPER_ADMIN accounts are only listed for a SUPER_ADMIN caller.
    """
    users, total = await user_store.list_users(
        db,
        offset=pagination.offset,
        limit=pagination.per_page,
        include_super_admins=claims["role"] == UserRole.SUPER_ADMIN.value,
    )
    return UserListResponse(
        total=total,
        page=pagination.page,
        per_page=pagination.per_page,
        users=[UserResponse.model_validate(user) for user in users],
    )


@router.get("/{user_id}", response_model=UserResponse)
async def get_user(
    claims: AdminClaims,
    user_id: Annotated[str, Path(description="User ID")],
    db: Annotated[AsyncSession, Depends(get_db)],
) -> UserResponse:
    user = await _get_user_or_404(db, user_id)
    return UserResponse.model_validate(user)


@router.patch("/{user_id}", response_model=UserResponse)
async def update_user(
    data: UserUpdate,
    current_user: CurrentUser,
    user_id: Annotated[str, Path(description="User ID")],
    db: Annotated[AsyncSession, Depends(get_db)],
) -> UserResponse:
    """
    Update a user.

    Owners may change their names, phone, email and password. Everything else,
    and any change to another account, requires an admin.
    """
    target = await _get_user_or_404(db, user_id)
    caller_is_admin = current_user.role in ADMIN_ROLES

    if target.id != current_user.id and not caller_is_admin:
        raise ForbiddenError("You can only update your own profile")

    # Unset fields are left alone; an explicit null is only meaningful for email
    changes: dict[str, Any] = {
        field: value
        for field, value in data.model_dump(exclude_unset=True).items()
        if value is not None or field == "email"
    }

    if ADMIN_ONLY_FIELDS & changes.keys() and not caller_is_admin:
        raise ForbiddenError("Only administrators can change role, status or membership")

    _guard_super_admin(current_user.role.value, target)
    if changes.get("role") == UserRole.SUPER_ADMIN and current_user.role != UserRole.SUPER_ADMIN:
        raise ForbiddenError("Only a super admin can grant the super admin role")

    if changes.get("status") == UserStatus.INACTIVE:
        changes["refresh_token"] = None

    user = await user_store.update_user(db, target, changes)
    logger.info(
        "user_updated",
        target_user_id=user.id,
        fields=sorted(field for field in changes if field != "password"),
    )
    return UserResponse.model_validate(user)


@router.patch("/{user_id}/status", response_model=UserResponse)
async def update_user_status(
    data: UserStatusUpdate,
    claims: AdminClaims,
    user_id: Annotated[str, Path(description="User ID")],
    db: Annotated[AsyncSession, Depends(get_db)],
) -> UserResponse:
    """Activate or deactivate an account. Deactivation also ends its refresh session."""
    target = await _get_user_or_404(db, user_id)
    _guard_super_admin(claims["role"], target)

    changes: dict[str, Any] = {"status": data.status}
    if data.status == UserStatus.INACTIVE:
        changes["refresh_token"] = None

    user = await user_store.update_user(db, target, changes)
    logger.info("user_status_changed", target_user_id=user.id, status=data.status.value)
    return UserResponse.model_validate(user)


@router.delete("/{user_id}", response_model=MessageResponse)
async def delete_user(
    claims: AdminClaims,
    user_id: Annotated[str, Path(description="User ID")],
    db: Annotated[AsyncSession, Depends(get_db)],
) -> MessageResponse:
    target = await _get_user_or_404(db, user_id)
    _guard_super_admin(claims["role"], target)

    await user_store.delete_user(db, target)
    logger.info("user_deleted", target_user_id=user_id)
    return MessageResponse(message="User deleted successfully")
