"""
Authentication dependencies for FastAPI route protection.

This module provides dependency functions for:
- Extracting and verifying the bearer access token
- Rejecting revoked (logged-out) tokens and inactive accounts
- Loading the current user from the database
- Role and user-type guards layered on top of authentication
"""

from collections.abc import Callable, Coroutine
from typing import Annotated, Any

from fastapi import Cookie, Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import ADMIN_ROLES, UserRole, UserStatus, UserType, settings
from app.core.database import get_db
from app.core.exceptions import ForbiddenError, InvalidTokenError, UnauthorizedError
from app.core.logging import bind_context
from app.core.security import decode_access_token
from app.models.user import Users
from app.services.token_blacklist import TokenBlacklist, get_token_blacklist

# auto_error=False so a missing header goes through UnauthorizedError (and its
# "action" hint) instead of FastAPI's bare 403
bearer_scheme = HTTPBearer(auto_error=False)

Claims = dict[str, Any]


async def get_access_token(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(bearer_scheme)],
) -> str:
    """Raw bearer token from the Authorization header."""
    if credentials is None or not credentials.credentials:
        raise UnauthorizedError("No access token provided")
    return credentials.credentials


async def get_current_claims(
    token: Annotated[str, Depends(get_access_token)],
    blacklist: Annotated[TokenBlacklist, Depends(get_token_blacklist)],
) -> Claims:
    """
    Verify the access token and return its claims.

    Raises:
        UnauthorizedError: Token invalid, expired, revoked, or for an inactive account
    """
    try:
        claims = decode_access_token(token)
    except InvalidTokenError as e:
        raise UnauthorizedError(e.message) from e

    if await blacklist.is_revoked(claims["jti"]):
        raise UnauthorizedError("Token has been revoked")

    if claims.get("status") != UserStatus.ACTIVE.value:
        raise UnauthorizedError("User account is inactive")

    bind_context(user_id=claims["sub"])
    return claims


async def get_current_user(
    claims: Annotated[Claims, Depends(get_current_claims)],
    db: Annotated[AsyncSession, Depends(get_db)],
) -> Users:
    """
    Load current user from database using verified token.

    The token may predate a deactivation, so status is checked again here.

    Raises:
        UnauthorizedError: If user not found or inactive
    """
    user = await db.get(Users, claims["sub"])

    if user is None:
        raise UnauthorizedError("User not found")

    if user.status != UserStatus.ACTIVE:
        raise UnauthorizedError("User account is inactive")

    return user


def require_roles(
    *roles: UserRole,
) -> Callable[[Claims], Coroutine[Any, Any, Claims]]:
    """
    Create a dependency that admits only the given roles.

    Example:
        @router.get("/users")
        async def list_users(
            claims: Annotated[Claims, Depends(require_roles(UserRole.ADMIN, UserRole.SUPER_ADMIN))]
        ):
            ...

    Raises:
        ForbiddenError: 403 if the token's role is not in the allow-list
    """
    allowed = {role.value for role in roles}

    async def role_checker(claims: Annotated[Claims, Depends(get_current_claims)]) -> Claims:
        if claims.get("role") not in allowed:
            raise ForbiddenError(f"Requires one of roles: {', '.join(sorted(allowed))}")
        return claims

    return role_checker


def require_user_types(
    *user_types: UserType,
) -> Callable[[Claims], Coroutine[Any, Any, Claims]]:
    """Create a dependency that admits only the given user types."""
    allowed = {user_type.value for user_type in user_types}

    async def user_type_checker(claims: Annotated[Claims, Depends(get_current_claims)]) -> Claims:
        if claims.get("userType") not in allowed:
            raise ForbiddenError(f"Requires one of user types: {', '.join(sorted(allowed))}")
        return claims

    return user_type_checker


async def get_refresh_token_from_cookie(
    refresh_token: Annotated[str | None, Cookie(alias=settings.REFRESH_COOKIE_NAME)] = None,
) -> str | None:
    """Refresh token from the HTTPOnly cookie, or None when absent."""
    return refresh_token or None


# Type aliases for dependency injection
CurrentClaims = Annotated[Claims, Depends(get_current_claims)]
CurrentUser = Annotated[Users, Depends(get_current_user)]
AccessToken = Annotated[str, Depends(get_access_token)]
AdminClaims = Annotated[Claims, Depends(require_roles(*ADMIN_ROLES))]
RefreshTokenCookie = Annotated[str | None, Depends(get_refresh_token_from_cookie)]
