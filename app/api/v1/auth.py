"""
Authentication API endpoints.

This module provides endpoints for:
- Registration and login (access token in the body, refresh token in a cookie)
- Token refresh (with rotation) and token checks
- Logout (revokes the access token, drops the refresh token)
- Password change and email-based password reset

The refresh cookie is scoped to /auth/refresh-token, so the browser only sends
it to the refresh and check endpoints below that path.
"""

from typing import Annotated

from fastapi import APIRouter, Depends, Request, Response, status
from fastapi.responses import JSONResponse
from fastapi.security import HTTPAuthorizationCredentials
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import UserStatus, settings
from app.core.auth import (
    AccessToken,
    CurrentClaims,
    RefreshTokenCookie,
    bearer_scheme,
)
from app.core.database import get_db
from app.core.exceptions import (
    AccountNotFoundError,
    InvalidRefreshTokenError,
    InvalidTokenError,
    NoEmailOnAccountError,
    UnauthorizedError,
    error_body,
)
from app.core.logging import get_logger
from app.core.security import decode_access_token
from app.schemas.auth import (
    AuthResponse,
    ChangePasswordRequest,
    ForgotPasswordRequest,
    LoginRequest,
    RefreshResponse,
    RegisterRequest,
    ResetPasswordWithTokenRequest,
    TokenCheckResponse,
    TokenUser,
)
from app.schemas.base import MessageResponse
from app.schemas.user import UserResponse
from app.services import auth as auth_service
from app.services.token_blacklist import TokenBlacklist, get_token_blacklist
from app.tasks.queue import enqueue_job

logger = get_logger(__name__)

router = APIRouter(prefix="/auth", tags=["Authentication"])

FORGOT_PASSWORD_MESSAGE = (
    "If an account with that identifier exists, you will receive a password reset email"
)


def _set_refresh_cookie(response: Response, refresh_token: str) -> None:
    """Set the refresh token as an HTTPOnly cookie scoped to the refresh path."""
    response.set_cookie(
        key=settings.REFRESH_COOKIE_NAME,
        value=refresh_token,
        httponly=True,  # Prevent JavaScript access (XSS protection)
        secure=settings.cookie_secure,  # HTTPS only in production
        samesite="strict",  # CSRF protection
        max_age=settings.REFRESH_TOKEN_EXPIRE_DAYS * 24 * 60 * 60,  # seconds
        path=settings.refresh_cookie_path,
    )


def _clear_refresh_cookie(response: Response) -> None:
    # Must match set_cookie's path or the browser keeps the cookie
    response.delete_cookie(
        key=settings.REFRESH_COOKIE_NAME,
        httponly=True,
        secure=settings.cookie_secure,
        samesite="strict",
        path=settings.refresh_cookie_path,
    )


@router.post("/register", response_model=AuthResponse)
async def register(
    data: RegisterRequest,
    response: Response,
    db: Annotated[AsyncSession, Depends(get_db)],
) -> AuthResponse:
    """
    Create an account and sign it in.

    Returns the user and an access token; the refresh token is set as a cookie.
    A phone or email that is already registered yields 400.
    """
    result = await auth_service.register(
        db,
        phone=data.phone,
        first_name=data.first_name,
        last_name=data.last_name,
        password=data.password,
        email=data.email,
        membership_category=data.membership_category,
    )
    _set_refresh_cookie(response, result.refresh_token)
    return AuthResponse(
        user=UserResponse.model_validate(result.user),
        access_token=result.access_token,
    )


@router.post("/login", response_model=AuthResponse)
async def login(
    credentials: LoginRequest,
    response: Response,
    db: Annotated[AsyncSession, Depends(get_db)],
) -> AuthResponse:
    """
    Authenticate by email or phone and password.

    Flow:
    1. Resolve identifier as email, then as phone
    2. Verify password (bcrypt)
    3. Reject inactive accounts
    4. Issue access token (body) and refresh token (cookie), replacing any previous session
    """
    result = await auth_service.login(db, credentials.identifier, credentials.password)
    _set_refresh_cookie(response, result.refresh_token)
    return AuthResponse(
        user=UserResponse.model_validate(result.user),
        access_token=result.access_token,
    )


@router.post("/refresh-token", response_model=RefreshResponse)
async def refresh_token(
    request: Request,
    response: Response,
    refresh_token: RefreshTokenCookie,
    db: Annotated[AsyncSession, Depends(get_db)],
) -> RefreshResponse | JSONResponse:
    """
    Exchange the refresh cookie for a new access token and a rotated refresh cookie.

    On failure the cookie is cleared so the client stops presenting it.
    """
    if not refresh_token:
        raise InvalidRefreshTokenError("No refresh token provided")

    try:
        tokens = await auth_service.refresh(db, refresh_token)
    except InvalidRefreshTokenError as e:
        failure = JSONResponse(
            status_code=e.status_code,
            content=error_body(request, e.status_code, e.message, e.error_name),
        )
        _clear_refresh_cookie(failure)
        return failure

    _set_refresh_cookie(response, tokens.refresh_token)
    return RefreshResponse(access_token=tokens.access_token)


@router.post("/refresh-token/check", response_model=TokenCheckResponse)
async def check_token(
    response: Response,
    refresh_token: RefreshTokenCookie,
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(bearer_scheme)],
    db: Annotated[AsyncSession, Depends(get_db)],
    blacklist: Annotated[TokenBlacklist, Depends(get_token_blacklist)],
) -> TokenCheckResponse:
    """
    Report whether the caller is still signed in.

    A valid bearer token is reported as-is. Otherwise, when the refresh cookie
    is present, it is redeemed and the new access token returned. Anything
    else is a 401 with action "login".
    """
    access_token = credentials.credentials if credentials else None

    if not access_token and not refresh_token:
        raise UnauthorizedError("No authentication tokens found")

    if access_token:
        try:
            claims = decode_access_token(access_token)
        except InvalidTokenError:
            claims = None
        if (
            claims is not None
            and claims.get("status") == UserStatus.ACTIVE.value
            and not await blacklist.is_revoked(claims["jti"])
        ):
            return TokenCheckResponse(
                message="Token is valid",
                user=TokenUser(
                    id=claims["sub"],
                    email=claims.get("email"),
                    role=claims["role"],
                    first_name=claims.get("firstName"),
                    last_name=claims.get("lastName"),
                ),
            )

    if not refresh_token:
        raise UnauthorizedError("Access token expired and no refresh token available")

    try:
        tokens = await auth_service.refresh(db, refresh_token)
    except InvalidRefreshTokenError as e:
        raise UnauthorizedError("Both tokens are invalid") from e

    _set_refresh_cookie(response, tokens.refresh_token)
    return TokenCheckResponse(
        message="Token refreshed successfully",
        access_token=tokens.access_token,
        refreshed=True,
    )


@router.post("/logout", response_model=MessageResponse)
async def logout(
    response: Response,
    claims: CurrentClaims,
    access_token: AccessToken,
    db: Annotated[AsyncSession, Depends(get_db)],
    blacklist: Annotated[TokenBlacklist, Depends(get_token_blacklist)],
) -> MessageResponse:
    """Revoke the presented access token and end the refresh session."""
    await auth_service.logout(db, claims["sub"], access_token, blacklist)
    _clear_refresh_cookie(response)
    return MessageResponse(message="Logged out successfully")


@router.post("/change-password", response_model=MessageResponse)
async def change_password(
    data: ChangePasswordRequest,
    claims: CurrentClaims,
    db: Annotated[AsyncSession, Depends(get_db)],
) -> MessageResponse:
    await auth_service.change_password(db, claims["sub"], data.old_password, data.new_password)
    return MessageResponse(message="Password changed successfully")


@router.post("/forgot-password", response_model=MessageResponse, status_code=status.HTTP_200_OK)
async def forgot_password(
    data: ForgotPasswordRequest,
    db: Annotated[AsyncSession, Depends(get_db)],
) -> MessageResponse:
    """
    Request a password reset email.

    The response is identical whether or not the account exists, has an
    email address, or the email could be queued.
    """
    try:
        reset = await auth_service.forgot_password(db, data.identifier)
    except (AccountNotFoundError, NoEmailOnAccountError) as e:
        logger.info("password_reset_not_sent", reason=e.error_name)
        return MessageResponse(message=FORGOT_PASSWORD_MESSAGE)

    job_id = await enqueue_job(
        "send_password_reset_email_job",
        user_id=reset.user.id,
        token=reset.reset_token,
    )
    if job_id is None:
        logger.error("password_reset_email_not_queued", user_id=reset.user.id)

    return MessageResponse(message=FORGOT_PASSWORD_MESSAGE)


@router.post("/reset-password-with-token", response_model=MessageResponse)
async def reset_password_with_token(
    data: ResetPasswordWithTokenRequest,
    db: Annotated[AsyncSession, Depends(get_db)],
) -> MessageResponse:
    await auth_service.reset_password_with_token(db, data.token, data.new_password)
    return MessageResponse(
        message="Password has been reset successfully. Please login with your new password."
    )
