"""
Session/auth service.

The only code that mints tokens or mutates credential fields on Users. Every
operation takes the request's AsyncSession and raises an AppError subclass on
failure; HTTP translation happens in the exception handlers.

Session model: one live refresh token per user. Its keyed hash is stored on
the user row, and every login, registration or refresh overwrites it, so a
superseded refresh token can never be redeemed again.
"""

from dataclasses import dataclass
from datetime import timedelta

from sqlalchemy.ext.asyncio import AsyncSession

from app.config import MembershipCategory, UserStatus, settings
from app.core.exceptions import (
    AccountNotFoundError,
    InvalidCredentialsError,
    InvalidOrExpiredTokenError,
    InvalidRefreshTokenError,
    InvalidTokenError,
    NoEmailOnAccountError,
)
from app.core.logging import get_logger
from app.core.security import (
    burn_password_check,
    create_access_token,
    create_refresh_token,
    decode_access_token,
    decode_refresh_token,
    generate_reset_token,
    hash_token,
    token_expiration,
    token_matches,
    verify_password,
)
from app.models.user import Users
from app.services import users as user_store
from app.services.token_blacklist import TokenBlacklist
from app.utils import utc_now

logger = get_logger(__name__)


@dataclass
class AuthResult:
    user: Users
    access_token: str
    refresh_token: str


@dataclass
class TokenPair:
    access_token: str
    refresh_token: str


@dataclass
class PasswordResetRequest:
    user: Users
    reset_token: str


async def _issue_session(db: AsyncSession, user: Users) -> TokenPair:
    """Mint an access/refresh pair and store the refresh hash, replacing any previous one."""
    access_token = create_access_token(user)
    refresh_token = create_refresh_token(user)
    user.refresh_token = hash_token(refresh_token)
    await db.flush()
    return TokenPair(access_token=access_token, refresh_token=refresh_token)


async def register(
    db: AsyncSession,
    *,
    phone: str,
    first_name: str,
    last_name: str,
    password: str,
    email: str | None = None,
    membership_category: MembershipCategory | None = None,
) -> AuthResult:
    """
    Create an account and sign it in.

    Raises:
        DuplicateAccountError: Phone, or email when given, already registered
    """
    user = await user_store.create_user(
        db,
        phone=phone,
        first_name=first_name,
        last_name=last_name,
        password=password,
        email=email,
        membership_category=membership_category,
    )
    tokens = await _issue_session(db, user)
    await db.commit()

    logger.info("user_registered", user_id=user.id)
    return AuthResult(user=user, access_token=tokens.access_token, refresh_token=tokens.refresh_token)


async def login(db: AsyncSession, identifier: str, password: str) -> AuthResult:
    """
    Authenticate by email or phone.

    Raises:
        InvalidCredentialsError: Unknown identifier, wrong password or inactive account
    """
    user = await user_store.find_by_identifier(db, identifier)

    if user is None:
        await burn_password_check(password)
        logger.info("login_failed", reason="unknown_identifier")
        raise InvalidCredentialsError()

    if not await verify_password(password, user.password):
        logger.info("login_failed", reason="bad_password", user_id=user.id)
        raise InvalidCredentialsError()

    if user.status != UserStatus.ACTIVE:
        logger.info("login_failed", reason="inactive", user_id=user.id)
        raise InvalidCredentialsError("User account is inactive")

    user.last_login = utc_now()
    tokens = await _issue_session(db, user)
    await db.commit()

    logger.info("user_logged_in", user_id=user.id)
    return AuthResult(user=user, access_token=tokens.access_token, refresh_token=tokens.refresh_token)


async def refresh(db: AsyncSession, presented_token: str) -> TokenPair:
    """
    Redeem a refresh token for a new pair (rotation).

    Raises:
        InvalidRefreshTokenError: Token fails verification, its user is gone or
            inactive, or it is not the one currently stored for the user
    """
    try:
        claims = decode_refresh_token(presented_token)
    except InvalidTokenError as e:
        raise InvalidRefreshTokenError() from e

    user = await user_store.get_user_by_id(db, claims["sub"])
    if user is None or user.status != UserStatus.ACTIVE:
        raise InvalidRefreshTokenError()

    if not token_matches(presented_token, user.refresh_token):
        logger.warning("refresh_token_mismatch", user_id=user.id)
        raise InvalidRefreshTokenError()

    tokens = await _issue_session(db, user)
    await db.commit()

    logger.info("refresh_token_rotated", user_id=user.id)
    return tokens


async def logout(
    db: AsyncSession,
    user_id: str,
    access_token: str,
    blacklist: TokenBlacklist,
) -> None:
    """Revoke the presented access token and drop the stored refresh token."""
    try:
        claims = decode_access_token(access_token)
    except InvalidTokenError:
        claims = None

    if claims is not None:
        await blacklist.revoke(claims["jti"], token_expiration(claims))

    user = await user_store.get_user_by_id(db, user_id)
    if user is not None:
        user.refresh_token = None
        await db.commit()

    logger.info("user_logged_out", user_id=user_id)


async def change_password(
    db: AsyncSession,
    user_id: str,
    old_password: str,
    new_password: str,
) -> None:
    """
    Raises:
        InvalidCredentialsError: Old password does not verify (nothing is changed)
    """
    user = await user_store.get_user_by_id(db, user_id)
    if user is None:
        await burn_password_check(old_password)
        raise InvalidCredentialsError("Invalid old password")

    if not await verify_password(old_password, user.password):
        logger.info("change_password_failed", user_id=user_id)
        raise InvalidCredentialsError("Invalid old password")

    await user_store.set_password(db, user, new_password)
    await db.commit()

    logger.info("password_changed", user_id=user_id)


async def forgot_password(db: AsyncSession, identifier: str) -> PasswordResetRequest:
    """
    Start a password reset.

    Only the keyed hash of the token is stored; the plaintext is returned for
    delivery and never logged.

    Raises:
        AccountNotFoundError: No account for the identifier
        NoEmailOnAccountError: Account exists but has no email to send to
    """
    user = await user_store.find_by_identifier(db, identifier)
    if user is None:
        raise AccountNotFoundError()
    if not user.email:
        raise NoEmailOnAccountError()

    token = generate_reset_token()
    now = utc_now()
    user.password_reset_token = hash_token(token)
    user.password_reset_sent_at = now
    user.password_reset_expires_at = now + timedelta(
        minutes=settings.PASSWORD_RESET_EXPIRE_MINUTES
    )
    await db.commit()

    logger.info("password_reset_requested", user_id=user.id)
    return PasswordResetRequest(user=user, reset_token=token)


async def reset_password_with_token(db: AsyncSession, token: str, new_password: str) -> None:
    """
    Complete a password reset and end any existing session.

    Raises:
        InvalidOrExpiredTokenError: No account holds the token, or it has expired
    """
    user = await user_store.get_user_by_reset_token_hash(db, hash_token(token))
    if user is None:
        raise InvalidOrExpiredTokenError()

    expires_at = user.password_reset_expires_at
    if expires_at is None or expires_at <= utc_now():
        logger.info("password_reset_token_expired", user_id=user.id)
        raise InvalidOrExpiredTokenError()

    await user_store.set_password(db, user, new_password)
    user.password_reset_token = None
    user.password_reset_sent_at = None
    user.password_reset_expires_at = None
    user.refresh_token = None
    await db.commit()

    logger.info("password_reset_completed", user_id=user.id)
