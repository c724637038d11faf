"""
Security utilities for authentication.

This module provides:
- Password hashing and verification using bcrypt
- Signed access and refresh token generation and verification (PyJWT)
- Keyed hashing for tokens that are stored server-side
"""

import asyncio
import base64
import hashlib
import hmac
import re
import secrets
import uuid
from datetime import UTC, datetime, timedelta
from enum import Enum
from functools import lru_cache
from typing import Any, Protocol

import bcrypt
import jwt

from app.config import settings
from app.core.exceptions import InvalidTokenError

ACCESS_TOKEN_TYPE = "access"
REFRESH_TOKEN_TYPE = "refresh"

PASSWORD_SPECIAL_CHARACTERS = "@$!%*?&"
_ALLOWED_PASSWORD_RE = re.compile(r"^[A-Za-z\d@$!%*?&]+$")


class TokenSubject(Protocol):
    """The user attributes embedded in access-token claims."""

    id: str
    email: str | None
    role: Any
    status: Any
    user_type: Any
    first_name: str
    last_name: str


# ==================== Passwords ====================


def validate_password_strength(password: str) -> tuple[bool, str | None]:
    """
    Validate password meets security requirements.

    Requirements:
    - 8 to 16 characters
    - At least one uppercase letter, one lowercase letter and one digit
    - At least one special character from @$!%*?&
    - No characters outside letters, digits and those specials

    Returns:
        Tuple of (is_valid, error_message)
    """
    if not 8 <= len(password) <= 16:
        return False, "Password must be 8-16 characters long"

    if not re.search(r"[A-Z]", password):
        return False, "Password must contain at least one uppercase letter"

    if not re.search(r"[a-z]", password):
        return False, "Password must contain at least one lowercase letter"

    if not re.search(r"\d", password):
        return False, "Password must contain at least one digit"

    if not any(ch in PASSWORD_SPECIAL_CHARACTERS for ch in password):
        return False, (
            f"Password must contain at least one special character ({PASSWORD_SPECIAL_CHARACTERS})"
        )

    if not _ALLOWED_PASSWORD_RE.match(password):
        return False, (
            f"Password may only contain letters, digits and {PASSWORD_SPECIAL_CHARACTERS}"
        )

    return True, None


def _prepare_password_for_bcrypt(password: str) -> bytes:
    """
    Bcrypt only reads the first 72 bytes; longer inputs are SHA256-hashed
    and base64-encoded first so that every byte still counts.
    """
    password_bytes = password.encode("utf-8")
    if len(password_bytes) <= 72:
        return password_bytes
    return base64.b64encode(hashlib.sha256(password_bytes).digest())


def _hash_password_sync(password: str, rounds: int) -> str:
    salt = bcrypt.gensalt(rounds=rounds)
    return bcrypt.hashpw(_prepare_password_for_bcrypt(password), salt).decode("utf-8")


def _verify_password_sync(plain_password: str, hashed_password: str) -> bool:
    try:
        return bcrypt.checkpw(
            _prepare_password_for_bcrypt(plain_password), hashed_password.encode("utf-8")
        )
    except ValueError:
        # Not a bcrypt hash (e.g. an unset or corrupted column)
        return False


async def hash_password(password: str) -> str:
    """Hash a password with bcrypt at the configured cost, off the event loop."""
    return await asyncio.to_thread(_hash_password_sync, password, settings.BCRYPT_ROUNDS)


async def verify_password(plain_password: str, hashed_password: str) -> bool:
    """
    Verify a password against a bcrypt hash.

    bcrypt.checkpw compares in constant time; the work runs in a thread so
    a slow cost factor never blocks other requests.
    """
    return await asyncio.to_thread(_verify_password_sync, plain_password, hashed_password)


@lru_cache(maxsize=1)
def _dummy_password_hash() -> str:
    return _hash_password_sync(secrets.token_urlsafe(16), settings.BCRYPT_ROUNDS)


async def burn_password_check(plain_password: str) -> None:
    """
    Spend the same bcrypt work as a real check when there is no user to check.

    Keeps "unknown account" and "wrong password" indistinguishable by timing.
    """
    await verify_password(plain_password, _dummy_password_hash())


# ==================== Tokens ====================


def _claim_value(value: Any) -> Any:
    return value.value if isinstance(value, Enum) else value


def _encode(claims: dict[str, Any], secret: str, token_type: str, expires_delta: timedelta) -> str:
    now = datetime.now(UTC)
    payload = {
        **claims,
        "type": token_type,
        "jti": uuid.uuid4().hex,
        "iat": now,
        "exp": now + expires_delta,
    }
    return jwt.encode(payload, secret, algorithm=settings.JWT_ALGORITHM)


def create_access_token(user: TokenSubject, expires_delta: timedelta | None = None) -> str:
    """
    Create a short-lived signed access token carrying the user's identity claims.

    Args:
        user: The authenticated user
        expires_delta: Optional override for ACCESS_TOKEN_EXPIRE_MINUTES

    Returns:
        Encoded JWT
    """
    if expires_delta is None:
        expires_delta = timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)

    claims = {
        "sub": str(user.id),
        "email": user.email,
        "role": _claim_value(user.role),
        "status": _claim_value(user.status),
        "userType": _claim_value(user.user_type),
        "firstName": user.first_name,
        "lastName": user.last_name,
    }
    return _encode(claims, settings.JWT_ACCESS_SECRET, ACCESS_TOKEN_TYPE, expires_delta)


def create_refresh_token(user: TokenSubject, expires_delta: timedelta | None = None) -> str:
    """
    Create a refresh token that carries only the subject.

    Role and status are deliberately absent: they are re-read from the store
    on every refresh.
    """
    if expires_delta is None:
        expires_delta = timedelta(days=settings.REFRESH_TOKEN_EXPIRE_DAYS)
    return _encode(
        {"sub": str(user.id)}, settings.JWT_REFRESH_SECRET, REFRESH_TOKEN_TYPE, expires_delta
    )


def verify_token(token: str, secret: str, expected_type: str) -> dict[str, Any]:
    """
    Verify signature, expiry and token type, and return the claims.

    Raises:
        InvalidTokenError: On any verification failure
    """
    try:
        claims: dict[str, Any] = jwt.decode(
            token,
            secret,
            algorithms=[settings.JWT_ALGORITHM],
            options={"require": ["exp", "sub", "type", "jti"]},
        )
    except jwt.ExpiredSignatureError as e:
        raise InvalidTokenError("Token has expired") from e
    except jwt.PyJWTError as e:
        raise InvalidTokenError("Invalid token") from e

    if claims.get("type") != expected_type:
        raise InvalidTokenError("Invalid token type")
    if not claims.get("sub"):
        raise InvalidTokenError("Invalid token subject")

    return claims


def decode_access_token(token: str) -> dict[str, Any]:
    return verify_token(token, settings.JWT_ACCESS_SECRET, ACCESS_TOKEN_TYPE)


def decode_refresh_token(token: str) -> dict[str, Any]:
    return verify_token(token, settings.JWT_REFRESH_SECRET, REFRESH_TOKEN_TYPE)


def token_expiration(claims: dict[str, Any]) -> datetime:
    """Expiry of already-verified claims as an aware UTC datetime."""
    return datetime.fromtimestamp(int(claims["exp"]), tz=UTC)


# ==================== Stored token hashes ====================


def hash_token(token: str) -> str:
    """
    Keyed hash for tokens persisted server-side (refresh and reset tokens).

    HMAC with a server secret rather than a bare digest, so a leaked users
    table cannot be used to test guessed tokens offline.
    """
    return hmac.new(
        settings.JWT_REFRESH_SECRET.encode("utf-8"), token.encode("utf-8"), hashlib.sha256
    ).hexdigest()


def token_matches(token: str, stored_hash: str | None) -> bool:
    if not stored_hash:
        return False
    return hmac.compare_digest(hash_token(token), stored_hash)


def generate_reset_token() -> str:
    """High-entropy URL-safe token for password-reset links."""
    return secrets.token_urlsafe(32)
