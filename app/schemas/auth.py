"""
Authentication schemas for request/response validation.

This module defines Pydantic models for authentication-related API operations:
- Registration and login
- Token refresh and token check responses
- Password change and token-based password reset
"""

from pydantic import AliasChoices, Field, field_validator

from app.config import MembershipCategory, UserRole
from app.schemas.base import CamelModel
from app.schemas.user import NormalizedEmail, UserResponse, check_password, check_phone


class RegisterRequest(CamelModel):
    """Request schema for user registration."""

    phone: str = Field(validation_alias=AliasChoices("phone", "phoneNumber"))
    first_name: str = Field(..., min_length=1, max_length=100)
    last_name: str = Field(..., min_length=1, max_length=100)
    password: str
    email: NormalizedEmail = None
    membership_category: MembershipCategory | None = None

    @field_validator("phone")
    @classmethod
    def validate_phone(cls, v: str) -> str:
        return check_phone(v)

    @field_validator("password")
    @classmethod
    def validate_password(cls, v: str) -> str:
        """Validate password strength."""
        return check_password(v)


class LoginRequest(CamelModel):
    """Request schema for login by email or phone."""

    identifier: str = Field(..., min_length=1, max_length=255)
    password: str = Field(..., min_length=1, max_length=255)

    @field_validator("identifier")
    @classmethod
    def strip_identifier(cls, v: str) -> str:
        return v.strip()


class AuthResponse(CamelModel):
    """Response schema for register and login; the refresh token travels in a cookie."""

    user: UserResponse
    access_token: str


class RefreshResponse(CamelModel):
    access_token: str
    message: str = "Token refreshed successfully"


class TokenUser(CamelModel):
    """Identity read from a verified access token."""

    id: str
    email: str | None = None
    role: UserRole
    first_name: str | None = None
    last_name: str | None = None


class TokenCheckResponse(CamelModel):
    """
    Result of a token check.

    Either the presented access token is valid (user is set), or it was not
    and the refresh cookie was used to mint a new one (access_token is set).
    """

    valid: bool = True
    message: str
    user: TokenUser | None = None
    access_token: str | None = None
    refreshed: bool = False


class ChangePasswordRequest(CamelModel):
    """Request schema for password change."""

    old_password: str = Field(..., min_length=1, max_length=255)
    new_password: str

    @field_validator("new_password")
    @classmethod
    def validate_new_password(cls, v: str) -> str:
        """Validate new password strength."""
        return check_password(v)


class ForgotPasswordRequest(CamelModel):
    """Request schema for forgot password (email or phone)."""

    identifier: str = Field(..., min_length=1, max_length=255)

    @field_validator("identifier")
    @classmethod
    def strip_identifier(cls, v: str) -> str:
        return v.strip()


class ResetPasswordWithTokenRequest(CamelModel):
    """Request schema for completing a password reset."""

    token: str = Field(..., min_length=1)
    new_password: str

    @field_validator("new_password")
    @classmethod
    def validate_new_password(cls, v: str) -> str:
        return check_password(v)
