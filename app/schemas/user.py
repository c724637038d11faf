"""
User schemas for API requests and responses.

Responses never include the password or the stored token hashes: UserResponse
lists its fields explicitly instead of inheriting from the table model.
"""

import re
from typing import Annotated, Any

from pydantic import BeforeValidator, EmailStr, Field, field_validator

from app.config import MembershipCategory, UserRole, UserStatus, UserType
from app.core.security import validate_password_strength
from app.schemas.base import CamelModel, UTCDatetime, UTCDatetimeOptional

# Bangladeshi mobile numbers, optionally prefixed with +88
PHONE_PATTERN = re.compile(r"^(\+88)?01[3-9]\d{8}$")


def normalize_email(v: Any) -> Any:
    """Trim and lower-case; blank becomes None so it is stored as NULL."""
    if isinstance(v, str):
        v = v.strip().lower()
        return v or None
    return v


NormalizedEmail = Annotated[EmailStr | None, BeforeValidator(normalize_email)]


def check_phone(v: str) -> str:
    v = v.strip()
    if not PHONE_PATTERN.match(v):
        raise ValueError("Invalid phone number")
    return v


def check_password(v: str) -> str:
    is_valid, error_message = validate_password_strength(v)
    if not is_valid:
        raise ValueError(error_message)
    return v


class UserResponse(CamelModel):
    """Public view of a user account."""

    id: str
    first_name: str
    last_name: str
    phone: str
    email: str | None = None
    role: UserRole
    user_type: UserType
    membership_category: MembershipCategory
    status: UserStatus
    last_login: UTCDatetimeOptional = None
    created_at: UTCDatetime
    updated_at: UTCDatetime


class UserListResponse(CamelModel):
    total: int
    page: int
    per_page: int
    users: list[UserResponse]


class UserUpdate(CamelModel):
    """
    Partial update for a user.

    Profile fields may be changed by the account owner; role, status, user_type
    and membership_category require an admin (checked in the route).
    """

    first_name: str | None = Field(default=None, min_length=1, max_length=100)
    last_name: str | None = Field(default=None, min_length=1, max_length=100)
    phone: str | None = None
    email: NormalizedEmail = None
    password: str | None = None

    role: UserRole | None = None
    status: UserStatus | None = None
    user_type: UserType | None = None
    membership_category: MembershipCategory | None = None

    @field_validator("phone")
    @classmethod
    def validate_phone(cls, v: str | None) -> str | None:
        return check_phone(v) if v is not None else v

    @field_validator("password")
    @classmethod
    def validate_password(cls, v: str | None) -> str | None:
        return check_password(v) if v is not None else v


class UserStatusUpdate(CamelModel):
    status: UserStatus
