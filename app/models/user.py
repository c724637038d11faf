"""
SQLModel-based User models with inheritance for security

This module defines the Users database model using SQLModel, which combines
SQLAlchemy and Pydantic functionality. UserBase holds the profile fields and
Users (the table) adds credential and token fields. The API response schema in
app/schemas/user.py is a separate CamelModel that lists only public fields, so
credential fields (password hash, refresh/reset token hashes) cannot leak
through it.
"""

import uuid
from datetime import datetime

from sqlalchemy import Index
from sqlmodel import Field, SQLModel

from app.config import MembershipCategory, UserRole, UserStatus, UserType
from app.utils import utc_now


def new_user_id() -> str:
    return uuid.uuid4().hex


class UserBase(SQLModel):
    """
    Base model with shared public fields for Users.

    These fields are safe to expose via the API.
    """

    first_name: str = Field(max_length=100)
    last_name: str = Field(max_length=100)
    phone: str = Field(max_length=20)
    email: str | None = Field(default=None, max_length=255)

    role: UserRole = Field(default=UserRole.USER)
    user_type: UserType = Field(default=UserType.USER)
    membership_category: MembershipCategory = Field(default=MembershipCategory.FREE)
    status: UserStatus = Field(default=UserStatus.ACTIVE)


class Users(UserBase, table=True):
    """
    Database table for users.

    Internal/sensitive fields (never exposed via the API):
    - password: bcrypt hash
    - refresh_token: keyed hash of the single live refresh token, NULL when signed out
    - password_reset_*: keyed hash and validity window of a pending reset
    """

    __tablename__ = "users"

    # Email is nullable; NULLs do not collide under a unique index
    __table_args__ = (
        Index("idx_users_phone", "phone", unique=True),
        Index("idx_users_email", "email", unique=True),
        Index("idx_users_password_reset_token", "password_reset_token"),
    )

    id: str = Field(default_factory=new_user_id, primary_key=True, max_length=32)

    # Authentication (highly sensitive - never expose)
    password: str = Field(max_length=255)
    refresh_token: str | None = Field(default=None, max_length=128)
    password_reset_token: str | None = Field(default=None, max_length=128)
    password_reset_sent_at: datetime | None = Field(default=None)
    password_reset_expires_at: datetime | None = Field(default=None)

    last_login: datetime | None = Field(default=None)
    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(
        default_factory=utc_now, sa_column_kwargs={"onupdate": utc_now}
    )

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()
