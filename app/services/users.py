"""
Credential store: persistence of user accounts.

Passwords are hashed here, on the way into the database, so no caller can
store a plaintext password by accident. Unique-index violations on phone or
email surface as DuplicateAccountError.
"""

from typing import Any

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import MembershipCategory, UserRole
from app.core.exceptions import DuplicateAccountError
from app.core.logging import get_logger
from app.core.security import hash_password
from app.models.user import Users

logger = get_logger(__name__)


async def get_user_by_id(db: AsyncSession, user_id: str) -> Users | None:
    return await db.get(Users, user_id)


async def get_user_by_email(db: AsyncSession, email: str) -> Users | None:
    email = email.strip().lower()
    if not email:
        return None
    result = await db.execute(select(Users).where(Users.email == email))  # type: ignore[arg-type]
    return result.scalar_one_or_none()


async def get_user_by_phone(db: AsyncSession, phone: str) -> Users | None:
    result = await db.execute(select(Users).where(Users.phone == phone.strip()))  # type: ignore[arg-type]
    return result.scalar_one_or_none()


async def find_by_identifier(db: AsyncSession, identifier: str) -> Users | None:
    """Resolve a login/reset identifier against email first, then phone."""
    user = await get_user_by_email(db, identifier)
    if user is None:
        user = await get_user_by_phone(db, identifier)
    return user


async def get_user_by_reset_token_hash(db: AsyncSession, token_hash: str) -> Users | None:
    result = await db.execute(
        select(Users).where(Users.password_reset_token == token_hash)  # type: ignore[arg-type]
    )
    return result.scalar_one_or_none()


async def ensure_unique(
    db: AsyncSession,
    phone: str | None = None,
    email: str | None = None,
    exclude_user_id: str | None = None,
) -> None:
    """
    Raise DuplicateAccountError if another account holds the phone or email.

    The unique indexes remain the source of truth; this check exists to give
    the common case a clean error before the insert is attempted.
    """
    for column, value in ((Users.phone, phone), (Users.email, email)):
        if not value:
            continue
        query = select(Users.id).where(column == value)  # type: ignore[arg-type]
        if exclude_user_id is not None:
            query = query.where(Users.id != exclude_user_id)  # type: ignore[arg-type]
        if (await db.execute(query)).first() is not None:
            raise DuplicateAccountError()


async def _flush_or_duplicate(db: AsyncSession) -> None:
    try:
        await db.flush()
    except IntegrityError as e:
        await db.rollback()
        logger.info("user_unique_violation", error=str(e.orig))
        raise DuplicateAccountError() from e


async def create_user(
    db: AsyncSession,
    *,
    phone: str,
    first_name: str,
    last_name: str,
    password: str,
    email: str | None = None,
    membership_category: MembershipCategory | None = None,
    role: UserRole = UserRole.USER,
) -> Users:
    """Insert a new account, hashing the password. Raises DuplicateAccountError."""
    await ensure_unique(db, phone=phone, email=email)

    user = Users(
        phone=phone,
        first_name=first_name,
        last_name=last_name,
        email=email or None,
        password=await hash_password(password),
        role=role,
        membership_category=membership_category or MembershipCategory.FREE,
    )
    db.add(user)
    await _flush_or_duplicate(db)
    await db.refresh(user)
    return user


async def set_password(db: AsyncSession, user: Users, new_password: str) -> None:
    user.password = await hash_password(new_password)
    await db.flush()


async def update_user(db: AsyncSession, user: Users, changes: dict[str, Any]) -> Users:
    """
    Apply a partial update. A "password" key is hashed before storage.

    Raises:
        DuplicateAccountError: If the new phone or email belongs to another account
    """
    await ensure_unique(
        db,
        phone=changes.get("phone"),
        email=changes.get("email"),
        exclude_user_id=user.id,
    )

    if "password" in changes:
        changes = {**changes, "password": await hash_password(changes["password"])}

    for field, value in changes.items():
        setattr(user, field, value)

    await _flush_or_duplicate(db)
    await db.refresh(user)
    return user


async def list_users(
    db: AsyncSession,
    *,
    offset: int,
    limit: int,
    include_super_admins: bool,
) -> tuple[list[Users], int]:
    """Page of users, newest first, and the total count for the same filter."""
    query = select(Users)
    count_query = select(func.count()).select_from(Users)
    if not include_super_admins:
        query = query.where(Users.role != UserRole.SUPER_ADMIN)  # type: ignore[arg-type]
        count_query = count_query.where(Users.role != UserRole.SUPER_ADMIN)  # type: ignore[arg-type]

    total = (await db.execute(count_query)).scalar_one()
    query = query.order_by(Users.created_at.desc()).offset(offset).limit(limit)  # type: ignore[attr-defined]
    result = await db.execute(query)
    return list(result.scalars().all()), total


async def delete_user(db: AsyncSession, user: Users) -> None:
    await db.delete(user)
    await db.flush()
