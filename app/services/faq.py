"""
FAQ and FAQ category operations.

Rules:
- Category names are unique (ConflictError).
- Placing a category at an order shifts every other category at or after that
  order down by one.
- FAQ order is unique within its category (BadRequestError).
- At most FAQ_HOMEPAGE_LIMIT FAQs are flagged for the homepage (BadRequestError).
"""

from typing import Any

from sqlalchemy import delete, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import settings
from app.core.exceptions import BadRequestError, ConflictError, NotFoundError
from app.core.logging import get_logger
from app.models.faq import FaqCategories, Faqs

logger = get_logger(__name__)


# ==================== Categories ====================


async def get_category(db: AsyncSession, category_id: int) -> FaqCategories:
    category = await db.get(FaqCategories, category_id)
    if category is None:
        raise NotFoundError(f"FAQ category with ID {category_id} not found")
    return category


async def list_categories(db: AsyncSession) -> list[FaqCategories]:
    result = await db.execute(
        select(FaqCategories).order_by(FaqCategories.order, FaqCategories.id)  # type: ignore[arg-type]
    )
    return list(result.scalars().all())


async def _ensure_unique_name(
    db: AsyncSession, name: str, exclude_id: int | None = None
) -> None:
    query = select(FaqCategories.id).where(FaqCategories.name == name)  # type: ignore[arg-type]
    if exclude_id is not None:
        query = query.where(FaqCategories.id != exclude_id)  # type: ignore[arg-type]
    if (await db.execute(query)).first() is not None:
        raise ConflictError(f'Category with name "{name}" already exists')


async def _shift_category_orders(
    db: AsyncSession, new_order: int, exclude_id: int | None = None
) -> None:
    stmt = (
        update(FaqCategories)
        .where(FaqCategories.order >= new_order)  # type: ignore[arg-type]
        .values(order=FaqCategories.order + 1)
    )
    if exclude_id is not None:
        stmt = stmt.where(FaqCategories.id != exclude_id)  # type: ignore[arg-type]
    await db.execute(stmt)


async def create_category(db: AsyncSession, name: str, order: int | None) -> FaqCategories:
    await _ensure_unique_name(db, name)

    if order is not None:
        await _shift_category_orders(db, order)

    category = FaqCategories(name=name, order=order if order is not None else 0)
    db.add(category)
    await db.commit()
    await db.refresh(category)

    logger.info("faq_category_created", category_id=category.id)
    return category


async def update_category(
    db: AsyncSession, category_id: int, changes: dict[str, Any]
) -> FaqCategories:
    category = await get_category(db, category_id)

    if changes.get("name"):
        await _ensure_unique_name(db, changes["name"], exclude_id=category_id)

    if changes.get("order") is not None:
        await _shift_category_orders(db, changes["order"], exclude_id=category_id)

    for field, value in changes.items():
        if value is not None:
            setattr(category, field, value)

    await db.commit()
    await db.refresh(category)
    return category


async def delete_category(db: AsyncSession, category_id: int) -> tuple[str, int]:
    """Delete a category and its FAQs. Returns (category name, FAQs deleted)."""
    category = await get_category(db, category_id)
    name = category.name

    # Explicit delete: SQLite only honours ON DELETE CASCADE with foreign_keys=ON
    result = await db.execute(delete(Faqs).where(Faqs.category_id == category_id))  # type: ignore[arg-type]
    deleted_faqs: int = result.rowcount or 0  # type: ignore[attr-defined]

    await db.delete(category)
    await db.commit()

    logger.info("faq_category_deleted", category_id=category_id, deleted_faqs=deleted_faqs)
    return name, deleted_faqs


# ==================== FAQs ====================


def _faq_ordering() -> tuple[Any, ...]:
    return (Faqs.order, Faqs.created_at.desc(), Faqs.id.desc())  # type: ignore[attr-defined, union-attr]


async def get_faq(db: AsyncSession, faq_id: int) -> Faqs:
    faq = await db.get(Faqs, faq_id)
    if faq is None:
        raise NotFoundError(f"FAQ with ID {faq_id} not found")
    return faq


async def list_faqs(db: AsyncSession, category_id: int | None = None) -> list[Faqs]:
    query = select(Faqs)
    if category_id is not None:
        await get_category(db, category_id)
        query = query.where(Faqs.category_id == category_id)  # type: ignore[arg-type]
    result = await db.execute(query.order_by(*_faq_ordering()))
    return list(result.scalars().all())


async def list_homepage_faqs(db: AsyncSession) -> list[Faqs]:
    result = await db.execute(
        select(Faqs)
        .where(Faqs.show_home_page == True)  # noqa: E712
        .order_by(*_faq_ordering())
        .limit(settings.FAQ_HOMEPAGE_LIMIT)
    )
    return list(result.scalars().all())


async def list_faqs_grouped(db: AsyncSession) -> list[tuple[FaqCategories, list[Faqs]]]:
    """Every category (by order) with its FAQs."""
    categories = await list_categories(db)
    result = await db.execute(select(Faqs).order_by(*_faq_ordering()))
    by_category: dict[int, list[Faqs]] = {}
    for faq in result.scalars().all():
        by_category.setdefault(faq.category_id, []).append(faq)
    return [(category, by_category.get(category.id or 0, [])) for category in categories]


async def _ensure_homepage_capacity(db: AsyncSession, exclude_id: int | None = None) -> None:
    query = select(func.count()).select_from(Faqs).where(Faqs.show_home_page == True)  # noqa: E712
    if exclude_id is not None:
        query = query.where(Faqs.id != exclude_id)  # type: ignore[arg-type]
    count = (await db.execute(query)).scalar_one()
    if count >= settings.FAQ_HOMEPAGE_LIMIT:
        raise BadRequestError(
            f"Maximum {settings.FAQ_HOMEPAGE_LIMIT} FAQs can be shown on the homepage. "
            "Please remove some existing homepage FAQs first."
        )


async def _ensure_unique_order(
    db: AsyncSession, category_id: int, order: int, exclude_id: int | None = None
) -> None:
    query = select(Faqs.id).where(
        Faqs.category_id == category_id,  # type: ignore[arg-type]
        Faqs.order == order,  # type: ignore[arg-type]
    )
    if exclude_id is not None:
        query = query.where(Faqs.id != exclude_id)  # type: ignore[arg-type]
    if (await db.execute(query)).first() is not None:
        raise BadRequestError(
            f"An FAQ with order {order} already exists in this category. "
            "Please choose a different order number."
        )


async def create_faq(
    db: AsyncSession,
    *,
    category_id: int,
    question: str,
    answer: str,
    order: int | None = None,
    show_home_page: bool = False,
) -> Faqs:
    await get_category(db, category_id)

    if show_home_page:
        await _ensure_homepage_capacity(db)

    if order is not None:
        await _ensure_unique_order(db, category_id, order)

    faq = Faqs(
        category_id=category_id,
        question=question,
        answer=answer,
        order=order if order is not None else 0,
        show_home_page=show_home_page,
    )
    db.add(faq)
    await db.commit()
    await db.refresh(faq)

    logger.info("faq_created", faq_id=faq.id, category_id=category_id)
    return faq


async def update_faq(db: AsyncSession, faq_id: int, changes: dict[str, Any]) -> Faqs:
    faq = await get_faq(db, faq_id)

    if changes.get("category_id") is not None:
        await get_category(db, changes["category_id"])

    if changes.get("show_home_page"):
        await _ensure_homepage_capacity(db, exclude_id=faq_id)

    if changes.get("order") is not None:
        category_id = changes.get("category_id") or faq.category_id
        await _ensure_unique_order(db, category_id, changes["order"], exclude_id=faq_id)

    for field, value in changes.items():
        if value is not None:
            setattr(faq, field, value)

    await db.commit()
    await db.refresh(faq)
    return faq


async def reorder_faq(db: AsyncSession, faq_id: int, new_order: int) -> Faqs:
    faq = await get_faq(db, faq_id)
    await _ensure_unique_order(db, faq.category_id, new_order, exclude_id=faq_id)

    faq.order = new_order
    await db.commit()
    await db.refresh(faq)
    return faq


async def delete_faq(db: AsyncSession, faq_id: int) -> None:
    faq = await get_faq(db, faq_id)
    await db.delete(faq)
    await db.commit()
