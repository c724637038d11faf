"""
FAQ endpoints. Reads are public; writes need ADMIN or SUPER_ADMIN.
"""

from typing import Annotated

from fastapi import APIRouter, Depends, Path, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.auth import AdminClaims
from app.core.database import get_db
from app.schemas.base import MessageResponse
from app.schemas.faq import (
    FaqCategorySummary,
    FaqCreate,
    FaqGroup,
    FaqReorder,
    FaqResponse,
    FaqUpdate,
)
from app.services import faq as faq_service

router = APIRouter(prefix="/faqs", tags=["faqs"])


@router.post("", response_model=FaqResponse, status_code=status.HTTP_201_CREATED)
async def create_faq(
    data: FaqCreate,
    _: AdminClaims,
    db: Annotated[AsyncSession, Depends(get_db)],
) -> FaqResponse:
    faq = await faq_service.create_faq(
        db,
        category_id=data.category_id,
        question=data.question,
        answer=data.answer,
        order=data.order,
        show_home_page=data.show_home_page,
    )
    return FaqResponse.model_validate(faq)


@router.get("", response_model=list[FaqResponse])
async def list_faqs(
    db: Annotated[AsyncSession, Depends(get_db)],
    category_id: Annotated[int | None, Query(alias="categoryId")] = None,
) -> list[FaqResponse]:
    """All FAQs, or those of one category, by order then newest first."""
    faqs = await faq_service.list_faqs(db, category_id)
    return [FaqResponse.model_validate(faq) for faq in faqs]


@router.get("/homepage", response_model=list[FaqResponse])
async def list_homepage_faqs(
    db: Annotated[AsyncSession, Depends(get_db)],
) -> list[FaqResponse]:
    faqs = await faq_service.list_homepage_faqs(db)
    return [FaqResponse.model_validate(faq) for faq in faqs]


@router.get("/with-categories", response_model=list[FaqGroup])
async def list_faqs_with_categories(
    db: Annotated[AsyncSession, Depends(get_db)],
) -> list[FaqGroup]:
    groups = await faq_service.list_faqs_grouped(db)
    return [
        FaqGroup(
            category=FaqCategorySummary.model_validate(category),
            faqs=[FaqResponse.model_validate(faq) for faq in faqs],
        )
        for category, faqs in groups
    ]


@router.get("/{faq_id}", response_model=FaqResponse)
async def get_faq(
    faq_id: Annotated[int, Path(description="FAQ ID")],
    db: Annotated[AsyncSession, Depends(get_db)],
) -> FaqResponse:
    faq = await faq_service.get_faq(db, faq_id)
    return FaqResponse.model_validate(faq)


@router.patch("/{faq_id}", response_model=FaqResponse)
async def update_faq(
    data: FaqUpdate,
    _: AdminClaims,
    faq_id: Annotated[int, Path(description="FAQ ID")],
    db: Annotated[AsyncSession, Depends(get_db)],
) -> FaqResponse:
    faq = await faq_service.update_faq(db, faq_id, data.model_dump(exclude_unset=True))
    return FaqResponse.model_validate(faq)


@router.patch("/{faq_id}/reorder", response_model=FaqResponse)
async def reorder_faq(
    data: FaqReorder,
    _: AdminClaims,
    faq_id: Annotated[int, Path(description="FAQ ID")],
    db: Annotated[AsyncSession, Depends(get_db)],
) -> FaqResponse:
    faq = await faq_service.reorder_faq(db, faq_id, data.order)
    return FaqResponse.model_validate(faq)


@router.delete("/{faq_id}", response_model=MessageResponse)
async def delete_faq(
    _: AdminClaims,
    faq_id: Annotated[int, Path(description="FAQ ID")],
    db: Annotated[AsyncSession, Depends(get_db)],
) -> MessageResponse:
    await faq_service.delete_faq(db, faq_id)
    return MessageResponse(message="FAQ deleted successfully")
