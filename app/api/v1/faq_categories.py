"""
FAQ category endpoints. Reads are public; writes need ADMIN or SUPER_ADMIN.
"""

from typing import Annotated

from fastapi import APIRouter, Depends, Path, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.auth import AdminClaims
from app.core.database import get_db
from app.schemas.faq import (
    FaqCategoryCreate,
    FaqCategoryDeleteResponse,
    FaqCategoryResponse,
    FaqCategoryUpdate,
)
from app.services import faq as faq_service

router = APIRouter(prefix="/faqs-category", tags=["faqs"])


@router.post("", response_model=FaqCategoryResponse, status_code=status.HTTP_201_CREATED)
async def create_category(
    data: FaqCategoryCreate,
    _: AdminClaims,
    db: Annotated[AsyncSession, Depends(get_db)],
) -> FaqCategoryResponse:
    category = await faq_service.create_category(db, data.name, data.order)
    return FaqCategoryResponse.model_validate(category)


@router.get("", response_model=list[FaqCategoryResponse])
async def list_categories(
    db: Annotated[AsyncSession, Depends(get_db)],
) -> list[FaqCategoryResponse]:
    categories = await faq_service.list_categories(db)
    return [FaqCategoryResponse.model_validate(category) for category in categories]


@router.get("/{category_id}", response_model=FaqCategoryResponse)
async def get_category(
    category_id: Annotated[int, Path(description="Category ID")],
    db: Annotated[AsyncSession, Depends(get_db)],
) -> FaqCategoryResponse:
    category = await faq_service.get_category(db, category_id)
    return FaqCategoryResponse.model_validate(category)


@router.patch("/{category_id}", response_model=FaqCategoryResponse)
async def update_category(
    data: FaqCategoryUpdate,
    _: AdminClaims,
    category_id: Annotated[int, Path(description="Category ID")],
    db: Annotated[AsyncSession, Depends(get_db)],
) -> FaqCategoryResponse:
    category = await faq_service.update_category(
        db, category_id, data.model_dump(exclude_unset=True)
    )
    return FaqCategoryResponse.model_validate(category)


@router.delete("/{category_id}", response_model=FaqCategoryDeleteResponse)
async def delete_category(
    _: AdminClaims,
    category_id: Annotated[int, Path(description="Category ID")],
    db: Annotated[AsyncSession, Depends(get_db)],
) -> FaqCategoryDeleteResponse:
    """Delete a category together with all of its FAQs."""
    name, deleted = await faq_service.delete_category(db, category_id)
    return FaqCategoryDeleteResponse(
        message=f'Category "{name}" and {deleted} related FAQs deleted successfully',
        deleted_faqs_count=deleted,
    )
