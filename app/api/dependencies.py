"""
Common query parameter models for API endpoints.

These are used with FastAPI's Depends() to provide reusable query parameter
sets, reducing code duplication across routes.
"""

from typing import Annotated

from fastapi import Depends, Query
from pydantic import BaseModel, Field, computed_field

from app.config import settings


class PaginationParams(BaseModel):
    """Common pagination query parameters."""

    page: int = Field(default=1, ge=1, description="Page number")
    per_page: int = Field(
        default=settings.DEFAULT_PAGE_SIZE,
        ge=1,
        le=settings.MAX_PAGE_SIZE,
        description="Items per page",
    )

    @computed_field  # type: ignore[prop-decorator]
    @property
    def offset(self) -> int:
        """Calculate offset from page and per_page."""
        return (self.page - 1) * self.per_page


def get_pagination(
    page: Annotated[int, Query(ge=1, description="Page number")] = 1,
    per_page: Annotated[
        int,
        Query(alias="perPage", ge=1, le=settings.MAX_PAGE_SIZE, description="Items per page"),
    ] = settings.DEFAULT_PAGE_SIZE,
) -> PaginationParams:
    """Read ?page=&perPage= into PaginationParams."""
    return PaginationParams(page=page, per_page=per_page)


Pagination = Annotated[PaginationParams, Depends(get_pagination)]
