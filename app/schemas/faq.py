"""
FAQ and FAQ category schemas.
"""

from pydantic import Field

from app.schemas.base import CamelModel, UTCDatetime


class FaqCategoryCreate(CamelModel):
    name: str = Field(..., min_length=1, max_length=100)
    order: int | None = Field(default=None, ge=0)


class FaqCategoryUpdate(CamelModel):
    name: str | None = Field(default=None, min_length=1, max_length=100)
    order: int | None = Field(default=None, ge=0)


class FaqCategoryResponse(CamelModel):
    id: int
    name: str
    order: int
    created_at: UTCDatetime
    updated_at: UTCDatetime


class FaqCategoryDeleteResponse(CamelModel):
    message: str
    deleted_faqs_count: int


class FaqCreate(CamelModel):
    category_id: int
    question: str = Field(..., min_length=1, max_length=500)
    answer: str = Field(..., min_length=1)
    order: int | None = Field(default=None, ge=0)
    show_home_page: bool = False


class FaqUpdate(CamelModel):
    category_id: int | None = None
    question: str | None = Field(default=None, min_length=1, max_length=500)
    answer: str | None = Field(default=None, min_length=1)
    order: int | None = Field(default=None, ge=0)
    show_home_page: bool | None = None


class FaqReorder(CamelModel):
    order: int = Field(..., ge=0)


class FaqResponse(CamelModel):
    id: int
    category_id: int
    question: str
    answer: str
    order: int
    show_home_page: bool
    created_at: UTCDatetime
    updated_at: UTCDatetime


class FaqCategorySummary(CamelModel):
    id: int
    name: str


class FaqGroup(CamelModel):
    """FAQs of one category, as returned by /faqs/with-categories."""

    category: FaqCategorySummary
    faqs: list[FaqResponse]
