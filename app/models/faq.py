"""
SQLModel-based FAQ models.

FaqCategories groups Faqs; deleting a category deletes its FAQs.
"""

from datetime import datetime

from sqlalchemy import Column, ForeignKey, Index, Integer, Text
from sqlmodel import Field, SQLModel

from app.utils import utc_now


class FaqCategoryBase(SQLModel):
    name: str = Field(max_length=100)
    order: int = Field(default=0)


class FaqCategories(FaqCategoryBase, table=True):
    """Database table for FAQ categories."""

    __tablename__ = "faq_categories"

    __table_args__ = (Index("idx_faq_categories_name", "name", unique=True),)

    id: int | None = Field(default=None, primary_key=True)

    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(
        default_factory=utc_now, sa_column_kwargs={"onupdate": utc_now}
    )


class FaqBase(SQLModel):
    question: str = Field(max_length=500)
    answer: str = Field(sa_type=Text)
    order: int = Field(default=0)
    show_home_page: bool = Field(default=False)


class Faqs(FaqBase, table=True):
    """
    Database table for FAQs.

    Order is unique per category; that rule is enforced in the service layer so
    it can report a readable error.
    """

    __tablename__ = "faqs"

    __table_args__ = (
        Index("idx_faqs_category_id", "category_id"),
        Index("idx_faqs_show_home_page", "show_home_page"),
    )

    id: int | None = Field(default=None, primary_key=True)

    # sa_column so the CASCADE is part of the column when created via metadata.create_all()
    category_id: int = Field(
        sa_column=Column(
            Integer,
            ForeignKey("faq_categories.id", ondelete="CASCADE"),
            nullable=False,
        )
    )

    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(
        default_factory=utc_now, sa_column_kwargs={"onupdate": utc_now}
    )
