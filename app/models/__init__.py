"""
SQLModel database models.

Every table is registered on SQLModel.metadata when this package is imported;
Alembic and the test fixtures rely on that.

For modifications:
1. Edit the appropriate model file in app/models/
2. Create an Alembic migration to reflect the changes
"""

from app.models.email_log import EmailLogs
from app.models.faq import FaqCategories, Faqs
from app.models.user import Users

__all__ = [
    "Users",
    "FaqCategories",
    "Faqs",
    "EmailLogs",
]
