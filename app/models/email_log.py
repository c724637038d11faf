"""
Delivery log for outgoing email.

One row per send attempt that reached a terminal state (sent, or failed after
the configured retries).
"""

from datetime import datetime

from sqlalchemy import Index, Text
from sqlmodel import Field, SQLModel

from app.config import EmailLogStatus
from app.utils import utc_now


class EmailLogs(SQLModel, table=True):
    __tablename__ = "email_logs"

    __table_args__ = (
        Index("idx_email_logs_recipient", "recipient_email"),
        Index("idx_email_logs_status", "status"),
    )

    id: int | None = Field(default=None, primary_key=True)

    recipient_email: str = Field(max_length=255)
    recipient_name: str | None = Field(default=None, max_length=200)
    subject: str = Field(max_length=255)
    template_name: str | None = Field(default=None, max_length=100)

    status: str = Field(default=EmailLogStatus.SENT, max_length=20)
    error_message: str | None = Field(default=None, sa_type=Text)
    retry_count: int = Field(default=0)

    sent_at: datetime | None = Field(default=None)
    created_at: datetime = Field(default_factory=utc_now)
