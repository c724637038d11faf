"""
Email service endpoints: SMTP health and an admin-only test send.
"""

from typing import Annotated

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import EmailLogStatus
from app.core.auth import AdminClaims
from app.core.database import get_db
from app.schemas.email import SendTestEmailRequest, SendTestEmailResponse, SmtpHealthResponse
from app.services.email import TEST_TEMPLATE, check_smtp_health, record_email_log, send_test_email

router = APIRouter(prefix="/email", tags=["email"])


@router.get("/health", response_model=SmtpHealthResponse)
async def email_health() -> SmtpHealthResponse:
    return SmtpHealthResponse.model_validate(await check_smtp_health())


@router.post("/send-test", response_model=SendTestEmailResponse)
async def send_test(
    data: SendTestEmailRequest,
    _: AdminClaims,
    db: Annotated[AsyncSession, Depends(get_db)],
) -> SendTestEmailResponse:
    """Send a plain test email and record the outcome in the email log."""
    success = await send_test_email(data.to, data.subject, data.message)

    await record_email_log(
        db,
        recipient_email=data.to,
        subject=data.subject,
        template_name=TEST_TEMPLATE,
        status=EmailLogStatus.SENT if success else EmailLogStatus.FAILED,
        error_message=None if success else "SMTP delivery failed",
    )

    if success:
        return SendTestEmailResponse(success=True, message=f"Test email sent successfully to {data.to}")
    return SendTestEmailResponse(success=False, message=f"Failed to send test email to {data.to}")
