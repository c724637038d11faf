"""Email notification background jobs for arq worker."""

from typing import Any

from arq import Retry

from app.config import EmailLogStatus
from app.core.database import get_async_session
from app.core.logging import bind_context, get_logger
from app.models.user import Users
from app.services.email import (
    PASSWORD_RESET_TEMPLATE,
    record_email_log,
    send_password_reset_email,
)

logger = get_logger(__name__)

PASSWORD_RESET_SUBJECT = "Reset your password"


async def send_password_reset_email_job(ctx: dict[str, Any], user_id: str, token: str) -> None:
    """
    Background task to send password reset email.

    Every attempt that reaches SMTP leaves one EmailLogs row.

    Args:
        ctx: ARQ context dict
        user_id: ID of the user
        token: Raw reset token (not hashed)

    Raises:
        Retry: If database query or email fails (will retry up to max_tries)
    """
    bind_context(task="send_password_reset_email", user_id=user_id)
    job_try = ctx.get("job_try", 1)

    try:
        async with get_async_session() as db:
            user = await db.get(Users, user_id)

            if user is None or not user.email:
                logger.warning("password_reset_email_user_not_found", user_id=user_id)
                return

            success = await send_password_reset_email(user=user, token=token)

            await record_email_log(
                db,
                recipient_email=user.email,
                recipient_name=user.full_name,
                subject=PASSWORD_RESET_SUBJECT,
                template_name=PASSWORD_RESET_TEMPLATE,
                status=EmailLogStatus.SENT if success else EmailLogStatus.FAILED,
                error_message=None if success else "SMTP delivery failed",
                retry_count=job_try - 1,
            )
            await db.commit()

            if success:
                logger.info("password_reset_email_sent", user_id=user_id)
                return

            logger.error("password_reset_email_failed", user_id=user_id, attempt=job_try)
            # Linear backoff: 5s, 10s, 15s...
            raise Retry(defer=job_try * 5)

    except Retry:
        raise
    except Exception as e:
        logger.error(
            "password_reset_email_task_error",
            user_id=user_id,
            error=str(e),
            error_type=type(e).__name__,
        )
        raise Retry(defer=job_try * 5) from e
