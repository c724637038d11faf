"""Email sending service with SMTP."""

import asyncio
import html as html_escape
from datetime import UTC, datetime
from email.message import EmailMessage
from typing import Any

import aiosmtplib
from aiosmtplib.errors import (
    SMTPAuthenticationError,
    SMTPConnectError,
    SMTPConnectTimeoutError,
    SMTPException,
    SMTPReadTimeoutError,
)
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import EmailLogStatus, settings
from app.core.logging import get_logger
from app.models.email_log import EmailLogs
from app.models.user import Users
from app.utils import utc_now

logger = get_logger(__name__)

PASSWORD_RESET_TEMPLATE = "password-reset"
TEST_TEMPLATE = "test"


async def send_email(
    to: str | list[str],
    subject: str,
    body: str,
    html: str | None = None,
) -> bool:
    """
    Send email via SMTP with retry logic.

    Args:
        to: Recipient email address(es)
        subject: Email subject
        body: Plain text email body
        html: Optional HTML email body

    Returns:
        True if email sent successfully, False otherwise

    Note:
        This function logs errors but does NOT raise exceptions.
        Callers should check return value if they need to know success/failure.
    """
    message = EmailMessage()
    message["From"] = f"{settings.SMTP_FROM_NAME} <{settings.SMTP_FROM_EMAIL}>"
    message["To"] = to if isinstance(to, str) else ", ".join(to)
    message["Subject"] = subject
    message.set_content(body)

    if html:
        message.add_alternative(html, subtype="html")

    # Only connection failures are retried: nothing was handed to the server yet
    max_retries = 3
    for attempt in range(max_retries):
        try:
            await aiosmtplib.send(
                message,
                hostname=settings.SMTP_HOST,
                port=settings.SMTP_PORT,
                username=settings.SMTP_USER or None,
                password=settings.SMTP_PASSWORD or None,
                use_tls=settings.SMTP_TLS,
                start_tls=settings.SMTP_STARTTLS,
                timeout=30,
            )
            logger.info(
                "email_sent_success",
                to=to,
                subject=subject,
                attempt=attempt + 1,
            )
            return True

        except SMTPReadTimeoutError as e:
            # Email might already be queued on the server; a retry could duplicate it
            logger.error(
                "email_send_timeout_after_data",
                to=to,
                subject=subject,
                error=str(e),
                error_type=type(e).__name__,
            )
            return False

        except SMTPAuthenticationError as e:
            logger.error(
                "email_auth_failed",
                to=to,
                subject=subject,
                error=str(e),
                error_type=type(e).__name__,
            )
            return False

        except (SMTPConnectError, SMTPConnectTimeoutError) as e:
            logger.warning(
                "email_connection_failed",
                to=to,
                subject=subject,
                attempt=attempt + 1,
                error=str(e),
                error_type=type(e).__name__,
            )
            if attempt < max_retries - 1:
                # Exponential backoff: 1s, 2s
                await asyncio.sleep(2**attempt)
            else:
                logger.error(
                    "email_connection_failed_all_retries",
                    to=to,
                    subject=subject,
                    error=str(e),
                )
                return False

        except SMTPException as e:
            # Recipient refused, mailbox full, ... permanent or ambiguous
            logger.error(
                "email_smtp_error",
                to=to,
                subject=subject,
                error=str(e),
                error_type=type(e).__name__,
            )
            return False

        except Exception as e:
            logger.error(
                "email_send_unexpected_error",
                to=to,
                subject=subject,
                error=str(e),
                error_type=type(e).__name__,
            )
            return False

    return False


def _layout(title: str, content: str) -> str:
    return f"""<!DOCTYPE html>
<html>
<head>
    <meta charset="utf-8">
    <style>
        body {{ font-family: Arial, sans-serif; line-height: 1.6; color: #333; }}
        .container {{ max-width: 600px; margin: 0 auto; padding: 20px; }}
        .button {{
            display: inline-block;
            padding: 12px 24px;
            background-color: #1a5276;
            color: white;
            text-decoration: none;
            border-radius: 4px;
        }}
        .footer {{
            margin-top: 30px;
            padding-top: 20px;
            border-top: 1px solid #ddd;
            font-size: 12px;
            color: #666;
        }}
    </style>
</head>
<body>
    <div class="container">
        <h2>{title}</h2>
        {content}
        <div class="footer">
            <p>{html_escape.escape(settings.SMTP_FROM_NAME)}<br>
            {html_escape.escape(settings.CONTACT_EMAIL)} {html_escape.escape(settings.CONTACT_PHONE)}</p>
        </div>
    </div>
</body>
</html>
"""


def build_password_reset_url(token: str) -> str:
    return f"{settings.FRONTEND_URL}/reset-password?token={token}"


async def send_password_reset_email(user: Users, token: str) -> bool:
    """
    Send password reset link to user.

    Args:
        user: User object (must have an email)
        token: Raw reset token (not hashed)

    Returns:
        True if email sent successfully, False otherwise
    """
    if not user.email:
        logger.warning("password_reset_email_no_address", user_id=user.id)
        return False

    reset_url = build_password_reset_url(token)
    minutes = settings.PASSWORD_RESET_EXPIRE_MINUTES
    expiry_text = "1 hour" if minutes == 60 else f"{minutes} minutes"
    safe_name = html_escape.escape(user.first_name)

    subject = "Reset your password"
    body = f"""Hi {user.first_name},

We received a request to reset your NICAA account password. Click the link below:

{reset_url}

This link will expire in {expiry_text}.

If you didn't request this, you can safely ignore this email. Your password will not change.
"""

    html = _layout(
        "Reset Your Password",
        f"""<p>Hi {safe_name},</p>
        <p>We received a request to reset your NICAA account password.</p>
        <p><a href="{reset_url}" class="button">Reset Password</a></p>
        <p>Or copy this link into your browser:</p>
        <p><code>{reset_url}</code></p>
        <p><small>This link will expire in {expiry_text}.</small></p>
        <p><small>If you didn't request this, you can safely ignore this email.</small></p>""",
    )

    return await send_email(to=user.email, subject=subject, body=body, html=html)


async def send_test_email(to: str, subject: str, message: str) -> bool:
    """Plain-text message, no HTML alternative."""
    return await send_email(to=to, subject=subject, body=message)


async def check_smtp_health() -> dict[str, Any]:
    """
    Connect to the SMTP server, issue NOOP and disconnect.

    Returns a dict with status "healthy" or "unhealthy" and non-secret details.
    """
    details: dict[str, Any] = {
        "host": settings.SMTP_HOST,
        "port": settings.SMTP_PORT,
        "credentialsConfigured": bool(settings.SMTP_USER and settings.SMTP_PASSWORD),
    }
    timestamp = datetime.now(UTC).strftime("%Y-%m-%dT%H:%M:%SZ")

    client = aiosmtplib.SMTP(
        hostname=settings.SMTP_HOST,
        port=settings.SMTP_PORT,
        use_tls=settings.SMTP_TLS,
        start_tls=settings.SMTP_STARTTLS,
        timeout=10,
    )
    try:
        await client.connect()
        await client.noop()
        await client.quit()
    except (SMTPException, OSError) as e:
        logger.warning("smtp_health_check_failed", error=str(e), error_type=type(e).__name__)
        return {
            "status": "unhealthy",
            "message": "SMTP server is not reachable",
            "timestamp": timestamp,
            "details": {**details, "error": str(e)},
        }

    return {
        "status": "healthy",
        "message": "SMTP server is reachable",
        "timestamp": timestamp,
        "details": details,
    }


async def record_email_log(
    db: AsyncSession,
    *,
    recipient_email: str,
    subject: str,
    status: str,
    recipient_name: str | None = None,
    template_name: str | None = None,
    error_message: str | None = None,
    retry_count: int = 0,
) -> EmailLogs:
    """Persist one delivery outcome. The caller commits."""
    log = EmailLogs(
        recipient_email=recipient_email,
        recipient_name=recipient_name,
        subject=subject,
        template_name=template_name,
        status=status,
        error_message=error_message,
        retry_count=retry_count,
        sent_at=utc_now() if status == EmailLogStatus.SENT else None,
    )
    db.add(log)
    await db.flush()
    return log
