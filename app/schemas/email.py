from typing import Any

from pydantic import EmailStr, Field

from app.schemas.base import CamelModel


class SmtpHealthResponse(CamelModel):
    status: str
    message: str
    timestamp: str
    details: dict[str, Any]


class SendTestEmailRequest(CamelModel):
    to: EmailStr
    subject: str = Field(default="NICAA test email", max_length=255)
    message: str = Field(default="This is a test email from the NICAA API.", max_length=5000)


class SendTestEmailResponse(CamelModel):
    success: bool
    message: str
