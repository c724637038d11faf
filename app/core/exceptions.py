"""
Application exceptions and the handlers that render them.

Services raise the domain errors below; the handlers registered by
register_exception_handlers() translate them into the JSON error envelope

    {"statusCode": 401, "message": "...", "timestamp": "...", "path": "...",
     "method": "POST", "errorName": "InvalidCredentialsError"}

HTTPException and request-validation failures are rendered in the same shape,
and anything unexpected becomes a generic 500 after being logged.
"""

from datetime import UTC, datetime
from typing import Any

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException

from app.core.logging import get_logger

logger = get_logger(__name__)


class AppError(Exception):
    """Base class for errors that carry their own HTTP status."""

    status_code: int = status.HTTP_400_BAD_REQUEST
    default_message: str = "Bad request"

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)

    @property
    def error_name(self) -> str:
        return type(self).__name__


# ==================== Authentication ====================


class DuplicateAccountError(AppError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "User already exists"


class InvalidCredentialsError(AppError):
    status_code = status.HTTP_401_UNAUTHORIZED
    default_message = "Invalid email/phone or password"


class InvalidRefreshTokenError(AppError):
    status_code = status.HTTP_401_UNAUTHORIZED
    default_message = "Invalid refresh token"


class InvalidOrExpiredTokenError(AppError):
    status_code = status.HTTP_401_UNAUTHORIZED
    default_message = "Password reset token is invalid or has expired"


class InvalidTokenError(AppError):
    """Signature, format, expiry or token-type check failed."""

    status_code = status.HTTP_401_UNAUTHORIZED
    default_message = "Invalid token"


class AccountNotFoundError(AppError):
    status_code = status.HTTP_404_NOT_FOUND
    default_message = "Account not found"


class NoEmailOnAccountError(AppError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "No email address on this account"


class UnauthorizedError(AppError):
    """Missing or unusable access token at the request boundary."""

    status_code = status.HTTP_401_UNAUTHORIZED
    default_message = "Not authenticated"
    action = "login"


class ForbiddenError(AppError):
    status_code = status.HTTP_403_FORBIDDEN
    default_message = "Insufficient permissions"


# ==================== Resources ====================


class NotFoundError(AppError):
    status_code = status.HTTP_404_NOT_FOUND
    default_message = "Not found"


class ConflictError(AppError):
    status_code = status.HTTP_409_CONFLICT
    default_message = "Conflict"


class BadRequestError(AppError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Bad request"


# ==================== Handlers ====================


def error_body(
    request: Request,
    status_code: int,
    message: str,
    error_name: str,
    **extra: Any,
) -> dict[str, Any]:
    body: dict[str, Any] = {
        "statusCode": status_code,
        "message": message,
        "timestamp": datetime.now(UTC).strftime("%Y-%m-%dT%H:%M:%SZ"),
        "path": request.url.path,
        "method": request.method,
        "errorName": error_name,
    }
    body.update(extra)
    return body


def _format_validation_errors(exc: RequestValidationError) -> str:
    parts = []
    for counter, error in enumerate(exc.errors(), start=1):
        # Drop the "body"/"query" prefix so the message names the field itself
        location = [str(loc) for loc in error.get("loc", ()) if loc not in ("body", "query", "path")]
        field = ".".join(location) or "request"
        parts.append(f"{counter} - {field}: {error.get('msg', 'invalid value')}")
    return "; ".join(parts) or "Validation failed"


async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    extra = {"action": exc.action} if isinstance(exc, UnauthorizedError) else {}
    return JSONResponse(
        status_code=exc.status_code,
        content=error_body(request, exc.status_code, exc.message, exc.error_name, **extra),
    )


async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content=error_body(request, exc.status_code, str(exc.detail), "HTTPException"),
        headers=exc.headers,
    )


async def validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content=error_body(
            request,
            status.HTTP_400_BAD_REQUEST,
            _format_validation_errors(exc),
            "ValidationError",
        ),
    )


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.error(
        "unhandled_exception",
        path=request.url.path,
        method=request.method,
        error=str(exc),
        error_type=type(exc).__name__,
        exc_info=exc,
    )
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=error_body(
            request,
            status.HTTP_500_INTERNAL_SERVER_ERROR,
            "Internal server error",
            "InternalServerError",
        ),
    )


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(AppError, app_error_handler)  # type: ignore[arg-type]
    app.add_exception_handler(HTTPException, http_exception_handler)  # type: ignore[arg-type]
    app.add_exception_handler(RequestValidationError, validation_exception_handler)  # type: ignore[arg-type]
    app.add_exception_handler(Exception, unhandled_exception_handler)
