"""
Pydantic schemas for API responses and requests
"""
from app.schemas.auth import (
    AuthResponse,
    ChangePasswordRequest,
    ForgotPasswordRequest,
    LoginRequest,
    RefreshResponse,
    RegisterRequest,
    ResetPasswordWithTokenRequest,
    TokenCheckResponse,
)
from app.schemas.base import CamelModel, MessageResponse
from app.schemas.faq import (
    FaqCategoryCreate,
    FaqCategoryResponse,
    FaqCategoryUpdate,
    FaqCreate,
    FaqResponse,
    FaqUpdate,
)
from app.schemas.user import UserListResponse, UserResponse, UserStatusUpdate, UserUpdate

__all__ = [
    "CamelModel",
    "MessageResponse",
    # Auth schemas
    "RegisterRequest",
    "LoginRequest",
    "AuthResponse",
    "RefreshResponse",
    "TokenCheckResponse",
    "ChangePasswordRequest",
    "ForgotPasswordRequest",
    "ResetPasswordWithTokenRequest",
    # User schemas
    "UserResponse",
    "UserListResponse",
    "UserUpdate",
    "UserStatusUpdate",
    # FAQ schemas
    "FaqCategoryCreate",
    "FaqCategoryUpdate",
    "FaqCategoryResponse",
    "FaqCreate",
    "FaqUpdate",
    "FaqResponse",
]
