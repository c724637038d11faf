"""
Application Configuration
Uses Pydantic Settings for environment-based configuration
"""

from enum import Enum

from dotenv import load_dotenv
from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables"""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
    )

    # Application
    PROJECT_NAME: str = "NICAA API"
    VERSION: str = "1.0.0"
    ENVIRONMENT: str = Field(default="development", pattern="^(development|staging|production)$")
    DEBUG: bool = Field(default=False)
    API_PREFIX: str = "/api"

    # Security
    # Secrets have no defaults: the app refuses to start without them
    JWT_ACCESS_SECRET: str = Field(min_length=32)
    JWT_REFRESH_SECRET: str = Field(min_length=32)
    JWT_ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 15
    REFRESH_TOKEN_EXPIRE_DAYS: int = 7
    PASSWORD_RESET_EXPIRE_MINUTES: int = 60
    BCRYPT_ROUNDS: int = Field(default=10, ge=4, le=16)
    REFRESH_COOKIE_NAME: str = "refreshToken"

    # CORS
    # Allow str because it can be a comma-separated string in .env
    CORS_ORIGINS: str | list[str] = Field(default=["http://localhost:3000"])

    # Database
    DATABASE_URL: str
    DB_POOL_SIZE: int = 20
    DB_MAX_OVERFLOW: int = 10
    DB_ECHO: bool = False

    # Redis
    REDIS_URL: str = Field(default="redis://localhost:6379/0")
    TOKEN_BLACKLIST_BACKEND: str = Field(default="redis", pattern="^(redis|memory)$")

    # Arq
    ARQ_REDIS_URL: str = Field(default="redis://localhost:6379/1")
    ARQ_MAX_TRIES: int = 3
    ARQ_KEEP_RESULT: int = 3600  # 1 hour

    # Pagination
    DEFAULT_PAGE_SIZE: int = 20
    MAX_PAGE_SIZE: int = 100

    # FAQs
    FAQ_HOMEPAGE_LIMIT: int = 5

    # Email
    SMTP_HOST: str = "smtp.gmail.com"
    SMTP_PORT: int = 587
    SMTP_USER: str | None = None
    SMTP_PASSWORD: str | None = None
    SMTP_TLS: bool = False
    SMTP_STARTTLS: bool = True
    SMTP_FROM_EMAIL: str = "nic.alumniassociation.official@gmail.com"
    SMTP_FROM_NAME: str = "National Ideal College Alumni Association"
    CONTACT_EMAIL: str = "nic.alumniassociation.official@gmail.com"
    CONTACT_PHONE: str = ""

    # Logging
    LOG_LEVEL: str = "INFO"

    # Frontend URL (for password reset links)
    FRONTEND_URL: str = "http://localhost:3000"

    @field_validator("CORS_ORIGINS", mode="before")
    @classmethod
    def parse_cors_origins(cls, v: str | list[str]) -> list[str]:
        """Parse CORS origins from comma-separated string"""
        if isinstance(v, str):
            return [origin.strip() for origin in v.split(",")]
        return v

    @model_validator(mode="after")
    def check_distinct_secrets(self) -> "Settings":
        """A leaked access secret must not be usable to forge refresh tokens."""
        if self.JWT_ACCESS_SECRET == self.JWT_REFRESH_SECRET:
            raise ValueError("JWT_ACCESS_SECRET and JWT_REFRESH_SECRET must differ")
        return self

    @property
    def refresh_cookie_path(self) -> str:
        return f"{self.API_PREFIX}/auth/refresh-token"

    @property
    def cookie_secure(self) -> bool:
        return self.ENVIRONMENT == "production"


# Create global settings instance

load_dotenv()
settings = Settings()  # type: ignore[call-arg]


class UserRole(str, Enum):
    """Authorization role carried in access-token claims"""

    SUPER_ADMIN = "SUPER_ADMIN"
    ADMIN = "ADMIN"
    USER = "USER"


class UserType(str, Enum):
    """Account type used by the user-type guard"""

    ADMIN = "ADMIN"
    MODERATOR = "MODERATOR"
    USER = "USER"


class UserStatus(str, Enum):
    """Account status; INACTIVE locks the user out without deleting the record"""

    ACTIVE = "ACTIVE"
    INACTIVE = "INACTIVE"


class MembershipCategory(str, Enum):
    """Alumni membership category"""

    FREE = "FREE"
    YEARLY = "YEARLY"
    PERMANENT = "PERMANENT"


class EmailLogStatus:
    """Email delivery log status constants"""

    SENT = "sent"
    FAILED = "failed"


ADMIN_ROLES = (UserRole.ADMIN, UserRole.SUPER_ADMIN)
