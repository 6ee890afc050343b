"""
Application Configuration

Centralized configuration management using Pydantic settings.
Loads from environment variables with fallback to .env file.
"""
from pydantic import Field
from pydantic_settings import BaseSettings
from functools import lru_cache
from typing import Optional


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    NOTE: get_settings() is cached. Tests that need different values
    must call get_settings.cache_clear() after changing the environment.
    """

    # Database settings
    DATABASE_URL: str = "postgresql://localhost/tenancy_dev"
    DATABASE_POOL_SIZE: int = 20
    DATABASE_MAX_OVERFLOW: int = 40

    # Access tokens (signed, stateless)
    SECRET_KEY: str = "dev-secret-key-change-in-production"
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60 * 24 * 7

    # Refresh tokens (stored as sha256 hashes)
    REFRESH_TOKEN_EXPIRE_DAYS: int = 30

    # bcrypt cost factor
    PASSWORD_HASH_ROUNDS: int = Field(12, ge=12, le=20)

    # Licensing
    LICENSE_KEY_PREFIX: str = "CH"

    # Invitations
    INVITATION_EXPIRE_DAYS: int = 7
    INVITATION_MAX_EXPIRE_DAYS: int = 30

    # Used by scripts/seed_super_admin.py
    SUPER_ADMIN_EMAIL: Optional[str] = None
    SUPER_ADMIN_PASSWORD: Optional[str] = None
    SUPER_ADMIN_FULL_NAME: str = "Super Admin"

    # Application settings
    DEBUG: bool = False
    ENVIRONMENT: str = "development"
    LOG_LEVEL: str = "INFO"
    CORS_ORIGINS: list[str] = ["http://localhost:5173"]

    class Config:
        env_file = ".env"
        case_sensitive = True


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
