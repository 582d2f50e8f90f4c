"""
Settings for the Garage Booking API.

Every value can be overridden from the environment or a ``.env`` file,
e.g. ``DATABASE_URL`` or ``OPENAI_API_KEY``.
"""
from functools import lru_cache
from typing import Optional

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Application
    app_name: str = "Garage Booking API"
    app_version: str = "2.0.0"
    debug: bool = False
    log_level: str = "INFO"

    # Database
    database_url: str = "postgresql+asyncpg://garage_user:garage_pass@db:5432/garage_db"
    database_echo: bool = False
    database_pool_size: int = 5

    # Auth
    secret_key: str = "your-secret-key-change-this-in-production"
    algorithm: str = "HS256"
    access_token_expire_minutes: int = 1440  # 24 hours

    # Audit entries are hashed with this, falling back to secret_key
    audit_secret: Optional[str] = None

    cors_origins: list[str] = ["http://localhost:3000", "http://localhost:8000"]
    api_v1_prefix: str = "/api/v1"

    # Vehicle images
    openai_api_key: Optional[str] = None
    openai_image_model: str = "dall-e-3"
    openai_image_size: str = "1024x1024"
    image_provider_tag: str = "openai-dalle"

    class Config:
        env_file = ".env"
        case_sensitive = False


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
