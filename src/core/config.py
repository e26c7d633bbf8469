"""Application configuration using pydantic-settings."""
from functools import lru_cache
from typing import Literal

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# Placeholder secret accepted only in DEV_MODE
DEV_JWT_SECRET = "dev-insecure-jwt-secret-change-me"


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
    )

    # Storage - "memory" swaps in the in-process stores (no database needed)
    storage_backend: Literal["database", "memory"] = "database"
    database_url: str = "sqlite+aiosqlite:///./notes.db"
    db_pool_size: int = 5
    db_max_overflow: int = 10

    # Development mode - allows the placeholder JWT secret
    dev_mode: bool = False

    # Bearer tokens
    jwt_secret: str = DEV_JWT_SECRET
    jwt_algorithm: str = "HS256"
    token_lifetime_hours: int = Field(default=24, ge=1)
    auth_header_name: str = "x-auth-token"

    # Password hashing cost (tests lower this to keep bcrypt fast)
    bcrypt_rounds: int = Field(default=12, ge=4, le=16)

    # Render access to another user's note as 403 instead of an indistinguishable 404
    reveal_forbidden: bool = False

    # CORS - comma-separated list of allowed origins (stored as string, parsed via property)
    cors_origins_str: str = Field(
        default="http://localhost:3000",
        validation_alias="CORS_ORIGINS",
    )

    log_level: str = "INFO"

    @model_validator(mode="after")
    def validate_jwt_secret(self) -> "Settings":
        """
        Refuse to sign tokens with the placeholder secret outside DEV_MODE.

        Anyone who knows the placeholder could mint tokens for any user id.
        """
        if not self.dev_mode and self.jwt_secret == DEV_JWT_SECRET:
            raise ValueError(
                "JWT_SECRET must be set when DEV_MODE is disabled. "
                "The built-in placeholder secret is only allowed for local development.",
            )
        if not self.jwt_secret:
            raise ValueError("JWT_SECRET cannot be empty")
        return self

    @property
    def cors_origins(self) -> list[str]:
        """Parse comma-separated CORS origins string into a list."""
        if not self.cors_origins_str:
            return []
        return [origin.strip() for origin in self.cors_origins_str.split(",") if origin.strip()]

    @property
    def is_sqlite(self) -> bool:
        """True when the database URL points at SQLite."""
        return self.database_url.startswith("sqlite")


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
