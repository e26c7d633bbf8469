"""Client configuration loaded from NOTES_* environment variables."""
from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class ClientConfig(BaseSettings):
    """Settings for talking to the Notes API from a client process."""

    model_config = SettingsConfigDict(
        env_prefix="NOTES_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    api_url: str = "http://localhost:8000/api"
    request_timeout: float = Field(default=15.0, gt=0)
    # Watchdog for the note list load; shorter than request_timeout on purpose
    load_timeout: float = Field(default=5.0, gt=0)
    auth_header_name: str = "x-auth-token"
    # JSON file backing the client-local store; None keeps everything in memory
    store_path: Path | None = None
