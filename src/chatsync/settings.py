from pathlib import Path
from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Client configuration."""

    app_title: str = "Fubotics AI Chat"
    backend_url: str = "http://localhost:5000"
    request_timeout_seconds: float = 30.0

    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"
    log_dir: Path = Path("logs")

    credential_backend: Literal["memory", "file", "redis"] = "file"
    credential_path: Path = Path.home() / ".chatsync" / "credentials.json"

    redis_url: str | None = None
    credential_key_prefix: str = "chatsync:"

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="",
        extra="ignore",
    )


def get_settings() -> Settings:
    """Return the client settings singleton (loaded from env / .env)."""
    global _SETTINGS
    try:
        return _SETTINGS
    except NameError:
        _SETTINGS = Settings()
        return _SETTINGS
