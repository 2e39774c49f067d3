"""Application configuration."""

import os
from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict

_ENVIRONMENT = os.getenv("ENVIRONMENT", "local")


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    data_dir: Path = Path("data")
    food_data_file: str = "foodData.json"
    food_types_file: str = "foodTypes.json"
    groups_file: str = "groups.json"
    users_file: str = "users.json"
    uploads_dir: Path = Path("uploads")
    public_dir: Path = Path("public")
    cors_origins: str = "*"
    notify_on_data_change: bool = True
    log_level: str = "INFO"
    host: str = "0.0.0.0"
    port: int = 80
    environment: str = _ENVIRONMENT

    model_config = SettingsConfigDict(
        env_file=(f".env.{_ENVIRONMENT}", ".env"),
        extra="ignore",
    )

    def collection_path(self, filename: str) -> Path:
        """Return the path of a collection file inside the data directory."""
        return self.data_dir / filename


def parse_cors_origins(raw: str | None) -> list[str]:
    """Parse allowed CORS origins from env."""
    if raw is None:
        return ["*"]
    cleaned = raw.strip()
    if cleaned in {"", "*"}:
        return ["*"]
    return [origin.strip() for origin in cleaned.split(",") if origin.strip()]
