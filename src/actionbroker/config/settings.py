"""Application settings loaded from environment variables."""

from __future__ import annotations

from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    model_config = {"env_prefix": "ACTIONBROKER_"}

    db_path: Path = Field(
        default=Path.home() / ".actionbroker" / "broker.db",
        description="SQLite database path",
    )
    pending_ttl_seconds: int = Field(
        default=300, gt=0, description="Inactivity window before a pending action expires"
    )
    retention_hours: int = Field(
        default=24, gt=0, description="Age after which terminal pending actions are purged"
    )
    log_level: str = Field(default="INFO", description="Logging level")
    max_title_length: int = Field(default=200, gt=0, description="Cap for titles and names")
    max_description_length: int = Field(
        default=1000, gt=0, description="Cap for free-form descriptions"
    )
