"""Application configuration loading via Pydantic settings."""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Runtime configuration sourced from environment variables."""

    storage_dir: Path = Field(default=Path("storage"), alias="FIXTURES_STORAGE_DIR")
    report_delay_ms: int = Field(default=1000, gt=0, alias="FIXTURES_REPORT_DELAY_MS")
    report_history_size: int = Field(default=50, gt=0, alias="FIXTURES_REPORT_HISTORY")
    log_level: str = Field(default="INFO", alias="FIXTURES_LOG_LEVEL")

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "extra": "ignore",
    }

    @property
    def report_delay_seconds(self) -> float:
        """Quiet period before a mutation report is emitted, in seconds."""

        return self.report_delay_ms / 1000.0

    @property
    def registry_path(self) -> Path:
        return self.storage_dir / "fixtures.json"


@lru_cache
def get_settings() -> Settings:
    """Return cached application settings instance."""

    settings = Settings()
    settings.storage_dir.mkdir(parents=True, exist_ok=True)
    return settings
