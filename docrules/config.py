"""
Runtime settings, read from ``DOCRULES_*`` environment variables or ``.env``.
"""

from __future__ import annotations

from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

_DEFAULT_AUDIT = Path(__file__).with_name("audit.jsonl")


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="DOCRULES_",
        env_file=".env",
        case_sensitive=False,
        extra="ignore",
    )

    log_level: str = Field(default="info", description="stdlib level name")
    log_json: bool = Field(default=False, description="emit JSON log lines")
    audit_enabled: bool = Field(default=True, description="append decisions to the audit trail")
    audit_path: Path = Field(default=_DEFAULT_AUDIT, description="JSON-Lines audit file")


def get_settings() -> Settings:
    """Return settings as currently configured in the environment."""
    return Settings()
