"""Process-level settings for standards-sync.

Settings come from ``STANDARDS_SYNC_*`` environment variables and an optional
``.env`` file. They supply defaults the CLI falls back to when a flag or a
config-file key is not given.

Fields
──────
log_level      : structlog log level
log_json       : Force JSON log output (None = auto-detect)
standards_path : Default location of the standards repository
snapshot_dir   : Default project-relative directory for pinned snapshots
"""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class StandardsSettings(BaseSettings):
    """Environment-driven defaults."""

    model_config = SettingsConfigDict(
        env_prefix="STANDARDS_SYNC_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ── Observability ────────────────────────────────────────────
    log_level: str = "WARNING"
    log_json: bool | None = None

    # ── Locations ────────────────────────────────────────────────
    standards_path: Path = Field(
        default_factory=lambda: Path.home() / "agentic-best-practices",
        description="Location of the standards repository",
    )
    snapshot_dir: str = ".standards/pinned"


@lru_cache(maxsize=1)
def get_settings() -> StandardsSettings:
    """Return the cached settings instance."""
    return StandardsSettings()
