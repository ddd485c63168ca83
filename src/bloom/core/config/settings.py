"""Application settings loaded from environment variables."""

from __future__ import annotations

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Bloom tracker configuration."""

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8"}

    # Server
    # Loopback by default; there is no auth layer in front of the tools.
    bloom_host: str = "127.0.0.1"
    bloom_port: int = 8011
    bloom_log_level: str = "info"
    bloom_allow_insecure_bind: bool = False

    # Storage (local key-value store)
    db_path: str = "~/.bloom/trackers.db"

    # Encryption of persisted values; empty keeps values in plaintext
    encryption_key: str = ""

    # Stage used when none is persisted or the persisted value is unknown
    default_stage: str = "Incubator Stage"

    # Navigator
    swipe_commit_threshold: float = 25.0

    # Medicine-style daily history: newest N calendar days are retained
    daily_retention_limit: int = 30

    # Timing
    autosave_delay_seconds: float = 0.5
    completion_delay_seconds: float = 1.0


def get_settings() -> Settings:
    """Create and return a Settings instance."""
    return Settings()
