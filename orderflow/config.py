# config.py

"""Runtime settings for the order lifecycle API.

Defaults ship in ``config.json`` next to this module; deployments override
single keys through environment variables (``KDS_POLL_INTERVAL_SECS=5``).
"""

from __future__ import annotations

import json
import os
from functools import lru_cache
from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

CONFIG_FILE = Path(__file__).with_name("config.json")


class Settings(BaseSettings):
    """Validated settings; out-of-range values fail at startup."""

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    postgres_tenant_dsn_template: str = "sqlite+aiosqlite:///./orderflow_{tenant_id}.db"
    # Create tenant tables on first use; local SQLite setups only
    auto_create_schema: bool = False
    redis_url: str | None = None
    # Kitchen display sessions
    kds_poll_interval_secs: float = Field(10.0, gt=0)
    kds_page_size: int = Field(10, ge=1, le=100)
    # Pause before the single retry of a failed store call
    storage_retry_backoff_secs: float = Field(0.2, ge=0)
    error_dsn: str | None = None
    environment: str = "dev"
    log_level: str = "INFO"


@lru_cache
def get_settings() -> Settings:
    """Load ``config.json`` and apply matching environment variables on top.

    Variables are matched case-insensitively against the field names. Call
    ``get_settings.cache_clear()`` after changing the environment.
    """

    data = json.loads(CONFIG_FILE.read_text())
    env_override = {
        key.lower(): value
        for key, value in os.environ.items()
        if key.lower() in Settings.model_fields
    }
    return Settings(**{**data, **env_override})
