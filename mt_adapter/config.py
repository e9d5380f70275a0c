"""
Settings for the translation adapter, read from ``MT_ADAPTER_*`` environment
variables or a local ``.env`` file.
"""

from __future__ import annotations

from functools import lru_cache
from typing import Optional

from pydantic import AliasChoices, Field, PositiveFloat, PositiveInt
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="MT_ADAPTER_", env_file=".env", extra="ignore", populate_by_name=True
    )

    # ========== Job registry ==========
    retention_duration: PositiveFloat = 35 * 60  # seconds, counted from submission
    retention_sliding: bool = False  # restart the window on every read
    reap_interval: PositiveFloat = 60.0

    # ========== Execution pool ==========
    max_concurrent_jobs: PositiveInt = 4
    max_queued_jobs: int = Field(default=64, ge=0)
    engine_call_timeout: Optional[PositiveFloat] = 300.0
    max_abandoned_engine_calls: PositiveInt = 16  # timed-out calls still running before new jobs are refused

    # ========== Engine ==========
    engine_latency: float = Field(default=1.0, ge=0)  # loopback engine only

    # ========== Server ==========
    host: str = Field(default="127.0.0.1", validation_alias=AliasChoices("MT_ADAPTER_HOST", "HOST"))
    port: int = Field(default=8000, validation_alias=AliasChoices("MT_ADAPTER_PORT", "PORT"))
    log_level: str = "INFO"
    log_headers: bool = False


@lru_cache
def get_settings() -> Settings:
    return Settings()
