"""Application Configuration — environment-driven settings via pydantic-settings.

Invariants:
    - All secrets come from environment variables (never hardcoded)
    - get_settings() is cached (lru_cache) — single instance per process
    - Workflow defaults match core.domain_types (chunk size, cadence, interval)

Design Decisions:
    - pydantic-settings over raw os.environ: validation, type coercion, .env file support
    - Empty API key is allowed at startup: the first LLM call fails with a
      PermanentServiceError instead of the app refusing to boot
"""

from functools import lru_cache
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from dialectica.core.domain_types import (
    AUTO_RUN_INTERVAL_SECONDS, CHUNK_SIZE, CONSOLIDATION_INTERVAL,
)


class Settings(BaseSettings):
    """Application settings from environment variables."""

    model_config = SettingsConfigDict(env_file=".env", case_sensitive=False)

    # Anthropic
    anthropic_api_key: str = ""
    anthropic_model: str = "claude-sonnet-4-5"
    anthropic_max_tokens: int = 16_000
    anthropic_max_retries: int = Field(3, ge=0)
    anthropic_base_delay_ms: int = Field(5000, ge=0)
    anthropic_max_delay_ms: int = Field(60_000, ge=0)
    anthropic_timeout_seconds: int = 300

    # Reading workflow
    chunk_size: int = Field(CHUNK_SIZE, gt=0)
    consolidation_interval: int = Field(CONSOLIDATION_INTERVAL, ge=1)
    auto_run_interval_seconds: float = Field(AUTO_RUN_INTERVAL_SECONDS, ge=0)
    shutdown_grace_seconds: float = Field(10.0, ge=0)

    # API
    cors_origins: list[str] = ["http://localhost:5173"]

    # Observability
    log_level: str = "INFO"
    log_format: Literal["json", "text"] = "json"


@lru_cache
def get_settings() -> Settings:
    return Settings()
