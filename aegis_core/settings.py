"""Environment-driven settings.

Only operational configuration lives here (transport, timeouts, logging).
Scoring weights and gate thresholds are policy, not settings: see
aegis_core.thresholds.
"""

from functools import lru_cache
from typing import List, Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

_LLM_ADAPTERS = ("mock", "openai_http")


class Settings(BaseSettings):
    """AEGIS runtime settings (``AEGIS_*`` environment variables)."""

    model_config = SettingsConfigDict(
        env_prefix="AEGIS_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # =========================================================================
    # LOGGING
    # =========================================================================
    log_level: str = "INFO"
    log_json: bool = True

    # =========================================================================
    # LLM / JUDGMENT COLLABORATOR
    # =========================================================================
    llm_adapter: str = Field(default="mock", description="LLM adapter: openai_http, mock")
    llm_base_url: Optional[str] = Field(default=None, description="OpenAI-compatible base URL")
    llm_model: str = Field(default="gpt-4o-mini", description="Model identifier")
    llm_api_key: Optional[str] = None
    llm_timeout: float = Field(default=120.0, gt=0, le=600)
    llm_max_retries: int = Field(default=2, ge=0, le=10)

    # Bounded wait for the judgment collaborator; no fallback score exists.
    judgment_timeout_seconds: float = Field(default=180.0, gt=0, le=900)

    # =========================================================================
    # OPTIONAL COLLABORATORS
    # =========================================================================
    # Permission check falls back to allow (flagged as a warning hard stop).
    permission_check_timeout_seconds: float = Field(default=5.0, gt=0, le=60)
    permission_service_url: Optional[str] = None

    # Assessment / knowledge lookups fall back to "not found" / empty.
    lookup_timeout_seconds: float = Field(default=5.0, gt=0, le=60)

    # =========================================================================
    # API
    # =========================================================================
    api_host: str = "0.0.0.0"
    api_port: int = Field(default=8000, ge=1, le=65535)
    cors_origins: List[str] = Field(default_factory=lambda: ["http://localhost:3000"])

    @field_validator("llm_adapter")
    @classmethod
    def _known_adapter(cls, value: str) -> str:
        value = value.strip().lower()
        if value not in _LLM_ADAPTERS:
            raise ValueError(f"llm_adapter must be one of {_LLM_ADAPTERS}, got '{value}'")
        return value

    @field_validator("log_level")
    @classmethod
    def _upper_level(cls, value: str) -> str:
        return value.strip().upper()


@lru_cache()
def get_settings() -> Settings:
    """Process-wide settings, read once."""
    return Settings()
