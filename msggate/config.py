"""Configuration: environment-driven settings via pydantic-settings.

Invariants:
    - get_settings() is cached (lru_cache), single instance per process
    - Components accept an explicit Settings for tests; they fall back to get_settings()

Design Decisions:
    - pydantic-settings over raw os.environ: validation, type coercion, .env file support
    - MSGGATE_ prefix: the pipeline is embedded in host applications with their own env
"""

from functools import lru_cache
from typing import Literal

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Pipeline settings from environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="MSGGATE_", env_file=".env", case_sensitive=False, extra="ignore",
    )

    # Validation
    # 0 disables the size check
    max_message_bytes: int = 1_048_576
    require_registered_schema: bool = False
    forbid_extra_envelope_fields: bool = False

    # Observability
    log_level: str = "INFO"
    log_format: Literal["json", "text"] = "json"

    @field_validator("max_message_bytes")
    @classmethod
    def non_negative_limit(cls, v: int) -> int:
        if v < 0:
            raise ValueError("max_message_bytes must be >= 0")
        return v

    @field_validator("log_level", mode="before")
    @classmethod
    def normalize_level(cls, v: str) -> str:
        return v.upper() if isinstance(v, str) else v


@lru_cache
def get_settings() -> Settings:
    return Settings()
