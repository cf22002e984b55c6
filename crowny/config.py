"""Client configuration with defaults and environment overrides."""

from __future__ import annotations

import logging
import os

from pydantic import BaseModel, Field, field_validator

logger = logging.getLogger(__name__)

# Remote service endpoint
DEFAULT_BASE_URL = "http://localhost:7293"

# Per-request timeout
DEFAULT_TIMEOUT = 30.0  # seconds

# History ring buffer size
DEFAULT_HISTORY_LIMIT = 1000

# Sources polled by consensus_call when none are given
DEFAULT_SOURCES = ("claude", "gpt4", "gemini")

# Subject used for execute/compile tasks
DEFAULT_SUBJECT = "sdk-py"

# Subject used for llm tasks without an explicit model
DEFAULT_MODEL = "claude"


class ClientConfig(BaseModel):
    """Settings for a CrownyClient."""

    base_url: str = DEFAULT_BASE_URL
    timeout: float = Field(default=DEFAULT_TIMEOUT, gt=0)
    history_limit: int = Field(default=DEFAULT_HISTORY_LIMIT, ge=1)
    default_sources: list[str] = Field(default_factory=lambda: list(DEFAULT_SOURCES))
    subject: str = DEFAULT_SUBJECT
    default_model: str = DEFAULT_MODEL
    max_workers: int | None = Field(
        default=None,
        ge=1,
        description="Thread cap for consensus calls; None runs every source at once",
    )

    @field_validator("base_url")
    @classmethod
    def _strip_trailing_slash(cls, value: str) -> str:
        return value.rstrip("/")

    @field_validator("default_sources")
    @classmethod
    def _require_sources(cls, value: list[str]) -> list[str]:
        sources = [s.strip() for s in value if s.strip()]
        if not sources:
            raise ValueError("default_sources must name at least one source")
        return sources

    @classmethod
    def from_env(cls, **overrides) -> ClientConfig:
        """Build a config from CROWNY_* environment variables.

        Keyword overrides take precedence over the environment.
        """
        values: dict[str, object] = {}
        env_fields = {
            "CROWNY_BASE_URL": "base_url",
            "CROWNY_TIMEOUT": "timeout",
            "CROWNY_SUBJECT": "subject",
        }
        for env_name, field_name in env_fields.items():
            value = os.environ.get(env_name)
            if value:
                values[field_name] = value

        sources = os.environ.get("CROWNY_SOURCES")
        if sources:
            values["default_sources"] = sources.split(",")

        values.update({k: v for k, v in overrides.items() if v is not None})
        logger.debug(f"Client config values: {values}")
        return cls(**values)
