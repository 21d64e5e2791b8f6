# -*- coding: utf-8 -*-
"""
Centralized configuration for SEO Content Studio.

This module provides a single configuration dataclass covering the
analysis provider selection, AI transport limits and persistence settings.
"""

import os
from dataclasses import dataclass
from typing import Literal, Optional


# Type alias for analysis provider selection
# - "auto": Anthropic when an API key is configured, heuristic otherwise.
# - "anthropic": Always use the Anthropic provider.
# - "heuristic": Deterministic scoring only, no network calls.
ProviderMode = Literal["auto", "anthropic", "heuristic"]

DEFAULT_MODEL = "claude-sonnet-4-20250514"
DEFAULT_DATABASE_URL = "sqlite:///seo_content_studio.db"


@dataclass
class StudioConfig:
    """
    Configuration for SEO Content Studio.

    Attributes:
        ai_provider: Which analysis provider to construct at startup.
        anthropic_api_key: API key for the Anthropic provider.
        ai_model: Model identifier passed to the provider.
        ai_timeout_seconds: Overall HTTP timeout for one AI call.
        ai_connect_timeout_seconds: Connection timeout for one AI call.
        ai_max_retries: Transport-level retries performed by the AI client.
        ai_max_tokens: Maximum tokens in an AI response.
        ai_temperature: Sampling temperature for AI calls.

        database_url: SQLAlchemy URL for the content store.
        revision_conflict_retries: How many times a revision append recounts
            and retries after another writer took the same version number.
        default_page_size: Page size for content listings.
    """

    ai_provider: ProviderMode = "auto"
    anthropic_api_key: Optional[str] = None
    ai_model: str = DEFAULT_MODEL
    ai_timeout_seconds: float = 60.0
    ai_connect_timeout_seconds: float = 30.0
    ai_max_retries: int = 2
    ai_max_tokens: int = 2000
    ai_temperature: float = 0.7

    database_url: str = DEFAULT_DATABASE_URL
    revision_conflict_retries: int = 3
    default_page_size: int = 10

    def __post_init__(self):
        """Validate configuration values."""
        if self.ai_provider not in ("auto", "anthropic", "heuristic"):
            raise ValueError(
                f"ai_provider must be 'auto', 'anthropic', or 'heuristic', "
                f"got '{self.ai_provider}'"
            )
        if self.ai_timeout_seconds <= 0:
            raise ValueError(
                f"ai_timeout_seconds must be > 0, got {self.ai_timeout_seconds}"
            )
        if self.ai_connect_timeout_seconds <= 0:
            raise ValueError(
                f"ai_connect_timeout_seconds must be > 0, got {self.ai_connect_timeout_seconds}"
            )
        if self.ai_max_retries < 0:
            raise ValueError(f"ai_max_retries must be >= 0, got {self.ai_max_retries}")
        if self.ai_max_tokens < 1:
            raise ValueError(f"ai_max_tokens must be >= 1, got {self.ai_max_tokens}")
        if not 0.0 <= self.ai_temperature <= 1.0:
            raise ValueError(
                f"ai_temperature must be between 0 and 1, got {self.ai_temperature}"
            )
        if self.revision_conflict_retries < 1:
            raise ValueError(
                f"revision_conflict_retries must be >= 1, got {self.revision_conflict_retries}"
            )
        if self.default_page_size < 1:
            raise ValueError(
                f"default_page_size must be >= 1, got {self.default_page_size}"
            )
        # Hosted Postgres URLs often use the legacy scheme
        if self.database_url.startswith("postgres://"):
            self.database_url = self.database_url.replace("postgres://", "postgresql://", 1)

    @property
    def use_ai(self) -> bool:
        """Check whether the Anthropic provider should be constructed."""
        if self.ai_provider == "heuristic":
            return False
        if self.ai_provider == "anthropic":
            return True
        return bool(self.anthropic_api_key)

    @classmethod
    def from_env(cls, **overrides) -> "StudioConfig":
        """Create config from environment variables.

        Recognized variables: SEO_STUDIO_AI_PROVIDER, ANTHROPIC_API_KEY,
        SEO_STUDIO_AI_MODEL, SEO_STUDIO_AI_TIMEOUT, SEO_STUDIO_AI_MAX_RETRIES,
        SEO_STUDIO_DATABASE_URL (falls back to DATABASE_URL).

        Args:
            **overrides: Override any config values

        Returns:
            StudioConfig populated from the environment
        """
        values = {
            "ai_provider": os.environ.get("SEO_STUDIO_AI_PROVIDER", "auto"),
            "anthropic_api_key": os.environ.get("ANTHROPIC_API_KEY") or None,
            "ai_model": os.environ.get("SEO_STUDIO_AI_MODEL", DEFAULT_MODEL),
            "database_url": (
                os.environ.get("SEO_STUDIO_DATABASE_URL")
                or os.environ.get("DATABASE_URL")
                or DEFAULT_DATABASE_URL
            ),
        }
        timeout = os.environ.get("SEO_STUDIO_AI_TIMEOUT")
        if timeout:
            values["ai_timeout_seconds"] = float(timeout)
        retries = os.environ.get("SEO_STUDIO_AI_MAX_RETRIES")
        if retries:
            values["ai_max_retries"] = int(retries)
        values.update(overrides)
        return cls(**values)
