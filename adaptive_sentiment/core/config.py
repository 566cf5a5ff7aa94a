"""
Sentiment runtime configuration management.

Centralized configuration for the adaptive sentiment runtime with environment
variable support, validation, and defaults that match the shipped model assets.
"""

from __future__ import annotations

from pathlib import Path
from typing import Literal, Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .models import RuntimeTier


class SentimentSettings(BaseSettings):
    """
    Runtime settings, loaded from SENTIMENT_* environment variables and/or .env file.
    """

    model_config = SettingsConfigDict(
        env_prefix="SENTIMENT_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        protected_namespaces=(),
    )

    # Environment
    app_env: str = Field(
        default="development",
        description="Deployment environment; selects the log renderer",
    )
    log_level: str = Field(default="INFO", description="Root log level")

    # Model assets
    model_dir: Path = Field(
        default=Path("models/sentiment"),
        description="Directory holding the compiled model, vocabulary and integration config",
    )
    model_file: str = Field(
        default="model.onnx",
        description="Model file name, used when the integration config names none",
    )
    vocab_file: str = Field(default="vocab.json", description="Vocabulary JSON file")
    config_file: str = Field(
        default="integration_config.json", description="Integration config JSON file"
    )
    lexicon_path: Optional[Path] = Field(
        default=None,
        description="Optional keyword lexicon JSON; the built-in lexicon is used when unset",
    )
    keyword_profile: Literal["default", "production"] = Field(
        default="default",
        description="Algorithm profile for the built-in keyword lexicon",
    )

    # Fallback chain
    acceptance_threshold: float = Field(
        default=0.6,
        ge=0.0,
        le=1.0,
        description="Neural results are accepted only when confidence is strictly above this",
    )
    forced_tier: Optional[RuntimeTier] = Field(
        default=None,
        description="Override the detected runtime tier",
    )

    # Caching
    enable_caching: bool = Field(default=True, description="Enable result caching")
    cache_max_entries: Optional[int] = Field(
        default=1024,
        ge=1,
        description="LRU bound for the result cache; None keeps every entry",
    )

    # Monitoring
    performance_log_interval: int = Field(
        default=10,
        ge=1,
        description="Log a performance snapshot every N analyses",
    )

    @field_validator("forced_tier", mode="before")
    @classmethod
    def parse_forced_tier(cls, v):
        """Accept tier names in any case, and blank strings as unset"""
        if isinstance(v, str):
            v = v.strip()
            if not v:
                return None
            try:
                return RuntimeTier[v.upper()]
            except KeyError:
                return RuntimeTier(v.lower())
        return v

    @field_validator("cache_max_entries", mode="before")
    @classmethod
    def parse_unbounded_cache(cls, v):
        if isinstance(v, str) and v.strip().lower() in ("", "none", "unbounded"):
            return None
        return v

    def asset_path(self, file_name: str) -> Path:
        """Resolve an asset file name against the model directory"""
        return Path(self.model_dir) / file_name


# Global settings instance
_sentiment_settings: Optional[SentimentSettings] = None


def get_sentiment_settings() -> SentimentSettings:
    """Get global sentiment settings instance"""
    global _sentiment_settings
    if _sentiment_settings is None:
        _sentiment_settings = SentimentSettings()
    return _sentiment_settings


def reload_sentiment_settings() -> SentimentSettings:
    """Reload sentiment settings from environment"""
    global _sentiment_settings
    _sentiment_settings = SentimentSettings()
    return _sentiment_settings
