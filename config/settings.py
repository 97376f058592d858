"""
Application settings loaded from environment variables.

Uses pydantic-settings for validation and type safety.
"""

from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field
from functools import lru_cache
from typing import Optional


class Settings(BaseSettings):
    """
    Application settings.

    All values loaded from .env file or environment variables.
    Every field has a default so the pipeline runs offline with the
    rule-based estimator and the in-memory store.
    """

    model_config = SettingsConfigDict(
        env_file=(".env", "../.env"),  # Check current dir, then parent
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"  # Ignore extra env vars
    )

    # ===================
    # ESTIMATOR (ANTHROPIC)
    # ===================
    anthropic_api_key: Optional[str] = Field(
        None,
        description="Anthropic API key; without it every sub-task uses the rule-based fallback"
    )
    estimator_model: str = Field(
        default="claude-sonnet-4-20250514",
        description="Model used for categorization, valuation and risk prompts"
    )
    estimator_max_tokens: int = Field(
        default=1024,
        ge=64,
        le=8192,
        description="Maximum tokens per estimator response"
    )
    estimator_timeout_seconds: float = Field(
        default=20.0,
        gt=0,
        le=300,
        description="Timeout for a single estimator call before falling back"
    )

    # ===================
    # ENRICHMENT
    # ===================
    enrichment_concurrency: int = Field(
        default=5,
        ge=1,
        le=50,
        description="Maximum items enriched at the same time"
    )
    risk_fallback_mode: str = Field(
        default="hashed",
        pattern="^(hashed|random)$",
        description="Fallback risk score source: hash of description+category, or random"
    )

    # ===================
    # ANALYSIS STORE
    # ===================
    store_backend: str = Field(
        default="memory",
        pattern="^(memory|supabase)$",
        description="Where completed analyses are kept"
    )
    supabase_url: Optional[str] = Field(
        None,
        description="Supabase project URL"
    )
    supabase_key: Optional[str] = Field(
        None,
        description="Supabase anon/service key"
    )
    manifests_table: str = Field(
        default="manifest_analyses",
        description="Supabase table holding serialized analyses"
    )

    # ===================
    # APP SETTINGS
    # ===================
    environment: str = Field(
        default="development",
        pattern="^(development|staging|production)$",
        description="Application environment"
    )
    debug: bool = Field(
        default=True,
        description="Enable debug mode"
    )
    log_level: str = Field(
        default="INFO",
        pattern="^(DEBUG|INFO|WARNING|ERROR|CRITICAL)$",
        description="Logging level"
    )

    # ===================
    # COMPUTED PROPERTIES
    # ===================
    @property
    def is_production(self) -> bool:
        """Check if running in production."""
        return self.environment == "production"

    @property
    def estimator_configured(self) -> bool:
        """Check if the live estimator can be used."""
        return bool(self.anthropic_api_key)

    @property
    def supabase_configured(self) -> bool:
        """Check if Supabase is properly configured."""
        return bool(self.supabase_url and self.supabase_key)


@lru_cache()
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Uses lru_cache to ensure settings are only loaded once.
    Call get_settings.cache_clear() to reload.

    Returns:
        Settings: Application settings

    Raises:
        ValidationError: If env vars are invalid
    """
    return Settings()


# For convenient imports: from config.settings import settings
settings = get_settings()
