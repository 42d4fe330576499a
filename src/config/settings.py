"""
Centralized settings management using pydantic-settings.

All environment variables and configuration values are defined here.
Use get_settings() to access the singleton settings instance.
"""

from functools import lru_cache
from pathlib import Path

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    Nothing is required; every value has a working default so the rules
    engine can be embedded without any environment at all.

    Optional environment variables:
        - ENVIRONMENT: Environment name (development, staging, production)
        - LOG_LEVEL / JSON_LOGS: structlog output
        - TRUST_FILTER_ENABLED / TRUST_FILTER_TRACE_ENABLED: guardrail flags
        - COMBO_*: combo assembler budgets
        - SUGGESTION_*: suggestion filter defaults
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # ==========================================================================
    # Environment
    # ==========================================================================
    environment: str = Field(default="development", description="Environment name")
    debug: bool = Field(default=False, description="Debug mode")

    @property
    def is_development(self) -> bool:
        return self.environment.lower() in ("development", "dev", "local")

    @property
    def is_production(self) -> bool:
        return self.environment.lower() in ("production", "prod")

    # ==========================================================================
    # Logging
    # ==========================================================================
    log_level: str = Field(default="INFO", description="Minimum log level")
    json_logs: bool = Field(default=False, description="Emit JSON logs instead of console output")

    @field_validator("log_level", mode="before")
    @classmethod
    def normalize_log_level(cls, v):
        if isinstance(v, str):
            v = v.strip().upper()
            if v not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
                raise ValueError(f"unknown log level: {v}")
        return v

    # ==========================================================================
    # Trust Filter
    # ==========================================================================
    trust_filter_enabled: bool = Field(
        default=True,
        description="Run the trust filter guardrail over HIGH matches"
    )
    trust_filter_trace_enabled: bool = Field(
        default=False,
        description="Attach rule-application traces to every decision"
    )
    trust_filter_remote_cache_seconds: int = Field(
        default=300,
        ge=0,
        description="How long a merged remote config stays cached (seconds)"
    )

    # ==========================================================================
    # Combo Assembler
    # ==========================================================================
    combo_max_candidates_per_slot: int = Field(
        default=10,
        ge=1,
        description="Candidate pool cap per outfit slot"
    )
    combo_max_combos: int = Field(
        default=12,
        ge=1,
        description="Stop generating once this many combos exist"
    )
    combo_include_low_tier: bool = Field(
        default=False,
        description="Allow LOW tier candidates into slot pools"
    )
    combo_max_reasons: int = Field(
        default=4,
        ge=0,
        description="Display reasons kept per combo"
    )

    # ==========================================================================
    # Suggestions
    # ==========================================================================
    suggestion_default_limit: int = Field(
        default=3,
        ge=1,
        description="Items returned when a recipe has no target limit"
    )
    suggestion_dedup_capacity: int = Field(
        default=500,
        ge=1,
        description="Entries kept by the suggestion view dedup cache"
    )


@lru_cache
def get_settings() -> Settings:
    """
    Get the application settings singleton.

    Uses lru_cache to ensure only one instance is created.
    Settings are loaded from environment variables and .env file.

    Returns:
        Settings: The application settings instance

    Raises:
        ValidationError: If an environment variable holds an invalid value
    """
    env_file = Path(__file__).parent.parent.parent / ".env"
    return Settings(_env_file=env_file if env_file.exists() else None)


def get_settings_for_testing(**overrides) -> Settings:
    """
    Create a settings instance for testing with optional overrides.

    This bypasses the cache to allow different settings in tests.

    Args:
        **overrides: Setting values to override

    Returns:
        Settings: A new settings instance with overrides applied
    """
    test_defaults = {
        "environment": "testing",
        "debug": True,
    }
    test_defaults.update(overrides)

    return Settings(_env_file=None, **test_defaults)
