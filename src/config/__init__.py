"""
Configuration module for the rules engine.

This module provides centralized configuration management using pydantic-settings.
All environment variables and configuration values should be accessed through this module.

Usage:
    from config import get_settings

    settings = get_settings()
    if settings.trust_filter_enabled:
        ...
"""

from config.settings import Settings, get_settings, get_settings_for_testing
from config.constants import (
    ComboAssemblerConfig,
    DEFAULT_COMBO_CONFIG,
    SuggestionConfig,
    DEFAULT_SUGGESTION_CONFIG,
)

__all__ = [
    "Settings",
    "get_settings",
    "get_settings_for_testing",
    "ComboAssemblerConfig",
    "DEFAULT_COMBO_CONFIG",
    "SuggestionConfig",
    "DEFAULT_SUGGESTION_CONFIG",
]
