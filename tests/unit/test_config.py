"""
Tests for the configuration module.
"""

import pytest
from pydantic import ValidationError


class TestSettings:
    """Tests for Settings class."""

    def test_defaults(self, test_settings):
        assert test_settings.environment == "testing"
        assert test_settings.trust_filter_enabled is True
        assert test_settings.trust_filter_trace_enabled is False
        assert test_settings.trust_filter_remote_cache_seconds == 300
        assert test_settings.combo_max_candidates_per_slot == 10
        assert test_settings.combo_max_combos == 12
        assert test_settings.combo_include_low_tier is False
        assert test_settings.combo_max_reasons == 4
        assert test_settings.suggestion_default_limit == 3
        assert test_settings.suggestion_dedup_capacity == 500

    def test_loads_from_env(self, monkeypatch):
        from config.settings import get_settings

        monkeypatch.setenv("TRUST_FILTER_ENABLED", "false")
        monkeypatch.setenv("COMBO_MAX_COMBOS", "6")

        settings = get_settings()
        assert settings.trust_filter_enabled is False
        assert settings.combo_max_combos == 6
        assert get_settings() is settings

    def test_get_settings_leaves_environment_alone(self, monkeypatch):
        import os
        from config.settings import get_settings

        monkeypatch.delenv("ENV_FILE", raising=False)
        get_settings()
        assert "ENV_FILE" not in os.environ

    def test_is_development_property(self):
        from config.settings import get_settings_for_testing

        for env in ["development", "dev", "local"]:
            assert get_settings_for_testing(environment=env).is_development is True
        assert get_settings_for_testing(environment="production").is_development is False

    def test_is_production_property(self):
        from config.settings import get_settings_for_testing

        for env in ["production", "prod"]:
            assert get_settings_for_testing(environment=env).is_production is True
        assert get_settings_for_testing().is_production is False

    def test_log_level_normalized(self):
        from config.settings import get_settings_for_testing

        assert get_settings_for_testing(log_level=" debug ").log_level == "DEBUG"
        with pytest.raises(ValidationError):
            get_settings_for_testing(log_level="chatty")

    def test_budgets_must_be_positive(self):
        from config.settings import get_settings_for_testing

        with pytest.raises(ValidationError):
            get_settings_for_testing(combo_max_combos=0)


class TestConstants:
    """Tests for algorithm constants."""

    def test_combo_config_defaults(self):
        from config.constants import DEFAULT_COMBO_CONFIG

        assert DEFAULT_COMBO_CONFIG.MAX_CANDIDATES_PER_SLOT == 10
        assert DEFAULT_COMBO_CONFIG.MAX_COMBOS == 12
        assert DEFAULT_COMBO_CONFIG.INCLUDE_LOW_TIER is False

    def test_combo_config_from_settings(self):
        from config.constants import ComboAssemblerConfig
        from config.settings import get_settings_for_testing

        config = ComboAssemblerConfig.from_settings(
            get_settings_for_testing(combo_max_combos=4, combo_include_low_tier=True)
        )
        assert config.MAX_COMBOS == 4
        assert config.INCLUDE_LOW_TIER is True

    def test_suggestion_config_from_settings(self):
        from config.constants import SuggestionConfig
        from config.settings import get_settings_for_testing

        config = SuggestionConfig.from_settings(get_settings_for_testing(suggestion_default_limit=5))
        assert config.DEFAULT_LIMIT == 5
        assert config.MISSING_RANK == 9999

    def test_config_is_frozen(self):
        from dataclasses import FrozenInstanceError
        from config.constants import DEFAULT_COMBO_CONFIG

        with pytest.raises(FrozenInstanceError):
            DEFAULT_COMBO_CONFIG.MAX_COMBOS = 1
