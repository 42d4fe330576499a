"""
Pytest configuration and shared fixtures for the rules engine tests.
"""
import os
import sys

import pytest

# Add src to path for imports
sys.path.insert(0, os.path.join(os.path.dirname(os.path.dirname(__file__)), "src"))

# Load environment variables
from dotenv import load_dotenv
load_dotenv(os.path.join(os.path.dirname(os.path.dirname(__file__)), ".env"))


# ============================================================================
# Fixtures: Settings
# ============================================================================

@pytest.fixture
def test_settings():
    """Settings isolated from the environment and the cached singleton."""
    from config.settings import get_settings_for_testing
    return get_settings_for_testing()


@pytest.fixture(autouse=True)
def clear_settings_cache():
    """Drop the cached settings singleton around every test."""
    from config.settings import get_settings
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


# ============================================================================
# Fixtures: Style signals
# ============================================================================

@pytest.fixture
def make_signals():
    """
    Factory for fully populated StyleSignals.

    Every section defaults to a confident, unremarkable read so a test only
    has to spell out the field it is about.
    """
    from trust_filter.types import (
        AestheticArchetype,
        AestheticSignal,
        FormalityBand,
        FormalitySignal,
        MaterialFamily,
        MaterialSignal,
        PaletteSignal,
        PatternLevel,
        PatternSignal,
        SeasonHeaviness,
        SeasonSignal,
        StatementLevel,
        StatementSignal,
        StyleSignals,
    )

    def _make(
        archetype=AestheticArchetype.CLASSIC,
        archetype_confidence=0.9,
        secondary=AestheticArchetype.NONE,
        secondary_confidence=0.0,
        formality=FormalityBand.CASUAL,
        formality_confidence=0.9,
        statement=StatementLevel.LOW,
        statement_confidence=0.9,
        season=SeasonHeaviness.MID,
        season_confidence=0.9,
        pattern=PatternLevel.SOLID,
        pattern_confidence=0.9,
    ) -> StyleSignals:
        return StyleSignals(
            aesthetic=AestheticSignal(
                primary=archetype,
                primary_confidence=archetype_confidence,
                secondary=secondary,
                secondary_confidence=secondary_confidence,
            ),
            formality=FormalitySignal(band=formality, confidence=formality_confidence),
            statement=StatementSignal(level=statement, confidence=statement_confidence),
            season=SeasonSignal(heaviness=season, confidence=season_confidence),
            palette=PaletteSignal(),
            pattern=PatternSignal(level=pattern, confidence=pattern_confidence),
            material=MaterialSignal(family=MaterialFamily.COTTON, confidence=0.8),
        )

    return _make


# ============================================================================
# Pytest Configuration
# ============================================================================

def pytest_configure(config):
    """Configure pytest with custom markers."""
    config.addinivalue_line("markers", "unit: marks tests as unit tests")
    config.addinivalue_line("markers", "slow: marks tests as slow")
