"""
Algorithm constants for the combo assembler and suggestion filter.

These are values that don't change based on environment but may need
to be tuned or referenced across the codebase. Environment-driven budgets
live in config.settings; from_settings() bridges the two.
"""

from dataclasses import dataclass, field
from typing import Dict, Optional

from config.settings import Settings, get_settings


# =============================================================================
# Combo Assembler Configuration
# =============================================================================

@dataclass(frozen=True)
class ComboAssemblerConfig:
    """Budgets for combo generation."""

    # Candidate pool cap per slot
    MAX_CANDIDATES_PER_SLOT: int = 10

    # Generation stops once this many combos exist
    MAX_COMBOS: int = 12

    # LOW tier candidates are dropped unless this is set
    INCLUDE_LOW_TIER: bool = False

    # Display reasons kept per combo
    MAX_REASONS: int = 4

    @classmethod
    def from_settings(cls, settings: Optional[Settings] = None) -> "ComboAssemblerConfig":
        settings = settings or get_settings()
        return cls(
            MAX_CANDIDATES_PER_SLOT=settings.combo_max_candidates_per_slot,
            MAX_COMBOS=settings.combo_max_combos,
            INCLUDE_LOW_TIER=settings.combo_include_low_tier,
            MAX_REASONS=settings.combo_max_reasons,
        )


DEFAULT_COMBO_CONFIG = ComboAssemblerConfig()


# Explanation template id -> display string shown under a combo
EXPLANATION_TEMPLATES: Dict[str, str] = {
    "color_harmony_neutrals": "Colors work well together",
    "color_harmony_analogous": "Complementary color palette",
    "style_match": "Matching style aesthetic",
    "formality_match": "Same level of formality",
    "versatile_piece": "Versatile piece that pairs easily",
}


# =============================================================================
# Suggestion Filter Configuration
# =============================================================================

@dataclass(frozen=True)
class SuggestionConfig:
    """Defaults for the recipe suggestion filter."""

    # Items returned when a recipe has no target limit
    DEFAULT_LIMIT: int = 3

    # Sort key for items with no rank
    MISSING_RANK: int = 9999

    # Vibe every generic item carries
    DEFAULT_VIBE: str = "default"

    # View dedup cache size
    DEDUP_CAPACITY: int = 500

    # Vibe ranking buckets, lower sorts first
    VIBE_BUCKETS: Dict[str, int] = field(default_factory=lambda: {
        "both": 0,
        "scanned": 1,
        "user": 2,
        "default": 3,
        "other": 4,
    })

    @classmethod
    def from_settings(cls, settings: Optional[Settings] = None) -> "SuggestionConfig":
        settings = settings or get_settings()
        return cls(
            DEFAULT_LIMIT=settings.suggestion_default_limit,
            DEDUP_CAPACITY=settings.suggestion_dedup_capacity,
        )


DEFAULT_SUGGESTION_CONFIG = SuggestionConfig()
