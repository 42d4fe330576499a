"""
Recipe suggestion filter.

Picks library items for an advice bullet from a declarative recipe, with
progressive relaxation of non-protected constraints.
"""

from suggestions.catalog import Catalog
from suggestions.filter import (
    deterministic_sort,
    get_category_suggestions,
    get_filtered_suggestions,
    matches_filters,
    relax_filters,
    suggestions_for_recipe,
    vibe_bucket,
)
from suggestions.recipes import (
    BULLET_TARGETS,
    BUNDLE_RECIPES,
    BulletMode,
    BulletTarget,
    load_bundle_recipes,
    validate_recipe_tables,
)
from suggestions.schema import allowed_values, tier_for_rank, validate_library_item
from suggestions.telemetry import SuggestionViewedEvent, SuggestionViewTracker, filters_fingerprint
from suggestions.types import (
    BundleRecipe,
    FilterKey,
    ItemTier,
    LibraryItemMeta,
    SuggestionResult,
    Vibe,
)

__all__ = [
    "Catalog",
    "deterministic_sort",
    "get_category_suggestions",
    "get_filtered_suggestions",
    "matches_filters",
    "relax_filters",
    "suggestions_for_recipe",
    "vibe_bucket",
    "BULLET_TARGETS",
    "BUNDLE_RECIPES",
    "BulletMode",
    "BulletTarget",
    "load_bundle_recipes",
    "validate_recipe_tables",
    "allowed_values",
    "tier_for_rank",
    "validate_library_item",
    "SuggestionViewedEvent",
    "SuggestionViewTracker",
    "filters_fingerprint",
    "BundleRecipe",
    "FilterKey",
    "ItemTier",
    "LibraryItemMeta",
    "SuggestionResult",
    "Vibe",
]
