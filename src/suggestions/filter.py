"""
Recipe suggestion filter.

Selection and ranking are separate steps:

    selection  matches_filters() against the declarative filter only
    ranking    deterministic_sort() by vibe bucket, rank, then id

Vibes never shrink the candidate pool. When the strict filter under-fills,
relaxable keys are dropped one at a time in relax_order; never_relax keys
are kept in every pass. There is no automatic widening to "anything in the
category": that is get_category_suggestions(), which callers invoke
explicitly.
"""

from typing import Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

from config.constants import DEFAULT_SUGGESTION_CONFIG, SuggestionConfig
from core.logging import get_logger
from core.types import Category
from suggestions.catalog import Catalog
from suggestions.types import (
    BundleRecipe,
    FilterKey,
    FilterValue,
    LibraryItemMeta,
    SuggestionResult,
    filter_values,
)

logger = get_logger(__name__)

NormalizedFilters = Dict[FilterKey, Tuple[str, ...]]


def _normalize(filters: Optional[Mapping]) -> NormalizedFilters:
    return {FilterKey(k): filter_values(v) for k, v in (filters or {}).items()}


def _vibe_values(vibes: Optional[Iterable]) -> frozenset:
    return frozenset(filter_values(tuple(vibes or ())))


# =============================================================================
# Selection
# =============================================================================

def matches_filters(item: LibraryItemMeta, filters: Mapping[FilterKey, FilterValue]) -> bool:
    """
    True if the item passes every filter.

    A filter value is a scalar or a value-set. Attributes the item does not
    carry are wildcards.
    """
    for key, value in filters.items():
        actual = item.attribute(FilterKey(key))
        if actual is None:
            continue
        if actual not in filter_values(value):
            return False
    return True


def relax_filters(filters: Mapping[FilterKey, FilterValue], keys: Iterable[FilterKey]) -> NormalizedFilters:
    """Copy of ``filters`` without ``keys``."""
    dropped = {FilterKey(k) for k in keys}
    return {k: v for k, v in _normalize(filters).items() if k not in dropped}


# =============================================================================
# Ranking
# =============================================================================

def vibe_bucket(
    item: LibraryItemMeta,
    scanned_vibes: Iterable = (),
    user_vibes: Iterable = (),
    config: SuggestionConfig = DEFAULT_SUGGESTION_CONFIG,
) -> int:
    """0 both, 1 scanned only, 2 user only, 3 generic default, 4 other."""
    item_vibes = _vibe_values(item.vibes)
    scanned = bool(item_vibes & _vibe_values(scanned_vibes))
    user = bool(item_vibes & _vibe_values(user_vibes))

    buckets = config.VIBE_BUCKETS
    if scanned and user:
        return buckets["both"]
    if scanned:
        return buckets["scanned"]
    if user:
        return buckets["user"]
    if config.DEFAULT_VIBE in item_vibes:
        return buckets["default"]
    return buckets["other"]


def deterministic_sort(
    items: Iterable[LibraryItemMeta],
    scanned_vibes: Iterable = (),
    user_vibes: Iterable = (),
    config: SuggestionConfig = DEFAULT_SUGGESTION_CONFIG,
) -> List[LibraryItemMeta]:
    scanned = tuple(scanned_vibes or ())
    user = tuple(user_vibes or ())

    def key(item: LibraryItemMeta):
        rank = item.rank if item.rank is not None else config.MISSING_RANK
        return (vibe_bucket(item, scanned, user, config), rank, item.id)

    return sorted(items, key=key)


# =============================================================================
# Suggestions
# =============================================================================

def get_filtered_suggestions(
    category: Category,
    filters: Mapping[FilterKey, FilterValue],
    catalog: Catalog,
    limit: Optional[int] = None,
    scanned_vibes: Iterable = (),
    user_vibes: Iterable = (),
    relax_order: Sequence[FilterKey] = (),
    never_relax: Sequence[FilterKey] = (),
    config: Optional[SuggestionConfig] = None,
) -> SuggestionResult:
    """
    Select up to ``limit`` catalog items for a recipe filter.

    Passes, first one that fills ``limit`` wins:
        1. strict filter set
        2. relax_order keys dropped one at a time, cumulatively
        3. with every relaxable key gone, whatever is left (however small)

    An empty result is returned as is; protected constraints are never
    widened.

    Returns:
        SuggestionResult with the dropped keys in relaxed_keys
    """
    config = config or SuggestionConfig.from_settings()
    limit = config.DEFAULT_LIMIT if limit is None else limit
    current = _normalize(filters)
    protected = {FilterKey(k) for k in never_relax}
    candidates = catalog.for_category(category)

    def try_filters(active: NormalizedFilters) -> List[LibraryItemMeta]:
        matched = [item for item in candidates if matches_filters(item, active)]
        return deterministic_sort(matched, scanned_vibes, user_vibes, config)[:limit]

    results = try_filters(current)
    if len(results) >= limit:
        return SuggestionResult(items=tuple(results), was_relaxed=False)

    relaxed: List[FilterKey] = []
    for key in relax_order:
        key = FilterKey(key)
        if key in protected or key not in current:
            continue
        current = relax_filters(current, [key])
        relaxed.append(key)
        results = try_filters(current)
        logger.debug(
            "Relaxed suggestion filter",
            category=category.value,
            dropped=key.value,
            count=len(results),
            limit=limit,
        )
        if len(results) >= limit:
            return SuggestionResult(items=tuple(results), was_relaxed=True, relaxed_keys=tuple(relaxed))

    # Walk exhausted: every relaxable key is gone and `results` is the
    # minimal pass, returned however small
    if not results:
        logger.debug(
            "No suggestions after relaxation",
            category=category.value,
            remaining=sorted(k.value for k in current),
            candidates=len(candidates),
        )

    return SuggestionResult(items=tuple(results), was_relaxed=bool(relaxed), relaxed_keys=tuple(relaxed))


def get_category_suggestions(
    category: Category,
    catalog: Catalog,
    limit: Optional[int] = None,
    scanned_vibes: Iterable = (),
    user_vibes: Iterable = (),
    config: Optional[SuggestionConfig] = None,
) -> SuggestionResult:
    """Explicit "anything in this category" fallback. Never called implicitly."""
    config = config or SuggestionConfig.from_settings()
    limit = config.DEFAULT_LIMIT if limit is None else limit
    items = deterministic_sort(catalog.for_category(category), scanned_vibes, user_vibes, config)
    return SuggestionResult(items=tuple(items[:limit]), was_relaxed=False)


def suggestions_for_recipe(
    recipe: BundleRecipe,
    catalog: Catalog,
    scanned_vibes: Iterable = (),
    user_vibes: Iterable = (),
    config: Optional[SuggestionConfig] = None,
) -> SuggestionResult:
    return get_filtered_suggestions(
        category=recipe.target_category,
        filters=recipe.target_filters,
        catalog=catalog,
        limit=recipe.target_limit,
        scanned_vibes=scanned_vibes,
        user_vibes=user_vibes,
        relax_order=recipe.relax_order,
        never_relax=recipe.never_relax,
        config=config,
    )
