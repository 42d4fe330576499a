"""
Static schema for library items and recipe filters.

Attribute applicability is category-dependent: shape and length only mean
something for the categories listed here, and outerwear weight only for
outerwear. Validators return every violation they find.
"""

from typing import Dict, FrozenSet, List, Optional, Tuple

from core.types import Category
from suggestions.types import (
    FilterKey,
    Formality,
    ItemTier,
    Length,
    LibraryItemMeta,
    OuterwearWeight,
    Shape,
    Structure,
    Tone,
    Volume,
)

S = Shape
L = Length

SHAPES_BY_CATEGORY: Dict[Category, FrozenSet[Shape]] = {
    Category.BOTTOMS: frozenset({S.SKINNY, S.STRAIGHT, S.WIDE, S.TAPERED, S.FLARE, S.CARGO}),
    Category.SKIRTS: frozenset({S.PENCIL, S.A_LINE, S.PLEATED}),
    Category.DRESSES: frozenset({S.SLIP, S.WRAP, S.SHIRT, S.BODYCON, S.FIT_FLARE}),
    Category.SHOES: frozenset({S.LOW_PROFILE, S.CHUNKY, S.HEELED, S.BOOT}),
}

LENGTHS_BY_CATEGORY: Dict[Category, FrozenSet[Length]] = {
    Category.TOPS: frozenset({L.CROPPED, L.REGULAR, L.LONGLINE}),
    Category.OUTERWEAR: frozenset({L.CROPPED, L.REGULAR, L.LONG}),
    Category.DRESSES: frozenset({L.MINI, L.MIDI, L.MAXI}),
    Category.SKIRTS: frozenset({L.MINI, L.MIDI, L.MAXI}),
}

# Inclusive rank bands per tier; statement is open-ended
TIER_RANK_RANGES: Dict[ItemTier, Tuple[int, Optional[int]]] = {
    ItemTier.CORE: (10, 29),
    ItemTier.STAPLE: (30, 59),
    ItemTier.STYLE: (60, 89),
    ItemTier.STATEMENT: (90, None),
}

_UNSCOPED_VALUES: Dict[FilterKey, FrozenSet[str]] = {
    FilterKey.TONE: frozenset(t.value for t in Tone),
    FilterKey.STRUCTURE: frozenset(s.value for s in Structure),
    FilterKey.FORMALITY: frozenset(f.value for f in Formality),
    FilterKey.VOLUME: frozenset(v.value for v in Volume),
    FilterKey.TIER: frozenset(t.value for t in ItemTier),
    FilterKey.OUTERWEAR_WEIGHT: frozenset(w.value for w in OuterwearWeight),
}


def allowed_values(key: FilterKey, category: Category) -> FrozenSet[str]:
    """Values ``key`` may take on an item of ``category`` (empty if not applicable)."""
    if key is FilterKey.SHAPE:
        return frozenset(s.value for s in SHAPES_BY_CATEGORY.get(category, ()))
    if key is FilterKey.LENGTH:
        return frozenset(v.value for v in LENGTHS_BY_CATEGORY.get(category, ()))
    if key is FilterKey.OUTERWEAR_WEIGHT and category is not Category.OUTERWEAR:
        return frozenset()
    return _UNSCOPED_VALUES[key]


def tier_for_rank(rank: int) -> Optional[ItemTier]:
    for tier, (low, high) in TIER_RANK_RANGES.items():
        if rank >= low and (high is None or rank <= high):
            return tier
    return None


def validate_library_item(item: LibraryItemMeta) -> List[str]:
    """Every schema violation on one catalog row."""
    errors: List[str] = []
    where = f"library item {item.id!r} ({item.category.value})"

    if item.shape is not None and item.shape not in SHAPES_BY_CATEGORY.get(item.category, ()):
        errors.append(f"{where}: shape {item.shape.value!r} not valid for this category")
    if item.length is not None and item.length not in LENGTHS_BY_CATEGORY.get(item.category, ()):
        errors.append(f"{where}: length {item.length.value!r} not valid for this category")
    if item.outerwear_weight is not None and item.category is not Category.OUTERWEAR:
        errors.append(f"{where}: outerwear_weight is only valid on outerwear")

    if item.tier is not None and item.rank is not None:
        low, high = TIER_RANK_RANGES[item.tier]
        if item.rank < low or (high is not None and item.rank > high):
            span = f"{low}+" if high is None else f"{low}-{high}"
            errors.append(f"{where}: rank {item.rank} outside {item.tier.value} range {span}")

    return errors
