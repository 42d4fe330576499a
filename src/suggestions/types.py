"""
Types for the recipe suggestion filter: library catalog rows, recipes and
results.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Dict, Optional, Tuple, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from core.types import Category


# ============================================================================
# Attribute enums
# ============================================================================

class Tone(str, Enum):
    LIGHT = "light"
    NEUTRAL = "neutral"
    DARK = "dark"


class Structure(str, Enum):
    SOFT = "soft"
    STRUCTURED = "structured"


class Formality(str, Enum):
    CASUAL = "casual"
    SMART_CASUAL = "smart-casual"
    FORMAL = "formal"


class OuterwearWeight(str, Enum):
    LIGHT = "light"
    MEDIUM = "medium"
    HEAVY = "heavy"


class Volume(str, Enum):
    FITTED = "fitted"
    REGULAR = "regular"
    OVERSIZED = "oversized"
    UNKNOWN = "unknown"


class Shape(str, Enum):
    # bottoms
    SKINNY = "skinny"
    STRAIGHT = "straight"
    WIDE = "wide"
    TAPERED = "tapered"
    FLARE = "flare"
    CARGO = "cargo"
    # skirts
    PENCIL = "pencil"
    A_LINE = "a_line"
    PLEATED = "pleated"
    # dresses
    SLIP = "slip"
    WRAP = "wrap"
    SHIRT = "shirt"
    BODYCON = "bodycon"
    FIT_FLARE = "fit_flare"
    # shoes
    LOW_PROFILE = "low_profile"
    CHUNKY = "chunky"
    HEELED = "heeled"
    BOOT = "boot"


class Length(str, Enum):
    CROPPED = "cropped"
    REGULAR = "regular"
    LONGLINE = "longline"
    LONG = "long"
    MINI = "mini"
    MIDI = "midi"
    MAXI = "maxi"


class ItemTier(str, Enum):
    """Catalog classification, not to be confused with ConfidenceTier."""
    CORE = "core"
    STAPLE = "staple"
    STYLE = "style"
    STATEMENT = "statement"


class Vibe(str, Enum):
    CASUAL = "casual"
    MINIMAL = "minimal"
    OFFICE = "office"
    STREET = "street"
    FEMININE = "feminine"
    SPORTY = "sporty"
    DEFAULT = "default"  # generic items, never a user vibe


class FilterKey(str, Enum):
    """Filterable LibraryItemMeta attributes."""
    TONE = "tone"
    STRUCTURE = "structure"
    FORMALITY = "formality"
    VOLUME = "volume"
    SHAPE = "shape"
    LENGTH = "length"
    TIER = "tier"
    OUTERWEAR_WEIGHT = "outerwear_weight"


FilterScalar = Union[Tone, Structure, Formality, Volume, Shape, Length, ItemTier, OuterwearWeight, str]
FilterValue = Union[FilterScalar, Tuple[FilterScalar, ...]]
TargetFilters = Dict[FilterKey, FilterValue]


# ============================================================================
# Catalog rows
# ============================================================================

class LibraryItemMeta(BaseModel):
    """One curated library item."""
    model_config = ConfigDict(frozen=True, extra="ignore")

    id: str = Field(..., min_length=1)
    category: Category
    rank: Optional[int] = Field(None, description="Stable sort key, lower is preferred")
    vibes: Tuple[Vibe, ...] = ()
    label: str = ""
    image: Optional[str] = None

    # Filtering tags; None means "not tagged" and never excludes
    tone: Optional[Tone] = None
    structure: Optional[Structure] = None
    formality: Optional[Formality] = None
    outerwear_weight: Optional[OuterwearWeight] = None
    volume: Optional[Volume] = None
    shape: Optional[Shape] = None
    length: Optional[Length] = None
    tier: Optional[ItemTier] = None

    def attribute(self, key: FilterKey) -> Optional[str]:
        value = getattr(self, key.value)
        return value.value if isinstance(value, Enum) else value


# ============================================================================
# Recipes
# ============================================================================

def filter_values(value: FilterValue) -> Tuple[str, ...]:
    """Normalize a scalar or value-set into plain strings."""
    items = value if isinstance(value, (tuple, list, set, frozenset)) else (value,)
    return tuple(v.value if isinstance(v, Enum) else str(v) for v in items)


class BundleRecipe(BaseModel):
    """Declarative filter plus relaxation policy for one advice bullet."""
    model_config = ConfigDict(frozen=True, extra="forbid")

    target_category: Category
    target_filters: Dict[FilterKey, Tuple[str, ...]] = Field(default_factory=dict)
    target_limit: int = Field(3, ge=1)
    relax_order: Tuple[FilterKey, ...] = ()
    never_relax: Tuple[FilterKey, ...] = ()

    @field_validator("target_filters", mode="before")
    @classmethod
    def normalize_filters(cls, v):
        if isinstance(v, dict):
            return {k: filter_values(val) for k, val in v.items()}
        return v

    @model_validator(mode="after")
    def check_relaxation(self):
        overlap = set(self.relax_order) & set(self.never_relax)
        if overlap:
            raise ValueError(
                f"keys in both relax_order and never_relax: {sorted(k.value for k in overlap)}"
            )
        unfiltered = [k.value for k in self.never_relax if k not in self.target_filters]
        if unfiltered:
            raise ValueError(f"never_relax keys missing from target_filters: {unfiltered}")
        return self


@dataclass(frozen=True)
class SuggestionResult:
    items: Tuple[LibraryItemMeta, ...]
    was_relaxed: bool
    relaxed_keys: Tuple[FilterKey, ...] = ()

    @property
    def item_ids(self) -> Tuple[str, ...]:
        return tuple(i.id for i in self.items)
