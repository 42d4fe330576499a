"""
Enumerations shared by the trust filter, combo assembler and suggestion filter.
"""

from enum import Enum
from typing import Dict, Iterable


class Category(str, Enum):
    """Garment category as labelled upstream."""
    TOPS = "tops"
    BOTTOMS = "bottoms"
    SKIRTS = "skirts"
    DRESSES = "dresses"
    SHOES = "shoes"
    OUTERWEAR = "outerwear"
    BAGS = "bags"
    ACCESSORIES = "accessories"


class ConfidenceTier(str, Enum):
    """Confidence bucket assigned upstream to a pairwise match. HIGH is best."""
    HIGH = "HIGH"
    MEDIUM = "MEDIUM"
    LOW = "LOW"

    @property
    def strength(self) -> int:
        return _TIER_STRENGTH[self]


_TIER_STRENGTH: Dict[ConfidenceTier, int] = {
    ConfidenceTier.HIGH: 3,
    ConfidenceTier.MEDIUM: 2,
    ConfidenceTier.LOW: 1,
}


def weakest_tier(tiers: Iterable[ConfidenceTier]) -> ConfidenceTier:
    """Minimum tier of a collection (LOW for an empty one)."""
    return min(tiers, key=lambda t: t.strength, default=ConfidenceTier.LOW)


def tier_sort_key(tier: ConfidenceTier) -> int:
    """Ascending sort key that puts HIGH first."""
    return -tier.strength
