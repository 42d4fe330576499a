"""
Types for the combo assembler.

PairEvaluation is the upstream confidence engine's record for one
wardrobe/scan pair. It is consumed read-only: the assembler never
re-derives tier or score.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Mapping, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field

from core.types import Category, ConfidenceTier


class OutfitSlot(str, Enum):
    TOP = "TOP"
    BOTTOM = "BOTTOM"
    SHOES = "SHOES"
    OUTERWEAR = "OUTERWEAR"
    DRESS = "DRESS"


SLOT_FOR_CATEGORY: Dict[Category, Optional[OutfitSlot]] = {
    Category.TOPS: OutfitSlot.TOP,
    Category.BOTTOMS: OutfitSlot.BOTTOM,
    Category.SKIRTS: OutfitSlot.BOTTOM,
    Category.SHOES: OutfitSlot.SHOES,
    Category.OUTERWEAR: OutfitSlot.OUTERWEAR,
    Category.DRESSES: OutfitSlot.DRESS,
    Category.BAGS: None,
    Category.ACCESSORIES: None,
}

# Category to suggest when a slot has no candidates
CATEGORY_FOR_SLOT: Dict[OutfitSlot, Category] = {
    OutfitSlot.TOP: Category.TOPS,
    OutfitSlot.BOTTOM: Category.BOTTOMS,
    OutfitSlot.SHOES: Category.SHOES,
    OutfitSlot.OUTERWEAR: Category.OUTERWEAR,
    OutfitSlot.DRESS: Category.DRESSES,
}


class PairEvaluation(BaseModel):
    """Upstream pairwise confidence record."""
    model_config = ConfigDict(frozen=True)

    item_a_id: str
    item_b_id: str
    raw_score: float = Field(..., ge=0.0, le=1.0)
    confidence_tier: ConfidenceTier
    pair_type: Optional[str] = None
    features: Dict[str, Any] = Field(default_factory=dict)
    explanation_allowed: bool = False
    explanation_template_id: Optional[str] = None


@dataclass(frozen=True)
class SlotCandidate:
    item_id: str
    slot: OutfitSlot
    tier: ConfidenceTier
    score: float
    evaluation: PairEvaluation = field(repr=False, compare=False)


@dataclass(frozen=True)
class AssembledCombo:
    id: str
    slots: Mapping[OutfitSlot, str]
    candidates: Tuple[SlotCandidate, ...]
    tier_floor: ConfidenceTier
    avg_score: float
    reasons: Tuple[str, ...] = ()
    # Bonus layer, never counted in tier_floor or avg_score
    optional_outerwear: Optional[SlotCandidate] = None

    @property
    def item_ids(self) -> Tuple[str, ...]:
        return tuple(c.item_id for c in self.candidates)

    def count_tier(self, tier: ConfidenceTier) -> int:
        return sum(1 for c in self.candidates if c.tier is tier)


@dataclass(frozen=True)
class MissingSlot:
    slot: OutfitSlot
    category: Category


CandidatesBySlot = Mapping[OutfitSlot, Tuple[SlotCandidate, ...]]


@dataclass(frozen=True)
class ComboAssemblerResult:
    combos: Tuple[AssembledCombo, ...]
    can_form_combos: bool
    missing_slots: Tuple[MissingSlot, ...]
    candidates_by_slot: CandidatesBySlot
    # Dress track gaps, reported alongside missing_slots for shoes and outerwear scans
    alternative_missing_slots: Tuple[MissingSlot, ...] = ()
