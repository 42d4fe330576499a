"""
Combo assembler: multi-slot outfit combinations from pairwise confidence.
"""

from combos.assembler import (
    assemble,
    build_candidates_by_slot,
    decorate_with_outerwear,
    dress_track_slots,
    generate_combos,
    missing_slots_message,
    rank_combos,
    required_slots,
    tier_patterns,
)
from combos.ranking import rank_for_display, tier_counts_by_slot
from combos.types import (
    AssembledCombo,
    ComboAssemblerResult,
    MissingSlot,
    OutfitSlot,
    PairEvaluation,
    SlotCandidate,
)

__all__ = [
    "assemble",
    "build_candidates_by_slot",
    "decorate_with_outerwear",
    "dress_track_slots",
    "generate_combos",
    "missing_slots_message",
    "rank_combos",
    "required_slots",
    "tier_patterns",
    "rank_for_display",
    "tier_counts_by_slot",
    "AssembledCombo",
    "ComboAssemblerResult",
    "MissingSlot",
    "OutfitSlot",
    "PairEvaluation",
    "SlotCandidate",
]
