"""
Display ranking and diagnostics for assembled combos.

rank_combos in the assembler is the canonical order. rank_for_display is
the caller-side policy layered on top of it: an optional coherence penalty
per combo, and within MEDIUM-floor combos a preference for fewer MEDIUM
members, so [HIGH, HIGH, MEDIUM] lands above [MEDIUM, MEDIUM, MEDIUM].
"""

from collections import Counter
from typing import Dict, Iterable, List, Mapping, Optional

from core.types import ConfidenceTier, tier_sort_key
from combos.types import AssembledCombo, CandidatesBySlot, OutfitSlot


def _display_key(combo: AssembledCombo, penalty_by_id: Mapping[str, int]):
    medium = combo.count_tier(ConfidenceTier.MEDIUM) if combo.tier_floor is ConfidenceTier.MEDIUM else 0
    return (
        tier_sort_key(combo.tier_floor),
        penalty_by_id.get(combo.id, 0),
        medium,
        -combo.avg_score,
        combo.id,
    )


def rank_for_display(
    combos: Iterable[AssembledCombo],
    penalty_by_id: Optional[Mapping[str, int]] = None,
) -> List[AssembledCombo]:
    """Tier floor, penalty, MEDIUM count (MEDIUM floors only), avg score, id."""
    penalties = penalty_by_id or {}
    return sorted(combos, key=lambda c: _display_key(c, penalties))


def tier_counts_by_slot(candidates: CandidatesBySlot) -> Dict[OutfitSlot, Dict[ConfidenceTier, int]]:
    """Per-slot HIGH/MEDIUM/LOW counts of a candidate pool."""
    out: Dict[OutfitSlot, Dict[ConfidenceTier, int]] = {}
    for slot in OutfitSlot:
        counts = Counter(c.tier for c in candidates.get(slot, ()))
        out[slot] = {tier: counts.get(tier, 0) for tier in ConfidenceTier}
    return out
