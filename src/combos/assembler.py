"""
Combo assembler.

Builds complete outfits (e.g. top + bottom + shoes) around a scanned item
from per-slot candidate pools. Pools come straight from upstream pair
evaluations; tiers and scores are carried through untouched.

Generation walks tier buckets best-first (all HIGH, then patterns with
progressively more MEDIUM/LOW members) and stops at the combo budget.
"""

import itertools
from dataclasses import replace
from functools import lru_cache
from typing import Dict, Iterable, List, Mapping, Optional, Sequence, Set, Tuple

import numpy as np

from config.constants import DEFAULT_COMBO_CONFIG, EXPLANATION_TEMPLATES, ComboAssemblerConfig
from core.logging import get_logger
from core.types import Category, ConfidenceTier, tier_sort_key, weakest_tier
from combos.types import (
    CATEGORY_FOR_SLOT,
    SLOT_FOR_CATEGORY,
    AssembledCombo,
    CandidatesBySlot,
    ComboAssemblerResult,
    MissingSlot,
    OutfitSlot,
    PairEvaluation,
    SlotCandidate,
)

logger = get_logger(__name__)

STANDARD_SLOTS: Tuple[OutfitSlot, ...] = (OutfitSlot.TOP, OutfitSlot.BOTTOM, OutfitSlot.SHOES)


# =============================================================================
# Slots
# =============================================================================

def slot_for_category(category: Category) -> Optional[OutfitSlot]:
    return SLOT_FOR_CATEGORY.get(category)


def required_slots(scanned_category: Category) -> Tuple[OutfitSlot, ...]:
    """Slots the standard track must fill around the scanned item."""
    scanned = slot_for_category(scanned_category)
    if scanned is OutfitSlot.DRESS:
        return (OutfitSlot.SHOES,)
    return tuple(s for s in STANDARD_SLOTS if s is not scanned)


def dress_track_slots(scanned_category: Category) -> Optional[Tuple[OutfitSlot, ...]]:
    """Alternative dress-based track, only for shoes and outerwear scans."""
    scanned = slot_for_category(scanned_category)
    if scanned is OutfitSlot.SHOES:
        return (OutfitSlot.DRESS,)
    if scanned is OutfitSlot.OUTERWEAR:
        return (OutfitSlot.DRESS, OutfitSlot.SHOES)
    return None


def missing_slots_for(candidates: CandidatesBySlot, slots: Iterable[OutfitSlot]) -> Tuple[MissingSlot, ...]:
    return tuple(
        MissingSlot(slot=s, category=CATEGORY_FOR_SLOT[s])
        for s in slots
        if not candidates.get(s)
    )


def _join_categories(missing: Sequence[MissingSlot]) -> str:
    names = [m.category.value for m in missing]
    if len(names) == 1:
        return names[0]
    return f"{', '.join(names[:-1])} and {names[-1]}"


def missing_slots_message(
    missing: Sequence[MissingSlot],
    alternative: Sequence[MissingSlot] = (),
) -> Optional[str]:
    """
    Caller prompt such as "Add tops and shoes to see outfit ideas".

    With an alternative track: "Add tops and bottoms, or dresses, to see outfit ideas".
    """
    if not missing:
        return None
    if alternative:
        return f"Add {_join_categories(missing)}, or {_join_categories(alternative)}, to see outfit ideas"
    return f"Add {_join_categories(missing)} to see outfit ideas"


# =============================================================================
# Candidate pools
# =============================================================================

def _candidate_key(c: SlotCandidate):
    return (tier_sort_key(c.tier), -c.score, c.item_id)


def build_candidates_by_slot(
    scanned_category: Category,
    evaluations: Iterable[PairEvaluation],
    category_map: Mapping[str, Category],
    config: Optional[ComboAssemblerConfig] = None,
) -> Dict[OutfitSlot, Tuple[SlotCandidate, ...]]:
    """
    Group evaluations into per-slot pools.

    The wardrobe side of each pair is whichever id the category map knows
    (item_b first). The scanned item's own slot is never a candidate.
    """
    config = config or ComboAssemblerConfig.from_settings()
    scanned_slot = slot_for_category(scanned_category)
    pools: Dict[OutfitSlot, List[SlotCandidate]] = {s: [] for s in OutfitSlot}

    for ev in evaluations:
        if ev.confidence_tier is ConfidenceTier.LOW and not config.INCLUDE_LOW_TIER:
            continue
        if ev.item_b_id in category_map:
            item_id = ev.item_b_id
        elif ev.item_a_id in category_map:
            item_id = ev.item_a_id
        else:
            continue
        slot = slot_for_category(category_map[item_id])
        if slot is None or slot is scanned_slot:
            continue
        pools[slot].append(SlotCandidate(
            item_id=item_id,
            slot=slot,
            tier=ev.confidence_tier,
            score=ev.raw_score,
            evaluation=ev,
        ))

    return {
        slot: tuple(sorted(pool, key=_candidate_key)[: config.MAX_CANDIDATES_PER_SLOT])
        for slot, pool in pools.items()
    }


# =============================================================================
# Tier patterns
# =============================================================================

@lru_cache(maxsize=None)
def tier_patterns(slot_count: int, include_low_tier: bool) -> Tuple[Tuple[ConfidenceTier, ...], ...]:
    """All per-slot tier assignments, best first: more HIGH, then fewer MEDIUM, then fewer LOW."""
    tiers = [ConfidenceTier.HIGH, ConfidenceTier.MEDIUM]
    if include_low_tier:
        tiers.append(ConfidenceTier.LOW)

    def quality(pattern):
        return (
            -pattern.count(ConfidenceTier.HIGH),
            pattern.count(ConfidenceTier.MEDIUM),
            pattern.count(ConfidenceTier.LOW),
        )

    return tuple(sorted(itertools.product(tiers, repeat=slot_count), key=quality))


# =============================================================================
# Generation
# =============================================================================

def combo_reasons(candidates: Sequence[SlotCandidate], max_reasons: int) -> Tuple[str, ...]:
    """Display strings from explanation templates, deduped by template id."""
    reasons: List[str] = []
    seen: Set[str] = set()
    for c in candidates:
        if len(reasons) >= max_reasons:
            break
        ev = c.evaluation
        template_id = ev.explanation_template_id
        if not ev.explanation_allowed or not template_id or template_id in seen:
            continue
        seen.add(template_id)
        text = EXPLANATION_TEMPLATES.get(template_id, "")
        if text.strip():
            reasons.append(text)
    return tuple(reasons[:max_reasons])


def build_combo(
    slots: Sequence[OutfitSlot],
    candidates: Sequence[SlotCandidate],
    max_reasons: int = DEFAULT_COMBO_CONFIG.MAX_REASONS,
) -> AssembledCombo:
    return AssembledCombo(
        id="_".join(sorted(c.item_id for c in candidates)),
        slots={s: c.item_id for s, c in zip(slots, candidates) if s is not OutfitSlot.OUTERWEAR},
        candidates=tuple(candidates),
        tier_floor=weakest_tier(c.tier for c in candidates),
        avg_score=float(np.mean([c.score for c in candidates])),
        reasons=combo_reasons(candidates, max_reasons),
    )


def _track_combos(
    candidates: CandidatesBySlot,
    slots: Sequence[OutfitSlot],
    seen_ids: Set[str],
    limit: int,
    config: ComboAssemblerConfig,
) -> List[AssembledCombo]:
    if limit <= 0 or any(not candidates.get(s) for s in slots):
        return []

    combos: List[AssembledCombo] = []
    for pattern in tier_patterns(len(slots), config.INCLUDE_LOW_TIER):
        if len(combos) >= limit:
            break
        pools = [
            [c for c in candidates[slot] if c.tier is tier]
            for slot, tier in zip(slots, pattern)
        ]
        if any(not p for p in pools):
            continue
        for picks in itertools.product(*pools):
            if len(combos) >= limit:
                break
            ids = [c.item_id for c in picks]
            if len(set(ids)) != len(ids):
                continue
            combo = build_combo(slots, picks, config.MAX_REASONS)
            if combo.id in seen_ids:
                continue
            seen_ids.add(combo.id)
            combos.append(combo)
    return combos


def generate_combos(
    candidates: CandidatesBySlot,
    scanned_category: Category,
    config: Optional[ComboAssemblerConfig] = None,
) -> List[AssembledCombo]:
    """Standard track first, then the dress track with whatever budget is left."""
    config = config or ComboAssemblerConfig.from_settings()
    seen: Set[str] = set()
    combos = _track_combos(candidates, required_slots(scanned_category), seen, config.MAX_COMBOS, config)

    dress_slots = dress_track_slots(scanned_category)
    if dress_slots and len(combos) < config.MAX_COMBOS:
        combos.extend(_track_combos(candidates, dress_slots, seen, config.MAX_COMBOS - len(combos), config))

    return combos[: config.MAX_COMBOS]


def decorate_with_outerwear(
    combos: Sequence[AssembledCombo],
    outerwear: Sequence[SlotCandidate],
    scanned_category: Category,
    config: Optional[ComboAssemblerConfig] = None,
) -> List[AssembledCombo]:
    """Attach the single best outerwear candidate to every combo as a bonus layer."""
    config = config or ComboAssemblerConfig.from_settings()
    if slot_for_category(scanned_category) is OutfitSlot.OUTERWEAR:
        return list(combos)
    eligible = [
        c for c in outerwear
        if config.INCLUDE_LOW_TIER or c.tier is not ConfidenceTier.LOW
    ]
    if not eligible:
        return list(combos)
    best = min(eligible, key=_candidate_key)
    return [replace(c, optional_outerwear=best) for c in combos]


def rank_combos(combos: Iterable[AssembledCombo]) -> List[AssembledCombo]:
    """Tier floor (HIGH first), then avg score descending, then id."""
    return sorted(combos, key=lambda c: (tier_sort_key(c.tier_floor), -c.avg_score, c.id))


# =============================================================================
# Entry point
# =============================================================================

def assemble(
    scanned_category: Category,
    evaluations: Iterable[PairEvaluation],
    category_map: Mapping[str, Category],
    config: Optional[ComboAssemblerConfig] = None,
) -> ComboAssemblerResult:
    """
    Assemble and rank outfit combos around a scanned item.

    Args:
        scanned_category: Category of the scanned item
        evaluations: Upstream pair evaluations (scanned item vs wardrobe items)
        category_map: Wardrobe item id -> category
        config: Budgets; defaults to the COMBO_* settings

    Returns:
        ComboAssemblerResult. When no track can be filled, combos is empty
        and missing_slots names the standard track's empty slots;
        alternative_missing_slots names the dress track's, where one exists.
    """
    config = config or ComboAssemblerConfig.from_settings()
    candidates = build_candidates_by_slot(scanned_category, evaluations, category_map, config)

    missing = missing_slots_for(candidates, required_slots(scanned_category))
    dress_slots = dress_track_slots(scanned_category)
    dress_missing = missing_slots_for(candidates, dress_slots) if dress_slots else ()
    dress_possible = dress_slots is not None and not dress_missing

    if missing and not dress_possible:
        logger.debug(
            "Combo assembly blocked by missing slots",
            scanned_category=scanned_category.value,
            missing=[m.slot.value for m in missing],
            dress_missing=[m.slot.value for m in dress_missing],
        )
        return ComboAssemblerResult(
            combos=(),
            can_form_combos=False,
            missing_slots=missing,
            candidates_by_slot=candidates,
            alternative_missing_slots=dress_missing,
        )

    combos = generate_combos(candidates, scanned_category, config)
    combos = decorate_with_outerwear(combos, candidates[OutfitSlot.OUTERWEAR], scanned_category, config)
    ranked = rank_combos(combos)

    logger.debug(
        "Combos assembled",
        scanned_category=scanned_category.value,
        combos=len(ranked),
        pool_sizes={s.value: len(p) for s, p in candidates.items()},
    )
    return ComboAssemblerResult(
        combos=tuple(ranked),
        can_form_combos=bool(ranked),
        missing_slots=(),
        candidates_by_slot=candidates,
    )
