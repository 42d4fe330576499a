"""
Derived values the evaluator reads: formality gap, season diff, archetype
distance (with secondary softening), statement/pattern predicates and
category predicates.

Every categorical value is read together with its confidence. A value below
its threshold is treated as absent (None), which suppresses the rules that
depend on it instead of letting a shaky read trigger a hard decision.
"""

from dataclasses import dataclass
from typing import List, Optional

from core.types import Category
from trust_filter.config import DEFAULT_TRUST_FILTER_CONFIG, TrustFilterConfig
from trust_filter.types import (
    AestheticArchetype,
    ArchetypeDistance,
    FormalityBand,
    PairType,
    PatternLevel,
    StatementLevel,
    StyleSignals,
)

_BAG_LIKE = (Category.BAGS, Category.ACCESSORIES)


# =============================================================================
# Archetype distance
# =============================================================================

@dataclass(frozen=True)
class DistanceResult:
    distance: Optional[ArchetypeDistance]
    used_secondary: bool = False


def _secondary_usable(
    archetype: AestheticArchetype, confidence: float, config: TrustFilterConfig
) -> bool:
    return archetype.is_known and confidence >= config.confidence_thresholds.secondary_min


def archetype_pair_distance(
    a: AestheticArchetype,
    b: AestheticArchetype,
    config: TrustFilterConfig = DEFAULT_TRUST_FILTER_CONFIG,
) -> Optional[ArchetypeDistance]:
    """Override table first, then the cluster matrix. None if either has no cluster."""
    override = config.aesthetic.override_for(a, b)
    if override is not None:
        return override
    cluster_a = config.aesthetic.cluster_of(a)
    cluster_b = config.aesthetic.cluster_of(b)
    if cluster_a is None or cluster_b is None:
        return None
    return config.aesthetic.cluster_distances[cluster_a][cluster_b]


def compute_archetype_distance(
    scan: StyleSignals,
    match: StyleSignals,
    config: TrustFilterConfig = DEFAULT_TRUST_FILTER_CONFIG,
) -> DistanceResult:
    scan_primary = scan.aesthetic.primary
    match_primary = match.aesthetic.primary
    if scan_primary is AestheticArchetype.UNKNOWN or match_primary is AestheticArchetype.UNKNOWN:
        return DistanceResult(None)

    override = config.aesthetic.override_for(scan_primary, match_primary)
    if override is not None:
        return DistanceResult(override)

    scan_cluster = config.aesthetic.cluster_of(scan_primary)
    match_cluster = config.aesthetic.cluster_of(match_primary)
    if scan_cluster is None or match_cluster is None:
        return DistanceResult(None)

    base = config.aesthetic.cluster_distances[scan_cluster][match_cluster]
    if not config.aesthetic.allow_secondary_softening:
        return DistanceResult(base)

    candidates: List[ArchetypeDistance] = [base]
    if _secondary_usable(scan.aesthetic.secondary, scan.aesthetic.secondary_confidence, config):
        d = archetype_pair_distance(scan.aesthetic.secondary, match_primary, config)
        if d is not None:
            candidates.append(d)
    if _secondary_usable(match.aesthetic.secondary, match.aesthetic.secondary_confidence, config):
        d = archetype_pair_distance(scan_primary, match.aesthetic.secondary, config)
        if d is not None:
            candidates.append(d)

    best = min(candidates, key=lambda d: d.rank)
    # Softening only ever moves closer.
    if best.rank < base.rank:
        return DistanceResult(best, used_secondary=True)
    return DistanceResult(base)


# =============================================================================
# Formality / season
# =============================================================================

def compute_formality_gap(
    scan: StyleSignals,
    match: StyleSignals,
    config: TrustFilterConfig = DEFAULT_TRUST_FILTER_CONFIG,
) -> Optional[int]:
    min_conf = config.confidence_thresholds.formality_min
    if scan.formality.confidence < min_conf or match.formality.confidence < min_conf:
        return None
    levels = config.formality.band_to_level
    a = levels.get(scan.formality.band)
    b = levels.get(match.formality.band)
    if a is None or b is None:
        return None
    return abs(a - b)


def either_has_formality(scan: StyleSignals, match: StyleSignals, band: FormalityBand) -> bool:
    return scan.formality.band is band or match.formality.band is band


def compute_season_diff(
    scan: StyleSignals,
    match: StyleSignals,
    config: TrustFilterConfig = DEFAULT_TRUST_FILTER_CONFIG,
) -> Optional[int]:
    min_conf = config.confidence_thresholds.season_min
    if scan.season.confidence < min_conf or match.season.confidence < min_conf:
        return None
    levels = config.season.heaviness_to_level
    a = levels.get(scan.season.heaviness)
    b = levels.get(match.season.heaviness)
    if a is None or b is None:
        return None
    return abs(a - b)


# =============================================================================
# Statement / pattern
# =============================================================================

def statement_level(signals: StyleSignals, config: TrustFilterConfig = DEFAULT_TRUST_FILTER_CONFIG) -> Optional[int]:
    if signals.statement.confidence < config.confidence_thresholds.statement_min:
        return None
    return config.statement.level_to_int.get(signals.statement.level)


def pattern_level(signals: StyleSignals, config: TrustFilterConfig = DEFAULT_TRUST_FILTER_CONFIG) -> Optional[int]:
    if signals.pattern.confidence < config.confidence_thresholds.pattern_min:
        return None
    return config.pattern.level_to_int.get(signals.pattern.level)


def both_statement_gte(scan, match, threshold: int, config=DEFAULT_TRUST_FILTER_CONFIG) -> bool:
    a, b = statement_level(scan, config), statement_level(match, config)
    return a is not None and b is not None and a >= threshold and b >= threshold


def one_statement_gte(scan, match, threshold: int, config=DEFAULT_TRUST_FILTER_CONFIG) -> bool:
    return any(
        v is not None and v >= threshold
        for v in (statement_level(scan, config), statement_level(match, config))
    )


def one_statement_high(scan, match, config=DEFAULT_TRUST_FILTER_CONFIG) -> bool:
    high = config.statement.level_to_int.get(StatementLevel.HIGH)
    return high is not None and one_statement_gte(scan, match, high, config)


def both_pattern_gte(scan, match, threshold: int, config=DEFAULT_TRUST_FILTER_CONFIG) -> bool:
    a, b = pattern_level(scan, config), pattern_level(match, config)
    return a is not None and b is not None and a >= threshold and b >= threshold


def one_pattern_bold(scan, match, config=DEFAULT_TRUST_FILTER_CONFIG) -> bool:
    bold = config.pattern.level_to_int.get(PatternLevel.BOLD)
    if bold is None:
        bold = 2
    return any(
        v is not None and v >= bold
        for v in (pattern_level(scan, config), pattern_level(match, config))
    )


# =============================================================================
# Confidence checks
# =============================================================================

def has_high_primary_confidence(scan, match, config=DEFAULT_TRUST_FILTER_CONFIG) -> bool:
    gate = config.aesthetic.hard_clash.require_primary_confidence_gte
    return (
        scan.aesthetic.primary_confidence >= gate
        and match.aesthetic.primary_confidence >= gate
    )


def has_low_confidence_inputs(scan, match, config=DEFAULT_TRUST_FILTER_CONFIG) -> bool:
    """A critical field was detected but read with low confidence on either side."""
    t = config.confidence_thresholds
    for s in (scan, match):
        if s.aesthetic.primary is not AestheticArchetype.UNKNOWN and s.aesthetic.primary_confidence < t.aesthetic_primary_min:
            return True
        if s.formality.band is not FormalityBand.UNKNOWN and s.formality.confidence < t.formality_min:
            return True
    return False


# =============================================================================
# Categories
# =============================================================================

def get_pair_type(a: Category, b: Category, config: TrustFilterConfig = DEFAULT_TRUST_FILTER_CONFIG) -> PairType:
    return config.categories.pair_types.lookup(a, b)


def is_bags_or_accessories(a: Category, b: Category) -> bool:
    return a in _BAG_LIKE or b in _BAG_LIKE


def is_shoes_tops_pair(a: Category, b: Category) -> bool:
    return {a, b} == {Category.SHOES, Category.TOPS}


def has_skirts(a: Category, b: Category) -> bool:
    return Category.SKIRTS in (a, b)
