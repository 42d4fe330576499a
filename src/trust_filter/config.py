"""
Trust filter configuration, version 1.

Every threshold, table and priority order the evaluator reads lives in one
frozen pydantic tree. Validators run at construction time, so a malformed
table fails at import rather than mid-evaluation.

A small allow-list of dotted paths can be patched at runtime by a trusted
remote source (see apply_overrides); every other path is locked.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Annotated, Any, Dict, List, Literal, Mapping, Optional, Tuple, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, ValidationError, model_validator

from core.types import Category, ConfidenceTier
from trust_filter.types import (
    AestheticArchetype,
    AestheticCluster,
    ArchetypeDistance,
    FormalityBand,
    HardReason,
    PairType,
    PatternLevel,
    SeasonHeaviness,
    SoftReason,
    StatementLevel,
    TrustFilterAction,
)

C = ArchetypeDistance.CLOSE
M = ArchetypeDistance.MEDIUM
F = ArchetypeDistance.FAR

Threshold = Annotated[float, Field(ge=0.0, le=1.0)]
CategoryPair = Tuple[Category, Category]


class _Section(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")


# ============================================================================
# Scope & thresholds
# ============================================================================

class ApplyTo(_Section):
    tiers: Tuple[ConfidenceTier, ...] = (ConfidenceTier.HIGH,)
    max_candidates_per_scan: int = Field(10, ge=1, le=50)


class ConfidenceThresholds(_Section):
    aesthetic_primary_min: Threshold = 0.55
    secondary_min: Threshold = 0.35
    formality_min: Threshold = 0.55
    statement_min: Threshold = 0.50
    season_min: Threshold = 0.55
    pattern_min: Threshold = 0.50
    material_min: Threshold = 0.45


# ============================================================================
# Formality
# ============================================================================

class FormalityRule(_Section):
    gap_gte: Optional[int] = None
    gap_eq: Optional[int] = None
    either_is: Optional[FormalityBand] = None
    reason: Union[HardReason, SoftReason]

    @model_validator(mode="after")
    def _one_gap_condition(self):
        if (self.gap_gte is None) == (self.gap_eq is None):
            raise ValueError("formality rule needs exactly one of gap_gte / gap_eq")
        return self

    def matches_gap(self, gap: int) -> bool:
        if self.gap_eq is not None:
            return gap == self.gap_eq
        return gap >= self.gap_gte


class FormalityConfig(_Section):
    band_to_level: Dict[FormalityBand, Optional[int]] = {
        FormalityBand.ATHLEISURE: 0,
        FormalityBand.CASUAL: 1,
        FormalityBand.SMART_CASUAL: 2,
        FormalityBand.OFFICE: 3,
        FormalityBand.FORMAL: 4,
        FormalityBand.EVENING: 5,
        FormalityBand.UNKNOWN: None,
    }
    hide_if: Tuple[FormalityRule, ...] = (
        FormalityRule(gap_gte=3, either_is=FormalityBand.ATHLEISURE,
                      reason=HardReason.FORMALITY_HARD_CLASH),
    )
    # Hard codes listed here are ignored by the demote pass.
    demote_if: Tuple[FormalityRule, ...] = (
        FormalityRule(gap_eq=2, either_is=FormalityBand.ATHLEISURE,
                      reason=SoftReason.ATHLEISURE_VS_POLISHED_CLASH),
        FormalityRule(gap_gte=3, reason=HardReason.FORMALITY_HARD_CLASH),
    )


# ============================================================================
# Season / statement / pattern
# ============================================================================

class SeasonHideRule(_Section):
    diff_gte: int
    reason: HardReason


class SeasonDemoteRule(_Section):
    diff_eq: int
    reason: SoftReason


class SeasonConfig(_Section):
    heaviness_to_level: Dict[SeasonHeaviness, Optional[int]] = {
        SeasonHeaviness.LIGHT: 0,
        SeasonHeaviness.MID: 1,
        SeasonHeaviness.HEAVY: 2,
        SeasonHeaviness.UNKNOWN: None,
    }
    hide_if: Tuple[SeasonHideRule, ...] = (
        SeasonHideRule(diff_gte=2, reason=HardReason.WEATHER_SEASON_HARD_CLASH),
    )
    demote_if: Tuple[SeasonDemoteRule, ...] = (
        SeasonDemoteRule(diff_eq=1, reason=SoftReason.WEATHER_SEASON_SOFT_MISMATCH),
    )


class StatementRule(_Section):
    both_gte: Optional[int] = None
    one_gte: Optional[int] = None
    archetype_distance_in: Tuple[ArchetypeDistance, ...]
    reason: SoftReason


class StatementConfig(_Section):
    level_to_int: Dict[StatementLevel, Optional[int]] = {
        StatementLevel.LOW: 0,
        StatementLevel.MEDIUM: 1,
        StatementLevel.HIGH: 2,
        StatementLevel.UNKNOWN: None,
    }
    demote_if: Tuple[StatementRule, ...] = (
        StatementRule(both_gte=2, archetype_distance_in=(M, F),
                      reason=SoftReason.STATEMENT_VS_STATEMENT_OVERLOAD),
        StatementRule(one_gte=2, archetype_distance_in=(F,),
                      reason=SoftReason.STATEMENT_CONTEXT_MISMATCH),
    )


class PatternRule(_Section):
    both_gte: int
    reason: SoftReason


class PatternConfig(_Section):
    level_to_int: Dict[PatternLevel, Optional[int]] = {
        PatternLevel.SOLID: 0,
        PatternLevel.SUBTLE: 1,
        PatternLevel.BOLD: 2,
        PatternLevel.UNKNOWN: None,
    }
    demote_if: Tuple[PatternRule, ...] = (
        PatternRule(both_gte=2, reason=SoftReason.PATTERN_TEXTURE_OVERLOAD),
    )


# ============================================================================
# Categories
# ============================================================================

class PairTypes(_Section):
    outfit_completing: Tuple[CategoryPair, ...] = (
        (Category.TOPS, Category.BOTTOMS),
        (Category.TOPS, Category.SKIRTS),
        (Category.TOPS, Category.DRESSES),
        (Category.DRESSES, Category.OUTERWEAR),
        (Category.BOTTOMS, Category.OUTERWEAR),
        (Category.SKIRTS, Category.OUTERWEAR),
        (Category.SHOES, Category.BOTTOMS),
        (Category.SHOES, Category.SKIRTS),
        (Category.SHOES, Category.DRESSES),
    )
    anchor_dependent: Tuple[CategoryPair, ...] = (
        (Category.SHOES, Category.TOPS),
        (Category.OUTERWEAR, Category.SHOES),
        (Category.OUTERWEAR, Category.TOPS),
    )

    def lookup(self, a: Category, b: Category) -> PairType:
        """Order-insensitive pair type lookup."""
        key = frozenset((a, b))
        if any(frozenset(p) == key for p in self.outfit_completing):
            return PairType.OUTFIT_COMPLETING
        if any(frozenset(p) == key for p in self.anchor_dependent):
            return PairType.ANCHOR_DEPENDENT
        return PairType.OTHER


class BagsAccessoriesPolicy(_Section):
    never_hide_for_archetype_only: bool = True
    allow_hide_only_for: Tuple[HardReason, ...] = (
        HardReason.FORMALITY_HARD_CLASH,
        HardReason.WEATHER_SEASON_HARD_CLASH,
        HardReason.FUNCTION_INCOMPATIBLE,
    )
    default_action_if_only_style_mismatch: Literal[
        TrustFilterAction.KEEP, TrustFilterAction.DEMOTE_TO_NEAR
    ] = TrustFilterAction.KEEP


class ShoesTopsPolicy(_Section):
    never_hide_for_archetype_only: bool = True
    prefer_anchor_reason_when_borderline: bool = True


class SkirtsPolicy(_Section):
    never_escalate_statement_or_pattern_to_hide: bool = True


class SpecialPolicies(_Section):
    bags_and_accessories: BagsAccessoriesPolicy = BagsAccessoriesPolicy()
    shoes_plus_tops: ShoesTopsPolicy = ShoesTopsPolicy()
    skirts: SkirtsPolicy = SkirtsPolicy()


class CategoryConfig(_Section):
    pair_types: PairTypes = PairTypes()
    special_policies: SpecialPolicies = SpecialPolicies()


# ============================================================================
# Aesthetic
# ============================================================================

A = AestheticArchetype
K = AestheticCluster

_DEFAULT_CLUSTERS: Dict[AestheticCluster, Tuple[AestheticArchetype, ...]] = {
    K.TAILORED_CORE: (A.CLASSIC, A.MINIMALIST, A.WORKWEAR, A.PREPPY),
    K.SOFT_FEMININE: (A.ROMANTIC, A.BOHO),
    K.CASUAL_URBAN: (A.STREET, A.SPORTY),
    K.NIGHT_EDGE: (A.GLAM, A.EDGY),
    K.WESTERN: (A.WESTERN,),
    K.UTILITY: (A.OUTDOOR_UTILITY,),
}

_DEFAULT_DISTANCES: Dict[AestheticCluster, Dict[AestheticCluster, ArchetypeDistance]] = {
    K.TAILORED_CORE: {K.TAILORED_CORE: C, K.SOFT_FEMININE: M, K.CASUAL_URBAN: M,
                      K.NIGHT_EDGE: M, K.WESTERN: M, K.UTILITY: F},
    K.SOFT_FEMININE: {K.TAILORED_CORE: M, K.SOFT_FEMININE: C, K.CASUAL_URBAN: M,
                      K.NIGHT_EDGE: M, K.WESTERN: M, K.UTILITY: F},
    K.CASUAL_URBAN: {K.TAILORED_CORE: M, K.SOFT_FEMININE: M, K.CASUAL_URBAN: C,
                     K.NIGHT_EDGE: F, K.WESTERN: M, K.UTILITY: M},
    K.NIGHT_EDGE: {K.TAILORED_CORE: M, K.SOFT_FEMININE: M, K.CASUAL_URBAN: F,
                   K.NIGHT_EDGE: C, K.WESTERN: F, K.UTILITY: F},
    K.WESTERN: {K.TAILORED_CORE: M, K.SOFT_FEMININE: M, K.CASUAL_URBAN: M,
                K.NIGHT_EDGE: F, K.WESTERN: C, K.UTILITY: M},
    K.UTILITY: {K.TAILORED_CORE: F, K.SOFT_FEMININE: F, K.CASUAL_URBAN: M,
                K.NIGHT_EDGE: F, K.WESTERN: M, K.UTILITY: C},
}

_DEFAULT_PAIR_OVERRIDES: Dict[str, ArchetypeDistance] = {
    "western:classic": C,
    "western:workwear": C,
    "glam:classic": C,
    "edgy:street": C,
    "sporty:street": C,
    "outdoor_utility:sporty": C,
}


def split_pair_key(key: str) -> Tuple[AestheticArchetype, AestheticArchetype]:
    """Parse an ``"a:b"`` pair-override key into two archetypes."""
    parts = key.split(":")
    if len(parts) != 2:
        raise ValueError(f"pair override key must look like 'a:b', got {key!r}")
    return AestheticArchetype(parts[0]), AestheticArchetype(parts[1])


class HardClashRule(_Section):
    archetype_distance_is: ArchetypeDistance = F
    require_primary_confidence_gte: Threshold = 0.65
    allow_secondary_to_soften: bool = True


class AestheticConfig(_Section):
    clusters: Dict[AestheticCluster, Tuple[AestheticArchetype, ...]] = _DEFAULT_CLUSTERS
    cluster_distances: Dict[AestheticCluster, Dict[AestheticCluster, ArchetypeDistance]] = (
        _DEFAULT_DISTANCES
    )
    pair_overrides: Dict[str, ArchetypeDistance] = _DEFAULT_PAIR_OVERRIDES
    hard_clash: HardClashRule = HardClashRule()
    allow_secondary_softening: bool = True

    @model_validator(mode="after")
    def _check_tables(self):
        errors: List[str] = []
        seen: Dict[AestheticArchetype, AestheticCluster] = {}
        for cluster, members in self.clusters.items():
            for archetype in members:
                if not archetype.is_known:
                    errors.append(f"cluster {cluster.value} lists {archetype.value}")
                elif archetype in seen:
                    errors.append(
                        f"{archetype.value} is in both {seen[archetype].value} and {cluster.value}"
                    )
                seen[archetype] = cluster

        for a in AestheticCluster:
            row = self.cluster_distances.get(a)
            if row is None:
                errors.append(f"cluster_distances missing row {a.value}")
                continue
            for b in AestheticCluster:
                d = row.get(b)
                back = self.cluster_distances.get(b, {}).get(a)
                if d is None:
                    errors.append(f"cluster_distances[{a.value}] missing {b.value}")
                elif back is not None and d is not back:
                    errors.append(
                        f"cluster_distances not symmetric: {a.value}/{b.value} "
                        f"is {d.value} but {b.value}/{a.value} is {back.value}"
                    )

        for key in self.pair_overrides:
            try:
                split_pair_key(key)
            except ValueError as e:
                errors.append(f"pair_overrides[{key!r}]: {e}")

        if errors:
            raise ValueError("; ".join(errors))
        return self

    def cluster_of(self, archetype: AestheticArchetype) -> Optional[AestheticCluster]:
        if not archetype.is_known:
            return None
        for cluster, members in self.clusters.items():
            if archetype in members:
                return cluster
        return None

    def override_for(
        self, a: AestheticArchetype, b: AestheticArchetype
    ) -> Optional[ArchetypeDistance]:
        """Symmetric pair-override lookup."""
        return (
            self.pair_overrides.get(f"{a.value}:{b.value}")
            or self.pair_overrides.get(f"{b.value}:{a.value}")
        )


# ============================================================================
# Anchor rule & decision priority
# ============================================================================

class AnchorTrigger(str, Enum):
    STATEMENT_HIGH = "statement_one_is_high"
    PATTERN_BOLD = "pattern_one_is_bold"


class AnchorTriggerIf(_Section):
    pair_type_is: PairType = PairType.ANCHOR_DEPENDENT
    archetype_distance_is: ArchetypeDistance = M
    formality_gap_lte: int = Field(1, ge=0, le=5)
    any_of: Tuple[AnchorTrigger, ...] = (AnchorTrigger.STATEMENT_HIGH, AnchorTrigger.PATTERN_BOLD)


class AnchorRule(_Section):
    enabled: bool = True
    trigger_if: AnchorTriggerIf = AnchorTriggerIf()
    reason: SoftReason = SoftReason.CONTEXT_DEPENDENT_NEEDS_ANCHOR


class DecisionPriority(_Section):
    hide_order: Tuple[HardReason, ...] = (
        HardReason.FORMALITY_HARD_CLASH,
        HardReason.WEATHER_SEASON_HARD_CLASH,
        HardReason.FUNCTION_INCOMPATIBLE,
        HardReason.STYLE_ARCHETYPE_HARD_CLASH,
    )
    demote_order: Tuple[SoftReason, ...] = (
        SoftReason.ATHLEISURE_VS_POLISHED_CLASH,
        SoftReason.STATEMENT_VS_STATEMENT_OVERLOAD,
        SoftReason.STATEMENT_CONTEXT_MISMATCH,
        SoftReason.CONTEXT_DEPENDENT_NEEDS_ANCHOR,
        SoftReason.PATTERN_TEXTURE_OVERLOAD,
        SoftReason.WEATHER_SEASON_SOFT_MISMATCH,
        SoftReason.SILHOUETTE_CONFLICT_STRONG,
        SoftReason.LENGTH_PROPORTION_CONFLICT,
        SoftReason.LOW_CONFIDENCE_INPUTS,
    )

    @model_validator(mode="after")
    def _orders_are_permutations(self):
        errors = []
        for name, order, family in (
            ("hide_order", self.hide_order, HardReason),
            ("demote_order", self.demote_order, SoftReason),
        ):
            if len(order) != len(set(order)) or set(order) != set(family):
                errors.append(f"{name} must list every {family.__name__} exactly once")
        if errors:
            raise ValueError("; ".join(errors))
        return self


# ============================================================================
# Root
# ============================================================================

class TrustFilterConfig(_Section):
    trust_filter_version: Literal[1] = 1
    apply_to: ApplyTo = ApplyTo()
    confidence_thresholds: ConfidenceThresholds = ConfidenceThresholds()
    formality: FormalityConfig = FormalityConfig()
    season: SeasonConfig = SeasonConfig()
    statement: StatementConfig = StatementConfig()
    pattern: PatternConfig = PatternConfig()
    categories: CategoryConfig = CategoryConfig()
    aesthetic: AestheticConfig = AestheticConfig()
    anchor_rule: AnchorRule = AnchorRule()
    decision_priority: DecisionPriority = DecisionPriority()


DEFAULT_TRUST_FILTER_CONFIG = TrustFilterConfig()


# ============================================================================
# Remote overrides
# ============================================================================

class OverridePath(str, Enum):
    """Dotted config paths a remote source may patch. Everything else is locked."""
    MAX_CANDIDATES_PER_SCAN = "apply_to.max_candidates_per_scan"
    AESTHETIC_PRIMARY_MIN = "confidence_thresholds.aesthetic_primary_min"
    SECONDARY_MIN = "confidence_thresholds.secondary_min"
    FORMALITY_MIN = "confidence_thresholds.formality_min"
    STATEMENT_MIN = "confidence_thresholds.statement_min"
    SEASON_MIN = "confidence_thresholds.season_min"
    PATTERN_MIN = "confidence_thresholds.pattern_min"
    MATERIAL_MIN = "confidence_thresholds.material_min"
    HIDE_ORDER = "decision_priority.hide_order"
    DEMOTE_ORDER = "decision_priority.demote_order"
    ANCHOR_ENABLED = "anchor_rule.enabled"
    ANCHOR_DISTANCE = "anchor_rule.trigger_if.archetype_distance_is"
    ANCHOR_FORMALITY_GAP = "anchor_rule.trigger_if.formality_gap_lte"
    PAIR_OVERRIDES = "aesthetic.pair_overrides"


_THRESHOLD = TypeAdapter(Annotated[float, Field(strict=True, ge=0.0, le=1.0)])

_OVERRIDE_ADAPTERS: Dict[OverridePath, TypeAdapter] = {
    OverridePath.MAX_CANDIDATES_PER_SCAN: TypeAdapter(Annotated[int, Field(strict=True, ge=1, le=50)]),
    OverridePath.AESTHETIC_PRIMARY_MIN: _THRESHOLD,
    OverridePath.SECONDARY_MIN: _THRESHOLD,
    OverridePath.FORMALITY_MIN: _THRESHOLD,
    OverridePath.STATEMENT_MIN: _THRESHOLD,
    OverridePath.SEASON_MIN: _THRESHOLD,
    OverridePath.PATTERN_MIN: _THRESHOLD,
    OverridePath.MATERIAL_MIN: _THRESHOLD,
    OverridePath.HIDE_ORDER: TypeAdapter(Tuple[HardReason, ...]),
    OverridePath.DEMOTE_ORDER: TypeAdapter(Tuple[SoftReason, ...]),
    OverridePath.ANCHOR_ENABLED: TypeAdapter(Annotated[bool, Field(strict=True)]),
    OverridePath.ANCHOR_DISTANCE: TypeAdapter(ArchetypeDistance),
    OverridePath.ANCHOR_FORMALITY_GAP: TypeAdapter(Annotated[int, Field(strict=True, ge=0, le=5)]),
    OverridePath.PAIR_OVERRIDES: TypeAdapter(Dict[str, ArchetypeDistance]),
}

_NUMERIC_PATHS = {
    path for path in OverridePath
    if path.value.startswith("confidence_thresholds.")
} | {OverridePath.MAX_CANDIDATES_PER_SCAN, OverridePath.ANCHOR_FORMALITY_GAP}


@dataclass(frozen=True)
class OverrideResult:
    config: TrustFilterConfig
    valid: bool
    errors: Tuple[str, ...] = ()
    applied: Tuple[OverridePath, ...] = ()


def _format_validation_error(prefix: str, exc: ValidationError) -> List[str]:
    out = []
    for err in exc.errors():
        loc = ".".join(str(p) for p in err.get("loc", ()))
        where = f"{prefix}.{loc}" if loc else prefix
        out.append(f"Invalid value for {where}: {err.get('msg')}")
    return out


def _set_dotted(tree: Dict[str, Any], path: str, value: Any) -> None:
    parts = path.split(".")
    node = tree
    for part in parts[:-1]:
        node = node[part]
    node[parts[-1]] = value


def apply_overrides(
    base: TrustFilterConfig,
    overrides: Mapping[Union[str, OverridePath], Any],
) -> OverrideResult:
    """
    Validate and merge remote overrides into ``base``.

    All problems (unknown paths, wrong types, out-of-range values, and
    cross-field failures such as a priority order that drops a reason) are
    collected. If any exist the base config is returned unchanged with the
    full error list; otherwise the merged config is returned.
    """
    errors: List[str] = []
    patches: Dict[OverridePath, Any] = {}

    for raw_key, value in overrides.items():
        try:
            path = OverridePath(raw_key)
        except ValueError:
            errors.append(f"Remote override key not allowed: {raw_key}")
            continue

        if path in _NUMERIC_PATHS and isinstance(value, bool):
            errors.append(f"Invalid value for {path.value}: booleans are not numbers")
            continue

        try:
            patches[path] = _OVERRIDE_ADAPTERS[path].validate_python(value)
        except ValidationError as e:
            errors.extend(_format_validation_error(path.value, e))

    if errors:
        return OverrideResult(config=base, valid=False, errors=tuple(errors))
    if not patches:
        return OverrideResult(config=base, valid=True)

    tree = base.model_dump()
    for path, value in patches.items():
        _set_dotted(tree, path.value, value)

    try:
        merged = TrustFilterConfig.model_validate(tree)
    except ValidationError as e:
        return OverrideResult(
            config=base,
            valid=False,
            errors=tuple(_format_validation_error("config", e)),
        )

    return OverrideResult(config=merged, valid=True, applied=tuple(patches))
