"""
Data contracts for the trust filter.

StyleSignals arrive from the upstream style-signal producer and are always
fully populated; every enumeration carries an explicit ``unknown`` member so
"not detected" is never confused with "detected with low confidence".
Evaluation results are frozen dataclasses built once per call.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Annotated, Any, Mapping, Optional, Tuple, Union

from pydantic import BaseModel, ConfigDict, Field

from core.types import Category, ConfidenceTier


# ============================================================================
# Signal enums
# ============================================================================

class AestheticArchetype(str, Enum):
    MINIMALIST = "minimalist"
    CLASSIC = "classic"
    WORKWEAR = "workwear"
    ROMANTIC = "romantic"
    BOHO = "boho"
    WESTERN = "western"
    STREET = "street"
    SPORTY = "sporty"
    EDGY = "edgy"
    GLAM = "glam"
    PREPPY = "preppy"
    OUTDOOR_UTILITY = "outdoor_utility"
    UNKNOWN = "unknown"
    NONE = "none"  # only meaningful as a secondary

    @property
    def is_known(self) -> bool:
        return self not in (AestheticArchetype.UNKNOWN, AestheticArchetype.NONE)


class FormalityBand(str, Enum):
    ATHLEISURE = "athleisure"
    CASUAL = "casual"
    SMART_CASUAL = "smart_casual"
    OFFICE = "office"
    FORMAL = "formal"
    EVENING = "evening"
    UNKNOWN = "unknown"


class StatementLevel(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    UNKNOWN = "unknown"


class SeasonHeaviness(str, Enum):
    LIGHT = "light"
    MID = "mid"
    HEAVY = "heavy"
    UNKNOWN = "unknown"


class PatternLevel(str, Enum):
    SOLID = "solid"
    SUBTLE = "subtle"
    BOLD = "bold"
    UNKNOWN = "unknown"


class MaterialFamily(str, Enum):
    DENIM = "denim"
    KNIT = "knit"
    LEATHER = "leather"
    SILK_SATIN = "silk_satin"
    COTTON = "cotton"
    WOOL = "wool"
    SYNTHETIC_TECH = "synthetic_tech"
    OTHER = "other"
    UNKNOWN = "unknown"


class PaletteColor(str, Enum):
    BLACK = "black"
    WHITE = "white"
    CREAM = "cream"
    GRAY = "gray"
    BROWN = "brown"
    TAN = "tan"
    BEIGE = "beige"
    NAVY = "navy"
    DENIM_BLUE = "denim_blue"
    BLUE = "blue"
    RED = "red"
    PINK = "pink"
    GREEN = "green"
    OLIVE = "olive"
    YELLOW = "yellow"
    ORANGE = "orange"
    PURPLE = "purple"
    METALLIC = "metallic"
    MULTICOLOR = "multicolor"
    UNKNOWN = "unknown"


# ============================================================================
# Decision enums
# ============================================================================

class TrustFilterAction(str, Enum):
    KEEP = "keep"
    DEMOTE_TO_NEAR = "demote_to_near"
    HIDE = "hide"


class ArchetypeDistance(str, Enum):
    CLOSE = "close"
    MEDIUM = "medium"
    FAR = "far"

    @property
    def rank(self) -> int:
        return _DISTANCE_RANK[self]


_DISTANCE_RANK = {
    ArchetypeDistance.CLOSE: 0,
    ArchetypeDistance.MEDIUM: 1,
    ArchetypeDistance.FAR: 2,
}


class AestheticCluster(str, Enum):
    TAILORED_CORE = "tailored_core"
    SOFT_FEMININE = "soft_feminine"
    CASUAL_URBAN = "casual_urban"
    NIGHT_EDGE = "night_edge"
    WESTERN = "western"
    UTILITY = "utility"


class PairType(str, Enum):
    OUTFIT_COMPLETING = "outfit_completing"
    ANCHOR_DEPENDENT = "anchor_dependent"
    OTHER = "other"


class HardReason(str, Enum):
    """Reasons that hide a match."""
    FORMALITY_HARD_CLASH = "formality_hard_clash"
    STYLE_ARCHETYPE_HARD_CLASH = "style_archetype_hard_clash"
    WEATHER_SEASON_HARD_CLASH = "weather_season_hard_clash"
    FUNCTION_INCOMPATIBLE = "function_incompatible"  # reserved, no rule emits it yet


class SoftReason(str, Enum):
    """Reasons that demote a match to the near tab."""
    ATHLEISURE_VS_POLISHED_CLASH = "athleisure_vs_polished_clash"
    STATEMENT_VS_STATEMENT_OVERLOAD = "statement_vs_statement_overload"
    STATEMENT_CONTEXT_MISMATCH = "statement_context_mismatch"
    CONTEXT_DEPENDENT_NEEDS_ANCHOR = "context_dependent_needs_anchor"
    WEATHER_SEASON_SOFT_MISMATCH = "weather_season_soft_mismatch"
    SILHOUETTE_CONFLICT_STRONG = "silhouette_conflict_strong"  # reserved
    LENGTH_PROPORTION_CONFLICT = "length_proportion_conflict"  # reserved
    PATTERN_TEXTURE_OVERLOAD = "pattern_texture_overload"
    LOW_CONFIDENCE_INPUTS = "low_confidence_inputs"


class InfoReason(str, Enum):
    """Reasons that always resolve to keep."""
    INSUFFICIENT_INFO = "insufficient_info"
    EVALUATION_ERROR = "evaluation_error"


ReasonCode = Union[HardReason, SoftReason, InfoReason]


# ============================================================================
# Style signals
# ============================================================================

Confidence = Annotated[float, Field(ge=0.0, le=1.0)]


class _Signal(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")


class AestheticSignal(_Signal):
    primary: AestheticArchetype = AestheticArchetype.UNKNOWN
    primary_confidence: Confidence = 0.0
    secondary: AestheticArchetype = AestheticArchetype.NONE
    secondary_confidence: Confidence = 0.0


class FormalitySignal(_Signal):
    band: FormalityBand = FormalityBand.UNKNOWN
    confidence: Confidence = 0.0


class StatementSignal(_Signal):
    level: StatementLevel = StatementLevel.UNKNOWN
    confidence: Confidence = 0.0


class SeasonSignal(_Signal):
    heaviness: SeasonHeaviness = SeasonHeaviness.UNKNOWN
    confidence: Confidence = 0.0


class PaletteSignal(_Signal):
    colors: Tuple[PaletteColor, ...] = ()
    confidence: Confidence = 0.0


class PatternSignal(_Signal):
    level: PatternLevel = PatternLevel.UNKNOWN
    confidence: Confidence = 0.0


class MaterialSignal(_Signal):
    family: MaterialFamily = MaterialFamily.UNKNOWN
    confidence: Confidence = 0.0


class StyleSignals(_Signal):
    """Per-garment style signals. No section is ever omitted."""
    aesthetic: AestheticSignal
    formality: FormalitySignal
    statement: StatementSignal
    season: SeasonSignal
    palette: PaletteSignal
    pattern: PatternSignal
    material: MaterialSignal


# ============================================================================
# Evaluation input / output
# ============================================================================

@dataclass(frozen=True)
class TrustFilterInput:
    """One scanned-item / wardrobe-item pair."""
    scan_signals: Optional[StyleSignals]
    match_signals: Optional[StyleSignals]
    scan_category: Category
    match_category: Category
    tier: ConfidenceTier = ConfidenceTier.HIGH
    score: Optional[float] = None


@dataclass(frozen=True)
class TraceStep:
    step: str
    applied: bool
    inputs: Mapping[str, Any] = field(default_factory=dict)
    output: Mapping[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class TrustFilterDebug:
    formality_gap: Optional[int] = None
    season_diff: Optional[int] = None
    archetype_distance: Optional[ArchetypeDistance] = None
    used_secondary: bool = False
    confidence_gate_hit: bool = False
    error_code: Optional[str] = None
    error_message: Optional[str] = None


@dataclass(frozen=True)
class TrustFilterResult:
    action: TrustFilterAction
    primary_reason: Optional[ReasonCode]
    secondary_reasons: Tuple[ReasonCode, ...] = ()
    debug: TrustFilterDebug = field(default_factory=TrustFilterDebug)
    trace: Optional[Tuple[TraceStep, ...]] = None

    @property
    def is_hidden(self) -> bool:
        return self.action is TrustFilterAction.HIDE

    @property
    def is_demoted(self) -> bool:
        return self.action is TrustFilterAction.DEMOTE_TO_NEAR


# ============================================================================
# Batch input / output
# ============================================================================

@dataclass(frozen=True)
class BatchMatch:
    """A HIGH match waiting for the guardrail."""
    id: str
    signals: Optional[StyleSignals]
    category: Category
    score: Optional[float] = None


@dataclass(frozen=True)
class BatchStats:
    total_evaluated: int = 0
    skipped_count: int = 0
    hidden_count: int = 0
    demoted_count: int = 0
    reason_counts: Mapping[str, int] = field(default_factory=dict)
    used_secondary_count: int = 0


@dataclass(frozen=True)
class TrustFilterBatchResult:
    high_final: Tuple[str, ...]
    demoted: Tuple[str, ...]
    hidden: Tuple[str, ...]
    decisions: Mapping[str, TrustFilterResult]
    stats: BatchStats


def reason_value(reason: Optional[ReasonCode]) -> Optional[str]:
    return reason.value if reason is not None else None

