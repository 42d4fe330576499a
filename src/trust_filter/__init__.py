"""
Trust filter: a guardrail that re-checks HIGH matches against style signals
and keeps, demotes or hides them.

Usage:
    from trust_filter import evaluate_pair, TrustFilterInput

    result = evaluate_pair(TrustFilterInput(scan, match, Category.TOPS, Category.SHOES))
    if result.is_hidden:
        ...
"""

from trust_filter.config import (
    DEFAULT_TRUST_FILTER_CONFIG,
    OverridePath,
    OverrideResult,
    TrustFilterConfig,
    apply_overrides,
)
from trust_filter.evaluate import evaluate_batch, evaluate_pair, evaluate_pair_safe
from trust_filter.integration import apply_trust_filter
from trust_filter.remote_config import RemoteConfigProvider, RemoteConfigSnapshot
from trust_filter.types import (
    AestheticArchetype,
    ArchetypeDistance,
    BatchMatch,
    FormalityBand,
    HardReason,
    InfoReason,
    PatternLevel,
    SeasonHeaviness,
    SoftReason,
    StatementLevel,
    StyleSignals,
    TrustFilterAction,
    TrustFilterBatchResult,
    TrustFilterInput,
    TrustFilterResult,
)

__all__ = [
    "DEFAULT_TRUST_FILTER_CONFIG",
    "OverridePath",
    "OverrideResult",
    "TrustFilterConfig",
    "apply_overrides",
    "evaluate_batch",
    "evaluate_pair",
    "evaluate_pair_safe",
    "apply_trust_filter",
    "RemoteConfigProvider",
    "RemoteConfigSnapshot",
    "AestheticArchetype",
    "ArchetypeDistance",
    "BatchMatch",
    "FormalityBand",
    "HardReason",
    "InfoReason",
    "PatternLevel",
    "SeasonHeaviness",
    "SoftReason",
    "StatementLevel",
    "StyleSignals",
    "TrustFilterAction",
    "TrustFilterBatchResult",
    "TrustFilterInput",
    "TrustFilterResult",
]
