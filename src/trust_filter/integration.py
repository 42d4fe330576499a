"""
Glue between caller match objects and the batch evaluator.

The caller owns its match type (anything with an id, a category and a
score); this module maps those through evaluate_batch and hands back the
caller's own objects split into high_final / demoted / hidden.
"""

from collections import Counter
from dataclasses import dataclass, field
from typing import Callable, Generic, List, Mapping, Optional, Sequence, TypeVar, Union

from config.settings import Settings, get_settings
from core.errors import ConfigValidationError
from core.logging import get_logger, scan_context
from core.types import Category, ConfidenceTier
from trust_filter.config import DEFAULT_TRUST_FILTER_CONFIG, TrustFilterConfig
from trust_filter.evaluate import evaluate_batch
from trust_filter.types import BatchMatch, StyleSignals, TrustFilterBatchResult

logger = get_logger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class IntegrationStats:
    was_applied: bool
    total_evaluated: int = 0
    hidden_count: int = 0
    demoted_count: int = 0
    skipped_count: int = 0
    out_of_scope_count: int = 0


@dataclass(frozen=True)
class TrustFilterIntegrationResult(Generic[T]):
    high_final: List[T]
    demoted: List[T]
    hidden: List[T]
    stats: IntegrationStats
    # Matches whose tier is outside apply_to.tiers, returned unevaluated
    out_of_scope: List[T] = field(default_factory=list)
    raw_result: Optional[TrustFilterBatchResult] = field(default=None, repr=False)


def to_category(value: Union[Category, str]) -> Category:
    """Map a caller category label onto Category. Unrecognized labels fall back to tops."""
    if isinstance(value, Category):
        return value
    try:
        return Category(str(value).strip().lower())
    except ValueError:
        return Category.TOPS


def to_tier(value: Union[ConfidenceTier, str]) -> Optional[ConfidenceTier]:
    if isinstance(value, ConfidenceTier):
        return value
    try:
        return ConfidenceTier(str(value).strip().upper())
    except ValueError:
        return None


def _check_unique_ids(ids: Sequence[str]) -> None:
    dupes = sorted(i for i, n in Counter(ids).items() if n > 1)
    if dupes:
        raise ConfigValidationError(
            [f'match id "{i}" appears {ids.count(i)} times' for i in dupes],
            title="Trust filter matches must have unique ids",
        )


def apply_trust_filter(
    scan_signals: Optional[StyleSignals],
    scan_category: Union[Category, str],
    matches: Sequence[T],
    signals_by_id: Mapping[str, StyleSignals],
    get_id: Callable[[T], str],
    get_category: Callable[[T], Union[Category, str]],
    get_score: Callable[[T], Optional[float]],
    config: TrustFilterConfig = DEFAULT_TRUST_FILTER_CONFIG,
    settings: Optional[Settings] = None,
    get_tier: Optional[Callable[[T], Union[ConfidenceTier, str]]] = None,
    scan_id: Optional[str] = None,
) -> TrustFilterIntegrationResult[T]:
    """
    Split caller matches by trust filter decision.

    When the filter is disabled every match stays in high_final and
    ``was_applied`` is False. With ``get_tier``, only matches whose tier is
    in ``config.apply_to.tiers`` are evaluated; the rest come back in
    ``out_of_scope``. Trace output is attached as ``raw_result`` only when
    tracing is enabled. Log lines inside carry ``scan_id``.

    Raises:
        ConfigValidationError: If two matches share an id
    """
    settings = settings or get_settings()
    category = to_category(scan_category)

    if not settings.trust_filter_enabled:
        return TrustFilterIntegrationResult(
            high_final=list(matches), demoted=[], hidden=[],
            stats=IntegrationStats(was_applied=False),
        )

    ids = [get_id(m) for m in matches]
    _check_unique_ids(ids)

    in_scope: List[T] = []
    out_of_scope: List[T] = []
    for m in matches:
        if get_tier is None or to_tier(get_tier(m)) in config.apply_to.tiers:
            in_scope.append(m)
        else:
            out_of_scope.append(m)

    with scan_context(scan_id=scan_id, scan_category=category.value):
        if not in_scope:
            return TrustFilterIntegrationResult(
                high_final=[], demoted=[], hidden=[],
                stats=IntegrationStats(was_applied=True, out_of_scope_count=len(out_of_scope)),
                out_of_scope=out_of_scope,
            )

        trace = settings.trust_filter_trace_enabled
        batch = evaluate_batch(
            scan_signals,
            category,
            [
                BatchMatch(
                    id=get_id(m),
                    signals=signals_by_id.get(get_id(m)),
                    category=to_category(get_category(m)),
                    score=get_score(m),
                )
                for m in in_scope
            ],
            trace=trace,
            config=config,
        )

        by_id = {get_id(m): m for m in in_scope}

        def pick(picked_ids):
            return [by_id[i] for i in picked_ids]

        result = TrustFilterIntegrationResult(
            high_final=pick(batch.high_final),
            demoted=pick(batch.demoted),
            hidden=pick(batch.hidden),
            stats=IntegrationStats(
                was_applied=True,
                total_evaluated=batch.stats.total_evaluated,
                hidden_count=batch.stats.hidden_count,
                demoted_count=batch.stats.demoted_count,
                skipped_count=batch.stats.skipped_count,
                out_of_scope_count=len(out_of_scope),
            ),
            out_of_scope=out_of_scope,
            raw_result=batch if trace else None,
        )

        logger.info(
            "Trust filter applied",
            total_matches=len(matches),
            high_final=len(result.high_final),
            demoted=len(result.demoted),
            hidden=len(result.hidden),
            out_of_scope=len(out_of_scope),
            reason_counts=batch.stats.reason_counts,
            used_secondary=batch.stats.used_secondary_count,
        )
    return result
