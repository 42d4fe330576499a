"""
Trust filter evaluator.

evaluate_pair is a single-pass pure function: derive distances, collect
hard and soft reasons, resolve the action by fixed priority, then let the
category policies soften (never escalate) the outcome.

evaluate_batch runs the guardrail over the top-N HIGH matches of one scan.
"""

from collections import Counter
from typing import Dict, List, Optional, Sequence

from core.logging import get_logger
from core.types import Category
from trust_filter import helpers as h
from trust_filter.config import (
    DEFAULT_TRUST_FILTER_CONFIG,
    AnchorTrigger,
    TrustFilterConfig,
)
from trust_filter.types import (
    BatchMatch,
    BatchStats,
    HardReason,
    InfoReason,
    ReasonCode,
    SoftReason,
    StyleSignals,
    TraceStep,
    TrustFilterAction,
    TrustFilterBatchResult,
    TrustFilterDebug,
    TrustFilterInput,
    TrustFilterResult,
    reason_value,
)

logger = get_logger(__name__)

_STATEMENT_OR_PATTERN = (
    SoftReason.STATEMENT_VS_STATEMENT_OVERLOAD,
    SoftReason.STATEMENT_CONTEXT_MISMATCH,
    SoftReason.PATTERN_TEXTURE_OVERLOAD,
)


class _Trace:
    """Collects TraceSteps only when tracing is on."""

    def __init__(self, enabled: bool):
        self.enabled = enabled
        self.steps: List[TraceStep] = []

    def add(self, step: str, applied: bool, inputs=None, output=None) -> None:
        if self.enabled:
            self.steps.append(TraceStep(step, applied, dict(inputs or {}), dict(output or {})))

    def result(self):
        return tuple(self.steps) if self.enabled else None


def _first_by_priority(order: Sequence[ReasonCode], collected: Sequence[ReasonCode]) -> Optional[ReasonCode]:
    for reason in order:
        if reason in collected:
            return reason
    return None


# =============================================================================
# Single pair
# =============================================================================

def evaluate_pair(
    pair: TrustFilterInput,
    trace: bool = False,
    config: TrustFilterConfig = DEFAULT_TRUST_FILTER_CONFIG,
) -> TrustFilterResult:
    """
    Evaluate one scanned-item / match pair.

    Args:
        pair: Signals and categories for both sides
        trace: Attach an ordered rule-application log to the result
        config: Trust filter config (compiled default or a remote-merged one)

    Returns:
        TrustFilterResult with action, reasons and debug values
    """
    tr = _Trace(trace)
    scan, match = pair.scan_signals, pair.match_signals

    # Step 1: missing signals never penalize
    if scan is None or match is None:
        tr.add(
            "missing_signals_check", True,
            {"scan_signals": "present" if scan else "missing",
             "match_signals": "present" if match else "missing"},
            {"action": TrustFilterAction.KEEP.value, "reason": InfoReason.INSUFFICIENT_INFO.value},
        )
        return TrustFilterResult(
            action=TrustFilterAction.KEEP,
            primary_reason=InfoReason.INSUFFICIENT_INFO,
            debug=TrustFilterDebug(confidence_gate_hit=True),
            trace=tr.result(),
        )

    # Step 2: derived values
    formality_gap = h.compute_formality_gap(scan, match, config)
    season_diff = h.compute_season_diff(scan, match, config)
    dist = h.compute_archetype_distance(scan, match, config)
    distance = dist.distance
    gate_hit = False

    tr.add("compute_derived_values", True, {
        "scan_formality": scan.formality.band.value,
        "match_formality": match.formality.band.value,
        "scan_aesthetic": scan.aesthetic.primary.value,
        "match_aesthetic": match.aesthetic.primary.value,
    }, {
        "formality_gap": formality_gap,
        "season_diff": season_diff,
        "archetype_distance": distance.value if distance else None,
        "used_secondary": dist.used_secondary,
    })

    hide: List[HardReason] = []
    demote: List[SoftReason] = []

    # Step 3: hide triggers
    if formality_gap is not None:
        for rule in config.formality.hide_if:
            if not isinstance(rule.reason, HardReason) or not rule.matches_gap(formality_gap):
                continue
            if rule.either_is is None or h.either_has_formality(scan, match, rule.either_is):
                hide.append(rule.reason)
                tr.add(f"formality.hide_if.gap_gte_{rule.gap_gte}", True,
                       {"formality_gap": formality_gap},
                       {"action": "hide", "reason": rule.reason.value})

    if season_diff is not None:
        for rule in config.season.hide_if:
            if season_diff >= rule.diff_gte:
                hide.append(rule.reason)
                tr.add(f"season.hide_if.diff_gte_{rule.diff_gte}", True,
                       {"season_diff": season_diff},
                       {"action": "hide", "reason": rule.reason.value})

    clash = config.aesthetic.hard_clash
    if distance is not None and distance is clash.archetype_distance_is:
        if h.has_high_primary_confidence(scan, match, config):
            if dist.used_secondary and clash.allow_secondary_to_soften:
                tr.add("aesthetic.hard_clash_check.softened_by_secondary", False,
                       {"archetype_distance": distance.value, "used_secondary": True})
            else:
                hide.append(HardReason.STYLE_ARCHETYPE_HARD_CLASH)
                tr.add("aesthetic.hard_clash_check", True,
                       {"archetype_distance": distance.value, "used_secondary": dist.used_secondary},
                       {"action": "hide", "reason": HardReason.STYLE_ARCHETYPE_HARD_CLASH.value})
        else:
            gate_hit = True
            tr.add("aesthetic.hard_clash_check.confidence_gate", False, {
                "archetype_distance": distance.value,
                "scan_primary_confidence": scan.aesthetic.primary_confidence,
                "match_primary_confidence": match.aesthetic.primary_confidence,
            })

    # Step 4: demote triggers
    if formality_gap is not None:
        for rule in config.formality.demote_if:
            # hard codes are only ever raised by hide_if
            if not isinstance(rule.reason, SoftReason) or not rule.matches_gap(formality_gap):
                continue
            if rule.either_is is None or h.either_has_formality(scan, match, rule.either_is):
                demote.append(rule.reason)
                kind = "eq" if rule.gap_eq is not None else "gte"
                tr.add(f"formality.demote_if.gap_{kind}_{rule.gap_eq if rule.gap_eq is not None else rule.gap_gte}",
                       True, {"formality_gap": formality_gap},
                       {"action": "demote_to_near", "reason": rule.reason.value})

    if season_diff is not None:
        for rule in config.season.demote_if:
            if season_diff == rule.diff_eq:
                demote.append(rule.reason)
                tr.add(f"season.demote_if.diff_eq_{rule.diff_eq}", True,
                       {"season_diff": season_diff},
                       {"action": "demote_to_near", "reason": rule.reason.value})

    if distance is not None:
        for rule in config.statement.demote_if:
            if distance not in rule.archetype_distance_in:
                continue
            triggered = (
                (rule.both_gte is not None and h.both_statement_gte(scan, match, rule.both_gte, config))
                or (rule.one_gte is not None and h.one_statement_gte(scan, match, rule.one_gte, config))
            )
            if triggered:
                demote.append(rule.reason)
                which = "both" if rule.both_gte is not None else "one"
                tr.add(f"statement.demote_if.{which}_gte_{rule.both_gte if rule.both_gte is not None else rule.one_gte}",
                       True, {"archetype_distance": distance.value},
                       {"action": "demote_to_near", "reason": rule.reason.value})

    for rule in config.pattern.demote_if:
        if h.both_pattern_gte(scan, match, rule.both_gte, config):
            demote.append(rule.reason)
            tr.add(f"pattern.demote_if.both_gte_{rule.both_gte}", True, {},
                   {"action": "demote_to_near", "reason": rule.reason.value})

    if h.has_low_confidence_inputs(scan, match, config):
        demote.append(SoftReason.LOW_CONFIDENCE_INPUTS)
        tr.add("low_confidence_inputs_check", True, {
            "scan_aesthetic_confidence": scan.aesthetic.primary_confidence,
            "match_aesthetic_confidence": match.aesthetic.primary_confidence,
        }, {"action": "demote_to_near", "reason": SoftReason.LOW_CONFIDENCE_INPUTS.value})

    # Step 5: anchor rule
    anchor = config.anchor_rule
    pair_type = h.get_pair_type(pair.scan_category, pair.match_category, config)
    if (
        anchor.enabled
        and pair_type is anchor.trigger_if.pair_type_is
        and distance is anchor.trigger_if.archetype_distance_is
    ):
        formality_ok = formality_gap is None or formality_gap <= anchor.trigger_if.formality_gap_lte
        any_triggered = any(
            (t is AnchorTrigger.STATEMENT_HIGH and h.one_statement_high(scan, match, config))
            or (t is AnchorTrigger.PATTERN_BOLD and h.one_pattern_bold(scan, match, config))
            for t in anchor.trigger_if.any_of
        )
        if formality_ok and any_triggered:
            demote.append(anchor.reason)
            tr.add("anchor_rule", True, {
                "pair_type": pair_type.value,
                "archetype_distance": distance.value,
                "formality_gap": formality_gap,
            }, {"action": "demote_to_near", "reason": anchor.reason.value})

    # Step 6: resolve by priority
    action = TrustFilterAction.KEEP
    primary: Optional[ReasonCode] = None
    if hide:
        primary = _first_by_priority(config.decision_priority.hide_order, hide)
        if primary is not None:
            action = TrustFilterAction.HIDE
    if action is not TrustFilterAction.HIDE and demote:
        primary = _first_by_priority(config.decision_priority.demote_order, demote)
        if primary is not None:
            action = TrustFilterAction.DEMOTE_TO_NEAR

    secondary = tuple(r for r in [*hide, *demote] if r is not primary)

    # Step 7: category policies, softening only
    policies = config.categories.special_policies
    cat_a, cat_b = pair.scan_category, pair.match_category

    if h.is_bags_or_accessories(cat_a, cat_b) and action is TrustFilterAction.HIDE:
        policy = policies.bags_and_accessories
        if primary is HardReason.STYLE_ARCHETYPE_HARD_CLASH and policy.never_hide_for_archetype_only:
            action = policy.default_action_if_only_style_mismatch
            tr.add("category_policy.bags_accessories.archetype_only", True,
                   {"original_action": "hide", "primary_reason": reason_value(primary)},
                   {"action": action.value})
        elif primary not in policy.allow_hide_only_for:
            action = TrustFilterAction.DEMOTE_TO_NEAR
            tr.add("category_policy.bags_accessories.hide_not_allowed", True,
                   {"original_action": "hide", "primary_reason": reason_value(primary)},
                   {"action": action.value})

    if h.is_shoes_tops_pair(cat_a, cat_b) and action is TrustFilterAction.HIDE:
        policy = policies.shoes_plus_tops
        if policy.never_hide_for_archetype_only and primary is HardReason.STYLE_ARCHETYPE_HARD_CLASH:
            action = TrustFilterAction.DEMOTE_TO_NEAR
            if (
                policy.prefer_anchor_reason_when_borderline
                and SoftReason.CONTEXT_DEPENDENT_NEEDS_ANCHOR in demote
            ):
                primary = SoftReason.CONTEXT_DEPENDENT_NEEDS_ANCHOR
            tr.add("category_policy.shoes_tops.archetype_only", True,
                   {"original_action": "hide"},
                   {"action": action.value, "reason": reason_value(primary)})

    if h.has_skirts(cat_a, cat_b) and action is TrustFilterAction.HIDE:
        if policies.skirts.never_escalate_statement_or_pattern_to_hide and primary in _STATEMENT_OR_PATTERN:
            action = TrustFilterAction.DEMOTE_TO_NEAR
            tr.add("category_policy.skirts.no_hide_for_statement_pattern", True,
                   {"original_action": "hide", "primary_reason": reason_value(primary)},
                   {"action": action.value})

    return TrustFilterResult(
        action=action,
        primary_reason=primary,
        secondary_reasons=secondary,
        debug=TrustFilterDebug(
            formality_gap=formality_gap,
            season_diff=season_diff,
            archetype_distance=distance,
            used_secondary=dist.used_secondary,
            confidence_gate_hit=gate_hit,
        ),
        trace=tr.result(),
    )


def evaluate_pair_safe(
    pair: TrustFilterInput,
    trace: bool = False,
    config: TrustFilterConfig = DEFAULT_TRUST_FILTER_CONFIG,
) -> TrustFilterResult:
    """evaluate_pair, but any unexpected exception degrades to keep / evaluation_error."""
    try:
        return evaluate_pair(pair, trace=trace, config=config)
    except Exception as e:
        logger.warning(
            "Trust filter evaluation failed, keeping match",
            scan_category=getattr(pair, "scan_category", None),
            match_category=getattr(pair, "match_category", None),
            error_type=type(e).__name__,
            error=str(e),
        )
        return TrustFilterResult(
            action=TrustFilterAction.KEEP,
            primary_reason=InfoReason.EVALUATION_ERROR,
            debug=TrustFilterDebug(
                confidence_gate_hit=True,
                error_code=type(e).__name__,
                error_message=str(e),
            ),
        )


# =============================================================================
# Batch
# =============================================================================

def evaluate_batch(
    scan_signals: Optional[StyleSignals],
    scan_category: Category,
    matches: Sequence[BatchMatch],
    max_candidates: Optional[int] = None,
    trace: bool = False,
    config: TrustFilterConfig = DEFAULT_TRUST_FILTER_CONFIG,
) -> TrustFilterBatchResult:
    """
    Run the guardrail over the top ``max_candidates`` matches by score.

    Matches beyond the cap pass through unevaluated into high_final; the
    guardrail only protects what a user will actually see first.

    Raises:
        ValueError: If max_candidates is negative
    """
    if max_candidates is None:
        max_candidates = config.apply_to.max_candidates_per_scan
    if max_candidates < 0:
        raise ValueError(f"max_candidates must be >= 0, got {max_candidates}")

    # sorted() is stable, so equal scores keep caller order
    ordered = sorted(matches, key=lambda m: m.score if m.score is not None else 0.0, reverse=True)
    to_evaluate = ordered[:max_candidates]
    skipped = ordered[max_candidates:]

    high_final: List[str] = []
    demoted: List[str] = []
    hidden: List[str] = []
    decisions: Dict[str, TrustFilterResult] = {}
    reason_counts: Counter = Counter()
    used_secondary = 0

    for m in to_evaluate:
        result = evaluate_pair_safe(
            TrustFilterInput(
                scan_signals=scan_signals,
                match_signals=m.signals,
                scan_category=scan_category,
                match_category=m.category,
                score=m.score,
            ),
            trace=trace,
            config=config,
        )
        decisions[m.id] = result

        if result.action is TrustFilterAction.HIDE:
            hidden.append(m.id)
        elif result.action is TrustFilterAction.DEMOTE_TO_NEAR:
            demoted.append(m.id)
        else:
            high_final.append(m.id)

        if result.primary_reason is not None:
            reason_counts[result.primary_reason.value] += 1
        if result.debug.used_secondary:
            used_secondary += 1

    high_final.extend(m.id for m in skipped)

    stats = BatchStats(
        total_evaluated=len(to_evaluate),
        skipped_count=len(skipped),
        hidden_count=len(hidden),
        demoted_count=len(demoted),
        reason_counts=dict(reason_counts),
        used_secondary_count=used_secondary,
    )
    logger.debug(
        "Trust filter batch evaluated",
        scan_category=scan_category.value,
        evaluated=stats.total_evaluated,
        skipped=stats.skipped_count,
        hidden=stats.hidden_count,
        demoted=stats.demoted_count,
    )

    return TrustFilterBatchResult(
        high_final=tuple(high_final),
        demoted=tuple(demoted),
        hidden=tuple(hidden),
        decisions=decisions,
        stats=stats,
    )
