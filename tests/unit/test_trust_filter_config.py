"""
Tests for the trust filter config tree, remote overrides and the remote
config provider.

Run with: PYTHONPATH=src python -m pytest tests/unit/test_trust_filter_config.py -v
"""

import pytest
from pydantic import ValidationError

from core.types import Category
from trust_filter.config import (
    DEFAULT_TRUST_FILTER_CONFIG,
    AestheticConfig,
    DecisionPriority,
    FormalityRule,
    OverridePath,
    TrustFilterConfig,
    apply_overrides,
)
from trust_filter.remote_config import RemoteConfigProvider
from trust_filter.types import (
    AestheticArchetype as A,
    AestheticCluster,
    ArchetypeDistance,
    HardReason,
    SoftReason,
)


class FakeClock:
    def __init__(self, now: float = 0.0):
        self.now = now

    def __call__(self) -> float:
        return self.now


# =============================================================================
# Compiled config
# =============================================================================

class TestCompiledConfig:

    def test_defaults(self):
        config = DEFAULT_TRUST_FILTER_CONFIG
        assert config.trust_filter_version == 1
        assert config.apply_to.max_candidates_per_scan == 10
        assert config.confidence_thresholds.aesthetic_primary_min == 0.55
        assert config.aesthetic.hard_clash.require_primary_confidence_gte == 0.65
        assert config.decision_priority.hide_order[0] is HardReason.FORMALITY_HARD_CLASH
        assert config.decision_priority.demote_order[-1] is SoftReason.LOW_CONFIDENCE_INPUTS

    def test_config_is_frozen(self):
        with pytest.raises(ValidationError):
            DEFAULT_TRUST_FILTER_CONFIG.apply_to.max_candidates_per_scan = 3

    def test_every_known_archetype_has_a_cluster(self):
        aesthetic = DEFAULT_TRUST_FILTER_CONFIG.aesthetic
        for archetype in A:
            if archetype.is_known:
                assert aesthetic.cluster_of(archetype) is not None, archetype
        assert aesthetic.cluster_of(A.UNKNOWN) is None

    def test_rejects_asymmetric_matrix(self):
        distances = {
            a: dict(row) for a, row in DEFAULT_TRUST_FILTER_CONFIG.aesthetic.cluster_distances.items()
        }
        distances[AestheticCluster.WESTERN][AestheticCluster.UTILITY] = ArchetypeDistance.FAR
        with pytest.raises(ValidationError, match="not symmetric"):
            AestheticConfig(cluster_distances=distances)

    def test_rejects_bad_pair_override_key(self):
        with pytest.raises(ValidationError):
            AestheticConfig(pair_overrides={"western-classic": ArchetypeDistance.CLOSE})

    def test_rejects_priority_order_missing_reason(self):
        with pytest.raises(ValidationError, match="hide_order"):
            DecisionPriority(hide_order=(HardReason.FORMALITY_HARD_CLASH,))

    def test_formality_rule_needs_one_gap_condition(self):
        with pytest.raises(ValidationError):
            FormalityRule(reason=HardReason.FORMALITY_HARD_CLASH)
        with pytest.raises(ValidationError):
            FormalityRule(gap_gte=2, gap_eq=2, reason=HardReason.FORMALITY_HARD_CLASH)

    def test_unknown_version_rejected(self):
        with pytest.raises(ValidationError):
            TrustFilterConfig(trust_filter_version=2)


# =============================================================================
# Overrides
# =============================================================================

class TestApplyOverrides:

    def test_valid_threshold_override(self):
        result = apply_overrides(DEFAULT_TRUST_FILTER_CONFIG, {
            "confidence_thresholds.season_min": 0.7,
            OverridePath.MAX_CANDIDATES_PER_SCAN: 5,
        })
        assert result.valid is True
        assert result.errors == ()
        assert result.config.confidence_thresholds.season_min == 0.7
        assert result.config.apply_to.max_candidates_per_scan == 5
        # base untouched
        assert DEFAULT_TRUST_FILTER_CONFIG.confidence_thresholds.season_min == 0.55

    def test_empty_overrides_return_base(self):
        result = apply_overrides(DEFAULT_TRUST_FILTER_CONFIG, {})
        assert result.valid is True
        assert result.config is DEFAULT_TRUST_FILTER_CONFIG

    def test_unknown_path_rejected(self):
        result = apply_overrides(DEFAULT_TRUST_FILTER_CONFIG, {"aesthetic.hard_clash.require_primary_confidence_gte": 0.1})
        assert result.valid is False
        assert result.config is DEFAULT_TRUST_FILTER_CONFIG
        assert "not allowed" in result.errors[0]

    def test_all_errors_collected_and_nothing_applied(self):
        result = apply_overrides(DEFAULT_TRUST_FILTER_CONFIG, {
            "apply_to.max_candidates_per_scan": 0,
            "confidence_thresholds.pattern_min": 1.5,
            "confidence_thresholds.formality_min": 0.6,
            "bogus.path": 1,
        })
        assert result.valid is False
        assert len(result.errors) == 3
        assert result.config.confidence_thresholds.formality_min == 0.55

    def test_bool_is_not_a_number(self):
        result = apply_overrides(DEFAULT_TRUST_FILTER_CONFIG, {"apply_to.max_candidates_per_scan": True})
        assert result.valid is False

    def test_string_is_not_a_number(self):
        result = apply_overrides(DEFAULT_TRUST_FILTER_CONFIG, {"confidence_thresholds.season_min": "0.7"})
        assert result.valid is False

    def test_priority_override_must_be_permutation(self):
        result = apply_overrides(DEFAULT_TRUST_FILTER_CONFIG, {
            "decision_priority.hide_order": ["weather_season_hard_clash", "formality_hard_clash"],
        })
        assert result.valid is False
        assert result.config is DEFAULT_TRUST_FILTER_CONFIG

    def test_priority_override_reorders(self):
        order = [
            "weather_season_hard_clash",
            "formality_hard_clash",
            "function_incompatible",
            "style_archetype_hard_clash",
        ]
        result = apply_overrides(DEFAULT_TRUST_FILTER_CONFIG, {"decision_priority.hide_order": order})
        assert result.valid is True
        assert result.config.decision_priority.hide_order[0] is HardReason.WEATHER_SEASON_HARD_CLASH

    def test_anchor_overrides(self):
        result = apply_overrides(DEFAULT_TRUST_FILTER_CONFIG, {
            "anchor_rule.enabled": False,
            "anchor_rule.trigger_if.archetype_distance_is": "far",
            "anchor_rule.trigger_if.formality_gap_lte": 2,
        })
        assert result.valid is True
        assert result.config.anchor_rule.enabled is False
        assert result.config.anchor_rule.trigger_if.archetype_distance_is is ArchetypeDistance.FAR
        assert result.config.anchor_rule.trigger_if.formality_gap_lte == 2

    def test_pair_overrides_change_evaluation(self, make_signals):
        from trust_filter import evaluate_pair
        from trust_filter.types import TrustFilterAction, TrustFilterInput

        result = apply_overrides(DEFAULT_TRUST_FILTER_CONFIG, {
            "aesthetic.pair_overrides": {"glam:outdoor_utility": "close"},
        })
        assert result.valid is True

        pair = TrustFilterInput(
            scan_signals=make_signals(archetype=A.GLAM),
            match_signals=make_signals(archetype=A.OUTDOOR_UTILITY),
            scan_category=Category.TOPS,
            match_category=Category.BOTTOMS,
        )
        assert evaluate_pair(pair).action is TrustFilterAction.HIDE
        assert evaluate_pair(pair, config=result.config).action is TrustFilterAction.KEEP


# =============================================================================
# Remote provider
# =============================================================================

class TestRemoteConfigProvider:

    def test_no_remote_config(self):
        provider = RemoteConfigProvider(lambda: None)
        snapshot = provider.get()
        assert snapshot.from_remote is False
        assert snapshot.config is DEFAULT_TRUST_FILTER_CONFIG

    def test_merges_and_caches(self):
        calls = []

        def fetch():
            calls.append(1)
            return {"version": 3, "config_overrides": {"confidence_thresholds.season_min": 0.8}}

        clock = FakeClock()
        provider = RemoteConfigProvider(fetch, cache_seconds=60, clock=clock)

        first = provider.get()
        assert first.from_remote is True
        assert first.version == 3
        assert first.config.confidence_thresholds.season_min == 0.8

        clock.now = 30
        assert provider.get() is first
        assert len(calls) == 1

        clock.now = 61
        provider.get()
        assert len(calls) == 2

    def test_fetch_failure_falls_back_uncached(self):
        calls = []

        def fetch():
            calls.append(1)
            raise ConnectionError("offline")

        provider = RemoteConfigProvider(fetch, clock=FakeClock())
        snapshot = provider.get()
        assert snapshot.from_remote is False
        assert snapshot.errors == ("Fetch failed: offline",)

        provider.get()
        assert len(calls) == 2

    def test_invalid_overrides_keep_compiled_config(self):
        provider = RemoteConfigProvider(
            lambda: {"version": 2, "config_overrides": {"apply_to.tiers": ["LOW"]}},
            clock=FakeClock(),
        )
        snapshot = provider.get()
        assert snapshot.config is DEFAULT_TRUST_FILTER_CONFIG
        assert snapshot.errors

    def test_clear_forces_refetch(self):
        calls = []
        provider = RemoteConfigProvider(lambda: calls.append(1) or None, clock=FakeClock())
        provider.get()
        provider.get()
        provider.clear()
        provider.get()
        # None payloads are not cached
        assert len(calls) == 3

    def test_from_settings(self):
        from config.settings import get_settings_for_testing

        provider = RemoteConfigProvider.from_settings(
            lambda: None, get_settings_for_testing(trust_filter_remote_cache_seconds=5)
        )
        assert provider.get_config() is DEFAULT_TRUST_FILTER_CONFIG
