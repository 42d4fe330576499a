"""
Tests for suggestion view telemetry and dedup.

Run with: PYTHONPATH=src python -m pytest tests/unit/test_telemetry.py -v
"""

from core.types import Category
from suggestions.telemetry import SuggestionViewTracker, filters_fingerprint
from suggestions.types import FilterKey, SuggestionResult


class TestFiltersFingerprint:

    def test_sorted_keys_and_values(self):
        a = filters_fingerprint(Category.SHOES, {"tone": ["neutral", "dark"], "shape": "low_profile"})
        b = filters_fingerprint(Category.SHOES, {FilterKey.SHAPE: "low_profile", FilterKey.TONE: ("dark", "neutral")})
        assert a == b
        assert a == "shoes|default|shape=low_profile;tone=dark,neutral"

    def test_vibe_in_fingerprint(self):
        assert filters_fingerprint(Category.TOPS, {}, vibe="street") == "tops|street|"


class TestSuggestionViewTracker:

    def test_emits_once_per_instance(self):
        tracker = SuggestionViewTracker(capacity=10)
        result = SuggestionResult(items=(), was_relaxed=True, relaxed_keys=(FilterKey.TONE,))

        event = tracker.record_view("grid-1", Category.SHOES, result, {"shape": "low_profile"})
        assert event is not None
        assert event.relaxed_keys == ("tone",)
        assert event.fingerprint == "shoes|default|shape=low_profile"

        assert tracker.record_view("grid-1", Category.SHOES, result) is None
        assert tracker.seen_count == 1

    def test_capacity_bounds_memory(self):
        tracker = SuggestionViewTracker(capacity=2)
        for i in range(3):
            assert tracker.should_emit(f"grid-{i}") is True
        assert tracker.seen_count == 2
        # the oldest id was evicted, so it would emit again
        assert tracker.should_emit("grid-0") is True
        assert tracker.should_emit("grid-2") is False

    def test_capacity_follows_settings(self, monkeypatch):
        monkeypatch.setenv("SUGGESTION_DEDUP_CAPACITY", "1")
        tracker = SuggestionViewTracker()
        tracker.should_emit("grid-1")
        tracker.should_emit("grid-2")
        assert tracker.seen_count == 1

    def test_reset(self):
        tracker = SuggestionViewTracker()
        tracker.should_emit("grid-1")
        tracker.reset()
        assert tracker.should_emit("grid-1") is True
