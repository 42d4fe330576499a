"""
Tests for the core module: shared types, errors, LRU cache and logging.

Run with: PYTHONPATH=src python -m pytest tests/unit/test_core.py -v
"""

import logging
import threading

import pytest
import structlog


# =============================================================================
# Types
# =============================================================================

class TestConfidenceTier:

    def test_weakest_tier(self):
        from core.types import ConfidenceTier, weakest_tier

        assert weakest_tier([ConfidenceTier.HIGH, ConfidenceTier.MEDIUM]) is ConfidenceTier.MEDIUM
        assert weakest_tier([ConfidenceTier.HIGH]) is ConfidenceTier.HIGH
        assert weakest_tier([]) is ConfidenceTier.LOW

    def test_sort_key_puts_high_first(self):
        from core.types import ConfidenceTier, tier_sort_key

        tiers = [ConfidenceTier.LOW, ConfidenceTier.HIGH, ConfidenceTier.MEDIUM]
        assert sorted(tiers, key=tier_sort_key) == [
            ConfidenceTier.HIGH, ConfidenceTier.MEDIUM, ConfidenceTier.LOW
        ]


# =============================================================================
# Errors
# =============================================================================

class TestErrors:

    def test_config_validation_error_lists_everything(self):
        from core.errors import ConfigValidationError, RulesEngineError

        err = ConfigValidationError(["first problem", "second problem"])
        assert isinstance(err, RulesEngineError)
        assert err.errors == ["first problem", "second problem"]
        message = str(err)
        assert "2 error(s)" in message
        assert "  - first problem" in message
        assert "  - second problem" in message

    def test_recipe_schema_error_title(self):
        from core.errors import ConfigValidationError, RecipeSchemaError

        err = RecipeSchemaError(["x"])
        assert isinstance(err, ConfigValidationError)
        assert str(err).startswith("Bundle recipe validation failed")


# =============================================================================
# LRU cache
# =============================================================================

class TestBoundedLRUCache:

    def test_evicts_least_recently_used(self):
        from core.lru import BoundedLRUCache

        cache = BoundedLRUCache(2)
        cache.put("a", 1)
        cache.put("b", 2)
        assert cache.get("a") == 1  # a is now most recent
        cache.put("c", 3)

        assert "b" not in cache
        assert "a" in cache
        assert "c" in cache
        assert cache.evictions == 1
        assert len(cache) == 2

    def test_membership_is_not_a_use(self):
        from core.lru import BoundedLRUCache

        cache = BoundedLRUCache(2)
        cache.put("a", 1)
        cache.put("b", 2)
        assert "a" in cache
        cache.put("c", 3)
        assert "a" not in cache

    def test_add_if_absent(self):
        from core.lru import BoundedLRUCache

        cache = BoundedLRUCache(3)
        assert cache.add_if_absent("a", True) is True
        assert cache.add_if_absent("a", True) is False
        assert len(cache) == 1

    def test_pop_and_clear(self):
        from core.lru import BoundedLRUCache

        cache = BoundedLRUCache(3)
        cache.put("a", 1)
        cache.put("b", 2)
        assert cache.pop("a") == 1
        assert cache.pop("a") is None
        cache.clear()
        assert len(cache) == 0
        assert cache.get("b", "missing") == "missing"

    def test_rejects_zero_capacity(self):
        from core.lru import BoundedLRUCache

        with pytest.raises(ValueError):
            BoundedLRUCache(0)

    def test_concurrent_add_if_absent(self):
        from core.lru import BoundedLRUCache

        cache = BoundedLRUCache(1000)
        wins = []

        def worker():
            wins.append(sum(cache.add_if_absent(i, True) for i in range(200)))

        threads = [threading.Thread(target=worker) for _ in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert sum(wins) == 200
        assert len(cache) == 200


# =============================================================================
# Logging
# =============================================================================

class TestLogging:

    def test_configure_console(self):
        from core.logging import configure_logging

        configure_logging(json_logs=False, log_level="DEBUG")

    def test_configure_json(self):
        from core.logging import configure_logging

        configure_logging(json_logs=True, log_level="INFO", include_timestamp=False)

    def test_configure_log_level(self):
        from core.logging import configure_logging

        configure_logging(log_level="WARNING")
        assert logging.getLogger().level == logging.WARNING

    def test_configure_from_settings(self, monkeypatch):
        from core.logging import configure_from_settings

        monkeypatch.setenv("LOG_LEVEL", "error")
        configure_from_settings()
        assert logging.getLogger().level == logging.ERROR

    def test_get_logger(self):
        from core.logging import get_logger

        logger = get_logger("trust_filter.test")
        assert hasattr(logger, "info")
        assert hasattr(logger, "debug")

    def test_scan_context_binds_and_restores(self):
        from core.logging import scan_context

        structlog.contextvars.clear_contextvars()
        with scan_context(scan_id="scan-1", scan_category="tops", session_id=None):
            assert structlog.contextvars.get_contextvars() == {"scan_id": "scan-1", "scan_category": "tops"}
            with scan_context(scan_id="scan-2"):
                assert structlog.contextvars.get_contextvars()["scan_id"] == "scan-2"
            assert structlog.contextvars.get_contextvars()["scan_id"] == "scan-1"
        assert structlog.contextvars.get_contextvars() == {}

    def test_processor_chain_renderer(self):
        from core.logging import build_processors

        json_chain = build_processors(json_logs=True, include_timestamp=False)
        assert isinstance(json_chain[-1], structlog.processors.JSONRenderer)
        assert json_chain[0] is structlog.contextvars.merge_contextvars

        console_chain = build_processors(json_logs=False)
        assert isinstance(console_chain[0], structlog.processors.TimeStamper)
        assert isinstance(console_chain[-1], structlog.dev.ConsoleRenderer)

    def test_logger_mixin(self):
        from core.logging import LoggerMixin

        class Thing(LoggerMixin):
            pass

        assert hasattr(Thing().logger, "warning")
