"""
Remote trust filter config with a TTL cache.

The provider pulls ``{"version": int, "config_overrides": {...}}`` through
an injected fetch callable (the storage client lives with the caller),
merges the overrides with apply_overrides and caches the result.

Fallbacks:
    - fetch returns None: compiled config, not from remote
    - fetch raises: compiled config plus a "Fetch failed" error, not cached
    - overrides invalid: compiled config, errors logged, cached for the TTL
"""

import threading
import time
from dataclasses import dataclass
from typing import Any, Callable, Mapping, Optional, Tuple

from config.settings import Settings, get_settings
from core.logging import LoggerMixin
from trust_filter.config import DEFAULT_TRUST_FILTER_CONFIG, TrustFilterConfig, apply_overrides

RemotePayload = Mapping[str, Any]
FetchFn = Callable[[], Optional[RemotePayload]]


@dataclass(frozen=True)
class RemoteConfigSnapshot:
    config: TrustFilterConfig
    version: int
    from_remote: bool
    errors: Tuple[str, ...] = ()


class RemoteConfigProvider(LoggerMixin):

    def __init__(
        self,
        fetch: FetchFn,
        cache_seconds: float = 300,
        base: TrustFilterConfig = DEFAULT_TRUST_FILTER_CONFIG,
        clock: Callable[[], float] = time.monotonic,
    ):
        self._fetch = fetch
        self._cache_seconds = cache_seconds
        self._base = base
        self._clock = clock
        self._lock = threading.Lock()
        self._cached: Optional[RemoteConfigSnapshot] = None
        self._fetched_at = 0.0

    @classmethod
    def from_settings(cls, fetch: FetchFn, settings: Optional[Settings] = None) -> "RemoteConfigProvider":
        settings = settings or get_settings()
        return cls(fetch, cache_seconds=settings.trust_filter_remote_cache_seconds)

    def _compiled(self, errors: Tuple[str, ...] = ()) -> RemoteConfigSnapshot:
        return RemoteConfigSnapshot(
            config=self._base,
            version=self._base.trust_filter_version,
            from_remote=False,
            errors=errors,
        )

    def get(self) -> RemoteConfigSnapshot:
        """Cached snapshot if still fresh, otherwise fetch and merge."""
        with self._lock:
            now = self._clock()
            if self._cached is not None and now - self._fetched_at < self._cache_seconds:
                return self._cached

            try:
                payload = self._fetch()
            except Exception as e:
                self.logger.warning("Remote trust filter config fetch failed", error=str(e))
                return self._compiled((f"Fetch failed: {e}",))

            if not payload:
                self.logger.debug("No active remote trust filter config, using compiled config")
                return self._compiled()

            version = payload.get("version", self._base.trust_filter_version)
            overrides = payload.get("config_overrides") or {}
            if not isinstance(overrides, Mapping):
                result_errors: Tuple[str, ...] = ("config_overrides must be an object",)
                snapshot = RemoteConfigSnapshot(self._base, version, True, result_errors)
            else:
                result = apply_overrides(self._base, overrides)
                snapshot = RemoteConfigSnapshot(result.config, version, True, result.errors)

            if snapshot.errors:
                self.logger.warning(
                    "Remote trust filter config rejected, keeping compiled config",
                    version=version,
                    errors=list(snapshot.errors),
                )
            else:
                self.logger.info("Loaded remote trust filter config", version=version)

            self._cached = snapshot
            self._fetched_at = now
            return snapshot

    def get_config(self) -> TrustFilterConfig:
        return self.get().config

    def clear(self) -> None:
        with self._lock:
            self._cached = None
            self._fetched_at = 0.0
