"""
Suggestion view events with per-instance dedup.

A suggestions grid re-renders many times per session; the view event is
emitted once per instance id. The dedup set is a fixed-capacity LRU so a
long session cannot grow it without bound.
"""

from dataclasses import dataclass, field
from typing import Mapping, Optional, Tuple

from config.constants import DEFAULT_SUGGESTION_CONFIG, SuggestionConfig
from core.logging import LoggerMixin
from core.lru import BoundedLRUCache
from core.types import Category
from suggestions.types import FilterKey, FilterValue, SuggestionResult, filter_values


def filters_fingerprint(
    category: Category,
    filters: Optional[Mapping[FilterKey, FilterValue]] = None,
    vibe: Optional[str] = None,
) -> str:
    """
    Stable identity for a filter request: ``category|vibe|k=v1,v2;k2=v``.

    Keys and value-sets are sorted so equivalent filters hash the same.
    """
    parts = []
    for key in sorted((filters or {}), key=lambda k: FilterKey(k).value):
        values = ",".join(sorted(filter_values(filters[key])))
        parts.append(f"{FilterKey(key).value}={values}")
    return f"{category.value}|{vibe or DEFAULT_SUGGESTION_CONFIG.DEFAULT_VIBE}|{';'.join(parts)}"


@dataclass(frozen=True)
class SuggestionViewedEvent:
    instance_id: str
    category: Category
    fingerprint: str
    item_ids: Tuple[str, ...]
    was_relaxed: bool
    relaxed_keys: Tuple[str, ...] = field(default_factory=tuple)


class SuggestionViewTracker(LoggerMixin):
    """
    Answers "emit this view?" once per instance id.

    Capacity defaults to the SUGGESTION_DEDUP_CAPACITY setting.
    """

    def __init__(self, capacity: Optional[int] = None):
        if capacity is None:
            capacity = SuggestionConfig.from_settings().DEDUP_CAPACITY
        self._seen: BoundedLRUCache[str, bool] = BoundedLRUCache(capacity)

    @property
    def seen_count(self) -> int:
        return len(self._seen)

    def should_emit(self, instance_id: str) -> bool:
        return self._seen.add_if_absent(instance_id, True)

    def reset(self) -> None:
        self._seen.clear()

    def record_view(
        self,
        instance_id: str,
        category: Category,
        result: SuggestionResult,
        filters: Optional[Mapping[FilterKey, FilterValue]] = None,
        vibe: Optional[str] = None,
    ) -> Optional[SuggestionViewedEvent]:
        """Build and log the view event, or None if already emitted."""
        if not self.should_emit(instance_id):
            return None

        event = SuggestionViewedEvent(
            instance_id=instance_id,
            category=category,
            fingerprint=filters_fingerprint(category, filters, vibe),
            item_ids=result.item_ids,
            was_relaxed=result.was_relaxed,
            relaxed_keys=tuple(k.value for k in result.relaxed_keys),
        )
        self.logger.info(
            "suggestions_viewed",
            instance_id=event.instance_id,
            category=category.value,
            fingerprint=event.fingerprint,
            count=len(event.item_ids),
            was_relaxed=event.was_relaxed,
            relaxed_keys=list(event.relaxed_keys),
        )
        return event

