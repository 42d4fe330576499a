"""
In-memory library catalog indexed by category.

Insertion order is kept within each category; suggestion ordering is
decided later by the deterministic sort, not here.
"""

from collections import defaultdict
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple

from pydantic import ValidationError

from core.errors import ConfigValidationError
from core.logging import get_logger
from core.types import Category
from suggestions.schema import validate_library_item
from suggestions.types import LibraryItemMeta

logger = get_logger(__name__)


class Catalog:
    """Read-only lookup over curated library items."""

    def __init__(self, items: Iterable[LibraryItemMeta] = ()):
        self._items: List[LibraryItemMeta] = list(items)
        self._by_id: Dict[str, LibraryItemMeta] = {}
        self._by_category: Dict[Category, List[LibraryItemMeta]] = defaultdict(list)
        for item in self._items:
            if item.id in self._by_id:
                raise ConfigValidationError([f"duplicate library item id {item.id!r}"])
            self._by_id[item.id] = item
            self._by_category[item.category].append(item)

    @classmethod
    def from_rows(cls, rows: Iterable[Mapping[str, Any]], validate: bool = False) -> "Catalog":
        """
        Build a catalog from raw dict rows (e.g. a JSON export).

        Args:
            rows: Mappings with LibraryItemMeta fields
            validate: Also apply category-scoped schema checks

        Raises:
            ConfigValidationError: with every bad row, if any
        """
        items: List[LibraryItemMeta] = []
        errors: List[str] = []

        for index, row in enumerate(rows):
            try:
                item = LibraryItemMeta.model_validate(dict(row))
            except ValidationError as e:
                for err in e.errors():
                    loc = ".".join(str(p) for p in err.get("loc", ()))
                    errors.append(f"row {index} ({row.get('id', '?')}): {loc}: {err.get('msg')}")
                continue
            if validate:
                errors.extend(validate_library_item(item))
            items.append(item)

        if errors:
            raise ConfigValidationError(errors, title="Library catalog validation failed")

        logger.debug("Catalog loaded", items=len(items))
        return cls(items)

    def for_category(self, category: Category) -> Tuple[LibraryItemMeta, ...]:
        return tuple(self._by_category.get(category, ()))

    def get(self, item_id: str) -> Optional[LibraryItemMeta]:
        return self._by_id.get(item_id)

    def __len__(self) -> int:
        return len(self._items)

    def __iter__(self):
        return iter(self._items)
