"""
Tests for the recipe suggestion filter, catalog and library schema.

Run with: PYTHONPATH=src python -m pytest tests/unit/test_suggestions.py -v
"""

import pytest

from core.errors import ConfigValidationError
from core.types import Category
from suggestions import (
    Catalog,
    FilterKey,
    LibraryItemMeta,
    deterministic_sort,
    get_category_suggestions,
    get_filtered_suggestions,
    matches_filters,
    relax_filters,
    suggestions_for_recipe,
    tier_for_rank,
    validate_library_item,
    vibe_bucket,
)
from suggestions.types import BundleRecipe, ItemTier


def make_item(item_id, category=Category.BOTTOMS, **kwargs):
    return LibraryItemMeta(id=item_id, category=category, **kwargs)


@pytest.fixture
def structured_catalog():
    return Catalog([
        make_item("light-structured", tone="light", structure="structured", rank=20),
        make_item("neutral-structured", tone="neutral", structure="structured", rank=10),
        make_item("dark-soft", tone="dark", structure="soft", rank=5),
        make_item("top-dark", category=Category.TOPS, tone="dark", structure="structured"),
    ])


# =============================================================================
# Matching
# =============================================================================

class TestMatchesFilters:

    def test_scalar_and_value_set(self):
        item = make_item("a", tone="dark", shape="straight")
        assert matches_filters(item, {FilterKey.TONE: "dark"})
        assert matches_filters(item, {FilterKey.SHAPE: ("straight", "tapered")})
        assert not matches_filters(item, {FilterKey.TONE: ["light", "neutral"]})

    def test_missing_attribute_is_wildcard(self):
        item = make_item("a", tone="dark")
        assert matches_filters(item, {FilterKey.STRUCTURE: "structured", FilterKey.TONE: "dark"})

    def test_string_keys_accepted(self):
        item = make_item("a", formality="smart-casual")
        assert matches_filters(item, {"formality": "smart-casual"})

    def test_relax_filters_copies(self):
        filters = {FilterKey.TONE: "dark", FilterKey.SHAPE: ["straight"]}
        relaxed = relax_filters(filters, [FilterKey.TONE])
        assert relaxed == {FilterKey.SHAPE: ("straight",)}
        assert FilterKey.TONE in filters


# =============================================================================
# Ranking
# =============================================================================

class TestDeterministicSort:

    def test_vibe_buckets(self):
        both = make_item("both", vibes=("minimal", "street"))
        scanned = make_item("scanned", vibes=("minimal",))
        user = make_item("user", vibes=("street",))
        default = make_item("default", vibes=("default",))
        other = make_item("other", vibes=("sporty",))

        buckets = [vibe_bucket(i, ["minimal"], ["street"]) for i in (both, scanned, user, default, other)]
        assert buckets == [0, 1, 2, 3, 4]

    def test_rank_then_id(self):
        items = [
            make_item("c", rank=None),
            make_item("b", rank=40),
            make_item("a", rank=40),
            make_item("d", rank=10),
        ]
        assert [i.id for i in deterministic_sort(items)] == ["d", "a", "b", "c"]

    def test_vibes_rank_but_never_select(self):
        catalog = Catalog([
            make_item("plain", tone="dark", rank=1),
            make_item("vibey", tone="dark", rank=50, vibes=("office",)),
            make_item("off-filter", tone="light", vibes=("office",)),
        ])
        result = get_filtered_suggestions(
            Category.BOTTOMS, {FilterKey.TONE: "dark"}, catalog, limit=3, user_vibes=["office"]
        )
        assert result.item_ids == ("vibey", "plain")


# =============================================================================
# Relaxation
# =============================================================================

class TestRelaxation:

    def test_strict_pass(self, structured_catalog):
        result = get_filtered_suggestions(
            Category.BOTTOMS, {FilterKey.STRUCTURE: "structured"}, structured_catalog, limit=2
        )
        assert result.was_relaxed is False
        assert result.relaxed_keys == ()
        assert result.item_ids == ("neutral-structured", "light-structured")

    def test_relaxes_tone_keeps_structure(self, structured_catalog):
        """Dark + structured under-fills, tone is dropped, structure is kept."""
        result = get_filtered_suggestions(
            Category.BOTTOMS,
            {FilterKey.TONE: "dark", FilterKey.STRUCTURE: "structured"},
            structured_catalog,
            limit=2,
            relax_order=[FilterKey.TONE],
            never_relax=[FilterKey.STRUCTURE],
        )
        assert result.was_relaxed is True
        assert result.relaxed_keys == (FilterKey.TONE,)
        assert len(result.items) == 2
        assert all(item.structure.value == "structured" for item in result.items)

    def test_stops_at_first_sufficient_step(self):
        catalog = Catalog([
            make_item("a", tone="dark", shape="wide", tier="style"),
            make_item("b", tone="dark", shape="wide", tier="core"),
        ])
        result = get_filtered_suggestions(
            Category.BOTTOMS,
            {FilterKey.TONE: "dark", FilterKey.SHAPE: "straight", FilterKey.TIER: "core"},
            catalog,
            limit=1,
            relax_order=[FilterKey.SHAPE, FilterKey.TIER],
            never_relax=[FilterKey.TONE],
        )
        assert result.relaxed_keys == (FilterKey.SHAPE,)
        assert result.item_ids == ("b",)

    def test_minimal_pass_returns_partial(self, structured_catalog):
        result = get_filtered_suggestions(
            Category.BOTTOMS,
            {FilterKey.TONE: "dark", FilterKey.STRUCTURE: "soft"},
            structured_catalog,
            limit=3,
            relax_order=[FilterKey.TONE],
            never_relax=[FilterKey.STRUCTURE],
        )
        assert result.item_ids == ("dark-soft",)
        assert result.was_relaxed is True
        assert result.relaxed_keys == (FilterKey.TONE,)

    def test_never_relax_keys_skipped_in_walk(self, structured_catalog):
        result = get_filtered_suggestions(
            Category.BOTTOMS,
            {FilterKey.TONE: "dark", FilterKey.STRUCTURE: "structured"},
            structured_catalog,
            limit=2,
            relax_order=[FilterKey.STRUCTURE],
            never_relax=[FilterKey.STRUCTURE],
        )
        assert result.items == ()
        assert result.was_relaxed is False

    def test_unsatisfiable_protected_constraint_is_empty(self, structured_catalog):
        result = get_filtered_suggestions(
            Category.BOTTOMS,
            {FilterKey.TONE: "dark", FilterKey.FORMALITY: "formal"},
            Catalog([make_item("x", tone="light", formality="casual")]),
            limit=2,
            relax_order=[FilterKey.TONE],
            never_relax=[FilterKey.FORMALITY],
        )
        assert result.items == ()
        assert result.relaxed_keys == (FilterKey.TONE,)

    def test_empty_category_is_empty(self, structured_catalog):
        result = get_filtered_suggestions(Category.SHOES, {}, structured_catalog, limit=3)
        assert result.items == ()

    def test_relaxation_monotonic(self, structured_catalog):
        filters = {FilterKey.TONE: "dark", FilterKey.STRUCTURE: "structured"}
        items = structured_catalog.for_category(Category.BOTTOMS)
        counts = [
            sum(matches_filters(i, relax_filters(filters, dropped)) for i in items)
            for dropped in ([], [FilterKey.TONE], [FilterKey.TONE, FilterKey.STRUCTURE])
        ]
        assert counts == sorted(counts)

    def test_protected_keys_hold_in_results(self):
        catalog = Catalog([
            make_item(f"i{n}", tone=tone, structure=structure, shape=shape)
            for n, (tone, structure, shape) in enumerate([
                ("dark", "soft", "wide"),
                ("light", "structured", "straight"),
                ("neutral", "structured", "wide"),
                ("dark", "structured", "cargo"),
            ])
        ])
        for limit in range(1, 5):
            result = get_filtered_suggestions(
                Category.BOTTOMS,
                {FilterKey.TONE: "dark", FilterKey.STRUCTURE: "structured", FilterKey.SHAPE: "straight"},
                catalog,
                limit=limit,
                relax_order=[FilterKey.SHAPE, FilterKey.TONE],
                never_relax=[FilterKey.STRUCTURE],
            )
            assert all(i.structure.value == "structured" for i in result.items)
            assert FilterKey.STRUCTURE not in result.relaxed_keys

    def test_deterministic(self, structured_catalog):
        kwargs = dict(
            category=Category.BOTTOMS,
            filters={FilterKey.STRUCTURE: "structured"},
            catalog=structured_catalog,
            limit=3,
            scanned_vibes=["minimal"],
        )
        assert get_filtered_suggestions(**kwargs) == get_filtered_suggestions(**kwargs)

    def test_default_limit(self):
        catalog = Catalog([make_item(f"i{n}") for n in range(5)])
        assert len(get_filtered_suggestions(Category.BOTTOMS, {}, catalog).items) == 3

    def test_default_limit_follows_settings(self, monkeypatch):
        monkeypatch.setenv("SUGGESTION_DEFAULT_LIMIT", "1")
        catalog = Catalog([make_item(f"i{n}") for n in range(5)])
        assert get_filtered_suggestions(Category.BOTTOMS, {}, catalog).item_ids == ("i0",)
        assert get_category_suggestions(Category.BOTTOMS, catalog).item_ids == ("i0",)


class TestCategorySuggestions:

    def test_explicit_fallback_ignores_filters(self, structured_catalog):
        result = get_category_suggestions(Category.BOTTOMS, structured_catalog, limit=2)
        assert result.item_ids == ("dark-soft", "neutral-structured")
        assert result.was_relaxed is False

    def test_recipe_entry_point(self, structured_catalog):
        recipe = BundleRecipe(
            target_category="bottoms",
            target_filters={"tone": "dark", "structure": "structured"},
            target_limit=2,
            relax_order=["tone"],
            never_relax=["structure"],
        )
        result = suggestions_for_recipe(recipe, structured_catalog)
        assert result.relaxed_keys == (FilterKey.TONE,)


# =============================================================================
# Catalog & schema
# =============================================================================

class TestCatalog:

    def test_index(self, structured_catalog):
        assert len(structured_catalog) == 4
        assert [i.id for i in structured_catalog.for_category(Category.TOPS)] == ["top-dark"]
        assert structured_catalog.get("dark-soft").tone.value == "dark"
        assert structured_catalog.get("nope") is None

    def test_duplicate_ids_rejected(self):
        with pytest.raises(ConfigValidationError):
            Catalog([make_item("a"), make_item("a")])

    def test_from_rows(self):
        catalog = Catalog.from_rows([
            {"id": "a", "category": "shoes", "shape": "low_profile", "tone": "neutral", "extra": 1},
        ])
        assert catalog.get("a").shape.value == "low_profile"

    def test_from_rows_collects_every_error(self):
        with pytest.raises(ConfigValidationError) as exc_info:
            Catalog.from_rows([
                {"id": "a", "category": "hats"},
                {"id": "b", "category": "tops", "tone": "loud"},
            ])
        assert len(exc_info.value.errors) == 2

    def test_from_rows_schema_validation(self):
        rows = [{"id": "a", "category": "tops", "shape": "cargo", "tier": "core", "rank": 70}]
        assert len(Catalog.from_rows(rows)) == 1
        with pytest.raises(ConfigValidationError) as exc_info:
            Catalog.from_rows(rows, validate=True)
        assert len(exc_info.value.errors) == 2


class TestLibrarySchema:

    def test_valid_item(self):
        item = make_item("a", category=Category.SHOES, shape="heeled", tier="core", rank=12)
        assert validate_library_item(item) == []

    def test_category_scoped_attributes(self):
        item = make_item("a", category=Category.SHOES, length="maxi", outerwear_weight="light")
        errors = validate_library_item(item)
        assert len(errors) == 2

    @pytest.mark.parametrize("rank,expected", [
        (10, ItemTier.CORE),
        (29, ItemTier.CORE),
        (30, ItemTier.STAPLE),
        (89, ItemTier.STYLE),
        (150, ItemTier.STATEMENT),
        (3, None),
    ])
    def test_tier_for_rank(self, rank, expected):
        assert tier_for_rank(rank) is expected
