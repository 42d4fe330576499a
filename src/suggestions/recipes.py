"""
Bundle recipes and bullet targets.

BUNDLE_RECIPES maps an advice bullet key to the declarative filter used to
pick library suggestions for it. BULLET_TARGETS is the other half of the
contract: every bullet's mode and target category.

    Mode A  bullet with a target category -> must have a recipe
            bullet without one (concept advice) -> educational boards
    Mode B  static do/don't/try content -> must never have a recipe

validate_recipe_tables() checks both tables together and returns every
problem; load_bundle_recipes() raises RecipeSchemaError once with all of
them, so a single fix-and-rerun cycle surfaces everything.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional

from pydantic import ValidationError

from core.errors import RecipeSchemaError
from core.logging import get_logger
from core.types import Category
from suggestions.schema import allowed_values
from suggestions.types import BundleRecipe, FilterKey, filter_values

logger = get_logger(__name__)


class BulletMode(str, Enum):
    A = "A"  # suggestions grid
    B = "B"  # static educational content


@dataclass(frozen=True)
class BulletTarget:
    mode: BulletMode
    target_category: Optional[Category] = None


# Schema lock: the only keys a recipe may carry
RECIPE_ALLOWED_KEYS = ("target_category", "target_filters", "target_limit", "relax_order", "never_relax")

# Copy belongs with the bullet, never in a recipe
RECIPE_COPY_KEYS = ("display_title", "display_description", "title", "subtitle", "description")

ALLOWED_FILTER_KEYS = tuple(k.value for k in FilterKey)

# Outerwear recipes whose key matches one of these must pin outerwear_weight
OUTERWEAR_WEIGHT_REQUIRED_PATTERNS = (
    "OUTERWEAR_LIGHT",
    "OUTERWEAR_MINIMAL",
    "OUTERWEAR_OPTIONAL",
    "OUTERWEAR_CLEAN",
)


# =============================================================================
# Tables
# =============================================================================

BUNDLE_RECIPES: Dict[str, Dict[str, Any]] = {
    # TOPS scanned
    "TOPS__BOTTOMS_DARK_STRUCTURED": {
        "target_category": "bottoms",
        "target_filters": {
            "tone": "dark",
            "structure": "structured",
            "formality": "smart-casual",
            "shape": ["straight", "tapered"],
            "tier": ["core", "staple"],
        },
        "target_limit": 3,
        "relax_order": ["shape", "tier"],
        "never_relax": ["tone", "structure", "formality"],
    },
    "TOPS__SHOES_NEUTRAL": {
        "target_category": "shoes",
        "target_filters": {"shape": "low_profile", "tone": ["neutral", "dark", "light"]},
        "target_limit": 3,
        "relax_order": ["tone"],
        "never_relax": ["shape"],
    },
    "TOPS__OUTERWEAR_LIGHT_LAYER": {
        "target_category": "outerwear",
        "target_filters": {"outerwear_weight": "light", "structure": "soft"},
        "target_limit": 3,
        "relax_order": ["structure"],
        "never_relax": ["outerwear_weight"],
    },

    # BOTTOMS scanned
    "BOTTOMS__TOP_NEUTRAL_SIMPLE": {
        "target_category": "tops",
        "target_filters": {"tone": ["neutral", "light"], "structure": "soft"},
        "target_limit": 3,
        "relax_order": ["tone"],
        "never_relax": ["structure"],
    },
    "BOTTOMS__SHOES_EVERYDAY": {
        "target_category": "shoes",
        "target_filters": {"shape": "low_profile"},
        "target_limit": 3,
        "never_relax": ["shape"],
    },
    "BOTTOMS__OUTERWEAR_OPTIONAL": {
        "target_category": "outerwear",
        "target_filters": {
            "structure": "structured",
            "formality": "smart-casual",
            "outerwear_weight": ["light", "medium"],
        },
        "target_limit": 3,
        "relax_order": ["formality"],
        "never_relax": ["structure"],
    },

    # SHOES scanned
    "SHOES__TOP_RELAXED": {
        "target_category": "tops",
        "target_filters": {"structure": "soft", "volume": ["fitted", "oversized"]},
        "target_limit": 3,
        "relax_order": ["volume"],
        "never_relax": ["structure"],
    },
    "SHOES__BOTTOMS_STRUCTURED": {
        "target_category": "bottoms",
        "target_filters": {"structure": "structured", "shape": ["straight", "tapered"]},
        "target_limit": 3,
        "relax_order": ["shape"],
        "never_relax": ["structure"],
    },
    "SHOES__OUTERWEAR_MINIMAL": {
        "target_category": "outerwear",
        "target_filters": {"outerwear_weight": "light"},
        "target_limit": 3,
        "never_relax": ["outerwear_weight"],
    },

    # OUTERWEAR scanned
    "OUTERWEAR__TOP_BASE": {
        "target_category": "tops",
        "target_filters": {"structure": "soft", "volume": "fitted"},
        "target_limit": 3,
        "relax_order": ["volume"],
        "never_relax": ["structure"],
    },
    "OUTERWEAR__BOTTOMS_BALANCED": {
        "target_category": "bottoms",
        "target_filters": {"shape": ["straight", "wide", "tapered"]},
        "target_limit": 3,
        "relax_order": ["shape"],
    },
    "OUTERWEAR__SHOES_SIMPLE": {
        "target_category": "shoes",
        "target_filters": {"shape": "low_profile"},
        "target_limit": 3,
        "never_relax": ["shape"],
    },

    # DRESSES scanned
    "DRESSES__SHOES_SIMPLE": {
        "target_category": "shoes",
        "target_filters": {"shape": ["low_profile", "heeled"]},
        "target_limit": 3,
        "relax_order": ["shape"],
    },
    "DRESSES__OUTERWEAR_LIGHT": {
        "target_category": "outerwear",
        "target_filters": {"outerwear_weight": "light"},
        "target_limit": 3,
        "never_relax": ["outerwear_weight"],
    },
    "DRESSES__ACCESSORIES_MINIMAL": {
        "target_category": "accessories",
        "target_filters": {"tier": ["core", "staple"], "tone": ["neutral", "light"]},
        "target_limit": 3,
        "never_relax": ["tier"],
    },

    # SKIRTS scanned
    "SKIRTS__TOP_COMPLEMENTARY": {
        "target_category": "tops",
        "target_filters": {"tone": ["neutral", "light"], "structure": "soft"},
        "target_limit": 3,
        "relax_order": ["tone"],
        "never_relax": ["structure"],
    },
    "SKIRTS__SHOES_EVERYDAY": {
        "target_category": "shoes",
        "target_filters": {"shape": ["low_profile", "heeled"]},
        "target_limit": 3,
        "relax_order": ["shape"],
    },
    "SKIRTS__OUTERWEAR_OPTIONAL": {
        "target_category": "outerwear",
        "target_filters": {"outerwear_weight": "light"},
        "target_limit": 3,
        "never_relax": ["outerwear_weight"],
    },

    # BAGS scanned: show base pieces rather than one category
    "BAGS__OUTFIT_CLEAN": {
        "target_category": "tops",
        "target_filters": {"tone": ["neutral", "light"], "structure": "soft"},
        "target_limit": 3,
        "relax_order": ["tone"],
        "never_relax": ["structure"],
    },
    "BAGS__SHOES_NEUTRAL": {
        "target_category": "shoes",
        "target_filters": {"shape": "low_profile", "tone": ["neutral", "dark"]},
        "target_limit": 3,
        "relax_order": ["tone"],
        "never_relax": ["shape"],
    },
    "BAGS__ACCESSORIES_MINIMAL": {
        "target_category": "accessories",
        "target_filters": {},
        "target_limit": 3,
    },

    # ACCESSORIES scanned (ACCESSORIES__OUTFIT_SIMPLE is concept advice, no recipe)
    "ACCESSORIES__SHOES_NEUTRAL": {
        "target_category": "shoes",
        "target_filters": {"shape": "low_profile"},
        "target_limit": 3,
        "never_relax": ["shape"],
    },
    "ACCESSORIES__OUTERWEAR_CLEAN": {
        "target_category": "outerwear",
        "target_filters": {"outerwear_weight": "light"},
        "target_limit": 3,
        "never_relax": ["outerwear_weight"],
    },
}


def _a(category: Optional[str]) -> BulletTarget:
    return BulletTarget(BulletMode.A, Category(category) if category else None)


_B = BulletTarget(BulletMode.B)

BULLET_TARGETS: Dict[str, BulletTarget] = {
    **{key: _a(recipe["target_category"]) for key, recipe in BUNDLE_RECIPES.items()},
    "ACCESSORIES__OUTFIT_SIMPLE": _a(None),
    "DEFAULT__KEEP_SIMPLE": _a(None),
    "DEFAULT__NEUTRAL_COLORS": _a(None),
    "DEFAULT__AVOID_TEXTURE": _a(None),
    "FORMALITY_TENSION__MATCH_DRESSINESS": _B,
    "FORMALITY_TENSION__AVOID_MIX": _B,
    "STYLE_TENSION__LET_ONE_LEAD": _B,
    "STYLE_TENSION__STICK_CLASSIC": _B,
    "COLOR_TENSION__NEUTRAL_OTHERS": _B,
    "COLOR_TENSION__CONTRAST_OR_TONAL": _B,
    "USAGE_MISMATCH__CLEAR_CONTEXT": _B,
    "USAGE_MISMATCH__CONSISTENT_PURPOSE": _B,
    "SHOES_CONFIDENCE_DAMPEN__SIMPLE_SHOES": _B,
    "SHOES_CONFIDENCE_DAMPEN__MINIMAL_SHAPE": _B,
    "MISSING_KEY_SIGNAL__SIMPLE_VERSATILE": _B,
}


# =============================================================================
# Validation
# =============================================================================

def _as_category(value: Any) -> Optional[Category]:
    if isinstance(value, Category):
        return value
    try:
        return Category(value)
    except ValueError:
        return None


def _check_keys(where: str, keys, errors: List[str]) -> None:
    allowed = ", ".join(sorted(ALLOWED_FILTER_KEYS))
    for key in keys:
        key = key.value if isinstance(key, Enum) else key
        if key not in ALLOWED_FILTER_KEYS:
            errors.append(f'{where} has invalid key "{key}". Fix: remove "{key}" (allowed keys: {allowed})')


def _validate_recipe(key: str, recipe: Mapping[str, Any], errors: List[str]) -> None:
    where = f'BUNDLE_RECIPES["{key}"]'

    for field in sorted(set(recipe) - set(RECIPE_ALLOWED_KEYS)):
        hint = "copy fields belong with the bullet" if field in RECIPE_COPY_KEYS else (
            f"allowed keys: {', '.join(sorted(RECIPE_ALLOWED_KEYS))}"
        )
        errors.append(f'{where} has disallowed key "{field}". Fix: remove "{field}" ({hint})')

    if recipe.get("target_limit") is None:
        errors.append(f"{where} missing target_limit")

    category = _as_category(recipe.get("target_category"))
    if category is None:
        errors.append(f"{where} has invalid target_category {recipe.get('target_category')!r}")

    filters: Mapping[str, Any] = recipe.get("target_filters") or {}
    _check_keys(f"{where}.target_filters", filters, errors)
    for fkey, value in filters.items():
        values = filter_values(value)
        if not values:
            errors.append(f'{where}.target_filters has empty value set for "{fkey}"')
            continue
        if fkey not in ALLOWED_FILTER_KEYS or category is None:
            continue
        allowed = allowed_values(FilterKey(fkey), category)
        bad = [v for v in values if v not in allowed]
        if bad and fkey == FilterKey.OUTERWEAR_WEIGHT.value and category is not Category.OUTERWEAR:
            errors.append(
                f'{where}.target_filters.outerwear_weight is set but target_category is '
                f'"{category.value}" (expected "outerwear")'
            )
        elif bad:
            errors.append(
                f'{where}.target_filters has invalid value(s) {bad} for "{fkey}" on {category.value}'
            )

    if category is Category.OUTERWEAR and "outerwear_weight" not in filters:
        if any(p in key for p in OUTERWEAR_WEIGHT_REQUIRED_PATTERNS):
            errors.append(f"{where} targets outerwear and matches pattern but missing outerwear_weight filter")

    relax = list(recipe.get("relax_order") or [])
    never = list(recipe.get("never_relax") or [])
    _check_keys(f"{where}.relax_order", relax, errors)
    _check_keys(f"{where}.never_relax", never, errors)

    overlap = sorted(set(relax) & set(never))
    if overlap:
        errors.append(f"{where} lists {overlap} in both relax_order and never_relax")
    unfiltered = [k for k in never if k not in filters]
    if unfiltered:
        errors.append(f"{where}.never_relax keys {unfiltered} are not in target_filters")


def validate_recipe_tables(
    recipes: Mapping[str, Mapping[str, Any]] = BUNDLE_RECIPES,
    bullets: Mapping[str, BulletTarget] = BULLET_TARGETS,
) -> List[str]:
    """Check recipes and bullet targets together. Returns every violation."""
    errors: List[str] = []

    for key, target in bullets.items():
        if target.mode is BulletMode.A and target.target_category is not None and key not in recipes:
            errors.append(
                f'BULLET_TARGETS["{key}"] (Mode A) has target_category "{target.target_category.value}" '
                f"but no BUNDLE_RECIPES entry"
            )
        if target.mode is BulletMode.B and key in recipes:
            errors.append(f'BULLET_TARGETS["{key}"] (Mode B) should not have a BUNDLE_RECIPES entry')

    for key, recipe in recipes.items():
        target = bullets.get(key)
        if target is None:
            errors.append(f'BUNDLE_RECIPES["{key}"] is orphaned (no BULLET_TARGETS entry)')
        else:
            recipe_category = _as_category(recipe.get("target_category"))
            if target.target_category is not recipe_category:
                bullet_cat = target.target_category.value if target.target_category else None
                errors.append(
                    f'BULLET_TARGETS["{key}"].target_category is {bullet_cat!r} but '
                    f'BUNDLE_RECIPES["{key}"].target_category is {recipe.get("target_category")!r}'
                )
        _validate_recipe(key, recipe, errors)

    return errors


def load_bundle_recipes(
    recipes: Mapping[str, Mapping[str, Any]] = BUNDLE_RECIPES,
    bullets: Mapping[str, BulletTarget] = BULLET_TARGETS,
) -> Dict[str, BundleRecipe]:
    """
    Validate the tables and build typed recipes.

    Raises:
        RecipeSchemaError: with every violation, if there are any
    """
    errors = validate_recipe_tables(recipes, bullets)
    loaded: Dict[str, BundleRecipe] = {}

    if not errors:
        for key, raw in recipes.items():
            try:
                loaded[key] = BundleRecipe.model_validate(dict(raw))
            except ValidationError as e:
                for err in e.errors():
                    loc = ".".join(str(p) for p in err.get("loc", ()))
                    errors.append(f'BUNDLE_RECIPES["{key}"].{loc}: {err.get("msg")}')

    if errors:
        logger.error("Bundle recipe validation failed", error_count=len(errors))
        raise RecipeSchemaError(errors)

    logger.debug("Bundle recipes loaded", count=len(loaded))
    return loaded
