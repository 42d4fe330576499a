"""
Core module for cross-cutting concerns.

This module provides:
- Structured logging configuration
- Error types
- Shared enumerations (category, confidence tier)
- A bounded LRU cache
"""

from core.logging import configure_logging, get_logger, scan_context
from core.errors import RulesEngineError, ConfigValidationError, RecipeSchemaError
from core.types import Category, ConfidenceTier, weakest_tier
from core.lru import BoundedLRUCache

__all__ = [
    "configure_logging",
    "get_logger",
    "scan_context",
    "RulesEngineError",
    "ConfigValidationError",
    "RecipeSchemaError",
    "Category",
    "ConfidenceTier",
    "weakest_tier",
    "BoundedLRUCache",
]
