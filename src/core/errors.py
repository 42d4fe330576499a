"""
Exception types for the rules engine.

Configuration problems are programmer errors: they are collected in full
and raised once at startup so every remaining problem shows up in a single
run. Rule evaluation itself never raises on bad upstream data.
"""

from typing import Iterable, List


class RulesEngineError(Exception):
    """Base class for all errors raised by this package."""


class ConfigValidationError(RulesEngineError):
    """One or more configuration violations, carried together."""

    def __init__(self, errors: Iterable[str], title: str = "Configuration validation failed"):
        self.errors: List[str] = list(errors)
        self.title = title
        formatted = "\n".join(f"  - {e}" for e in self.errors)
        super().__init__(f"{title} ({len(self.errors)} error(s)):\n{formatted}")


class RecipeSchemaError(ConfigValidationError):
    """Bundle recipe / bullet target tables failed the startup validator."""

    def __init__(self, errors: Iterable[str]):
        super().__init__(errors, title="Bundle recipe validation failed")
