"""Card rules - data-driven effect catalogs and their validation."""

from .effect_dsl import (
    CardRule,
    EffectType,
    EventRule,
    RuleCondition,
    RuleEffect,
    Ruleset,
    Stat,
    Status,
    Target,
)
from .validation import RulesetValidationError, ValidationResult, validate_ruleset

__all__ = [
    "CardRule",
    "EffectType",
    "EventRule",
    "RuleCondition",
    "RuleEffect",
    "Ruleset",
    "Stat",
    "Status",
    "Target",
    "RulesetValidationError",
    "ValidationResult",
    "validate_ruleset",
]
