"""Scoring - score ledger, multipliers and combos."""

from .system import (
    COMBO_TYPES,
    SCORE_VALUES,
    PerformanceMetrics,
    ScoreEvent,
    ScoreMultiplier,
    ScoreSystem,
)

__all__ = [
    "COMBO_TYPES",
    "SCORE_VALUES",
    "PerformanceMetrics",
    "ScoreEvent",
    "ScoreMultiplier",
    "ScoreSystem",
]
