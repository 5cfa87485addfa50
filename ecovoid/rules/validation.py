"""
Ruleset Validation - Load-time checks for card rules.

Validates that:
1. Every rule has a non-empty condition and at least one effect
2. Effects name a target and stat that make sense together
3. Formulas parse and only use known variables and functions
4. Costs and durations are in range
5. Conditions reference real suits, colors and ranks
"""

from __future__ import annotations
from dataclasses import dataclass, field

from ..engine_core.cards import RANKS, Suit
from ..engine_core.expression import ExpressionError, ExpressionEvaluator
from .effect_dsl import CardRule, EffectType, RuleEffect, Ruleset, Stat, Status, Target


class RulesetValidationError(Exception):
    """Raised when a ruleset fails validation."""

    def __init__(self, errors: list[str]):
        self.errors = errors
        super().__init__(f"Ruleset validation failed with {len(errors)} error(s)")


@dataclass
class ValidationResult:
    """Result of validation, with errors and warnings."""
    valid: bool
    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)


# Which (target, stat) pairs each stat effect accepts
_STAT_TARGETS = {
    EffectType.DEAL_DAMAGE: {
        Target.ECO: {Stat.HP},
        Target.PLAYER: {Stat.PV, Stat.COR, Stat.PA},
    },
    EffectType.HEAL_STAT: {
        Target.ECO: {Stat.HP},
        Target.PLAYER: {Stat.PV, Stat.COR, Stat.PA},
    },
}

_STATUS_TARGETS = {
    Status.EXPOSED: Target.ECO,
    Status.CANNOT_PLAY_SPADES: Target.PLAYER,
    Status.CRITICAL_BOOST: Target.PLAYER,
}

_NODE_TARGETS = {Target.RANDOM, Target.CHOICE, Target.NODE}


def validate_ruleset(
    ruleset: Ruleset,
    node_ids: set[str] | None = None,
    raise_on_error: bool = False,
) -> ValidationResult:
    """
    Validate a complete ruleset.

    Returns ValidationResult with errors and warnings.
    Raises RulesetValidationError if raise_on_error=True and errors exist.
    """
    errors: list[str] = []
    warnings: list[str] = []
    evaluator = ExpressionEvaluator()

    for label, rules in (("player_actions", ruleset.player_actions), ("eco_attacks", ruleset.eco_attacks)):
        for i, rule in enumerate(rules):
            errors.extend(_validate_rule(rule, f"{label}[{i}]", evaluator, node_ids))

        covered = {rule.condition.suit for rule in rules if rule.condition.suit}
        covered_colors = {rule.condition.color for rule in rules if rule.condition.color}
        for suit in Suit:
            if suit.value not in covered and suit.color not in covered_colors:
                warnings.append(f"{label}: no rule covers suit {suit.value}")

        seen: set[tuple] = set()
        for rule in rules:
            key = tuple(sorted(rule.condition.to_dict().items()))
            if key in seen:
                warnings.append(f"{label}: duplicate condition {dict(key)} (first rule wins)")
            seen.add(key)

    for card_id, event in ruleset.events.items():
        if not event.effects:
            warnings.append(f"event {card_id}: no effects")
        for j, effect in enumerate(event.effects):
            errors.extend(_validate_effect(effect, f"event {card_id}.effects[{j}]", evaluator, node_ids))

    if raise_on_error and errors:
        raise RulesetValidationError(errors)

    return ValidationResult(valid=len(errors) == 0, errors=errors, warnings=warnings)


def _validate_rule(
    rule: CardRule,
    where: str,
    evaluator: ExpressionEvaluator,
    node_ids: set[str] | None,
) -> list[str]:
    errors = []
    cond = rule.condition
    if cond.is_empty:
        errors.append(f"{where}: condition is empty")
    if cond.suit and cond.suit not in {s.value for s in Suit}:
        errors.append(f"{where}: unknown suit {cond.suit!r}")
    if cond.color and cond.color not in ("red", "black"):
        errors.append(f"{where}: unknown color {cond.color!r}")
    if cond.rank and cond.rank not in RANKS:
        errors.append(f"{where}: unknown rank {cond.rank!r}")
    if cond.card_id and cond.card_id[:-1].upper() not in RANKS:
        errors.append(f"{where}: unknown card id {cond.card_id!r}")
    if rule.cost < 0:
        errors.append(f"{where}: cost must be >= 0")
    if not rule.effects:
        errors.append(f"{where}: rule has no effects")
    for j, effect in enumerate(rule.effects):
        errors.extend(_validate_effect(effect, f"{where}.effects[{j}]", evaluator, node_ids))
    return errors


def _validate_effect(
    effect: RuleEffect,
    where: str,
    evaluator: ExpressionEvaluator,
    node_ids: set[str] | None,
) -> list[str]:
    errors = []

    if isinstance(effect.value, str):
        try:
            evaluator.compile(effect.value)
        except ExpressionError as e:
            errors.append(f"{where}: {e}")
    elif isinstance(effect.value, bool) or not isinstance(effect.value, (int, float)):
        errors.append(f"{where}: value must be a number or formula")
    elif effect.value < 0:
        errors.append(f"{where}: value must be >= 0")

    if effect.type in _STAT_TARGETS:
        allowed = _STAT_TARGETS[effect.type].get(effect.target)
        if allowed is None:
            errors.append(f"{where}: {effect.type.value} cannot target {effect.target.value}")
        elif effect.target_stat is None:
            errors.append(f"{where}: {effect.type.value} requires target_stat")
        elif effect.target_stat not in allowed:
            errors.append(
                f"{where}: stat {effect.target_stat.value} invalid for target {effect.target.value}"
            )

    elif effect.type in (EffectType.DRAW_CARDS, EffectType.DISCARD_CARDS):
        if effect.target != Target.PLAYER:
            errors.append(f"{where}: {effect.type.value} must target PLAYER")

    elif effect.type == EffectType.APPLY_STATUS:
        if effect.status is None:
            errors.append(f"{where}: APPLY_STATUS requires status")
        elif _STATUS_TARGETS[effect.status] != effect.target:
            errors.append(
                f"{where}: status {effect.status.value} must target "
                f"{_STATUS_TARGETS[effect.status].value}"
            )
        if effect.duration is not None and effect.duration < 0:
            errors.append(f"{where}: duration must be >= 0")

    elif effect.type in (EffectType.REPAIR_NODE, EffectType.DAMAGE_NODE):
        if effect.target not in _NODE_TARGETS:
            errors.append(f"{where}: {effect.type.value} must target a node")
        if effect.target == Target.NODE:
            if not effect.node_id:
                errors.append(f"{where}: target NODE requires node_id")
            elif node_ids is not None and effect.node_id not in node_ids:
                errors.append(f"{where}: unknown node {effect.node_id!r}")

    return errors
