"""
Tests for rule formulas, rule matching and ruleset validation.
"""

import pytest

from ..engine_core.cards import parse_card_id
from ..engine_core.expression import ExpressionError, ExpressionEvaluator, evaluate_expression
from ..rules import Ruleset, RulesetValidationError, validate_ruleset


class TestExpressions:
    """Tests for the formula evaluator."""

    @pytest.mark.parametrize(
        "expr,value,expected",
        [
            ("CARD_VALUE", 7, 7),
            ("ceil(CARD_VALUE / 2)", 7, 4),
            ("floor(CARD_VALUE / 5) + 1", 12, 3),
            ("max(1, CARD_VALUE - 5)", 3, 1),
            (4, 9, 4),
            ("-3", 9, 0),
        ],
    )
    def test_evaluate(self, expr, value, expected):
        assert evaluate_expression(expr, card_value=value) == expected

    def test_extra_variables(self):
        assert evaluate_expression("TURN + CORRUPTION", TURN=3, CORRUPTION=2) == 5

    @pytest.mark.parametrize(
        "expr",
        ["__import__('os')", "CARD_VALUE.real", "open(1)", "UNKNOWN + 1", "[1, 2]", "ceil()"],
    )
    def test_rejects_unsafe_or_unknown(self, expr):
        with pytest.raises(ExpressionError):
            ExpressionEvaluator().compile(expr)

    def test_division_by_zero(self):
        with pytest.raises(ExpressionError):
            ExpressionEvaluator().evaluate("CARD_VALUE / 0")


class TestRuleMatching:
    """Tests for most-specific-rule selection."""

    def test_specific_rule_wins(self, content):
        """AS has its own rule; other spades use the suit rule."""
        rule = content.ruleset.match_player(parse_card_id("AS"))
        assert rule.condition.card_id == "AS"
        rule = content.ruleset.match_player(parse_card_id("5S"))
        assert rule.condition.suit == "spades" and rule.condition.card_id is None

    def test_rank_and_suit_beats_suit(self, content):
        rule = content.ruleset.match_player(parse_card_id("KS"))
        assert rule.cost == 2

    def test_events_keyed_by_card(self, content):
        assert content.ruleset.event_for(parse_card_id("7D")).name == "Supply cache"
        assert content.ruleset.event_for(parse_card_id("8D")) is None


class TestValidation:
    """Tests for validate_ruleset."""

    def test_default_ruleset_is_valid(self, content):
        result = validate_ruleset(content.ruleset, node_ids=content.node_ids)
        assert result.valid
        assert result.errors == []

    def test_bad_formula_is_an_error(self):
        ruleset = Ruleset.from_dict({
            "player_actions": [
                {
                    "condition": {"suit": "spades"},
                    "effects": [{"type": "DEAL_DAMAGE", "target": "ECO", "target_stat": "HP", "value": "CARD_VALUE +"}],
                }
            ]
        })
        result = validate_ruleset(ruleset)
        assert not result.valid
        assert any("player_actions[0]" in e for e in result.errors)

    def test_unknown_node_is_an_error(self):
        ruleset = Ruleset.from_dict({
            "events": [
                {"id": "2S", "event": "Leak", "effects": [{"type": "DAMAGE_NODE", "target": "NODE", "node_id": "reactor", "value": 1}]}
            ]
        })
        result = validate_ruleset(ruleset, node_ids={"pump"})
        assert not result.valid

    def test_uncovered_suits_are_warnings(self):
        ruleset = Ruleset.from_dict({
            "player_actions": [
                {
                    "condition": {"suit": "spades"},
                    "effects": [{"type": "DEAL_DAMAGE", "target": "ECO", "target_stat": "HP", "value": 1}],
                }
            ]
        })
        result = validate_ruleset(ruleset)
        assert result.valid
        assert any("hearts" in w for w in result.warnings)

    def test_raise_on_error(self):
        ruleset = Ruleset.from_dict({
            "player_actions": [
                {"condition": {"suit": "spades"}, "effects": [{"type": "DEAL_DAMAGE", "target": "ECO", "value": "nope"}]}
            ]
        })
        with pytest.raises(RulesetValidationError) as excinfo:
            validate_ruleset(ruleset, raise_on_error=True)
        assert excinfo.value.errors
