"""
Tests for the card effect engine.

Tests:
- Survivor rules by suit (attack, heal, repair + expose, search)
- Eco attacks and difficulty scaling
- Critical hits on an exposed Eco
- Dynamic events
- Draw-time hallucination handling
"""

import random

from ..engine_core.cards import parse_card_id
from ..engine_core.deck import DeckOwner
from ..engine_core.effect_resolver import CardEffectEngine, EffectSource
from ..engine_core.hallucination import CorruptionCurve, HallucinationSystem
from ..engine_core.state import CANNOT_PLAY_SPADES
from ..rules import Ruleset, validate_ruleset


class TestPlayerRules:
    """Tests for cards played by the survivor."""

    def test_spades_damage_the_eco(self, engine, store):
        outcome = engine.apply_effect(parse_card_id("5S"))
        assert store.eco_hp == 45
        assert outcome.damage_to_eco == 5
        assert not outcome.critical

    def test_exposed_eco_takes_double_damage_once(self, engine, store):
        store.expose_eco(1)
        outcome = engine.apply_effect(parse_card_id("5S"))
        assert outcome.damage_to_eco == 10
        assert outcome.critical
        assert not store.state.eco_exposed
        engine.apply_effect(parse_card_id("4S"))
        assert store.eco_hp == 36

    def test_hearts_restore_sanity(self, engine, store):
        store.modify_sanity(-8)
        outcome = engine.apply_effect(parse_card_id("6H"))
        assert store.sanity == 18
        assert outcome.healed == 6

    def test_clubs_repair_and_expose(self, engine, store, nodes):
        """Clubs patch the most damaged node and expose the Eco."""
        nodes.damage_node("radio", 5)
        nodes.damage_node("pump", 2)
        outcome = engine.apply_effect(parse_card_id("8C"))
        assert nodes.get_node("radio").damage == 3
        assert outcome.nodes_repaired == ["radio"]
        assert store.state.eco_exposed

    def test_clubs_repair_chosen_node(self, engine, nodes):
        nodes.damage_node("radio", 5)
        nodes.damage_node("pump", 2)
        engine.apply_effect(parse_card_id("8C"), target_node_id="pump")
        assert nodes.get_node("pump").damage == 0
        assert nodes.get_node("radio").damage == 5

    def test_diamonds_draw(self, engine, store):
        outcome = engine.apply_effect(parse_card_id("10D"))
        assert len(outcome.cards_drawn) == 3
        assert len(store.hand) == 3

    def test_critical_boost_adds_to_later_attacks(self, engine, store):
        engine.apply_effect(parse_card_id("KS"))
        assert store.state.critical_damage_boost == 1
        engine.apply_effect(parse_card_id("2S"))
        assert store.eco_hp == 50 - 13 - 3


class TestEcoRules:
    """Tests for cards played by the Eco."""

    def test_spades_hurt_health(self, engine, store):
        outcome = engine.apply_effect(parse_card_id("9S"), EffectSource.ECO)
        assert store.pv == 15
        assert outcome.damage_to_player == 5

    def test_damage_scales_with_difficulty(self, engine, store):
        engine.apply_effect(parse_card_id("8S"), EffectSource.ECO, scale=1.5)
        assert store.pv == 14

    def test_king_of_hearts_blocks_spades(self, engine, store):
        engine.apply_effect(parse_card_id("KH"), EffectSource.ECO)
        assert store.state.has_status(CANNOT_PLAY_SPADES)
        assert store.sanity == 13

    def test_unmapped_card_is_a_noop(self, store, deck, nodes, log):
        from ..rules import Ruleset

        engine = CardEffectEngine(store, deck, nodes, Ruleset(), log=log)
        outcome = engine.apply_effect(parse_card_id("5S"))
        assert not outcome.resolved
        assert store.eco_hp == 50


class TestEvents:
    """Tests for dynamic events."""

    def test_event_resolves(self, engine, nodes):
        outcome = engine.apply_event(parse_card_id("QS"))
        assert outcome is not None
        assert nodes.get_node("pump").damage == 2

    def test_no_event_for_card(self, engine):
        assert engine.apply_event(parse_card_id("3H")) is None


class TestDrawing:
    """Tests for draw_to_hand and hallucinations."""

    def test_fill_hand(self, engine, store):
        engine.fill_hand()
        assert len(store.hand) == store.state.max_hand_size

    def test_draw_without_overflow_respects_hand_size(self, engine, store):
        engine.fill_hand()
        assert engine.draw_to_hand(2) == []

    def test_drawn_hallucination_never_reaches_hand(self, store, deck, nodes, content, log):
        """An injected hallucination is resolved and replaced by a real card."""
        system = HallucinationSystem(store, deck, log=log, rng=random.Random(5), curve=CorruptionCurve(per_level=0.0, cap=0.0))
        engine = CardEffectEngine(store, deck, nodes, content.ruleset, hallucination=system, log=log)
        deck.reset(player_cards=[parse_card_id("2H"), parse_card_id("3H")], shuffle=False)
        deck.add_to_deck([system.create()], shuffle=False)

        drawn = engine.draw_to_hand(2)

        assert [c.id for c in drawn] == ["3H", "2H"]
        assert all(not c.is_hallucination for c in store.hand)
        assert any(c.is_hallucination for c in deck.pile(DeckOwner.PLAYER).discard)

    def test_conjured_hallucinations_are_replaced(self, store, deck, nodes, content, log):
        """With a high substitution chance draws still never hold hallucinations."""
        system = HallucinationSystem(store, deck, log=log, rng=random.Random(9), curve=CorruptionCurve(per_level=0.1, cap=0.5))
        store.set_corruption_level(10)
        engine = CardEffectEngine(store, deck, nodes, content.ruleset, hallucination=system, log=log)

        drawn = engine.draw_to_hand(5)

        assert len(drawn) <= 5
        assert len(store.hand) <= 5
        assert all(not c.is_hallucination for c in store.hand)
        assert store.sanity <= 20

    def test_repair_with_cards(self, engine, nodes):
        nodes.damage_node("generator", 6)
        repaired = engine.repair_with_cards("generator", [parse_card_id("6C"), parse_card_id("7C")])
        assert repaired == 2
        assert nodes.get_node("generator").damage == 4


class TestFormulaFailures:
    """Formulas that parse but cannot be evaluated in the current state."""

    def test_failing_formula_counts_as_zero(self, store, deck, nodes, log):
        ruleset = Ruleset.from_dict({
            "player_actions": [
                {
                    "condition": {"suit": "spades"},
                    "effects": [
                        {"type": "DEAL_DAMAGE", "target": "ECO", "target_stat": "HP", "value": "CARD_VALUE / CORRUPTION"},
                        {"type": "HEAL_STAT", "target": "PLAYER", "target_stat": "COR", "value": 2},
                    ],
                }
            ]
        })
        assert validate_ruleset(ruleset).errors == []
        store.modify_sanity(-5)
        engine = CardEffectEngine(store, deck, nodes, ruleset, log=log)

        outcome = engine.apply_effect(parse_card_id("5S"))

        assert store.eco_hp == 50
        assert outcome.damage_to_eco == 0
        assert store.sanity == 17
