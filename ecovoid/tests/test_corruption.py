"""
Tests for corruption and hallucinations.
"""

import random

import pytest

from ..engine_core.cards import HallucinationKind, parse_card_id
from ..engine_core.hallucination import SANITY_LOSS, CorruptionCurve, HallucinationSystem
from ..engine_core.state import CANNOT_PLAY_SPADES


class TestCorruptionCurve:
    """Tests for the substitution probability curve."""

    def test_chance_grows_and_caps(self):
        curve = CorruptionCurve(per_level=0.05, cap=0.5)
        assert curve.chance(0) == 0.0
        assert curve.chance(4) == pytest.approx(0.2)
        assert curve.chance(50) == 0.5

    def test_cap_must_stay_below_one(self):
        with pytest.raises(ValueError):
            CorruptionCurve(cap=1.0)


class TestHallucinationSystem:
    """Tests for corruption growth and hallucination effects."""

    def test_increase_steps_corruption(self, hallucination, store):
        hallucination.increase()
        hallucination.increase()
        assert store.state.corruption_level == 2

    def test_lose_sanity(self, hallucination, store):
        hallucination.apply_hallucination_effect(hallucination.create(HallucinationKind.LOSE_SANITY))
        assert store.sanity == 20 - SANITY_LOSS

    def test_discard_hand(self, hallucination, store, deck, set_hand):
        set_hand(store, "2S", "3S")
        before = deck.discard_count()
        hallucination.apply_hallucination_effect(hallucination.create(HallucinationKind.DISCARD_HAND))
        assert store.hand == []
        # two cards plus the hallucination itself
        assert deck.discard_count() == before + 3

    def test_cannot_play_spades(self, hallucination, store):
        hallucination.apply_hallucination_effect(hallucination.create(HallucinationKind.CANNOT_PLAY_SPADES))
        assert store.state.player_statuses[CANNOT_PLAY_SPADES] == 0

    def test_conjured_card_leaves_circulation(self, hallucination, deck):
        before = deck.discard_count()
        hallucination.apply_hallucination_effect(hallucination.conjure())
        assert deck.discard_count() == before

    def test_inject_shuffles_into_deck(self, hallucination, deck, log):
        before = deck.deck_count()
        cards = hallucination.inject(2)
        assert len(cards) == 2
        assert deck.deck_count() == before + 2
        assert log.messages[-1].type.value == "hallucination"

    def test_no_substitution_at_zero_corruption(self, store, deck):
        system = HallucinationSystem(store, deck, rng=random.Random(0))
        assert not any(system.should_substitute() for _ in range(100))

    def test_ids_are_unique(self, hallucination):
        ids = {hallucination.create().id for _ in range(20)}
        assert len(ids) == 20

    def test_hallucination_not_a_hand_card(self, hallucination):
        card = hallucination.create()
        assert card.is_hallucination
        assert not parse_card_id("2S").is_hallucination
