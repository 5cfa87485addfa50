"""
Tests for cards and the deck manager.

Tests:
- Card ids, values and parsing
- Drawing, reshuffling and exhaustion
- Conjured hallucinations leaving circulation
"""

import random

import pytest

from ..engine_core.cards import (
    HallucinationCard,
    HallucinationKind,
    Suit,
    make_card,
    parse_card_id,
    standard_deck,
)
from ..engine_core.deck import DeckManager, DeckOwner


class TestCards:
    """Tests for the card model."""

    def test_standard_deck_has_52_unique_cards(self):
        """A standard deck holds every rank of every suit once."""
        deck = standard_deck()
        assert len(deck) == 52
        assert len({c.id for c in deck}) == 52

    def test_face_and_ace_values(self):
        """J/Q/K are 11/12/13 and the ace is worth 1."""
        assert make_card("J", Suit.SPADES).value == 11
        assert make_card("Q", Suit.HEARTS).value == 12
        assert make_card("K", Suit.CLUBS).value == 13
        assert make_card("A", Suit.DIAMONDS).value == 1

    def test_parse_card_id(self):
        """Ids are rank then suit letter, case-insensitive."""
        card = parse_card_id("10h")
        assert card.id == "10H"
        assert card.suit == Suit.HEARTS
        assert card.value == 10
        assert card.color == "red"

    def test_parse_rejects_garbage(self):
        """Unknown ranks and suits raise ValueError."""
        with pytest.raises(ValueError):
            parse_card_id("1X")
        with pytest.raises(ValueError):
            parse_card_id("ZS")

    def test_hallucination_is_flagged(self):
        """Hallucinations carry no suit and are flagged."""
        card = HallucinationCard(
            id="hallucination_lose_sanity_1",
            kind=HallucinationKind.LOSE_SANITY,
            name="Whispers",
            description="",
        )
        assert card.is_hallucination
        assert card.suit is None
        assert not make_card("2", Suit.CLUBS).is_hallucination


class TestDeckManager:
    """Tests for draw and discard piles."""

    @pytest.fixture
    def small_deck(self):
        deck = DeckManager(rng=random.Random(0))
        deck.reset(
            player_cards=[parse_card_id(i) for i in ("2S", "3S", "4S")],
            eco_cards=[parse_card_id("KH")],
            shuffle=False,
        )
        return deck

    def test_decks_are_independent(self):
        """Each side starts with its own 52 cards."""
        deck = DeckManager(rng=random.Random(0))
        deck.reset()
        deck.draw(DeckOwner.PLAYER, 5)
        assert deck.deck_count(DeckOwner.PLAYER) == 47
        assert deck.deck_count(DeckOwner.ECO) == 52

    def test_draw_takes_from_the_top(self, small_deck):
        """The top of the deck is the end of the list."""
        drawn = small_deck.draw(DeckOwner.PLAYER, 2)
        assert [c.id for c in drawn] == ["4S", "3S"]
        assert small_deck.deck_count() == 1

    def test_empty_deck_reshuffles_discard(self, small_deck):
        """Drawing past the deck pulls the discard pile back in."""
        first = small_deck.draw(DeckOwner.PLAYER, 3)
        small_deck.discard(first)
        assert small_deck.deck_count() == 0
        assert small_deck.discard_count() == 3

        again = small_deck.draw(DeckOwner.PLAYER, 2)
        assert len(again) == 2
        assert small_deck.discard_count() == 0
        assert small_deck.deck_count() == 1

    def test_exhaustion_yields_fewer_cards(self, small_deck):
        """With deck and discard empty the draw comes up short, never raises."""
        drawn = small_deck.draw(DeckOwner.PLAYER, 10)
        assert len(drawn) == 3
        assert small_deck.draw_one(DeckOwner.PLAYER) is None

    def test_conjured_hallucinations_vanish_on_discard(self, small_deck):
        """Conjured cards leave circulation; injected ones go to the discard pile."""
        conjured = HallucinationCard("h1", HallucinationKind.DISCARD_HAND, "Blackout", "", conjured=True)
        injected = HallucinationCard("h2", HallucinationKind.DISCARD_HAND, "Blackout", "")
        small_deck.discard([conjured, injected])
        assert small_deck.pile().discard == [injected]

    def test_add_to_deck(self, small_deck):
        """Injected cards join the draw pile."""
        card = HallucinationCard("h3", HallucinationKind.LOSE_SANITY, "Whispers", "")
        small_deck.add_to_deck([card])
        assert small_deck.deck_count() == 4
        assert card in small_deck.pile().deck
