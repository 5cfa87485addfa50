"""
Deck & Discard Manager - Draw piles and discard piles for both sides.

The survivor and the Eco each own an independent 52-card deck. Drawing
from an empty pile shuffles that side's discard pile back in; if both are
empty the draw simply yields fewer cards.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum
from typing import Iterable
import logging
import random

from .cards import AnyCard, standard_deck

logger = logging.getLogger(__name__)


class DeckOwner(Enum):
    PLAYER = "player"
    ECO = "eco"


@dataclass
class Pile:
    """A draw pile and its discard pile. The top of the deck is the end of the list."""
    deck: list[AnyCard] = field(default_factory=list)
    discard: list[AnyCard] = field(default_factory=list)

    @property
    def available(self) -> int:
        return len(self.deck) + len(self.discard)


class DeckManager:
    """
    Owns both decks.

    The rng is injectable so tests can substitute a seeded
    random.Random for deterministic shuffles.
    """

    def __init__(self, rng: random.Random | None = None):
        self.rng = rng or random.Random()
        self._piles: dict[DeckOwner, Pile] = {owner: Pile() for owner in DeckOwner}

    def reset(
        self,
        player_cards: Iterable[AnyCard] | None = None,
        eco_cards: Iterable[AnyCard] | None = None,
        shuffle: bool = True,
    ) -> None:
        """Rebuild both decks (standard decks unless cards are given)."""
        sources = {
            DeckOwner.PLAYER: player_cards,
            DeckOwner.ECO: eco_cards,
        }
        for owner, cards in sources.items():
            pile = Pile(deck=list(cards) if cards is not None else standard_deck())
            self._piles[owner] = pile
            if shuffle:
                self.rng.shuffle(pile.deck)

    def pile(self, owner: DeckOwner = DeckOwner.PLAYER) -> Pile:
        return self._piles[owner]

    def deck_count(self, owner: DeckOwner = DeckOwner.PLAYER) -> int:
        return len(self._piles[owner].deck)

    def discard_count(self, owner: DeckOwner = DeckOwner.PLAYER) -> int:
        return len(self._piles[owner].discard)

    def shuffle(self, owner: DeckOwner = DeckOwner.PLAYER) -> None:
        self.rng.shuffle(self._piles[owner].deck)

    def draw(self, owner: DeckOwner = DeckOwner.PLAYER, count: int = 1) -> list[AnyCard]:
        """Draw up to count cards, reshuffling the discard pile when needed."""
        pile = self._piles[owner]
        drawn: list[AnyCard] = []
        for _ in range(max(0, count)):
            if not pile.deck:
                if not pile.discard:
                    logger.info("%s deck and discard exhausted", owner.value)
                    break
                self._reshuffle(owner)
            drawn.append(pile.deck.pop())
        return drawn

    def draw_one(self, owner: DeckOwner = DeckOwner.PLAYER) -> AnyCard | None:
        cards = self.draw(owner, 1)
        return cards[0] if cards else None

    def discard(self, cards: Iterable[AnyCard], owner: DeckOwner = DeckOwner.PLAYER) -> None:
        """Move cards to the discard pile. Conjured hallucinations vanish instead."""
        pile = self._piles[owner]
        for card in cards:
            if getattr(card, "conjured", False):
                continue
            pile.discard.append(card)

    def add_to_deck(
        self,
        cards: Iterable[AnyCard],
        owner: DeckOwner = DeckOwner.PLAYER,
        shuffle: bool = True,
    ) -> None:
        """Put cards into the draw pile (hallucination injection)."""
        pile = self._piles[owner]
        pile.deck.extend(cards)
        if shuffle:
            self.rng.shuffle(pile.deck)

    def _reshuffle(self, owner: DeckOwner) -> None:
        pile = self._piles[owner]
        logger.debug("Reshuffling %d discarded card(s) into %s deck", len(pile.discard), owner.value)
        pile.deck = pile.discard
        pile.discard = []
        self.rng.shuffle(pile.deck)
