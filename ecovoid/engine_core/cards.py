"""
Card Model - Immutable card values shared by every engine component.

Two kinds of card circulate:
- Card: a standard playing card (suit, rank, numeric value)
- HallucinationCard: a hostile card that resolves on draw and never
  reaches the visible hand

Card identity is the id string: rank followed by the suit letter
("AS", "10H", "QC").
"""

from __future__ import annotations
from dataclasses import dataclass
from enum import Enum
from typing import Union


class Suit(Enum):
    """Card suits. The suit is the dispatch key for effect rules."""
    CLUBS = "clubs"
    DIAMONDS = "diamonds"
    HEARTS = "hearts"
    SPADES = "spades"

    @property
    def letter(self) -> str:
        return self.value[0].upper()

    @property
    def color(self) -> str:
        return "red" if self in (Suit.HEARTS, Suit.DIAMONDS) else "black"

    @classmethod
    def from_letter(cls, letter: str) -> Suit:
        for suit in cls:
            if suit.letter == letter.upper():
                return suit
        raise ValueError(f"Unknown suit letter: {letter}")


RANKS = ("2", "3", "4", "5", "6", "7", "8", "9", "10", "J", "Q", "K", "A")

RANK_VALUES = {
    **{str(n): n for n in range(2, 11)},
    "J": 11,
    "Q": 12,
    "K": 13,
    "A": 1,
}


class HallucinationKind(Enum):
    """Negative effects carried by hallucination cards."""
    LOSE_SANITY = "lose_sanity"
    DISCARD_HAND = "discard_hand"
    CANNOT_PLAY_SPADES = "cannot_play_spades"


@dataclass(frozen=True)
class Card:
    """A standard playing card."""
    id: str
    suit: Suit
    rank: str
    value: int
    art: str | None = None

    is_hallucination = False

    @property
    def color(self) -> str:
        return self.suit.color

    def __str__(self) -> str:
        return self.id


@dataclass(frozen=True)
class HallucinationCard:
    """
    A hostile card injected by corruption.

    conjured=True marks a card produced by draw-time substitution; it
    leaves circulation once resolved. Cards shuffled into the deck by the
    adversary are not conjured and go back to the discard pile.
    """
    id: str
    kind: HallucinationKind
    name: str
    description: str
    conjured: bool = False

    is_hallucination = True
    suit = None
    value = 0

    def __str__(self) -> str:
        return self.id


AnyCard = Union[Card, HallucinationCard]


def make_card(rank: str, suit: Suit, art: str | None = None) -> Card:
    """Build a card from rank and suit."""
    rank = rank.upper()
    if rank not in RANK_VALUES:
        raise ValueError(f"Unknown rank: {rank}")
    return Card(
        id=f"{rank}{suit.letter}",
        suit=suit,
        rank=rank,
        value=RANK_VALUES[rank],
        art=art,
    )


def parse_card_id(card_id: str) -> Card:
    """Parse an id such as "10H" or "qs" into a Card."""
    card_id = card_id.strip()
    if len(card_id) < 2:
        raise ValueError(f"Invalid card id: {card_id!r}")
    return make_card(card_id[:-1], Suit.from_letter(card_id[-1]))


def standard_deck() -> list[Card]:
    """The 52 cards in suit then rank order (unshuffled)."""
    return [make_card(rank, suit) for suit in Suit for rank in RANKS]
