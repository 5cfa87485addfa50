"""
Hallucination System - Corruption level and the hostile cards it breeds.

Corruption rises by a fixed step every maintenance. At draw time a
normal draw may be replaced by a conjured hallucination with a
probability that grows with corruption and is capped below 1. The Eco
can also shuffle hallucinations straight into the survivor's deck.
"""

from __future__ import annotations
from dataclasses import dataclass
import itertools
import logging
import random

from .cards import HallucinationCard, HallucinationKind
from .deck import DeckManager, DeckOwner
from .game_log import GameLog, LogSource, LogType
from .state import CANNOT_PLAY_SPADES, GameStateStore

logger = logging.getLogger(__name__)

SANITY_LOSS = 2

HALLUCINATION_TEXT = {
    HallucinationKind.LOSE_SANITY: (
        "Whispers in the Static",
        "Voices from the speakers. Lose 2 sanity.",
    ),
    HallucinationKind.DISCARD_HAND: (
        "Phantom Blackout",
        "The lights die and your tools slip away. Discard your hand.",
    ),
    HallucinationKind.CANNOT_PLAY_SPADES: (
        "Trembling Hands",
        "You cannot bring yourself to attack. No Spades this turn.",
    ),
}


@dataclass(frozen=True)
class CorruptionCurve:
    """
    Substitution probability as a function of corruption level.

    chance = min(cap, level * per_level)
    """
    step: int = 1
    per_level: float = 0.05
    cap: float = 0.5

    def __post_init__(self):
        if not 0.0 <= self.cap < 1.0:
            raise ValueError(f"Hallucination cap must be in [0, 1), got {self.cap}")
        if self.per_level < 0 or self.step < 0:
            raise ValueError("Corruption step and per_level must be non-negative")

    def chance(self, level: int) -> float:
        return min(self.cap, max(0, level) * self.per_level)


class HallucinationSystem:
    """Owns corruption growth, hallucination creation and their effects."""

    def __init__(
        self,
        store: GameStateStore,
        deck: DeckManager,
        log: GameLog | None = None,
        rng: random.Random | None = None,
        curve: CorruptionCurve | None = None,
    ):
        self.store = store
        self.deck = deck
        self.log = log
        self.rng = rng or random.Random()
        self.curve = curve or CorruptionCurve()
        self._ids = itertools.count(1)

    @property
    def level(self) -> int:
        return self.store.state.corruption_level

    def increase(self) -> int:
        """Raise corruption by one step (called at maintenance)."""
        level = self.level + self.curve.step
        self.store.set_corruption_level(level)
        logger.debug("Corruption level now %d", level)
        return level

    def substitution_chance(self) -> float:
        return self.curve.chance(self.level)

    def should_substitute(self) -> bool:
        return self.rng.random() < self.substitution_chance()

    def create(self, kind: HallucinationKind | None = None, conjured: bool = False) -> HallucinationCard:
        kind = kind or self.rng.choice(list(HallucinationKind))
        name, description = HALLUCINATION_TEXT[kind]
        return HallucinationCard(
            id=f"hallucination_{kind.value}_{next(self._ids)}",
            kind=kind,
            name=name,
            description=description,
            conjured=conjured,
        )

    def conjure(self) -> HallucinationCard:
        """A hallucination that replaces a normal draw."""
        return self.create(conjured=True)

    def inject(self, count: int = 1) -> list[HallucinationCard]:
        """Shuffle fresh hallucinations into the survivor's deck."""
        cards = [self.create() for _ in range(max(0, count))]
        if cards:
            self.deck.add_to_deck(cards, DeckOwner.PLAYER, shuffle=True)
            if self.log:
                self.log.add(
                    f"The Eco seeds {len(cards)} hallucination(s) into your deck",
                    source=LogSource.ECO,
                    type=LogType.HALLUCINATION,
                )
        return cards

    def apply_hallucination_effect(self, card: HallucinationCard) -> None:
        """Resolve a hallucination and put it in the discard pile."""
        if self.log:
            self.log.add(
                f"Hallucination: {card.name} - {card.description}",
                source=LogSource.SYSTEM,
                type=LogType.HALLUCINATION,
            )

        if card.kind == HallucinationKind.LOSE_SANITY:
            self.store.modify_sanity(-SANITY_LOSS)
        elif card.kind == HallucinationKind.DISCARD_HAND:
            discarded = self.store.take_hand()
            self.deck.discard(discarded, DeckOwner.PLAYER)
        elif card.kind == HallucinationKind.CANNOT_PLAY_SPADES:
            self.store.add_player_status(CANNOT_PLAY_SPADES, 0)

        self.deck.discard([card], DeckOwner.PLAYER)
