"""
Adversary Policy - How the Eco picks the card it plays.

A policy sees the Eco's hand and a small context and returns one card.
Policies never mutate state; EcoAI resolves the chosen card.
"""

from __future__ import annotations
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import TYPE_CHECKING
import random

if TYPE_CHECKING:
    from ..engine_core.cards import Card
    from ..rules.effect_dsl import Ruleset
    from .personality import PhaseBehavior


@dataclass
class PolicyContext:
    """What a policy may look at when choosing."""
    ruleset: Ruleset
    behavior: PhaseBehavior
    difficulty: float = 1.0
    player_pv: int = 0
    player_sanity: int = 0
    damaged_nodes: list[str] = field(default_factory=list)


@dataclass
class EcoDecision:
    """A chosen card with an explanation for logs and debugging."""
    card: Card
    explanation: str = ""


class AdversaryPolicy(ABC):
    """
    Abstract base class for Eco card selection.

    Implementations must return None only for an empty hand.
    """

    @abstractmethod
    def select_card(self, hand: list[Card], context: PolicyContext) -> EcoDecision | None:
        ...


class HighestValuePolicy(AdversaryPolicy):
    """
    Plays the strongest card that has an attack rule.

    Cards without a matching Eco rule are only played when nothing else
    is available. Ties break on card id for determinism.
    """

    def select_card(self, hand: list[Card], context: PolicyContext) -> EcoDecision | None:
        if not hand:
            return None
        attacking = [c for c in hand if context.ruleset.match_eco(c) is not None]
        pool = attacking or hand
        card = max(pool, key=lambda c: (c.value, c.id))
        reason = "strongest attack" if attacking else "no attack card, discarding strongest"
        return EcoDecision(card=card, explanation=f"{reason}: {card.id}")


class RandomPolicy(AdversaryPolicy):
    """Plays a random card. Useful for testing and easy difficulty."""

    def __init__(self, seed: int | None = None):
        self.rng = random.Random(seed)

    def select_card(self, hand: list[Card], context: PolicyContext) -> EcoDecision | None:
        if not hand:
            return None
        card = self.rng.choice(hand)
        return EcoDecision(card=card, explanation=f"random choice: {card.id}")


POLICIES = {
    "highest": HighestValuePolicy,
    "random": RandomPolicy,
}


def create_policy(name: str, seed: int | None = None) -> AdversaryPolicy:
    """Build a policy by name ("highest" or "random")."""
    if name == "random":
        return RandomPolicy(seed)
    if name not in POLICIES:
        raise ValueError(f"Unknown adversary policy: {name}")
    return POLICIES[name]()
