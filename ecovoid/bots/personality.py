"""
Eco Personalities - Phase-driven behavior of the adversary.

The Eco changes temperament as its HP drops:
- vigilante: watches and probes
- predator: hunts; sometimes strikes twice and seeds hallucinations
- devastator: fused with the ship; heavier blows and lashes at nodes

Phase behavior adjusts:
- Damage multiplier (stacks with the difficulty coefficient)
- Chance of a second attack
- Node damage dealt at the end of its turn
- Hallucinations injected into the survivor's deck
- Chance of exposing itself
"""

from __future__ import annotations
from dataclasses import dataclass
from enum import Enum


class EcoPhase(Enum):
    VIGILANTE = "vigilante"
    PREDATOR = "predator"
    DEVASTATOR = "devastator"


@dataclass(frozen=True)
class PhaseBehavior:
    """How the Eco acts while in a phase."""
    phase: EcoPhase
    description: str = ""

    # Phase applies while hp ratio is above this (the lowest phase uses 0)
    hp_threshold: float = 0.0

    damage_multiplier: float = 1.0
    double_attack_chance: float = 0.0
    node_lash: int = 0
    hallucinations: int = 0
    expose_chance: float = 0.1


# ============================================================================
# Predefined Phases
# ============================================================================

VIGILANTE = PhaseBehavior(
    phase=EcoPhase.VIGILANTE,
    description="Observes the survivor, striking cautiously",
    hp_threshold=0.66,
    expose_chance=0.15,
)

PREDATOR = PhaseBehavior(
    phase=EcoPhase.PREDATOR,
    description="Hunts actively and poisons the survivor's mind",
    hp_threshold=0.33,
    double_attack_chance=0.2,
    hallucinations=1,
    expose_chance=0.1,
)

DEVASTATOR = PhaseBehavior(
    phase=EcoPhase.DEVASTATOR,
    description="Tears through the ship with everything it has",
    hp_threshold=0.0,
    damage_multiplier=1.5,
    node_lash=2,
    hallucinations=2,
    expose_chance=0.05,
)

PHASE_BEHAVIORS = {
    EcoPhase.VIGILANTE: VIGILANTE,
    EcoPhase.PREDATOR: PREDATOR,
    EcoPhase.DEVASTATOR: DEVASTATOR,
}


def phase_for_ratio(
    hp_ratio: float,
    behaviors: dict[EcoPhase, PhaseBehavior] | None = None,
) -> PhaseBehavior:
    """Pick the behavior whose threshold the HP ratio is above."""
    behaviors = behaviors or PHASE_BEHAVIORS
    ordered = sorted(behaviors.values(), key=lambda b: b.hp_threshold, reverse=True)
    for behavior in ordered:
        if hp_ratio > behavior.hp_threshold:
            return behavior
    return ordered[-1]
