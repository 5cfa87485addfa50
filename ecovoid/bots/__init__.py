"""
Bots module - The Eco adversary.

Provides:
- AdversaryPolicy: Interface for choosing the Eco's card
- PhaseBehavior: Phase-driven temperament
- EcoAI: The adversary's turn logic
- SurvivorAutopilot: Heuristic survivor for headless runs
"""

from .policy import AdversaryPolicy, EcoDecision, HighestValuePolicy, PolicyContext, RandomPolicy, create_policy
from .personality import EcoPhase, PhaseBehavior, PHASE_BEHAVIORS, phase_for_ratio
from .adversary import EcoAI, EcoTurnResult
from .autopilot import AutopilotDecision, SurvivorAutopilot

__all__ = [
    "AdversaryPolicy",
    "EcoDecision",
    "HighestValuePolicy",
    "PolicyContext",
    "RandomPolicy",
    "create_policy",
    "EcoPhase",
    "PhaseBehavior",
    "PHASE_BEHAVIORS",
    "phase_for_ratio",
    "EcoAI",
    "EcoTurnResult",
    "AutopilotDecision",
    "SurvivorAutopilot",
]
