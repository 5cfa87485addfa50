"""
Survivor Autopilot - A simple heuristic player for headless runs.

Used by the CLI and by tests to play whole runs. It only issues
commands through the TurnManager, so every choice is phase and AP
checked like a human's.

Priorities, in order:
1. Steady the mind when sanity is low
2. Strike while the Eco is exposed
3. Repair a badly damaged node
4. Attack
5. Expose the Eco if an attack can follow
6. Search when the hand is thin
7. End the turn
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import TYPE_CHECKING

from ..engine_core.action import Command
from ..engine_core.cards import Card, Suit
from ..engine_core.state import CANNOT_PLAY_SPADES

if TYPE_CHECKING:
    from ..engine_core.turn_manager import TurnManager


@dataclass
class AutopilotDecision:
    command: Command
    reason: str


class SurvivorAutopilot:
    """
    Picks the survivor's next command.

    Usage:
        pilot = SurvivorAutopilot()
        decision = pilot.choose(manager)
        manager.execute(decision.command)
    """

    def __init__(self, low_sanity: int = 6, repair_ratio: float = 0.5):
        self.low_sanity = low_sanity
        self.repair_ratio = repair_ratio

    def choose(self, manager: TurnManager) -> AutopilotDecision:
        state = manager.store.state
        engine = manager.engine
        ap = state.action_points

        def affordable(cards: list[Card]) -> list[Card]:
            return sorted(
                (c for c in cards if engine.cost_of(c) <= ap),
                key=lambda c: (c.value, c.id),
                reverse=True,
            )

        by_suit = {suit: [c for c in state.hand if c.suit == suit] for suit in Suit}
        spades = [] if state.has_status(CANNOT_PLAY_SPADES) else affordable(by_suit[Suit.SPADES])
        hearts = affordable(by_suit[Suit.HEARTS])
        clubs = affordable(by_suit[Suit.CLUBS])
        diamonds = affordable(by_suit[Suit.DIAMONDS])

        if ap <= 0:
            return AutopilotDecision(Command.end_turn(), "out of action points")

        if state.sanity <= self.low_sanity and hearts:
            return AutopilotDecision(Command.play(hearts[0].id), "sanity is low")

        if state.eco_exposed and spades:
            return AutopilotDecision(Command.play(spades[0].id), "the Eco is exposed")

        repair = self._repair_command(manager, by_suit[Suit.CLUBS], ap)
        if repair is not None:
            return repair

        if spades and (ap == 1 or not clubs):
            return AutopilotDecision(Command.play(spades[0].id), "attack")

        if clubs and spades and ap >= 2:
            return AutopilotDecision(Command.play(clubs[-1].id), "expose before attacking")

        if spades:
            return AutopilotDecision(Command.play(spades[0].id), "attack")

        if diamonds and len(state.hand) <= state.max_hand_size // 2:
            return AutopilotDecision(Command.play(diamonds[0].id), "hand is thin")

        if hearts and state.sanity < state.max_sanity:
            return AutopilotDecision(Command.play(hearts[0].id), "recover sanity")

        return AutopilotDecision(Command.end_turn(), "nothing worth doing")

    def _repair_command(self, manager: TurnManager, clubs: list[Card], ap: int) -> AutopilotDecision | None:
        worst = max(manager.nodes.damaged_nodes(), key=lambda n: (n.damage / n.max_damage, n.id), default=None)
        if worst is None or worst.damage / worst.max_damage < self.repair_ratio:
            return None
        chosen: list[Card] = []
        for card in sorted(clubs, key=lambda c: c.value, reverse=True):
            if len(chosen) >= ap:
                break
            chosen.append(card)
            if sum(c.value for c in chosen) >= 5:
                return AutopilotDecision(
                    Command.repair(worst.id, [c.id for c in chosen]),
                    f"{worst.name} is failing",
                )
        return None
