"""
Action System - Player commands and their results.

Commands are the only way presentation drives a run:
1. play_card / draw_card / perform_focus / repair_node
2. end_player_turn

Illegal commands are never raised to the caller; they come back as a
failed ActionResult carrying a human-readable reason and an error code.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class CommandType(Enum):
    """Commands accepted by the turn orchestrator."""
    PLAY_CARD = "play_card"
    DRAW_CARD = "draw_card"
    PERFORM_FOCUS = "perform_focus"
    REPAIR_NODE = "repair_node"
    END_PLAYER_TURN = "end_player_turn"


class RejectionCode(Enum):
    """Why a command was refused."""
    WRONG_PHASE = "WRONG_PHASE"
    INSUFFICIENT_AP = "INSUFFICIENT_AP"
    CARD_NOT_IN_HAND = "CARD_NOT_IN_HAND"
    SPADES_BLOCKED = "SPADES_BLOCKED"
    HAND_FULL = "HAND_FULL"
    INVALID_TARGET = "INVALID_TARGET"
    INVALID_CARDS = "INVALID_CARDS"
    GAME_OVER = "GAME_OVER"
    NOT_STARTED = "NOT_STARTED"


@dataclass
class Command:
    """
    A command issued against the current run.

    Usage:
        manager.execute(Command.play("7S"))
    """
    command_type: CommandType
    card_id: str | None = None
    card_ids: list[str] = field(default_factory=list)
    node_id: str | None = None

    @classmethod
    def play(cls, card_id: str, node_id: str | None = None) -> Command:
        return cls(CommandType.PLAY_CARD, card_id=card_id, node_id=node_id)

    @classmethod
    def draw(cls) -> Command:
        return cls(CommandType.DRAW_CARD)

    @classmethod
    def focus(cls, card_id: str) -> Command:
        return cls(CommandType.PERFORM_FOCUS, card_id=card_id)

    @classmethod
    def repair(cls, node_id: str, card_ids: list[str]) -> Command:
        return cls(CommandType.REPAIR_NODE, card_ids=list(card_ids), node_id=node_id)

    @classmethod
    def end_turn(cls) -> Command:
        return cls(CommandType.END_PLAYER_TURN)


@dataclass
class ActionResult:
    """
    Result of a command.

    Contains:
    - Whether the command was accepted
    - The rejection reason and code (if refused)
    - Human-readable changes (for the UI)
    - The effect outcome, when a card was resolved
    """
    success: bool
    error: str | None = None
    error_code: RejectionCode | None = None
    state_changes: list[str] = field(default_factory=list)
    outcome: Any | None = None  # EffectOutcome

    @classmethod
    def failure(cls, error: str, error_code: RejectionCode | None = None) -> ActionResult:
        """Create a failure result."""
        return cls(success=False, error=error, error_code=error_code)

    @classmethod
    def ok(cls, changes: list[str] | None = None, outcome: Any | None = None) -> ActionResult:
        """Create a success result."""
        return cls(success=True, state_changes=changes or [], outcome=outcome)
