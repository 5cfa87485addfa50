"""
Engine Core - Game state, cards and the run's moving parts.

The engine is the runtime that:
1. Holds the GameState behind a notifying store
2. Owns the decks, the nodes and the game log
3. Resolves card rules into state changes (effect_resolver)
4. Drives the phase state machine (turn_manager)

Only the leaf modules are re-exported here. Import the effect engine,
hallucinations and the turn manager from their own modules.
"""

from .cards import Card, HallucinationCard, HallucinationKind, Suit, make_card, parse_card_id, standard_deck
from .state import EndCause, GamePhase, GameState, GameStateStore, Node, NodeSpec, NodeStatus, RunConfig
from .action import ActionResult, Command, CommandType, RejectionCode
from .scheduler import Scheduler
from .deck import DeckManager, DeckOwner
from .nodes import NodeSystem, NodeThresholds
from .expression import ExpressionError, ExpressionEvaluator, evaluate_expression
from .game_log import GameLog, LogMessage, LogSource, LogType

__all__ = [
    "Card",
    "HallucinationCard",
    "HallucinationKind",
    "Suit",
    "make_card",
    "parse_card_id",
    "standard_deck",
    "EndCause",
    "GamePhase",
    "GameState",
    "GameStateStore",
    "Node",
    "NodeSpec",
    "NodeStatus",
    "RunConfig",
    "ActionResult",
    "Command",
    "CommandType",
    "RejectionCode",
    "Scheduler",
    "DeckManager",
    "DeckOwner",
    "NodeSystem",
    "NodeThresholds",
    "ExpressionError",
    "ExpressionEvaluator",
    "evaluate_expression",
    "GameLog",
    "LogMessage",
    "LogSource",
    "LogType",
]
