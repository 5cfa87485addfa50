"""
Game State - The single mutable record of a run, and the store that owns it.

Design principles:
- One writer: every mutation goes through GameStateStore
- Observable: subscribers are notified after each completed mutation
- Consistent: a mutation is fully applied (including game-over
  evaluation) before anyone is notified
- Resettable: reset() rebuilds the record from a RunConfig
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import Any, Callable
from copy import deepcopy
from enum import Enum
import logging

from .cards import Card

logger = logging.getLogger(__name__)


class GamePhase(Enum):
    """Turn phases. GAME_OVER is absorbing."""
    SETUP = "setup"
    EVENT = "event"
    PLAYER_ACTION = "player_action"
    ECO_ATTACK = "eco_attack"
    MAINTENANCE = "maintenance"
    GAME_OVER = "game_over"


class NodeStatus(Enum):
    STABLE = "stable"
    UNSTABLE = "unstable"
    CORRUPTED = "corrupted"


class EndCause(Enum):
    """Why a run ended."""
    ECO_DEFEATED = "eco_defeated"
    PLAYER_DIED = "player_died"
    SANITY_LOST = "sanity_lost"
    NODES_COLLAPSED = "nodes_collapsed"
    ABANDONED = "abandoned"


# Player status names
CANNOT_PLAY_SPADES = "cannot_play_spades"

# Eco status names
EXPOSED = "exposed"


@dataclass(frozen=True)
class NodeReward:
    type: str
    amount: int


@dataclass(frozen=True)
class NodeSpec:
    """Static description of a node, as loaded from scenario content."""
    id: str
    name: str
    max_damage: int
    reward: NodeReward | None = None


@dataclass(frozen=True)
class Node:
    """
    A damageable ship system.

    Nodes are immutable; NodeSystem replaces them in the store on every
    change.
    """
    id: str
    name: str
    max_damage: int
    damage: int = 0
    status: NodeStatus = NodeStatus.STABLE
    reward: NodeReward | None = None

    @property
    def is_collapsed(self) -> bool:
        return self.damage >= self.max_damage

    @property
    def is_damaged(self) -> bool:
        return self.damage > 0


@dataclass(frozen=True)
class RunConfig:
    """
    Initial parameters for a run.

    Built by the chapter manager from scenario base stats, chapter
    modifiers and permanent profile boosts.
    """
    scenario_id: str = "default"
    chapter_id: str | None = None
    pv: int = 20
    max_pv: int = 20
    sanity: int = 20
    max_sanity: int = 20
    action_points: int = 2
    hand_size: int = 5
    eco_hp: int = 50
    eco_difficulty: float = 1.0
    critical_damage_boost: int = 0
    node_collapse_limit: int = 3
    score_multiplier: float = 1.0
    difficulty: str = "normal"


@dataclass
class GameState:
    """
    Complete state of one run.

    player_statuses maps a status name to its remaining turns; 0 means
    the status lasts until the end of the current player turn.
    """
    scenario_id: str = "default"
    chapter_id: str | None = None

    # Survivor vitals
    pv: int = 20
    max_pv: int = 20
    sanity: int = 20
    max_sanity: int = 20
    action_points: int = 2
    max_action_points: int = 2
    max_hand_size: int = 5
    critical_damage_boost: int = 0

    # Eco vitals
    eco_hp: int = 50
    eco_max_hp: int = 50
    eco_exposed_turns: int = 0
    eco_revealed_card: Card | None = None

    hand: list[Card] = field(default_factory=list)
    hand_overflow: bool = False
    turn: int = 1
    phase: GamePhase = GamePhase.SETUP
    corruption_level: int = 0

    player_statuses: dict[str, int] = field(default_factory=dict)
    nodes: dict[str, Node] = field(default_factory=dict)
    node_collapse_limit: int = 3

    game_over: bool = False
    victory: bool = False
    end_cause: EndCause | None = None

    @property
    def eco_exposed(self) -> bool:
        return self.eco_exposed_turns > 0

    @property
    def collapsed_nodes(self) -> int:
        return sum(1 for node in self.nodes.values() if node.is_collapsed)

    def has_status(self, name: str) -> bool:
        return name in self.player_statuses

    def find_in_hand(self, card_id: str) -> Card | None:
        for card in self.hand:
            if card.id == card_id:
                return card
        return None

    @classmethod
    def from_config(cls, config: RunConfig) -> GameState:
        return cls(
            scenario_id=config.scenario_id,
            chapter_id=config.chapter_id,
            pv=config.pv,
            max_pv=max(config.max_pv, config.pv),
            sanity=config.sanity,
            max_sanity=max(config.max_sanity, config.sanity),
            action_points=config.action_points,
            max_action_points=config.action_points,
            max_hand_size=config.hand_size,
            critical_damage_boost=config.critical_damage_boost,
            eco_hp=config.eco_hp,
            eco_max_hp=config.eco_hp,
            node_collapse_limit=config.node_collapse_limit,
        )

    def clone(self) -> GameState:
        """Create a deep copy of this state."""
        return deepcopy(self)

    def to_dict(self) -> dict[str, Any]:
        """Plain-data view for logs and API responses."""
        return {
            "scenario_id": self.scenario_id,
            "chapter_id": self.chapter_id,
            "pv": self.pv,
            "max_pv": self.max_pv,
            "sanity": self.sanity,
            "max_sanity": self.max_sanity,
            "action_points": self.action_points,
            "max_action_points": self.max_action_points,
            "max_hand_size": self.max_hand_size,
            "eco_hp": self.eco_hp,
            "eco_max_hp": self.eco_max_hp,
            "eco_exposed": self.eco_exposed,
            "eco_revealed_card": self.eco_revealed_card.id if self.eco_revealed_card else None,
            "hand": [card.id for card in self.hand],
            "hand_overflow": self.hand_overflow,
            "turn": self.turn,
            "phase": self.phase.value,
            "corruption_level": self.corruption_level,
            "player_statuses": dict(self.player_statuses),
            "nodes": [
                {
                    "id": node.id,
                    "name": node.name,
                    "damage": node.damage,
                    "max_damage": node.max_damage,
                    "status": node.status.value,
                    "is_collapsed": node.is_collapsed,
                }
                for node in self.nodes.values()
            ],
            "game_over": self.game_over,
            "victory": self.victory,
            "end_cause": self.end_cause.value if self.end_cause else None,
        }


StateListener = Callable[["GameStateStore"], None]


class GameStateStore:
    """
    Owner of the live GameState.

    Every mutator applies its change completely, re-evaluates terminal
    conditions, and then notifies subscribers exactly once. Batched
    operations (dealing a hand) call add_to_hand per card, so listeners
    see one notification per card.
    """

    def __init__(self, config: RunConfig | None = None):
        self._config = config or RunConfig()
        self._state = GameState.from_config(self._config)
        self._listeners: list[StateListener] = []

    # ------------------------------------------------------------------
    # Observation
    # ------------------------------------------------------------------

    @property
    def state(self) -> GameState:
        """The live state. Treat as read-only outside the store."""
        return self._state

    @property
    def config(self) -> RunConfig:
        return self._config

    def snapshot(self) -> GameState:
        return self._state.clone()

    def subscribe(self, listener: StateListener) -> Callable[[], None]:
        """Register a listener; returns a callable that unregisters it."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _notify(self) -> None:
        for listener in list(self._listeners):
            try:
                listener(self)
            except Exception:
                logger.exception("State listener %r failed", listener)

    # Read-only shortcuts
    @property
    def phase(self) -> GamePhase:
        return self._state.phase

    @property
    def turn(self) -> int:
        return self._state.turn

    @property
    def pv(self) -> int:
        return self._state.pv

    @property
    def sanity(self) -> int:
        return self._state.sanity

    @property
    def action_points(self) -> int:
        return self._state.action_points

    @property
    def eco_hp(self) -> int:
        return self._state.eco_hp

    @property
    def hand(self) -> list[Card]:
        return list(self._state.hand)

    @property
    def game_over(self) -> bool:
        return self._state.game_over

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def reset(self, config: RunConfig | None = None) -> None:
        """Rebuild the state from config (or the last config used)."""
        if config is not None:
            self._config = config
        self._state = GameState.from_config(self._config)
        self._notify()

    def set_phase(self, phase: GamePhase) -> bool:
        """Change phase. Ignored once the game is over."""
        if self._state.game_over and phase != GamePhase.GAME_OVER:
            return False
        self._state.phase = phase
        self._notify()
        return True

    def advance_turn(self) -> None:
        self._state.turn += 1
        self._notify()

    def end_game(self, victory: bool, cause: EndCause) -> None:
        if self._state.game_over:
            return
        self._mark_game_over(victory, cause)
        self._notify()

    # ------------------------------------------------------------------
    # Survivor vitals
    # ------------------------------------------------------------------

    def spend_action_points(self, amount: int) -> bool:
        """Spend AP if available. Returns False (no change) otherwise."""
        if amount < 0 or self._state.action_points < amount:
            return False
        self._state.action_points -= amount
        self._notify()
        return True

    def restore_action_points(self) -> None:
        self._state.action_points = self._state.max_action_points
        self._notify()

    def modify_action_points(self, delta: int) -> int:
        s = self._state
        s.action_points = _clamp(s.action_points + delta, 0, s.max_action_points)
        self._notify()
        return s.action_points

    def modify_pv(self, delta: int) -> int:
        s = self._state
        s.pv = _clamp(s.pv + delta, 0, s.max_pv)
        self._evaluate_terminal()
        self._notify()
        return s.pv

    def modify_sanity(self, delta: int) -> int:
        s = self._state
        s.sanity = _clamp(s.sanity + delta, 0, s.max_sanity)
        self._evaluate_terminal()
        self._notify()
        return s.sanity

    def set_corruption_level(self, level: int) -> None:
        self._state.corruption_level = max(0, level)
        self._notify()

    # ------------------------------------------------------------------
    # Eco vitals
    # ------------------------------------------------------------------

    def damage_eco(self, amount: int) -> int:
        """Apply damage to the Eco; returns the HP actually removed."""
        s = self._state
        before = s.eco_hp
        s.eco_hp = _clamp(s.eco_hp - max(0, amount), 0, s.eco_max_hp)
        self._evaluate_terminal()
        self._notify()
        return before - s.eco_hp

    def heal_eco(self, amount: int) -> int:
        s = self._state
        before = s.eco_hp
        s.eco_hp = _clamp(s.eco_hp + max(0, amount), 0, s.eco_max_hp)
        self._notify()
        return s.eco_hp - before

    def expose_eco(self, turns: int = 1) -> None:
        self._state.eco_exposed_turns = max(self._state.eco_exposed_turns, turns)
        self._notify()

    def consume_exposure(self) -> bool:
        """Clear exposure. Returns whether the Eco was exposed."""
        if not self._state.eco_exposed:
            return False
        self._state.eco_exposed_turns = 0
        self._notify()
        return True

    def set_revealed_card(self, card: Card | None) -> None:
        self._state.eco_revealed_card = card
        self._notify()

    # ------------------------------------------------------------------
    # Hand
    # ------------------------------------------------------------------

    def add_to_hand(self, card: Card) -> bool:
        """Add a card; duplicates by id are refused."""
        if self._state.find_in_hand(card.id) is not None:
            logger.warning("Card %s already in hand", card.id)
            return False
        self._state.hand.append(card)
        self._notify()
        return True

    def remove_from_hand(self, card_id: str) -> Card | None:
        card = self._state.find_in_hand(card_id)
        if card is None:
            return None
        self._state.hand = [c for c in self._state.hand if c.id != card_id]
        self._notify()
        return card

    def take_hand(self) -> list[Card]:
        """Empty the hand and return what was in it."""
        cards = self._state.hand
        self._state.hand = []
        self._state.hand_overflow = False
        self._notify()
        return cards

    def set_hand_overflow(self, overflow: bool) -> None:
        self._state.hand_overflow = overflow
        self._notify()

    # ------------------------------------------------------------------
    # Statuses
    # ------------------------------------------------------------------

    def add_player_status(self, name: str, turns: int = 0) -> None:
        current = self._state.player_statuses.get(name, 0)
        self._state.player_statuses[name] = max(current, turns)
        self._notify()

    def remove_player_status(self, name: str) -> bool:
        if name not in self._state.player_statuses:
            return False
        del self._state.player_statuses[name]
        self._notify()
        return True

    def clear_turn_statuses(self) -> list[str]:
        """Drop statuses scoped to the current player turn."""
        s = self._state
        cleared = [name for name, turns in s.player_statuses.items() if turns <= 0]
        for name in cleared:
            del s.player_statuses[name]
        self._notify()
        return cleared

    def tick_statuses(self) -> None:
        """Count down timed statuses at maintenance. Turn-scoped (0) ones are left alone."""
        s = self._state
        s.player_statuses = {
            name: max(0, turns - 1)
            for name, turns in s.player_statuses.items()
            if turns != 1
        }
        if s.eco_exposed_turns > 0:
            s.eco_exposed_turns -= 1
        self._notify()

    def set_critical_damage_boost(self, boost: int) -> None:
        self._state.critical_damage_boost = max(0, boost)
        self._notify()

    # ------------------------------------------------------------------
    # Nodes
    # ------------------------------------------------------------------

    def replace_nodes(self, nodes: list[Node]) -> None:
        self._state.nodes = {node.id: node for node in nodes}
        self._notify()

    def put_node(self, node: Node) -> None:
        self._state.nodes[node.id] = node
        self._evaluate_terminal()
        self._notify()

    # ------------------------------------------------------------------
    # Terminal conditions
    # ------------------------------------------------------------------

    def _evaluate_terminal(self) -> None:
        s = self._state
        if s.game_over:
            return
        if s.pv <= 0:
            self._mark_game_over(False, EndCause.PLAYER_DIED)
        elif s.sanity <= 0:
            self._mark_game_over(False, EndCause.SANITY_LOST)
        elif s.nodes and s.collapsed_nodes >= s.node_collapse_limit:
            self._mark_game_over(False, EndCause.NODES_COLLAPSED)
        elif s.eco_hp <= 0:
            self._mark_game_over(True, EndCause.ECO_DEFEATED)

    def _mark_game_over(self, victory: bool, cause: EndCause) -> None:
        s = self._state
        s.game_over = True
        s.victory = victory
        s.end_cause = cause
        s.phase = GamePhase.GAME_OVER
        logger.info("Game over: %s (victory=%s)", cause.value, victory)


def _clamp(value: int, low: int, high: int) -> int:
    return max(low, min(high, value))
