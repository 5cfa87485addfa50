"""
Turn Manager - The phase state machine.

SETUP -> EVENT -> PLAYER_ACTION -> ECO_ATTACK -> MAINTENANCE -> EVENT ...

- EVENT reveals the top card of the survivor's deck and resolves the
  scenario event keyed by it (if any). The turn counter does not move.
- PLAYER_ACTION restores AP and accepts commands until end_player_turn.
- ECO_ATTACK runs the Eco once, then waits settle_delay.
- MAINTENANCE discards the hand, ticks statuses, raises corruption,
  redraws and increments the turn.

Automatic transitions are scheduled on the run's Scheduler, never
called inline, so a continuation from one phase always fires before
a command of the next phase can be accepted. start_game() cancels
every pending continuation of the previous run.

Game over at any point stops all transitions.
"""

from __future__ import annotations
from typing import Callable, TYPE_CHECKING
import logging

from .action import ActionResult, Command, CommandType, RejectionCode
from .cards import Card, Suit
from .deck import DeckManager, DeckOwner
from .effect_resolver import CardEffectEngine, EffectOutcome, EffectSource
from .game_log import GameLog, LogSource, LogType
from .hallucination import HallucinationSystem
from .nodes import NodeSystem
from .scheduler import Scheduler
from .state import CANNOT_PLAY_SPADES, EndCause, GamePhase, GameState, GameStateStore, RunConfig

if TYPE_CHECKING:
    from ..bots.adversary import EcoAI, EcoTurnResult
    from ..scenarios.content import ScenarioContent
    from ..scoring.system import ScoreSystem

logger = logging.getLogger(__name__)

GameOverListener = Callable[[GameState], None]


class TurnManager:
    """
    Drives a run and gates every command by phase and resources.

    Usage:
        manager.start_game(config, content)
        manager.execute(Command.play("7S"))
        manager.end_player_turn()
        scheduler.advance(settle_delay)
    """

    def __init__(
        self,
        store: GameStateStore,
        scheduler: Scheduler,
        deck: DeckManager,
        nodes: NodeSystem,
        engine: CardEffectEngine,
        hallucination: HallucinationSystem,
        eco: EcoAI,
        log: GameLog | None = None,
        score: ScoreSystem | None = None,
        settle_delay: float = 0.0,
        phase_delay: float = 0.0,
    ):
        self.store = store
        self.scheduler = scheduler
        self.deck = deck
        self.nodes = nodes
        self.engine = engine
        self.hallucination = hallucination
        self.eco = eco
        self.log = log
        self.score = score
        self.settle_delay = settle_delay
        self.phase_delay = phase_delay

        self.content: ScenarioContent | None = None
        self.last_eco_turn: EcoTurnResult | None = None
        self._started = False
        self._finished = False
        self._game_over_listeners: list[GameOverListener] = []

        self._handlers: dict[CommandType, Callable[[Command], ActionResult]] = {
            CommandType.PLAY_CARD: self._handle_play_card,
            CommandType.DRAW_CARD: self._handle_draw_card,
            CommandType.PERFORM_FOCUS: self._handle_focus,
            CommandType.REPAIR_NODE: self._handle_repair,
            CommandType.END_PLAYER_TURN: self._handle_end_turn,
        }

    @property
    def phase(self) -> GamePhase:
        return self.store.phase

    @property
    def started(self) -> bool:
        return self._started

    # ------------------------------------------------------------------
    # Run lifecycle
    # ------------------------------------------------------------------

    def start_game(self, config: RunConfig, content: ScenarioContent) -> None:
        """
        Start a fresh run.

        Stale continuations from a previous run are cancelled before
        anything is reset.
        """
        dropped = self.scheduler.cancel_all()
        if dropped:
            logger.info("Discarded %d stale continuation(s) from the previous run", dropped)

        self.content = content
        self.last_eco_turn = None
        self._finished = False

        self.store.reset(config)
        self.deck.reset()
        self.engine.ruleset = content.ruleset
        self.nodes.thresholds = content.thresholds
        self.nodes.initialize(content.nodes)
        self.eco.reset(difficulty=config.eco_difficulty)
        if self.log is not None:
            self.log.clear()
        if self.score is not None:
            self.score.reset()
            if config.score_multiplier != 1.0:
                self.score.add_multiplier("chapter", config.score_multiplier, source=config.chapter_id or "")

        self._started = True
        self._log(f"You arrive at {content.name}. The Eco is watching.", LogSource.SYSTEM, LogType.INFO)
        logger.info("Run started: scenario=%s chapter=%s", content.id, config.chapter_id)

        self.engine.fill_hand()
        self._enter_event()
        self.scheduler.run_due()

    def on_game_over(self, listener: GameOverListener) -> Callable[[], None]:
        """Register a callback fired once per run when it ends."""
        self._game_over_listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._game_over_listeners:
                self._game_over_listeners.remove(listener)

        return unsubscribe

    def abandon(self) -> None:
        """End the run as a loss without a rules cause."""
        if not self._started:
            return
        self.store.end_game(False, EndCause.ABANDONED)
        self._check_game_over()

    def advance(self, seconds: float) -> int:
        """Let presentation time pass. Returns the continuations fired."""
        fired = self.scheduler.advance(seconds)
        self._check_game_over()
        return fired

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    def execute(self, command: Command) -> ActionResult:
        """
        Run a command against the current phase.

        Never raises for an illegal command; the rejection is returned
        and logged.
        """
        if not self._started:
            return self._reject("No run in progress", RejectionCode.NOT_STARTED)
        if self.store.game_over:
            return self._reject("The run is over", RejectionCode.GAME_OVER)
        if self.store.phase != GamePhase.PLAYER_ACTION:
            return self._reject(
                f"Cannot {command.command_type.value.replace('_', ' ')} during {self.store.phase.value}",
                RejectionCode.WRONG_PHASE,
            )

        result = self._handlers[command.command_type](command)
        self._check_game_over()
        if not self.store.game_over:
            self.scheduler.run_due()
        return result

    def play_card(self, card_id: str, target_node_id: str | None = None) -> ActionResult:
        return self.execute(Command.play(card_id, target_node_id))

    def draw_card(self) -> ActionResult:
        return self.execute(Command.draw())

    def perform_focus(self, card_id: str) -> ActionResult:
        return self.execute(Command.focus(card_id))

    def repair_node(self, node_id: str, card_ids: list[str]) -> ActionResult:
        return self.execute(Command.repair(node_id, card_ids))

    def end_player_turn(self) -> ActionResult:
        return self.execute(Command.end_turn())

    def available_commands(self) -> list[CommandType]:
        """Command types that could currently be accepted."""
        state = self.store.state
        if not self._started or state.game_over or state.phase != GamePhase.PLAYER_ACTION:
            return []
        commands = [CommandType.END_PLAYER_TURN]
        if state.action_points <= 0:
            return commands
        if any(self._playable(card) for card in state.hand):
            commands.append(CommandType.PLAY_CARD)
        if len(state.hand) < state.max_hand_size:
            commands.append(CommandType.DRAW_CARD)
        if state.hand:
            commands.append(CommandType.PERFORM_FOCUS)
        if self.nodes.damaged_nodes() and any(c.suit == Suit.CLUBS for c in state.hand):
            commands.append(CommandType.REPAIR_NODE)
        return commands

    def _playable(self, card: Card) -> bool:
        state = self.store.state
        if card.suit == Suit.SPADES and state.has_status(CANNOT_PLAY_SPADES):
            return False
        return self.engine.cost_of(card) <= state.action_points

    def _handle_play_card(self, command: Command) -> ActionResult:
        state = self.store.state
        card = state.find_in_hand((command.card_id or "").upper())
        if card is None:
            return self._reject(f"{command.card_id} is not in your hand", RejectionCode.CARD_NOT_IN_HAND)
        if card.suit == Suit.SPADES and state.has_status(CANNOT_PLAY_SPADES):
            return self._reject("You cannot play Spades this turn", RejectionCode.SPADES_BLOCKED)
        if command.node_id and self.nodes.get_node(command.node_id) is None:
            return self._reject(f"Unknown node {command.node_id}", RejectionCode.INVALID_TARGET)

        cost = self.engine.cost_of(card)
        if not self.store.spend_action_points(cost):
            return self._reject(
                f"{card.id} costs {cost} AP, you have {state.action_points}",
                RejectionCode.INSUFFICIENT_AP,
            )

        self.store.remove_from_hand(card.id)
        self._log(f"You play {card.id}", LogSource.PLAYER, _LOG_TYPE_BY_SUIT[card.suit])
        outcome = self.engine.apply_effect(card, EffectSource.PLAYER, target_node_id=command.node_id)
        self.deck.discard([card], DeckOwner.PLAYER)
        self._score_play(card, outcome)

        return ActionResult.ok([a.description for a in outcome.applied], outcome)

    def _handle_draw_card(self, command: Command) -> ActionResult:
        state = self.store.state
        if len(state.hand) >= state.max_hand_size:
            return self._reject("Your hand is full", RejectionCode.HAND_FULL)
        if not self.store.spend_action_points(1):
            return self._reject("Drawing costs 1 AP", RejectionCode.INSUFFICIENT_AP)

        drawn = self.engine.draw_to_hand(1)
        if drawn:
            self._log(f"You draw {drawn[0].id}", LogSource.PLAYER, LogType.DRAW)
            return ActionResult.ok([f"Drew {drawn[0].id}"])
        self._log("You find nothing", LogSource.PLAYER, LogType.DRAW)
        return ActionResult.ok(["Drew nothing"])

    def _handle_focus(self, command: Command) -> ActionResult:
        state = self.store.state
        card = state.find_in_hand((command.card_id or "").upper())
        if card is None:
            return self._reject(f"{command.card_id} is not in your hand", RejectionCode.CARD_NOT_IN_HAND)
        if not self.store.spend_action_points(1):
            return self._reject("Focusing costs 1 AP", RejectionCode.INSUFFICIENT_AP)

        self.engine.discard_from_hand([card.id])
        drawn = self.engine.draw_to_hand(1)
        changes = [f"Discarded {card.id}"] + [f"Drew {c.id}" for c in drawn]
        self._log(f"You focus, letting go of {card.id}", LogSource.PLAYER, LogType.FOCUS)
        return ActionResult.ok(changes)

    def _handle_repair(self, command: Command) -> ActionResult:
        state = self.store.state
        node = self.nodes.get_node(command.node_id or "")
        if node is None:
            return self._reject(f"Unknown node {command.node_id}", RejectionCode.INVALID_TARGET)
        if not node.is_damaged:
            return self._reject(f"{node.name} is not damaged", RejectionCode.INVALID_TARGET)

        card_ids = list(dict.fromkeys(c.upper() for c in command.card_ids))
        if not card_ids:
            return self._reject("Select at least one card to repair with", RejectionCode.INVALID_CARDS)
        cards = []
        for card_id in card_ids:
            card = state.find_in_hand(card_id)
            if card is None:
                return self._reject(f"{card_id} is not in your hand", RejectionCode.CARD_NOT_IN_HAND)
            if card.suit != Suit.CLUBS:
                return self._reject("Only Clubs can repair nodes", RejectionCode.INVALID_CARDS)
            cards.append(card)

        if state.action_points < len(cards):
            return self._reject(
                f"Repairing with {len(cards)} card(s) costs {len(cards)} AP",
                RejectionCode.INSUFFICIENT_AP,
            )
        if sum(c.value for c in cards) < 5:
            return self._reject("Those cards are not enough to repair anything", RejectionCode.INVALID_CARDS)

        self.store.spend_action_points(len(cards))
        for card in cards:
            self.store.remove_from_hand(card.id)
        repaired = self.engine.repair_with_cards(node.id, cards)
        self.deck.discard(cards, DeckOwner.PLAYER)

        self._log(f"You repair {node.name} by {repaired}", LogSource.PLAYER, LogType.NODE_REPAIR)
        if self.score is not None and repaired > 0:
            self.score.score_node_action("repair", node.id)
        return ActionResult.ok([f"{node.name} repaired by {repaired}"])

    def _handle_end_turn(self, command: Command) -> ActionResult:
        cleared = self.store.clear_turn_statuses()
        self._log("You end your turn", LogSource.PLAYER, LogType.INFO)
        self._enter_eco_attack()
        return ActionResult.ok([f"Cleared {name}" for name in cleared])

    # ------------------------------------------------------------------
    # Phases
    # ------------------------------------------------------------------

    def _enter_event(self) -> None:
        if self._halted():
            return
        self.store.set_phase(GamePhase.EVENT)

        card = self.deck.draw_one(DeckOwner.PLAYER)
        if card is None:
            self._log("Silence. Nothing stirs.", LogSource.EVENT, LogType.INFO)
        elif card.is_hallucination:
            self.hallucination.apply_hallucination_effect(card)
        else:
            outcome = self.engine.apply_event(card)
            self.deck.discard([card], DeckOwner.PLAYER)
            if outcome is not None and self.score is not None and not self.store.game_over:
                self.score.score_event_handling("event_overcome")

        if self._check_game_over():
            return
        self.scheduler.call_later(self.phase_delay, self._enter_player_action, label="enter_player_action")

    def _enter_player_action(self) -> None:
        if self._halted():
            return
        self.store.set_phase(GamePhase.PLAYER_ACTION)
        self.store.restore_action_points()
        self._log(f"Turn {self.store.turn}: your move", LogSource.SYSTEM, LogType.INFO)

    def _enter_eco_attack(self) -> None:
        if self._halted():
            return
        self.store.set_phase(GamePhase.ECO_ATTACK)
        self.last_eco_turn = self.eco.take_turn()
        if self._check_game_over():
            return
        self.scheduler.call_later(self.settle_delay, self._enter_maintenance, label="enter_maintenance")

    def _enter_maintenance(self) -> None:
        if self._halted():
            return
        self.store.set_phase(GamePhase.MAINTENANCE)

        discarded = self.store.take_hand()
        self.deck.discard(discarded, DeckOwner.PLAYER)
        self.store.tick_statuses()
        level = self.hallucination.increase()
        self.engine.fill_hand()
        if self._check_game_over():
            return

        self.store.advance_turn()
        if self.score is not None:
            damage_taken = self.last_eco_turn.damage_dealt if self.last_eco_turn else 0
            self.score.score_turn_survival(damage_taken)
        logger.debug("Maintenance done: turn=%d corruption=%d", self.store.turn, level)
        self.scheduler.call_later(self.phase_delay, self._enter_event, label="enter_event")

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _halted(self) -> bool:
        return not self._started or self._check_game_over()

    def _check_game_over(self) -> bool:
        """Handle the end of the run once. Returns True if the run is over."""
        state = self.store.state
        if not state.game_over:
            return False
        if self._finished:
            return True

        self._finished = True
        self.scheduler.cancel_all()
        if state.victory:
            self._log("The Eco falls silent. You survived.", LogSource.SYSTEM, LogType.SPECIAL)
            if self.score is not None:
                self.score.score_eco_killed()
                self.score.score_difficulty_bonus(self.store.config.difficulty)
        else:
            cause = state.end_cause.value if state.end_cause else "unknown"
            self._log(f"Run lost ({cause.replace('_', ' ')})", LogSource.SYSTEM, LogType.SPECIAL)
        logger.info("Run over: victory=%s cause=%s turn=%d", state.victory, state.end_cause, state.turn)

        snapshot = self.store.snapshot()
        for listener in list(self._game_over_listeners):
            try:
                listener(snapshot)
            except Exception:
                logger.exception("Game over listener %r failed", listener)
        return True

    def _score_play(self, card: Card, outcome: EffectOutcome) -> None:
        if self.score is None:
            return
        self.score.score_card_play(card.id, card.suit.value)
        self.score.score_eco_damage(outcome.damage_to_eco, outcome.critical)
        for node_id in outcome.nodes_repaired:
            self.score.score_node_action("repair", node_id)
        self.score.score_heal(outcome.healed)
        for _ in outcome.statuses_applied:
            self.score.score_event_handling("status_applied")

    def _reject(self, message: str, code: RejectionCode) -> ActionResult:
        logger.info("Rejected command: %s (%s)", message, code.value)
        self._log(message, LogSource.SYSTEM, LogType.INFO)
        return ActionResult.failure(message, error_code=code)

    def _log(self, message: str, source: LogSource, log_type: LogType) -> None:
        if self.log is not None:
            self.log.add(message, source=source, type=log_type)


_LOG_TYPE_BY_SUIT = {
    Suit.SPADES: LogType.ATTACK,
    Suit.HEARTS: LogType.HEAL,
    Suit.CLUBS: LogType.DEFEND,
    Suit.DIAMONDS: LogType.SEARCH,
}
