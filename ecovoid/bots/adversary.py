"""
Eco AI - The adversary's turn.

Each ECO_ATTACK the Eco:
1. Re-evaluates its phase from its HP ratio
2. Picks a card from its own hand via its policy
3. Reveals it and resolves it against the survivor (scaled by
   difficulty and phase)
4. Draws a replacement from its own deck
5. Applies phase extras (second attack, node lash, hallucinations)
6. May expose itself, less often on higher difficulty

An empty hand is a no-op turn, never an error.
"""

from __future__ import annotations
from dataclasses import dataclass, field
import logging
import random

from ..engine_core.cards import Card
from ..engine_core.deck import DeckManager, DeckOwner
from ..engine_core.effect_resolver import CardEffectEngine, EffectOutcome, EffectSource
from ..engine_core.game_log import GameLog, LogSource, LogType
from ..engine_core.hallucination import HallucinationSystem
from ..engine_core.state import GameStateStore
from .personality import EcoPhase, PHASE_BEHAVIORS, PhaseBehavior, phase_for_ratio
from .policy import AdversaryPolicy, HighestValuePolicy, PolicyContext

logger = logging.getLogger(__name__)

DEFAULT_HAND_SIZE = 5
SELF_EXPOSURE_TURNS = 2


@dataclass
class EcoTurnResult:
    """What the Eco did this turn."""
    phase: EcoPhase
    phase_changed: bool = False
    played: list[Card] = field(default_factory=list)
    outcomes: list[EffectOutcome] = field(default_factory=list)
    exposed: bool = False
    hallucinations_injected: int = 0
    nodes_lashed: list[str] = field(default_factory=list)
    skipped: bool = False
    explanation: str = ""

    @property
    def damage_dealt(self) -> int:
        return sum(o.damage_to_player for o in self.outcomes)


class EcoAI:
    """
    The adversary.

    Usage:
        eco = EcoAI(store, deck, engine, hallucination, difficulty=1.2)
        eco.reset()
        result = eco.take_turn()
    """

    def __init__(
        self,
        store: GameStateStore,
        deck: DeckManager,
        engine: CardEffectEngine,
        hallucination: HallucinationSystem | None = None,
        log: GameLog | None = None,
        rng: random.Random | None = None,
        policy: AdversaryPolicy | None = None,
        difficulty: float = 1.0,
        behaviors: dict[EcoPhase, PhaseBehavior] | None = None,
        hand_size: int = DEFAULT_HAND_SIZE,
    ):
        if difficulty <= 0:
            raise ValueError("difficulty must be positive")
        self.store = store
        self.deck = deck
        self.engine = engine
        self.hallucination = hallucination
        self.log = log
        self.rng = rng or random.Random()
        self.policy = policy or HighestValuePolicy()
        self.difficulty = difficulty
        self.behaviors = behaviors or PHASE_BEHAVIORS
        self.hand_size = hand_size
        self._hand: list[Card] = []
        self._behavior = phase_for_ratio(1.0, self.behaviors)

    @property
    def hand(self) -> list[Card]:
        return list(self._hand)

    @property
    def phase(self) -> EcoPhase:
        return self._behavior.phase

    @property
    def behavior(self) -> PhaseBehavior:
        return self._behavior

    def reset(self, difficulty: float | None = None) -> None:
        """Draw the opening hand from the Eco deck."""
        if difficulty is not None:
            if difficulty <= 0:
                raise ValueError("difficulty must be positive")
            self.difficulty = difficulty
        self._hand = [c for c in self.deck.draw(DeckOwner.ECO, self.hand_size) if not c.is_hallucination]
        self._behavior = phase_for_ratio(1.0, self.behaviors)
        logger.debug("Eco hand: %s", [c.id for c in self._hand])

    def update_phase(self) -> bool:
        """Re-evaluate the phase from HP. Returns True on a transition."""
        state = self.store.state
        ratio = state.eco_hp / state.eco_max_hp if state.eco_max_hp else 0.0
        behavior = phase_for_ratio(ratio, self.behaviors)
        if behavior.phase == self._behavior.phase:
            return False
        previous = self._behavior.phase
        self._behavior = behavior
        logger.info("Eco phase %s -> %s", previous.value, behavior.phase.value)
        self._log(f"The Eco shifts into {behavior.phase.value} mode", LogType.SPECIAL)
        return True

    def take_turn(self) -> EcoTurnResult:
        result = EcoTurnResult(phase=self._behavior.phase)
        if self.store.game_over:
            result.skipped = True
            return result

        result.phase_changed = self.update_phase()
        result.phase = self._behavior.phase
        behavior = self._behavior

        if not self._hand:
            self._log("The Eco hesitates (no cards in hand)", LogType.INFO)
            result.skipped = True
            return result

        attacks = 1
        if behavior.double_attack_chance and self.rng.random() < behavior.double_attack_chance:
            attacks = 2
            self._log("The Eco strikes twice!", LogType.SPECIAL)

        for _ in range(attacks):
            if self.store.game_over or not self._hand:
                break
            decision = self.policy.select_card(self.hand, self._policy_context())
            if decision is None:
                break
            result.explanation = decision.explanation
            outcome = self._play(decision.card)
            result.played.append(decision.card)
            result.outcomes.append(outcome)

        if not self.store.game_over:
            result.hallucinations_injected = self._inject(behavior.hallucinations)
            result.nodes_lashed = self._lash_nodes(behavior.node_lash)
            result.exposed = self._maybe_expose(behavior)

        return result

    def _play(self, card: Card) -> EffectOutcome:
        self._hand = [c for c in self._hand if c.id != card.id]
        self.store.set_revealed_card(card)
        self._log(f"The Eco reveals {card.id}", LogType.ATTACK)

        scale = self.difficulty * self._behavior.damage_multiplier
        outcome = self.engine.apply_effect(card, EffectSource.ECO, scale=scale)

        self.deck.discard([card], DeckOwner.ECO)
        for replacement in self.deck.draw(DeckOwner.ECO, 1):
            if replacement.is_hallucination:
                self.deck.discard([replacement], DeckOwner.ECO)
            else:
                self._hand.append(replacement)
        return outcome

    def _inject(self, count: int) -> int:
        if count <= 0 or self.hallucination is None:
            return 0
        return len(self.hallucination.inject(count))

    def _lash_nodes(self, amount: int) -> list[str]:
        if amount <= 0:
            return []
        targets = self.engine.nodes.intact_nodes()
        if not targets:
            return []
        node = self.rng.choice(targets)
        self.engine.nodes.damage_node(node.id, amount)
        return [node.id]

    def _maybe_expose(self, behavior: PhaseBehavior) -> bool:
        chance = min(1.0, behavior.expose_chance / self.difficulty)
        if self.rng.random() >= chance:
            return False
        self.store.expose_eco(SELF_EXPOSURE_TURNS)
        self._log("The Eco overextends and is exposed!", LogType.SPECIAL)
        return True

    def _policy_context(self) -> PolicyContext:
        state = self.store.state
        return PolicyContext(
            ruleset=self.engine.ruleset,
            behavior=self._behavior,
            difficulty=self.difficulty,
            player_pv=state.pv,
            player_sanity=state.sanity,
            damaged_nodes=[n.id for n in self.engine.nodes.damaged_nodes()],
        )

    def _log(self, message: str, log_type: LogType) -> None:
        if self.log is not None:
            self.log.add(message, source=LogSource.ECO, type=log_type)
