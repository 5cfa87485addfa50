"""
Card Effect Engine - Resolves a played card into state changes.

This module handles:
- Matching a card to its rule (survivor rules, Eco rules, dynamic events)
- Applying the rule's atomic effects in declared order
- Draw-time hallucination substitution with compensating draws
- Node repair with spent cards

The engine only applies effects. Whether a card may be played at all
(phase, AP, blocked suits) is decided by the TurnManager.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable
import logging
import math
import random

from .cards import AnyCard, Card
from .deck import DeckManager, DeckOwner
from .expression import ExpressionContext, ExpressionError, ExpressionEvaluator
from .game_log import GameLog, LogSource, LogType
from .hallucination import HallucinationSystem
from .nodes import NodeSystem
from .state import CANNOT_PLAY_SPADES, GameStateStore, Node
from ..rules.effect_dsl import CardRule, EffectType, EventRule, RuleEffect, Ruleset, Stat, Status, Target

logger = logging.getLogger(__name__)

REPAIR_DIVISOR = 5


class EffectSource(Enum):
    """Who caused an effect."""
    PLAYER = "player"
    ECO = "eco"
    EVENT = "event"


@dataclass
class EffectContext:
    """
    Context for resolving one card.

    scale multiplies damage dealt by the Eco (difficulty and phase).
    target_node_id is the node the player picked for CHOICE effects.
    """
    card: Card
    source: EffectSource
    scale: float = 1.0
    target_node_id: str | None = None

    @property
    def log_source(self) -> LogSource:
        return {
            EffectSource.PLAYER: LogSource.PLAYER,
            EffectSource.ECO: LogSource.ECO,
            EffectSource.EVENT: LogSource.EVENT,
        }[self.source]


@dataclass
class AppliedEffect:
    """One atomic effect as it actually landed."""
    effect: RuleEffect
    amount: int
    description: str
    target_id: str | None = None


@dataclass
class EffectOutcome:
    """Everything a card resolution did, for scoring and the UI."""
    card: Card
    source: EffectSource
    rule: CardRule | EventRule | None = None
    applied: list[AppliedEffect] = field(default_factory=list)
    damage_to_eco: int = 0
    damage_to_player: int = 0
    healed: int = 0
    critical: bool = False
    cards_drawn: list[Card] = field(default_factory=list)
    nodes_damaged: list[str] = field(default_factory=list)
    nodes_repaired: list[str] = field(default_factory=list)
    statuses_applied: list[str] = field(default_factory=list)

    @property
    def resolved(self) -> bool:
        return self.rule is not None


class CardEffectEngine:
    """
    Applies card rules to the game state.

    Every write goes through the store or a subsystem that writes
    through the store.
    """

    # Extra draws allowed per call to replace hallucinations
    MAX_EXTRA_DRAWS = 20

    def __init__(
        self,
        store: GameStateStore,
        deck: DeckManager,
        nodes: NodeSystem,
        ruleset: Ruleset,
        hallucination: HallucinationSystem | None = None,
        log: GameLog | None = None,
        rng: random.Random | None = None,
        evaluator: ExpressionEvaluator | None = None,
    ):
        self.store = store
        self.deck = deck
        self.nodes = nodes
        self.ruleset = ruleset
        self.hallucination = hallucination
        self.log = log
        self.rng = rng or random.Random()
        self.evaluator = evaluator or ExpressionEvaluator()

        self._handlers: dict[EffectType, Callable[[RuleEffect, EffectContext, EffectOutcome], AppliedEffect | None]] = {
            EffectType.DEAL_DAMAGE: self._deal_damage,
            EffectType.HEAL_STAT: self._heal_stat,
            EffectType.DRAW_CARDS: self._draw_cards,
            EffectType.DISCARD_CARDS: self._discard_cards,
            EffectType.APPLY_STATUS: self._apply_status,
            EffectType.REPAIR_NODE: self._repair_node,
            EffectType.DAMAGE_NODE: self._damage_node,
        }

    # ------------------------------------------------------------------
    # Rule lookup
    # ------------------------------------------------------------------

    def rule_for(self, card: Card, source: EffectSource = EffectSource.PLAYER) -> CardRule | None:
        if source == EffectSource.ECO:
            return self.ruleset.match_eco(card)
        return self.ruleset.match_player(card)

    def cost_of(self, card: Card) -> int:
        """AP cost to play a card. Unmapped cards cost 1."""
        rule = self.ruleset.match_player(card)
        return rule.cost if rule else 1

    # ------------------------------------------------------------------
    # Resolution
    # ------------------------------------------------------------------

    def apply_effect(
        self,
        card: Card,
        source: EffectSource = EffectSource.PLAYER,
        *,
        scale: float = 1.0,
        target_node_id: str | None = None,
    ) -> EffectOutcome:
        """
        Resolve a card for the given side.

        Unmapped cards are a logged no-op.
        """
        context = EffectContext(card=card, source=source, scale=scale, target_node_id=target_node_id)
        rule = self.rule_for(card, source)
        outcome = EffectOutcome(card=card, source=source, rule=rule)

        if rule is None:
            logger.warning("No %s rule for card %s", source.value, card.id)
            self._log(f"{card.id} has no effect", context, LogType.INFO)
            return outcome

        self._run_effects(rule.effects, context, outcome)
        return outcome

    def apply_event(self, card: Card) -> EffectOutcome | None:
        """Resolve the dynamic event keyed by this card, if any."""
        event = self.ruleset.event_for(card)
        if event is None:
            return None
        context = EffectContext(card=card, source=EffectSource.EVENT)
        outcome = EffectOutcome(card=card, source=EffectSource.EVENT, rule=event)
        self._log(f"Event: {event.name}", context, LogType.SPECIAL)
        self._run_effects(event.effects, context, outcome)
        return outcome

    def _run_effects(
        self,
        effects: tuple[RuleEffect, ...],
        context: EffectContext,
        outcome: EffectOutcome,
    ) -> None:
        for effect in effects:
            if self.store.game_over:
                break
            applied = self.apply_rule_effect(effect, context, outcome)
            if applied is not None:
                outcome.applied.append(applied)

    def apply_rule_effect(
        self,
        effect: RuleEffect,
        context: EffectContext,
        outcome: EffectOutcome | None = None,
    ) -> AppliedEffect | None:
        """Apply one atomic effect. Returns None when it had nothing to act on."""
        outcome = outcome or EffectOutcome(card=context.card, source=context.source)
        handler = self._handlers.get(effect.type)
        if handler is None:
            logger.warning("No handler for effect type %s", effect.type)
            return None
        return handler(effect, context, outcome)

    def _value(self, effect: RuleEffect, context: EffectContext) -> int:
        state = self.store.state
        expr_context = ExpressionContext.for_card(
            context.card.value,
            TURN=state.turn,
            CORRUPTION=state.corruption_level,
        )
        try:
            return self.evaluator.evaluate_int(effect.value, expr_context)
        except (ExpressionError, ArithmeticError, ValueError) as e:
            # A formula that parses can still fail for the current state
            logger.warning("Formula for %s evaluated to 0: %s", context.card.id, e)
            return 0

    def _scaled(self, amount: int, context: EffectContext) -> int:
        if context.source != EffectSource.ECO or context.scale == 1.0:
            return amount
        return max(0, math.ceil(amount * context.scale))

    # ------------------------------------------------------------------
    # Effect handlers
    # ------------------------------------------------------------------

    def _deal_damage(self, effect: RuleEffect, context: EffectContext, outcome: EffectOutcome) -> AppliedEffect | None:
        amount = self._value(effect, context)

        if effect.target == Target.ECO:
            critical = False
            if context.source == EffectSource.PLAYER:
                amount += self.store.state.critical_damage_boost
                if self.store.consume_exposure():
                    amount *= 2
                    critical = True
            dealt = self.store.damage_eco(amount)
            outcome.damage_to_eco += dealt
            outcome.critical = outcome.critical or critical
            text = f"{context.card.id} hits the Eco for {dealt}" + (" (critical!)" if critical else "")
            self._log(text, context, LogType.ATTACK)
            return AppliedEffect(effect, dealt, text, target_id="eco")

        amount = self._scaled(amount, context)
        stat = effect.target_stat or Stat.PV
        if stat == Stat.PV:
            before = self.store.pv
            lost = before - self.store.modify_pv(-amount)
            label = "health"
        elif stat == Stat.COR:
            before = self.store.sanity
            lost = before - self.store.modify_sanity(-amount)
            label = "sanity"
        else:
            before = self.store.action_points
            lost = before - self.store.modify_action_points(-amount)
            label = "action points"
        if stat in (Stat.PV, Stat.COR):
            outcome.damage_to_player += lost
        text = f"You lose {lost} {label}"
        self._log(text, context, LogType.DAMAGE)
        return AppliedEffect(effect, lost, text, target_id="player")

    def _heal_stat(self, effect: RuleEffect, context: EffectContext, outcome: EffectOutcome) -> AppliedEffect | None:
        amount = self._value(effect, context)

        if effect.target == Target.ECO:
            healed = self.store.heal_eco(amount)
            text = f"The Eco regenerates {healed} HP"
            self._log(text, context, LogType.HEAL)
            return AppliedEffect(effect, healed, text, target_id="eco")

        stat = effect.target_stat or Stat.PV
        if stat == Stat.PV:
            before = self.store.pv
            healed = self.store.modify_pv(amount) - before
            label = "health"
        elif stat == Stat.COR:
            before = self.store.sanity
            healed = self.store.modify_sanity(amount) - before
            label = "sanity"
        else:
            before = self.store.action_points
            healed = self.store.modify_action_points(amount) - before
            label = "action points"
        outcome.healed += healed
        text = f"You recover {healed} {label}"
        self._log(text, context, LogType.HEAL)
        return AppliedEffect(effect, healed, text, target_id="player")

    def _draw_cards(self, effect: RuleEffect, context: EffectContext, outcome: EffectOutcome) -> AppliedEffect | None:
        count = self._value(effect, context)
        drawn = self.draw_to_hand(count, allow_overflow=True)
        outcome.cards_drawn.extend(drawn)
        text = f"You search and draw {len(drawn)} card(s)"
        self._log(text, context, LogType.SEARCH)
        return AppliedEffect(effect, len(drawn), text, target_id="player")

    def _discard_cards(self, effect: RuleEffect, context: EffectContext, outcome: EffectOutcome) -> AppliedEffect | None:
        count = self._value(effect, context)
        hand = self.store.hand
        if not hand or count <= 0:
            return None
        victims = self.rng.sample(hand, min(count, len(hand)))
        discarded = self.discard_from_hand([c.id for c in victims])
        text = f"You drop {', '.join(c.id for c in discarded)}"
        self._log(text, context, LogType.DISCARD)
        return AppliedEffect(effect, len(discarded), text, target_id="player")

    def _apply_status(self, effect: RuleEffect, context: EffectContext, outcome: EffectOutcome) -> AppliedEffect | None:
        status = effect.status
        if status == Status.EXPOSED:
            turns = effect.duration if effect.duration is not None else 1
            self.store.expose_eco(max(1, turns))
            text = "The Eco is exposed"
        elif status == Status.CANNOT_PLAY_SPADES:
            self.store.add_player_status(CANNOT_PLAY_SPADES, effect.duration or 0)
            text = "Your hands shake: no Spades this turn"
        elif status == Status.CRITICAL_BOOST:
            amount = self._value(effect, context)
            self.store.set_critical_damage_boost(self.store.state.critical_damage_boost + amount)
            text = f"Attacks deal +{amount} damage"
        else:
            return None
        outcome.statuses_applied.append(status.value)
        self._log(text, context, LogType.SPECIAL)
        return AppliedEffect(effect, effect.duration or 0, text)

    def _repair_node(self, effect: RuleEffect, context: EffectContext, outcome: EffectOutcome) -> AppliedEffect | None:
        node = self._pick_node(effect, context, damaged=True)
        if node is None:
            self._log("Nothing to repair", context, LogType.INFO)
            return None
        amount = self._value(effect, context)
        updated = self.nodes.repair_node(node.id, amount)
        repaired = node.damage - updated.damage
        if repaired > 0:
            outcome.nodes_repaired.append(node.id)
        return AppliedEffect(effect, repaired, f"{node.name} repaired by {repaired}", target_id=node.id)

    def _damage_node(self, effect: RuleEffect, context: EffectContext, outcome: EffectOutcome) -> AppliedEffect | None:
        node = self._pick_node(effect, context, damaged=False)
        if node is None:
            return None
        amount = self._scaled(self._value(effect, context), context)
        updated = self.nodes.damage_node(node.id, amount)
        dealt = updated.damage - node.damage
        if dealt > 0:
            outcome.nodes_damaged.append(node.id)
        return AppliedEffect(effect, dealt, f"{node.name} takes {dealt} damage", target_id=node.id)

    def _pick_node(self, effect: RuleEffect, context: EffectContext, damaged: bool) -> Node | None:
        candidates = self.nodes.damaged_nodes() if damaged else self.nodes.intact_nodes()
        if not candidates:
            return None

        if effect.target == Target.NODE:
            node = self.nodes.get_node(effect.node_id or "")
            return node if node in candidates else None

        if effect.target == Target.CHOICE:
            if context.target_node_id:
                chosen = self.nodes.get_node(context.target_node_id)
                if chosen in candidates:
                    return chosen
            if damaged:
                return max(candidates, key=lambda n: (n.damage, n.id))

        return self.rng.choice(candidates)

    # ------------------------------------------------------------------
    # Card flow
    # ------------------------------------------------------------------

    def draw_to_hand(self, count: int, allow_overflow: bool = False) -> list[Card]:
        """
        Draw count cards into the hand.

        Hallucinations (conjured by corruption or drawn from the deck)
        are resolved and replaced by another draw. Without overflow the
        count is capped by free hand space.
        """
        state = self.store.state
        if not allow_overflow:
            count = min(count, max(0, state.max_hand_size - len(state.hand)))

        drawn: list[Card] = []
        attempts = 0
        while len(drawn) < count and attempts < count + self.MAX_EXTRA_DRAWS:
            if self.store.game_over:
                break
            attempts += 1

            if self.hallucination is not None and self.hallucination.should_substitute():
                self.hallucination.apply_hallucination_effect(self.hallucination.conjure())
                continue

            card = self.deck.draw_one(DeckOwner.PLAYER)
            if card is None:
                self._log("Your deck is empty", None, LogType.INFO)
                break
            if card.is_hallucination:
                self._resolve_drawn_hallucination(card)
                continue
            if self.store.add_to_hand(card):
                drawn.append(card)
            else:
                self.deck.discard([card], DeckOwner.PLAYER)

        if len(self.store.state.hand) > self.store.state.max_hand_size:
            self.store.set_hand_overflow(True)
        return drawn

    def fill_hand(self) -> list[Card]:
        """Draw until the hand is full or nothing more can be drawn."""
        drawn: list[Card] = []
        for _ in range(3):
            missing = self.store.state.max_hand_size - len(self.store.state.hand)
            if missing <= 0 or self.store.game_over:
                break
            batch = self.draw_to_hand(missing)
            if not batch:
                break
            drawn.extend(batch)
        return drawn

    def discard_from_hand(self, card_ids: list[str]) -> list[Card]:
        removed = []
        for card_id in card_ids:
            card = self.store.remove_from_hand(card_id)
            if card is not None:
                removed.append(card)
        self.deck.discard(removed, DeckOwner.PLAYER)
        return removed

    def repair_with_cards(self, node_id: str, cards: list[Card]) -> int:
        """Repair a node by floor(total card value / 5). Returns damage removed."""
        amount = sum(c.value for c in cards) // REPAIR_DIVISOR
        node = self.nodes.get_node(node_id)
        if node is None or amount <= 0:
            return 0
        updated = self.nodes.repair_node(node_id, amount)
        return node.damage - updated.damage

    def _resolve_drawn_hallucination(self, card: AnyCard) -> None:
        if self.hallucination is not None:
            self.hallucination.apply_hallucination_effect(card)
        else:
            self.deck.discard([card], DeckOwner.PLAYER)

    def _log(self, message: str, context: EffectContext | None, log_type: LogType) -> None:
        if self.log is None:
            return
        source = context.log_source if context else LogSource.SYSTEM
        self.log.add(message, source=source, type=log_type)
