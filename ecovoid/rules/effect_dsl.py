"""
Effect DSL - Data-driven card rules.

A ruleset maps cards to ordered lists of atomic effects:

    {"condition": {"suit": "spades"},
     "cost": 1,
     "effects": [{"type": "DEAL_DAMAGE", "target": "ECO",
                  "target_stat": "HP", "value": "CARD_VALUE"}]}

Key design decisions:
- Matching is declarative: a condition lists card attributes that must
  all hold (id, suit, color, rank)
- The most specific matching rule wins (id > rank+suit > rank > suit > color)
- Values are numbers or formulas evaluated by ExpressionEvaluator
- Rulesets are validated once at load time, not during play
"""

from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, TYPE_CHECKING

if TYPE_CHECKING:
    from ..engine_core.cards import Card


class EffectType(Enum):
    """Atomic effects a rule can apply."""
    DEAL_DAMAGE = "DEAL_DAMAGE"
    HEAL_STAT = "HEAL_STAT"
    DRAW_CARDS = "DRAW_CARDS"
    DISCARD_CARDS = "DISCARD_CARDS"
    APPLY_STATUS = "APPLY_STATUS"
    REPAIR_NODE = "REPAIR_NODE"
    DAMAGE_NODE = "DAMAGE_NODE"


class Target(Enum):
    """Who or what an effect lands on."""
    PLAYER = "PLAYER"
    ECO = "ECO"
    RANDOM = "RANDOM"  # random node
    CHOICE = "CHOICE"  # node chosen by the player (falls back to most damaged)
    NODE = "NODE"  # a named node (node_id)


class Stat(Enum):
    HP = "HP"  # Eco hit points
    PV = "PV"  # survivor health
    COR = "COR"  # survivor sanity
    PA = "PA"  # survivor action points


class Status(Enum):
    EXPOSED = "EXPOSED"
    CANNOT_PLAY_SPADES = "CANNOT_PLAY_SPADES"
    CRITICAL_BOOST = "CRITICAL_BOOST"


@dataclass(frozen=True)
class RuleEffect:
    """One atomic effect."""
    type: EffectType
    target: Target
    value: int | str = 0
    target_stat: Stat | None = None
    status: Status | None = None
    duration: int | None = None
    node_id: str | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> RuleEffect:
        stat = data.get("target_stat", data.get("targetStat"))
        status = data.get("status")
        return cls(
            type=EffectType(data["type"]),
            target=Target(data["target"]),
            value=data.get("value", 0),
            target_stat=Stat(stat) if stat else None,
            status=Status(status.upper()) if status else None,
            duration=data.get("duration"),
            node_id=data.get("node_id"),
        )

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "type": self.type.value,
            "target": self.target.value,
            "value": self.value,
        }
        if self.target_stat:
            data["target_stat"] = self.target_stat.value
        if self.status:
            data["status"] = self.status.value
        if self.duration is not None:
            data["duration"] = self.duration
        if self.node_id:
            data["node_id"] = self.node_id
        return data


@dataclass(frozen=True)
class RuleCondition:
    """Card attributes that must all match. An empty condition matches nothing."""
    card_id: str | None = None
    suit: str | None = None
    color: str | None = None
    rank: str | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> RuleCondition:
        return cls(
            card_id=data.get("id", data.get("card_id")),
            suit=data["suit"].lower() if data.get("suit") else None,
            color=data["color"].lower() if data.get("color") else None,
            rank=str(data["rank"]).upper() if data.get("rank") is not None else None,
        )

    @property
    def is_empty(self) -> bool:
        return not (self.card_id or self.suit or self.color or self.rank)

    @property
    def specificity(self) -> int:
        if self.card_id:
            return 4
        if self.rank and self.suit:
            return 3
        if self.rank:
            return 2
        if self.suit:
            return 1
        return 0

    def matches(self, card: Card) -> bool:
        if self.is_empty:
            return False
        if self.card_id and self.card_id.upper() != card.id:
            return False
        if self.suit and self.suit != card.suit.value:
            return False
        if self.color and self.color != card.color:
            return False
        if self.rank and self.rank != card.rank:
            return False
        return True

    def to_dict(self) -> dict[str, Any]:
        data = {"id": self.card_id, "suit": self.suit, "color": self.color, "rank": self.rank}
        return {k: v for k, v in data.items() if v is not None}


@dataclass(frozen=True)
class CardRule:
    """What happens when a matching card is played."""
    condition: RuleCondition
    effects: tuple[RuleEffect, ...]
    cost: int = 1
    comment: str = ""

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> CardRule:
        return cls(
            condition=RuleCondition.from_dict(data.get("condition", {})),
            effects=tuple(RuleEffect.from_dict(e) for e in data.get("effects", [])),
            cost=data.get("cost", 1),
            comment=data.get("comment", ""),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "condition": self.condition.to_dict(),
            "cost": self.cost,
            "effects": [e.to_dict() for e in self.effects],
            "comment": self.comment,
        }


@dataclass(frozen=True)
class EventRule:
    """A dynamic event revealed during the EVENT phase, keyed by card id."""
    card_id: str
    name: str
    effects: tuple[RuleEffect, ...]
    flavor: str = ""

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> EventRule:
        return cls(
            card_id=data["id"].upper(),
            name=data.get("event", data.get("name", data["id"])),
            effects=tuple(RuleEffect.from_dict(e) for e in data.get("effects", [])),
            flavor=data.get("flavor", ""),
        )


@dataclass
class Ruleset:
    """
    Complete rule catalog for a scenario.

    player_actions: rules for cards the survivor plays
    eco_attacks: rules for cards the Eco plays
    events: dynamic events by card id
    """
    player_actions: list[CardRule] = field(default_factory=list)
    eco_attacks: list[CardRule] = field(default_factory=list)
    events: dict[str, EventRule] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Ruleset:
        events = [EventRule.from_dict(e) for e in data.get("events", [])]
        return cls(
            player_actions=[CardRule.from_dict(r) for r in data.get("player_actions", data.get("playerActions", []))],
            eco_attacks=[CardRule.from_dict(r) for r in data.get("eco_attacks", data.get("ecoAttacks", []))],
            events={e.card_id: e for e in events},
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "player_actions": [r.to_dict() for r in self.player_actions],
            "eco_attacks": [r.to_dict() for r in self.eco_attacks],
            "events": [
                {
                    "id": e.card_id,
                    "event": e.name,
                    "flavor": e.flavor,
                    "effects": [eff.to_dict() for eff in e.effects],
                }
                for e in self.events.values()
            ],
        }

    def match_player(self, card: Card) -> CardRule | None:
        return _best_match(self.player_actions, card)

    def match_eco(self, card: Card) -> CardRule | None:
        return _best_match(self.eco_attacks, card)

    def event_for(self, card: Card) -> EventRule | None:
        return self.events.get(card.id)


def _best_match(rules: list[CardRule], card: Card) -> CardRule | None:
    best: CardRule | None = None
    for rule in rules:
        if not rule.condition.matches(card):
            continue
        # Earlier rules win ties
        if best is None or rule.condition.specificity > best.condition.specificity:
            best = rule
    return best
