"""
Score System - Turns gameplay events into points.

Scoring pipeline for each event:
1. Base points from the score table (or an explicit amount)
2. x product of every active multiplier
3. x combo factor, bonus ** (count - 1), while a combo chain is alive
4. Rounded and appended to an append-only ledger of ScoreEvents

The ledger is the source for every derived view (breakdown by category,
performance rating, export).
"""

from __future__ import annotations
from dataclasses import asdict, dataclass, field
from typing import Any, Callable
import logging
import math
import time

logger = logging.getLogger(__name__)


SCORE_VALUES: dict[str, int] = {
    "damage_dealt": 10,
    "eco_killed": 500,
    "critical_hit": 50,
    "turn_survived": 20,
    "perfect_turn": 100,
    "node_repaired": 100,
    "node_protected": 150,
    "card_played": 15,
    "combo_played": 25,
    "heal_received": 5,
    "resource_saved": 30,
    "event_overcome": 40,
    "status_applied": 30,
    "time_bonus": 200,
    "difficulty_bonus": 100,
}


@dataclass(frozen=True)
class ComboType:
    window: float  # seconds
    bonus: float


COMBO_TYPES: dict[str, ComboType] = {
    "same_suit": ComboType(window=10.0, bonus=1.2),
    "perfect_defense": ComboType(window=15.0, bonus=1.5),
    "node_master": ComboType(window=20.0, bonus=1.4),
}

# Event type that feeds each tracked combo
COMBO_TRIGGERS = {
    "card_played": "same_suit",
    "perfect_turn": "perfect_defense",
    "node_repaired": "node_master",
}

CATEGORIES: dict[str, tuple[str, ...]] = {
    "combat": ("damage_dealt", "eco_killed", "critical_hit"),
    "survival": ("turn_survived", "perfect_turn", "heal_received"),
    "defense": ("node_repaired", "node_protected"),
    "strategy": ("card_played", "combo_played", "resource_saved"),
    "events": ("event_overcome", "status_applied"),
    "bonuses": ("time_bonus", "difficulty_bonus"),
}

DIFFICULTY_LEVELS = {"normal": 0, "hard": 1, "nightmare": 2}


@dataclass(frozen=True)
class ScoreEvent:
    """One immutable ledger entry."""
    type: str
    points: int
    base: float
    multiplier: float
    timestamp: float
    context: dict[str, Any] = field(default_factory=dict, hash=False)


@dataclass
class ScoreMultiplier:
    """An active multiplier. duration None means permanent."""
    id: str
    value: float
    started_at: float
    duration: float | None = None
    source: str = ""

    def active_at(self, now: float) -> bool:
        return self.duration is None or now - self.started_at < self.duration


@dataclass
class ComboTracker:
    count: int = 0
    max_count: int = 0
    last_action: float | None = None
    last_key: str | None = None


@dataclass
class PerformanceMetrics:
    average_per_turn: float
    average_per_minute: float
    best_multiplier: float
    total_combos: int
    rating: str


ScoreListener = Callable[[ScoreEvent, int], None]


class ScoreSystem:
    """
    Score ledger with multipliers and combo windows.

    The clock is injectable so tests can control combo windows.
    """

    def __init__(
        self,
        score_values: dict[str, int] | None = None,
        clock: Callable[[], float] = time.time,
    ):
        self.score_values = {**SCORE_VALUES, **(score_values or {})}
        self.clock = clock
        self._events: list[ScoreEvent] = []
        self._total = 0
        self._multipliers: list[ScoreMultiplier] = []
        self._combos: dict[str, ComboTracker] = {}
        self._listeners: list[ScoreListener] = []

    @property
    def total_score(self) -> int:
        return self._total

    def history(self) -> list[ScoreEvent]:
        return list(self._events)

    # ------------------------------------------------------------------
    # Core
    # ------------------------------------------------------------------

    def add_score(
        self,
        event_type: str,
        amount: float | None = None,
        context: dict[str, Any] | None = None,
    ) -> ScoreEvent:
        """Record a scoring event and return the ledger entry."""
        context = dict(context or {})
        now = self.clock()
        base = amount if amount is not None else self.score_values.get(event_type, 0)

        multiplier = self._active_multiplier(now)
        combo = self._update_combos(event_type, context, now)
        points = int(round(base * multiplier * combo))

        event = ScoreEvent(
            type=event_type,
            points=points,
            base=base,
            multiplier=multiplier * combo,
            timestamp=now,
            context=context,
        )
        self._events.append(event)
        self._total += points
        self._notify(event)

        if combo > 1.1:
            self.add_score(
                "combo_played",
                round(self.score_values["combo_played"] * combo),
                {"combo": combo, "trigger": event_type},
            )
        return event

    def add_multiplier(
        self,
        multiplier_id: str,
        value: float,
        duration: float | None = None,
        source: str = "",
    ) -> None:
        """Add (or replace) a multiplier. duration None means permanent."""
        self._multipliers = [m for m in self._multipliers if m.id != multiplier_id]
        self._multipliers.append(
            ScoreMultiplier(
                id=multiplier_id,
                value=value,
                started_at=self.clock(),
                duration=duration,
                source=source,
            )
        )

    def remove_multiplier(self, multiplier_id: str) -> bool:
        before = len(self._multipliers)
        self._multipliers = [m for m in self._multipliers if m.id != multiplier_id]
        return len(self._multipliers) != before

    def active_multipliers(self) -> list[ScoreMultiplier]:
        now = self.clock()
        self._multipliers = [m for m in self._multipliers if m.active_at(now)]
        return list(self._multipliers)

    def _active_multiplier(self, now: float) -> float:
        self._multipliers = [m for m in self._multipliers if m.active_at(now)]
        return math.prod(m.value for m in self._multipliers)

    def _update_combos(self, event_type: str, context: dict[str, Any], now: float) -> float:
        combo_name = COMBO_TRIGGERS.get(event_type)
        if combo_name is None:
            return 1.0

        combo_type = COMBO_TYPES[combo_name]
        tracker = self._combos.setdefault(combo_name, ComboTracker())
        key = context.get("suit") if combo_name == "same_suit" else None

        in_window = tracker.last_action is not None and now - tracker.last_action <= combo_type.window
        same_kind = combo_name != "same_suit" or key is None or tracker.last_key in (None, key)
        if in_window and same_kind:
            tracker.count += 1
        else:
            tracker.count = 1
        tracker.max_count = max(tracker.max_count, tracker.count)
        tracker.last_action = now
        tracker.last_key = key
        return combo_type.bonus ** (tracker.count - 1)

    # ------------------------------------------------------------------
    # Scoring helpers
    # ------------------------------------------------------------------

    def score_eco_damage(self, damage: int, critical: bool = False) -> list[ScoreEvent]:
        events = []
        if damage > 0:
            events.append(
                self.add_score("damage_dealt", self.score_values["damage_dealt"] * damage, {"damage": damage})
            )
        if critical:
            events.append(self.add_score("critical_hit"))
        return events

    def score_eco_killed(self) -> ScoreEvent:
        return self.add_score("eco_killed")

    def score_turn_survival(self, damage_taken: int = 0) -> list[ScoreEvent]:
        events = [self.add_score("turn_survived")]
        if damage_taken == 0:
            events.append(self.add_score("perfect_turn"))
        return events

    def score_node_action(self, action: str, node_id: str | None = None) -> ScoreEvent | None:
        if action == "repair":
            return self.add_score("node_repaired", context={"node": node_id})
        if action == "protect":
            return self.add_score("node_protected", context={"node": node_id})
        return None

    def score_card_play(self, card_id: str, suit: str | None) -> ScoreEvent:
        return self.add_score("card_played", context={"card": card_id, "suit": suit})

    def score_heal(self, amount: int) -> ScoreEvent | None:
        if amount <= 0:
            return None
        return self.add_score("heal_received", self.score_values["heal_received"] * amount, {"amount": amount})

    def score_event_handling(self, event_type: str) -> ScoreEvent | None:
        if event_type == "event_overcome":
            return self.add_score("event_overcome")
        if event_type == "status_applied":
            return self.add_score("status_applied")
        if event_type == "resource_saved":
            return self.add_score("resource_saved")
        return None

    def score_time_bonus(self, elapsed: float, par: float) -> ScoreEvent | None:
        """Bonus proportional to how far under par (seconds) the run finished."""
        if elapsed >= par or par <= 0:
            return None
        ratio = (par - elapsed) / par
        return self.add_score("time_bonus", round(self.score_values["time_bonus"] * ratio))

    def score_difficulty_bonus(self, difficulty: str) -> ScoreEvent | None:
        level = DIFFICULTY_LEVELS.get(difficulty, 0)
        if level == 0:
            return None
        return self.add_score("difficulty_bonus", self.score_values["difficulty_bonus"] * level)

    # ------------------------------------------------------------------
    # Analytics
    # ------------------------------------------------------------------

    def breakdown(self) -> dict[str, int]:
        totals: dict[str, int] = {}
        for event in self._events:
            category = _category_for(event.type)
            totals[category] = totals.get(category, 0) + event.points
        return totals

    def max_combos(self) -> dict[str, int]:
        return {name: tracker.max_count for name, tracker in self._combos.items()}

    def performance_metrics(self) -> PerformanceMetrics:
        turns = sum(1 for e in self._events if e.type == "turn_survived")
        combos = sum(1 for e in self._events if e.type == "combo_played")
        elapsed = self._events[-1].timestamp - self._events[0].timestamp if self._events else 0.0
        per_turn = self._total / turns if turns else 0.0
        per_minute = self._total / elapsed * 60 if elapsed > 0 else 0.0
        best = max((e.multiplier for e in self._events), default=1.0)

        if per_turn < 100:
            rating = "Poor"
        elif per_turn < 300:
            rating = "Good"
        elif per_turn < 500:
            rating = "Excellent"
        else:
            rating = "Legendary"

        return PerformanceMetrics(
            average_per_turn=per_turn,
            average_per_minute=per_minute,
            best_multiplier=best,
            total_combos=combos,
            rating=rating,
        )

    # ------------------------------------------------------------------
    # State management
    # ------------------------------------------------------------------

    def reset(self) -> None:
        self._events = []
        self._total = 0
        self._multipliers = []
        self._combos = {}

    def export(self) -> dict[str, Any]:
        return {
            "total_score": self._total,
            "events": [asdict(e) for e in self._events],
            "multipliers": [asdict(m) for m in self._multipliers],
        }

    def import_data(self, data: dict[str, Any]) -> bool:
        """Restore from export(). Returns False (leaving state untouched) on bad data."""
        try:
            events = [ScoreEvent(**e) for e in data.get("events", [])]
            multipliers = [ScoreMultiplier(**m) for m in data.get("multipliers", [])]
            total = int(data.get("total_score", sum(e.points for e in events)))
        except (TypeError, ValueError) as e:
            logger.warning("Could not import score data: %s", e)
            return False
        self._events = events
        self._multipliers = multipliers
        self._total = total
        self._combos = {}
        return True

    def subscribe(self, listener: ScoreListener) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _notify(self, event: ScoreEvent) -> None:
        for listener in list(self._listeners):
            try:
                listener(event, self._total)
            except Exception:
                logger.exception("Score listener %r failed", listener)


def _category_for(event_type: str) -> str:
    for category, types in CATEGORIES.items():
        if event_type in types:
            return category
    return "other"
