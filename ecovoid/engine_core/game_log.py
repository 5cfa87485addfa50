"""
Game Log - Human-readable feed of what happened in the run.

This is the player-facing event feed, distinct from diagnostic logging.
Only the newest messages are kept; new subscribers immediately receive
the current feed.
"""

from __future__ import annotations
from dataclasses import dataclass
from enum import Enum
from typing import Callable
import itertools
import logging

logger = logging.getLogger(__name__)

MAX_MESSAGES = 30


class LogSource(Enum):
    PLAYER = "player"
    ECO = "eco"
    SYSTEM = "system"
    EVENT = "event"


class LogType(Enum):
    ATTACK = "attack"
    DEFEND = "defend"
    SEARCH = "search"
    FOCUS = "focus"
    DRAW = "draw"
    DISCARD = "discard"
    DAMAGE = "damage"
    HEAL = "heal"
    SPECIAL = "special"
    NODE_DAMAGE = "node_damage"
    NODE_REPAIR = "node_repair"
    HALLUCINATION = "hallucination"
    INFO = "info"


@dataclass(frozen=True)
class LogMessage:
    id: int
    message: str
    source: LogSource = LogSource.SYSTEM
    type: LogType = LogType.INFO

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "message": self.message,
            "source": self.source.value,
            "type": self.type.value,
        }


LogListener = Callable[[list[LogMessage]], None]


class GameLog:
    """Bounded message feed with subscribe/unsubscribe."""

    def __init__(self, max_messages: int = MAX_MESSAGES):
        self.max_messages = max_messages
        self._messages: list[LogMessage] = []
        self._ids = itertools.count(1)
        self._listeners: list[LogListener] = []

    @property
    def messages(self) -> list[LogMessage]:
        return list(self._messages)

    def add(
        self,
        message: str,
        source: LogSource = LogSource.SYSTEM,
        type: LogType = LogType.INFO,
    ) -> LogMessage:
        entry = LogMessage(id=next(self._ids), message=message, source=source, type=type)
        self._messages.append(entry)
        if len(self._messages) > self.max_messages:
            self._messages = self._messages[-self.max_messages:]
        logger.debug("[%s/%s] %s", source.value, type.value, message)
        self._notify()
        return entry

    def clear(self) -> None:
        self._messages = []
        self._notify()

    def subscribe(self, listener: LogListener) -> Callable[[], None]:
        self._listeners.append(listener)
        listener(self.messages)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _notify(self) -> None:
        snapshot = self.messages
        for listener in list(self._listeners):
            try:
                listener(snapshot)
            except Exception:
                logger.exception("Log listener %r failed", listener)
