"""
Session Manager - Creates and tracks running games.

LIFECYCLE:
1. create_session() builds a fresh GameLoop and starts a run
2. Commands and time advances are routed to the session's loop
3. end_session() drops the session; abandoned runs are recorded as losses
4. cleanup_stale_sessions() frees finished sessions past a max age

PERSISTENCE RULES:
- Sessions are in-memory only
- The player profile is the only persisted state, shared by every
  session through one ChapterManager
"""

from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable
import logging
import time
import uuid

from ..progression.manager import ChapterManager
from .game_loop import GameLoop

logger = logging.getLogger(__name__)


class SessionState(Enum):
    """State of a game session."""
    ACTIVE = "active"  # Run in progress
    GAME_OVER = "game_over"  # Run finished
    ABANDONED = "abandoned"  # User quit


@dataclass
class Session:
    """
    One game in progress.

    The session is dropped when the game ends or is abandoned.
    """
    session_id: str
    loop: GameLoop
    created_at: float
    state: SessionState = SessionState.ACTIVE
    last_activity: float = 0.0
    metadata: dict[str, Any] = field(default_factory=dict)

    def is_active(self) -> bool:
        """Check if the run is still going."""
        if self.state == SessionState.ACTIVE and self.loop.store.game_over:
            self.state = SessionState.GAME_OVER
        return self.state == SessionState.ACTIVE

    def touch(self, now: float) -> None:
        self.last_activity = now


class SessionManager:
    """
    Manages game sessions.

    Responsibilities:
    - Create sessions with their own GameLoop
    - Track active sessions
    - Clean up finished sessions
    """

    def __init__(
        self,
        chapters: ChapterManager | None = None,
        settle_delay: float = 0.0,
        phase_delay: float = 0.0,
        clock: Callable[[], float] = time.time,
    ):
        self.chapters = chapters or ChapterManager()
        self.settle_delay = settle_delay
        self.phase_delay = phase_delay
        self.clock = clock
        self._sessions: dict[str, Session] = {}

    def create_session(
        self,
        scenario_id: str | None = None,
        chapter_id: str | None = None,
        seed: int | None = None,
        policy: str = "highest",
    ) -> Session | None:
        """
        Create a session and start its run.

        Returns None if the chapter or scenario cannot be played (unknown or locked).
        """
        loop = GameLoop(
            chapters=self.chapters,
            seed=seed,
            settle_delay=self.settle_delay,
            phase_delay=self.phase_delay,
            policy=policy,
            clock=self.clock,
        )
        if not loop.start(scenario_id=scenario_id, chapter_id=chapter_id):
            return None

        now = self.clock()
        session = Session(
            session_id=str(uuid.uuid4()),
            loop=loop,
            created_at=now,
            last_activity=now,
            metadata={"seed": seed, "policy": policy},
        )
        self._sessions[session.session_id] = session
        logger.info("Session %s created (scenario=%s chapter=%s)", session.session_id, scenario_id, chapter_id)
        return session

    def get_session(self, session_id: str) -> Session | None:
        """Get a session by ID."""
        session = self._sessions.get(session_id)
        if session is not None:
            session.touch(self.clock())
        return session

    def end_session(self, session_id: str, reason: str = "completed") -> bool:
        """
        End a session and drop it.

        A run still in progress is abandoned (recorded as a loss).
        """
        session = self._sessions.pop(session_id, None)
        if session is None:
            return False
        if session.is_active():
            session.loop.abandon()
            session.state = SessionState.ABANDONED
        elif reason != "completed":
            session.state = SessionState.ABANDONED
        logger.info("Session %s ended (%s)", session_id, reason)
        return True

    def list_sessions(self) -> list[Session]:
        return list(self._sessions.values())

    def list_active_sessions(self) -> list[str]:
        """List IDs of active sessions."""
        return [
            sid for sid, session in self._sessions.items()
            if session.is_active()
        ]

    def cleanup_stale_sessions(self, max_age_seconds: int = 3600) -> int:
        """
        Drop finished sessions idle for longer than max_age.

        Called periodically to free memory. Returns how many were dropped.
        """
        current_time = self.clock()
        to_remove = [
            session_id for session_id, session in self._sessions.items()
            if current_time - session.last_activity > max_age_seconds and not session.is_active()
        ]
        for session_id in to_remove:
            self.end_session(session_id, reason="stale")
        return len(to_remove)
