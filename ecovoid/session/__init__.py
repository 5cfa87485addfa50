"""
Session Module - Running games.

A session is one run:
- Created when the user starts a game
- Holds a GameLoop wiring every engine component
- Dropped when the run ends or is abandoned

Sessions are in-memory. The only persistence is the player profile.
"""

from .manager import SessionManager, Session, SessionState
from .game_loop import GameLoop, LoopState, RunSummary

__all__ = [
    "SessionManager",
    "Session",
    "SessionState",
    "GameLoop",
    "LoopState",
    "RunSummary",
]
