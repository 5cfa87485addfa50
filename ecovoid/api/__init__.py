"""
API Module - Game client interface.

Exposes the engine via a REST API. A client:
1. Lists chapters and reads the player profile
2. Starts a run (chapter or free play)
3. Sends player commands during the player_action phase
4. Polls state, the game feed and the score

Games are in-memory. The player profile is the only persisted state.
"""

from .schemas import (
    # Requests
    CreateGameRequest,
    PlayCardRequest,
    FocusRequest,
    RepairRequest,
    AdvanceRequest,
    SelectChapterRequest,
    # Responses
    GameStateResponse,
    CommandResponse,
    ScoreResponse,
    ProfileResponse,
    ChapterListResponse,
    ErrorResponse,
    # Shared
    CardInfo,
    NodeInfo,
    LogEntry,
    # Enums
    ErrorCode,
    GameStatus,
)
from .service import APIService
from .app import create_app

__all__ = [
    # Requests
    "CreateGameRequest",
    "PlayCardRequest",
    "FocusRequest",
    "RepairRequest",
    "AdvanceRequest",
    "SelectChapterRequest",
    # Responses
    "GameStateResponse",
    "CommandResponse",
    "ScoreResponse",
    "ProfileResponse",
    "ChapterListResponse",
    "ErrorResponse",
    # Shared
    "CardInfo",
    "NodeInfo",
    "LogEntry",
    # Enums
    "ErrorCode",
    "GameStatus",
    # Service
    "APIService",
    "create_app",
]
