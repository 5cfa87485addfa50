"""
Pydantic Schemas for API - Request/response models for OpenAPI.

These models define the exact contract between a client and the engine.
All responses include explicit types for OpenAPI schema generation.

Error Codes:
- GAME_NOT_FOUND: Game does not exist or has been ended
- CHAPTER_LOCKED: Chapter is unknown, locked or its requirements are unmet
- COMMAND_REJECTED: Command illegal in the current phase or state
- INVALID_PROFILE: Imported profile data is malformed
- VALIDATION_ERROR: Request body is invalid
"""

from enum import Enum
from typing import Optional, Any
from pydantic import BaseModel, Field


# =============================================================================
# Enums
# =============================================================================

class GameStatus(str, Enum):
    """Game status values."""
    YOUR_TURN = "your_turn"
    RESOLVING = "resolving"  # automatic phases pending
    GAME_OVER = "game_over"


class ErrorCode(str, Enum):
    """Structured error codes."""
    GAME_NOT_FOUND = "GAME_NOT_FOUND"
    CHAPTER_LOCKED = "CHAPTER_LOCKED"
    COMMAND_REJECTED = "COMMAND_REJECTED"
    INVALID_PROFILE = "INVALID_PROFILE"
    VALIDATION_ERROR = "VALIDATION_ERROR"
    INTERNAL_ERROR = "INTERNAL_ERROR"


# =============================================================================
# Shared Models
# =============================================================================

class CardInfo(BaseModel):
    """A card in hand or revealed by the Eco."""
    card_id: str
    suit: str
    rank: str
    value: int

    model_config = {"from_attributes": True}


class NodeInfo(BaseModel):
    """A ship system."""
    node_id: str
    name: str
    damage: int
    max_damage: int
    status: str = Field(description="stable, unstable or corrupted")
    collapsed: bool = False


class LogEntry(BaseModel):
    """One line of the game feed."""
    id: int
    message: str
    source: str
    type: str


# =============================================================================
# Request Models
# =============================================================================

class CreateGameRequest(BaseModel):
    """Request to start a game. A chapter takes precedence over a scenario."""
    scenario_id: Optional[str] = Field(None, description="Free-play scenario (default, urban)")
    chapter_id: Optional[str] = Field(None, description="Chapter to play")
    seed: Optional[int] = Field(None, description="Seed for a reproducible run")
    policy: str = Field("highest", description="Eco policy: highest or random")


class PlayCardRequest(BaseModel):
    card_id: str = Field(..., description="Card id, e.g. 7S or 10H")
    target_node_id: Optional[str] = Field(None, description="Node for repair effects")


class FocusRequest(BaseModel):
    card_id: str


class RepairRequest(BaseModel):
    node_id: str
    card_ids: list[str] = Field(default_factory=list, description="Clubs to spend")


class AdvanceRequest(BaseModel):
    seconds: float = Field(..., ge=0.0, description="Seconds of presentation time to let pass")


class SelectChapterRequest(BaseModel):
    chapter_id: str


# =============================================================================
# Response Models
# =============================================================================

class ErrorResponse(BaseModel):
    """Standard error response."""
    error: str = Field(..., description="Human-readable error message")
    error_code: ErrorCode = Field(..., description="Machine-readable error code")
    details: Optional[dict[str, Any]] = Field(None, description="Additional error context")
    api_version: str = Field("v1", description="API version")


class GameStateResponse(BaseModel):
    """Complete game state for display."""
    game_id: str
    status: GameStatus
    scenario_id: str
    chapter_id: Optional[str] = None
    phase: str
    turn: int

    pv: int
    max_pv: int
    sanity: int
    max_sanity: int
    action_points: int
    max_action_points: int
    corruption_level: int = 0
    statuses: dict[str, int] = Field(default_factory=dict)
    hand: list[CardInfo] = Field(default_factory=list)
    max_hand_size: int = 5

    eco_hp: int
    eco_max_hp: int
    eco_phase: str
    eco_exposed: bool = False
    eco_revealed_card: Optional[CardInfo] = None

    nodes: list[NodeInfo] = Field(default_factory=list)
    deck_count: int = 0
    discard_count: int = 0
    score: int = 0
    available_commands: list[str] = Field(default_factory=list)

    game_over: bool = False
    victory: bool = False
    end_cause: Optional[str] = None
    summary: Optional[dict[str, Any]] = None
    api_version: str = "v1"


class CommandResponse(BaseModel):
    """Result of a player command."""
    success: bool
    error: Optional[str] = None
    rejection: Optional[str] = Field(None, description="WRONG_PHASE, INSUFFICIENT_AP, ...")
    changes: list[str] = Field(default_factory=list)
    game_state: GameStateResponse
    api_version: str = "v1"


class GameListResponse(BaseModel):
    """Response listing active games."""
    games: list[str]
    count: int


class EndGameResponse(BaseModel):
    """Response after ending a game."""
    success: bool
    game_id: str


class LogResponse(BaseModel):
    game_id: str
    messages: list[LogEntry] = Field(default_factory=list)


class ScoreResponse(BaseModel):
    """Score ledger summary."""
    game_id: str
    total_score: int
    breakdown: dict[str, int] = Field(default_factory=dict)
    max_combos: dict[str, int] = Field(default_factory=dict)
    average_per_turn: float = 0.0
    best_multiplier: float = 1.0
    combo_count: int = 0
    rating: str = "Poor"
    events: int = 0


class ChapterInfo(BaseModel):
    """A chapter and the player's progress in it."""
    chapter_id: str
    name: str
    description: str = ""
    scenario_id: str
    difficulty: str
    unlocked: bool
    completed: bool = False
    best_score: int = 0
    attempts: int = 0
    victory_conditions: list[str] = Field(default_factory=list)


class ChapterListResponse(BaseModel):
    chapters: list[ChapterInfo]
    current_chapter: Optional[str] = None


class ProfileResponse(BaseModel):
    """The persisted player profile."""
    total_score: int
    current_chapter: Optional[str] = None
    unlocked_content: list[str] = Field(default_factory=list)
    permanent_boosts: dict[str, int] = Field(default_factory=dict)
    chapters_progress: dict[str, dict[str, Any]] = Field(default_factory=dict)


class SelectChapterResponse(BaseModel):
    success: bool
    chapter_id: str
    profile: ProfileResponse


class HealthResponse(BaseModel):
    """Health check response."""
    status: str
    service: str
    version: str
