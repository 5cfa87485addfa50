"""
FastAPI Application - REST API for the game client.

Endpoints:
    GET    /api/v1/health               Health check
    POST   /api/v1/games                Start a run (chapter or free play)
    GET    /api/v1/games                List games in progress
    GET    /api/v1/games/{id}           Get game state
    DELETE /api/v1/games/{id}           End (abandon) a game
    POST   /api/v1/games/{id}/play      Play a card
    POST   /api/v1/games/{id}/draw      Draw a card
    POST   /api/v1/games/{id}/focus     Discard a card to draw a fresh one
    POST   /api/v1/games/{id}/repair    Repair a node with clubs
    POST   /api/v1/games/{id}/end-turn  End the player turn (the Eco attacks)
    POST   /api/v1/games/{id}/advance   Let scheduled phases fire
    GET    /api/v1/games/{id}/log       Game feed
    GET    /api/v1/games/{id}/score     Score summary
    GET    /api/v1/profile              Player profile
    POST   /api/v1/profile/chapter      Select the current chapter
    POST   /api/v1/profile/reset        Reset all progress
    GET    /api/v1/profile/export       Export the profile as JSON
    POST   /api/v1/profile/import       Replace the profile
    GET    /api/v1/chapters             Chapters and lock state

Turn Flow:
    1. POST /games starts the run; the first EVENT resolves immediately
    2. Commands are accepted during the player_action phase only
    3. POST /end-turn runs the Eco attack; maintenance and the next event
       follow after the configured delays (POST /advance to let them fire
       when delays are non-zero)

All responses are JSON with explicit Pydantic schemas.
"""

from typing import Any, Optional, Union
import logging

from ..config import configure_logging, load_settings

logger = logging.getLogger(__name__)

# Environment configuration
SETTINGS = load_settings()


def create_app(service=None):
    """
    Create the FastAPI application.

    Args:
        service: Optional APIService instance (creates new if not provided)

    Returns:
        FastAPI application instance
    """
    try:
        from fastapi import FastAPI, Body
        from fastapi.middleware.cors import CORSMiddleware
        from fastapi.responses import JSONResponse
    except ImportError:
        raise ImportError(
            "FastAPI not installed. Install with: pip install fastapi uvicorn"
        )

    from .. import __version__
    from ..progression.manager import ChapterManager
    from ..progression.profile import JsonFileKeyValueStore, ProfileStore
    from ..session import SessionManager
    from .service import APIService
    from .schemas import (
        # Request models
        CreateGameRequest,
        PlayCardRequest,
        FocusRequest,
        RepairRequest,
        AdvanceRequest,
        SelectChapterRequest,
        # Response models
        GameStateResponse,
        CommandResponse,
        GameListResponse,
        EndGameResponse,
        LogResponse,
        ScoreResponse,
        ChapterListResponse,
        ProfileResponse,
        SelectChapterResponse,
        ErrorResponse,
        HealthResponse,
        # Enums
        ErrorCode,
    )

    configure_logging(SETTINGS.log_level)

    app = FastAPI(
        title="Ecovoid API",
        description="""
Survival card game engine - one survivor against the Eco.

## Turn Flow

1. `POST /games` starts a run; the opening event resolves immediately
2. Play, draw, focus and repair during `player_action`
3. `POST /end-turn` runs the Eco attack, then maintenance and the next event

## Error Codes

| Code | Description |
|------|-------------|
| `GAME_NOT_FOUND` | Game does not exist or has been ended |
| `CHAPTER_LOCKED` | Chapter or scenario is unknown or locked |
| `COMMAND_REJECTED` | Command illegal right now (see `details.rejection`) |
| `INVALID_PROFILE` | Imported profile data is malformed |
        """,
        version=__version__,
        docs_url="/api/docs",
        redoc_url="/api/redoc",
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=SETTINGS.allowed_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Service instance
    if service is None:
        backend = JsonFileKeyValueStore(SETTINGS.profile_dir) if SETTINGS.profile_dir else None
        chapters = ChapterManager(profile_store=ProfileStore(backend))
        service = APIService(
            session_manager=SessionManager(
                chapters=chapters,
                settle_delay=SETTINGS.settle_delay,
                phase_delay=SETTINGS.phase_delay,
            )
        )
    api_service = service

    # =========================================================================
    # Error helpers
    # =========================================================================

    def make_error_response(
        error_code: ErrorCode,
        message: str,
        status_code: int = 400,
        details: Optional[dict] = None,
    ) -> JSONResponse:
        """Create a standardized error response."""
        return JSONResponse(
            status_code=status_code,
            content=ErrorResponse(
                error=message,
                error_code=error_code,
                details=details,
            ).model_dump(mode="json"),
        )

    _STATUS_BY_CODE = {
        ErrorCode.GAME_NOT_FOUND: 404,
        ErrorCode.CHAPTER_LOCKED: 403,
        ErrorCode.COMMAND_REJECTED: 409,
        ErrorCode.INVALID_PROFILE: 400,
    }

    def respond(response):
        """Turn an ErrorResponse into a JSON error, pass anything else through."""
        if isinstance(response, ErrorResponse):
            return make_error_response(
                response.error_code,
                response.error,
                status_code=_STATUS_BY_CODE.get(response.error_code, 400),
                details=response.details,
            )
        return response

    def respond_command(response):
        """Rejected commands become 409s carrying the rejection code."""
        if isinstance(response, CommandResponse) and not response.success:
            return make_error_response(
                ErrorCode.COMMAND_REJECTED,
                response.error or "Command rejected",
                status_code=409,
                details={"rejection": response.rejection},
            )
        return respond(response)

    _COMMAND_ERRORS = {
        404: {"model": ErrorResponse, "description": "Game not found"},
        409: {"model": ErrorResponse, "description": "Command rejected"},
    }

    # =========================================================================
    # Game Endpoints
    # =========================================================================

    @app.post(
        "/api/v1/games",
        response_model=GameStateResponse,
        responses={403: {"model": ErrorResponse, "description": "Chapter locked"}},
        tags=["Games"],
        summary="Start a new run",
    )
    async def create_game(body: CreateGameRequest) -> Union[GameStateResponse, JSONResponse]:
        """
        Start a run.

        Pass `chapter_id` to play a chapter (it must be unlocked), or
        `scenario_id` for free play. Unknown scenarios fall back to `default`.
        """
        return respond(api_service.create_game(body))

    @app.get(
        "/api/v1/games",
        response_model=GameListResponse,
        tags=["Games"],
        summary="List games in progress",
    )
    async def list_games() -> GameListResponse:
        games = api_service.list_games()
        return GameListResponse(games=games, count=len(games))

    @app.get(
        "/api/v1/games/{game_id}",
        response_model=GameStateResponse,
        responses={404: {"model": ErrorResponse}},
        tags=["Games"],
        summary="Get game state",
    )
    async def get_game(game_id: str) -> Union[GameStateResponse, JSONResponse]:
        """Get the complete current game state for display."""
        return respond(api_service.get_game(game_id))

    @app.delete(
        "/api/v1/games/{game_id}",
        response_model=EndGameResponse,
        tags=["Games"],
        summary="End a game",
    )
    async def end_game(game_id: str) -> EndGameResponse:
        """End a game. A run still in progress counts as a loss."""
        return api_service.end_game(game_id)

    # =========================================================================
    # Command Endpoints
    # =========================================================================

    @app.post(
        "/api/v1/games/{game_id}/play",
        response_model=CommandResponse,
        responses=_COMMAND_ERRORS,
        tags=["Commands"],
        summary="Play a card from hand",
    )
    async def play_card(game_id: str, body: PlayCardRequest) -> Union[CommandResponse, JSONResponse]:
        return respond_command(api_service.play_card(game_id, body))

    @app.post(
        "/api/v1/games/{game_id}/draw",
        response_model=CommandResponse,
        responses=_COMMAND_ERRORS,
        tags=["Commands"],
        summary="Draw a card (1 AP)",
    )
    async def draw_card(game_id: str) -> Union[CommandResponse, JSONResponse]:
        return respond_command(api_service.draw_card(game_id))

    @app.post(
        "/api/v1/games/{game_id}/focus",
        response_model=CommandResponse,
        responses=_COMMAND_ERRORS,
        tags=["Commands"],
        summary="Discard a card and draw a replacement (1 AP)",
    )
    async def focus(game_id: str, body: FocusRequest) -> Union[CommandResponse, JSONResponse]:
        return respond_command(api_service.focus(game_id, body))

    @app.post(
        "/api/v1/games/{game_id}/repair",
        response_model=CommandResponse,
        responses=_COMMAND_ERRORS,
        tags=["Commands"],
        summary="Repair a node with clubs",
    )
    async def repair(game_id: str, body: RepairRequest) -> Union[CommandResponse, JSONResponse]:
        """Spend clubs worth at least 5 in total, 1 AP per card."""
        return respond_command(api_service.repair(game_id, body))

    @app.post(
        "/api/v1/games/{game_id}/end-turn",
        response_model=CommandResponse,
        responses=_COMMAND_ERRORS,
        tags=["Commands"],
        summary="End the player turn",
    )
    async def end_turn(game_id: str) -> Union[CommandResponse, JSONResponse]:
        return respond_command(api_service.end_turn(game_id))

    @app.post(
        "/api/v1/games/{game_id}/advance",
        response_model=CommandResponse,
        responses={404: {"model": ErrorResponse}},
        tags=["Commands"],
        summary="Let scheduled phases fire",
    )
    async def advance(game_id: str, body: AdvanceRequest) -> Union[CommandResponse, JSONResponse]:
        return respond(api_service.advance(game_id, body))

    # =========================================================================
    # Feed & Score Endpoints
    # =========================================================================

    @app.get(
        "/api/v1/games/{game_id}/log",
        response_model=LogResponse,
        responses={404: {"model": ErrorResponse}},
        tags=["Games"],
        summary="Game feed (newest messages)",
    )
    async def get_log(game_id: str) -> Union[LogResponse, JSONResponse]:
        return respond(api_service.get_log(game_id))

    @app.get(
        "/api/v1/games/{game_id}/score",
        response_model=ScoreResponse,
        responses={404: {"model": ErrorResponse}},
        tags=["Games"],
        summary="Score summary",
    )
    async def get_score(game_id: str) -> Union[ScoreResponse, JSONResponse]:
        return respond(api_service.get_score(game_id))

    # =========================================================================
    # Profile & Chapter Endpoints
    # =========================================================================

    @app.get(
        "/api/v1/profile",
        response_model=ProfileResponse,
        tags=["Profile"],
        summary="Player profile",
    )
    async def get_profile() -> ProfileResponse:
        return api_service.get_profile()

    @app.post(
        "/api/v1/profile/chapter",
        response_model=SelectChapterResponse,
        responses={403: {"model": ErrorResponse}},
        tags=["Profile"],
        summary="Select the current chapter",
    )
    async def select_chapter(body: SelectChapterRequest) -> Union[SelectChapterResponse, JSONResponse]:
        return respond(api_service.select_chapter(body))

    @app.post(
        "/api/v1/profile/reset",
        response_model=ProfileResponse,
        tags=["Profile"],
        summary="Reset all progress",
    )
    async def reset_profile() -> ProfileResponse:
        return api_service.reset_profile()

    @app.get("/api/v1/profile/export", tags=["Profile"], summary="Export the profile")
    async def export_profile() -> dict[str, Any]:
        return api_service.export_profile()

    @app.post(
        "/api/v1/profile/import",
        response_model=ProfileResponse,
        responses={400: {"model": ErrorResponse}},
        tags=["Profile"],
        summary="Replace the profile",
    )
    async def import_profile(data: dict[str, Any] = Body(...)) -> Union[ProfileResponse, JSONResponse]:
        return respond(api_service.import_profile(data))

    @app.get(
        "/api/v1/chapters",
        response_model=ChapterListResponse,
        tags=["Profile"],
        summary="Chapters and lock state",
    )
    async def list_chapters() -> ChapterListResponse:
        return api_service.list_chapters()

    # =========================================================================
    # Health Check
    # =========================================================================

    @app.get(
        "/api/v1/health",
        response_model=HealthResponse,
        tags=["System"],
        summary="Health check",
    )
    async def health_check() -> HealthResponse:
        """Health check endpoint for load balancers."""
        return HealthResponse(
            status="healthy",
            service="ecovoid",
            version=__version__,
        )

    @app.get("/", tags=["System"])
    async def root():
        """Root endpoint with API info."""
        return {
            "name": "Ecovoid API",
            "version": __version__,
            "docs": "/api/docs",
            "health": "/api/v1/health",
        }

    logger.info("API ready (env=%s)", SETTINGS.env)
    return app


# Create default app instance (only if FastAPI is available)
app = None
try:
    app = create_app()
except ImportError:
    pass
