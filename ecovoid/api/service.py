"""
API Service - Business logic layer between the HTTP API and the engine.

The service:
1. Translates API requests to engine commands
2. Manages games through the SessionManager
3. Exposes chapters and the player profile
4. Formats responses with the pydantic schemas

This layer is framework-agnostic (can be used with FastAPI, Flask, etc.)
and never raises for an illegal command; it returns an ErrorResponse or
a failed CommandResponse instead.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import Any, Callable

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
    EndGameResponse,
    LogResponse,
    ScoreResponse,
    ChapterInfo,
    ChapterListResponse,
    ProfileResponse,
    SelectChapterResponse,
    ErrorResponse,
    # Shared
    CardInfo,
    NodeInfo,
    LogEntry,
    # Enums
    ErrorCode,
    GameStatus,
)
from ..engine_core.action import ActionResult, Command
from ..engine_core.cards import Card
from ..engine_core.deck import DeckOwner
from ..engine_core.state import GamePhase
from ..scenarios import DEFAULT_SCENARIO_ID
from ..session import Session, SessionManager


@dataclass
class APIService:
    """
    Main API service.

    Usage:
        service = APIService()

        game = service.create_game(CreateGameRequest(chapter_id="chapter_1_easy"))
        result = service.play_card(game.game_id, PlayCardRequest(card_id="7S"))
        service.end_turn(game.game_id)
    """
    session_manager: SessionManager = field(default_factory=SessionManager)

    @property
    def chapters(self):
        return self.session_manager.chapters

    # =========================================================================
    # Games
    # =========================================================================

    def create_game(self, request: CreateGameRequest) -> GameStateResponse | ErrorResponse:
        """Start a run for a chapter or a free-play scenario."""
        session = self.session_manager.create_session(
            scenario_id=request.scenario_id,
            chapter_id=request.chapter_id,
            seed=request.seed,
            policy=request.policy,
        )
        if session is None:
            if request.chapter_id:
                error = f"Chapter {request.chapter_id} cannot be played"
                details = {"chapter_id": request.chapter_id}
            else:
                scenario_id = request.scenario_id or DEFAULT_SCENARIO_ID
                error = f"Scenario {scenario_id} cannot be played"
                details = {"scenario_id": scenario_id}
            return ErrorResponse(error=error, error_code=ErrorCode.CHAPTER_LOCKED, details=details)
        return self._build_game_state(session)

    def get_game(self, game_id: str) -> GameStateResponse | ErrorResponse:
        session = self.session_manager.get_session(game_id)
        if not session:
            return self._not_found(game_id)
        return self._build_game_state(session)

    def list_games(self) -> list[str]:
        """List IDs of games still in progress."""
        return self.session_manager.list_active_sessions()

    def end_game(self, game_id: str) -> EndGameResponse:
        success = self.session_manager.end_session(game_id, reason="user_ended")
        return EndGameResponse(success=success, game_id=game_id)

    # =========================================================================
    # Commands
    # =========================================================================

    def play_card(self, game_id: str, request: PlayCardRequest) -> CommandResponse | ErrorResponse:
        return self._run(game_id, lambda s: s.loop.execute(Command.play(request.card_id, request.target_node_id)))

    def draw_card(self, game_id: str) -> CommandResponse | ErrorResponse:
        return self._run(game_id, lambda s: s.loop.execute(Command.draw()))

    def focus(self, game_id: str, request: FocusRequest) -> CommandResponse | ErrorResponse:
        return self._run(game_id, lambda s: s.loop.execute(Command.focus(request.card_id)))

    def repair(self, game_id: str, request: RepairRequest) -> CommandResponse | ErrorResponse:
        return self._run(game_id, lambda s: s.loop.execute(Command.repair(request.node_id, request.card_ids)))

    def end_turn(self, game_id: str) -> CommandResponse | ErrorResponse:
        return self._run(game_id, lambda s: s.loop.execute(Command.end_turn()))

    def advance(self, game_id: str, request: AdvanceRequest) -> CommandResponse | ErrorResponse:
        """Let time pass so scheduled phases (Eco settle, auto-advance) fire."""
        def run(session: Session) -> ActionResult:
            fired = session.loop.advance(request.seconds)
            return ActionResult.ok([f"{fired} scheduled step(s) ran"])
        return self._run(game_id, run)

    # =========================================================================
    # Feed & score
    # =========================================================================

    def get_log(self, game_id: str) -> LogResponse | ErrorResponse:
        session = self.session_manager.get_session(game_id)
        if not session:
            return self._not_found(game_id)
        return LogResponse(
            game_id=game_id,
            messages=[LogEntry(**m.to_dict()) for m in session.loop.log.messages],
        )

    def get_score(self, game_id: str) -> ScoreResponse | ErrorResponse:
        session = self.session_manager.get_session(game_id)
        if not session:
            return self._not_found(game_id)
        score = session.loop.score
        metrics = score.performance_metrics()
        return ScoreResponse(
            game_id=game_id,
            total_score=score.total_score,
            breakdown=score.breakdown(),
            max_combos=score.max_combos(),
            average_per_turn=metrics.average_per_turn,
            best_multiplier=metrics.best_multiplier,
            combo_count=metrics.total_combos,
            rating=metrics.rating,
            events=len(score.history()),
        )

    # =========================================================================
    # Chapters & profile
    # =========================================================================

    def list_chapters(self) -> ChapterListResponse:
        chapters = self.chapters
        profile = chapters.profile
        infos = []
        for chapter in chapters.chapters.values():
            progress = profile.chapters_progress.get(chapter.id)
            infos.append(
                ChapterInfo(
                    chapter_id=chapter.id,
                    name=chapter.name,
                    description=chapter.description,
                    scenario_id=chapter.scenario_id,
                    difficulty=chapter.difficulty.value,
                    unlocked=chapters.is_chapter_unlocked(chapter.id),
                    completed=progress.completed if progress else False,
                    best_score=progress.best_score if progress else 0,
                    attempts=progress.attempts if progress else 0,
                    victory_conditions=[c.description or c.type.value for c in chapter.victory_conditions],
                )
            )
        return ChapterListResponse(chapters=infos, current_chapter=profile.current_chapter)

    def get_profile(self) -> ProfileResponse:
        profile = self.chapters.profile
        return ProfileResponse(
            total_score=profile.total_score,
            current_chapter=profile.current_chapter,
            unlocked_content=list(profile.unlocked_content),
            permanent_boosts=profile.permanent_boosts.model_dump(),
            chapters_progress={k: v.model_dump(mode="json") for k, v in profile.chapters_progress.items()},
        )

    def select_chapter(self, request: SelectChapterRequest) -> SelectChapterResponse | ErrorResponse:
        if not self.chapters.select_chapter(request.chapter_id):
            return ErrorResponse(
                error=f"Chapter {request.chapter_id} cannot be selected",
                error_code=ErrorCode.CHAPTER_LOCKED,
                details={"chapter_id": request.chapter_id},
            )
        return SelectChapterResponse(success=True, chapter_id=request.chapter_id, profile=self.get_profile())

    def reset_profile(self) -> ProfileResponse:
        self.chapters.reset_progress()
        return self.get_profile()

    def export_profile(self) -> dict[str, Any]:
        return self.chapters.export_profile()

    def import_profile(self, data: dict[str, Any]) -> ProfileResponse | ErrorResponse:
        """Replace the saved profile. Malformed data leaves the current one untouched."""
        if not self.chapters.import_profile(data):
            return ErrorResponse(
                error="Profile data is malformed",
                error_code=ErrorCode.INVALID_PROFILE,
            )
        return self.get_profile()

    # =========================================================================
    # Helper methods
    # =========================================================================

    def _run(
        self,
        game_id: str,
        action: Callable[[Session], ActionResult],
    ) -> CommandResponse | ErrorResponse:
        session = self.session_manager.get_session(game_id)
        if not session:
            return self._not_found(game_id)
        result = action(session)
        return CommandResponse(
            success=result.success,
            error=result.error,
            rejection=result.error_code.value if result.error_code else None,
            changes=result.state_changes,
            game_state=self._build_game_state(session),
        )

    def _not_found(self, game_id: str) -> ErrorResponse:
        return ErrorResponse(
            error=f"Game {game_id} not found",
            error_code=ErrorCode.GAME_NOT_FOUND,
            details={"game_id": game_id},
        )

    def _build_game_state(self, session: Session) -> GameStateResponse:
        """Build the complete game state response."""
        loop = session.loop
        state = loop.store.state

        if state.game_over:
            status = GameStatus.GAME_OVER
        elif state.phase == GamePhase.PLAYER_ACTION:
            status = GameStatus.YOUR_TURN
        else:
            status = GameStatus.RESOLVING

        return GameStateResponse(
            game_id=session.session_id,
            status=status,
            scenario_id=state.scenario_id,
            chapter_id=state.chapter_id,
            phase=state.phase.value,
            turn=state.turn,
            pv=state.pv,
            max_pv=state.max_pv,
            sanity=state.sanity,
            max_sanity=state.max_sanity,
            action_points=state.action_points,
            max_action_points=state.max_action_points,
            corruption_level=state.corruption_level,
            statuses=dict(state.player_statuses),
            hand=[_card_info(c) for c in state.hand],
            max_hand_size=state.max_hand_size,
            eco_hp=state.eco_hp,
            eco_max_hp=state.eco_max_hp,
            eco_phase=loop.eco.phase.value,
            eco_exposed=state.eco_exposed,
            eco_revealed_card=_card_info(state.eco_revealed_card) if state.eco_revealed_card else None,
            nodes=[
                NodeInfo(
                    node_id=n.id,
                    name=n.name,
                    damage=n.damage,
                    max_damage=n.max_damage,
                    status=n.status.value,
                    collapsed=n.is_collapsed,
                )
                for n in state.nodes.values()
            ],
            deck_count=loop.deck.deck_count(DeckOwner.PLAYER),
            discard_count=loop.deck.discard_count(DeckOwner.PLAYER),
            score=loop.score.total_score,
            available_commands=[c.value for c in loop.turns.available_commands()],
            game_over=state.game_over,
            victory=state.victory,
            end_cause=state.end_cause.value if state.end_cause else None,
            summary=loop.summary.to_dict() if loop.summary else None,
        )


def _card_info(card: Card) -> CardInfo:
    return CardInfo(card_id=card.id, suit=card.suit.value, rank=card.rank, value=card.value)
