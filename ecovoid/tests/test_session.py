"""
Tests for the game loop and session manager.

Tests:
- Starting free-play and chapter runs
- Run summaries and chapter completion
- Whole runs played by the autopilot
- Session lifecycle and cleanup
"""

import pytest

from ..engine_core.state import GamePhase
from ..session import GameLoop, LoopState, SessionManager, SessionState


class TestGameLoop:
    """Tests for GameLoop."""

    def test_free_play_start(self, loop, chapters):
        chapters.profile.unlocked_content.append("urban")
        assert loop.state == LoopState.IDLE
        assert loop.start("urban")
        assert loop.state == LoopState.RUNNING
        assert loop.config.scenario_id == "urban"
        assert loop.store.eco_hp == 60
        assert loop.nodes.get_node("grid") is not None
        assert loop.check_victory() is None

    def test_locked_scenario_does_not_start(self, loop):
        """Free play is limited to scenarios unlocked on the profile."""
        assert not loop.start("urban")
        assert loop.state == LoopState.IDLE
        assert not loop.turns.started
        assert loop.start("default")

    def test_unlock_scenario_reward_opens_free_play(self, loop, chapters):
        chapters.profile.unlocked_content.append("chapter_2_nightmare")
        chapters.profile.progress_for("chapter_2_descent").completed = True
        assert chapters.select_chapter("chapter_2_nightmare")
        chapters.start_chapter()
        assert not chapters.is_scenario_unlocked("urban")
        chapters.complete_chapter(True, 900)
        assert chapters.is_scenario_unlocked("urban")
        assert loop.start("urban")

    def test_locked_chapter_does_not_start(self, loop):
        assert not loop.start(chapter_id="chapter_2_descent")
        assert loop.state == LoopState.IDLE
        assert not loop.turns.started

    def test_chapter_start(self, loop, chapters):
        assert loop.start(chapter_id="chapter_1_easy")
        assert loop.store.pv == 25
        assert loop.eco.difficulty == 0.7
        assert chapters.profile.chapters_progress["chapter_1_easy"].attempts == 1

    def test_chapter_victory_grants_rewards(self, loop, chapters):
        loop.start(chapter_id="chapter_1_easy")
        loop.store.damage_eco(50)
        loop.advance(0)

        summary = loop.summary
        assert loop.state == LoopState.GAME_OVER
        assert summary.victory and summary.chapter_victory
        assert [r.value for r in summary.rewards] == ["chapter_1_medium"]
        assert chapters.is_chapter_unlocked("chapter_1_medium")

    def test_unmet_conditions_block_chapter_victory(self, loop, chapters):
        chapters.profile.unlocked_content.append("chapter_2_descent")
        chapters.profile.progress_for("chapter_1_medium").completed = True
        loop.start(chapter_id="chapter_2_descent")
        assert loop.store.eco_hp == 70
        loop.store.damage_eco(loop.store.eco_hp)
        loop.advance(0)

        assert loop.summary.victory
        assert not loop.summary.chapter_victory
        assert loop.summary.unmet_conditions == ["Survive at least 12 turns"]
        assert loop.summary.rewards == []

    def test_chapter_multiplier(self, loop, chapters):
        chapters.profile.unlocked_content.append("chapter_1_medium")
        chapters.profile.progress_for("chapter_1_easy").completed = True
        loop.start(chapter_id="chapter_1_medium")
        assert [m.id for m in loop.score.active_multipliers()] == ["chapter"]

    def test_abandon_records_defeat(self, loop, chapters):
        loop.start(chapter_id="chapter_1_easy")
        loop.abandon()
        assert loop.summary.chapter_victory is False
        assert not chapters.profile.chapters_progress["chapter_1_easy"].completed

    def test_summary_to_dict(self, loop):
        loop.start()
        loop.abandon()
        data = loop.summary.to_dict()
        assert data["end_cause"] == "abandoned"
        assert data["rewards"] == []

    def test_auto_play_finishes_a_run(self, loop):
        loop.start()
        summary = loop.auto_play(max_turns=200)
        assert summary is not None
        assert loop.store.phase == GamePhase.GAME_OVER
        assert summary.turns == loop.store.turn
        assert summary.score == loop.score.total_score

    def test_same_seed_same_run(self, chapters, clock):
        first = GameLoop(chapters=chapters, seed=5, clock=clock)
        second = GameLoop(chapters=chapters, seed=5, clock=clock)
        first.start()
        second.start()
        assert [c.id for c in first.store.hand] == [c.id for c in second.store.hand]
        assert first.eco.hand == second.eco.hand

    def test_runs_are_isolated(self, chapters, clock):
        first = GameLoop(chapters=chapters, seed=1, clock=clock)
        second = GameLoop(chapters=chapters, seed=2, clock=clock)
        first.start()
        second.start()
        first.store.damage_eco(10)
        assert second.store.eco_hp == 50


class TestSessionManager:
    """Tests for SessionManager."""

    @pytest.fixture
    def sessions(self, chapters, clock):
        return SessionManager(chapters=chapters, clock=clock)

    def test_create_and_get(self, sessions):
        session = sessions.create_session(seed=3)
        assert session.is_active()
        assert sessions.get_session(session.session_id) is session
        assert sessions.list_active_sessions() == [session.session_id]
        assert session.metadata == {"seed": 3, "policy": "highest"}

    def test_locked_chapter_returns_none(self, sessions):
        assert sessions.create_session(chapter_id="chapter_3_abyss") is None
        assert sessions.list_sessions() == []

    def test_unknown_policy_raises(self, sessions):
        with pytest.raises(ValueError):
            sessions.create_session(policy="psychic")

    def test_end_session_abandons_run(self, sessions):
        session = sessions.create_session(seed=3)
        assert sessions.end_session(session.session_id)
        assert session.state == SessionState.ABANDONED
        assert session.loop.summary.end_cause == "abandoned"
        assert sessions.get_session(session.session_id) is None
        assert not sessions.end_session(session.session_id)

    def test_finished_session_is_not_active(self, sessions):
        session = sessions.create_session(seed=3)
        session.loop.abandon()
        assert not session.is_active()
        assert session.state == SessionState.GAME_OVER

    def test_cleanup_stale_sessions(self, sessions, clock):
        finished = sessions.create_session(seed=3)
        running = sessions.create_session(seed=4)
        finished.loop.abandon()
        clock.tick(4000)

        assert sessions.cleanup_stale_sessions(max_age_seconds=3600) == 1
        assert sessions.get_session(finished.session_id) is None
        assert sessions.get_session(running.session_id) is running
