"""
Tests for chapters, rewards and the player profile.

Tests:
- Unlock graph (membership, previous chapter, minimum score)
- Run configuration from chapter modifiers and boosts
- Victory conditions
- Reward idempotency
- Profile persistence, corruption recovery and import/export
"""

import pytest

from ..engine_core.state import GameState, Node, RunConfig
from ..progression import ChapterManager, JsonFileKeyValueStore, MemoryKeyValueStore, ProfileStore
from ..progression.profile import PROFILE_KEY


def snapshot(**changes) -> GameState:
    state = GameState.from_config(RunConfig())
    for name, value in changes.items():
        setattr(state, name, value)
    return state


def nodes(intact: int, collapsed: int) -> dict:
    result = {}
    for i in range(intact):
        result[f"ok{i}"] = Node(id=f"ok{i}", name="Intact", max_damage=8)
    for i in range(collapsed):
        result[f"down{i}"] = Node(id=f"down{i}", name="Down", max_damage=8, damage=8)
    return result


class TestUnlockGraph:
    """Tests for chapter availability."""

    def test_fresh_profile(self, chapters):
        assert chapters.is_chapter_unlocked("chapter_1_easy")
        assert not chapters.is_chapter_unlocked("chapter_1_medium")
        assert [c.id for c in chapters.available_chapters()] == ["chapter_1_easy"]

    def test_select_locked_or_unknown_chapter(self, chapters):
        assert not chapters.select_chapter("chapter_2_descent")
        assert not chapters.select_chapter("chapter_9")
        assert chapters.current_chapter is None

    def test_completion_unlocks_next(self, chapters):
        assert chapters.select_chapter("chapter_1_easy")
        granted = chapters.complete_chapter(True, 300)
        assert [r.value for r in granted] == ["chapter_1_medium"]
        assert chapters.is_chapter_unlocked("chapter_1_medium")
        assert chapters.profile.total_score == 300

    def test_membership_needs_completed_predecessor(self, chapters):
        chapters.profile.unlocked_content.append("chapter_1_medium")
        assert not chapters.is_chapter_unlocked("chapter_1_medium")
        chapters.profile.progress_for("chapter_1_easy").completed = True
        assert chapters.is_chapter_unlocked("chapter_1_medium")

    def test_minimum_score(self, chapters):
        chapters.profile.unlocked_content.append("chapter_3_abyss")
        chapters.profile.progress_for("chapter_2_nightmare").completed = True
        assert not chapters.is_chapter_unlocked("chapter_3_abyss")
        chapters.profile.total_score = 500
        assert chapters.is_chapter_unlocked("chapter_3_abyss")

    def test_defeat_records_attempt_only(self, chapters):
        chapters.select_chapter("chapter_1_easy")
        chapters.start_chapter()
        assert chapters.complete_chapter(False, 120) == []
        progress = chapters.profile.chapters_progress["chapter_1_easy"]
        assert progress.attempts == 1
        assert not progress.completed
        assert chapters.profile.total_score == 0


class TestRunConfiguration:
    """Tests for game_configuration."""

    def test_chapter_modifiers(self, chapters):
        config = chapters.game_configuration("chapter_1_easy")
        assert config.chapter_id == "chapter_1_easy"
        assert config.pv == 25
        assert config.sanity == 25
        assert config.eco_hp == 50
        assert config.eco_difficulty == 0.7

    def test_difficulty_sets_eco_hp(self, chapters):
        config = chapters.game_configuration("chapter_1_medium")
        assert config.eco_hp == 70
        assert config.score_multiplier == 1.3
        assert config.difficulty == "hard"

    def test_no_chapter_falls_back_to_default(self, chapters):
        config = chapters.game_configuration()
        assert config.scenario_id == "default"
        assert config.chapter_id is None
        assert config.pv == 20


class TestVictoryConditions:
    """Tests for check_victory_conditions."""

    def test_defeat_eco(self, chapters):
        assert chapters.check_victory_conditions(snapshot(eco_hp=0), chapter_id="chapter_1_easy").achieved
        assert not chapters.check_victory_conditions(snapshot(eco_hp=4), chapter_id="chapter_1_easy").achieved

    def test_every_condition_must_hold(self, chapters):
        state = snapshot(eco_hp=0, turn=13, nodes=nodes(intact=2, collapsed=2))
        report = chapters.check_victory_conditions(state, chapter_id="chapter_2_descent")
        assert not report.achieved
        assert [c.type.value for c in report.unmet] == ["protect_nodes"]

    def test_score_threshold(self, chapters):
        state = snapshot(eco_hp=0, turn=15, nodes=nodes(intact=4, collapsed=0))
        assert not chapters.check_victory_conditions(state, 799, "chapter_2_nightmare").achieved
        assert chapters.check_victory_conditions(state, 800, "chapter_2_nightmare").achieved

    def test_without_chapter_defeat_is_enough(self, chapters):
        assert chapters.check_victory_conditions(snapshot(eco_hp=0)).achieved


class TestRewards:
    """Tests for reward granting."""

    @pytest.fixture
    def descent(self, chapters):
        chapters.profile.unlocked_content.append("chapter_2_descent")
        chapters.profile.progress_for("chapter_1_medium").completed = True
        assert chapters.select_chapter("chapter_2_descent")
        return chapters

    def test_boost_is_granted_once(self, descent):
        first = descent.complete_chapter(True, 400)
        second = descent.complete_chapter(True, 500)
        assert len(first) == 2
        assert second == []
        assert descent.profile.permanent_boosts.max_hand_size == 1
        assert descent.profile.chapters_progress["chapter_2_descent"].best_score == 500

    def test_boost_applies_to_later_runs(self, descent):
        descent.complete_chapter(True, 400)
        assert descent.game_configuration("chapter_1_easy").hand_size == 6
        assert descent.scenario_configuration("urban").hand_size == 6

    def test_best_time_keeps_minimum(self, chapters):
        chapters.select_chapter("chapter_1_easy")
        chapters.complete_chapter(True, 100, elapsed=90.0)
        chapters.complete_chapter(True, 100, elapsed=120.0)
        assert chapters.profile.chapters_progress["chapter_1_easy"].best_time == 90.0


class TestProfilePersistence:
    """Tests for the profile store."""

    def test_progress_survives_restart(self):
        backend = MemoryKeyValueStore()
        first = ChapterManager(profile_store=ProfileStore(backend))
        first.select_chapter("chapter_1_easy")
        first.complete_chapter(True, 250)

        second = ChapterManager(profile_store=ProfileStore(backend))
        assert second.profile.total_score == 250
        assert second.is_chapter_unlocked("chapter_1_medium")

    def test_file_backend(self, tmp_path):
        store = ProfileStore(JsonFileKeyValueStore(tmp_path))
        manager = ChapterManager(profile_store=store)
        manager.select_chapter("chapter_1_easy")
        assert store.load().current_chapter == "chapter_1_easy"

    def test_corrupt_profile_starts_fresh(self):
        backend = MemoryKeyValueStore({PROFILE_KEY: "{not json"})
        manager = ChapterManager(profile_store=ProfileStore(backend))
        assert manager.profile.total_score == 0
        assert backend.get(PROFILE_KEY) is None

    def test_export_import(self, chapters):
        chapters.select_chapter("chapter_1_easy")
        chapters.complete_chapter(True, 300)
        data = chapters.export_profile()

        other = ChapterManager(profile_store=ProfileStore(MemoryKeyValueStore()))
        assert other.import_profile(data)
        assert other.profile.total_score == 300

    def test_import_rejects_malformed(self, chapters):
        assert not chapters.import_profile({"total_score": "lots"})
        assert chapters.profile.total_score == 0

    def test_reset_and_listeners(self, chapters):
        seen = []
        chapters.subscribe(lambda profile: seen.append(profile.total_score))
        chapters.select_chapter("chapter_1_easy")
        chapters.complete_chapter(True, 50)
        chapters.reset_progress()
        assert chapters.profile.total_score == 0
        assert seen[-2:] == [50, 0]
