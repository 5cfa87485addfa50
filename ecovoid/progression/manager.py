"""
Chapter Manager - Run setup, victory evaluation and rewards.

LIFECYCLE:
1. select_chapter(id) validates the unlock graph and the scenario
2. game_configuration() builds the RunConfig (scenario base stats +
   chapter modifiers + permanent boosts)
3. start_chapter() counts an attempt
4. check_victory_conditions(snapshot, score) reports met / unmet
5. complete_chapter(victory, score, snapshot) records bests and grants
   rewards at most once per (chapter, reward)

Every profile change is persisted through the ProfileStore and
announced to subscribers.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import Any, Callable
import logging

from ..engine_core.state import GameState, RunConfig
from .catalog import (
    CHAPTERS,
    DEFAULT_SCENARIO,
    SCENARIOS,
    ChapterConfig,
    ChapterReward,
    ConditionType,
    Difficulty,
    RewardType,
    ScenarioConfig,
    StatBoost,
    VictoryCondition,
)
from .profile import PlayerProfile, ProfileStore, profile_from_dict

logger = logging.getLogger(__name__)


@dataclass
class VictoryReport:
    """Outcome of evaluating a chapter's victory conditions."""
    met: list[VictoryCondition] = field(default_factory=list)
    unmet: list[VictoryCondition] = field(default_factory=list)

    @property
    def achieved(self) -> bool:
        return not self.unmet and bool(self.met)


ProfileListener = Callable[[PlayerProfile], None]


class ChapterManager:
    """
    Owns the catalogs and the mutable player profile.

    Usage:
        chapters = ChapterManager(ProfileStore(JsonFileKeyValueStore()))
        if chapters.select_chapter("chapter_1_easy"):
            config = chapters.game_configuration()
    """

    def __init__(
        self,
        profile_store: ProfileStore | None = None,
        chapters: dict[str, ChapterConfig] | None = None,
        scenarios: dict[str, ScenarioConfig] | None = None,
    ):
        self.profile_store = profile_store or ProfileStore()
        self.chapters = chapters if chapters is not None else CHAPTERS
        self.scenarios = scenarios if scenarios is not None else SCENARIOS
        self.profile = self.profile_store.load()
        self._listeners: list[ProfileListener] = []

    @property
    def current_chapter(self) -> ChapterConfig | None:
        chapter_id = self.profile.current_chapter
        return self.chapters.get(chapter_id) if chapter_id else None

    # ------------------------------------------------------------------
    # Unlock graph
    # ------------------------------------------------------------------

    def is_chapter_unlocked(self, chapter_id: str) -> bool:
        chapter = self.chapters.get(chapter_id)
        if chapter is None or not self.profile.is_unlocked(chapter_id):
            return False
        req = chapter.requirements
        if req.previous_chapter:
            previous = self.profile.chapters_progress.get(req.previous_chapter)
            if previous is None or not previous.completed:
                return False
        if req.minimum_score is not None and self.profile.total_score < req.minimum_score:
            return False
        return True

    def available_chapters(self) -> list[ChapterConfig]:
        return [c for c in self.chapters.values() if self.is_chapter_unlocked(c.id)]

    def select_chapter(self, chapter_id: str) -> bool:
        """Make a chapter current. Returns False (and logs) if it cannot be played."""
        chapter = self.chapters.get(chapter_id)
        if chapter is None:
            logger.error("Chapter %s not found", chapter_id)
            return False
        if not self.is_chapter_unlocked(chapter_id):
            logger.error("Chapter %s is locked", chapter_id)
            return False
        if chapter.scenario_id not in self.scenarios:
            logger.error("Scenario %s not found for chapter %s", chapter.scenario_id, chapter_id)
            return False

        self.profile.current_chapter = chapter_id
        self._save()
        logger.info("Selected chapter %s (%s)", chapter_id, chapter.name)
        return True

    # ------------------------------------------------------------------
    # Run configuration
    # ------------------------------------------------------------------

    def game_configuration(self, chapter_id: str | None = None) -> RunConfig:
        """
        Build the initial parameters for a run.

        Falls back to the default scenario at normal difficulty when no
        valid chapter is given or selected.
        """
        chapter = self.chapters.get(chapter_id) if chapter_id else self.current_chapter
        if chapter is None or chapter.scenario_id not in self.scenarios:
            if chapter_id:
                logger.warning("No playable chapter %s, using default configuration", chapter_id)
            return self.scenario_configuration(DEFAULT_SCENARIO)

        base = self.scenario_configuration(chapter.scenario_id, chapter.difficulty)
        bonus = chapter.modifiers.starting_bonus
        return RunConfig(
            scenario_id=base.scenario_id,
            chapter_id=chapter.id,
            pv=max(1, base.pv + bonus.get("PV", 0)),
            max_pv=base.max_pv,
            sanity=max(1, base.sanity + bonus.get("COR", 0)),
            max_sanity=base.max_sanity,
            action_points=max(1, base.action_points + bonus.get("PA", 0)),
            hand_size=max(1, base.hand_size + bonus.get("HAND", 0)),
            eco_hp=base.eco_hp,
            eco_difficulty=chapter.modifiers.eco_ai_difficulty,
            node_collapse_limit=base.node_collapse_limit,
            score_multiplier=chapter.score_multiplier,
            difficulty=chapter.difficulty.value,
        )

    def scenario_configuration(
        self,
        scenario_id: str,
        difficulty: Difficulty = Difficulty.NORMAL,
    ) -> RunConfig:
        """Free-play configuration for a scenario, with permanent boosts."""
        scenario = self.scenarios.get(scenario_id)
        if scenario is None:
            logger.warning("Unknown scenario %s, using %s", scenario_id, DEFAULT_SCENARIO)
            scenario = self.scenarios[DEFAULT_SCENARIO]
        boosts = self.profile.permanent_boosts
        stats = scenario.stats
        max_pv = stats.pv + boosts.max_pv
        max_sanity = stats.cor + boosts.max_cor
        return RunConfig(
            scenario_id=scenario.id,
            pv=max_pv,
            max_pv=max_pv,
            sanity=max_sanity,
            max_sanity=max_sanity,
            action_points=stats.pa + boosts.max_pa,
            hand_size=stats.hand_size + boosts.max_hand_size,
            eco_hp=scenario.eco_hp.get(difficulty, scenario.eco_hp[Difficulty.NORMAL]),
            node_collapse_limit=scenario.node_collapse_limit,
            difficulty=difficulty.value,
        )

    def is_scenario_unlocked(self, scenario_id: str) -> bool:
        return scenario_id in self.scenarios and self.profile.is_unlocked(scenario_id)

    # ------------------------------------------------------------------
    # Run lifecycle
    # ------------------------------------------------------------------

    def start_chapter(self) -> bool:
        chapter = self.current_chapter
        if chapter is None:
            logger.warning("start_chapter called with no chapter selected")
            return False
        self.profile.progress_for(chapter.id).attempts += 1
        self._save()
        return True

    def check_victory_conditions(
        self,
        snapshot: GameState,
        score: int = 0,
        chapter_id: str | None = None,
    ) -> VictoryReport:
        """Evaluate every condition of the chapter. Does not end the run."""
        chapter = self.chapters.get(chapter_id) if chapter_id else self.current_chapter
        conditions = chapter.victory_conditions if chapter else [
            VictoryCondition(type=ConditionType.DEFEAT_ECO)
        ]
        report = VictoryReport()
        for condition in conditions:
            if _condition_met(condition, snapshot, score):
                report.met.append(condition)
            else:
                report.unmet.append(condition)
        return report

    def complete_chapter(
        self,
        victory: bool,
        score: int,
        snapshot: GameState | None = None,
        elapsed: float | None = None,
    ) -> list[ChapterReward]:
        """
        Record the end of a chapter run.

        On victory: best score/time, total score and rewards. Rewards
        already granted for this chapter are skipped. Returns the
        rewards granted by this call.
        """
        chapter = self.current_chapter
        if chapter is None:
            logger.warning("complete_chapter called with no chapter selected")
            return []

        progress = self.profile.progress_for(chapter.id)
        if not victory:
            self._save()
            return []

        progress.completed = True
        progress.best_score = max(progress.best_score, score)
        if elapsed is not None:
            progress.best_time = elapsed if progress.best_time is None else min(progress.best_time, elapsed)
        if snapshot is not None:
            progress.completion_data = {
                "pv": snapshot.pv,
                "sanity": snapshot.sanity,
                "turn": snapshot.turn,
                "nodes_intact": len(snapshot.nodes) - snapshot.collapsed_nodes,
            }
        self.profile.total_score += score

        granted = []
        for reward in chapter.rewards:
            if reward.key in progress.unlocked_rewards:
                continue
            self._grant(reward)
            progress.unlocked_rewards.append(reward.key)
            granted.append(reward)

        self._save()
        logger.info("Chapter %s completed with %d points, %d reward(s)", chapter.id, score, len(granted))
        return granted

    def _grant(self, reward: ChapterReward) -> None:
        if reward.type in (RewardType.UNLOCK_CHAPTER, RewardType.UNLOCK_SCENARIO):
            content_id = str(reward.value)
            if content_id not in self.profile.unlocked_content:
                self.profile.unlocked_content.append(content_id)
        elif reward.type == RewardType.PERMANENT_STAT_BOOST and isinstance(reward.value, StatBoost):
            boosts = self.profile.permanent_boosts
            field_name = reward.value.stat.value
            setattr(boosts, field_name, getattr(boosts, field_name) + reward.value.amount)

    # ------------------------------------------------------------------
    # Profile management
    # ------------------------------------------------------------------

    def reset_progress(self) -> None:
        self.profile = PlayerProfile()
        self._save()
        logger.info("Player progress reset")

    def export_profile(self) -> dict[str, Any]:
        return self.profile.model_dump(mode="json")

    def import_profile(self, data: dict[str, Any]) -> bool:
        profile = profile_from_dict(data)
        if profile is None:
            return False
        self.profile = profile
        self._save()
        return True

    def subscribe(self, listener: ProfileListener) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _save(self) -> None:
        self.profile_store.save(self.profile)
        for listener in list(self._listeners):
            try:
                listener(self.profile)
            except Exception:
                logger.exception("Profile listener %r failed", listener)


def _condition_met(condition: VictoryCondition, snapshot: GameState, score: int) -> bool:
    target = condition.target or 0
    if condition.type == ConditionType.DEFEAT_ECO:
        return snapshot.eco_hp <= 0
    if condition.type == ConditionType.SURVIVE_TURNS:
        return snapshot.turn >= target
    if condition.type == ConditionType.PROTECT_NODES:
        intact = sum(1 for node in snapshot.nodes.values() if not node.is_collapsed)
        return intact >= target
    if condition.type == ConditionType.SCORE_THRESHOLD:
        return score >= target
    return False
