"""
Game Loop - Wires one run together.

The loop owns every component of a single game:
1. Store, scheduler, decks, nodes and the game log
2. Card effect engine, hallucinations and the Eco
3. Scoring and the turn manager
4. (Optional) chapter progression, completed when the run ends

Nothing here is a module-level singleton; each GameLoop is a fresh,
isolated game.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable
import logging
import random
import time

from ..bots.adversary import EcoAI
from ..bots.autopilot import SurvivorAutopilot
from ..bots.policy import create_policy
from ..engine_core.action import ActionResult, Command
from ..engine_core.deck import DeckManager
from ..engine_core.effect_resolver import CardEffectEngine
from ..engine_core.game_log import GameLog
from ..engine_core.hallucination import HallucinationSystem
from ..engine_core.nodes import NodeSystem
from ..engine_core.scheduler import Scheduler
from ..engine_core.state import GamePhase, GameState, GameStateStore, RunConfig
from ..engine_core.turn_manager import TurnManager
from ..progression.catalog import ChapterReward
from ..progression.manager import ChapterManager, VictoryReport
from ..rules.effect_dsl import Ruleset
from ..scenarios import DEFAULT_SCENARIO_ID, get_scenario_content
from ..scoring.system import ScoreSystem

logger = logging.getLogger(__name__)


class LoopState(Enum):
    """State of the game loop."""
    IDLE = "idle"
    RUNNING = "running"
    GAME_OVER = "game_over"


@dataclass
class RunSummary:
    """
    How a run ended.

    Contains the rules outcome, the chapter outcome (when playing a
    chapter) and the rewards it granted.
    """
    victory: bool
    end_cause: str | None
    turns: int
    score: int
    chapter_id: str | None = None
    chapter_victory: bool | None = None
    unmet_conditions: list[str] = field(default_factory=list)
    rewards: list[ChapterReward] = field(default_factory=list)
    elapsed: float = 0.0

    def to_dict(self) -> dict[str, Any]:
        return {
            "victory": self.victory,
            "end_cause": self.end_cause,
            "turns": self.turns,
            "score": self.score,
            "chapter_id": self.chapter_id,
            "chapter_victory": self.chapter_victory,
            "unmet_conditions": self.unmet_conditions,
            "rewards": [r.model_dump(mode="json") for r in self.rewards],
            "elapsed": self.elapsed,
        }


class GameLoop:
    """
    Composition root for one game.

    Usage:
        loop = GameLoop(chapters=ChapterManager(), seed=7)
        loop.start(chapter_id="chapter_1_easy")
        loop.execute(Command.play("7S"))
        loop.advance(1.0)
    """

    def __init__(
        self,
        chapters: ChapterManager | None = None,
        seed: int | None = None,
        settle_delay: float = 0.0,
        phase_delay: float = 0.0,
        policy: str = "highest",
        clock: Callable[[], float] = time.time,
    ):
        rng = random.Random(seed)
        self.seed = seed
        self.clock = clock
        self.chapters = chapters

        self.store = GameStateStore()
        self.scheduler = Scheduler()
        self.log = GameLog()
        self.deck = DeckManager(rng=random.Random(rng.getrandbits(32)))
        self.nodes = NodeSystem(self.store, log=self.log)
        self.hallucination = HallucinationSystem(
            self.store, self.deck, log=self.log, rng=random.Random(rng.getrandbits(32))
        )
        self.engine = CardEffectEngine(
            self.store,
            self.deck,
            self.nodes,
            Ruleset(),
            hallucination=self.hallucination,
            log=self.log,
            rng=random.Random(rng.getrandbits(32)),
        )
        self.eco = EcoAI(
            self.store,
            self.deck,
            self.engine,
            hallucination=self.hallucination,
            log=self.log,
            rng=random.Random(rng.getrandbits(32)),
            policy=create_policy(policy, seed),
        )
        self.score = ScoreSystem(clock=clock)
        self.turns = TurnManager(
            self.store,
            self.scheduler,
            self.deck,
            self.nodes,
            self.engine,
            self.hallucination,
            self.eco,
            log=self.log,
            score=self.score,
            settle_delay=settle_delay,
            phase_delay=phase_delay,
        )
        self.turns.on_game_over(self._on_game_over)

        self.state = LoopState.IDLE
        self.summary: RunSummary | None = None
        self._started_at = 0.0

    @property
    def config(self) -> RunConfig:
        return self.store.config

    def snapshot(self) -> GameState:
        return self.store.snapshot()

    def start(self, scenario_id: str | None = None, chapter_id: str | None = None) -> bool:
        """
        Start a run for a chapter or a free-play scenario.

        Returns False (and leaves the loop untouched) if the chapter
        or scenario is locked on the current profile.
        """
        if chapter_id is not None:
            if self.chapters is None or not self.chapters.select_chapter(chapter_id):
                logger.error("Cannot start chapter %s", chapter_id)
                return False
            config = self.chapters.game_configuration(chapter_id)
            self.chapters.start_chapter()
        elif self.chapters is not None:
            scenario_id = scenario_id or DEFAULT_SCENARIO_ID
            if not self.chapters.is_scenario_unlocked(scenario_id):
                logger.error("Cannot start scenario %s: locked", scenario_id)
                return False
            config = self.chapters.scenario_configuration(scenario_id)
        else:
            config = RunConfig(scenario_id=scenario_id or DEFAULT_SCENARIO_ID)

        content = get_scenario_content(config.scenario_id)
        self.summary = None
        self.state = LoopState.RUNNING
        self._started_at = self.clock()
        self.turns.start_game(config, content)
        return True

    def execute(self, command: Command) -> ActionResult:
        return self.turns.execute(command)

    def advance(self, seconds: float) -> int:
        return self.turns.advance(seconds)

    def abandon(self) -> None:
        self.turns.abandon()

    def check_victory(self) -> VictoryReport | None:
        """Chapter conditions against the current state (None outside a chapter)."""
        if self.chapters is None or not self.config.chapter_id:
            return None
        return self.chapters.check_victory_conditions(
            self.store.snapshot(), self.score.total_score, self.config.chapter_id
        )

    def auto_play(self, autopilot: SurvivorAutopilot | None = None, max_turns: int = 50) -> RunSummary | None:
        """
        Let the autopilot play until the run ends or max_turns pass.

        Pending continuations are run to completion between commands.
        Returns the summary if the run ended.
        """
        autopilot = autopilot or SurvivorAutopilot()
        while not self.store.game_over and self.store.turn <= max_turns:
            if self.store.phase == GamePhase.PLAYER_ACTION:
                decision = autopilot.choose(self.turns)
                result = self.turns.execute(decision.command)
                if not result.success:
                    logger.debug("Autopilot command refused (%s), ending turn", result.error)
                    self.turns.end_player_turn()
                continue
            if self.scheduler.next_due() is None:
                logger.warning("Run stalled in %s", self.store.phase.value)
                break
            self.scheduler.run_until_idle()
            self.turns.advance(0.0)
        return self.summary

    def _on_game_over(self, snapshot: GameState) -> None:
        self.state = LoopState.GAME_OVER
        elapsed = self.clock() - self._started_at
        summary = RunSummary(
            victory=snapshot.victory,
            end_cause=snapshot.end_cause.value if snapshot.end_cause else None,
            turns=snapshot.turn,
            score=self.score.total_score,
            elapsed=elapsed,
        )

        chapter_id = self.config.chapter_id
        if self.chapters is not None and chapter_id:
            report = self.chapters.check_victory_conditions(snapshot, self.score.total_score, chapter_id)
            chapter_victory = snapshot.victory and report.achieved
            summary.chapter_id = chapter_id
            summary.chapter_victory = chapter_victory
            summary.unmet_conditions = [c.description or c.type.value for c in report.unmet]
            summary.rewards = self.chapters.complete_chapter(
                chapter_victory, self.score.total_score, snapshot, elapsed
            )

        self.summary = summary
        logger.info("Run summary: %s", summary.to_dict())
