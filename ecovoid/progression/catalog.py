"""
Chapter & Scenario Catalog - Static, read-only run descriptors.

Scenarios carry base stats and per-difficulty Eco HP. Chapters pick a
scenario and a difficulty, and add victory conditions, modifiers,
unlock requirements and rewards. Nothing here is mutated by gameplay.
"""

from enum import Enum
from typing import Optional, Union

from pydantic import BaseModel, Field


class Difficulty(str, Enum):
    NORMAL = "normal"
    HARD = "hard"
    NIGHTMARE = "nightmare"


class ConditionType(str, Enum):
    DEFEAT_ECO = "defeat_eco"
    SURVIVE_TURNS = "survive_turns"
    PROTECT_NODES = "protect_nodes"
    SCORE_THRESHOLD = "score_threshold"


class RewardType(str, Enum):
    UNLOCK_CHAPTER = "unlock_chapter"
    UNLOCK_SCENARIO = "unlock_scenario"
    PERMANENT_STAT_BOOST = "permanent_stat_boost"


class BoostStat(str, Enum):
    MAX_HAND_SIZE = "max_hand_size"
    MAX_PV = "max_pv"
    MAX_COR = "max_cor"
    MAX_PA = "max_pa"


# =============================================================================
# Models
# =============================================================================

class ScenarioStats(BaseModel):
    """Base survivor stats for a scenario."""
    model_config = {"frozen": True}

    pv: int = 20
    cor: int = 20
    pa: int = 2
    hand_size: int = 5


class ScenarioConfig(BaseModel):
    model_config = {"frozen": True}

    id: str
    name: str
    description: str = ""
    stats: ScenarioStats = Field(default_factory=ScenarioStats)
    eco_hp: dict[Difficulty, int]
    node_collapse_limit: int = 3


class StatBoost(BaseModel):
    model_config = {"frozen": True}

    stat: BoostStat
    amount: int


class ChapterReward(BaseModel):
    model_config = {"frozen": True}

    type: RewardType
    value: Union[str, StatBoost]
    description: str = ""

    @property
    def key(self) -> str:
        """Dedupe key: reward type plus its value."""
        if isinstance(self.value, StatBoost):
            return f"{self.type.value}:{self.value.stat.value}:{self.value.amount}"
        return f"{self.type.value}:{self.value}"


class VictoryCondition(BaseModel):
    model_config = {"frozen": True}

    type: ConditionType
    target: Optional[int] = None
    description: str = ""


class DifficultyModifiers(BaseModel):
    model_config = {"frozen": True}

    eco_ai_difficulty: float = 1.0
    starting_bonus: dict[str, int] = Field(default_factory=dict)  # PV / COR / PA / HAND


class UnlockRequirements(BaseModel):
    model_config = {"frozen": True}

    previous_chapter: Optional[str] = None
    minimum_score: Optional[int] = None


class ChapterConfig(BaseModel):
    model_config = {"frozen": True}

    id: str
    name: str
    description: str = ""
    scenario_id: str
    difficulty: Difficulty = Difficulty.NORMAL
    victory_conditions: list[VictoryCondition]
    modifiers: DifficultyModifiers = Field(default_factory=DifficultyModifiers)
    requirements: UnlockRequirements = Field(default_factory=UnlockRequirements)
    rewards: list[ChapterReward] = Field(default_factory=list)
    score_multiplier: float = 1.0
    intro: str = ""
    victory_text: str = ""
    defeat_text: str = ""


# =============================================================================
# Catalog
# =============================================================================

SCENARIOS: dict[str, ScenarioConfig] = {
    "default": ScenarioConfig(
        id="default",
        name="Abandoned Cove",
        description="A derelict fishing station where the echoes of the past ring loudest.",
        stats=ScenarioStats(pv=20, cor=20, pa=2, hand_size=5),
        eco_hp={Difficulty.NORMAL: 50, Difficulty.HARD: 70, Difficulty.NIGHTMARE: 100},
    ),
    "urban": ScenarioConfig(
        id="urban",
        name="Fragmented City",
        description="The ruins of a metropolis where reality cracks at every corner.",
        stats=ScenarioStats(pv=18, cor=22, pa=2, hand_size=5),
        eco_hp={Difficulty.NORMAL: 60, Difficulty.HARD: 85, Difficulty.NIGHTMARE: 120},
    ),
}


def _defeat() -> VictoryCondition:
    return VictoryCondition(type=ConditionType.DEFEAT_ECO, description="Reduce the Eco to 0 HP")


CHAPTERS: dict[str, ChapterConfig] = {
    "chapter_1_easy": ChapterConfig(
        id="chapter_1_easy",
        name="Awakening",
        description="Your first confrontation with the Eco. Learn the basics in the abandoned cove.",
        scenario_id="default",
        difficulty=Difficulty.NORMAL,
        victory_conditions=[_defeat()],
        modifiers=DifficultyModifiers(eco_ai_difficulty=0.7, starting_bonus={"PV": 5, "COR": 5}),
        rewards=[
            ChapterReward(
                type=RewardType.UNLOCK_CHAPTER,
                value="chapter_1_medium",
                description="Unlocks: Awakening - Trial",
            ),
        ],
        score_multiplier=1.0,
        intro="You wake among the remains of an old fishing cove. Something stirs in the dark.",
        victory_text="The Eco fades, for now. Something deeper waits below.",
        defeat_text="The Eco overwhelms you. Every defeat teaches a lesson.",
    ),
    "chapter_1_medium": ChapterConfig(
        id="chapter_1_medium",
        name="Awakening - Trial",
        description="The same ground, but the Eco has learned from you.",
        scenario_id="default",
        difficulty=Difficulty.HARD,
        victory_conditions=[
            _defeat(),
            VictoryCondition(type=ConditionType.PROTECT_NODES, target=2, description="Keep at least 2 nodes running"),
        ],
        modifiers=DifficultyModifiers(eco_ai_difficulty=1.0),
        requirements=UnlockRequirements(previous_chapter="chapter_1_easy"),
        rewards=[
            ChapterReward(
                type=RewardType.UNLOCK_CHAPTER,
                value="chapter_2_descent",
                description="Unlocks: Chapter 2 - Descent",
            ),
        ],
        score_multiplier=1.3,
    ),
    "chapter_2_descent": ChapterConfig(
        id="chapter_2_descent",
        name="Descent",
        description="Deeper into the cove, where the Eco grows stronger.",
        scenario_id="default",
        difficulty=Difficulty.HARD,
        victory_conditions=[
            _defeat(),
            VictoryCondition(type=ConditionType.SURVIVE_TURNS, target=12, description="Survive at least 12 turns"),
            VictoryCondition(type=ConditionType.PROTECT_NODES, target=3, description="Keep at least 3 nodes running"),
        ],
        modifiers=DifficultyModifiers(eco_ai_difficulty=1.2),
        requirements=UnlockRequirements(previous_chapter="chapter_1_medium"),
        rewards=[
            ChapterReward(
                type=RewardType.UNLOCK_CHAPTER,
                value="chapter_2_nightmare",
                description="Unlocks: Descent - Nightmare",
            ),
            ChapterReward(
                type=RewardType.PERMANENT_STAT_BOOST,
                value=StatBoost(stat=BoostStat.MAX_HAND_SIZE, amount=1),
                description="Permanently increases maximum hand size",
            ),
        ],
        score_multiplier=1.5,
    ),
    "chapter_2_nightmare": ChapterConfig(
        id="chapter_2_nightmare",
        name="Descent - Nightmare",
        description="The deep levels at their worst. Only masters survive.",
        scenario_id="default",
        difficulty=Difficulty.NIGHTMARE,
        victory_conditions=[
            _defeat(),
            VictoryCondition(type=ConditionType.SURVIVE_TURNS, target=15, description="Survive at least 15 turns"),
            VictoryCondition(type=ConditionType.PROTECT_NODES, target=4, description="Keep every node running"),
            VictoryCondition(type=ConditionType.SCORE_THRESHOLD, target=800, description="Reach 800 points"),
        ],
        modifiers=DifficultyModifiers(eco_ai_difficulty=1.5, starting_bonus={"PV": -2, "COR": -2}),
        requirements=UnlockRequirements(previous_chapter="chapter_2_descent"),
        rewards=[
            ChapterReward(
                type=RewardType.UNLOCK_CHAPTER,
                value="chapter_3_abyss",
                description="Unlocks: Chapter 3 - Final Abyss",
            ),
            ChapterReward(
                type=RewardType.PERMANENT_STAT_BOOST,
                value=StatBoost(stat=BoostStat.MAX_PV, amount=3),
                description="Permanently increases maximum health",
            ),
            ChapterReward(
                type=RewardType.UNLOCK_SCENARIO,
                value="urban",
                description="Unlocks the Fragmented City scenario",
            ),
        ],
        score_multiplier=2.0,
    ),
    "chapter_3_abyss": ChapterConfig(
        id="chapter_3_abyss",
        name="Final Abyss",
        description="The last confrontation, where the Eco unleashes everything.",
        scenario_id="default",
        difficulty=Difficulty.NIGHTMARE,
        victory_conditions=[
            _defeat(),
            VictoryCondition(type=ConditionType.SURVIVE_TURNS, target=20, description="Survive at least 20 turns"),
            VictoryCondition(type=ConditionType.SCORE_THRESHOLD, target=1200, description="Reach 1200 points"),
        ],
        modifiers=DifficultyModifiers(eco_ai_difficulty=1.8, starting_bonus={"HAND": -1}),
        requirements=UnlockRequirements(previous_chapter="chapter_2_nightmare", minimum_score=500),
        rewards=[
            ChapterReward(
                type=RewardType.PERMANENT_STAT_BOOST,
                value=StatBoost(stat=BoostStat.MAX_PV, amount=5),
                description="Vital mastery: +5 PV",
            ),
            ChapterReward(
                type=RewardType.PERMANENT_STAT_BOOST,
                value=StatBoost(stat=BoostStat.MAX_COR, amount=5),
                description="Mental mastery: +5 COR",
            ),
            ChapterReward(
                type=RewardType.PERMANENT_STAT_BOOST,
                value=StatBoost(stat=BoostStat.MAX_PA, amount=1),
                description="Tactical mastery: +1 PA",
            ),
        ],
        score_multiplier=3.0,
    ),
}

FIRST_CHAPTER = "chapter_1_easy"
DEFAULT_SCENARIO = "default"
