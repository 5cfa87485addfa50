"""Progression - chapters, scenarios and the persisted player profile."""

from .catalog import CHAPTERS, SCENARIOS, ChapterConfig, ChapterReward, Difficulty, ScenarioConfig, VictoryCondition
from .profile import JsonFileKeyValueStore, MemoryKeyValueStore, PlayerProfile, ProfileStore
from .manager import ChapterManager, VictoryReport

__all__ = [
    "CHAPTERS",
    "SCENARIOS",
    "ChapterConfig",
    "ChapterReward",
    "Difficulty",
    "ScenarioConfig",
    "VictoryCondition",
    "JsonFileKeyValueStore",
    "MemoryKeyValueStore",
    "PlayerProfile",
    "ProfileStore",
    "ChapterManager",
    "VictoryReport",
]
