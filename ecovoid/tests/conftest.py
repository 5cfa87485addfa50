"""
Pytest fixtures for Ecovoid tests.
"""

import random

import pytest

from ..engine_core.cards import parse_card_id
from ..engine_core.deck import DeckManager
from ..engine_core.effect_resolver import CardEffectEngine
from ..engine_core.game_log import GameLog
from ..engine_core.hallucination import CorruptionCurve, HallucinationSystem
from ..engine_core.nodes import NodeSystem
from ..engine_core.state import GameStateStore, RunConfig
from ..progression import ChapterManager, MemoryKeyValueStore, ProfileStore
from ..scenarios import get_scenario_content
from ..session import GameLoop


class FakeClock:
    """Manually advanced clock for score combos and run timing."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def tick(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def content():
    """The default scenario content."""
    return get_scenario_content("default")


@pytest.fixture
def store() -> GameStateStore:
    """A store with the base survivor stats (PV 20, COR 20, AP 2, hand 5, Eco 50)."""
    return GameStateStore(RunConfig())


@pytest.fixture
def log() -> GameLog:
    return GameLog()


@pytest.fixture
def deck() -> DeckManager:
    deck = DeckManager(rng=random.Random(1))
    deck.reset()
    return deck


@pytest.fixture
def nodes(store, log, content) -> NodeSystem:
    system = NodeSystem(store, thresholds=content.thresholds, log=log)
    system.initialize(content.nodes)
    return system


@pytest.fixture
def hallucination(store, deck, log) -> HallucinationSystem:
    return HallucinationSystem(store, deck, log=log, rng=random.Random(2))


@pytest.fixture
def engine(store, deck, nodes, content, log) -> CardEffectEngine:
    """Effect engine over the default ruleset, without hallucinations."""
    return CardEffectEngine(store, deck, nodes, content.ruleset, log=log, rng=random.Random(3))


@pytest.fixture
def set_hand():
    """Replace the hand of a store with the given card ids."""

    def _set_hand(store: GameStateStore, *card_ids: str):
        store.take_hand()
        cards = [parse_card_id(card_id) for card_id in card_ids]
        for card in cards:
            store.add_to_hand(card)
        return cards

    return _set_hand


@pytest.fixture
def chapters() -> ChapterManager:
    """A chapter manager over an in-memory profile."""
    return ChapterManager(profile_store=ProfileStore(MemoryKeyValueStore()))


@pytest.fixture
def loop(chapters, clock) -> GameLoop:
    """A seeded game loop with zero delays (phases advance inline)."""
    return GameLoop(chapters=chapters, seed=11, clock=clock)


@pytest.fixture
def timed_loop(chapters, clock) -> GameLoop:
    """A seeded game loop whose automatic phases wait on the scheduler."""
    return GameLoop(chapters=chapters, seed=11, settle_delay=1.0, phase_delay=0.5, clock=clock)


@pytest.fixture
def calm_curve() -> CorruptionCurve:
    """A corruption curve that never substitutes draws."""
    return CorruptionCurve(per_level=0.0, cap=0.0)
