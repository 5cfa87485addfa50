"""
Fragmented City - Urban scenario.

The city is harsher on the mind than the body: the Eco leans on sanity
attacks and its nodes collapse sooner (tighter thresholds).
"""

from __future__ import annotations

from .content import ScenarioContent
from .default import PLAYER_ACTIONS, _heal, _hurt


ECO_ATTACKS = [
    {
        "condition": {"suit": "spades"},
        "effects": [_hurt("PV", "ceil(CARD_VALUE / 3)")],
    },
    {
        "condition": {"suit": "hearts"},
        "effects": [_hurt("COR", "ceil(CARD_VALUE / 2) + 1")],
    },
    {
        "condition": {"suit": "clubs"},
        "effects": [{"type": "DAMAGE_NODE", "target": "RANDOM", "value": "ceil(CARD_VALUE / 3)"}],
    },
    {
        "condition": {"suit": "diamonds"},
        "effects": [
            {"type": "DISCARD_CARDS", "target": "PLAYER", "value": 1},
            _hurt("PA", 1),
        ],
    },
]

EVENTS = [
    {
        "id": "KD",
        "event": "Blackout",
        "flavor": "Every screen in the district goes dark at once.",
        "effects": [{"type": "DAMAGE_NODE", "target": "NODE", "node_id": "grid", "value": 3}],
    },
    {
        "id": "5H",
        "event": "Familiar face",
        "flavor": "A stranger smiles at you. You almost believe it.",
        "effects": [_heal("COR", 3)],
    },
    {
        "id": "9S",
        "event": "Falling glass",
        "flavor": "A tower sheds its windows onto the street.",
        "effects": [_hurt("PV", 2)],
    },
]

NODES = [
    {"id": "grid", "name": "Power Grid", "max_damage": 9, "reward": {"type": "action_points", "amount": 1}},
    {"id": "subway", "name": "Subway Line", "max_damage": 9, "reward": {"type": "draw", "amount": 1}},
    {"id": "hospital", "name": "Field Hospital", "max_damage": 7, "reward": {"type": "health", "amount": 1}},
    {"id": "antenna", "name": "Signal Antenna", "max_damage": 11, "reward": {"type": "sanity", "amount": 1}},
]


def create_urban_content() -> ScenarioContent:
    return ScenarioContent.from_dict({
        "id": "urban",
        "name": "Fragmented City",
        "nodes": NODES,
        "thresholds": {"stable": 0.25, "unstable": 0.6},
        "rules": {"player_actions": PLAYER_ACTIONS, "eco_attacks": ECO_ATTACKS, "events": EVENTS},
    })
