"""
Abandoned Cove - The default scenario.

Suits follow the base game: Spades attack, Hearts steady the mind,
Clubs are technical work (repairs, exposing the Eco) and Diamonds are
searching for resources.
"""

from __future__ import annotations

from .content import ScenarioContent


def _damage_eco(value):
    return {"type": "DEAL_DAMAGE", "target": "ECO", "target_stat": "HP", "value": value}


def _hurt(stat, value):
    return {"type": "DEAL_DAMAGE", "target": "PLAYER", "target_stat": stat, "value": value}


def _heal(stat, value):
    return {"type": "HEAL_STAT", "target": "PLAYER", "target_stat": stat, "value": value}


PLAYER_ACTIONS = [
    {
        "condition": {"suit": "spades"},
        "effects": [_damage_eco("CARD_VALUE")],
        "comment": "Attack",
    },
    {
        "condition": {"suit": "hearts"},
        "effects": [_heal("COR", "CARD_VALUE")],
        "comment": "Focus",
    },
    {
        "condition": {"suit": "clubs"},
        "effects": [
            {"type": "REPAIR_NODE", "target": "CHOICE", "value": "ceil(CARD_VALUE / 4)"},
            {"type": "APPLY_STATUS", "target": "ECO", "status": "EXPOSED", "duration": 1},
        ],
        "comment": "Technical work: patch a node and look for the Eco's weak spot",
    },
    {
        "condition": {"suit": "diamonds"},
        "effects": [{"type": "DRAW_CARDS", "target": "PLAYER", "value": "floor(CARD_VALUE / 5) + 1"}],
        "comment": "Search",
    },
    {
        "condition": {"id": "AS"},
        "effects": [_damage_eco(15)],
        "comment": "Harpoon",
    },
    {
        "condition": {"rank": "K", "suit": "spades"},
        "cost": 2,
        "effects": [
            _damage_eco("CARD_VALUE"),
            {"type": "APPLY_STATUS", "target": "PLAYER", "status": "CRITICAL_BOOST", "value": 1},
        ],
        "comment": "Heavy strike that sharpens every later attack",
    },
    {
        "condition": {"rank": "Q", "suit": "hearts"},
        "effects": [_heal("PV", "ceil(CARD_VALUE / 2)"), _heal("COR", "ceil(CARD_VALUE / 2)")],
        "comment": "Deep breath",
    },
    {
        "condition": {"id": "AH"},
        "cost": 0,
        "effects": [_heal("PA", 1)],
        "comment": "Second wind",
    },
]

ECO_ATTACKS = [
    {
        "condition": {"suit": "spades"},
        "effects": [_hurt("PV", "ceil(CARD_VALUE / 2)")],
    },
    {
        "condition": {"suit": "clubs"},
        "effects": [{"type": "DAMAGE_NODE", "target": "RANDOM", "value": "ceil(CARD_VALUE / 3)"}],
    },
    {
        "condition": {"suit": "hearts"},
        "effects": [_hurt("COR", "ceil(CARD_VALUE / 2)")],
    },
    {
        "condition": {"suit": "diamonds"},
        "effects": [
            {"type": "DISCARD_CARDS", "target": "PLAYER", "value": 1},
            _hurt("COR", 1),
        ],
    },
    {
        "condition": {"rank": "K", "suit": "hearts"},
        "effects": [
            _hurt("COR", "ceil(CARD_VALUE / 2)"),
            {"type": "APPLY_STATUS", "target": "PLAYER", "status": "CANNOT_PLAY_SPADES"},
        ],
    },
]

EVENTS = [
    {
        "id": "7D",
        "event": "Supply cache",
        "flavor": "A rusted locker still holds something useful.",
        "effects": [{"type": "DRAW_CARDS", "target": "PLAYER", "value": 1}],
    },
    {
        "id": "QS",
        "event": "Tidal surge",
        "flavor": "Black water floods the lower decks.",
        "effects": [{"type": "DAMAGE_NODE", "target": "NODE", "node_id": "pump", "value": 2}],
    },
    {
        "id": "JH",
        "event": "Whispers",
        "flavor": "Something speaks with your voice.",
        "effects": [_hurt("COR", 2)],
    },
    {
        "id": "2C",
        "event": "Quiet tide",
        "flavor": "For a moment the Eco goes silent.",
        "effects": [_heal("PV", 2)],
    },
]

NODES = [
    {"id": "generator", "name": "Generator", "max_damage": 10, "reward": {"type": "action_points", "amount": 1}},
    {"id": "radio", "name": "Radio Mast", "max_damage": 8, "reward": {"type": "draw", "amount": 1}},
    {"id": "pump", "name": "Bilge Pump", "max_damage": 8, "reward": {"type": "health", "amount": 1}},
    {"id": "lighthouse", "name": "Lighthouse", "max_damage": 12, "reward": {"type": "sanity", "amount": 1}},
]


def create_default_content() -> ScenarioContent:
    return ScenarioContent.from_dict({
        "id": "default",
        "name": "Abandoned Cove",
        "nodes": NODES,
        "rules": {"player_actions": PLAYER_ACTIONS, "eco_attacks": ECO_ATTACKS, "events": EVENTS},
    })
