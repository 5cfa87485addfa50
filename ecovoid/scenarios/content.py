"""
Scenario Content - Nodes, rules and events for a playable scenario.

A scenario's static numbers (starting stats, Eco HP per difficulty) live
in progression.catalog; this module holds what the engine needs to run
it: the node list, the survivor and Eco rulesets, dynamic events and
the node status thresholds.

Rulesets are validated when content is built. Malformed content raises
RulesetValidationError at load time, never during play.
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Any, Callable
import logging

from ..engine_core.nodes import NodeThresholds
from ..engine_core.state import NodeReward, NodeSpec
from ..rules.effect_dsl import Ruleset
from ..rules.validation import validate_ruleset

logger = logging.getLogger(__name__)

DEFAULT_SCENARIO_ID = "default"


class UnknownScenarioError(KeyError):
    """Raised by strict lookups for a scenario id that is not registered."""

    def __init__(self, scenario_id: str):
        self.scenario_id = scenario_id
        super().__init__(f"Unknown scenario: {scenario_id}")


@dataclass(frozen=True)
class ScenarioContent:
    """Everything the engine loads for one scenario."""
    id: str
    name: str
    nodes: tuple[NodeSpec, ...]
    ruleset: Ruleset
    thresholds: NodeThresholds = NodeThresholds()

    @property
    def node_ids(self) -> set[str]:
        return {n.id for n in self.nodes}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ScenarioContent:
        """
        Build and validate content from a plain dict (JSON shape).

        Raises RulesetValidationError if the rules are malformed.
        """
        nodes = tuple(
            NodeSpec(
                id=n["id"],
                name=n.get("name", n["id"]),
                max_damage=n.get("max_damage", n.get("maxDamage", 10)),
                reward=NodeReward(**n["reward"]) if n.get("reward") else None,
            )
            for n in data.get("nodes", [])
        )
        ruleset = Ruleset.from_dict(data.get("rules", {}))
        thresholds = data.get("thresholds")
        content = cls(
            id=data["id"],
            name=data.get("name", data["id"]),
            nodes=nodes,
            ruleset=ruleset,
            thresholds=NodeThresholds(**thresholds) if thresholds else NodeThresholds(),
        )
        result = validate_ruleset(ruleset, node_ids=content.node_ids, raise_on_error=True)
        for warning in result.warnings:
            logger.warning("Scenario %s: %s", content.id, warning)
        return content


# Registry of content builders by scenario id. Builders run lazily and
# their result is cached.
_BUILDERS: dict[str, Callable[[], ScenarioContent]] = {}
_CACHE: dict[str, ScenarioContent] = {}


def register_scenario(scenario_id: str, builder: Callable[[], ScenarioContent]) -> None:
    _BUILDERS[scenario_id] = builder
    _CACHE.pop(scenario_id, None)


def scenario_ids() -> list[str]:
    return sorted(_BUILDERS)


def get_scenario_content(scenario_id: str, strict: bool = False) -> ScenarioContent:
    """
    Load content for a scenario.

    Unknown ids fall back to the default scenario with a warning, unless
    strict=True, which raises UnknownScenarioError instead.
    """
    if scenario_id not in _BUILDERS:
        if strict:
            raise UnknownScenarioError(scenario_id)
        logger.warning("Unknown scenario %s, falling back to %s", scenario_id, DEFAULT_SCENARIO_ID)
        scenario_id = DEFAULT_SCENARIO_ID

    if scenario_id not in _CACHE:
        _CACHE[scenario_id] = _BUILDERS[scenario_id]()
    return _CACHE[scenario_id]
