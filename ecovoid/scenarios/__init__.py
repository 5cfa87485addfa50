"""
Scenarios - Playable content.

    content = get_scenario_content("default")
    content.nodes, content.ruleset, content.thresholds
"""

from .content import (
    DEFAULT_SCENARIO_ID,
    ScenarioContent,
    UnknownScenarioError,
    get_scenario_content,
    register_scenario,
    scenario_ids,
)
from .default import create_default_content
from .urban import create_urban_content

register_scenario("default", create_default_content)
register_scenario("urban", create_urban_content)

__all__ = [
    "DEFAULT_SCENARIO_ID",
    "ScenarioContent",
    "UnknownScenarioError",
    "get_scenario_content",
    "register_scenario",
    "scenario_ids",
    "create_default_content",
    "create_urban_content",
]
