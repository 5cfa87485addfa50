"""
Node Subsystem - Damageable ship systems.

Each node carries damage in [0, max_damage]. Its status is a pure
function of the damage ratio; a node is collapsed exactly when damage
equals max_damage. Nodes live in the GameState and are written only
through this module.
"""

from __future__ import annotations
from dataclasses import dataclass, replace
from typing import Iterable
import logging

from .state import GameStateStore, Node, NodeReward, NodeSpec, NodeStatus
from .game_log import GameLog, LogSource, LogType

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class NodeThresholds:
    """
    Damage-ratio thresholds for node status.

    ratio <= stable -> stable, ratio <= unstable -> unstable,
    otherwise corrupted.
    """
    stable: float = 0.33
    unstable: float = 0.66

    def __post_init__(self):
        if not 0.0 < self.stable < self.unstable < 1.0:
            raise ValueError(
                f"Node thresholds must satisfy 0 < stable < unstable < 1 "
                f"(got {self.stable}, {self.unstable})"
            )

    def status_for(self, damage: int, max_damage: int) -> NodeStatus:
        if max_damage <= 0:
            return NodeStatus.CORRUPTED
        ratio = damage / max_damage
        if ratio <= self.stable:
            return NodeStatus.STABLE
        if ratio <= self.unstable:
            return NodeStatus.UNSTABLE
        return NodeStatus.CORRUPTED


class NodeSystem:
    """
    Damage and repair for the scenario's nodes.

    The subsystem does no suit validation; callers decide which cards
    may repair.
    """

    def __init__(
        self,
        store: GameStateStore,
        thresholds: NodeThresholds | None = None,
        log: GameLog | None = None,
    ):
        self.store = store
        self.thresholds = thresholds or NodeThresholds()
        self.log = log

    def initialize(self, specs: Iterable[NodeSpec]) -> list[Node]:
        nodes = [
            Node(
                id=spec.id,
                name=spec.name,
                max_damage=spec.max_damage,
                damage=0,
                status=NodeStatus.STABLE,
                reward=spec.reward,
            )
            for spec in specs
        ]
        self.store.replace_nodes(nodes)
        return nodes

    @property
    def nodes(self) -> list[Node]:
        return list(self.store.state.nodes.values())

    def get_node(self, node_id: str) -> Node | None:
        return self.store.state.nodes.get(node_id)

    def damaged_nodes(self) -> list[Node]:
        return [n for n in self.nodes if n.is_damaged]

    def intact_nodes(self) -> list[Node]:
        """Nodes that have not collapsed."""
        return [n for n in self.nodes if not n.is_collapsed]

    def collapsed_count(self) -> int:
        return sum(1 for n in self.nodes if n.is_collapsed)

    def active_rewards(self) -> list[NodeReward]:
        """Rewards of every node that is not corrupted."""
        return [
            n.reward for n in self.nodes
            if n.reward is not None and n.status != NodeStatus.CORRUPTED
        ]

    def damage_node(self, node_id: str, amount: int) -> Node | None:
        node = self.get_node(node_id)
        if node is None:
            logger.warning("damage_node: unknown node %s", node_id)
            return None
        updated = self._with_damage(node, node.damage + max(0, amount))
        self.store.put_node(updated)
        self._log_change(node, updated, LogType.NODE_DAMAGE)
        return updated

    def repair_node(self, node_id: str, amount: int) -> Node | None:
        node = self.get_node(node_id)
        if node is None:
            logger.warning("repair_node: unknown node %s", node_id)
            return None
        updated = self._with_damage(node, node.damage - max(0, amount))
        self.store.put_node(updated)
        self._log_change(node, updated, LogType.NODE_REPAIR)
        return updated

    def _with_damage(self, node: Node, damage: int) -> Node:
        damage = max(0, min(node.max_damage, damage))
        return replace(
            node,
            damage=damage,
            status=self.thresholds.status_for(damage, node.max_damage),
        )

    def _log_change(self, before: Node, after: Node, log_type: LogType) -> None:
        if self.log is None or before.damage == after.damage:
            return
        verb = "damaged" if log_type == LogType.NODE_DAMAGE else "repaired"
        message = f"{after.name} {verb} ({after.damage}/{after.max_damage}, {after.status.value})"
        if after.is_collapsed:
            message += " - collapsed"
        source = LogSource.ECO if log_type == LogType.NODE_DAMAGE else LogSource.PLAYER
        self.log.add(message, source=source, type=log_type)
