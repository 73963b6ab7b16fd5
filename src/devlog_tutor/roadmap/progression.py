"""Node progression state machine over a live roadmap graph."""

import math

import structlog

from devlog_tutor.errors import NodeNotFoundError
from devlog_tutor.models.roadmap import Message, NodeStatus, RoadmapEdge, RoadmapNode

logger = structlog.get_logger()


def calculate_progress(nodes: list[RoadmapNode]) -> int:
    """Percentage of completed nodes, rounded half up. 0 for an empty graph."""
    total = len(nodes)
    if total == 0:
        return 0
    completed = sum(1 for n in nodes if n.status == NodeStatus.COMPLETED)
    return math.floor(100 * completed / total + 0.5)


class ProgressionEngine:
    """Enforces forward-only status transitions and one-hop unlocking.

    Status moves only along locked -> unlocked -> active -> completed.
    Completing a node unlocks its direct successors that are still locked;
    nodes further down the graph are left alone.

    Args:
        nodes: Live node list. Mutated in place.
        edges: Live edge list.
    """

    def __init__(self, nodes: list[RoadmapNode], edges: list[RoadmapEdge]):
        self.nodes = nodes
        self.edges = edges

    def get(self, node_id: str) -> RoadmapNode:
        for node in self.nodes:
            if node.id == node_id:
                return node
        raise NodeNotFoundError(node_id)

    def successors(self, node_id: str) -> list[str]:
        return [e.target for e in self.edges if e.source == node_id]

    def completed_nodes(self) -> list[RoadmapNode]:
        return [n for n in self.nodes if n.status == NodeStatus.COMPLETED]

    def set_status(self, node_id: str, status: NodeStatus) -> NodeStatus:
        """Move a node forward to ``status`` and return its effective status.

        Backward requests leave the node unchanged.
        """
        node = self.get(node_id)
        if status.rank < node.status.rank:
            logger.warning(
                "backward_transition_ignored",
                node_id=node_id,
                current=node.status.value,
                requested=status.value,
            )
            return node.status

        previous = node.status
        node.status = status
        if previous != status:
            logger.info(
                "node_status_changed",
                node_id=node_id,
                previous=previous.value,
                status=status.value,
            )

        if status == NodeStatus.COMPLETED:
            self._unlock_successors(node_id)
        return node.status

    def mark_active(self, node_id: str) -> None:
        """Enter ``active`` the first time a node's chat is opened."""
        node = self.get(node_id)
        if node.status == NodeStatus.UNLOCKED:
            self.set_status(node_id, NodeStatus.ACTIVE)

    def set_chat_history(self, node_id: str, messages: list[Message]) -> None:
        self.get(node_id).chat_history = list(messages)

    def set_summary(self, node_id: str, html: str) -> None:
        self.get(node_id).summary_html = html

    def _unlock_successors(self, node_id: str) -> None:
        targets = set(self.successors(node_id))
        for node in self.nodes:
            if node.id in targets and node.status == NodeStatus.LOCKED:
                node.status = NodeStatus.UNLOCKED
                logger.info("node_unlocked", node_id=node.id, unlocked_by=node_id)
