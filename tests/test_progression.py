"""Tests for the node progression state machine."""

import pytest

from conftest import make_graph
from devlog_tutor.errors import NodeNotFoundError
from devlog_tutor.models.roadmap import Message, MessageRole, NodeStatus, RoadmapEdge, RoadmapNode
from devlog_tutor.roadmap.progression import ProgressionEngine, calculate_progress


def engine_for(nodes, edges) -> ProgressionEngine:
    nodes[0].status = NodeStatus.UNLOCKED
    return ProgressionEngine(nodes, edges)


class TestCompletionUnlocks:
    def test_completing_unlocks_direct_successor_only(self):
        nodes, edges = make_graph(3)
        engine = engine_for(nodes, edges)

        engine.set_status("1", NodeStatus.COMPLETED)

        assert engine.get("1").status == NodeStatus.COMPLETED
        assert engine.get("2").status == NodeStatus.UNLOCKED
        assert engine.get("3").status == NodeStatus.LOCKED

    def test_fan_out_unlocks_every_target(self):
        nodes, _ = make_graph(4, chain=False)
        edges = [
            RoadmapEdge(id="a", source="1", target="2"),
            RoadmapEdge(id="b", source="1", target="3"),
        ]
        engine = engine_for(nodes, edges)

        engine.set_status("1", NodeStatus.COMPLETED)

        assert engine.get("2").status == NodeStatus.UNLOCKED
        assert engine.get("3").status == NodeStatus.UNLOCKED
        assert engine.get("4").status == NodeStatus.LOCKED

    def test_non_locked_successor_untouched(self):
        nodes, edges = make_graph(2)
        engine = engine_for(nodes, edges)
        nodes[1].status = NodeStatus.ACTIVE

        engine.set_status("1", NodeStatus.COMPLETED)

        assert engine.get("2").status == NodeStatus.ACTIVE

    def test_cycle_is_harmless(self):
        nodes, edges = make_graph(2)
        edges.append(RoadmapEdge(id="e2-1", source="2", target="1"))
        engine = engine_for(nodes, edges)

        engine.set_status("1", NodeStatus.COMPLETED)
        engine.set_status("2", NodeStatus.COMPLETED)

        assert engine.get("1").status == NodeStatus.COMPLETED
        assert engine.get("2").status == NodeStatus.COMPLETED


class TestForwardOnly:
    def test_backward_transition_ignored(self):
        nodes, edges = make_graph(2)
        engine = engine_for(nodes, edges)
        engine.set_status("1", NodeStatus.COMPLETED)

        effective = engine.set_status("1", NodeStatus.LOCKED)

        assert effective == NodeStatus.COMPLETED
        assert engine.get("1").status == NodeStatus.COMPLETED

    def test_mark_active_only_from_unlocked(self):
        nodes, edges = make_graph(2)
        engine = engine_for(nodes, edges)

        engine.mark_active("1")
        engine.mark_active("2")

        assert engine.get("1").status == NodeStatus.ACTIVE
        assert engine.get("2").status == NodeStatus.LOCKED

    def test_mark_active_keeps_completed(self):
        nodes, edges = make_graph(1)
        engine = engine_for(nodes, edges)
        engine.set_status("1", NodeStatus.COMPLETED)

        engine.mark_active("1")

        assert engine.get("1").status == NodeStatus.COMPLETED


class TestNodeData:
    def test_chat_history_replaced_wholesale(self):
        nodes, edges = make_graph(1)
        engine = engine_for(nodes, edges)
        first = [Message(role=MessageRole.USER, text="hi")]
        second = first + [Message(role=MessageRole.MODEL, text="hello")]

        engine.set_chat_history("1", first)
        engine.set_chat_history("1", second)

        assert [m.text for m in engine.get("1").chat_history] == ["hi", "hello"]

    def test_set_summary(self):
        nodes, edges = make_graph(1)
        engine = engine_for(nodes, edges)
        engine.set_summary("1", "<div>one</div>")
        engine.set_summary("1", "<div>two</div>")
        assert engine.get("1").summary_html == "<div>two</div>"

    def test_unknown_node_raises_not_found(self):
        nodes, edges = make_graph(1)
        engine = engine_for(nodes, edges)
        with pytest.raises(NodeNotFoundError):
            engine.set_status("missing", NodeStatus.COMPLETED)
        with pytest.raises(NodeNotFoundError):
            engine.set_summary("missing", "<div/>")


class TestProgress:
    def test_empty_graph(self):
        assert calculate_progress([]) == 0

    def test_one_of_three(self):
        nodes = [
            RoadmapNode(id="1", label="a", status=NodeStatus.COMPLETED),
            RoadmapNode(id="2", label="b"),
            RoadmapNode(id="3", label="c"),
        ]
        assert calculate_progress(nodes) == 33

    def test_two_of_three(self):
        nodes = [
            RoadmapNode(id="1", label="a", status=NodeStatus.COMPLETED),
            RoadmapNode(id="2", label="b", status=NodeStatus.COMPLETED),
            RoadmapNode(id="3", label="c"),
        ]
        assert calculate_progress(nodes) == 67

    def test_half_rounds_up(self):
        nodes = [RoadmapNode(id=str(i), label="x") for i in range(8)]
        nodes[0].status = NodeStatus.COMPLETED
        # 12.5 rounds half up
        assert calculate_progress(nodes) == 13

    def test_all_completed(self):
        nodes = [RoadmapNode(id="1", label="a", status=NodeStatus.COMPLETED)]
        assert calculate_progress(nodes) == 100
