"""
Unit Tests for WorkflowGraph mutations and their invariants.
"""

import pytest

from flowdesk.workflow.errors import (
    DanglingReferenceError,
    ErrorKind,
    GraphElementNotFoundError,
    InvalidPortError,
)
from flowdesk.workflow.workflow_model import Position, WorkflowEdge


# =============================================================================
# Nodes
# =============================================================================


class TestNodes:
    """Tests for adding, moving and removing nodes."""

    def test_add_node_uses_registry_metadata(self, graph):
        node = graph.add_node("offer")
        assert node.id.startswith("node-")
        assert node.type == "offer"
        assert node.data.label == "Offer"
        assert node.data.description
        assert node.data.config is None

    def test_default_position_within_canvas_box(self, graph):
        for _ in range(20):
            pos = graph.add_node("action").position
            assert 200 <= pos.x <= 700
            assert 150 <= pos.y <= 550

    def test_explicit_id_must_be_unique(self, graph):
        graph.add_node("action", node_id="a")
        with pytest.raises(ValueError):
            graph.add_node("action", node_id="a")

    def test_remove_node_cascades_to_edges(self, pipeline):
        pipeline.remove_node("branch")
        assert not pipeline.has_node("branch")
        assert all(
            "branch" not in (e.source, e.target) for e in pipeline.edges
        )
        assert pipeline.edges == []

    def test_remove_unknown_node(self, graph):
        with pytest.raises(GraphElementNotFoundError) as exc:
            graph.remove_node("ghost")
        assert exc.value.kind == ErrorKind.NOT_FOUND

    def test_move_node(self, graph):
        node = graph.add_node("sale", node_id="s")
        moved = graph.move_node("s", Position(x=10, y=20))
        assert (moved.position.x, moved.position.y) == (10, 20)
        assert node.position != moved.position


# =============================================================================
# Config updates
# =============================================================================


class TestConfigUpdates:
    """Tests for copy-on-write config updates."""

    def test_update_creates_new_objects(self, graph):
        graph.add_node("if-else", node_id="b")
        graph.add_node("contact", node_id="c")
        before = graph.get_node("b")
        untouched = graph.get_node("c")

        after = graph.update_node_config("b", "condition.field", "status")

        assert after is not before
        assert after.data is not before.data
        assert before.data.config is None
        assert after.data.config == {"condition": {"field": "status"}}
        assert graph.get_node("b") is after
        assert graph.get_node("c") is untouched

    def test_previous_config_object_is_not_mutated(self, graph):
        graph.add_node("switch", node_id="s")
        graph.set_node_config("s", {"field": "x", "cases": [{"value": "a", "label": "A"}]})
        previous = graph.get_node("s").data.config
        graph.update_node_config("s", "cases.0.value", "b")
        assert previous["cases"][0]["value"] == "a"
        assert graph.get_node("s").data.config["cases"][0]["value"] == "b"

    def test_name_updates_label(self, graph):
        graph.add_node("contact", node_id="c")
        node = graph.update_node_config("c", "name", "Lead intake")
        assert node.data.label == "Lead intake"

    def test_blank_name_keeps_label(self, graph):
        graph.add_node("contact", node_id="c")
        node = graph.set_node_config("c", {"name": "  "})
        assert node.data.label == "Contact"


# =============================================================================
# Edges
# =============================================================================


class TestEdges:
    """Tests for edge invariants."""

    def test_add_edge_between_plain_nodes(self, graph):
        graph.add_node("contact", node_id="a")
        graph.add_node("offer", node_id="b")
        edge = graph.add_edge("a", "b")
        assert edge.type == "smoothstep"
        assert edge.animated
        assert graph.edges_from("a") == [edge]
        assert graph.edges_to("b") == [edge]

    def test_dangling_edge_rejected(self, graph):
        graph.add_node("contact", node_id="a")
        with pytest.raises(DanglingReferenceError) as exc:
            graph.add_edge("a", "missing")
        assert exc.value.node_id == "missing"
        assert graph.edges == []

    def test_unknown_structured_port_rejected(self, pipeline):
        before = pipeline.edges
        with pytest.raises(InvalidPortError):
            pipeline.add_edge("branch", "person", source_handle="maybe")
        assert pipeline.edges == before

    def test_structured_source_requires_handle(self, pipeline):
        with pytest.raises(InvalidPortError):
            pipeline.add_edge("branch", "person")

    def test_simple_source_rejects_named_port(self, pipeline):
        with pytest.raises(InvalidPortError):
            pipeline.add_edge("person", "mail", source_handle="true")

    def test_unknown_target_port_rejected(self, pipeline):
        with pytest.raises(InvalidPortError) as exc:
            pipeline.add_edge("person", "mail", target_handle="side")
        assert exc.value.field == "targetHandle"

    def test_switch_port_bound(self, graph):
        graph.add_node("switch", node_id="sw")
        graph.add_node("action", node_id="t")
        graph.set_node_config("sw", {"field": "tier", "cases": [
            {"value": "gold"}, {"value": "silver"}, {"value": "bronze"},
        ]})
        for handle in ("case-0", "case-1", "case-2", "default"):
            graph.add_edge("sw", "t", source_handle=handle)
        with pytest.raises(InvalidPortError):
            graph.add_edge("sw", "t", source_handle="case-3")

    def test_remove_edge(self, pipeline):
        pipeline.remove_edge("e-true")
        assert pipeline.get_edge("e-true") is None
        with pytest.raises(GraphElementNotFoundError):
            pipeline.remove_edge("e-true")

    def test_reverse_edge_mints_new_id(self, graph):
        graph.add_node("contact", node_id="a")
        graph.add_node("offer", node_id="b")
        graph.add_edge("a", "b", edge_id="ab")
        reversed_edge = graph.reverse_edge("ab")
        assert reversed_edge.id.startswith("ab-rev-")
        assert (reversed_edge.source, reversed_edge.target) == ("b", "a")
        assert reversed_edge.source_handle is None
        assert graph.get_edge("ab") is None
        assert [e.id for e in graph.edges] == [reversed_edge.id]

    def test_reverse_ids_are_unique(self, graph):
        graph.add_node("contact", node_id="a")
        graph.add_node("offer", node_id="b")
        graph.add_edge("a", "b", edge_id="ab")
        first = graph.reverse_edge("ab")
        second = graph.reverse_edge(first.id)
        assert second.id != first.id
        assert (second.source, second.target) == ("a", "b")

    def test_reverse_into_structured_source_rejected(self, pipeline):
        before = pipeline.edges
        with pytest.raises(InvalidPortError):
            pipeline.reverse_edge("e-start")
        assert pipeline.edges == before

    def test_edge_style(self, pipeline):
        assert pipeline.set_edge_type("e-start", "bezier").type == "bezier"
        assert pipeline.toggle_edge_animated("e-start").animated is False
        with pytest.raises(ValueError):
            pipeline.set_edge_type("e-start", "zigzag")


# =============================================================================
# Whole graph
# =============================================================================


class TestReplace:
    """Tests for replace, clear and snapshot."""

    def test_replace_rejects_dangling_edges(self, pipeline):
        nodes, edges = pipeline.snapshot()
        bad = edges + [WorkflowEdge(id="bad", source="start", target="nowhere")]
        with pytest.raises(DanglingReferenceError):
            pipeline.replace(nodes, bad)
        assert [e.id for e in pipeline.edges] == ["e-start", "e-true", "e-false"]

    def test_replace_rejects_unknown_ports(self, pipeline):
        nodes, edges = pipeline.snapshot()
        bad = edges + [WorkflowEdge(id="bad", source="branch", target="mail", source_handle="bogus")]
        with pytest.raises(InvalidPortError):
            pipeline.replace(nodes, bad)
        assert [e.id for e in pipeline.edges] == ["e-start", "e-true", "e-false"]

    def test_replace_accepts_declared_ports(self, pipeline):
        nodes, edges = pipeline.snapshot()
        pipeline.replace(nodes, edges)
        assert pipeline.get_edge("e-true").source_handle == "true"

    def test_snapshot_is_deep(self, pipeline):
        nodes, _ = pipeline.snapshot()
        nodes[1].data.config["condition"]["field"] = "changed"
        assert pipeline.get_node("branch").data.config["condition"]["field"] == "status"

    def test_clear(self, pipeline):
        pipeline.clear()
        assert len(pipeline) == 0
        assert pipeline.edges == []
