"""
Unit Tests for the pre-run workflow validator.
"""

import pytest

from flowdesk.workflow.errors import ErrorKind, ValidationFailedError
from flowdesk.workflow.localization import Translator
from flowdesk.workflow.workflow_model import WorkflowEdge, WorkflowNode
from flowdesk.workflow.workflow_validator import Severity, WorkflowValidator


@pytest.fixture
def validator(registry, translator):
    return WorkflowValidator(registry, translator)


def _node(node_id, node_type, config=None, label=None):
    return WorkflowNode(
        id=node_id,
        type=node_type,
        data={"label": label or node_type, "config": config},
    )


def _edge(edge_id, source, target, handle=None):
    return WorkflowEdge(id=edge_id, source=source, target=target, source_handle=handle)


# =============================================================================
# Fatal checks
# =============================================================================


class TestFatalChecks:
    """Errors that block a run."""

    def test_empty_graph(self, validator):
        result = validator.validate([], [])
        assert not result.is_valid
        assert result.has_kind(ErrorKind.EMPTY_GRAPH)

    def test_dangling_edge_names_edge_and_node(self, validator):
        nodes = [_node("a", "trigger")]
        result = validator.validate(nodes, [_edge("e1", "a", "ghost")])
        assert not result.is_valid
        [issue] = result.of_kind(ErrorKind.DANGLING_REFERENCE)
        assert issue.edge_id == "e1"
        assert issue.node_id == "ghost"
        assert "e1" in issue.message and "ghost" in issue.message

    def test_dangling_source_and_target_both_reported(self, validator):
        result = validator.validate([_node("a", "trigger")], [_edge("e1", "x", "y")])
        assert len(result.of_kind(ErrorKind.DANGLING_REFERENCE)) == 2

    def test_invalid_port(self, validator):
        nodes = [
            _node("t", "trigger"),
            _node("b", "if-else", {"condition": {"field": "f", "operator": "equals", "value": "1"}}),
            _node("c", "contact"),
        ]
        edges = [_edge("e1", "t", "b"), _edge("e2", "b", "c", handle="maybe")]
        result = validator.validate(nodes, edges)
        [issue] = result.of_kind(ErrorKind.INVALID_PORT)
        assert issue.edge_id == "e2"
        assert issue.severity == Severity.ERROR

    def test_required_structured_parameter(self, validator):
        nodes = [_node("b", "if-else", {"condition": {"field": "", "operator": "equals", "value": "x"}})]
        result = validator.validate(nodes, [])
        assert not result.is_valid
        [issue] = result.of_kind(ErrorKind.VALIDATION_FAILED)
        assert issue.path == "condition.field"
        assert "(b)" in issue.message

    def test_degenerate_loop_is_fatal(self, validator):
        result = validator.validate([_node("l", "loop", {"loopType": "for", "iterations": 0})], [])
        assert not result.is_valid

    def test_simple_node_hard_requirements(self, validator):
        nodes = [
            _node("t", "trigger"),
            _node("m", "email", {"emailData": {"subject": ""}}),
            _node("a", "api", {"apiData": {"method": "GET", "url": "ftp:/nowhere"}}),
            _node("d", "database", {"databaseData": {"operation": "read", "table": ""}}),
            _node("c", "condition", {"conditionData": {"field": ""}}),
        ]
        edges = [_edge(f"e{i}", "t", n.id) for i, n in enumerate(nodes[1:])]
        result = validator.validate(nodes, edges)
        failed = {i.node_id for i in result.of_kind(ErrorKind.VALIDATION_FAILED)}
        assert failed == {"m", "a", "d", "c"}

    def test_simple_node_checks_need_their_section(self, validator):
        nodes = [
            _node("t", "trigger"),
            _node("m", "email", {"name": "Follow-up"}),
            _node("a", "api", {"name": "Call CRM"}),
            _node("d", "database", {}),
            _node("c", "condition", {"name": "Gate"}),
            _node("m2", "email-llm", {"emailData": {"subject": "Hello"}}),
        ]
        edges = [_edge(f"e{i}", "t", n.id) for i, n in enumerate(nodes[1:])]
        result = validator.validate(nodes, edges)
        assert result.is_valid, result.errors

    def test_raise_for_errors(self, validator):
        result = validator.validate([], [])
        with pytest.raises(ValidationFailedError):
            result.raise_for_errors()


# =============================================================================
# Warnings
# =============================================================================


class TestWarnings:
    """Findings that are reported but do not block a run."""

    def test_valid_pipeline_has_no_findings(self, validator, pipeline):
        result = validator.validate(pipeline.nodes, pipeline.edges)
        assert result.is_valid
        assert result.errors == []
        assert result.warnings == []

    def test_unconfigured_structured_node_warns(self, validator):
        nodes = [_node("t", "trigger"), _node("l", "loop")]
        result = validator.validate(nodes, [_edge("e1", "t", "l")])
        assert result.is_valid
        assert any("(l)" in w and "defaults" in w for w in result.warnings)

    def test_try_catch_negative_retry_is_warning(self, validator):
        nodes = [_node("tc", "try-catch", {"retryCount": -1})]
        result = validator.validate(nodes, [])
        assert result.is_valid
        assert result.has_kind(ErrorKind.VALIDATION_WARNING)

    def test_orphans_in_multi_node_graph(self, validator):
        nodes = [_node("t", "trigger"), _node("a", "contact"), _node("lonely", "offer", label="Lonely")]
        result = validator.validate(nodes, [_edge("e1", "t", "a")])
        assert result.is_valid
        [orphan] = result.of_kind(ErrorKind.ORPHAN_NODE)
        assert orphan.node_id == "lonely"
        assert "'Lonely' (lonely)" in orphan.message

    def test_single_node_is_not_an_orphan(self, validator):
        result = validator.validate([_node("t", "trigger")], [])
        assert not result.has_kind(ErrorKind.ORPHAN_NODE)

    def test_missing_trigger(self, validator):
        nodes = [_node("a", "contact"), _node("b", "offer")]
        result = validator.validate(nodes, [_edge("e1", "a", "b")])
        assert result.is_valid
        assert any("trigger" in w for w in result.warnings)

    def test_unreachable_from_trigger(self, validator):
        nodes = [_node("t", "trigger"), _node("a", "contact"), _node("x", "offer"), _node("y", "sale")]
        edges = [_edge("e1", "t", "a"), _edge("e2", "x", "y")]
        result = validator.validate(nodes, edges)
        unreachable = {i.node_id for i in result.issues if "not reachable" in i.message}
        assert unreachable == {"x", "y"}

    def test_if_else_needs_two_outputs(self, validator):
        nodes = [
            _node("t", "trigger"),
            _node("b", "if-else", {"condition": {"field": "f", "operator": "equals", "value": "1"}}),
            _node("c", "contact"),
        ]
        edges = [_edge("e1", "t", "b"), _edge("e2", "b", "c", handle="true")]
        result = validator.validate(nodes, edges)
        assert result.is_valid
        assert any("exactly 2 outputs" in w for w in result.warnings)

    def test_parallel_needs_two_outputs(self, validator):
        nodes = [_node("t", "trigger"), _node("p", "parallel", {"branches": 2}), _node("c", "contact")]
        edges = [_edge("e1", "t", "p"), _edge("e2", "p", "c", handle="branch-0")]
        result = validator.validate(nodes, edges)
        assert any("at least 2 outputs" in w for w in result.warnings)

    def test_cycle_outside_loop_warns(self, validator):
        nodes = [_node("t", "trigger"), _node("a", "contact"), _node("b", "offer")]
        edges = [_edge("e1", "t", "a"), _edge("e2", "a", "b"), _edge("e3", "b", "a")]
        result = validator.validate(nodes, edges)
        assert result.is_valid
        assert sum("cycle" in w for w in result.warnings) == 1

    def test_cycle_through_loop_is_fine(self, validator):
        nodes = [
            _node("t", "trigger"),
            _node("l", "loop", {"loopType": "for", "iterations": 3}),
            _node("a", "action"),
            _node("z", "action"),
        ]
        edges = [
            _edge("e1", "t", "l"),
            _edge("e2", "l", "a", handle="loop-body"),
            _edge("e3", "a", "l"),
            _edge("e4", "l", "z", handle="exit"),
        ]
        result = validator.validate(nodes, edges)
        assert not any("cycle" in w for w in result.warnings)

    def test_self_loop_warns(self, validator):
        nodes = [_node("t", "trigger"), _node("a", "action")]
        edges = [_edge("e1", "t", "a"), _edge("e2", "a", "a")]
        result = validator.validate(nodes, edges)
        assert any("cycle" in w for w in result.warnings)


class TestLocalization:
    """Validator messages go through the translator."""

    def test_french_messages(self, registry):
        result = WorkflowValidator(registry, Translator("fr")).validate([], [])
        assert result.errors == ["Le workflow doit contenir au moins un nœud"]

    def test_to_dict(self, validator):
        data = validator.validate([], []).to_dict()
        assert data["isValid"] is False
        assert data["issues"][0]["kind"] == "empty_graph"
