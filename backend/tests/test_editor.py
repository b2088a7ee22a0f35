"""
Tests for the builder session: editing, run, export/import and storage.
"""

import asyncio
import json

import pytest

from flowdesk.workflow.errors import ErrorKind, PersistenceError
from flowdesk.workflow.workflow_editor import LoggingNotifier, WorkflowEditor
from flowdesk.workflow.workflow_model import Position
from flowdesk.workflow.workflow_store import InMemoryWorkflowStore, WorkflowStorage


def _doc(name, node_ids):
    return json.dumps({
        "name": name,
        "nodes": [
            {"id": nid, "type": "action", "position": {"x": 0, "y": 0}, "data": {"label": ""}}
            for nid in node_ids
        ],
        "edges": [],
    })


def _build_pipeline(editor):
    editor.add_node("trigger", Position(x=0, y=0))
    editor.add_node("contact", Position(x=100, y=0))
    start, person = editor.graph.nodes
    result = editor.connect(start.id, person.id)
    assert result.success
    return start, person, result.data


# =============================================================================
# Editing
# =============================================================================


class TestEditing:
    """Tests for graph editing through the session."""

    def test_add_node(self, editor):
        result = editor.add_node("offer")
        assert result.success
        assert editor.graph.get_node(result.data.id).data.label == "Offer"

    def test_template_entry_replaces_graph(self, editor, notifier):
        editor.add_node("action")
        result = editor.add_node("template-business")
        assert result.success
        assert len(editor.graph.nodes) == 6
        assert len(editor.graph.edges) == 5
        assert "Template created" in notifier.of("success")

    def test_rejected_connection_is_reported(self, editor, notifier):
        editor.add_node("if-else")
        editor.add_node("contact")
        branch, person = editor.graph.nodes
        result = editor.connect(branch.id, person.id, source_handle="maybe")
        assert not result.success
        assert result.error_kind == ErrorKind.INVALID_PORT
        assert editor.graph.edges == []
        assert notifier.of("error")

    def test_remove_node(self, editor, notifier):
        start, person, edge = _build_pipeline(editor)
        editor.select_edge(edge.id)
        assert editor.remove_node(person.id).success
        assert editor.graph.edges == []
        assert editor.selected_edge_id is None
        assert "Node removed" in notifier.of("success")

    def test_remove_unknown_node(self, editor):
        result = editor.remove_node("ghost")
        assert result.error_kind == ErrorKind.NOT_FOUND

    def test_reverse_edge_follows_selection(self, editor):
        _, _, edge = _build_pipeline(editor)
        editor.select_edge(edge.id)
        result = editor.reverse_edge(edge.id)
        assert result.success
        assert editor.selected_edge_id == result.data.id
        assert editor.graph.get_edge(editor.selected_edge_id) is not None

    def test_remove_edge_clears_selection(self, editor):
        _, _, edge = _build_pipeline(editor)
        editor.select_edge(edge.id)
        assert editor.remove_edge(edge.id).success
        assert editor.selected_edge_id is None

    def test_configure(self, editor, notifier):
        node = editor.add_node("if-else").data
        result = editor.configure(node.id, {"condition.field": "status", "name": "Is active?"})
        assert result.success
        saved = editor.graph.get_node(node.id)
        assert saved.data.label == "Is active?"
        assert saved.data.config["condition"] == {"field": "status", "operator": "equals", "value": ""}
        assert "Configuration saved" in notifier.of("success")

    def test_configure_bad_path(self, editor):
        node = editor.add_node("loop").data
        result = editor.configure(node.id, {"iterations.max": 3})
        assert not result.success
        assert editor.graph.get_node(node.id).data.config is None


# =============================================================================
# Run
# =============================================================================


class TestRun:
    """Tests for the validate-then-run contract."""

    async def test_empty_graph_blocks_run(self, editor, notifier):
        result = await editor.run()
        assert not result.success
        assert result.errors
        assert notifier.of("error")
        assert not editor.is_running

    async def test_errors_block_run(self, editor):
        editor.add_node("trigger")
        node = editor.add_node("loop").data
        editor.configure(node.id, {"iterations": 0})
        result = await editor.run()
        assert not result.success
        assert any("iteration" in e for e in result.errors)

    async def test_run_with_warnings(self, editor, notifier):
        editor.add_node("contact")
        result = await editor.run()
        assert result.success
        assert result.warnings
        assert notifier.of("warning") == result.warnings
        assert "Workflow executed successfully" in notifier.of("success")
        assert not editor.is_running

    async def test_second_run_while_running_is_refused(self, storage, registry, translator, notifier):
        from flowdesk.config import WorkflowBuilderConfig

        editor = WorkflowEditor(storage, registry, translator, notifier,
                                WorkflowBuilderConfig(run_delay_seconds=0.05))
        editor.add_node("trigger")
        first = asyncio.ensure_future(editor.run())
        await asyncio.sleep(0)
        assert editor.is_running
        second = await editor.run()
        assert not second.success
        assert (await first).success


# =============================================================================
# Export / import
# =============================================================================


class TestExportImport:
    """Tests for export and two-phase import."""

    def test_export_json(self, editor):
        _build_pipeline(editor)
        editor.workflow_name = "Pipeline"
        data = json.loads(editor.export_json())
        assert data["name"] == "Pipeline"
        assert data["metadata"]["nodeCount"] == 2

    def test_export_yaml_and_summary(self, editor):
        _build_pipeline(editor)
        assert "nodes:" in editor.export_yaml("x")
        assert editor.export_summary("x")["edgeCount"] == 1

    def test_round_trip_through_editor(self, editor):
        _build_pipeline(editor)
        before = [n.model_dump() for n in editor.graph.nodes]
        text = editor.export_json("Pipeline")
        editor.new()
        assert editor.import_text(text).success
        assert [n.model_dump() for n in editor.graph.nodes] == before
        assert editor.workflow_name == "Pipeline"

    def test_prepare_does_not_touch_graph(self, editor):
        pending = editor.prepare_import(_doc("Other", ["x", "y"]))
        assert pending.is_valid
        assert pending.validation is not None
        assert editor.graph.nodes == []

    def test_rejected_import_leaves_graph_unchanged(self, editor, notifier):
        _build_pipeline(editor)
        before = editor.graph.snapshot()
        bad = json.dumps({"nodes": [{"id": "a", "type": "action", "data": {}}], "edges": []})
        result = editor.import_text(bad)
        assert not result.success
        assert result.error_kind == ErrorKind.INVALID_DOCUMENT
        assert "position" in result.message
        after = editor.graph.snapshot()
        assert [n.id for n in after[0]] == [n.id for n in before[0]]
        assert [e.id for e in after[1]] == [e.id for e in before[1]]
        assert notifier.of("error")

    def test_nodes_not_an_array_leaves_graph_unchanged(self, editor, notifier):
        _build_pipeline(editor)
        before = [n.model_dump() for n in editor.graph.nodes], [e.model_dump() for e in editor.graph.edges]
        result = editor.import_text(json.dumps({"nodes": "not-an-array", "edges": []}))
        assert not result.success
        assert result.error_kind == ErrorKind.INVALID_DOCUMENT
        assert "'nodes'" in result.message
        after = [n.model_dump() for n in editor.graph.nodes], [e.model_dump() for e in editor.graph.edges]
        assert after == before
        assert notifier.of("error")

    def test_import_with_unknown_port_is_rejected(self, editor):
        _build_pipeline(editor)
        before = [e.id for e in editor.graph.edges]
        text = json.dumps({
            "name": "Bad ports",
            "nodes": [
                {"id": "b", "type": "if-else", "position": {"x": 0, "y": 0}, "data": {"label": "B"}},
                {"id": "c", "type": "contact", "position": {"x": 1, "y": 0}, "data": {"label": "C"}},
            ],
            "edges": [{"id": "e1", "source": "b", "target": "c", "sourceHandle": "bogus"}],
        })
        pending = editor.prepare_import(text)
        assert pending.is_valid
        assert pending.validation.has_kind(ErrorKind.INVALID_PORT)
        result = editor.commit_import(pending)
        assert not result.success
        assert result.error_kind == ErrorKind.INVALID_PORT
        assert [e.id for e in editor.graph.edges] == before
        assert editor.graph.get_node("b") is None

    def test_legacy_nested_config_imports_and_validates(self, editor):
        text = json.dumps({
            "name": "Legacy",
            "nodes": [
                {"id": "t", "type": "workflowNode", "position": {"x": 0, "y": 0},
                 "data": {"label": "Start", "type": "trigger"}},
                {"id": "m", "type": "workflowNode", "position": {"x": 200, "y": 0},
                 "data": {"label": "Mail", "type": "email",
                          "config": {"emailData": {"subject": "Hello"}}}},
                {"id": "a", "type": "workflowNode", "position": {"x": 400, "y": 0},
                 "data": {"label": "Call", "type": "api", "config": {"name": "Call CRM"}}},
            ],
            "edges": [
                {"id": "e1", "source": "t", "target": "m"},
                {"id": "e2", "source": "m", "target": "a"},
            ],
        })
        assert editor.import_text(text).success
        assert editor.graph.get_node("m").type == "email"
        result = editor.validate()
        assert result.is_valid, result.errors

    def test_import_normalizes_labels(self, editor):
        assert editor.import_text(_doc("Imported", ["x"])).success
        assert editor.graph.get_node("x").data.label == "Action"

    async def test_import_json_and_yaml_files(self, editor, tmp_path):
        json_path = tmp_path / "flow.json"
        json_path.write_text(_doc("From JSON", ["a"]), encoding="utf-8")
        assert (await editor.import_file(json_path)).success
        assert editor.workflow_name == "From JSON"

        yaml_path = tmp_path / "flow.yml"
        yaml_path.write_text(
            "name: From YAML\nnodes:\n- id: b\n  type: contact\n  position: {x: 1, y: 2}\n"
            "  data: {label: B}\nedges: []\n",
            encoding="utf-8",
        )
        assert (await editor.import_file(yaml_path)).success
        assert [n.id for n in editor.graph.nodes] == ["b"]

    async def test_unsupported_file_type(self, editor, tmp_path):
        path = tmp_path / "flow.txt"
        path.write_text("{}", encoding="utf-8")
        result = await editor.import_file(path)
        assert result.error_kind == ErrorKind.INVALID_DOCUMENT

    async def test_concurrent_imports_apply_in_order(self, editor, tmp_path):
        first = tmp_path / "first.json"
        second = tmp_path / "second.json"
        first.write_text(_doc("First", ["a", "b"]), encoding="utf-8")
        second.write_text(_doc("Second", ["c"]), encoding="utf-8")
        results = await asyncio.gather(editor.import_file(first), editor.import_file(second))
        assert all(r.success for r in results)
        assert editor.workflow_name == "Second"
        assert [n.id for n in editor.graph.nodes] == ["c"]


# =============================================================================
# Storage
# =============================================================================


class TestStorageActions:
    """Tests for save/load/new/duplicate/delete through the session."""

    def test_save_and_load(self, editor):
        _build_pipeline(editor)
        saved = editor.save("Pipeline", "desc").data
        editor.new()
        assert editor.graph.nodes == []
        assert editor.load(saved.id).success
        assert len(editor.graph.nodes) == 2
        assert editor.workflow_name == "Pipeline"
        assert editor.storage.current_id == saved.id

    def test_load_normalizes_labels(self, editor):
        node = editor.add_node("contact").data
        editor.configure(node.id, {"name": "Lead"})
        saved = editor.save("A").data
        assert editor.load(saved.id).success
        assert editor.graph.get_node(node.id).data.label == "Lead"

    def test_save_twice_updates(self, editor):
        first = editor.save("A").data
        editor.add_node("action")
        second = editor.save().data
        assert second.id == first.id
        assert len(editor.list_workflows()) == 1

    def test_duplicate_and_delete(self, editor):
        saved = editor.save("A").data
        copy = editor.duplicate(saved.id).data
        assert copy.name == "A (Copy)"
        assert editor.delete(saved.id).success
        assert editor.storage.current_id is None
        assert [w.id for w in editor.list_workflows()] == [copy.id]

    def test_unknown_ids(self, editor):
        assert editor.load("nope").error_kind == ErrorKind.NOT_FOUND
        assert editor.duplicate("nope").error_kind == ErrorKind.NOT_FOUND
        assert editor.delete("nope").error_kind == ErrorKind.NOT_FOUND

    def test_persistence_failure_becomes_result(self, registry, translator, notifier, builder_config):
        class BrokenStore(InMemoryWorkflowStore):
            def write_all(self, workflows):
                raise PersistenceError("quota exceeded")

        editor = WorkflowEditor(WorkflowStorage(BrokenStore()), registry, translator,
                                notifier, builder_config)
        editor.add_node("action")
        result = editor.save("A")
        assert not result.success
        assert result.error_kind == ErrorKind.PERSISTENCE_FAILURE
        assert editor.list_workflows() == []
        assert len(editor.graph.nodes) == 1
        assert "quota exceeded" in notifier.of("error")


class TestNotifiers:
    """Tests for the bundled notifiers."""

    def test_logging_notifier(self, caplog):
        notifier = LoggingNotifier("flowdesk.test")
        with caplog.at_level("INFO", logger="flowdesk.test"):
            notifier.success("done")
            notifier.error("failed")
        assert [r.levelname for r in caplog.records] == ["INFO", "ERROR"]

    def test_editor_defaults_to_null_notifier(self, storage, builder_config):
        editor = WorkflowEditor(storage, config=builder_config)
        assert editor.remove_node("ghost").error_kind == ErrorKind.NOT_FOUND
