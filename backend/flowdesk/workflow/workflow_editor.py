"""
Workflow Editor — one builder session without any UI.

``WorkflowEditor`` owns the current ``WorkflowGraph`` and wires it to
validation, export/import, templates and storage. Each user action is
one method; failures of the underlying components (``WorkflowError``)
are turned into structured results and forwarded to an optional
``Notifier`` (the toast sink of the UI).

Async surface:
    - ``run()``: validate, then simulate execution for the configured delay.
    - ``import_file(path)``: read → validate → apply, serialized by a lock
      so two imports never interleave.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from logging import getLogger
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Protocol, Union

from flowdesk.workflow.errors import ErrorKind, WorkflowError
from flowdesk.workflow.localization import Translator, get_translator
from flowdesk.workflow.node_config import apply_config_updates, resolve_label
from flowdesk.workflow.nodes import NodeRegistry, get_node_registry
from flowdesk.workflow.templates import ALL_TEMPLATES, get_template
from flowdesk.workflow.workflow_graph import WorkflowGraph
from flowdesk.workflow.workflow_model import Position, SavedWorkflow, WorkflowNode
from flowdesk.workflow.workflow_serializer import (
    ImportResult,
    WorkflowDocument,
    dumps_json,
    dumps_yaml,
    format_for_filename,
    from_document,
    normalize_nodes,
    read_document_file,
    to_document,
    to_template_summary,
)
from flowdesk.workflow.workflow_store import WorkflowStorage, get_workflow_storage
from flowdesk.workflow.workflow_validator import ValidationResult, WorkflowValidator

logger = getLogger(__name__)


# ============================================================================
# Notifier
# ============================================================================


class Notifier(Protocol):
    def success(self, message: str) -> None: ...
    def info(self, message: str) -> None: ...
    def warning(self, message: str) -> None: ...
    def error(self, message: str) -> None: ...


class NullNotifier:
    """Discards every notification."""

    def success(self, message: str) -> None:
        pass

    def info(self, message: str) -> None:
        pass

    def warning(self, message: str) -> None:
        pass

    def error(self, message: str) -> None:
        pass


class LoggingNotifier:
    """Forwards notifications to a logger."""

    def __init__(self, name: str = "flowdesk.notifications") -> None:
        self._logger = getLogger(name)

    def success(self, message: str) -> None:
        self._logger.info(message)

    def info(self, message: str) -> None:
        self._logger.info(message)

    def warning(self, message: str) -> None:
        self._logger.warning(message)

    def error(self, message: str) -> None:
        self._logger.error(message)


# ============================================================================
# Results
# ============================================================================


@dataclass
class OperationResult:
    success: bool
    message: str = ""
    error_kind: Optional[ErrorKind] = None
    data: Any = None

    @classmethod
    def ok(cls, message: str = "", data: Any = None) -> "OperationResult":
        return cls(success=True, message=message, data=data)

    @classmethod
    def from_error(cls, error: WorkflowError) -> "OperationResult":
        return cls(success=False, message=str(error), error_kind=error.kind)


@dataclass
class RunResult:
    success: bool
    errors: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)
    message: str = ""


@dataclass
class PendingImport:
    """Parsed and checked, not yet applied to the graph."""
    result: ImportResult
    validation: Optional[ValidationResult] = None

    @property
    def is_valid(self) -> bool:
        return self.result.is_valid

    @property
    def document(self) -> Optional[WorkflowDocument]:
        return self.result.data

    @property
    def error(self) -> Optional[str]:
        return self.result.error


# ============================================================================
# Editor
# ============================================================================


class WorkflowEditor:
    """Builder session: graph state plus the actions of the builder screen."""

    def __init__(
        self,
        storage: Optional[WorkflowStorage] = None,
        registry: Optional[NodeRegistry] = None,
        translator: Optional[Translator] = None,
        notifier: Optional[Notifier] = None,
        config: Any = None,
    ) -> None:
        if config is None:
            from flowdesk.config import get_config
            config = get_config("workflow_builder")
        self._config = config
        self._registry = registry or get_node_registry()
        self._translator = translator or get_translator()
        self._notifier: Notifier = notifier or NullNotifier()
        self._storage = storage or get_workflow_storage()
        self._validator = WorkflowValidator(self._registry, self._translator)
        self.graph = WorkflowGraph(registry=self._registry, translator=self._translator)

        self.workflow_name = ""
        self.workflow_description: Optional[str] = ""
        self.selected_edge_id: Optional[str] = None
        self.is_running = False
        self._import_lock = asyncio.Lock()

    @property
    def storage(self) -> WorkflowStorage:
        return self._storage

    def _t(self, key: str, default: str, **params: Any) -> str:
        return self._translator.t(key, default, **params)

    def _fail(self, error: WorkflowError) -> OperationResult:
        logger.warning(f"Editor operation rejected: {error}")
        self._notifier.error(str(error))
        return OperationResult.from_error(error)

    # ── Graph editing ──

    def add_node(self, node_type: str, position: Optional[Position] = None) -> OperationResult:
        """Add a node; the ``template-business`` palette entry loads the template."""
        if node_type in ALL_TEMPLATES:
            return self.load_template(node_type)
        node = self.graph.add_node(node_type, position)
        return OperationResult.ok(data=node)

    def load_template(self, name: str) -> OperationResult:
        template = get_template(name, self._registry, self._translator)
        if template is None:
            return OperationResult(success=False, message=f"Unknown template: {name}",
                                   error_kind=ErrorKind.NOT_FOUND)
        self.graph.replace(template.nodes, template.edges)
        self.selected_edge_id = None
        message = self._t("editor.template_created", "Template created")
        self._notifier.success(message)
        return OperationResult.ok(message, data=template)

    def remove_node(self, node_id: str) -> OperationResult:
        try:
            node = self.graph.remove_node(node_id)
        except WorkflowError as e:
            return self._fail(e)
        if self.selected_edge_id and self.graph.get_edge(self.selected_edge_id) is None:
            self.selected_edge_id = None
        message = self._t("editor.node_removed", "Node removed")
        self._notifier.success(message)
        return OperationResult.ok(message, data=node)

    def connect(
        self,
        source: str,
        target: str,
        source_handle: Optional[str] = None,
        target_handle: Optional[str] = None,
    ) -> OperationResult:
        try:
            edge = self.graph.add_edge(source, target, source_handle, target_handle)
        except WorkflowError as e:
            return self._fail(e)
        return OperationResult.ok(data=edge)

    def select_edge(self, edge_id: Optional[str]) -> None:
        self.selected_edge_id = edge_id

    def remove_edge(self, edge_id: str) -> OperationResult:
        try:
            edge = self.graph.remove_edge(edge_id)
        except WorkflowError as e:
            return self._fail(e)
        if self.selected_edge_id == edge_id:
            self.selected_edge_id = None
        return OperationResult.ok(data=edge)

    def reverse_edge(self, edge_id: str) -> OperationResult:
        """Reverse an edge; the selection follows it to its new id."""
        try:
            edge = self.graph.reverse_edge(edge_id)
        except WorkflowError as e:
            return self._fail(e)
        if self.selected_edge_id == edge_id:
            self.selected_edge_id = edge.id
        return OperationResult.ok(data=edge)

    def configure(self, node_id: str, updates: Mapping[str, Any]) -> OperationResult:
        """Apply ``{dot.path: value}`` updates to a node's config and save it."""
        try:
            node = apply_config_updates(self.graph, node_id, updates)
        except WorkflowError as e:
            return self._fail(e)
        except (TypeError, IndexError, ValueError) as e:
            logger.warning(f"Invalid config path for node {node_id}: {e}")
            self._notifier.error(str(e))
            return OperationResult(success=False, message=str(e),
                                   error_kind=ErrorKind.VALIDATION_FAILED)
        message = self._t("editor.config_saved", "Configuration saved")
        self._notifier.success(message)
        return OperationResult.ok(message, data=node)

    # ── Validation & run ──

    def validate(self) -> ValidationResult:
        return self._validator.validate(self.graph.nodes, self.graph.edges)

    async def run(self) -> RunResult:
        """Validate, then simulate execution.

        Errors block the run and are reported together; warnings are
        reported one by one and do not block.
        """
        if self.is_running:
            message = self._t("editor.run_busy", "The workflow is already running")
            return RunResult(success=False, message=message)

        validation = self.validate()
        if not validation.is_valid:
            message = self._t(
                "editor.run_blocked", "Validation errors: {errors}",
                errors=", ".join(validation.errors),
            )
            self._notifier.error(message)
            return RunResult(success=False, errors=validation.errors,
                             warnings=validation.warnings, message=message)

        for warning in validation.warnings:
            self._notifier.warning(warning)

        self.is_running = True
        self._notifier.success(self._t("editor.run_started", "Workflow execution in progress"))
        logger.info(f"Simulated run started ({len(self.graph)} nodes)")
        try:
            await asyncio.sleep(self._config.run_delay_seconds)
        finally:
            self.is_running = False

        message = self._t("editor.run_completed", "Workflow executed successfully")
        self._notifier.success(message)
        return RunResult(success=True, warnings=validation.warnings, message=message)

    # ── Export ──

    def to_document(self, name: Optional[str] = None) -> WorkflowDocument:
        return to_document(
            self.graph.nodes,
            self.graph.edges,
            name or self.workflow_name or None,
            version=self._config.document_version,
            exported_by=self._config.exported_by,
        )

    def export_json(self, name: Optional[str] = None) -> str:
        return dumps_json(self.to_document(name))

    def export_yaml(self, name: Optional[str] = None) -> str:
        return dumps_yaml(self.to_document(name))

    def export_summary(self, name: Optional[str] = None) -> Dict[str, Any]:
        return to_template_summary(self.to_document(name))

    # ── Import ──

    def prepare_import(self, text: str, is_structured_text: bool = False) -> PendingImport:
        """Parse and check a document without touching the graph."""
        result = from_document(text, is_structured_text, self._registry)
        if not result.is_valid:
            return PendingImport(result)
        doc = result.data
        return PendingImport(result, self._validator.validate(doc.nodes, doc.edges))

    def commit_import(self, pending: PendingImport) -> OperationResult:
        """Replace the graph with a prepared document, normalizing labels."""
        if not pending.is_valid:
            message = self._t("editor.import_failed", "Import failed: {error}", error=pending.error)
            self._notifier.error(message)
            return OperationResult(success=False, message=message,
                                   error_kind=ErrorKind.INVALID_DOCUMENT)

        doc = pending.document
        nodes = normalize_nodes(doc.nodes, self._registry, self._translator)
        try:
            self.graph.replace(nodes, doc.edges)
        except WorkflowError as e:
            return self._fail(e)
        self.selected_edge_id = None
        self.workflow_name = doc.name

        message = self._t("editor.imported", "Imported workflow loaded: {name}", name=doc.name)
        self._notifier.success(message)
        logger.info(f"Workflow imported: {doc.name} ({len(nodes)} nodes, {len(doc.edges)} edges)")
        return OperationResult.ok(message, data=doc)

    def import_text(self, text: str, is_structured_text: bool = False) -> OperationResult:
        return self.commit_import(self.prepare_import(text, is_structured_text))

    async def import_file(self, path: Union[str, Path]) -> OperationResult:
        """Import a ``.json``/``.yaml``/``.yml`` file.

        Imports are serialized: a second call waits until the first one
        has applied its graph.
        """
        async with self._import_lock:
            try:
                fmt = format_for_filename(path)
                text = await read_document_file(path)
            except WorkflowError as e:
                return self._fail(e)
            return self.import_text(text, is_structured_text=(fmt == "yaml"))

    # ── Storage ──

    def save(self, name: Optional[str] = None, description: Optional[str] = None) -> OperationResult:
        name = name or self.workflow_name or "Untitled Workflow"
        if description is None:
            description = self.workflow_description
        try:
            wf = self._storage.save(name, description, self.graph.nodes, self.graph.edges)
        except WorkflowError as e:
            return self._fail(e)
        self.workflow_name = wf.name
        self.workflow_description = wf.description
        message = self._t("editor.workflow_saved", "Workflow saved: {name}", name=wf.name)
        self._notifier.success(message)
        return OperationResult.ok(message, data=wf)

    def load(self, workflow_id: str) -> OperationResult:
        wf = self._storage.load(workflow_id)
        if wf is None:
            message = self._t("editor.workflow_not_found", "Workflow not found: {id}", id=workflow_id)
            self._notifier.error(message)
            return OperationResult(success=False, message=message, error_kind=ErrorKind.NOT_FOUND)

        nodes = [self._normalize_loaded(n) for n in wf.nodes]
        try:
            self.graph.replace(nodes, wf.edges)
        except WorkflowError as e:
            return self._fail(e)
        self.selected_edge_id = None
        self.workflow_name = wf.name
        self.workflow_description = wf.description
        message = self._t("editor.workflow_loaded", "Workflow loaded: {name}", name=wf.name)
        self._notifier.success(message)
        return OperationResult.ok(message, data=wf)

    def _normalize_loaded(self, node: WorkflowNode) -> WorkflowNode:
        update: Dict[str, Any] = {"label": resolve_label(node, self._registry, self._translator)}
        if not node.data.description:
            update["description"] = self._registry.describe(node.type, self._translator).description
        return node.model_copy(update={"data": node.data.model_copy(update=update)})

    def new(self) -> OperationResult:
        """Empty the canvas and detach from the current saved workflow."""
        self.graph.clear()
        self._storage.new_workflow()
        self.selected_edge_id = None
        self.workflow_name = ""
        self.workflow_description = ""
        message = self._t("editor.new_workflow", "New workflow created")
        self._notifier.success(message)
        return OperationResult.ok(message)

    def duplicate(self, workflow_id: str) -> OperationResult:
        try:
            clone = self._storage.duplicate(workflow_id)
        except WorkflowError as e:
            return self._fail(e)
        if clone is None:
            message = self._t("editor.workflow_not_found", "Workflow not found: {id}", id=workflow_id)
            self._notifier.error(message)
            return OperationResult(success=False, message=message, error_kind=ErrorKind.NOT_FOUND)
        message = self._t("editor.workflow_duplicated", "Workflow duplicated: {name}", name=clone.name)
        self._notifier.success(message)
        return OperationResult.ok(message, data=clone)

    def delete(self, workflow_id: str) -> OperationResult:
        try:
            deleted = self._storage.delete(workflow_id)
        except WorkflowError as e:
            return self._fail(e)
        if not deleted:
            message = self._t("editor.workflow_not_found", "Workflow not found: {id}", id=workflow_id)
            self._notifier.error(message)
            return OperationResult(success=False, message=message, error_kind=ErrorKind.NOT_FOUND)
        message = self._t("editor.workflow_deleted", "Workflow deleted")
        self._notifier.success(message)
        return OperationResult.ok(message)

    def list_workflows(self) -> List[SavedWorkflow]:
        return self._storage.list()
