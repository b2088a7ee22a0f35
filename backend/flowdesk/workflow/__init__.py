"""
Workflow Builder — business automation graphs edited through a node/edge canvas.

Provides the data model, node type registry, validation, export/import
and persistence behind the visual workflow builder. Workflows are only
designed and validated here; running one is simulated.

Architecture:
    nodes/              — NodeTypeSpec + all built-in node types
    workflow_model      — Nodes, edges and saved workflows
    workflow_graph      — Invariant-checked graph mutations
    node_config         — Per-node configuration editing
    workflow_validator  — Pre-run checks
    workflow_serializer — JSON/YAML export and import
    workflow_store      — Named workflow persistence
    templates           — Pre-built workflow templates
    workflow_editor     — One builder session wiring it all together
"""

from flowdesk.workflow.errors import (
    DanglingReferenceError,
    ErrorKind,
    GraphElementNotFoundError,
    InvalidDocumentError,
    InvalidPortError,
    PersistenceError,
    ValidationFailedError,
    WorkflowError,
)
from flowdesk.workflow.nodes import (
    NodeRegistry,
    NodeTypeSpec,
    RendererKind,
    get_node_registry,
)
from flowdesk.workflow.workflow_model import (
    NodeData,
    Position,
    SavedWorkflow,
    WorkflowEdge,
    WorkflowNode,
)
from flowdesk.workflow.workflow_graph import WorkflowGraph
from flowdesk.workflow.node_config import NodeConfigEditor, apply_config_updates, default_config
from flowdesk.workflow.workflow_validator import ValidationResult, WorkflowValidator
from flowdesk.workflow.workflow_serializer import (
    ImportResult,
    WorkflowDocument,
    from_document,
    to_document,
)
from flowdesk.workflow.workflow_store import (
    InMemoryWorkflowStore,
    JsonFileWorkflowStore,
    WorkflowStorage,
    get_workflow_storage,
)
from flowdesk.workflow.templates import create_business_template, install_templates
from flowdesk.workflow.workflow_editor import WorkflowEditor

__all__ = [
    "DanglingReferenceError",
    "ErrorKind",
    "GraphElementNotFoundError",
    "InvalidDocumentError",
    "InvalidPortError",
    "PersistenceError",
    "ValidationFailedError",
    "WorkflowError",
    "NodeRegistry",
    "NodeTypeSpec",
    "RendererKind",
    "get_node_registry",
    "NodeData",
    "Position",
    "SavedWorkflow",
    "WorkflowEdge",
    "WorkflowNode",
    "WorkflowGraph",
    "NodeConfigEditor",
    "apply_config_updates",
    "default_config",
    "ValidationResult",
    "WorkflowValidator",
    "ImportResult",
    "WorkflowDocument",
    "from_document",
    "to_document",
    "InMemoryWorkflowStore",
    "JsonFileWorkflowStore",
    "WorkflowStorage",
    "get_workflow_storage",
    "create_business_template",
    "install_templates",
    "WorkflowEditor",
]
