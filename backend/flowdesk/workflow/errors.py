"""
Workflow Errors — the builder's error taxonomy.

Rejected graph mutations raise one of these. Validation and import
report the same kinds through structured results instead of raising,
so only the editor boundary ever needs to catch them.
"""

from __future__ import annotations

from enum import Enum
from typing import Optional


class ErrorKind(str, Enum):
    """Machine-readable error classes shared by exceptions and results."""
    EMPTY_GRAPH = "empty_graph"
    DANGLING_REFERENCE = "dangling_reference"
    INVALID_PORT = "invalid_port"
    NOT_FOUND = "not_found"
    INVALID_DOCUMENT = "invalid_document"
    VALIDATION_FAILED = "validation_failed"
    VALIDATION_WARNING = "validation_warning"
    ORPHAN_NODE = "orphan_node"
    PERSISTENCE_FAILURE = "persistence_failure"


class WorkflowError(Exception):
    """Base class for all workflow builder errors."""

    kind: ErrorKind = ErrorKind.VALIDATION_FAILED

    def __init__(
        self,
        message: str,
        *,
        node_id: Optional[str] = None,
        edge_id: Optional[str] = None,
        field: Optional[str] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.node_id = node_id
        self.edge_id = edge_id
        self.field = field

    def to_dict(self) -> dict:
        return {
            "kind": self.kind.value,
            "message": self.message,
            "node_id": self.node_id,
            "edge_id": self.edge_id,
            "field": self.field,
        }


class DanglingReferenceError(WorkflowError):
    """An edge names a node id that is not part of the graph."""
    kind = ErrorKind.DANGLING_REFERENCE


class InvalidPortError(WorkflowError):
    """An edge names a port the node does not expose."""
    kind = ErrorKind.INVALID_PORT


class GraphElementNotFoundError(WorkflowError):
    """A mutation targets a node or edge id that does not exist."""
    kind = ErrorKind.NOT_FOUND


class InvalidDocumentError(WorkflowError):
    """An interchange document failed shape or field checks."""
    kind = ErrorKind.INVALID_DOCUMENT


class ValidationFailedError(WorkflowError):
    """The graph failed a fatal pre-run check."""
    kind = ErrorKind.VALIDATION_FAILED


class PersistenceError(WorkflowError):
    """The durable workflow store could not be read or written."""
    kind = ErrorKind.PERSISTENCE_FAILURE
