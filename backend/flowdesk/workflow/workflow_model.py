"""
Workflow Data Models — nodes, edges, and saved workflows.

These are the serializable data structures that describe a
user-designed automation graph. They are mutated by ``WorkflowGraph``,
exported by the serializer, and persisted by ``WorkflowStorage``.

Python attributes are snake_case; the interchange and storage format
uses the camelCase aliases (``sourceHandle``, ``createdAt``...). Both
spellings are accepted on input.
"""

from __future__ import annotations

import uuid
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def new_node_id() -> str:
    return f"node-{uuid.uuid4().hex[:8]}"


def new_edge_id() -> str:
    return f"edge-{uuid.uuid4().hex[:8]}"


def new_workflow_id() -> str:
    return f"workflow-{uuid.uuid4().hex[:12]}"


class Position(BaseModel):
    """Canvas coordinate; layout only."""

    x: float = 0
    y: float = 0


class NodeData(BaseModel):
    """Display and configuration payload of a node.

    ``config`` stays ``None`` until the node's configuration is saved.
    ``icon`` is resolved at render time from the node type and is never
    serialized.
    """

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    label: str = ""
    description: Optional[str] = None
    config: Optional[Dict[str, Any]] = None
    icon: Optional[Any] = Field(default=None, exclude=True)


class WorkflowNode(BaseModel):
    """A single node placed on the workflow canvas.

    ``type`` references a registered node type id (``contact``,
    ``if-else``...).
    """

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    id: str = Field(default_factory=new_node_id)
    type: str
    position: Position = Field(default_factory=Position)
    data: NodeData = Field(default_factory=NodeData)

    @property
    def config(self) -> Optional[Dict[str, Any]]:
        return self.data.config

    @property
    def label(self) -> str:
        return self.data.label


class WorkflowEdge(BaseModel):
    """A directed edge between two nodes, optionally bound to ports.

    ``source_handle`` names the output port on the source node; plain
    nodes leave it unset. ``type`` and ``animated`` are cosmetic.
    """

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    id: str = Field(default_factory=new_edge_id)
    source: str
    target: str
    source_handle: Optional[str] = Field(default=None, alias="sourceHandle")
    target_handle: Optional[str] = Field(default=None, alias="targetHandle")
    type: str = "smoothstep"
    animated: bool = False
    label: Optional[str] = None


class SavedWorkflow(BaseModel):
    """A named, timestamped snapshot of a complete graph."""

    model_config = ConfigDict(populate_by_name=True)

    id: str = Field(default_factory=new_workflow_id)
    name: str = "Untitled Workflow"
    description: Optional[str] = ""
    nodes: List[WorkflowNode] = Field(default_factory=list)
    edges: List[WorkflowEdge] = Field(default_factory=list)
    created_at: datetime = Field(default_factory=utc_now, alias="createdAt")
    updated_at: datetime = Field(default_factory=utc_now, alias="updatedAt")

    def touch(self) -> None:
        """Update the ``updated_at`` timestamp, keeping it monotonic."""
        now = utc_now()
        if now <= self.updated_at:
            now = self.updated_at + timedelta(microseconds=1)
        self.updated_at = now

    def get_node(self, node_id: str) -> Optional[WorkflowNode]:
        """Find a node by ID."""
        for n in self.nodes:
            if n.id == node_id:
                return n
        return None

    def to_storage(self) -> Dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True)
