"""
Workflow Graph — the editable node/edge graph.

All editor mutations go through ``WorkflowGraph``. It enforces the
structural invariants at the mutation boundary: edges only connect
existing nodes through ports those nodes expose, and deleting a node
removes its edges. Node updates never modify a node in place; a new
``WorkflowNode`` (with a new ``NodeData``) replaces the old one so
observers holding the previous object can diff against it.
"""

from __future__ import annotations

import itertools
import random
from logging import getLogger
from typing import Any, Dict, Iterable, List, Optional, Tuple

from flowdesk.workflow.config_paths import set_path
from flowdesk.workflow.errors import (
    DanglingReferenceError,
    GraphElementNotFoundError,
    InvalidPortError,
)
from flowdesk.workflow.localization import Translator
from flowdesk.workflow.nodes import NodeRegistry, get_node_registry
from flowdesk.workflow.workflow_model import (
    NodeData,
    Position,
    WorkflowEdge,
    WorkflowNode,
    new_edge_id,
    new_node_id,
)

logger = getLogger(__name__)

EDGE_TYPES = ("smoothstep", "straight", "step", "bezier")

_reverse_counter = itertools.count(1)


def random_position() -> Position:
    """Default drop position for a new node: somewhere in the visible canvas."""
    return Position(
        x=random.random() * 500 + 200,
        y=random.random() * 400 + 150,
    )


class WorkflowGraph:
    """Ordered node and edge lists with invariant-checked mutations."""

    def __init__(
        self,
        nodes: Optional[Iterable[WorkflowNode]] = None,
        edges: Optional[Iterable[WorkflowEdge]] = None,
        registry: Optional[NodeRegistry] = None,
        translator: Optional[Translator] = None,
    ) -> None:
        self._registry = registry or get_node_registry()
        self._translator = translator
        self._nodes: List[WorkflowNode] = list(nodes or [])
        self._edges: List[WorkflowEdge] = list(edges or [])

    # ========================================================================
    # Read access
    # ========================================================================

    @property
    def registry(self) -> NodeRegistry:
        return self._registry

    @property
    def nodes(self) -> List[WorkflowNode]:
        return list(self._nodes)

    @property
    def edges(self) -> List[WorkflowEdge]:
        return list(self._edges)

    def __len__(self) -> int:
        return len(self._nodes)

    def get_node(self, node_id: str) -> Optional[WorkflowNode]:
        for n in self._nodes:
            if n.id == node_id:
                return n
        return None

    def get_edge(self, edge_id: str) -> Optional[WorkflowEdge]:
        for e in self._edges:
            if e.id == edge_id:
                return e
        return None

    def has_node(self, node_id: str) -> bool:
        return self.get_node(node_id) is not None

    def edges_from(self, node_id: str) -> List[WorkflowEdge]:
        """All edges originating from a node."""
        return [e for e in self._edges if e.source == node_id]

    def edges_to(self, node_id: str) -> List[WorkflowEdge]:
        """All edges pointing to a node."""
        return [e for e in self._edges if e.target == node_id]

    def snapshot(self) -> Tuple[List[WorkflowNode], List[WorkflowEdge]]:
        """Deep copies of the current nodes and edges."""
        return (
            [n.model_copy(deep=True) for n in self._nodes],
            [e.model_copy(deep=True) for e in self._edges],
        )

    # ========================================================================
    # Whole-graph operations
    # ========================================================================

    def replace(
        self,
        nodes: Iterable[WorkflowNode],
        edges: Iterable[WorkflowEdge],
    ) -> None:
        """Swap in a complete graph (template, load, import).

        Every new edge goes through the same checks as ``add_edge``
        (endpoints and ports) before anything is replaced, so a rejected
        graph leaves the current one untouched.

        Raises:
            DanglingReferenceError: an edge names a node not in ``nodes``.
            InvalidPortError: an edge uses a port its node does not expose.
        """
        new_nodes = list(nodes)
        new_edges = list(edges)
        staged = WorkflowGraph(new_nodes, registry=self._registry, translator=self._translator)
        for edge in new_edges:
            staged.check_edge(edge)
        self._nodes = new_nodes
        self._edges = new_edges

    def clear(self) -> None:
        self._nodes = []
        self._edges = []

    # ========================================================================
    # Nodes
    # ========================================================================

    def add_node(
        self,
        node_type: str,
        position: Optional[Position] = None,
        node_id: Optional[str] = None,
    ) -> WorkflowNode:
        """Create a node of ``node_type`` with registry label and no config."""
        if node_id is not None and self.has_node(node_id):
            raise ValueError(f"Node id already in use: {node_id}")
        info = self._registry.describe(node_type, self._translator)
        node = WorkflowNode(
            id=node_id or new_node_id(),
            type=node_type,
            position=position or random_position(),
            data=NodeData(label=info.label, description=info.description),
        )
        self._nodes.append(node)
        logger.debug(f"Node added: {node.id} ({node_type})")
        return node

    def remove_node(self, node_id: str) -> WorkflowNode:
        """Delete a node and every edge touching it."""
        node = self._require_node(node_id)
        self._nodes = [n for n in self._nodes if n.id != node_id]
        before = len(self._edges)
        self._edges = [
            e for e in self._edges if e.source != node_id and e.target != node_id
        ]
        logger.debug(
            f"Node removed: {node_id} (+{before - len(self._edges)} incident edges)"
        )
        return node

    def move_node(self, node_id: str, position: Position) -> WorkflowNode:
        node = self._require_node(node_id)
        return self._replace_node(node.model_copy(update={"position": position}))

    def update_node_config(self, node_id: str, path: str, value: Any) -> WorkflowNode:
        """Write ``value`` at dot-path ``path`` inside the node's config.

        Intermediate objects are created as needed. The previous config,
        data and node objects are left untouched.
        """
        node = self._require_node(node_id)
        new_config = set_path(node.data.config or {}, path, value)
        return self._replace_node(self._with_config(node, new_config))

    def set_node_config(self, node_id: str, config: Dict[str, Any]) -> WorkflowNode:
        """Replace the node's whole config (the "save configuration" path)."""
        node = self._require_node(node_id)
        return self._replace_node(self._with_config(node, dict(config)))

    def _with_config(self, node: WorkflowNode, config: Dict[str, Any]) -> WorkflowNode:
        update: Dict[str, Any] = {"config": config}
        name = config.get("name")
        if isinstance(name, str) and name.strip():
            update["label"] = name
        data = node.data.model_copy(update=update)
        return node.model_copy(update={"data": data})

    # ========================================================================
    # Edges
    # ========================================================================

    def add_edge(
        self,
        source: str,
        target: str,
        source_handle: Optional[str] = None,
        target_handle: Optional[str] = None,
        edge_type: str = "smoothstep",
        animated: bool = True,
        edge_id: Optional[str] = None,
        label: Optional[str] = None,
    ) -> WorkflowEdge:
        """Connect two existing nodes.

        Raises:
            DanglingReferenceError: ``source`` or ``target`` is not a node.
            InvalidPortError: a handle is not a port of its node.
        """
        edge = WorkflowEdge(
            id=edge_id or new_edge_id(),
            source=source,
            target=target,
            source_handle=source_handle,
            target_handle=target_handle,
            type=edge_type,
            animated=animated,
            label=label,
        )
        self.check_edge(edge)
        if self.get_edge(edge.id) is not None:
            raise ValueError(f"Edge id already in use: {edge.id}")
        self._edges.append(edge)
        logger.debug(f"Edge added: {edge.id} {source}[{source_handle}] → {target}")
        return edge

    def check_edge(self, edge: WorkflowEdge) -> None:
        """Raise if ``edge`` would break a graph invariant."""
        source = self.get_node(edge.source)
        if source is None:
            raise DanglingReferenceError(
                f"Edge {edge.id} references unknown source node: {edge.source}",
                edge_id=edge.id,
                node_id=edge.source,
            )
        target = self.get_node(edge.target)
        if target is None:
            raise DanglingReferenceError(
                f"Edge {edge.id} references unknown target node: {edge.target}",
                edge_id=edge.id,
                node_id=edge.target,
            )

        source_spec = self._registry.resolve(source.type)
        if not source_spec.accepts_source_port(edge.source_handle, source.data.config):
            valid = sorted(source_spec.port_ids(source.data.config))
            raise InvalidPortError(
                f"Node {source.id} ({source.type}) has no output port "
                f"'{edge.source_handle}'; valid ports: {', '.join(valid)}",
                edge_id=edge.id,
                node_id=source.id,
                field="sourceHandle",
            )
        target_spec = self._registry.resolve(target.type)
        if not target_spec.accepts_target_port(edge.target_handle):
            raise InvalidPortError(
                f"Node {target.id} ({target.type}) has no input port '{edge.target_handle}'",
                edge_id=edge.id,
                node_id=target.id,
                field="targetHandle",
            )

    def remove_edge(self, edge_id: str) -> WorkflowEdge:
        edge = self._require_edge(edge_id)
        self._edges = [e for e in self._edges if e.id != edge_id]
        return edge

    def reverse_edge(self, edge_id: str) -> WorkflowEdge:
        """Swap an edge's endpoints under a newly minted id.

        Port handles are dropped because they belong to the original
        direction. References to the old id become stale; callers must
        re-resolve selection with the returned edge's id.
        """
        edge = self._require_edge(edge_id)
        reversed_edge = edge.model_copy(update={
            "id": f"{edge.id}-rev-{next(_reverse_counter)}",
            "source": edge.target,
            "target": edge.source,
            "source_handle": None,
            "target_handle": None,
        })
        self.check_edge(reversed_edge)
        self._edges = [reversed_edge if e.id == edge_id else e for e in self._edges]
        logger.debug(f"Edge reversed: {edge_id} → {reversed_edge.id}")
        return reversed_edge

    def set_edge_type(self, edge_id: str, edge_type: str) -> WorkflowEdge:
        if edge_type not in EDGE_TYPES:
            raise ValueError(f"Unknown edge type '{edge_type}'")
        edge = self._require_edge(edge_id)
        return self._replace_edge(edge.model_copy(update={"type": edge_type}))

    def toggle_edge_animated(self, edge_id: str) -> WorkflowEdge:
        edge = self._require_edge(edge_id)
        return self._replace_edge(edge.model_copy(update={"animated": not edge.animated}))

    # ========================================================================
    # Internals
    # ========================================================================

    def _require_node(self, node_id: str) -> WorkflowNode:
        node = self.get_node(node_id)
        if node is None:
            raise GraphElementNotFoundError(f"Unknown node: {node_id}", node_id=node_id)
        return node

    def _require_edge(self, edge_id: str) -> WorkflowEdge:
        edge = self.get_edge(edge_id)
        if edge is None:
            raise GraphElementNotFoundError(f"Unknown edge: {edge_id}", edge_id=edge_id)
        return edge

    def _replace_node(self, node: WorkflowNode) -> WorkflowNode:
        self._nodes = [node if n.id == node.id else n for n in self._nodes]
        return node

    def _replace_edge(self, edge: WorkflowEdge) -> WorkflowEdge:
        self._edges = [edge if e.id == edge.id else e for e in self._edges]
        return edge
