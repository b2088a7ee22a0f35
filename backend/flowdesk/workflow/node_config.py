"""
Node Configuration — per-node config editing on top of ``WorkflowGraph``.

``NodeConfigEditor`` is the logic behind a node's configuration dialog:
it reads the saved config (or the type's defaults), stages dot-path
edits on a private draft, and on ``save`` writes them back through
``WorkflowGraph.update_node_config`` so every write keeps the graph's
copy-on-write discipline.
"""

from __future__ import annotations

import copy
from logging import getLogger
from typing import Any, Dict, List, Mapping, Optional

from flowdesk.workflow.config_paths import apply_updates, get_path, set_path
from flowdesk.workflow.errors import GraphElementNotFoundError
from flowdesk.workflow.localization import Translator
from flowdesk.workflow.nodes import NodeRegistry, OutputPort, get_node_registry
from flowdesk.workflow.workflow_graph import WorkflowGraph
from flowdesk.workflow.workflow_model import WorkflowNode

logger = getLogger(__name__)


def default_config(node_type: str, registry: Optional[NodeRegistry] = None) -> Dict[str, Any]:
    """Fresh default config for ``node_type``; ``{}`` for unknown types."""
    reg = registry or get_node_registry()
    return reg.resolve(node_type).default_config()


def resolve_label(
    node: WorkflowNode,
    registry: Optional[NodeRegistry] = None,
    translator: Optional[Translator] = None,
) -> str:
    """Display label: ``config.name`` > ``data.label`` > registry default."""
    name = (node.data.config or {}).get("name")
    if isinstance(name, str) and name.strip():
        return name
    if node.data.label:
        return node.data.label
    reg = registry or get_node_registry()
    return reg.describe(node.type, translator).label


def output_ports(node: WorkflowNode, registry: Optional[NodeRegistry] = None) -> List[OutputPort]:
    """Ports currently addressable on ``node`` (depends on its config)."""
    reg = registry or get_node_registry()
    return reg.resolve(node.type).get_output_ports(node.data.config)


class NodeConfigEditor:
    """Stage and save configuration edits for one node.

    Usage::

        editor = NodeConfigEditor(graph, "node-1")
        editor.stage("condition.field", "status")
        editor.stage("condition.operator", "not_equals")
        node = editor.save()
    """

    def __init__(self, graph: WorkflowGraph, node_id: str) -> None:
        self._graph = graph
        self._node_id = node_id
        self._updates: Dict[str, Any] = {}
        if graph.get_node(node_id) is None:
            raise GraphElementNotFoundError(f"Unknown node: {node_id}", node_id=node_id)

    @property
    def node(self) -> WorkflowNode:
        node = self._graph.get_node(self._node_id)
        if node is None:
            raise GraphElementNotFoundError(
                f"Node {self._node_id} was removed while being configured",
                node_id=self._node_id,
            )
        return node

    @property
    def is_configured(self) -> bool:
        return self.node.data.config is not None

    @property
    def pending(self) -> Dict[str, Any]:
        return dict(self._updates)

    def current(self) -> Dict[str, Any]:
        """Saved config, or the type's defaults when none was saved yet."""
        config = self.node.data.config
        if config is None:
            return default_config(self.node.type, self._graph.registry)
        return copy.deepcopy(config)

    def draft(self) -> Dict[str, Any]:
        """``current()`` with the staged edits applied."""
        return apply_updates(self.current(), self._updates)

    def get(self, path: str, default: Any = None) -> Any:
        return get_path(self.draft(), path, default)

    def stage(self, path: str, value: Any) -> "NodeConfigEditor":
        # Fail fast on a path that cannot be written.
        set_path(self.draft(), path, value)
        # Re-staging a path moves it last so writes replay in staging order.
        self._updates.pop(path, None)
        self._updates[path] = value
        return self

    def stage_many(self, updates: Mapping[str, Any]) -> "NodeConfigEditor":
        for path, value in updates.items():
            self.stage(path, value)
        return self

    def discard(self) -> None:
        self._updates.clear()

    def save(self) -> WorkflowNode:
        """Write the draft back into the graph and return the new node.

        A node without a config is seeded with its type's defaults first,
        so a partial edit never produces a half-populated config.
        """
        node = self.node
        if node.data.config is None:
            node = self._graph.set_node_config(
                node.id, default_config(node.type, self._graph.registry),
            )
        for path, value in self._updates.items():
            node = self._graph.update_node_config(node.id, path, value)
        self._updates.clear()
        logger.debug(f"Config saved for node {node.id}: label={node.data.label!r}")
        return node


def apply_config_updates(
    graph: WorkflowGraph,
    node_id: str,
    updates: Mapping[str, Any],
) -> WorkflowNode:
    """One-shot ``stage_many`` + ``save``."""
    return NodeConfigEditor(graph, node_id).stage_many(updates).save()
