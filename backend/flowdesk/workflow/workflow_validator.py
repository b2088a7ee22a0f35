"""
Workflow Validator — pre-run checks over a node/edge graph.

Runs on demand before a workflow is executed and collects every issue
instead of stopping at the first. Errors block the run; warnings are
surfaced to the user but do not.

Checks, in order:
    1. The graph has at least one node.
    2. Every edge's source and target exist.
    3. Every edge uses ports its nodes expose.
    4. Saved node configs pass their node type's rules; structured-control
       nodes without a config are flagged (their defaults apply).
    5. Isolated nodes in multi-node graphs.
    6. Trigger presence and reachability from triggers.
    7. Branch fan-out of IF/ELSE, SWITCH and PARALLEL nodes.
    8. Cycles that do not pass through a LOOP node.
"""

from __future__ import annotations

from collections import deque
from dataclasses import dataclass, field
from enum import Enum
from logging import getLogger
from typing import Any, Dict, Iterable, List, Optional, Sequence, Set

from flowdesk.workflow.errors import ErrorKind, ValidationFailedError
from flowdesk.workflow.localization import Translator, get_translator
from flowdesk.workflow.nodes import TRIGGER_TYPES, NodeRegistry, get_node_registry
from flowdesk.workflow.workflow_model import WorkflowEdge, WorkflowNode

logger = getLogger(__name__)


class Severity(str, Enum):
    ERROR = "error"
    WARNING = "warning"


@dataclass
class ValidationIssue:
    """One finding, tied to the node or edge it concerns when known."""
    kind: ErrorKind
    severity: Severity
    message: str
    node_id: Optional[str] = None
    edge_id: Optional[str] = None
    path: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "kind": self.kind.value,
            "severity": self.severity.value,
            "message": self.message,
            "node_id": self.node_id,
            "edge_id": self.edge_id,
            "path": self.path,
        }


@dataclass
class ValidationResult:
    issues: List[ValidationIssue] = field(default_factory=list)

    @property
    def errors(self) -> List[str]:
        return [i.message for i in self.issues if i.severity == Severity.ERROR]

    @property
    def warnings(self) -> List[str]:
        return [i.message for i in self.issues if i.severity == Severity.WARNING]

    @property
    def is_valid(self) -> bool:
        return not any(i.severity == Severity.ERROR for i in self.issues)

    def has_kind(self, kind: ErrorKind) -> bool:
        return any(i.kind == kind for i in self.issues)

    def of_kind(self, kind: ErrorKind) -> List[ValidationIssue]:
        return [i for i in self.issues if i.kind == kind]

    def raise_for_errors(self) -> None:
        """Raise ``ValidationFailedError`` naming the first blocking issue."""
        for issue in self.issues:
            if issue.severity == Severity.ERROR:
                raise ValidationFailedError(
                    "; ".join(self.errors),
                    node_id=issue.node_id,
                    edge_id=issue.edge_id,
                    field=issue.path,
                )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "isValid": self.is_valid,
            "errors": self.errors,
            "warnings": self.warnings,
            "issues": [i.to_dict() for i in self.issues],
        }


class WorkflowValidator:
    """Validate a graph against structural and per-node-type rules."""

    def __init__(
        self,
        registry: Optional[NodeRegistry] = None,
        translator: Optional[Translator] = None,
    ) -> None:
        self._registry = registry or get_node_registry()
        self._translator = translator

    @property
    def _tr(self) -> Translator:
        return self._translator or get_translator()

    # ========================================================================
    # Public API
    # ========================================================================

    def validate(
        self,
        nodes: Sequence[WorkflowNode],
        edges: Sequence[WorkflowEdge],
    ) -> ValidationResult:
        result = ValidationResult()
        node_map: Dict[str, WorkflowNode] = {n.id: n for n in nodes}

        if not nodes:
            self._error(result, ErrorKind.EMPTY_GRAPH, self._tr.t(
                "validation.empty_graph",
                "The workflow must contain at least one node",
            ))

        valid_edges = self._check_references(result, edges, node_map)
        self._check_ports(result, valid_edges, node_map)
        self._check_configs(result, nodes)
        orphans = self._check_orphans(result, nodes, valid_edges)
        self._check_triggers(result, nodes, valid_edges, orphans)
        self._check_fan_out(result, nodes, valid_edges, orphans)
        self._check_cycles(result, nodes, valid_edges)

        if result.issues:
            logger.debug(
                f"Validation: {len(result.errors)} error(s), {len(result.warnings)} warning(s)"
            )
        return result

    # ========================================================================
    # Checks
    # ========================================================================

    def _check_references(
        self,
        result: ValidationResult,
        edges: Sequence[WorkflowEdge],
        node_map: Dict[str, WorkflowNode],
    ) -> List[WorkflowEdge]:
        valid: List[WorkflowEdge] = []
        for edge in edges:
            ok = True
            if edge.source not in node_map:
                ok = False
                self._error(result, ErrorKind.DANGLING_REFERENCE, self._tr.t(
                    "validation.dangling_source",
                    "Edge {edge_id} references unknown source node: {node_id}",
                    edge_id=edge.id, node_id=edge.source,
                ), node_id=edge.source, edge_id=edge.id)
            if edge.target not in node_map:
                ok = False
                self._error(result, ErrorKind.DANGLING_REFERENCE, self._tr.t(
                    "validation.dangling_target",
                    "Edge {edge_id} references unknown target node: {node_id}",
                    edge_id=edge.id, node_id=edge.target,
                ), node_id=edge.target, edge_id=edge.id)
            if ok:
                valid.append(edge)
        return valid

    def _check_ports(
        self,
        result: ValidationResult,
        edges: Iterable[WorkflowEdge],
        node_map: Dict[str, WorkflowNode],
    ) -> None:
        for edge in edges:
            source = node_map[edge.source]
            target = node_map[edge.target]
            source_spec = self._registry.resolve(source.type)
            if not source_spec.accepts_source_port(edge.source_handle, source.data.config):
                self._error(result, ErrorKind.INVALID_PORT, self._tr.t(
                    "validation.invalid_source_port",
                    "Edge {edge_id} uses unknown output port '{port}' on {node}",
                    edge_id=edge.id, port=edge.source_handle, node=self._ref(source),
                ), node_id=source.id, edge_id=edge.id, path="sourceHandle")
            if not self._registry.resolve(target.type).accepts_target_port(edge.target_handle):
                self._error(result, ErrorKind.INVALID_PORT, self._tr.t(
                    "validation.invalid_target_port",
                    "Edge {edge_id} uses unknown input port '{port}' on {node}",
                    edge_id=edge.id, port=edge.target_handle, node=self._ref(target),
                ), node_id=target.id, edge_id=edge.id, path="targetHandle")

    def _check_configs(self, result: ValidationResult, nodes: Sequence[WorkflowNode]) -> None:
        for node in nodes:
            spec = self._registry.resolve(node.type)
            config = node.data.config
            if config is None:
                if spec.is_structured_control:
                    self._warning(result, ErrorKind.VALIDATION_WARNING, self._tr.t(
                        "validation.not_configured",
                        "{node} is not configured; defaults apply",
                        node=self._ref(node),
                    ), node_id=node.id)
                continue

            for issue in spec.validate_config(config):
                message = f"{self._ref(node)}: {issue.message}"
                if issue.required:
                    self._error(result, ErrorKind.VALIDATION_FAILED, message,
                                node_id=node.id, path=issue.path)
                else:
                    self._warning(result, ErrorKind.VALIDATION_WARNING, message,
                                  node_id=node.id, path=issue.path)

    def _check_orphans(
        self,
        result: ValidationResult,
        nodes: Sequence[WorkflowNode],
        edges: Sequence[WorkflowEdge],
    ) -> Set[str]:
        if len(nodes) <= 1:
            return set()
        connected: Set[str] = set()
        for edge in edges:
            connected.add(edge.source)
            connected.add(edge.target)
        orphans: Set[str] = set()
        for node in nodes:
            if node.id not in connected:
                orphans.add(node.id)
                self._warning(result, ErrorKind.ORPHAN_NODE, self._tr.t(
                    "validation.orphan_node",
                    "Isolated node detected: {node}",
                    node=self._ref(node),
                ), node_id=node.id)
        return orphans

    def _check_triggers(
        self,
        result: ValidationResult,
        nodes: Sequence[WorkflowNode],
        edges: Sequence[WorkflowEdge],
        orphans: Set[str],
    ) -> None:
        if not nodes:
            return
        triggers = [n.id for n in nodes if n.type in TRIGGER_TYPES]
        if not triggers:
            self._warning(result, ErrorKind.VALIDATION_WARNING, self._tr.t(
                "validation.no_trigger",
                "It's recommended to have at least one trigger in the workflow",
            ))
            return

        adjacency = _adjacency(edges)
        reachable: Set[str] = set()
        queue = deque(triggers)
        while queue:
            node_id = queue.popleft()
            if node_id in reachable:
                continue
            reachable.add(node_id)
            queue.extend(t for t in adjacency.get(node_id, []) if t not in reachable)

        for node in nodes:
            if node.id not in reachable and node.id not in orphans:
                self._warning(result, ErrorKind.VALIDATION_WARNING, self._tr.t(
                    "validation.unreachable",
                    "{node} is not reachable from a trigger",
                    node=self._ref(node),
                ), node_id=node.id)

    def _check_fan_out(
        self,
        result: ValidationResult,
        nodes: Sequence[WorkflowNode],
        edges: Sequence[WorkflowEdge],
        orphans: Set[str],
    ) -> None:
        out_degree: Dict[str, int] = {}
        for edge in edges:
            out_degree[edge.source] = out_degree.get(edge.source, 0) + 1

        for node in nodes:
            if node.id in orphans:
                continue
            count = out_degree.get(node.id, 0)
            if node.type == "if-else" and count != 2:
                self._warning(result, ErrorKind.VALIDATION_WARNING, self._tr.t(
                    "validation.if_else_outputs",
                    "IF/ELSE node {node} must have exactly 2 outputs",
                    node=self._ref(node),
                ), node_id=node.id)
            elif node.type in ("switch", "parallel") and count < 2:
                self._warning(result, ErrorKind.VALIDATION_WARNING, self._tr.t(
                    "validation.min_outputs",
                    "Node {node} should have at least 2 outputs",
                    node=self._ref(node),
                ), node_id=node.id)

    def _check_cycles(
        self,
        result: ValidationResult,
        nodes: Sequence[WorkflowNode],
        edges: Sequence[WorkflowEdge],
    ) -> None:
        node_map = {n.id: n for n in nodes}
        adjacency = _adjacency(edges)
        self_loops = {e.source for e in edges if e.source == e.target}

        for component in _strongly_connected(list(node_map), adjacency):
            if len(component) == 1 and component[0] not in self_loops:
                continue
            if any(node_map[nid].type == "loop" for nid in component):
                continue
            first = node_map[component[0]]
            self._warning(result, ErrorKind.VALIDATION_WARNING, self._tr.t(
                "validation.cycle",
                "The workflow contains a cycle outside any loop through {node}",
                node=self._ref(first),
            ), node_id=first.id)

    # ========================================================================
    # Helpers
    # ========================================================================

    @staticmethod
    def _ref(node: WorkflowNode) -> str:
        return f"'{node.data.label or node.type}' ({node.id})"

    @staticmethod
    def _error(result: ValidationResult, kind: ErrorKind, message: str, **where: Any) -> None:
        result.issues.append(ValidationIssue(kind, Severity.ERROR, message, **where))

    @staticmethod
    def _warning(result: ValidationResult, kind: ErrorKind, message: str, **where: Any) -> None:
        result.issues.append(ValidationIssue(kind, Severity.WARNING, message, **where))


def _adjacency(edges: Iterable[WorkflowEdge]) -> Dict[str, List[str]]:
    adjacency: Dict[str, List[str]] = {}
    for edge in edges:
        adjacency.setdefault(edge.source, []).append(edge.target)
    return adjacency


def _strongly_connected(
    node_ids: List[str],
    adjacency: Dict[str, List[str]],
) -> List[List[str]]:
    """Tarjan's algorithm, iterative so large graphs do not hit the recursion limit."""
    index: Dict[str, int] = {}
    lowlink: Dict[str, int] = {}
    on_stack: Set[str] = set()
    stack: List[str] = []
    components: List[List[str]] = []
    counter = 0

    for root in node_ids:
        if root in index:
            continue
        work = [(root, 0)]
        while work:
            node_id, child_pos = work.pop()
            if child_pos == 0:
                index[node_id] = lowlink[node_id] = counter
                counter += 1
                stack.append(node_id)
                on_stack.add(node_id)

            children = adjacency.get(node_id, [])
            recurse = False
            for pos in range(child_pos, len(children)):
                child = children[pos]
                if child not in index:
                    work.append((node_id, pos + 1))
                    work.append((child, 0))
                    recurse = True
                    break
                if child in on_stack:
                    lowlink[node_id] = min(lowlink[node_id], index[child])
            if recurse:
                continue

            if lowlink[node_id] == index[node_id]:
                component = []
                while True:
                    member = stack.pop()
                    on_stack.discard(member)
                    component.append(member)
                    if member == node_id:
                        break
                components.append(component)
            if work:
                parent = work[-1][0]
                lowlink[parent] = min(lowlink[parent], lowlink[node_id])

    return components


def validate_workflow(
    nodes: Sequence[WorkflowNode],
    edges: Sequence[WorkflowEdge],
    registry: Optional[NodeRegistry] = None,
) -> ValidationResult:
    """Module-level shortcut for ``WorkflowValidator().validate``."""
    return WorkflowValidator(registry).validate(nodes, edges)
