"""
Workflow Serializer — export/import of the interchange document.

Export snapshots the graph into a ``WorkflowDocument`` and renders it
as JSON or YAML. Import parses text back into a document, checking its
shape first so every rejection names the offending index, id and field.
``from_document`` never raises on bad input; it returns an
``ImportResult`` instead.

Document layout::

    name: My workflow
    version: 1.0.0
    created: 2026-01-01T00:00:00+00:00
    nodes: [{id, type, position: {x, y}, data: {label, config, ...}}]
    edges: [{id, source, target, sourceHandle?, targetHandle?, type, animated}]
    metadata: {nodeCount, edgeCount, exportedBy}
"""

from __future__ import annotations

import asyncio
import copy
import json
from dataclasses import dataclass
from datetime import date, datetime
from logging import getLogger
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, Union

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from flowdesk.workflow.errors import InvalidDocumentError
from flowdesk.workflow.localization import Translator, get_translator
from flowdesk.workflow.nodes import NodeRegistry, get_node_registry
from flowdesk.workflow.workflow_model import WorkflowEdge, WorkflowNode, utc_now

logger = getLogger(__name__)

_FORMATS = {".json": "json", ".yaml": "yaml", ".yml": "yaml"}

_NODE_FIELDS = ("id", "type", "position", "data")
_EDGE_FIELDS = ("id", "source", "target")


# ============================================================================
# Document model
# ============================================================================


class DocumentMetadata(BaseModel):
    model_config = ConfigDict(extra="allow", populate_by_name=True)

    node_count: int = Field(default=0, alias="nodeCount")
    edge_count: int = Field(default=0, alias="edgeCount")
    exported_by: str = Field(default="Workflow Builder", alias="exportedBy")


class WorkflowDocument(BaseModel):
    """The exported/imported representation of a graph."""

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    name: str = "Untitled Workflow"
    version: str = "1.0.0"
    created: Optional[str] = None
    nodes: List[WorkflowNode] = Field(default_factory=list)
    edges: List[WorkflowEdge] = Field(default_factory=list)
    metadata: Optional[DocumentMetadata] = None

    @field_validator("created", mode="before")
    @classmethod
    def _timestamp_to_str(cls, value: Any) -> Any:
        # YAML loaders turn unquoted ISO timestamps into datetimes.
        if isinstance(value, (datetime, date)):
            return value.isoformat()
        return value

    def to_dict(self) -> Dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


@dataclass
class ImportResult:
    is_valid: bool
    data: Optional[WorkflowDocument] = None
    error: Optional[str] = None


# ============================================================================
# Export
# ============================================================================


def to_document(
    nodes: Sequence[WorkflowNode],
    edges: Sequence[WorkflowEdge],
    name: Optional[str] = None,
    version: Optional[str] = None,
    exported_by: Optional[str] = None,
) -> WorkflowDocument:
    """Snapshot a graph into a document.

    Nodes and edges are deep-copied; render-time icon references are
    left out because ``NodeData.icon`` is excluded from dumps.
    """
    if version is None or exported_by is None:
        from flowdesk.config import get_config
        cfg = get_config("workflow_builder")
        version = version or cfg.document_version
        exported_by = exported_by or cfg.exported_by

    doc = WorkflowDocument(
        name=name or "Untitled Workflow",
        version=version,
        created=utc_now().isoformat(),
        nodes=[n.model_copy(deep=True) for n in nodes],
        edges=[e.model_copy(deep=True) for e in edges],
        metadata=DocumentMetadata(
            node_count=len(nodes),
            edge_count=len(edges),
            exported_by=exported_by,
        ),
    )
    logger.debug(f"Document built: {doc.name} ({len(nodes)} nodes, {len(edges)} edges)")
    return doc


def dumps_json(doc: WorkflowDocument) -> str:
    return json.dumps(doc.to_dict(), indent=2, ensure_ascii=False)


def dumps_yaml(doc: WorkflowDocument) -> str:
    return yaml.safe_dump(
        doc.to_dict(),
        default_flow_style=False,
        sort_keys=False,
        allow_unicode=True,
    )


def to_template_summary(doc: WorkflowDocument) -> Dict[str, Any]:
    """Read-only summary shown in the template gallery. Not importable."""
    return {
        "name": doc.name,
        "nodeCount": len(doc.nodes),
        "edgeCount": len(doc.edges),
        "date": doc.created,
    }


# ============================================================================
# Import
# ============================================================================


def from_document(
    text: str,
    is_structured_text: bool = False,
    registry: Optional[NodeRegistry] = None,
) -> ImportResult:
    """Parse and check a JSON (or, with ``is_structured_text``, YAML) document.

    Checks run in order and stop at the first failure: the document is an
    object, ``nodes``/``edges`` are arrays, each node has
    ``id``/``type``/``position``/``data``, each edge has
    ``id``/``source``/``target``, node ids are unique, edges only reference
    declared nodes, and finally the pydantic models accept every entry.
    """
    try:
        raw = yaml.safe_load(text) if is_structured_text else json.loads(text)
    except (ValueError, yaml.YAMLError) as e:
        fmt = "YAML" if is_structured_text else "JSON"
        return ImportResult(is_valid=False, error=f"Invalid {fmt}: {e}")

    error = _check_shape(raw)
    if error:
        return ImportResult(is_valid=False, error=error)

    reg = registry or get_node_registry()
    raw = copy.deepcopy(raw)
    for raw_node in raw["nodes"]:
        raw_node["type"] = reg.resolve_document_type(raw_node["type"], raw_node["data"].get("type"))

    try:
        doc = WorkflowDocument.model_validate(raw)
    except ValidationError as e:
        first = e.errors()[0]
        where = ".".join(str(p) for p in first.get("loc", ()))
        return ImportResult(is_valid=False, error=f"Invalid document at {where}: {first.get('msg')}")

    return ImportResult(is_valid=True, data=doc)


def _check_shape(raw: Any) -> Optional[str]:
    if not isinstance(raw, dict):
        return "Document must be an object"
    for key in ("nodes", "edges"):
        if not isinstance(raw.get(key), list):
            return f"Document field '{key}' must be an array"

    seen: Dict[str, int] = {}
    for i, node in enumerate(raw["nodes"]):
        if not isinstance(node, dict):
            return f"Node at index {i} must be an object"
        for key in _NODE_FIELDS:
            if node.get(key) is None:
                return f"Node at index {i} ({node.get('id', '?')}) is missing '{key}'"
        if not isinstance(node["data"], dict):
            return f"Node {node['id']} field 'data' must be an object"
        if not isinstance(node["position"], dict):
            return f"Node {node['id']} field 'position' must be an object"
        if not isinstance(node["type"], str):
            return f"Node at index {i} ({node['id']}) field 'type' must be a string"
        if node["data"].get("type") is not None and not isinstance(node["data"]["type"], str):
            return f"Node at index {i} ({node['id']}) field 'data.type' must be a string"
        node_id = str(node["id"])
        if node_id in seen:
            return f"Duplicate node id '{node_id}' at index {i} (first at index {seen[node_id]})"
        seen[node_id] = i

    for i, edge in enumerate(raw["edges"]):
        if not isinstance(edge, dict):
            return f"Edge at index {i} must be an object"
        for key in _EDGE_FIELDS:
            if edge.get(key) is None:
                return f"Edge at index {i} ({edge.get('id', '?')}) is missing '{key}'"
        for key in ("source", "target"):
            if str(edge[key]) not in seen:
                return f"Edge {edge['id']} references unknown {key} node: {edge[key]}"
    return None


def normalize_nodes(
    nodes: Sequence[WorkflowNode],
    registry: Optional[NodeRegistry] = None,
    translator: Optional[Translator] = None,
) -> List[WorkflowNode]:
    """Re-derive display labels and descriptions after an import.

    The label becomes ``config.name`` when set, otherwise the registry's
    label in the current locale. Nodes of unknown types keep their stored
    label. A missing description is filled from the registry.
    """
    reg = registry or get_node_registry()
    tr = translator or get_translator()
    result: List[WorkflowNode] = []
    for node in nodes:
        spec = reg.get(node.type)
        update: Dict[str, Any] = {}

        name = (node.data.config or {}).get("name")
        if isinstance(name, str) and name.strip():
            update["label"] = name
        elif spec is not None:
            update["label"] = spec.display_label(tr)
        elif not node.data.label:
            update["label"] = reg.describe(node.type, tr).label

        if not node.data.description:
            update["description"] = reg.describe(node.type, tr).description

        data = node.data.model_copy(update=update)
        result.append(node.model_copy(update={"data": data}))
    return result


# ============================================================================
# Files
# ============================================================================


def format_for_filename(filename: Union[str, Path]) -> str:
    """Return ``"json"`` or ``"yaml"`` from the file extension."""
    suffix = Path(filename).suffix.lower()
    fmt = _FORMATS.get(suffix)
    if fmt is None:
        raise InvalidDocumentError(
            f"Unsupported file type '{suffix or filename}'; expected .json, .yaml or .yml",
            field="filename",
        )
    return fmt


async def read_document_file(path: Union[str, Path]) -> str:
    """Read a document file without blocking the event loop."""
    try:
        return await asyncio.to_thread(Path(path).read_text, encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        raise InvalidDocumentError(f"Could not read {path}: {e}", field="filename") from e
