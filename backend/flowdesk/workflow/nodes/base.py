"""
Node Type Base — metadata, defaults, ports and config rules per node type.

Every node type the builder knows is a ``NodeTypeSpec`` subclass
registered with ``@register_node``. The class is the single place that
declares a type's display metadata, its configuration parameters (and
therefore its default config), its output port set, and the checks its
configuration must pass. Adding a node type means adding one class.
"""

from __future__ import annotations

import copy
from dataclasses import dataclass, field
from enum import Enum
from logging import getLogger
from typing import Any, Dict, List, Optional, Set, Type

from flowdesk.workflow.config_paths import get_path, set_path
from flowdesk.workflow.localization import Translator, get_translator

logger = getLogger(__name__)

DEFAULT_PORT = "default"
INPUT_PORT = "input"


class RendererKind(str, Enum):
    """How the editor draws a node and how many ports it exposes."""
    SIMPLE = "simple"
    STRUCTURED_CONTROL = "structured-control"


class NodeCategory(str, Enum):
    """Palette grouping for node types."""
    BUSINESS = "business"
    COMMUNICATION = "communication"
    AI = "ai"
    TRIGGER = "trigger"
    LOGIC = "logic"
    CONTROL = "control"
    INTEGRATION = "integration"
    GENERIC = "generic"


# Renderer component ids written by older exports in the node ``type``
# slot, with the real node type kept in ``data.type``.
RENDERER_IDS: Dict[str, RendererKind] = {
    "workflowNode": RendererKind.SIMPLE,
    "ifElseNode": RendererKind.STRUCTURED_CONTROL,
    "switchNode": RendererKind.STRUCTURED_CONTROL,
    "loopNode": RendererKind.STRUCTURED_CONTROL,
    "parallelNode": RendererKind.STRUCTURED_CONTROL,
    "tryCatchNode": RendererKind.STRUCTURED_CONTROL,
}


# ============================================================================
# Declarations
# ============================================================================


@dataclass
class NodeParameter:
    """A single configurable field of a node type.

    ``name`` is a dot-path into the node's config, so nested settings
    such as ``condition.field`` are declared directly.
    """
    name: str
    label: str
    type: str = "string"
    default: Any = None
    required: bool = False
    description: str = ""
    options: List[Dict[str, Any]] = field(default_factory=list)
    min: Optional[float] = None
    max: Optional[float] = None
    group: str = "general"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "label": self.label,
            "type": self.type,
            "default": self.default,
            "required": self.required,
            "description": self.description,
            "options": self.options,
            "min": self.min,
            "max": self.max,
            "group": self.group,
        }


@dataclass
class OutputPort:
    """A named outgoing connection point on a node."""
    id: str
    label: str
    description: str = ""

    def to_dict(self) -> Dict[str, str]:
        return {"id": self.id, "label": self.label, "description": self.description}


@dataclass
class ConfigIssue:
    """A problem found in a node's configuration.

    ``required`` marks a hard requirement of the node type; the
    validator reports those as errors and the rest as warnings.
    """
    path: str
    message: str
    required: bool = False


@dataclass
class NodeTypeInfo:
    """Resolved registry entry handed to callers."""
    node_type: str
    label: str
    description: str
    icon: str
    category: NodeCategory
    color: str
    renderer_kind: RendererKind
    default_config: Dict[str, Any]

    @property
    def is_structured_control(self) -> bool:
        return self.renderer_kind == RendererKind.STRUCTURED_CONTROL

    def to_dict(self) -> Dict[str, Any]:
        return {
            "node_type": self.node_type,
            "label": self.label,
            "description": self.description,
            "icon": self.icon,
            "category": self.category.value,
            "color": self.color,
            "renderer_kind": self.renderer_kind.value,
            "default_config": self.default_config,
        }


# ============================================================================
# NodeTypeSpec
# ============================================================================


class NodeTypeSpec:
    """Base class for node types.

    Subclasses override the class attributes and, where the type has
    rules beyond "required parameters are non-empty", ``check_config``.
    Structured-control types also override the port methods.
    """

    node_type: str = ""
    label: str = "Node"
    description: str = "Custom node"
    category: NodeCategory = NodeCategory.GENERIC
    icon: str = "plus"
    color: str = "#64748b"
    renderer_kind: RendererKind = RendererKind.SIMPLE
    renderer_id: str = "workflowNode"
    # Config key holding the type-specific settings. When set, the checks
    # only run once that section exists.
    config_section: Optional[str] = None

    parameters: List[NodeParameter] = []
    output_ports: List[OutputPort] = [
        OutputPort(id=DEFAULT_PORT, label="Output"),
    ]

    # ── Metadata ──

    @property
    def is_structured_control(self) -> bool:
        return self.renderer_kind == RendererKind.STRUCTURED_CONTROL

    def display_label(self, translator: Optional[Translator] = None) -> str:
        tr = translator or get_translator()
        key = self.node_type or "default"
        return tr.t(f"node.{key}.label", self.label)

    def display_description(self, translator: Optional[Translator] = None) -> str:
        tr = translator or get_translator()
        key = self.node_type or "default"
        return tr.t(f"node.{key}.desc", self.description)

    def describe(self, translator: Optional[Translator] = None) -> NodeTypeInfo:
        return NodeTypeInfo(
            node_type=self.node_type,
            label=self.display_label(translator),
            description=self.display_description(translator),
            icon=self.icon,
            category=self.category,
            color=self.color,
            renderer_kind=self.renderer_kind,
            default_config=self.default_config(),
        )

    # ── Config ──

    def default_config(self) -> Dict[str, Any]:
        """Build a fresh default config from the declared parameters."""
        config: Dict[str, Any] = {}
        for param in self.parameters:
            if param.default is None:
                continue
            config = set_path(config, param.name, copy.deepcopy(param.default))
        return config

    def effective_config(self, config: Optional[Dict[str, Any]]) -> Dict[str, Any]:
        """The stored config, or the defaults when none was saved yet."""
        return config if config is not None else self.default_config()

    def validate_config(self, config: Dict[str, Any]) -> List[ConfigIssue]:
        """Check a saved config: required parameters first, then type rules."""
        if self.config_section and not isinstance(config.get(self.config_section), dict):
            return []
        issues: List[ConfigIssue] = []
        for param in self.parameters:
            if not param.required:
                continue
            if _is_blank(get_path(config, param.name)):
                issues.append(ConfigIssue(
                    path=param.name,
                    message=f"'{param.label}' is required",
                    required=True,
                ))
        issues.extend(self.check_config(config))
        return issues

    def check_config(self, config: Dict[str, Any]) -> List[ConfigIssue]:
        return []

    # ── Ports ──

    def get_dynamic_output_ports(
        self, config: Dict[str, Any],
    ) -> Optional[List[OutputPort]]:
        """Ports computed from config, or None when the static set applies."""
        return None

    def get_output_ports(self, config: Optional[Dict[str, Any]] = None) -> List[OutputPort]:
        dynamic = self.get_dynamic_output_ports(self.effective_config(config))
        return dynamic if dynamic is not None else list(self.output_ports)

    def port_ids(self, config: Optional[Dict[str, Any]] = None) -> Set[str]:
        return {p.id for p in self.get_output_ports(config)}

    def accepts_source_port(
        self, handle: Optional[str], config: Optional[Dict[str, Any]] = None,
    ) -> bool:
        if not self.is_structured_control:
            return handle in (None, DEFAULT_PORT)
        return handle in self.port_ids(config)

    def accepts_target_port(self, handle: Optional[str]) -> bool:
        return handle in (None, INPUT_PORT)

    def to_dict(self, translator: Optional[Translator] = None) -> Dict[str, Any]:
        info = self.describe(translator).to_dict()
        info["parameters"] = [p.to_dict() for p in self.parameters]
        info["output_ports"] = [p.to_dict() for p in self.get_output_ports()]
        return info


def common_parameters() -> List[NodeParameter]:
    """``name`` / ``description`` fields every simple node type accepts."""
    return [
        NodeParameter(
            name="name",
            label="Name",
            description="Custom display name; replaces the default label.",
            group="general",
        ),
        NodeParameter(
            name="description",
            label="Description",
            type="text",
            group="general",
        ),
    ]


class GenericNode(NodeTypeSpec):
    """Fallback for node types the registry does not know."""

    parameters = common_parameters()


def _is_blank(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, str):
        return not value.strip()
    if isinstance(value, (list, dict)):
        return len(value) == 0
    return False


# ============================================================================
# Registry
# ============================================================================


class NodeRegistry:
    """Map node type ids to their ``NodeTypeSpec``."""

    def __init__(self) -> None:
        self._types: Dict[str, NodeTypeSpec] = {}
        self._fallback = GenericNode()

    def register(self, spec_cls: Type[NodeTypeSpec]) -> NodeTypeSpec:
        spec = spec_cls()
        if not spec.node_type:
            raise ValueError(f"{spec_cls.__name__} does not declare node_type")
        if spec.node_type in self._types:
            logger.warning(f"Node type '{spec.node_type}' re-registered")
        self._types[spec.node_type] = spec
        return spec

    def get(self, node_type: Optional[str]) -> Optional[NodeTypeSpec]:
        if node_type is None:
            return None
        return self._types.get(node_type)

    def resolve(self, node_type: Optional[str]) -> NodeTypeSpec:
        """Return the node type for ``node_type`` or the generic fallback; never raises."""
        spec = self.get(node_type)
        if spec is None:
            logger.debug(f"Unknown node type '{node_type}', using generic node")
            return self._fallback
        return spec

    def describe(
        self, node_type: Optional[str], translator: Optional[Translator] = None,
    ) -> NodeTypeInfo:
        info = self.resolve(node_type).describe(translator)
        if node_type and info.node_type != node_type:
            info.node_type = node_type
        return info

    def is_known(self, node_type: Optional[str]) -> bool:
        return node_type in self._types

    def is_structured_control(self, node_type: Optional[str]) -> bool:
        return self.resolve(node_type).is_structured_control

    def list_all(self) -> List[NodeTypeSpec]:
        return list(self._types.values())

    def list_by_category(self) -> Dict[str, List[NodeTypeSpec]]:
        grouped: Dict[str, List[NodeTypeSpec]] = {}
        for spec in self._types.values():
            grouped.setdefault(spec.category.value, []).append(spec)
        return grouped

    def resolve_document_type(
        self, node_type: Optional[str], data_type: Optional[str] = None,
    ) -> Optional[str]:
        """Pick the real node type out of a (possibly legacy) document node.

        Older exports stored the renderer id (``workflowNode``,
        ``ifElseNode``...) as the node type and the real type under
        ``data.type``.
        """
        if node_type in RENDERER_IDS and data_type:
            return data_type
        return node_type


_registry = NodeRegistry()


def get_node_registry() -> NodeRegistry:
    """Return the global NodeRegistry holding every built-in type."""
    return _registry


def register_node(cls: Type[NodeTypeSpec]) -> Type[NodeTypeSpec]:
    """Class decorator: register a node type in the global registry."""
    _registry.register(cls)
    return cls
