"""
Workflow Nodes Package.

Auto-registers all built-in node types into the global NodeRegistry.
Import this package to ensure all node types are available.
"""

from logging import getLogger

from flowdesk.workflow.nodes.base import (
    DEFAULT_PORT,
    INPUT_PORT,
    ConfigIssue,
    NodeCategory,
    NodeParameter,
    NodeRegistry,
    NodeTypeInfo,
    NodeTypeSpec,
    OutputPort,
    RendererKind,
    get_node_registry,
    register_node,
)

# Import all node modules to trigger registration
from flowdesk.workflow.nodes import business_nodes       # noqa: F401
from flowdesk.workflow.nodes import communication_nodes  # noqa: F401
from flowdesk.workflow.nodes import ai_nodes             # noqa: F401
from flowdesk.workflow.nodes import trigger_nodes        # noqa: F401
from flowdesk.workflow.nodes import logic_nodes          # noqa: F401
from flowdesk.workflow.nodes import control_nodes        # noqa: F401
from flowdesk.workflow.nodes import integration_nodes    # noqa: F401

from flowdesk.workflow.nodes.trigger_nodes import TRIGGER_TYPES


def register_all_nodes() -> int:
    """Ensure all node types are registered and return how many there are.

    The module-level imports above trigger the ``@register_node``
    decorators; this gives application startup an explicit entry point.
    """
    count = len(get_node_registry().list_all())
    getLogger(__name__).info(f"Workflow node types registered: {count}")
    return count


__all__ = [
    "DEFAULT_PORT",
    "INPUT_PORT",
    "TRIGGER_TYPES",
    "ConfigIssue",
    "NodeCategory",
    "NodeParameter",
    "NodeRegistry",
    "NodeTypeInfo",
    "NodeTypeSpec",
    "OutputPort",
    "RendererKind",
    "get_node_registry",
    "register_node",
    "register_all_nodes",
]
