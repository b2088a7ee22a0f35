"""
Pre-built Workflow Templates.

Factory functions returning ready-made ``SavedWorkflow`` graphs. The
editor loads one into the canvas wholesale when the user picks it from
the palette; ``install_templates`` also publishes them to storage so
they show up next to user workflows.
"""

from __future__ import annotations

from logging import getLogger
from typing import Callable, Dict, List, Optional

from flowdesk.workflow.localization import Translator, get_translator
from flowdesk.workflow.nodes import NodeRegistry, get_node_registry
from flowdesk.workflow.workflow_model import (
    NodeData,
    Position,
    SavedWorkflow,
    WorkflowEdge,
    WorkflowNode,
)

logger = getLogger(__name__)

BUSINESS_TEMPLATE = "template-business"


# ============================================================================
# Business Process Template
# ============================================================================


def create_business_template(
    registry: Optional[NodeRegistry] = None,
    translator: Optional[Translator] = None,
) -> SavedWorkflow:
    """Build the sales pipeline template.

    Topology::
        contact → offer → sale → service-order → dispatch
                    ↓
                email-llm (offer notification)
    """
    reg = registry or get_node_registry()
    tr = translator or get_translator()

    nodes: List[WorkflowNode] = []
    edges: List[WorkflowEdge] = []

    def _add(ntype: str, nid: str, x: float, y: float):
        info = reg.describe(ntype, tr)
        nodes.append(WorkflowNode(
            id=nid, type=ntype, position=Position(x=x, y=y),
            data=NodeData(label=info.label, description=info.description),
        ))

    def _edge(eid: str, src: str, tgt: str, animated: bool = True):
        edges.append(WorkflowEdge(
            id=eid, source=src, target=tgt, type="smoothstep", animated=animated,
        ))

    _add("contact",       "contact-1",      150, 200)
    _add("offer",         "offer-1",        400, 200)
    _add("email-llm",     "email-offer-1",  400, 350)
    _add("sale",          "sale-1",         650, 200)
    _add("service-order", "service-1",      900, 200)
    _add("dispatch",      "dispatch-1",    1150, 200)

    _edge("e1-2", "contact-1", "offer-1")
    _edge("e2-3", "offer-1",   "email-offer-1", animated=False)
    _edge("e2-4", "offer-1",   "sale-1")
    _edge("e4-5", "sale-1",    "service-1")
    _edge("e5-6", "service-1", "dispatch-1")

    return SavedWorkflow(
        id=BUSINESS_TEMPLATE,
        name=tr.t("template.business.name", "Business Process"),
        description=tr.t(
            "template.business.desc",
            "Contact to offer, sale, service order and dispatch, with an AI offer email",
        ),
        nodes=nodes,
        edges=edges,
    )


# ============================================================================
# Template Registry
# ============================================================================


ALL_TEMPLATES: Dict[str, Callable[..., SavedWorkflow]] = {
    BUSINESS_TEMPLATE: create_business_template,
}


def get_template(
    name: str,
    registry: Optional[NodeRegistry] = None,
    translator: Optional[Translator] = None,
) -> Optional[SavedWorkflow]:
    """Build the template registered under ``name``, or ``None``."""
    factory = ALL_TEMPLATES.get(name)
    if factory is None:
        return None
    return factory(registry=registry, translator=translator)


def install_templates(storage) -> int:
    """Install built-in templates into workflow storage.

    Always overwrites existing templates to keep them up-to-date.
    Returns the number of templates installed.
    """
    installed = 0
    for factory in ALL_TEMPLATES.values():
        storage.put(factory())
        installed += 1
    logger.info(f"Workflow templates installed: {installed}")
    return installed
