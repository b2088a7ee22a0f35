"""
Business Process Nodes — the sales pipeline steps.

Contact → Offer → Sale → Service Order → Dispatch. These are simple
single-port nodes; their configs carry the business data each step
creates.
"""

from __future__ import annotations

from flowdesk.workflow.nodes.base import (
    NodeCategory,
    NodeParameter,
    NodeTypeSpec,
    common_parameters,
    register_node,
)


class BusinessNode(NodeTypeSpec):
    category = NodeCategory.BUSINESS
    color = "#0ea5e9"


@register_node
class ContactNode(BusinessNode):
    """Create or update a CRM contact."""

    node_type = "contact"
    label = "Contact"
    description = "Create or update a contact"
    icon = "users"

    parameters = common_parameters() + [
        NodeParameter(
            name="requiredFields",
            label="Required fields",
            type="json",
            default={"name": True, "email": True, "phone": False},
            group="contact",
        ),
        NodeParameter(
            name="source",
            label="Lead source",
            default="",
            group="contact",
        ),
    ]


@register_node
class OfferNode(BusinessNode):
    """Generate a quote from a template."""

    node_type = "offer"
    label = "Offer"
    description = "Generate a commercial offer"
    icon = "file-text"

    parameters = common_parameters() + [
        NodeParameter(name="templateId", label="Offer template", default="", group="offer"),
        NodeParameter(name="products", label="Products", type="list", default=[], group="offer"),
        NodeParameter(name="discount", label="Discount (%)", type="number", default=0, min=0, max=100, group="offer"),
        NodeParameter(name="validityDays", label="Validity (days)", type="number", default=30, min=1, group="offer"),
    ]


@register_node
class SaleNode(BusinessNode):
    """Convert an accepted offer into a sale."""

    node_type = "sale"
    label = "Sale"
    description = "Convert the offer into a sale"
    icon = "dollar-sign"

    parameters = common_parameters() + [
        NodeParameter(name="currency", label="Currency", default="EUR", group="sale"),
        NodeParameter(name="paymentMethod", label="Payment method", default="", group="sale"),
    ]


@register_node
class ServiceOrderNode(BusinessNode):
    """Open a service order for the sold items."""

    node_type = "service-order"
    label = "Service Order"
    description = "Create a service order"
    icon = "shopping-cart"

    parameters = common_parameters() + [
        NodeParameter(name="serviceType", label="Service type", default="", group="service"),
        NodeParameter(
            name="priority",
            label="Priority",
            type="select",
            default="medium",
            options=[{"value": p, "label": p} for p in ("low", "medium", "high")],
            group="service",
        ),
    ]


@register_node
class DispatchNode(BusinessNode):
    """Schedule a technician intervention."""

    node_type = "dispatch"
    label = "Dispatch"
    description = "Schedule a technician intervention"
    icon = "truck"

    parameters = common_parameters() + [
        NodeParameter(name="assignedTo", label="Assigned to", default="", group="dispatch"),
        NodeParameter(name="location", label="Location", default="", group="dispatch"),
        NodeParameter(
            name="estimatedDuration",
            label="Estimated duration (minutes)",
            type="number",
            default=60,
            min=0,
            group="dispatch",
        ),
    ]
