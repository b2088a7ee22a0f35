"""
Logic Nodes — single-port condition and filter steps.

Unlike the structured-control nodes these keep one input and one
output; items that fail the test simply stop here.
"""

from __future__ import annotations

from logging import getLogger

from flowdesk.workflow.nodes.base import (
    NodeCategory,
    NodeParameter,
    NodeTypeSpec,
    common_parameters,
    register_node,
)
from flowdesk.workflow.nodes.control_nodes import CONDITION_OPERATORS

logger = getLogger(__name__)


class LogicNode(NodeTypeSpec):
    category = NodeCategory.LOGIC
    color = "#6366f1"


@register_node
class ConditionNode(LogicNode):
    """Continue only when a field comparison holds."""

    node_type = "condition"
    label = "Condition"
    description = "Test a simple condition"
    icon = "git-branch"
    config_section = "conditionData"

    parameters = common_parameters() + [
        NodeParameter(name="conditionData.field", label="Field", default="", required=True, group="condition"),
        NodeParameter(
            name="conditionData.operator",
            label="Operator",
            type="select",
            default="equals",
            options=[{"value": op, "label": op} for op in CONDITION_OPERATORS],
            group="condition",
        ),
        NodeParameter(name="conditionData.value", label="Value", default="", group="condition"),
        NodeParameter(
            name="conditionData.caseSensitive",
            label="Case sensitive",
            type="boolean",
            default=False,
            group="condition",
        ),
        NodeParameter(name="trueAction", label="When true", default="", group="actions"),
        NodeParameter(name="falseAction", label="When false", default="", group="actions"),
    ]


@register_node
class FilterNode(LogicNode):
    """Drop items that do not match an expression."""

    node_type = "filter"
    label = "Filter"
    description = "Filter items"
    icon = "settings"

    parameters = common_parameters() + [
        NodeParameter(name="expression", label="Filter expression", default="", group="filter"),
        NodeParameter(name="caseSensitive", label="Case sensitive", type="boolean", default=False, group="filter"),
    ]
