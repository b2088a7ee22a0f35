"""
Trigger Nodes — entry points of a workflow.

Manual trigger, incoming webhook, and schedule. The validator uses
``TRIGGER_TYPES`` to decide reachability.
"""

from __future__ import annotations

from typing import Any, Dict, List

from flowdesk.workflow.nodes.base import (
    ConfigIssue,
    NodeCategory,
    NodeParameter,
    NodeTypeSpec,
    common_parameters,
    register_node,
)

TRIGGER_TYPES = ("trigger", "webhook", "scheduled")

HTTP_METHODS = ["GET", "POST", "PUT", "DELETE"]


class TriggerNode(NodeTypeSpec):
    category = NodeCategory.TRIGGER
    color = "#ef4444"


@register_node
class ManualTriggerNode(TriggerNode):
    """Start the workflow on demand or on a CRM event."""

    node_type = "trigger"
    label = "Trigger"
    description = "Start the workflow"
    icon = "play"

    parameters = common_parameters() + [
        NodeParameter(
            name="triggerType",
            label="Trigger type",
            type="select",
            default="manual",
            options=[{"value": t, "label": t} for t in ("manual", "database_change", "webhook", "schedule")],
            group="trigger",
        ),
    ]


@register_node
class WebhookTriggerNode(TriggerNode):
    """Start on an incoming HTTP call."""

    node_type = "webhook"
    label = "Webhook"
    description = "Start on an incoming HTTP call"
    icon = "webhook"

    parameters = common_parameters() + [
        NodeParameter(name="webhookUrl", label="Webhook path", default="", group="webhook"),
        NodeParameter(
            name="method",
            label="Method",
            type="select",
            default="POST",
            options=[{"value": m, "label": m} for m in HTTP_METHODS],
            group="webhook",
        ),
    ]

    def check_config(self, config: Dict[str, Any]) -> List[ConfigIssue]:
        method = config.get("method")
        if method and method not in HTTP_METHODS:
            return [ConfigIssue("method", f"Unsupported HTTP method '{method}'")]
        return []


@register_node
class ScheduledTriggerNode(TriggerNode):
    """Start on a cron schedule."""

    node_type = "scheduled"
    label = "Scheduled"
    description = "Start on a schedule"
    icon = "calendar"

    parameters = common_parameters() + [
        NodeParameter(name="cronExpression", label="Cron expression", default="0 9 * * 1-5", group="schedule"),
        NodeParameter(name="timezone", label="Timezone", default="UTC", group="schedule"),
    ]

    def check_config(self, config: Dict[str, Any]) -> List[ConfigIssue]:
        expression = str(config.get("cronExpression") or "").strip()
        if expression and len(expression.split()) not in (5, 6):
            return [ConfigIssue(
                "cronExpression",
                f"'{expression}' is not a 5 or 6 field cron expression",
            )]
        return []
