"""
Communication Nodes — outgoing email actions.
"""

from __future__ import annotations

from typing import Any, Dict, List

from flowdesk.workflow.config_paths import get_path
from flowdesk.workflow.nodes.base import (
    ConfigIssue,
    NodeCategory,
    NodeParameter,
    NodeTypeSpec,
    common_parameters,
    register_node,
)

RECIPIENT_TYPES = ["contact", "sales_rep", "technician", "custom"]
TIMINGS = ["immediate", "delayed", "scheduled"]


def _email_parameters() -> List[NodeParameter]:
    return common_parameters() + [
        NodeParameter(name="emailData.subject", label="Subject", default="", required=True, group="email"),
        NodeParameter(
            name="recipientType",
            label="Recipient",
            type="select",
            default="contact",
            options=[{"value": r, "label": r} for r in RECIPIENT_TYPES],
            group="email",
        ),
        NodeParameter(name="emailData.to", label="Recipient address", default="", group="email"),
        NodeParameter(
            name="timing",
            label="Send timing",
            type="select",
            default="immediate",
            options=[{"value": t, "label": t} for t in TIMINGS],
            group="email",
        ),
    ]


class EmailNodeBase(NodeTypeSpec):
    category = NodeCategory.COMMUNICATION
    color = "#10b981"
    config_section = "emailData"

    def check_config(self, config: Dict[str, Any]) -> List[ConfigIssue]:
        recipient = config.get("recipientType")
        if recipient == "custom" and not str(get_path(config, "emailData.to") or "").strip():
            return [ConfigIssue("emailData.to", "A custom recipient needs an address", required=True)]
        return []


@register_node
class EmailNode(EmailNodeBase):
    """Send a plain email."""

    node_type = "email"
    label = "Email"
    description = "Send an email"
    icon = "mail"

    parameters = _email_parameters() + [
        NodeParameter(name="content", label="Body", type="text", default="", group="email"),
    ]


@register_node
class EmailTemplateNode(EmailNodeBase):
    """Send an email rendered from a stored template."""

    node_type = "email-template"
    label = "Template Email"
    description = "Send an email from a template"
    icon = "send"

    parameters = _email_parameters() + [
        NodeParameter(name="emailData.template", label="Template", default="", group="email"),
    ]


@register_node
class EmailLLMNode(EmailNodeBase):
    """Send an email whose body is drafted by an LLM."""

    node_type = "email-llm"
    label = "AI Email"
    description = "Email written by AI"
    icon = "sparkles"

    parameters = _email_parameters() + [
        NodeParameter(name="model", label="Model", default="gpt-4o-mini", group="ai"),
        NodeParameter(name="userPrompt", label="Instructions", type="text", default="", group="ai"),
    ]
