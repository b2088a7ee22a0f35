"""
Integration Nodes — generic action, database and HTTP API steps.
"""

from __future__ import annotations

from typing import Any, Dict, List
from urllib.parse import urlparse

from flowdesk.workflow.config_paths import get_path
from flowdesk.workflow.nodes.base import (
    ConfigIssue,
    NodeCategory,
    NodeParameter,
    NodeTypeSpec,
    common_parameters,
    register_node,
)

DB_OPERATIONS = ["create", "read", "update", "delete"]
API_METHODS = ["GET", "POST", "PUT", "DELETE"]
AUTH_TYPES = ["none", "bearer", "basic", "api_key"]


class IntegrationNode(NodeTypeSpec):
    category = NodeCategory.INTEGRATION
    color = "#64748b"


@register_node
class ActionNode(IntegrationNode):
    """A generic, free-form action."""

    node_type = "action"
    label = "Action"
    description = "Generic action"
    icon = "zap"

    parameters = common_parameters()


@register_node
class DatabaseNode(IntegrationNode):
    """Run a CRUD operation against a table."""

    node_type = "database"
    label = "Database"
    description = "Read or write the database"
    icon = "database"
    config_section = "databaseData"

    parameters = common_parameters() + [
        NodeParameter(
            name="databaseData.operation",
            label="Operation",
            type="select",
            default="read",
            options=[{"value": op, "label": op} for op in DB_OPERATIONS],
            group="database",
        ),
        NodeParameter(name="databaseData.table", label="Table", default="", required=True, group="database"),
        NodeParameter(name="databaseData.conditions", label="Conditions", type="json", default={}, group="database"),
    ]

    def check_config(self, config: Dict[str, Any]) -> List[ConfigIssue]:
        operation = get_path(config, "databaseData.operation")
        if operation and operation not in DB_OPERATIONS:
            return [ConfigIssue(
                "databaseData.operation",
                f"Unknown database operation '{operation}'",
                required=True,
            )]
        return []


@register_node
class ApiNode(IntegrationNode):
    """Call an external HTTP API."""

    node_type = "api"
    label = "API"
    description = "Call an external API"
    icon = "settings"
    config_section = "apiData"

    parameters = common_parameters() + [
        NodeParameter(
            name="apiData.method",
            label="Method",
            type="select",
            default="GET",
            options=[{"value": m, "label": m} for m in API_METHODS],
            group="request",
        ),
        NodeParameter(name="apiData.url", label="URL", default="", required=True, group="request"),
        NodeParameter(name="apiData.headers", label="Headers", type="json", default={}, group="request"),
        NodeParameter(
            name="apiData.authentication.type",
            label="Authentication",
            type="select",
            default="none",
            options=[{"value": a, "label": a} for a in AUTH_TYPES],
            group="auth",
        ),
    ]

    def check_config(self, config: Dict[str, Any]) -> List[ConfigIssue]:
        issues: List[ConfigIssue] = []
        url = str(get_path(config, "apiData.url") or "").strip()
        if url:
            parsed = urlparse(url)
            if parsed.scheme not in ("http", "https") or not parsed.netloc:
                issues.append(ConfigIssue("apiData.url", f"'{url}' is not a valid URL", required=True))
        method = get_path(config, "apiData.method")
        if method and method not in API_METHODS:
            issues.append(ConfigIssue("apiData.method", f"Unsupported HTTP method '{method}'", required=True))
        return issues
