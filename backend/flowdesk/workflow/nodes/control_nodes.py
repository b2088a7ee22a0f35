"""
Control Nodes — structured control-flow constructs.

IF/ELSE, SWITCH, LOOP, PARALLEL and TRY/CATCH nodes. Each one exposes
several semantically distinct output ports and is drawn by a custom
multi-port renderer. Their port sets and configuration rules live here.
"""

from __future__ import annotations

from logging import getLogger
from typing import Any, Dict, List, Optional

from flowdesk.workflow.nodes.base import (
    DEFAULT_PORT,
    ConfigIssue,
    NodeCategory,
    NodeParameter,
    NodeTypeSpec,
    OutputPort,
    RendererKind,
    register_node,
)

logger = getLogger(__name__)

CONDITION_OPERATORS = [
    "equals",
    "not_equals",
    "contains",
    "not_contains",
    "greater_than",
    "less_than",
    "is_empty",
    "is_not_empty",
]

# Operators that compare against nothing.
UNARY_OPERATORS = {"is_empty", "is_not_empty"}

LOOP_TYPES = ["for", "while"]


def _as_int(value: Any) -> Optional[int]:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    if isinstance(value, str) and value.strip().lstrip("-").isdigit():
        return int(value.strip())
    return None


def _as_number(value: Any) -> Optional[float]:
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return float(value)
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


class ControlNode(NodeTypeSpec):
    """Common base for the structured-control node types."""

    category = NodeCategory.CONTROL
    renderer_kind = RendererKind.STRUCTURED_CONTROL
    color = "#8b5cf6"


# ============================================================================
# IF / ELSE
# ============================================================================


@register_node
class IfElseNode(ControlNode):
    """Two-way branch on a single field comparison."""

    node_type = "if-else"
    label = "IF / ELSE"
    description = "Conditional branch"
    icon = "git-branch"
    renderer_id = "ifElseNode"

    parameters = [
        NodeParameter(
            name="condition.field",
            label="Field to test",
            default="",
            required=True,
            description="Name of the field the condition reads (e.g. email, age, status).",
            group="condition",
        ),
        NodeParameter(
            name="condition.operator",
            label="Operator",
            type="select",
            default="equals",
            required=True,
            options=[{"value": op, "label": op} for op in CONDITION_OPERATORS],
            group="condition",
        ),
        NodeParameter(
            name="condition.value",
            label="Comparison value",
            default="",
            group="condition",
        ),
    ]

    output_ports = [
        OutputPort(id="true", label="True", description="Condition holds"),
        OutputPort(id="false", label="False", description="Condition does not hold"),
    ]

    def check_config(self, config: Dict[str, Any]) -> List[ConfigIssue]:
        issues: List[ConfigIssue] = []
        condition = config.get("condition")
        if not isinstance(condition, dict):
            return issues

        operator = condition.get("operator")
        if operator and operator not in CONDITION_OPERATORS:
            issues.append(ConfigIssue(
                "condition.operator",
                f"Unknown operator '{operator}'",
                required=True,
            ))
        if operator not in UNARY_OPERATORS and condition.get("value") in (None, ""):
            issues.append(ConfigIssue(
                "condition.value",
                "Comparison value is empty",
            ))
        return issues


# ============================================================================
# SWITCH
# ============================================================================


@register_node
class SwitchNode(ControlNode):
    """Multi-way branch: one port per case plus a default port."""

    node_type = "switch"
    label = "SWITCH"
    description = "Multi-way branch on a value"
    icon = "menu"
    renderer_id = "switchNode"

    parameters = [
        NodeParameter(
            name="field",
            label="Field to evaluate",
            default="",
            description="Field whose value selects the case.",
            group="switch",
        ),
        NodeParameter(
            name="cases",
            label="Cases",
            type="list",
            default=[{"value": "", "label": "Case 1"}],
            required=True,
            description="Ordered list of {value, label} cases.",
            group="switch",
        ),
    ]

    output_ports = [
        OutputPort(id=DEFAULT_PORT, label="Default", description="No case matched"),
    ]

    @staticmethod
    def case_port(index: int) -> str:
        return f"case-{index}"

    def get_dynamic_output_ports(self, config: Dict[str, Any]) -> List[OutputPort]:
        cases = config.get("cases")
        if not isinstance(cases, list):
            cases = []
        ports = []
        for index, case in enumerate(cases):
            label = case.get("label") if isinstance(case, dict) else None
            ports.append(OutputPort(
                id=self.case_port(index),
                label=label or f"Case {index + 1}",
            ))
        ports.append(OutputPort(id=DEFAULT_PORT, label="Default", description="No case matched"))
        return ports

    def check_config(self, config: Dict[str, Any]) -> List[ConfigIssue]:
        issues: List[ConfigIssue] = []
        cases = config.get("cases")
        if cases is not None and not isinstance(cases, list):
            return [ConfigIssue("cases", "Cases must be a list", required=True)]
        if not str(config.get("field") or "").strip():
            issues.append(ConfigIssue("field", "No field selected for the switch"))

        seen = set()
        for index, case in enumerate(cases or []):
            if not isinstance(case, dict):
                issues.append(ConfigIssue(f"cases.{index}", "Case must be an object", required=True))
                continue
            value = case.get("value")
            if value in (None, ""):
                issues.append(ConfigIssue(f"cases.{index}.value", f"Case {index + 1} has no value"))
            elif value in seen:
                issues.append(ConfigIssue(f"cases.{index}.value", f"Duplicate case value '{value}'"))
            else:
                seen.add(value)
        return issues


# ============================================================================
# LOOP
# ============================================================================


@register_node
class LoopNode(ControlNode):
    """Repeat the body branch, then continue on ``exit``."""

    node_type = "loop"
    label = "Loop"
    description = "Repeat a sequence of actions"
    icon = "rotate-ccw"
    renderer_id = "loopNode"

    parameters = [
        NodeParameter(
            name="loopType",
            label="Loop type",
            type="select",
            default="for",
            required=True,
            options=[{"value": t, "label": t} for t in LOOP_TYPES],
            group="loop",
        ),
        NodeParameter(
            name="iterations",
            label="Iterations",
            type="number",
            default=1,
            min=1,
            description="Number of repetitions (for loops).",
            group="loop",
        ),
        NodeParameter(
            name="condition",
            label="Condition",
            default="",
            description="Continue while this expression holds (while loops).",
            group="loop",
        ),
    ]

    output_ports = [
        OutputPort(id="loop-body", label="Body", description="Executed each iteration"),
        OutputPort(id="exit", label="Exit", description="Taken when the loop ends"),
    ]

    def check_config(self, config: Dict[str, Any]) -> List[ConfigIssue]:
        loop_type = config.get("loopType")
        if loop_type not in LOOP_TYPES:
            return [ConfigIssue("loopType", f"Unknown loop type '{loop_type}'", required=True)]

        if loop_type == "for":
            iterations = _as_int(config.get("iterations"))
            if iterations is None or iterations < 1:
                return [ConfigIssue(
                    "iterations",
                    "A for loop needs at least 1 iteration",
                    required=True,
                )]
        elif not str(config.get("condition") or "").strip():
            return [ConfigIssue(
                "condition",
                "A while loop needs a condition",
                required=True,
            )]
        return []


# ============================================================================
# PARALLEL
# ============================================================================


@register_node
class ParallelNode(ControlNode):
    """Fan out to N branches, then continue on ``merged``."""

    node_type = "parallel"
    label = "Parallel"
    description = "Run several branches in parallel"
    icon = "split"
    renderer_id = "parallelNode"

    parameters = [
        NodeParameter(
            name="branches",
            label="Branches",
            type="number",
            default=2,
            required=True,
            min=2,
            group="parallel",
        ),
        NodeParameter(
            name="waitForAll",
            label="Wait for all branches",
            type="boolean",
            default=True,
            group="parallel",
        ),
    ]

    output_ports = [
        OutputPort(id="branch-0", label="Branch 1"),
        OutputPort(id="branch-1", label="Branch 2"),
        OutputPort(id="merged", label="Merged", description="After the branches complete"),
    ]

    def branch_count(self, config: Dict[str, Any]) -> int:
        count = _as_int(config.get("branches"))
        return count if count is not None and count > 0 else 2

    def get_dynamic_output_ports(self, config: Dict[str, Any]) -> List[OutputPort]:
        ports = [
            OutputPort(id=f"branch-{i}", label=f"Branch {i + 1}")
            for i in range(self.branch_count(config))
        ]
        ports.append(OutputPort(id="merged", label="Merged", description="After the branches complete"))
        return ports

    def check_config(self, config: Dict[str, Any]) -> List[ConfigIssue]:
        if config.get("branches") is None:
            return []
        count = _as_int(config.get("branches"))
        if count is None or count < 2:
            return [ConfigIssue("branches", "A parallel node needs at least 2 branches", required=True)]
        if "waitForAll" in config and not isinstance(config["waitForAll"], bool):
            return [ConfigIssue("waitForAll", "'Wait for all branches' must be true or false")]
        return []


# ============================================================================
# TRY / CATCH
# ============================================================================


@register_node
class TryCatchNode(ControlNode):
    """Error handling with retries; defaults always apply."""

    node_type = "try-catch"
    label = "TRY / CATCH"
    description = "Handle errors and retries"
    icon = "shield"
    renderer_id = "tryCatchNode"

    parameters = [
        NodeParameter(
            name="retryCount",
            label="Retry count",
            type="number",
            default=3,
            min=0,
            group="errors",
        ),
        NodeParameter(
            name="retryDelay",
            label="Retry delay (seconds)",
            type="number",
            default=1,
            min=0,
            group="errors",
        ),
        NodeParameter(
            name="logErrors",
            label="Log errors",
            type="boolean",
            default=True,
            group="errors",
        ),
    ]

    output_ports = [
        OutputPort(id="try", label="Try", description="Protected block"),
        OutputPort(id="catch", label="Catch", description="On error"),
        OutputPort(id="finally", label="Finally", description="Always executed"),
    ]

    def check_config(self, config: Dict[str, Any]) -> List[ConfigIssue]:
        issues: List[ConfigIssue] = []
        retry_count = config.get("retryCount")
        if retry_count is not None:
            parsed = _as_int(retry_count)
            if parsed is None or parsed < 0:
                issues.append(ConfigIssue("retryCount", "Retry count must be a non-negative integer"))
        retry_delay = config.get("retryDelay")
        if retry_delay is not None:
            parsed_delay = _as_number(retry_delay)
            if parsed_delay is None or parsed_delay < 0:
                issues.append(ConfigIssue("retryDelay", "Retry delay must be a non-negative number"))
        return issues
