"""
AI Nodes — LLM-backed writing, analysis and personalization steps.

Only their configuration lives here; invoking a model is outside the
builder.
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

MODEL_OPTIONS = [
    {"value": "gpt-4o-mini", "label": "GPT-4o mini"},
    {"value": "gpt-4o", "label": "GPT-4o"},
    {"value": "claude-sonnet", "label": "Claude Sonnet"},
]


def _llm_parameters(objective: str) -> List[NodeParameter]:
    return common_parameters() + [
        NodeParameter(
            name="model",
            label="Model",
            type="select",
            default="gpt-4o-mini",
            options=MODEL_OPTIONS,
            group="ai",
        ),
        NodeParameter(name="objective", label="Objective", default=objective, group="ai"),
        NodeParameter(name="systemPrompt", label="System prompt", type="text", default="", group="prompt"),
        NodeParameter(name="userPrompt", label="User prompt", type="text", default="", group="prompt"),
        NodeParameter(
            name="temperature",
            label="Temperature",
            type="number",
            default=0.7,
            min=0,
            max=2,
            group="ai",
        ),
        NodeParameter(
            name="maxTokens",
            label="Max tokens",
            type="number",
            default=1000,
            min=1,
            max=32000,
            group="ai",
        ),
    ]


class LLMNode(NodeTypeSpec):
    category = NodeCategory.AI
    color = "#f59e0b"

    def check_config(self, config: Dict[str, Any]) -> List[ConfigIssue]:
        issues: List[ConfigIssue] = []
        temperature = config.get("temperature")
        if temperature is not None and (
            isinstance(temperature, bool)
            or not isinstance(temperature, (int, float))
            or not 0 <= temperature <= 2
        ):
            issues.append(ConfigIssue("temperature", "Temperature must be between 0 and 2"))
        max_tokens = config.get("maxTokens")
        if max_tokens is not None and (
            isinstance(max_tokens, bool) or not isinstance(max_tokens, int) or max_tokens < 1
        ):
            issues.append(ConfigIssue("maxTokens", "Max tokens must be a positive integer"))
        return issues


@register_node
class LLMWriterNode(LLMNode):
    """Generate text content."""

    node_type = "llm-writer"
    label = "AI Writer"
    description = "Generate content with an LLM"
    icon = "brain"
    parameters = _llm_parameters("write")


@register_node
class LLMAnalyzerNode(LLMNode):
    """Analyze incoming data."""

    node_type = "llm-analyzer"
    label = "AI Analyzer"
    description = "Analyze data with an LLM"
    icon = "bot"
    parameters = _llm_parameters("analyze")


@register_node
class LLMPersonalizerNode(LLMNode):
    """Personalize content for a recipient."""

    node_type = "llm-personalizer"
    label = "AI Personalizer"
    description = "Personalize content with an LLM"
    icon = "sparkles"
    parameters = _llm_parameters("personalize")
