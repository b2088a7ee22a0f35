"""Shared pytest fixtures for the workflow builder tests."""

from typing import List, Tuple

import pytest

from flowdesk.config import WorkflowBuilderConfig, reset_config_cache
from flowdesk.workflow.localization import Translator, set_translator
from flowdesk.workflow.nodes import get_node_registry
from flowdesk.workflow.workflow_editor import WorkflowEditor
from flowdesk.workflow.workflow_graph import WorkflowGraph
from flowdesk.workflow.workflow_model import Position
from flowdesk.workflow.workflow_store import (
    InMemoryWorkflowStore,
    JsonFileWorkflowStore,
    WorkflowStorage,
)


class RecordingNotifier:
    """Notifier that keeps every message for assertions."""

    def __init__(self) -> None:
        self.messages: List[Tuple[str, str]] = []

    def success(self, message: str) -> None:
        self.messages.append(("success", message))

    def info(self, message: str) -> None:
        self.messages.append(("info", message))

    def warning(self, message: str) -> None:
        self.messages.append(("warning", message))

    def error(self, message: str) -> None:
        self.messages.append(("error", message))

    def of(self, level: str) -> List[str]:
        return [m for lvl, m in self.messages if lvl == level]


@pytest.fixture(autouse=True)
def english_locale():
    """Every test starts from the English catalog and a fresh config cache."""
    set_translator(Translator("en"))
    yield
    set_translator(None)
    reset_config_cache()


@pytest.fixture
def registry():
    return get_node_registry()


@pytest.fixture
def translator():
    return Translator("en")


@pytest.fixture
def graph(registry, translator):
    return WorkflowGraph(registry=registry, translator=translator)


@pytest.fixture
def pipeline(graph):
    """trigger → if-else → {email on true, contact on false}."""
    graph.add_node("trigger", Position(x=0, y=0), node_id="start")
    graph.add_node("if-else", Position(x=200, y=0), node_id="branch")
    graph.add_node("email", Position(x=400, y=-100), node_id="mail")
    graph.add_node("contact", Position(x=400, y=100), node_id="person")
    graph.set_node_config("branch", {
        "condition": {"field": "status", "operator": "equals", "value": "active"},
    })
    graph.set_node_config("mail", {"emailData": {"subject": "Welcome"}, "name": "Welcome mail"})
    graph.add_edge("start", "branch", edge_id="e-start")
    graph.add_edge("branch", "mail", source_handle="true", edge_id="e-true")
    graph.add_edge("branch", "person", source_handle="false", edge_id="e-false")
    return graph


@pytest.fixture
def memory_store():
    return InMemoryWorkflowStore()


@pytest.fixture
def file_store(tmp_path):
    return JsonFileWorkflowStore(tmp_path / "workflows.json")


@pytest.fixture
def storage(memory_store):
    return WorkflowStorage(memory_store)


@pytest.fixture
def builder_config():
    return WorkflowBuilderConfig(run_delay_seconds=0)


@pytest.fixture
def notifier():
    return RecordingNotifier()


@pytest.fixture
def editor(storage, registry, translator, notifier, builder_config):
    return WorkflowEditor(
        storage=storage,
        registry=registry,
        translator=translator,
        notifier=notifier,
        config=builder_config,
    )
