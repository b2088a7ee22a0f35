"""
Workflow Store — persistence for named workflow snapshots.

``WorkflowStorage`` keeps the list of ``SavedWorkflow`` objects and the
"current" workflow id in memory and writes the full list through a
``WorkflowStore`` back end after every mutation (get-all / set-all).

The list is serialized before anything changes. If serialization or the
write fails, the in-memory list and the current id keep (or get back)
their previous values and ``PersistenceError`` is raised, so the
operation is treated as not having happened.
"""

from __future__ import annotations

import json
from abc import ABC, abstractmethod
from datetime import timedelta
from logging import getLogger
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, Union

from pydantic import ValidationError

from flowdesk.workflow.errors import PersistenceError
from flowdesk.workflow.workflow_model import (
    SavedWorkflow,
    WorkflowEdge,
    WorkflowNode,
    new_workflow_id,
    utc_now,
)

logger = getLogger(__name__)


# ============================================================================
# Back ends
# ============================================================================


class WorkflowStore(ABC):
    """Get-all / set-all key-value back end."""

    @abstractmethod
    def read_all(self) -> List[Dict[str, Any]]:
        ...

    @abstractmethod
    def write_all(self, workflows: List[Dict[str, Any]]) -> None:
        ...


class InMemoryWorkflowStore(WorkflowStore):
    """Keeps the serialized list in memory. Used by tests and previews."""

    def __init__(self, workflows: Optional[List[Dict[str, Any]]] = None) -> None:
        self._data: List[Dict[str, Any]] = json.loads(json.dumps(workflows or []))
        self.writes = 0

    def read_all(self) -> List[Dict[str, Any]]:
        return json.loads(json.dumps(self._data))

    def write_all(self, workflows: List[Dict[str, Any]]) -> None:
        self._data = json.loads(json.dumps(workflows))
        self.writes += 1


class JsonFileWorkflowStore(WorkflowStore):
    """One JSON file holding ``{key: [workflow, ...]}``."""

    def __init__(self, path: Union[str, Path], key: str = "workflows") -> None:
        self._path = Path(path)
        self._key = key
        logger.info(f"WorkflowStore initialized at {self._path} (key={key})")

    @property
    def path(self) -> Path:
        return self._path

    def read_all(self) -> List[Dict[str, Any]]:
        if not self._path.exists():
            return []
        try:
            data = json.loads(self._path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as e:
            logger.warning(f"Unreadable workflow store {self._path}, starting empty: {e}")
            return []
        items = data.get(self._key) if isinstance(data, dict) else None
        if not isinstance(items, list):
            logger.warning(f"Workflow store {self._path} has no '{self._key}' list, starting empty")
            return []
        return items

    def write_all(self, workflows: List[Dict[str, Any]]) -> None:
        data: Dict[str, Any] = {}
        if self._path.exists():
            try:
                existing = json.loads(self._path.read_text(encoding="utf-8"))
                if isinstance(existing, dict):
                    data = existing
            except (OSError, ValueError):
                data = {}
        data[self._key] = workflows

        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            tmp = self._path.with_suffix(self._path.suffix + ".tmp")
            tmp.write_text(json.dumps(data, indent=2, ensure_ascii=False), encoding="utf-8")
            tmp.replace(self._path)
        except OSError as e:
            raise PersistenceError(f"Could not write workflows to {self._path}: {e}") from e


# ============================================================================
# Storage
# ============================================================================


class WorkflowStorage:
    """Named workflow snapshots plus the "current workflow" pointer."""

    def __init__(self, store: Optional[WorkflowStore] = None) -> None:
        self._store = store or InMemoryWorkflowStore()
        self._workflows: List[SavedWorkflow] = self._read()
        self._current_id: Optional[str] = None
        logger.info(f"WorkflowStorage loaded {len(self._workflows)} workflow(s)")

    def _read(self) -> List[SavedWorkflow]:
        workflows: List[SavedWorkflow] = []
        for i, item in enumerate(self._store.read_all()):
            try:
                workflows.append(SavedWorkflow.model_validate(item))
            except ValidationError as e:
                logger.warning(f"Skipping malformed stored workflow at index {i}: {e}")
        return workflows

    # ── Reads ──

    def list(self) -> List[SavedWorkflow]:
        return [w.model_copy(deep=True) for w in self._workflows]

    def get(self, workflow_id: str) -> Optional[SavedWorkflow]:
        wf = self._find(workflow_id)
        return wf.model_copy(deep=True) if wf else None

    @property
    def current_id(self) -> Optional[str]:
        return self._current_id

    @property
    def current(self) -> Optional[SavedWorkflow]:
        return self.get(self._current_id) if self._current_id else None

    # ── Mutations ──

    def save(
        self,
        name: str,
        description: Optional[str],
        nodes: Sequence[WorkflowNode],
        edges: Sequence[WorkflowEdge],
    ) -> SavedWorkflow:
        """Overwrite the current workflow, or create one and make it current."""
        nodes = [n.model_copy(deep=True) for n in nodes]
        edges = [e.model_copy(deep=True) for e in edges]
        existing = self._find(self._current_id) if self._current_id else None

        if existing is not None:
            updated = existing.model_copy(update={
                "name": name,
                "description": description,
                "nodes": nodes,
                "edges": edges,
            })
            updated.touch()
            new_list = [updated if w.id == updated.id else w for w in self._workflows]
            self._commit(new_list, self._current_id)
            logger.info(f"Workflow updated: {name} ({updated.id})")
            return updated.model_copy(deep=True)

        now = utc_now()
        created = SavedWorkflow(
            id=new_workflow_id(),
            name=name,
            description=description,
            nodes=nodes,
            edges=edges,
            created_at=now,
            updated_at=now,
        )
        self._commit(self._workflows + [created], created.id)
        logger.info(f"Workflow saved: {name} ({created.id})")
        return created.model_copy(deep=True)

    def load(self, workflow_id: str) -> Optional[SavedWorkflow]:
        """Make ``workflow_id`` current and return its snapshot."""
        wf = self._find(workflow_id)
        if wf is None:
            logger.warning(f"Workflow not found: {workflow_id}")
            return None
        self._current_id = wf.id
        return wf.model_copy(deep=True)

    def duplicate(self, workflow_id: str) -> Optional[SavedWorkflow]:
        """Clone under a new id and ``"<name> (Copy)"``. Current is unchanged."""
        original = self._find(workflow_id)
        if original is None:
            return None
        now = utc_now()
        if now <= original.created_at:
            now = original.created_at + timedelta(microseconds=1)
        clone = original.model_copy(deep=True, update={
            "id": new_workflow_id(),
            "name": f"{original.name} (Copy)",
            "created_at": now,
            "updated_at": now,
        })
        self._commit(self._workflows + [clone], self._current_id)
        logger.info(f"Workflow duplicated: {original.id} → {clone.id}")
        return clone.model_copy(deep=True)

    def delete(self, workflow_id: str) -> bool:
        if self._find(workflow_id) is None:
            return False
        current = None if self._current_id == workflow_id else self._current_id
        self._commit([w for w in self._workflows if w.id != workflow_id], current)
        logger.info(f"Workflow deleted: {workflow_id}")
        return True

    def put(self, workflow: SavedWorkflow) -> SavedWorkflow:
        """Insert or replace by id without touching the current pointer."""
        stored = workflow.model_copy(deep=True)
        if self._find(stored.id) is None:
            new_list = self._workflows + [stored]
        else:
            new_list = [stored if w.id == stored.id else w for w in self._workflows]
        self._commit(new_list, self._current_id)
        return stored.model_copy(deep=True)

    def new_workflow(self) -> None:
        """Start an unsaved workflow: the next save creates a new entry."""
        self._current_id = None

    # ── Internals ──

    def _find(self, workflow_id: Optional[str]) -> Optional[SavedWorkflow]:
        for w in self._workflows:
            if w.id == workflow_id:
                return w
        return None

    def _commit(self, workflows: List[SavedWorkflow], current_id: Optional[str]) -> None:
        try:
            payload = [w.to_storage() for w in workflows]
        except (TypeError, ValueError) as e:
            # PydanticSerializationError is a ValueError.
            logger.error(f"Workflow serialization failed; nothing written: {e}")
            raise PersistenceError(f"Could not serialize workflows: {e}") from e

        previous = (self._workflows, self._current_id)
        self._workflows, self._current_id = workflows, current_id
        try:
            self._store.write_all(payload)
        except PersistenceError:
            self._workflows, self._current_id = previous
            logger.error("Workflow persistence failed; changes rolled back")
            raise
        except (OSError, TypeError, ValueError) as e:
            self._workflows, self._current_id = previous
            logger.error(f"Workflow persistence failed; changes rolled back: {e}")
            raise PersistenceError(f"Could not persist workflows: {e}") from e


# ── Singleton ──

_storage_instance: Optional[WorkflowStorage] = None


def get_workflow_storage() -> WorkflowStorage:
    """Return the global WorkflowStorage singleton (file-backed)."""
    global _storage_instance
    if _storage_instance is None:
        from flowdesk.config import get_config
        cfg = get_config("workflow_builder")
        _storage_instance = WorkflowStorage(
            JsonFileWorkflowStore(cfg.storage_path, cfg.storage_key),
        )
    return _storage_instance
