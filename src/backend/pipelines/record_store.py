from __future__ import annotations

import copy
import itertools
import logging
from contextlib import contextmanager
from typing import Any, Dict, Iterator, Optional, Protocol

from common.errors import PersistenceError
from connectors.firebase.client import (
    FirebaseHttpError,
    db_delete,
    db_get,
    db_patch,
    db_post,
    db_put,
    db_query_equal,
)
from connectors.firebase.config import FirebaseConfig, get_firebase_config

logger = logging.getLogger(__name__)


class RecordStore(Protocol):
    """Hierarchical key-path store with Realtime Database semantics.

    Writing `None` removes a node; `update` merges the given children into the
    node at `path` without touching siblings.
    """

    def get(self, path: str) -> Any:
        ...

    def set(self, path: str, value: Any) -> None:
        ...

    def update(self, path: str, fields: Dict[str, Any]) -> None:
        ...

    def push(self, path: str, value: Any) -> str:
        """Append `value` under a generated, time-ordered key and return the key."""
        ...

    def remove(self, path: str) -> None:
        ...

    def query_equal(self, path: str, child: str, value: Any) -> Dict[str, Any]:
        """Children of `path` whose `child` field equals `value`, keyed by child key."""
        ...


def get_record_store(name: str) -> RecordStore:
    """Resolve a record store implementation by name (memory|firebase)."""
    source = (name or "").strip().lower()
    if source in ("memory", ""):
        return InMemoryRecordStore()
    if source == "firebase":
        return FirebaseRecordStore()
    raise ValueError(f"Unknown record store '{name}' (expected 'memory' or 'firebase').")


def _split(path: str) -> list[str]:
    return [part for part in path.strip("/").split("/") if part]


class InMemoryRecordStore:
    def __init__(self, data: Optional[Dict[str, Any]] = None) -> None:
        self._root: Dict[str, Any] = copy.deepcopy(data) if data else {}
        self._push_ids = itertools.count(1)

    def snapshot(self) -> Dict[str, Any]:
        return copy.deepcopy(self._root)

    def get(self, path: str) -> Any:
        node: Any = self._root
        for part in _split(path):
            if not isinstance(node, dict) or part not in node:
                return None
            node = node[part]
        return copy.deepcopy(node)

    def set(self, path: str, value: Any) -> None:
        parts = _split(path)
        if not parts:
            raise PersistenceError("Refusing to overwrite the store root.", path=path)
        if value is None:
            self.remove(path)
            return
        parent = self._root
        for part in parts[:-1]:
            child = parent.get(part)
            if not isinstance(child, dict):
                child = {}
                parent[part] = child
            parent = child
        parent[parts[-1]] = copy.deepcopy(value)

    def update(self, path: str, fields: Dict[str, Any]) -> None:
        base = path.strip("/")
        for key, value in fields.items():
            # Keys may themselves be relative paths, as with a REST multi-path PATCH.
            self.set(f"{base}/{key}" if base else key, value)

    def push(self, path: str, value: Any) -> str:
        key = f"-M{next(self._push_ids):019d}"
        self.set(f"{path.strip('/')}/{key}", value)
        return key

    def remove(self, path: str) -> None:
        parts = _split(path)
        if not parts:
            self._root = {}
            return
        trail = [self._root]
        for part in parts[:-1]:
            node = trail[-1].get(part)
            if not isinstance(node, dict):
                return
            trail.append(node)
        trail[-1].pop(parts[-1], None)
        # Empty parents disappear, as they do in the hosted database.
        for depth in range(len(trail) - 1, 0, -1):
            if trail[depth]:
                break
            trail[depth - 1].pop(parts[depth - 1], None)

    def query_equal(self, path: str, child: str, value: Any) -> Dict[str, Any]:
        node = self.get(path)
        if not isinstance(node, dict):
            return {}
        return {
            key: record
            for key, record in node.items()
            if isinstance(record, dict) and record.get(child) == value
        }


class FirebaseRecordStore:
    """RecordStore backed by the Realtime Database REST API."""

    def __init__(self, config: Optional[FirebaseConfig] = None) -> None:
        self._config = config or get_firebase_config()

    def get(self, path: str) -> Any:
        with _persistence_errors("read", path):
            return db_get(self._config, path)

    def set(self, path: str, value: Any) -> None:
        with _persistence_errors("write", path):
            if value is None:
                db_delete(self._config, path)
            else:
                db_put(self._config, path, value)

    def update(self, path: str, fields: Dict[str, Any]) -> None:
        with _persistence_errors("update", path):
            db_patch(self._config, path, fields)

    def push(self, path: str, value: Any) -> str:
        with _persistence_errors("push", path):
            return db_post(self._config, path, value)

    def remove(self, path: str) -> None:
        with _persistence_errors("remove", path):
            db_delete(self._config, path)

    def query_equal(self, path: str, child: str, value: Any) -> Dict[str, Any]:
        with _persistence_errors("query", path):
            return db_query_equal(self._config, path, child, value)


@contextmanager
def _persistence_errors(action: str, path: str) -> Iterator[None]:
    """Translate connector failures into PersistenceError for the engines."""
    try:
        yield
    except FirebaseHttpError as exc:
        logger.error("Firebase %s failed at %s: %s", action, path, exc)
        raise PersistenceError(f"Failed to {action} {path}: {exc}", path=path) from exc
