"""In-memory document store.

Documents are kept as plain dicts in insertion order. Reads return deep
copies so callers can never mutate stored state outside the lock.
"""

from __future__ import annotations

import copy
import threading
import uuid
from typing import Any, Iterable

from app.adapters.store.base import AbstractDocumentStore, FieldFilter


def _coerce_pair(left: Any, right: Any) -> tuple[Any, Any]:
    """Make query-string values comparable with stored values.

    Query values arrive as strings; numeric document fields are compared
    numerically when the string parses as a number.
    """
    if isinstance(left, bool) or isinstance(right, bool):
        if isinstance(right, str) and right.lower() in {"true", "false"}:
            return left, right.lower() == "true"
        return left, right
    if isinstance(left, (int, float)) and isinstance(right, str):
        try:
            return left, float(right)
        except ValueError:
            return str(left), right
    return left, right


def _matches(document: dict[str, Any], condition: FieldFilter) -> bool:
    if condition.field not in document:
        return False
    current = document[condition.field]

    if condition.op == "in":
        return any(
            _equal(current, candidate) for candidate in condition.value
        )
    if condition.op == "eq":
        return _equal(current, condition.value)

    left, right = _coerce_pair(current, condition.value)
    try:
        if condition.op == "gt":
            return left > right
        if condition.op == "gte":
            return left >= right
        if condition.op == "lt":
            return left < right
        if condition.op == "lte":
            return left <= right
    except TypeError:
        return False
    raise ValueError(f"Unsupported filter operator: {condition.op}")


def _equal(current: Any, value: Any) -> bool:
    left, right = _coerce_pair(current, value)
    return left == right


class InMemoryDocumentStore(AbstractDocumentStore):
    """Thread-safe dict-backed collection."""

    def __init__(self, name: str, documents: Iterable[dict[str, Any]] = ()) -> None:
        self.name = name
        self._lock = threading.RLock()
        self._documents: dict[str, dict[str, Any]] = {}
        for document in documents:
            self.insert(document)

    def __len__(self) -> int:
        with self._lock:
            return len(self._documents)

    def __repr__(self) -> str:  # pragma: no cover - representation only
        return f"InMemoryDocumentStore(name={self.name!r}, size={len(self)})"

    def find(self, filters: Iterable[FieldFilter] = ()) -> list[dict[str, Any]]:
        conditions = list(filters)
        with self._lock:
            return [
                copy.deepcopy(document)
                for document in self._documents.values()
                if all(_matches(document, condition) for condition in conditions)
            ]

    def get(self, doc_id: str) -> dict[str, Any] | None:
        with self._lock:
            document = self._documents.get(doc_id)
            return copy.deepcopy(document) if document is not None else None

    def insert(self, document: dict[str, Any]) -> dict[str, Any]:
        stored = copy.deepcopy(document)
        stored.setdefault("id", uuid.uuid4().hex)
        with self._lock:
            if stored["id"] in self._documents:
                raise ValueError(f"Duplicate id in {self.name}: {stored['id']}")
            self._documents[stored["id"]] = stored
            return copy.deepcopy(stored)

    def update(self, doc_id: str, changes: dict[str, Any]) -> dict[str, Any] | None:
        with self._lock:
            document = self._documents.get(doc_id)
            if document is None:
                return None
            document.update({k: v for k, v in copy.deepcopy(changes).items() if k != "id"})
            return copy.deepcopy(document)

    def delete(self, doc_id: str) -> bool:
        with self._lock:
            return self._documents.pop(doc_id, None) is not None
