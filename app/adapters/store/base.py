"""Document store interface."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Iterable, Literal

FilterOperator = Literal["eq", "in", "gt", "gte", "lt", "lte"]


@dataclass(frozen=True)
class FieldFilter:
    """One condition on a document field.

    Attributes:
        field: Document key the condition applies to.
        op: Comparison operator.
        value: Right-hand side; a tuple of candidates for ``in``.
    """

    field: str
    op: FilterOperator
    value: Any


class AbstractDocumentStore(ABC):
    """Interface for a single collection of JSON-like documents."""

    @abstractmethod
    def find(self, filters: Iterable[FieldFilter] = ()) -> list[dict[str, Any]]:
        """Return copies of every document matching all ``filters``."""
        raise NotImplementedError

    @abstractmethod
    def get(self, doc_id: str) -> dict[str, Any] | None:
        """Return a copy of the document with ``doc_id`` or None."""
        raise NotImplementedError

    @abstractmethod
    def insert(self, document: dict[str, Any]) -> dict[str, Any]:
        """Store a new document, assigning an ``id``, and return it."""
        raise NotImplementedError

    @abstractmethod
    def update(self, doc_id: str, changes: dict[str, Any]) -> dict[str, Any] | None:
        """Merge ``changes`` into a document; None when it does not exist."""
        raise NotImplementedError

    @abstractmethod
    def delete(self, doc_id: str) -> bool:
        """Remove a document; False when it does not exist."""
        raise NotImplementedError

    def find_one(self, filters: Iterable[FieldFilter]) -> dict[str, Any] | None:
        matches = self.find(filters)
        return matches[0] if matches else None
