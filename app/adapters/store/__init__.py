"""Document store adapters.

Route groups talk to persistence through ``AbstractDocumentStore`` only; the
in-memory implementation backs local runs and tests.
"""

from app.adapters.store.base import AbstractDocumentStore, FieldFilter
from app.adapters.store.in_memory import InMemoryDocumentStore

__all__ = [
    "AbstractDocumentStore",
    "FieldFilter",
    "InMemoryDocumentStore",
]
