"""Document store adapters."""

from .base import Document, DocumentStore, UpdateFn
from .memory import InMemoryDocumentStore
from .sqlite import SqliteDocumentStore

__all__ = [
    "Document",
    "DocumentStore",
    "InMemoryDocumentStore",
    "SqliteDocumentStore",
    "UpdateFn",
]
