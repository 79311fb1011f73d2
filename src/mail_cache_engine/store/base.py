"""Document store interface.

The cache treats persistence as a set of named collections of JSON documents
keyed by string IDs. Every call is transactional on its own; ``update`` is the
only way to read-modify-write a document without losing concurrent updates.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Any, Protocol, runtime_checkable

Document = dict[str, Any]

#: Receives the current document (None when absent) and returns the new one.
#: Raising aborts the transaction and leaves the stored document unchanged.
UpdateFn = Callable[[Document | None], Document]


@runtime_checkable
class DocumentStore(Protocol):
    """Async document store with per-document transactions."""

    async def read(self, collection: str, key: str) -> Document | None:
        """Return the document stored under key, or None."""
        ...

    async def write(self, collection: str, key: str, value: Document) -> None:
        """Replace the document stored under key."""
        ...

    async def update(self, collection: str, key: str, fn: UpdateFn) -> Document:
        """Atomically replace a document with ``fn(current)`` and return it."""
        ...

    async def query(self, collection: str, field: str, value: Any) -> list[Document]:
        """Return every document whose top-level field equals value."""
        ...

    async def delete(self, collection: str, key: str) -> None:
        """Delete the document stored under key, if any."""
        ...
