"""In-process document store, used by tests and single-process tools."""

from __future__ import annotations

import asyncio
import copy
import weakref
from collections import defaultdict
from typing import Any

from mail_cache_engine.store.base import Document, UpdateFn


class InMemoryDocumentStore:
    """DocumentStore backed by nested dicts.

    Values are deep-copied on the way in and out so callers can never mutate
    stored state without going through the store.
    """

    def __init__(self) -> None:
        self._collections: dict[str, dict[str, Document]] = defaultdict(dict)
        # A lock lives only while some caller holds or waits on it.
        self._locks: weakref.WeakValueDictionary[tuple[str, str], asyncio.Lock] = weakref.WeakValueDictionary()

    def _lock(self, collection: str, key: str) -> asyncio.Lock:
        lock = self._locks.get((collection, key))
        if lock is None:
            lock = asyncio.Lock()
            self._locks[(collection, key)] = lock
        return lock

    async def read(self, collection: str, key: str) -> Document | None:
        async with self._lock(collection, key):
            value = self._collections[collection].get(key)
            return copy.deepcopy(value) if value is not None else None

    async def write(self, collection: str, key: str, value: Document) -> None:
        async with self._lock(collection, key):
            self._collections[collection][key] = copy.deepcopy(value)

    async def update(self, collection: str, key: str, fn: UpdateFn) -> Document:
        async with self._lock(collection, key):
            current = self._collections[collection].get(key)
            new_value = fn(copy.deepcopy(current) if current is not None else None)
            self._collections[collection][key] = copy.deepcopy(new_value)
            return copy.deepcopy(new_value)

    async def query(self, collection: str, field: str, value: Any) -> list[Document]:
        return [
            copy.deepcopy(doc)
            for doc in list(self._collections[collection].values())
            if doc.get(field) == value
        ]

    async def delete(self, collection: str, key: str) -> None:
        async with self._lock(collection, key):
            self._collections[collection].pop(key, None)

    def keys(self, collection: str) -> list[str]:
        """Return the keys currently stored in a collection."""
        return list(self._collections[collection])
