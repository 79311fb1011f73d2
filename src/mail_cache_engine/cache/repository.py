"""Typed access to one user's cached messages and cache index."""

from __future__ import annotations

from collections.abc import Callable
from datetime import datetime, timezone

from mail_cache_engine.config import Settings
from mail_cache_engine.exceptions import NotFoundError
from mail_cache_engine.models import CachedMessage, UserCacheIndex, index_key
from mail_cache_engine.store import Document, DocumentStore


class CacheRepository:
    """Reads and writes message and index documents through a DocumentStore.

    Message documents are keyed by composite ID, the index by
    ``user#{userId}#cached-ids``. All read-modify-write paths go through the
    store's transactional ``update``.
    """

    def __init__(
        self,
        store: DocumentStore,
        user_id: str,
        *,
        messages_collection: str = "mail-cache-messages",
        index_collection: str = "mail-cache-index",
    ) -> None:
        self.store = store
        self.user_id = user_id
        self.messages_collection = messages_collection
        self.index_collection = index_collection
        self.index_key = index_key(user_id)

    @classmethod
    def for_user(cls, store: DocumentStore, user_id: str, settings: Settings) -> CacheRepository:
        return cls(
            store,
            user_id,
            messages_collection=settings.messages_collection,
            index_collection=settings.index_collection,
        )

    # Messages

    async def get_message(self, id: str) -> CachedMessage | None:
        doc = await self.store.read(self.messages_collection, id)
        return CachedMessage.from_document(doc) if doc is not None else None

    async def put_message(self, message: CachedMessage) -> None:
        await self.store.write(self.messages_collection, message.id, message.to_document())

    async def update_message(
        self, id: str, fn: Callable[[CachedMessage], CachedMessage]
    ) -> CachedMessage:
        """Transactionally replace a message with ``fn(current)``.

        Raises:
            NotFoundError: If no message is stored under id.
        """

        def apply(doc: Document | None) -> Document:
            if doc is None:
                raise NotFoundError(f"Message not found: {id}")
            return fn(CachedMessage.from_document(doc)).to_document()

        return CachedMessage.from_document(await self.store.update(self.messages_collection, id, apply))

    async def delete_message(self, id: str) -> None:
        await self.store.delete(self.messages_collection, id)

    async def messages_for_account(self, account_id: str) -> list[CachedMessage]:
        docs = await self.store.query(self.messages_collection, "accountId", account_id)
        return [
            CachedMessage.from_document(doc) for doc in docs if doc.get("userId") == self.user_id
        ]

    # Index

    async def get_index(self) -> UserCacheIndex | None:
        doc = await self.store.read(self.index_collection, self.index_key)
        return UserCacheIndex.from_document(doc) if doc is not None else None

    async def load_index(self) -> UserCacheIndex:
        """Return the stored index, or a fresh empty one."""
        return await self.get_index() or UserCacheIndex.empty(self.user_id)

    async def update_index(
        self, fn: Callable[[UserCacheIndex], UserCacheIndex]
    ) -> UserCacheIndex:
        """Transactionally replace the index with ``fn(current)``, stamping ``updated_at``.

        A missing index is passed to fn as an empty one.
        """

        def apply(doc: Document | None) -> Document:
            current = UserCacheIndex.from_document(doc) if doc is not None else UserCacheIndex.empty(self.user_id)
            updated = fn(current)
            updated.updated_at = datetime.now(timezone.utc)
            return updated.to_document()

        return UserCacheIndex.from_document(await self.store.update(self.index_collection, self.index_key, apply))
