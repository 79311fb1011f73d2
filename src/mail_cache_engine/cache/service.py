"""Per-user facade over the mail cache."""

from __future__ import annotations

from collections.abc import Callable
from datetime import datetime, timezone

import structlog

from mail_cache_engine.accounts import AccountDirectory, load_user_context
from mail_cache_engine.cache.enrichment import EnrichmentPipeline
from mail_cache_engine.cache.ids import CompositeId, CompositeIdCodec
from mail_cache_engine.cache.importer import ImportPipeline
from mail_cache_engine.cache.reader import CacheReader, MessageSearch
from mail_cache_engine.cache.repository import CacheRepository
from mail_cache_engine.cache.views import ViewMaintainer
from mail_cache_engine.config import Settings
from mail_cache_engine.exceptions import MissingParameterError
from mail_cache_engine.mail_source import MailSourceFactory
from mail_cache_engine.models import CachedMessage, UserContext
from mail_cache_engine.ollama import TextEnrichmentClient
from mail_cache_engine.store import DocumentStore

logger = structlog.get_logger()


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class MailCacheService:
    """The mail cache of one user.

    Wires the import and enrichment pipelines, view maintenance and the
    reader around a shared document store. Use :meth:`create` to load the
    user's contacts and knowledge from the store.
    """

    def __init__(
        self,
        user_id: str,
        store: DocumentStore,
        accounts: AccountDirectory,
        source_factory: MailSourceFactory,
        client: TextEnrichmentClient,
        settings: Settings | None = None,
        *,
        user_context: UserContext | None = None,
        search: MessageSearch | None = None,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        from mail_cache_engine.config import get_settings

        if not user_id:
            raise MissingParameterError("Required parameter missing: user_id")

        self.settings = settings or get_settings()
        self.user_id = user_id
        self.user_context = user_context or UserContext()
        self.store = store

        self.codec = CompositeIdCodec(user_id, self.settings.id_user_prefix_length)
        self.repository = CacheRepository.for_user(store, user_id, self.settings)
        self.importer = ImportPipeline(store, accounts, source_factory, self.settings)
        self.enrichment = EnrichmentPipeline(store, client, self.settings, clock=clock)
        self.views = ViewMaintainer(self.repository, contacts=self.user_context.contacts_block(), clock=clock)
        self.reader = CacheReader(self.repository, search, default_limit=self.settings.default_search_limit)

    @classmethod
    async def create(
        cls,
        user_id: str,
        store: DocumentStore,
        accounts: AccountDirectory,
        source_factory: MailSourceFactory,
        client: TextEnrichmentClient,
        settings: Settings | None = None,
        **kwargs,
    ) -> MailCacheService:
        """Build a service with the user's contacts and knowledge loaded."""
        from mail_cache_engine.config import get_settings

        if not user_id:
            raise MissingParameterError("Required parameter missing: user_id")

        settings = settings or get_settings()
        user_context = await load_user_context(store, settings.context_collection, user_id)
        return cls(
            user_id,
            store,
            accounts,
            source_factory,
            client,
            settings,
            user_context=user_context,
            **kwargs,
        )

    # Pipelines

    async def import_new_messages(self) -> list[str]:
        return await self.importer.import_new_messages(self.user_id)

    async def process_summarization_queue(self) -> list[str]:
        return await self.enrichment.process_summarization_queue(self.user_id, self.user_context)

    async def refresh(self) -> None:
        """Import new mail, then enrich everything queued."""
        new_ids = await self.import_new_messages()
        processed = await self.process_summarization_queue()
        logger.info("cache_refreshed", user_id=self.user_id, imported=len(new_ids), enriched=len(processed))

    async def rescore(self, *, with_decay: bool = False) -> None:
        await self.views.rescore(with_decay=with_decay)

    async def reset_summarization_queue(self) -> int:
        return await self.enrichment.reset_summarization_queue(self.user_id)

    async def take_new_mail(self) -> list[str]:
        return await self.enrichment.take_new_mail(self.user_id)

    # Views

    async def archive(self, id: str) -> None:
        await self.views.archive(id)

    async def get_inbox(self) -> list[str]:
        return await self.reader.get_inbox()

    async def get_deletables(self) -> list[str]:
        return await self.reader.get_deletables()

    # Lookups

    async def get(self, id: str) -> CachedMessage | None:
        return await self.reader.get(id)

    async def get_brief(self, id: str) -> CachedMessage:
        return await self.reader.get_brief(id)

    async def get_by_account(self, account_id: str, limit: int | None = None) -> list[CachedMessage]:
        return await self.reader.get_by_account(account_id, limit)

    async def delete(self, id: str) -> None:
        """Delete a message document. The index is left untouched."""
        if not id:
            raise MissingParameterError("Required parameter missing: id")
        await self.repository.delete_message(id)

    # Queries

    async def search_by_label(self, label: str, limit: int | None = None) -> list[CachedMessage]:
        return await self.reader.search_by_label(label, limit)

    async def search_by_priority(self, priority_label: str, limit: int | None = None) -> list[CachedMessage]:
        return await self.reader.search_by_priority(priority_label, limit)

    async def search_by_date_range(
        self, start: datetime | str, end: datetime | str, limit: int | None = None
    ) -> list[CachedMessage]:
        return await self.reader.search_by_date_range(start, end, limit)

    async def search_by_sentiment(self, sentiment: str, limit: int | None = None) -> list[CachedMessage]:
        return await self.reader.search_by_sentiment(sentiment, limit)

    async def search_by_importance(
        self, min_score: float = 0.0, max_score: float = 1.0, limit: int | None = None
    ) -> list[CachedMessage]:
        return await self.reader.search_by_importance(min_score, max_score, limit)

    async def search_by_category(self, category: str, limit: int | None = None) -> list[CachedMessage]:
        return await self.reader.search_by_category(category, limit)

    async def search_by_spam(
        self, min_score: float = 0.0, max_score: float = 1.0, limit: int | None = None
    ) -> list[CachedMessage]:
        return await self.reader.search_by_spam(min_score, max_score, limit)

    async def search(self, query: str, limit: int | None = None) -> list[CachedMessage]:
        return await self.reader.search(query, limit)

    # IDs

    def compose_id(self, account_id: str, provider_id: str) -> str:
        return self.codec.compose(account_id, provider_id)

    def decompose_id(self, id: str) -> CompositeId:
        return self.codec.decompose(id)
