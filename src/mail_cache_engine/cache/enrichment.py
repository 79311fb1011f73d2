"""Draining of the summarization queue.

Each queued message is summarized by the language model, run through the
ordered scoring passes and written back. Messages in a batch run
concurrently; batches run one after another so at most ``batch_size`` model
calls are in flight. A message that fails stays queued for a later pass.
"""

from __future__ import annotations

import asyncio
from collections.abc import Callable
from datetime import datetime, timezone

import structlog

from mail_cache_engine.cache.repository import CacheRepository
from mail_cache_engine.cache.views import ViewMaintainer
from mail_cache_engine.config import Settings
from mail_cache_engine.enrichment import Summarizer, apply_enrichment
from mail_cache_engine.exceptions import MissingParameterError, NotFoundError
from mail_cache_engine.models import CachedMessage, UserCacheIndex, UserContext
from mail_cache_engine.ollama import TextEnrichmentClient
from mail_cache_engine.scoring import ScoringContext, run_scoring_passes
from mail_cache_engine.store import DocumentStore

logger = structlog.get_logger()


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class EnrichmentPipeline:
    """Enriches queued messages in bounded batches."""

    def __init__(
        self,
        store: DocumentStore,
        client: TextEnrichmentClient,
        settings: Settings | None = None,
        *,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        from mail_cache_engine.config import get_settings

        self.settings = settings or get_settings()
        self._store = store
        self._client = client
        self._clock = clock

    async def process_summarization_queue(
        self, user_id: str, user_context: UserContext | None = None
    ) -> list[str]:
        """Enrich every queued message of a user and rebuild the views.

        Args:
            user_id: The user whose queue is drained.
            user_context: Contacts and knowledge injected into prompts.

        Returns:
            IDs enriched successfully, in queue order.
        """
        if not user_id:
            raise MissingParameterError("Required parameter missing: user_id")

        user_context = user_context or UserContext()
        repository = CacheRepository.for_user(self._store, user_id, self.settings)
        views = ViewMaintainer(repository, contacts=user_context.contacts_block(), clock=self._clock)

        index = await repository.get_index()
        if index is None or not index.summarization_queue:
            logger.info("summarization_queue_empty", user_id=user_id)
            return []

        summarizer = Summarizer(self._client, user_context, body_char_limit=self.settings.body_char_limit)
        queue = list(dict.fromkeys(index.summarization_queue))
        batch_size = self.settings.enrichment_batch_size
        processed: list[str] = []

        logger.info("enrichment_started", user_id=user_id, remaining=len(queue))

        for start in range(0, len(queue), batch_size):
            batch = queue[start : start + batch_size]
            results = await asyncio.gather(
                *(self._enrich_one(repository, summarizer, views.scoring_context(), id) for id in batch)
            )
            done = {id for id, ok in zip(batch, results) if ok}
            processed.extend(id for id in batch if id in done)

            def dequeue(current: UserCacheIndex) -> UserCacheIndex:
                current.summarization_queue = [id for id in current.summarization_queue if id not in done]
                return current

            if done:
                await repository.update_index(dequeue)

            logger.info(
                "enrichment_batch_completed",
                user_id=user_id,
                batch_size=len(batch),
                succeeded=len(done),
                remaining=len(queue) - start - len(batch),
            )

        await views.update_inbox()
        logger.info("enrichment_completed", user_id=user_id, processed=len(processed))
        return processed

    async def _enrich_one(
        self,
        repository: CacheRepository,
        summarizer: Summarizer,
        context: ScoringContext,
        id: str,
    ) -> bool:
        """Enrich one message; True when it should leave the queue.

        The model reply is laid over the message as stored at write time, inside
        the store transaction, so changes made while the model ran are kept.
        """
        try:
            message = await repository.get_message(id)
            if message is None:
                logger.warning("enrichment_message_missing", message_id=id)
                return True

            result = await summarizer.analyze(message)

            def enrich(current: CachedMessage) -> CachedMessage:
                return run_scoring_passes(apply_enrichment(current, result, context.now), context)

            scored = await repository.update_message(id, enrich)
        except NotFoundError:
            logger.warning("enrichment_message_deleted", message_id=id)
            return True
        except Exception:
            logger.exception("enrichment_failed", user_id=repository.user_id, message_id=id)
            return False

        logger.debug(
            "message_enriched",
            message_id=id,
            priority=scored.priority_score,
            deletable=scored.deletable_score,
        )
        return True

    async def reset_summarization_queue(self, user_id: str) -> int:
        """Queue every inbox message for enrichment again; returns the queue length."""
        repository = CacheRepository.for_user(self._store, user_id, self.settings)
        index = await repository.get_index()
        if index is None or not index.inbox:
            logger.info("reset_queue_no_inbox", user_id=user_id)
            return 0

        def apply(current: UserCacheIndex) -> UserCacheIndex:
            current.summarization_queue = list(current.inbox)
            return current

        updated = await repository.update_index(apply)
        logger.info("summarization_queue_reset", user_id=user_id, count=len(updated.summarization_queue))
        return len(updated.summarization_queue)

    async def take_new_mail(self, user_id: str) -> list[str]:
        """Return the IDs not yet handed to consumers and clear the list."""
        repository = CacheRepository.for_user(self._store, user_id, self.settings)
        if await repository.get_index() is None:
            return []

        taken: list[str] = []

        def apply(current: UserCacheIndex) -> UserCacheIndex:
            taken.extend(current.new_mail)
            current.new_mail = []
            return current

        await repository.update_index(apply)
        return taken
