"""Maintenance of the inbox and deletables views."""

from __future__ import annotations

import asyncio
from collections.abc import Callable
from datetime import datetime, timezone

import structlog

from mail_cache_engine.cache.repository import CacheRepository
from mail_cache_engine.exceptions import MissingParameterError, NotFoundError
from mail_cache_engine.models import CachedMessage, UserCacheIndex
from mail_cache_engine.scoring import ScoringContext, apply_advanced_scoring, apply_temporal_decay
from mail_cache_engine.scoring.pipeline import clamp_scores

logger = structlog.get_logger()


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ViewMaintainer:
    """Rebuilds the two sorted views and applies view-level mutations."""

    def __init__(
        self,
        repository: CacheRepository,
        *,
        contacts: str = "",
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._repository = repository
        self._contacts = contacts
        self._clock = clock

    def scoring_context(self) -> ScoringContext:
        return ScoringContext(now=self._clock(), contacts=self._contacts)

    async def update_inbox(self, index: UserCacheIndex | None = None) -> UserCacheIndex | None:
        """Re-sort the active set by priority and by deletable score.

        Sorting is stable and always a full re-sort. IDs whose message document
        no longer exists are dropped. IDs archived while the sort ran stay
        archived and IDs added to the inbox meanwhile are appended.
        """
        if index is None:
            index = await self._repository.get_index()
        if index is None:
            logger.info("update_inbox_no_index", user_id=self._repository.user_id)
            return None

        loaded = await asyncio.gather(*(self._repository.get_message(id) for id in index.inbox))
        messages = [m for m in loaded if m is not None]
        by_priority = [m.id for m in sorted(messages, key=lambda m: m.priority_score, reverse=True)]
        by_deletable = [m.id for m in sorted(messages, key=lambda m: m.deletable_score, reverse=True)]
        snapshot = set(index.inbox)

        def apply(current: UserCacheIndex) -> UserCacheIndex:
            active = set(current.inbox)
            added = [id for id in current.inbox if id not in snapshot]
            current.inbox = [id for id in by_priority if id in active] + added
            current.deletables = [id for id in by_deletable if id in active] + added
            return current

        updated = await self._repository.update_index(apply)
        logger.info("inbox_updated", user_id=self._repository.user_id, size=len(updated.inbox))
        return updated

    async def rescore(self, *, with_decay: bool = False) -> None:
        """Re-apply advanced scoring to every inbox message.

        The AI summary is not recomputed. Temporal decay is re-applied to
        messages that were already decayed, and to every message when
        with_decay is set. With the same clock, a second call changes nothing.
        """
        index = await self._repository.get_index()
        if index is None or not index.inbox:
            logger.info("rescore_no_inbox", user_id=self._repository.user_id)
            return

        logger.info("rescore_started", user_id=self._repository.user_id, count=len(index.inbox))
        context = self.scoring_context()

        def rescore_one(message: CachedMessage) -> CachedMessage:
            message = clamp_scores(apply_advanced_scoring(message, context))
            if with_decay or message.decay_applied:
                message = clamp_scores(apply_temporal_decay(message, context))
            return message

        async def update(id: str) -> None:
            try:
                await self._repository.update_message(id, rescore_one)
            except NotFoundError:
                logger.warning("rescore_message_missing", message_id=id)

        await asyncio.gather(*(update(id) for id in index.inbox))
        await self.update_inbox()
        logger.info("rescore_completed", user_id=self._repository.user_id)

    async def archive(self, id: str) -> None:
        """Remove id from both views in one index write.

        The message document stays in the store and in ``ids``.

        Raises:
            MissingParameterError: If id is empty.
            NotFoundError: If id is not in the inbox.
        """
        if not id:
            raise MissingParameterError("Required parameter missing: id")

        def apply(current: UserCacheIndex) -> UserCacheIndex:
            if id not in current.inbox:
                raise NotFoundError(f"Message not found in inbox: {id}")
            current.inbox = [i for i in current.inbox if i != id]
            current.deletables = [i for i in current.deletables if i != id]
            return current

        await self._repository.update_index(apply)
        logger.info("message_archived", user_id=self._repository.user_id, message_id=id)
