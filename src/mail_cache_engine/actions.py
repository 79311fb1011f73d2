"""Mutating mail actions that fan out to the provider and the cache.

Each action resolves the composite ID to the owning account, applies the
change at the provider with the provider's own message ID and then removes
the ID from both cache views.
"""

from __future__ import annotations

from collections.abc import Mapping

import structlog

from mail_cache_engine.cache import MailCacheService
from mail_cache_engine.exceptions import MissingParameterError, NotFoundError
from mail_cache_engine.mail_source import MailSource

logger = structlog.get_logger()


class MailActions:
    """Archive, trash and junk for one user's linked accounts.

    Args:
        service: The user's mail cache.
        sources: Mail source of each linked account, keyed by account ID.
    """

    def __init__(self, service: MailCacheService, sources: Mapping[str, MailSource]) -> None:
        self._service = service
        self._sources = dict(sources)

    def _resolve(self, id: str) -> tuple[MailSource, str]:
        if not id:
            raise MissingParameterError("Required parameter missing: id")
        parts = self._service.decompose_id(id)
        source = self._sources.get(parts.account_id)
        if source is None:
            raise NotFoundError(f"Account not found: {parts.account_id}")
        return source, parts.provider_id

    async def archive(self, id: str) -> None:
        source, provider_id = self._resolve(id)
        await source.remove_from_inbox(provider_id)
        await self._service.archive(id)
        logger.info("message_archived_at_provider", user_id=self._service.user_id, message_id=id)

    async def move_to_trash(self, id: str) -> None:
        source, provider_id = self._resolve(id)
        await source.move_to_trash(provider_id)
        await self._service.archive(id)
        logger.info("message_moved_to_trash", user_id=self._service.user_id, message_id=id)

    async def move_to_junk(self, id: str) -> None:
        source, provider_id = self._resolve(id)
        await source.move_to_junk(provider_id)
        await self._service.archive(id)
        logger.info("message_moved_to_junk", user_id=self._service.user_id, message_id=id)

    async def get_link(self, id: str) -> str:
        """Return the provider web link stored with the cached message.

        Raises:
            NotFoundError: If the message is not cached or has no link.
        """
        self._resolve(id)
        message = await self._service.get(id)
        if message is None or not message.link:
            raise NotFoundError(f"No link for message: {id}")
        return message.link
