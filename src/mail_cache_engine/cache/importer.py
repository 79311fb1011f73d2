"""Import of remote mailbox state into the cache."""

from __future__ import annotations

from collections.abc import Sequence
from datetime import datetime, timezone

import structlog

from mail_cache_engine.accounts import AccountDirectory
from mail_cache_engine.cache.ids import CompositeIdCodec
from mail_cache_engine.cache.repository import CacheRepository
from mail_cache_engine.config import Settings
from mail_cache_engine.exceptions import MissingParameterError
from mail_cache_engine.mail_source import MailSourceFactory
from mail_cache_engine.models import CachedMessage, UserCacheIndex
from mail_cache_engine.store import DocumentStore

logger = structlog.get_logger()


def _rank_listing(previous: Sequence[str], listing: Sequence[str]) -> list[str]:
    """Order listing with IDs already ranked in previous first, keeping their rank."""
    current = set(listing)
    kept = [id for id in dict.fromkeys(previous) if id in current]
    kept_set = set(kept)
    return kept + [id for id in dict.fromkeys(listing) if id not in kept_set]


class ImportPipeline:
    """Reconciles the remote inbox listing of every linked account with the cache.

    Only messages whose composite ID is not yet in the index's ``ids`` ledger
    are fetched. The active inbox is replaced by the current listing, so
    messages moved out of the provider's inbox leave both views.
    """

    def __init__(
        self,
        store: DocumentStore,
        accounts: AccountDirectory,
        source_factory: MailSourceFactory,
        settings: Settings | None = None,
        *,
        account_type: str = "google",
    ) -> None:
        from mail_cache_engine.config import get_settings

        self.settings = settings or get_settings()
        self._store = store
        self._accounts = accounts
        self._source_factory = source_factory
        self._account_type = account_type

    async def import_new_messages(self, user_id: str) -> list[str]:
        """Import new messages for a user and return their composite IDs.

        Raises:
            MissingParameterError: If user_id is empty or any account lacks a token.
            RemoteProviderError: If listing or fetching fails; messages written
                before the failure stay in the store but the index is not updated.
        """
        if not user_id:
            raise MissingParameterError("Required parameter missing: user_id")

        accounts = await self._accounts.list_accounts(user_id, self._account_type)
        if not accounts:
            logger.info("import_no_accounts", user_id=user_id, account_type=self._account_type)
            return []

        for account in accounts:
            if not account.token:
                raise MissingParameterError(f"Missing refresh token for account {account.account_id}")

        repository = CacheRepository.for_user(self._store, user_id, self.settings)
        codec = CompositeIdCodec(user_id, self.settings.id_user_prefix_length)
        index = await repository.load_index()
        known = set(index.ids)
        listing: list[str] = []
        new_ids: list[str] = []

        for account in accounts:
            logger.info("import_account_started", user_id=user_id, account_id=account.account_id)
            source = await self._source_factory(account)
            provider_ids = await source.list_message_ids_by_label(self.settings.inbox_label)

            account_new = 0
            for provider_id in provider_ids:
                id = codec.compose(account.account_id, provider_id)
                listing.append(id)
                if id in known:
                    continue

                fetched = await source.fetch_message(provider_id)
                message = CachedMessage.from_fetched(
                    fetched,
                    id=id,
                    user_id=user_id,
                    account_id=account.account_id,
                    cached_at=datetime.now(timezone.utc),
                )
                await repository.put_message(message)
                known.add(id)
                new_ids.append(id)
                account_new += 1

            logger.info(
                "import_account_completed",
                user_id=user_id,
                account_id=account.account_id,
                new_count=account_new,
                total_count=len(provider_ids),
            )

        def merge(current: UserCacheIndex) -> UserCacheIndex:
            stored = set(current.ids)
            appended = [id for id in new_ids if id not in stored]
            current.ids = current.ids + appended
            current.new_mail = current.new_mail + appended
            current.summarization_queue = current.summarization_queue + appended
            current.inbox = _rank_listing(current.inbox, listing)
            current.deletables = _rank_listing(current.deletables, listing)
            return current

        updated = await repository.update_index(merge)

        logger.info(
            "import_completed",
            user_id=user_id,
            cached_count=len(updated.ids),
            new_count=len(new_ids),
            inbox_count=len(updated.inbox),
        )
        return new_ids
