"""Lookup of linked mail accounts and per-user enrichment context."""

from __future__ import annotations

import structlog

from mail_cache_engine.exceptions import MissingParameterError
from mail_cache_engine.models import LinkedAccount, UserContext
from mail_cache_engine.store import DocumentStore

logger = structlog.get_logger()


class AccountDirectory:
    """Reads user documents of the form ``{"accounts": {accountId: {...}}}``."""

    def __init__(self, store: DocumentStore, collection: str) -> None:
        self._store = store
        self._collection = collection

    async def list_accounts(self, user_id: str, account_type: str | None = None) -> list[LinkedAccount]:
        """Return the user's linked accounts, optionally filtered by provider type.

        Args:
            user_id: The user whose accounts are listed.
            account_type: Only return accounts of this type (e.g. 'google').

        Returns:
            Linked accounts in stored order; empty if the user has none.

        Raises:
            MissingParameterError: If user_id is empty.
        """
        if not user_id:
            raise MissingParameterError("Required parameter missing: user_id")

        doc = await self._store.read(self._collection, user_id) or {}
        accounts = [
            LinkedAccount(
                account_id=account_id,
                type=str(data.get("type", "")),
                token=data.get("token"),
                email=data.get("email"),
            )
            for account_id, data in (doc.get("accounts") or {}).items()
        ]
        if account_type is not None:
            accounts = [a for a in accounts if a.type == account_type]
        return accounts

    async def get_account(self, user_id: str, account_id: str) -> LinkedAccount | None:
        for account in await self.list_accounts(user_id):
            if account.account_id == account_id:
                return account
        return None


async def load_user_context(store: DocumentStore, collection: str, user_id: str) -> UserContext:
    """Load the contacts and knowledge notes used to enrich a user's mail."""
    doc = await store.read(collection, user_id)
    if doc is None:
        logger.info("user_context_missing", user_id=user_id)
        return UserContext()
    return UserContext.model_validate(doc)
