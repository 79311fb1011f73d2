"""Pytest configuration and shared fixtures."""

from __future__ import annotations

import json
from collections.abc import Mapping
from datetime import datetime, timezone
from typing import Any

import pytest
import structlog

from mail_cache_engine.accounts import AccountDirectory
from mail_cache_engine.cache import MailCacheService
from mail_cache_engine.config import Settings
from mail_cache_engine.models import FetchedMessage, LinkedAccount
from mail_cache_engine.store import InMemoryDocumentStore


@pytest.fixture(autouse=True)
def _reset_structlog():
    """Undo global structlog configuration (e.g. from CLI tests) after each test."""
    yield
    structlog.reset_defaults()


FIXED_NOW = datetime(2025, 7, 10, 12, 0, tzinfo=timezone.utc)


class FakeMailSource:
    """In-memory mail source recording every mutating call."""

    def __init__(self, messages: Mapping[str, FetchedMessage] | None = None) -> None:
        self.messages: dict[str, FetchedMessage] = dict(messages or {})
        self.listed_labels: list[str] = []
        self.fetched: list[str] = []
        self.trashed: list[str] = []
        self.junked: list[str] = []
        self.archived: list[str] = []
        self.fail_on_fetch: set[str] = set()

    async def list_message_ids_by_label(self, label: str) -> list[str]:
        self.listed_labels.append(label)
        return list(self.messages)

    async def fetch_message(self, provider_id: str) -> FetchedMessage:
        if provider_id in self.fail_on_fetch:
            from mail_cache_engine.exceptions import GmailAPIError

            raise GmailAPIError(f"fetch failed: {provider_id}")
        self.fetched.append(provider_id)
        return self.messages[provider_id]

    async def move_to_trash(self, provider_id: str) -> None:
        self.trashed.append(provider_id)

    async def move_to_junk(self, provider_id: str) -> None:
        self.junked.append(provider_id)

    async def remove_from_inbox(self, provider_id: str) -> None:
        self.archived.append(provider_id)


class ScriptedEnrichmentClient:
    """Replies with a canned answer chosen by a marker found in the prompt.

    A reply that is an exception instance is raised instead of returned.
    """

    def __init__(self, replies: Mapping[str, Any], default: Any = None) -> None:
        self.replies = dict(replies)
        self.default = default
        self.calls: list[tuple[str, dict[str, str], str | None]] = []

    async def complete(
        self,
        prompt: str,
        context_blocks: Mapping[str, str],
        *,
        instructions: str | None = None,
    ) -> str:
        self.calls.append((prompt, dict(context_blocks), instructions))
        reply = self.default
        for marker, candidate in self.replies.items():
            if marker in prompt:
                reply = candidate
                break
        if isinstance(reply, BaseException):
            raise reply
        if reply is None:
            raise AssertionError("no scripted reply for prompt")
        return reply


def enrichment_reply(**overrides: Any) -> str:
    """A valid enrichment reply as the model would send it."""
    data: dict[str, Any] = {
        "extendedSummary": "A detailed summary.",
        "shortSummary": "A short summary.",
        "actionItems": [],
        "keyPeople": [],
        "deadlines": [],
        "importanceScore": 0.5,
        "spamScore": 0.0,
        "category": "Other",
        "sentiment": "Neutral",
    }
    data.update(overrides)
    return "Here is the analysis:\n" + json.dumps(data, indent=2) + "\nLet me know if you need more."


@pytest.fixture
def now() -> datetime:
    return FIXED_NOW


@pytest.fixture
def settings() -> Settings:
    """Provide settings for testing."""
    return Settings(
        ollama_host="http://test:11434",
        ollama_model="test-model",
        enrichment_batch_size=2,
        log_level="DEBUG",
        debug=True,
    )


@pytest.fixture
def store() -> InMemoryDocumentStore:
    return InMemoryDocumentStore()


@pytest.fixture
def accounts(store: InMemoryDocumentStore, settings: Settings) -> AccountDirectory:
    return AccountDirectory(store, settings.accounts_collection)


@pytest.fixture
def make_fetched():
    """Factory for provider messages."""

    def factory(provider_id: str, **fields: Any) -> FetchedMessage:
        values: dict[str, Any] = {
            "provider_id": provider_id,
            "date": FIXED_NOW,
            "title": f"Subject {provider_id}",
            "sender": "Alice <alice@acme.com>",
            "to": "me@acme.com",
            "text_body": f"Body of {provider_id}",
            "html_body": f"<p>Body of {provider_id}</p>",
            "snippet": f"Body of {provider_id}",
        }
        values.update(fields)
        return FetchedMessage(**values)

    return factory


@pytest.fixture
def link_accounts(store: InMemoryDocumentStore, settings: Settings):
    """Store linked accounts for a user: ``await link_accounts(user_id, {account_id: token})``."""

    async def link(user_id: str, tokens: Mapping[str, str | None], account_type: str = "google") -> None:
        await store.write(
            settings.accounts_collection,
            user_id,
            {
                "accounts": {
                    account_id: {"type": account_type, "token": token, "email": f"{account_id}@example.com"}
                    for account_id, token in tokens.items()
                }
            },
        )

    return link


@pytest.fixture
def source_factory():
    """Map account IDs to fake sources and expose a MailSourceFactory over them."""

    sources: dict[str, FakeMailSource] = {}

    async def factory(account: LinkedAccount) -> FakeMailSource:
        return sources.setdefault(account.account_id, FakeMailSource())

    factory.sources = sources  # type: ignore[attr-defined]
    return factory


@pytest.fixture
def reply():
    """Builder of valid enrichment replies."""
    return enrichment_reply


@pytest.fixture
def scripted_client():
    """Factory for scripted enrichment clients."""
    return ScriptedEnrichmentClient


@pytest.fixture
def fake_source():
    """Factory for in-memory mail sources."""
    return FakeMailSource


@pytest.fixture
def make_service(store, accounts, source_factory, settings, now):
    """Factory for a user's MailCacheService with a fixed clock."""

    def factory(client=None, user_id: str = "user-1", **kwargs: Any) -> MailCacheService:
        client = client or ScriptedEnrichmentClient({}, default=enrichment_reply())
        return MailCacheService(
            user_id, store, accounts, source_factory, client, settings, clock=lambda: now, **kwargs
        )

    return factory


@pytest.fixture
def seed_inbox(link_accounts, source_factory):
    """Link one account holding the given messages and import them."""

    async def seed(service: MailCacheService, *messages: FetchedMessage, account_id: str = "acct") -> list[str]:
        await link_accounts(service.user_id, {account_id: "refresh-token"})
        source_factory.sources[account_id] = FakeMailSource({m.provider_id: m for m in messages})
        return await service.import_new_messages()

    return seed
