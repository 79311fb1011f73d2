"""Unit tests for cache lookups and queries."""

from __future__ import annotations

from datetime import datetime, timezone

import pytest
import pytest_asyncio

from mail_cache_engine.cache import CacheReader, CacheRepository
from mail_cache_engine.exceptions import InvalidParameterError, MissingParameterError, NotFoundError
from mail_cache_engine.models import CachedMessage, UserCacheIndex


def _message(provider_id: str, account_id: str = "acct", **fields) -> CachedMessage:
    return CachedMessage(
        id=f"user-1#{account_id}#{provider_id}",
        user_id="user-1",
        account_id=account_id,
        provider_id=provider_id,
        text_body=f"body {provider_id}",
        html_body=f"<p>body {provider_id}</p>",
        **fields,
    )


@pytest.fixture
def repository(store, settings) -> CacheRepository:
    return CacheRepository.for_user(store, "user-1", settings)


@pytest_asyncio.fixture
async def reader(repository) -> CacheReader:
    messages = [
        _message(
            "a",
            title="Quarterly report",
            sender="Alice <alice@acme.com>",
            labels=["Business", "Time Sensitive"],
            priority_label="High",
            date=datetime(2025, 7, 1, tzinfo=timezone.utc),
            sentiment="Positive",
            importance_score=0.8,
            category="Business",
        ),
        _message(
            "b",
            title="Big sale",
            sender="Shop <deals@shop.example>",
            labels=["Promotional"],
            priority_label="Minimal",
            date=datetime(2025, 7, 5, tzinfo=timezone.utc),
            sentiment="Neutral",
            importance_score=0.1,
            category="Promotional",
            spam_score=0.6,
        ),
        _message(
            "c",
            account_id="other",
            title="Dinner?",
            sender="Carol <carol@gmail.com>",
            labels=["Personal"],
            priority_label="Medium",
            date=datetime(2025, 7, 9, 18, 30, tzinfo=timezone.utc),
            sentiment="positive",
            importance_score=0.5,
            category="personal",
            spam_score=0.1,
            short_summary="Dinner on Friday with Bob",
        ),
    ]
    for message in messages:
        await repository.put_message(message)
    ids = [m.id for m in messages]

    def seed(index: UserCacheIndex) -> UserCacheIndex:
        index.ids = ids
        index.inbox = [ids[0], ids[2], ids[1]]
        index.deletables = [ids[1], ids[2], ids[0]]
        return index

    await repository.update_index(seed)
    return CacheReader(repository, default_limit=10)


def _providers(messages: list[CachedMessage]) -> list[str]:
    return [m.provider_id for m in messages]


@pytest.mark.asyncio
async def test_views(reader):
    assert await reader.get_inbox() == ["user-1#acct#a", "user-1#other#c", "user-1#acct#b"]
    assert await reader.get_deletables() == ["user-1#acct#b", "user-1#other#c", "user-1#acct#a"]


@pytest.mark.asyncio
async def test_views_without_index(store, settings):
    reader = CacheReader(CacheRepository.for_user(store, "nobody", settings))

    assert await reader.get_inbox() == []
    assert await reader.get_deletables() == []
    assert await reader.search("anything") == []


@pytest.mark.asyncio
async def test_point_lookups(reader):
    message = await reader.get("user-1#acct#a")
    assert message.text_body == "body a"

    brief = await reader.get_brief("user-1#acct#a")
    assert brief.text_body is None
    assert brief.html_body is None
    assert brief.title == "Quarterly report"

    assert await reader.get("user-1#acct#zzz") is None
    with pytest.raises(NotFoundError):
        await reader.get_brief("user-1#acct#zzz")
    with pytest.raises(MissingParameterError):
        await reader.get("")


@pytest.mark.asyncio
async def test_get_by_account(reader):
    assert _providers(await reader.get_by_account("other")) == ["c"]
    assert sorted(_providers(await reader.get_by_account("acct"))) == ["a", "b"]
    assert len(await reader.get_by_account("acct", limit=1)) == 1
    with pytest.raises(MissingParameterError):
        await reader.get_by_account("")


@pytest.mark.asyncio
async def test_search_by_label_and_priority(reader):
    assert _providers(await reader.search_by_label("Business")) == ["a"]
    assert _providers(await reader.search_by_label("Nope")) == []
    assert _providers(await reader.search_by_priority("Medium")) == ["c"]
    with pytest.raises(MissingParameterError):
        await reader.search_by_label("")


@pytest.mark.asyncio
async def test_search_by_date_range(reader):
    assert _providers(await reader.search_by_date_range("2025-07-01", "2025-07-05T00:00:00Z")) == ["a", "b"]
    assert _providers(
        await reader.search_by_date_range(
            datetime(2025, 7, 2, tzinfo=timezone.utc), datetime(2025, 7, 31, tzinfo=timezone.utc)
        )
    ) == ["b", "c"]
    assert _providers(await reader.search_by_date_range("2025-07-01", "2025-07-31", limit=1)) == ["a"]

    with pytest.raises(InvalidParameterError):
        await reader.search_by_date_range("yesterday", "2025-07-31")
    with pytest.raises(MissingParameterError):
        await reader.search_by_date_range("", "2025-07-31")


@pytest.mark.asyncio
async def test_search_by_sentiment_and_category_ignore_case(reader):
    assert _providers(await reader.search_by_sentiment("POSITIVE")) == ["a", "c"]
    assert _providers(await reader.search_by_category("Personal")) == ["c"]
    assert _providers(await reader.search_by_category("promotional")) == ["b"]


@pytest.mark.asyncio
async def test_score_range_queries(reader):
    assert _providers(await reader.search_by_importance(0.4, 1.0)) == ["a", "c"]
    assert _providers(await reader.search_by_importance(0.4, 1.0, limit=1)) == ["a"]
    assert _providers(await reader.search_by_spam(0.5)) == ["b"]
    assert _providers(await reader.search_by_spam(0.0, 0.0)) == ["a"]

    for bad in ((0.8, 0.2), (-0.1, 0.5), (0.0, 1.5)):
        with pytest.raises(InvalidParameterError):
            await reader.search_by_importance(*bad)
        with pytest.raises(InvalidParameterError):
            await reader.search_by_spam(*bad)


@pytest.mark.asyncio
async def test_text_search(reader):
    assert _providers(await reader.search("REPORT")) == ["a"]
    assert _providers(await reader.search("bob")) == ["c"]
    assert _providers(await reader.search("shop.example")) == ["b"]
    assert _providers(await reader.search("body")) == ["a", "b", "c"]
    assert _providers(await reader.search("body", limit=2)) == ["a", "b"]
    with pytest.raises(MissingParameterError):
        await reader.search("")


@pytest.mark.asyncio
async def test_search_backend_is_pluggable(repository):
    class RecordingSearch:
        def __init__(self) -> None:
            self.limits: list[int] = []

        async def find(self, predicate, limit):
            self.limits.append(limit)
            return []

    search = RecordingSearch()
    reader = CacheReader(repository, search, default_limit=7)

    await reader.search_by_label("Business")
    await reader.search("x", limit=3)

    assert search.limits == [7, 3]
