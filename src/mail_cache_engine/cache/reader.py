"""Read access to the cache: point lookups, views and queries.

Queries go through a :class:`MessageSearch`. The only implementation,
:class:`LinearScanSearch`, loads every message in the user's ``ids`` ledger
and filters in memory; ``limit`` is applied after filtering.
"""

from __future__ import annotations

import asyncio
from collections.abc import Callable
from datetime import datetime
from typing import Protocol

from dateutil import parser as date_parser

from mail_cache_engine.cache.repository import CacheRepository
from mail_cache_engine.exceptions import InvalidParameterError, MissingParameterError, NotFoundError
from mail_cache_engine.models import CachedMessage
from mail_cache_engine.scoring.context import as_utc

Predicate = Callable[[CachedMessage], bool]


class MessageSearch(Protocol):
    async def find(self, predicate: Predicate, limit: int) -> list[CachedMessage]:
        """Return up to limit messages matching predicate, in ledger order."""
        ...


class LinearScanSearch:
    """Exhaustive scan over every cached message of the user."""

    def __init__(self, repository: CacheRepository) -> None:
        self._repository = repository

    async def find(self, predicate: Predicate, limit: int) -> list[CachedMessage]:
        index = await self._repository.get_index()
        if index is None or not index.ids:
            return []
        loaded = await asyncio.gather(*(self._repository.get_message(id) for id in index.ids))
        return [m for m in loaded if m is not None and predicate(m)][:limit]


def _require(value: object, name: str) -> None:
    if not value:
        raise MissingParameterError(f"Required parameter missing: {name}")


def _check_range(min_score: float, max_score: float, name: str) -> None:
    if not (0 <= min_score <= 1 and 0 <= max_score <= 1) or min_score > max_score:
        raise InvalidParameterError(f"Invalid {name} score range: [{min_score}, {max_score}]")


def _parse_date(value: datetime | str, name: str) -> datetime:
    if isinstance(value, datetime):
        return as_utc(value)
    try:
        return as_utc(date_parser.isoparse(value))
    except (ValueError, OverflowError) as exc:
        raise InvalidParameterError(f"Invalid date format for {name}: {value!r}") from exc


def _contains(haystack: str | None, needle: str) -> bool:
    return bool(haystack) and needle in haystack.lower()


class CacheReader:
    """Read operations over one user's cache."""

    def __init__(
        self,
        repository: CacheRepository,
        search: MessageSearch | None = None,
        *,
        default_limit: int = 100,
    ) -> None:
        self._repository = repository
        self._search = search or LinearScanSearch(repository)
        self._default_limit = default_limit

    def _limit(self, limit: int | None) -> int:
        return self._default_limit if limit is None else limit

    async def get(self, id: str) -> CachedMessage | None:
        _require(id, "id")
        return await self._repository.get_message(id)

    async def get_brief(self, id: str) -> CachedMessage:
        """Return the message without its text and HTML bodies.

        Raises:
            NotFoundError: If no message is stored under id.
        """
        message = await self.get(id)
        if message is None:
            raise NotFoundError(f"Message not found: {id}")
        return message.brief()

    async def get_inbox(self) -> list[str]:
        index = await self._repository.get_index()
        return list(index.inbox) if index else []

    async def get_deletables(self) -> list[str]:
        index = await self._repository.get_index()
        return list(index.deletables) if index else []

    async def get_by_account(self, account_id: str, limit: int | None = None) -> list[CachedMessage]:
        _require(account_id, "account_id")
        return (await self._repository.messages_for_account(account_id))[: self._limit(limit)]

    async def search_by_label(self, label: str, limit: int | None = None) -> list[CachedMessage]:
        _require(label, "label")
        return await self._search.find(lambda m: label in m.labels, self._limit(limit))

    async def search_by_priority(self, priority_label: str, limit: int | None = None) -> list[CachedMessage]:
        _require(priority_label, "priority_label")
        return await self._search.find(lambda m: m.priority_label == priority_label, self._limit(limit))

    async def search_by_date_range(
        self,
        start: datetime | str,
        end: datetime | str,
        limit: int | None = None,
    ) -> list[CachedMessage]:
        """Messages dated within [start, end], both inclusive.

        Raises:
            MissingParameterError: If start or end is missing.
            InvalidParameterError: If a bound is not an ISO 8601 date.
        """
        _require(start, "start")
        _require(end, "end")
        lower = _parse_date(start, "start")
        upper = _parse_date(end, "end")

        def in_range(message: CachedMessage) -> bool:
            return message.date is not None and lower <= as_utc(message.date) <= upper

        return await self._search.find(in_range, self._limit(limit))

    async def search_by_sentiment(self, sentiment: str, limit: int | None = None) -> list[CachedMessage]:
        _require(sentiment, "sentiment")
        wanted = sentiment.lower()
        return await self._search.find(
            lambda m: bool(m.sentiment) and m.sentiment.lower() == wanted, self._limit(limit)
        )

    async def search_by_importance(
        self, min_score: float = 0.0, max_score: float = 1.0, limit: int | None = None
    ) -> list[CachedMessage]:
        _check_range(min_score, max_score, "importance")
        return await self._search.find(
            lambda m: min_score <= m.importance_score <= max_score, self._limit(limit)
        )

    async def search_by_category(self, category: str, limit: int | None = None) -> list[CachedMessage]:
        _require(category, "category")
        wanted = category.lower()
        return await self._search.find(
            lambda m: bool(m.category) and m.category.lower() == wanted, self._limit(limit)
        )

    async def search_by_spam(
        self, min_score: float = 0.0, max_score: float = 1.0, limit: int | None = None
    ) -> list[CachedMessage]:
        _check_range(min_score, max_score, "spam")
        return await self._search.find(lambda m: min_score <= m.spam_score <= max_score, self._limit(limit))

    async def search(self, query: str, limit: int | None = None) -> list[CachedMessage]:
        """Case-insensitive substring match over title, sender, recipients, body and summaries."""
        _require(query, "query")
        needle = query.lower()

        def matches(m: CachedMessage) -> bool:
            return any(
                _contains(field, needle)
                for field in (m.title, m.sender, m.to, m.text_body, m.auto_summary, m.short_summary)
            )

        return await self._search.find(matches, self._limit(limit))
