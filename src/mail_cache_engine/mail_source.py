"""Mail source interface consumed by the import pipeline and mail actions.

All methods are keyed by the provider's own message ID, never by the composite
cache ID.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from typing import Protocol, runtime_checkable

from mail_cache_engine.models import FetchedMessage, LinkedAccount


@runtime_checkable
class MailSource(Protocol):
    """A remote mailbox of one linked account."""

    async def list_message_ids_by_label(self, label: str) -> list[str]:
        """Return every message ID under label, following pagination to the end."""
        ...

    async def fetch_message(self, provider_id: str) -> FetchedMessage:
        """Fetch the full content of one message."""
        ...

    async def move_to_trash(self, provider_id: str) -> None: ...

    async def move_to_junk(self, provider_id: str) -> None: ...

    async def remove_from_inbox(self, provider_id: str) -> None: ...


#: Builds a ready-to-use mail source for a linked account.
MailSourceFactory = Callable[[LinkedAccount], Awaitable[MailSource]]
