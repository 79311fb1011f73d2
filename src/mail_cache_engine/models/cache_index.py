"""Per-user cache index document.

The index is the durable ledger of every message ever imported for a user
(``ids``), the two derived views (``inbox`` ordered by priority,
``deletables`` ordered by deletable score) and the queues of messages awaiting
downstream processing. ``inbox`` and ``deletables`` always hold the same set
of IDs.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


def index_key(user_id: str) -> str:
    """Document key of a user's cache index."""
    return f"user#{user_id}#cached-ids"


class UserCacheIndex(BaseModel):
    """The cache index of a single user."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    user_id: str = Field(description="Owning user")
    ids: list[str] = Field(default_factory=list, description="Every composite ID ever imported")
    inbox: list[str] = Field(default_factory=list, description="Active IDs by priority, descending")
    deletables: list[str] = Field(
        default_factory=list, description="Active IDs by deletable score, descending"
    )
    new_mail: list[str] = Field(default_factory=list, description="IDs not yet handed to consumers")
    summarization_queue: list[str] = Field(
        default_factory=list, description="IDs awaiting enrichment"
    )
    updated_at: datetime | None = None

    @classmethod
    def empty(cls, user_id: str) -> UserCacheIndex:
        return cls(user_id=user_id)

    @classmethod
    def from_document(cls, document: dict[str, Any]) -> UserCacheIndex:
        return cls.model_validate(document)

    def to_document(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True)
