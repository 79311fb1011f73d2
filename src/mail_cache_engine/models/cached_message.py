"""Cached mail item model.

A CachedMessage holds the provider fields captured at import time plus every
field derived later by enrichment and scoring. Documents are persisted with
camelCase keys so they stay readable by other consumers of the store.
"""

from __future__ import annotations

from datetime import datetime
from typing import Annotated, Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

Score = Annotated[float, Field(ge=0.0, le=1.0)]


class _Document(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class AttachmentInfo(_Document):
    """A single attachment found in the message's MIME tree."""

    id: str = Field(default="", description="Provider attachment ID")
    filename: str = Field(description="Attachment file name")
    mime_type: str = Field(default="application/octet-stream", description="MIME type")
    size: int = Field(default=0, ge=0, description="Size in bytes")


class AttachmentMetadata(_Document):
    """Aggregate attachment facts derived by the attachment pass."""

    count: int = 0
    types: list[str] = Field(default_factory=list)
    total_size: int = 0
    has_documents: bool = False
    has_spreadsheets: bool = False
    has_presentations: bool = False
    has_images: bool = False
    has_archives: bool = False
    has_executables: bool = False


class SentimentMetadata(_Document):
    """Keyword-based tone analysis, recorded only when the model gave no sentiment."""

    tone: str = "neutral"
    intensity: str = "moderate"
    emotional_content: list[str] = Field(default_factory=list)


class FetchedMessage(_Document):
    """A full message as returned by a mail source, before caching."""

    provider_id: str = Field(description="Provider message ID")
    date: datetime | None = Field(default=None, description="Parsed Date header")
    title: str = Field(default="", description="Subject header")
    sender: str = Field(default="", alias="from", description="Raw From header")
    to: str | None = Field(default=None, description="Raw To header")
    cc: str | None = Field(default=None, description="Raw Cc header")
    message_id: str | None = Field(default=None, description="Message-ID header")
    text_body: str = Field(default="", description="Plain text body")
    html_body: str = Field(default="", description="HTML body")
    snippet: str = Field(default="", description="Provider snippet")
    link: str | None = Field(default=None, description="Web link to the message")
    attachments: list[AttachmentInfo] = Field(default_factory=list)


class CachedMessage(_Document):
    """One cached mail item keyed by its composite ID."""

    id: str = Field(description="Composite ID: userPrefix#accountId#providerId")
    user_id: str = Field(description="Owning user")
    account_id: str = Field(description="Linked account the message was imported from")
    provider_id: str = Field(description="Provider message ID")

    # Provider fields, immutable once fetched.
    date: datetime | None = None
    title: str = ""
    sender: str = Field(default="", alias="from")
    to: str | None = None
    cc: str | None = None
    message_id: str | None = None
    text_body: str | None = ""
    html_body: str | None = ""
    snippet: str = ""
    link: str | None = None
    attachments: list[AttachmentInfo] = Field(default_factory=list)
    cached_at: datetime | None = None

    # Derived fields, written by enrichment and scoring.
    auto_summary: str | None = None
    short_summary: str | None = None
    action_items: list[str] = Field(default_factory=list)
    key_people: list[str] = Field(default_factory=list)
    deadlines: list[str] = Field(default_factory=list)
    category: str | None = None
    sentiment: str | None = None
    sentiment_metadata: SentimentMetadata | None = None
    importance_score: Score = 0.0
    importance_boost: float = Field(default=0.0, description="Importance added by advanced scoring")
    spam_score: Score = 0.0
    labels: list[str] = Field(default_factory=list)
    attachment_metadata: AttachmentMetadata | None = None
    deletable_score: Score = 0.0
    urgency_score: Score = 0.0
    priority_score: Score = 0.0
    priority_label: str | None = None
    decay_factor: float | None = None
    decay_applied: bool = False
    enhanced_at: datetime | None = None

    @classmethod
    def from_fetched(
        cls,
        fetched: FetchedMessage,
        *,
        id: str,
        user_id: str,
        account_id: str,
        cached_at: datetime,
    ) -> CachedMessage:
        """Build a freshly imported message with zeroed scores."""
        return cls(
            id=id,
            user_id=user_id,
            account_id=account_id,
            cached_at=cached_at,
            **fetched.model_dump(),
        )

    @classmethod
    def from_document(cls, document: dict[str, Any]) -> CachedMessage:
        return cls.model_validate(document)

    def to_document(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True)

    def brief(self) -> CachedMessage:
        """Return a copy without the text and HTML bodies."""
        return self.model_copy(update={"text_body": None, "html_body": None})

    @property
    def is_enriched(self) -> bool:
        return self.enhanced_at is not None
