"""Data models for the mail cache engine.

This package contains Pydantic models for data validation and serialization.
"""

from mail_cache_engine.models.account import LinkedAccount, UserContext
from mail_cache_engine.models.cache_index import UserCacheIndex, index_key
from mail_cache_engine.models.cached_message import (
    AttachmentInfo,
    AttachmentMetadata,
    CachedMessage,
    FetchedMessage,
    SentimentMetadata,
)
from mail_cache_engine.models.enums import Category, PriorityLabel, Sentiment

__all__ = [
    "AttachmentInfo",
    "AttachmentMetadata",
    "CachedMessage",
    "Category",
    "FetchedMessage",
    "LinkedAccount",
    "PriorityLabel",
    "Sentiment",
    "SentimentMetadata",
    "UserCacheIndex",
    "UserContext",
    "index_key",
]
