"""The per-user mail cache: import, enrichment, views and queries."""

from mail_cache_engine.cache.enrichment import EnrichmentPipeline
from mail_cache_engine.cache.ids import CompositeId, CompositeIdCodec
from mail_cache_engine.cache.importer import ImportPipeline
from mail_cache_engine.cache.reader import CacheReader, LinearScanSearch, MessageSearch
from mail_cache_engine.cache.repository import CacheRepository
from mail_cache_engine.cache.service import MailCacheService
from mail_cache_engine.cache.views import ViewMaintainer

__all__ = [
    "CacheReader",
    "CacheRepository",
    "CompositeId",
    "CompositeIdCodec",
    "EnrichmentPipeline",
    "ImportPipeline",
    "LinearScanSearch",
    "MailCacheService",
    "MessageSearch",
    "ViewMaintainer",
]
