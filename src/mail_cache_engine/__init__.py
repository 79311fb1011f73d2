"""Mail Cache Engine - local mail cache with AI enrichment and scoring.

This package imports mailbox state into a document store, enriches each
message with a language model, scores it and maintains sorted inbox and
deletables views.
"""

__version__ = "0.1.0"

from mail_cache_engine.config import Settings, get_settings

__all__ = ["Settings", "get_settings", "__version__"]
