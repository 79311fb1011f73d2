"""Ollama text enrichment client."""

from mail_cache_engine.ollama.client import OllamaClient, TextEnrichmentClient, format_context_block

__all__ = ["OllamaClient", "TextEnrichmentClient", "format_context_block"]
