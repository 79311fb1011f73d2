"""AI enrichment: prompt construction, reply parsing and summarization."""

from mail_cache_engine.enrichment.parser import EnrichmentResponse, parse_enrichment_response
from mail_cache_engine.enrichment.prompt import SYSTEM_INSTRUCTIONS, build_context_blocks, build_enrichment_prompt
from mail_cache_engine.enrichment.summarizer import Summarizer, apply_enrichment

__all__ = [
    "SYSTEM_INSTRUCTIONS",
    "EnrichmentResponse",
    "Summarizer",
    "apply_enrichment",
    "build_context_blocks",
    "build_enrichment_prompt",
    "parse_enrichment_response",
]
