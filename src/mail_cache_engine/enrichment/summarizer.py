"""AI summarization of a single cached message."""

from __future__ import annotations

from datetime import datetime, timezone

import structlog

from mail_cache_engine.enrichment.parser import EnrichmentResponse, parse_enrichment_response
from mail_cache_engine.enrichment.prompt import SYSTEM_INSTRUCTIONS, build_context_blocks, build_enrichment_prompt
from mail_cache_engine.models import CachedMessage, UserContext
from mail_cache_engine.ollama import TextEnrichmentClient

logger = structlog.get_logger()


def apply_enrichment(
    message: CachedMessage, result: EnrichmentResponse, enhanced_at: datetime | None = None
) -> CachedMessage:
    """Return a copy of message carrying the model's summary, scores and category."""
    return message.model_copy(
        update={
            "auto_summary": result.extended_summary,
            "short_summary": result.short_summary,
            "action_items": result.action_items,
            "key_people": result.key_people,
            "deadlines": result.deadlines,
            "importance_score": result.importance_score,
            "importance_boost": 0.0,
            "spam_score": result.spam_score,
            "category": result.category,
            "sentiment": result.sentiment,
            "enhanced_at": enhanced_at or datetime.now(timezone.utc),
        }
    )


class Summarizer:
    """Asks the language model for a structured analysis of a message."""

    def __init__(
        self,
        client: TextEnrichmentClient,
        user_context: UserContext | None = None,
        *,
        body_char_limit: int = 15000,
    ) -> None:
        self._client = client
        self._user_context = user_context or UserContext()
        self._body_char_limit = body_char_limit

    async def analyze(self, message: CachedMessage) -> EnrichmentResponse:
        """Ask the model about message and return its validated reply.

        Raises:
            EnrichmentShapeError: If the reply is not a valid enrichment object.
            RemoteProviderError: If the model call fails.
        """
        prompt = build_enrichment_prompt(message, body_char_limit=self._body_char_limit)
        blocks = build_context_blocks(message, self._user_context)

        logger.info("summarization_started", message_id=message.id, prompt_length=len(prompt))
        raw = await self._client.complete(prompt, blocks, instructions=SYSTEM_INSTRUCTIONS)
        return parse_enrichment_response(raw)

    async def summarize(self, message: CachedMessage) -> CachedMessage:
        """Analyze message and return the enriched copy."""
        return apply_enrichment(message, await self.analyze(message))
