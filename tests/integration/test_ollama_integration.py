"""Integration tests against a running Ollama instance.

Set MAIL_CACHE_RUN_OLLAMA_TESTS=1 to run them with the configured host and model.
"""

import os

import pytest

from mail_cache_engine.config import Settings
from mail_cache_engine.enrichment import Summarizer
from mail_cache_engine.models import CachedMessage
from mail_cache_engine.ollama import OllamaClient

pytestmark = [
    pytest.mark.integration,
    pytest.mark.skipif(
        not os.environ.get("MAIL_CACHE_RUN_OLLAMA_TESTS"), reason="MAIL_CACHE_RUN_OLLAMA_TESTS not set"
    ),
]


class TestOllamaIntegration:
    """Integration tests for Ollama enrichment."""

    @pytest.mark.asyncio
    async def test_chat_round_trip(self) -> None:
        client = OllamaClient(Settings())

        reply = await client.complete("Reply with the single word: pong", {})

        assert reply.strip()

    @pytest.mark.asyncio
    async def test_summarize_message(self) -> None:
        message = CachedMessage(
            id="it#acct#m1",
            user_id="it",
            account_id="acct",
            provider_id="m1",
            title="Invoice #42 due Friday",
            sender="Billing <billing@acme.com>",
            text_body="Hi, please pay invoice #42 for $120 by Friday. Thanks, Acme Billing",
        )

        summarized = await Summarizer(OllamaClient(Settings())).summarize(message)

        assert summarized.short_summary
        assert 0.0 <= summarized.importance_score <= 1.0
        assert summarized.category
