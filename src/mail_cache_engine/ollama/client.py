"""Ollama client implementation.

This module provides the text enrichment client backed by an Ollama server.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any, Optional, Protocol, runtime_checkable

import httpx
import structlog

from mail_cache_engine.config import Settings
from mail_cache_engine.exceptions import OllamaConnectionError, OllamaInferenceError

logger = structlog.get_logger()


@runtime_checkable
class TextEnrichmentClient(Protocol):
    """Sends a prompt plus named context blocks to a language model."""

    async def complete(
        self,
        prompt: str,
        context_blocks: Mapping[str, str],
        *,
        instructions: str | None = None,
    ) -> str:
        """Return the raw text of the model reply."""
        ...


def format_context_block(name: str, value: str) -> str:
    return f"#{name}\n\n{value}"


class OllamaClient:
    """Ollama LLM client for AI inference.

    This client posts chat requests to the Ollama ``/api/chat`` endpoint.
    Context blocks are sent as system messages ahead of the user prompt.
    """

    def __init__(
        self,
        settings: Optional[Settings] = None,
        http_client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        """Initialize Ollama client.

        Args:
            settings: Application settings. If None, uses default settings.
            http_client: Preconfigured httpx client. If None, one is created per call.
        """
        from mail_cache_engine.config import get_settings

        self.settings = settings or get_settings()
        self._http_client = http_client
        logger.info(
            "ollama_client_initialized",
            host=self.settings.ollama_host,
            model=self.settings.ollama_model,
        )

    async def complete(
        self,
        prompt: str,
        context_blocks: Mapping[str, str],
        *,
        instructions: str | None = None,
    ) -> str:
        """Run a single non-streaming chat completion.

        Args:
            prompt: The user prompt.
            context_blocks: Named context values, sent in order.
            instructions: Optional system instructions sent first.

        Returns:
            The content of the assistant message.

        Raises:
            OllamaConnectionError: If unable to connect to Ollama.
            OllamaInferenceError: If inference fails or the reply has no content.
        """
        messages: list[dict[str, str]] = []
        if instructions:
            messages.append({"role": "system", "content": instructions})
        for name, value in context_blocks.items():
            messages.append({"role": "system", "content": format_context_block(name, value)})
        messages.append({"role": "user", "content": prompt})

        response = await self.chat(messages)
        content = (response.get("message") or {}).get("content")
        if not isinstance(content, str) or not content:
            raise OllamaInferenceError("Ollama reply contained no message content")
        return content

    async def chat(
        self,
        messages: list[dict[str, str]],
        model: Optional[str] = None,
    ) -> dict[str, Any]:
        """Have a chat conversation with Ollama.

        Args:
            messages: List of message dictionaries with 'role' and 'content'.
            model: Model name to use. If None, uses default from settings.

        Returns:
            Response dictionary containing chat response and metadata.

        Raises:
            OllamaConnectionError: If unable to connect to Ollama.
            OllamaInferenceError: If inference fails.
        """
        model = model or self.settings.ollama_model
        logger.info("chat_started", model=model, message_count=len(messages))

        payload = {"model": model, "messages": messages, "stream": False}

        client = self._http_client or httpx.AsyncClient(
            base_url=self.settings.ollama_host,
            timeout=self.settings.ollama_timeout,
        )
        try:
            response = await client.post("/api/chat", json=payload)
        except httpx.TransportError as exc:
            logger.error("ollama_connection_failed", host=self.settings.ollama_host, error=str(exc))
            raise OllamaConnectionError(str(exc)) from exc
        finally:
            if self._http_client is None:
                await client.aclose()

        if response.status_code >= 400:
            logger.error("ollama_inference_failed", status=response.status_code)
            raise OllamaInferenceError(f"Ollama returned HTTP {response.status_code}: {response.text}")

        try:
            data = response.json()
        except ValueError as exc:
            raise OllamaInferenceError("Ollama returned a non-JSON body") from exc

        logger.info("chat_completed", model=model, eval_count=data.get("eval_count"))
        return data
