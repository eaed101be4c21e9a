"""
Local Model Provider

Streams from a model server on the local network: Ollama's native chat API,
or any server that speaks the OpenAI-compatible streaming protocol.
"""

import json
import logging
from collections.abc import AsyncIterator
from typing import Any

import httpx

from pagecraft.llm.base import BaseLLMProvider
from pagecraft.llm.models import LLMRequest, LLMStreamChunk

logger = logging.getLogger(__name__)

OLLAMA_CHAT_PATH = "/api/chat"
OPENAI_COMPAT_PATH = "/v1/chat/completions"


class LocalProvider(BaseLLMProvider):
    """
    httpx-based streaming client for self-hosted models.

    Ollama's ``/api/chat`` (newline-delimited JSON) is tried first. A 404
    there switches to ``/v1/chat/completions`` (server-sent events).
    """

    def __init__(
        self,
        base_url: str = "http://localhost:11434",
        model: str = "llama3.1:8b",
        temperature: float = 0.7,
        max_tokens: int = 8192,
        timeout: int = 120,
        client: httpx.AsyncClient | None = None,
    ):
        super().__init__("local", temperature=temperature, max_tokens=max_tokens, timeout=timeout)
        self.base_url = base_url.rstrip("/")
        self.model = model
        self.client = client or httpx.AsyncClient(timeout=float(timeout))

    async def stream(self, request: LLMRequest) -> AsyncIterator[LLMStreamChunk]:
        request = self._apply_defaults(request)
        self._log_request(request)

        body = {
            "model": request.model or self.model,
            "messages": [msg.model_dump() for msg in request.messages],
            "temperature": request.temperature,
            "max_tokens": request.max_tokens,
            "stream": True,
        }

        try:
            async for chunk in self._stream_ndjson(body):
                yield chunk
            return
        except httpx.HTTPStatusError as exc:
            if exc.response.status_code != 404:
                raise
            logger.info(
                f"{self.base_url}{OLLAMA_CHAT_PATH} not found; switching to {OPENAI_COMPAT_PATH}",
                extra={"base_url": self.base_url},
            )

        async for chunk in self._stream_sse(body):
            yield chunk

    async def close(self) -> None:
        await self.client.aclose()

    async def _lines(self, path: str, body: dict[str, Any]) -> AsyncIterator[str]:
        async with self.client.stream("POST", f"{self.base_url}{path}", json=body) as response:
            response.raise_for_status()
            async for line in response.aiter_lines():
                if line.strip():
                    yield line

    async def _stream_ndjson(self, body: dict[str, Any]) -> AsyncIterator[LLMStreamChunk]:
        async for line in self._lines(OLLAMA_CHAT_PATH, body):
            event = json.loads(line)
            text = event.get("message", {}).get("content")
            if text:
                yield LLMStreamChunk(content=text, finish_reason="stop" if event.get("done") else None)

    async def _stream_sse(self, body: dict[str, Any]) -> AsyncIterator[LLMStreamChunk]:
        async for line in self._lines(OPENAI_COMPAT_PATH, body):
            if not line.startswith("data: "):
                continue
            data = line[len("data: "):]
            if data.strip() == "[DONE]":
                continue
            choices = json.loads(data).get("choices") or [{}]
            text = choices[0].get("delta", {}).get("content")
            if text:
                yield LLMStreamChunk(content=text)
