"""
OpenAI Provider

Streams page markup from OpenAI chat completions.
"""

import logging
from collections.abc import AsyncIterator

import openai
from openai import AsyncOpenAI

from pagecraft.llm.base import BaseLLMProvider
from pagecraft.llm.models import FinishReason, LLMRequest, LLMStreamChunk

logger = logging.getLogger(__name__)

_FINISH_REASONS: dict[str, FinishReason] = {
    "stop": "stop",
    "length": "length",
    "content_filter": "content_filter",
}


class OpenAIProvider(BaseLLMProvider):
    """Chat-completions streaming through the async openai SDK."""

    def __init__(
        self,
        api_key: str,
        model: str = "gpt-4o",
        temperature: float = 0.7,
        max_tokens: int = 8192,
        timeout: int = 120,
    ):
        super().__init__("openai", temperature=temperature, max_tokens=max_tokens, timeout=timeout)
        self.model = model
        self.client = AsyncOpenAI(api_key=api_key, timeout=float(timeout))

    async def stream(self, request: LLMRequest) -> AsyncIterator[LLMStreamChunk]:
        """
        Stream a chat completion.

        Chunks without text (role headers, the trailing finish chunk) are
        dropped; the finish reason rides on the last text chunk when the API
        sends them together.

        Raises:
            openai.APIError: On API errors
        """
        request = self._apply_defaults(request)
        self._log_request(request)

        try:
            completion = await self.client.chat.completions.create(
                model=request.model or self.model,
                messages=[msg.model_dump() for msg in request.messages],
                temperature=request.temperature,
                max_tokens=request.max_tokens,
                stream=True,
                **request.metadata,
            )
            async for event in completion:
                if not event.choices:
                    continue
                choice = event.choices[0]
                text = choice.delta.content
                if not text:
                    continue
                reason = self._map_finish_reason(choice.finish_reason) if choice.finish_reason else None
                yield LLMStreamChunk(content=text, finish_reason=reason, metadata={"id": event.id})
        except openai.APIError as e:
            logger.error(f"OpenAI stream failed: {e}", extra={"model": request.model or self.model})
            raise

    async def close(self) -> None:
        await self.client.close()

    def _map_finish_reason(self, reason: str) -> FinishReason:
        return _FINISH_REASONS.get(reason, "stop")
