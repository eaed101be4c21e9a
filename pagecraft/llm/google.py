"""
Gemini Provider

Default generation backend. Streams page markup from Google Gemini through
the google-generativeai SDK.
"""

import logging
import warnings
from collections.abc import AsyncIterator
from typing import Any

from pagecraft.llm.base import BaseLLMProvider
from pagecraft.llm.models import FinishReason, LLMRequest, LLMStreamChunk

logger = logging.getLogger(__name__)


class GoogleProvider(BaseLLMProvider):
    """Streams ``generate_content_async`` output as LLMStreamChunks."""

    def __init__(
        self,
        api_key: str,
        model: str = "gemini-2.5-flash",
        temperature: float = 0.7,
        max_tokens: int = 8192,
        timeout: int = 120,
    ):
        super().__init__("google", temperature=temperature, max_tokens=max_tokens, timeout=timeout)
        self.model = model

        # The SDK emits a deprecation FutureWarning on import.
        with warnings.catch_warnings():
            warnings.simplefilter("ignore", FutureWarning)
            import google.generativeai as genai

        genai.configure(api_key=api_key)
        self.genai = genai

    async def stream(self, request: LLMRequest) -> AsyncIterator[LLMStreamChunk]:
        request = self._apply_defaults(request)
        self._log_request(request)

        model = self.genai.GenerativeModel(request.model or self.model)
        response = await model.generate_content_async(
            self._flatten_messages(request),
            generation_config=self.genai.types.GenerationConfig(
                temperature=request.temperature,
                max_output_tokens=request.max_tokens,
            ),
            request_options={"timeout": self.timeout},
            stream=True,
        )

        async for chunk in response:
            text = self._extract_chunk_text(chunk)
            if not text:
                continue
            yield LLMStreamChunk(content=text, finish_reason=self._extract_finish_reason(chunk))

    @staticmethod
    def _flatten_messages(request: LLMRequest) -> str:
        """Gemini takes one prompt string; label turns only when there are several."""
        if len(request.messages) == 1:
            return request.messages[0].content
        return "\n\n".join(f"{msg.role.capitalize()}: {msg.content}" for msg in request.messages)

    def _extract_chunk_text(self, chunk: Any) -> str:
        texts: list[str] = []
        for candidate in getattr(chunk, "candidates", None) or []:
            parts = getattr(getattr(candidate, "content", None), "parts", None) or []
            texts.extend(part.text for part in parts if isinstance(getattr(part, "text", None), str))
        return "".join(texts)

    def _extract_finish_reason(self, chunk: Any) -> FinishReason | None:
        candidates = getattr(chunk, "candidates", None)
        if not candidates:
            return None
        raw = getattr(candidates[0], "finish_reason", None)
        if not raw:
            return None
        name = str(getattr(raw, "name", raw)).lower()
        if "max_tokens" in name or "length" in name:
            return "length"
        if any(token in name for token in ("safety", "blocked", "recitation")):
            return "content_filter"
        if "stop" in name:
            return "stop"
        return None
