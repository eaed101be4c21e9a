"""
Provider Base Class

Every provider streams chunks for an LLMRequest and, through
``stream_text``, doubles as the generation service the
ConversationController pulls text deltas from.
"""

import logging
from abc import ABC, abstractmethod
from collections.abc import AsyncIterator

from pagecraft.llm.models import LLMRequest, LLMStreamChunk

logger = logging.getLogger(__name__)


class BaseLLMProvider(ABC):
    """
    Streaming text generator backed by a hosted or local model.

    Attributes:
        provider_name: Registry name ("google", "openai", "local")
        temperature: Sampling temperature used when a request sets none
        max_tokens: Output token cap used when a request sets none
        timeout: Network timeout in seconds
    """

    def __init__(
        self,
        provider_name: str,
        temperature: float = 0.7,
        max_tokens: int = 8192,
        timeout: int = 120,
    ):
        self.provider_name = provider_name
        self.temperature = temperature
        self.max_tokens = max_tokens
        self.timeout = timeout

        logger.info(
            f"Using {provider_name} for page generation",
            extra={"provider": provider_name, "temperature": temperature, "timeout": timeout},
        )

    @abstractmethod
    async def stream(self, request: LLMRequest) -> AsyncIterator[LLMStreamChunk]:
        """
        Yield chunks of generated text as the model produces them.

        Network and API errors propagate to the consumer unchanged.
        """
        pass  # pragma: no cover - abstract method

    async def stream_text(self, prompt: str) -> AsyncIterator[str]:
        """Stream plain text deltas for a rendered page prompt."""
        async for chunk in self.stream(LLMRequest.from_prompt(prompt)):
            yield chunk.content

    async def close(self) -> None:
        """Release network resources held by the provider."""
        return None

    def _apply_defaults(self, request: LLMRequest) -> LLMRequest:
        return request.model_copy(
            update={
                "temperature": self.temperature if request.temperature is None else request.temperature,
                "max_tokens": self.max_tokens if request.max_tokens is None else request.max_tokens,
            }
        )

    def _log_request(self, request: LLMRequest) -> None:
        prompt_chars = sum(len(msg.content) for msg in request.messages)
        logger.debug(
            f"Streaming from {self.provider_name} ({prompt_chars} prompt chars)",
            extra={
                "provider": self.provider_name,
                "prompt_chars": prompt_chars,
                "temperature": request.temperature,
                "max_tokens": request.max_tokens,
            },
        )
