"""
LLM Provider Module

Streaming provider layer supporting Google Gemini, OpenAI, and local models.

Usage:
    from pagecraft.llm import LLMProviderFactory
    from pagecraft.config import get_settings

    provider = LLMProviderFactory.create_default_provider(get_settings().llm)

    async for delta in provider.stream_text("A portfolio page"):
        print(delta, end="")
"""

from pagecraft.llm.base import BaseLLMProvider
from pagecraft.llm.factory import LLMProviderFactory
from pagecraft.llm.google import GoogleProvider
from pagecraft.llm.local import LocalProvider
from pagecraft.llm.models import LLMMessage, LLMRequest, LLMStreamChunk
from pagecraft.llm.openai import OpenAIProvider

__all__ = [
    # Base classes
    "BaseLLMProvider",
    # Models
    "LLMMessage",
    "LLMRequest",
    "LLMStreamChunk",
    # Factory
    "LLMProviderFactory",
    # Providers
    "GoogleProvider",
    "OpenAIProvider",
    "LocalProvider",
]
