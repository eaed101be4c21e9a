"""
Provider Factory

Builds the configured generation provider from LLMSettings.
"""

import logging
from collections.abc import Callable

from pagecraft.config import LLMSettings, ProviderName
from pagecraft.llm.base import BaseLLMProvider
from pagecraft.llm.google import GoogleProvider
from pagecraft.llm.local import LocalProvider
from pagecraft.llm.openai import OpenAIProvider

logger = logging.getLogger(__name__)


def _build_google(config: LLMSettings) -> GoogleProvider:
    if not config.google_api_key:
        raise ValueError("Gemini needs an API key. Set LLM_GOOGLE_API_KEY")
    return GoogleProvider(
        api_key=config.google_api_key,
        model=config.google_model,
        temperature=config.temperature,
        max_tokens=config.max_tokens,
        timeout=config.timeout,
    )


def _build_openai(config: LLMSettings) -> OpenAIProvider:
    if not config.openai_api_key:
        raise ValueError("OpenAI needs an API key. Set LLM_OPENAI_API_KEY")
    return OpenAIProvider(
        api_key=config.openai_api_key,
        model=config.openai_model,
        temperature=config.temperature,
        max_tokens=config.max_tokens,
        timeout=config.timeout,
    )


def _build_local(config: LLMSettings) -> LocalProvider:
    return LocalProvider(
        base_url=config.local_base_url,
        model=config.local_model,
        temperature=config.temperature,
        max_tokens=config.max_tokens,
        timeout=config.timeout,
    )


class LLMProviderFactory:
    """Registry of provider builders keyed by settings name."""

    PROVIDERS: dict[str, Callable[[LLMSettings], BaseLLMProvider]] = {
        "google": _build_google,
        "openai": _build_openai,
        "local": _build_local,
    }

    @staticmethod
    def create_provider(provider_type: ProviderName, config: LLMSettings) -> BaseLLMProvider:
        """
        Create a provider instance.

        Raises:
            ValueError: Unknown provider type or missing API key
        """
        builder = LLMProviderFactory.PROVIDERS.get(provider_type)
        if builder is None:
            raise ValueError(
                f"Unknown provider type: {provider_type}. "
                f"Choose one of: {', '.join(LLMProviderFactory.PROVIDERS)}"
            )
        logger.info(f"Creating {provider_type} provider", extra={"provider": provider_type})
        return builder(config)

    @staticmethod
    def create_default_provider(config: LLMSettings) -> BaseLLMProvider:
        return LLMProviderFactory.create_provider(config.default_provider, config)
