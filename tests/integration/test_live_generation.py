"""
Live generation smoke test.

Hits the configured provider for real; run with ``--run-integration`` and an
API key in the environment.
"""

import pytest

from pagecraft.config import get_settings
from pagecraft.conversations import ConversationController, ConversationStore
from pagecraft.llm import LLMProviderFactory
from pagecraft.storage import MemoryStorage


@pytest.mark.integration
@pytest.mark.asyncio
async def test_default_provider_produces_html():
    settings = get_settings()
    try:
        provider = LLMProviderFactory.create_default_provider(settings.llm)
    except ValueError as exc:
        pytest.skip(str(exc))

    store = ConversationStore(MemoryStorage())
    controller = ConversationController(store, provider)
    try:
        await controller.submit("A single centered heading that says Hello")
    finally:
        await provider.close()

    assert controller.error is None
    assert store.latest_html()
