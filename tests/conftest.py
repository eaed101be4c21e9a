"""
Pytest configuration and shared fixtures.

This module provides fixtures and configuration used across all tests.
"""

import asyncio
import logging
from collections.abc import AsyncIterator

import pytest

from pagecraft.config import clear_settings_cache
from pagecraft.conversations import ConversationController, ConversationStore
from pagecraft.storage import JsonFileStorage, MemoryStorage

# ============================================================================
# Pytest Configuration
# ============================================================================


def pytest_addoption(parser):
    """Add custom command line options."""
    parser.addoption(
        "--run-integration",
        action="store_true",
        default=False,
        help="Run integration tests (requires API keys and external services)",
    )


def pytest_collection_modifyitems(config, items):
    """Skip integration tests unless explicitly enabled."""
    if config.getoption("--run-integration"):
        return
    skip_integration = pytest.mark.skip(
        reason="Integration tests disabled (use --run-integration to enable)."
    )
    for item in items:
        if "integration" in item.keywords:
            item.add_marker(skip_integration)


# ============================================================================
# Logging Configuration
# ============================================================================


@pytest.fixture(autouse=True)
def configure_test_logging(caplog):
    """Capture logs at DEBUG for every test."""
    caplog.set_level(logging.DEBUG)
    yield


@pytest.fixture(autouse=True)
def isolated_settings(tmp_path, monkeypatch):
    """Point settings at a temporary storage directory and ignore .env files."""
    monkeypatch.setenv("PAGECRAFT_ENV_SOURCE", "environment")
    monkeypatch.setenv("STORAGE_DIRECTORY", str(tmp_path / "storage"))
    monkeypatch.delenv("LLM_DEFAULT_PROVIDER", raising=False)
    monkeypatch.delenv("DEBUG", raising=False)
    clear_settings_cache()
    yield
    clear_settings_cache()


# ============================================================================
# Generation service fakes
# ============================================================================


class ScriptedGenerationService:
    """Streams a fixed list of deltas, optionally failing afterwards.

    ``gate`` pauses the stream after ``pause_after`` deltas until it is set.
    """

    def __init__(
        self,
        deltas: list[str],
        error: Exception | None = None,
        gate: asyncio.Event | None = None,
        pause_after: int | None = None,
    ):
        self.deltas = deltas
        self.error = error
        self.gate = gate
        self.pause_after = pause_after
        self.prompts: list[str] = []
        self.emitted = 0
        self.closed = False
        self.paused = asyncio.Event()

    async def stream_text(self, prompt: str) -> AsyncIterator[str]:
        self.prompts.append(prompt)
        try:
            for index, delta in enumerate(self.deltas):
                if self.gate is not None and index == self.pause_after:
                    self.paused.set()
                    await self.gate.wait()
                self.emitted += 1
                yield delta
            if self.error is not None:
                raise self.error
        finally:
            self.closed = True


@pytest.fixture
def memory_storage():
    return MemoryStorage()


@pytest.fixture
def file_storage(tmp_path):
    return JsonFileStorage(tmp_path / "conversations")


@pytest.fixture
def store(memory_storage):
    return ConversationStore(memory_storage)


@pytest.fixture
def make_controller(store):
    def _make(service) -> ConversationController:
        return ConversationController(store, service)

    return _make


@pytest.fixture
def scripted_service():
    """Factory for ScriptedGenerationService instances."""
    return ScriptedGenerationService
