"""
Conversation Controller

Drives one user turn at a time: records the request, opens the assistant
placeholder, streams the model output into the store and handles failure
and cancellation.

Usage:
    controller = ConversationController(store, provider)
    await controller.submit("A landing page for a bakery")
    html = controller.store.latest_html()
"""

import asyncio
import logging
from collections.abc import AsyncIterator
from contextlib import aclosing
from typing import Protocol

from pagecraft.conversations.assembler import StreamAssembler
from pagecraft.conversations.errors import BusyError, StreamFailure, ValidationError
from pagecraft.conversations.extractor import extract_html
from pagecraft.conversations.models import Snapshot
from pagecraft.conversations.store import APOLOGY_TEXT, ConversationStore
from pagecraft.prompts.loader import PromptLoader, build_prompt

logger = logging.getLogger(__name__)

EMPTY_REQUEST_MESSAGE = "Please enter a description for your webpage"
GENERATION_FAILED_MESSAGE = "Failed to generate the webpage. Please try again."


class GenerationService(Protocol):
    """Anything that streams text deltas for a prompt."""

    def stream_text(self, prompt: str) -> AsyncIterator[str]: ...


class ConversationController:
    """
    Orchestrates user turns against a ConversationStore.

    Only one turn may stream at a time; a second submit raises BusyError.
    Stream failures never propagate out of submit: the assistant message is
    finalized with the partial text (or an apology) and ``error`` is set.

    Attributes:
        store: Conversation history owner
        error: User-visible error for the last action, if any
        last_failure: StreamFailure from the last turn, if it failed
    """

    def __init__(
        self,
        store: ConversationStore,
        generation_service: GenerationService,
        prompt_loader: PromptLoader | None = None,
    ):
        self.store = store
        self.generation_service = generation_service
        self._prompt_loader = prompt_loader or PromptLoader()
        self._turn_task: asyncio.Task | None = None
        self._assembler: StreamAssembler | None = None
        self.error: str | None = None
        self.last_failure: StreamFailure | None = None

    @property
    def is_loading(self) -> bool:
        return self._turn_task is not None and not self._turn_task.done()

    async def submit(self, text: str) -> None:
        """
        Run a full turn for ``text``.

        Raises:
            BusyError: A previous turn is still streaming
            ValidationError: ``text`` is empty or whitespace
        """
        if self.is_loading:
            raise BusyError()
        if not text or not text.strip():
            self.error = EMPTY_REQUEST_MESSAGE
            raise ValidationError(EMPTY_REQUEST_MESSAGE)

        self.error = None
        self.last_failure = None

        prompt = build_prompt(text, self.store.latest_html(), self._prompt_loader)
        self.store.append_user(text)
        turn_id = self.store.begin_assistant_turn()

        logger.info(
            f"Starting turn {turn_id}",
            extra={"turn_id": turn_id, "request": text[:100], "prompt_length": len(prompt)},
        )

        assembler = StreamAssembler(turn_id, self.generation_service.stream_text(prompt))
        task = asyncio.ensure_future(self._run_turn(assembler))
        self._assembler = assembler
        self._turn_task = task
        try:
            await task
        except asyncio.CancelledError:
            if not assembler.cancelled:
                raise
            logger.info(f"Turn {turn_id} cancelled", extra={"turn_id": turn_id})
        finally:
            if self._turn_task is task:
                self._turn_task = None
                self._assembler = None

    async def start_new(self) -> None:
        """Cancel any in-flight turn, then clear the conversation."""
        task, assembler = self._turn_task, self._assembler
        if task is not None and not task.done():
            if assembler is not None:
                assembler.cancel()
            task.cancel()
            await asyncio.wait([task])

        self.store.reset()
        self._turn_task = None
        self._assembler = None
        self.error = None
        self.last_failure = None

    def load_previous(self) -> bool:
        """Restore the saved conversation.

        Returns False when nothing is saved or the saved data was unusable.
        """
        if self.is_loading:
            raise BusyError()
        if not self.store.has_saved_state():
            logger.info("No saved conversation to load")
            return False
        self.store.restore()
        self.error = None
        return self.store.restored_saved_state

    async def _run_turn(self, assembler: StreamAssembler) -> None:
        turn_id = assembler.turn_id
        try:
            async with aclosing(assembler.snapshots()) as snapshots:
                async for snapshot in snapshots:
                    if assembler.cancelled:
                        break
                    self.store.update_assistant_turn(turn_id, snapshot)
        except StreamFailure as failure:
            logger.error(
                f"Turn {turn_id} failed: {failure.message}",
                extra={"turn_id": turn_id, **failure.to_dict()},
            )
            self.last_failure = failure
            self.error = GENERATION_FAILED_MESSAGE
            self._finalize(turn_id, failure.partial_text)
        except asyncio.CancelledError:
            # Cancelled by the caller rather than start_new: keep the turn.
            if not assembler.cancelled:
                self._finalize(turn_id, assembler.raw_text)
            raise

    def _finalize(self, turn_id: str, partial_text: str) -> None:
        if partial_text:
            snapshot = Snapshot(
                raw_text=partial_text,
                html_fragment=extract_html(partial_text),
                final=True,
            )
        else:
            snapshot = Snapshot(raw_text=APOLOGY_TEXT, html_fragment=None, final=True)
        self.store.update_assistant_turn(turn_id, snapshot)
