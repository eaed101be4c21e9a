"""
Stream Assembler

Turns the delta stream of one assistant turn into a sequence of snapshots.

Usage:
    assembler = StreamAssembler(turn_id, provider.stream_text(prompt))
    async with aclosing(assembler.snapshots()) as snapshots:
        async for snapshot in snapshots:
            store.update_assistant_turn(turn_id, snapshot)
"""

import logging
from collections.abc import AsyncIterable, AsyncIterator

from pagecraft.conversations.errors import StreamFailure
from pagecraft.conversations.extractor import extract_html
from pagecraft.conversations.models import Snapshot

logger = logging.getLogger(__name__)


class StreamAssembler:
    """
    Accumulates text deltas for a single turn and emits snapshots.

    Each non-empty delta yields a snapshot carrying the full accumulated
    text and the fragment extracted from it. When the stream ends cleanly a
    final snapshot is emitted whose fragment falls back to the raw text.
    Transport errors surface as ``StreamFailure`` with the partial text.

    An assembler is single-use; create a new one for every turn.
    """

    def __init__(self, turn_id: str, deltas: AsyncIterable[str]):
        self.turn_id = turn_id
        self._deltas = deltas
        self._raw_text = ""
        self._started = False
        self._cancelled = False

    @property
    def raw_text(self) -> str:
        return self._raw_text

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    def cancel(self) -> None:
        """Stop emitting; nothing is yielded after this call."""
        if not self._cancelled:
            logger.debug(f"Cancelling stream for turn {self.turn_id}", extra={"turn_id": self.turn_id})
        self._cancelled = True

    def snapshots(self) -> AsyncIterator[Snapshot]:
        """Return the snapshot stream. May only be called once."""
        if self._started:
            raise RuntimeError(f"StreamAssembler for turn {self.turn_id} already consumed")
        self._started = True
        return self._assemble()

    def __aiter__(self) -> AsyncIterator[Snapshot]:
        return self.snapshots()

    async def _assemble(self) -> AsyncIterator[Snapshot]:
        iterator = aiter(self._deltas)
        try:
            while not self._cancelled:
                try:
                    delta = await anext(iterator)
                except StopAsyncIteration:
                    break
                except Exception as exc:
                    logger.warning(
                        f"Stream failed for turn {self.turn_id}: {exc}",
                        extra={"turn_id": self.turn_id, "partial_length": len(self._raw_text)},
                    )
                    raise StreamFailure(self._raw_text, exc) from exc

                if self._cancelled:
                    return
                if not delta:
                    continue

                self._raw_text += delta
                yield Snapshot(
                    raw_text=self._raw_text,
                    html_fragment=extract_html(self._raw_text),
                )

            if self._cancelled:
                return

            fragment = extract_html(self._raw_text) or self._raw_text or None
            logger.debug(
                f"Stream complete for turn {self.turn_id}",
                extra={"turn_id": self.turn_id, "length": len(self._raw_text)},
            )
            yield Snapshot(raw_text=self._raw_text, html_fragment=fragment, final=True)
        finally:
            aclose = getattr(iterator, "aclose", None)
            if aclose is not None:
                await aclose()
