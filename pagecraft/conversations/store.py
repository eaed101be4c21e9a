"""Conversation history with write-through persistence."""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable

from pydantic import TypeAdapter
from pydantic import ValidationError as SchemaValidationError

from pagecraft.conversations.errors import NotFoundError, PersistenceCorruptError, ValidationError
from pagecraft.conversations.models import Conversation, Message, Snapshot
from pagecraft.storage import KeyValueStorage

logger = logging.getLogger(__name__)

DEFAULT_CONVERSATION_KEY = "last_conversation"
APOLOGY_TEXT = "Sorry, I encountered an error generating your webpage. Please try again."

ConversationObserver = Callable[[Conversation], None]

_MESSAGES_ADAPTER = TypeAdapter(list[Message])


class ConversationStore:
    """Single owner of the conversation sequence.

    Every successful mutation serializes the whole conversation to storage
    and then notifies observers. Only the most recent assistant message may
    be amended.
    """

    def __init__(
        self,
        storage: KeyValueStorage,
        key: str = DEFAULT_CONVERSATION_KEY,
    ) -> None:
        self._storage = storage
        self._key = key
        self._messages: list[Message] = []
        self._observers: list[ConversationObserver] = []
        self._lock = threading.RLock()
        self.restored_saved_state = False

    @property
    def conversation(self) -> Conversation:
        """Deep copy of the current history."""
        with self._lock:
            return Conversation(messages=[msg.model_copy(deep=True) for msg in self._messages])

    def __len__(self) -> int:
        return len(self._messages)

    def subscribe(self, observer: ConversationObserver) -> Callable[[], None]:
        """Register a change callback; returns a function that removes it."""
        self._observers.append(observer)

        def unsubscribe() -> None:
            if observer in self._observers:
                self._observers.remove(observer)

        return unsubscribe

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    def append_user(self, text: str) -> str:
        if not text or not text.strip():
            raise ValidationError("Please enter a description for your webpage")
        message = Message(role="user", raw_text=text)
        with self._lock:
            self._messages.append(message)
            self._commit()
        return message.id

    def begin_assistant_turn(self) -> str:
        message = Message(role="assistant", raw_text="", html_fragment=None)
        with self._lock:
            self._messages.append(message)
            self._commit()
        return message.id

    def update_assistant_turn(self, message_id: str, snapshot: Snapshot) -> None:
        with self._lock:
            if not self._messages or self._messages[-1].id != message_id:
                raise NotFoundError(
                    f"Message {message_id} is not the open assistant turn",
                    context={"message_id": message_id},
                )
            current = self._messages[-1]
            if current.role != "assistant":
                raise NotFoundError(
                    f"Message {message_id} is not an assistant message",
                    context={"message_id": message_id},
                )
            self._messages[-1] = current.model_copy(
                update={
                    "raw_text": snapshot.raw_text,
                    "html_fragment": snapshot.html_fragment,
                }
            )
            self._commit()

    def reset(self) -> None:
        with self._lock:
            self._messages = []
            self._storage.remove(self._key)
            logger.info("Conversation reset", extra={"key": self._key})
            self._notify()

    def restore(self) -> Conversation:
        """Load the persisted conversation, if one is stored.

        Corrupt or invalid data is treated as an empty conversation and
        ``restored_saved_state`` is left False.
        """
        with self._lock:
            self.restored_saved_state = False
            payload = self._read()
            if payload is None:
                return self.conversation
            try:
                messages = self._decode(payload)
            except PersistenceCorruptError as exc:
                logger.warning(
                    f"Discarding unreadable conversation: {exc.message}",
                    extra={"key": self._key},
                )
                messages = []
            else:
                self.restored_saved_state = True

            self._messages, repaired = _close_interrupted_turn(messages)
            logger.info(
                f"Restored conversation with {len(self._messages)} messages",
                extra={"key": self._key, "message_count": len(self._messages)},
            )
            if repaired:
                self._commit()
            else:
                self._notify()
            return self.conversation

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def has_saved_state(self) -> bool:
        """True when something is stored under the key, readable or not."""
        return self._read() is not None

    def latest_html(self) -> str | None:
        """Fragment of the most recent assistant message that has one."""
        with self._lock:
            for message in reversed(self._messages):
                if message.role == "assistant" and message.html_fragment:
                    return message.html_fragment
        return None

    def latest_assistant_text(self) -> str | None:
        with self._lock:
            for message in reversed(self._messages):
                if message.role == "assistant":
                    return message.raw_text
        return None

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _read(self) -> str | None:
        """Stored payload, None when absent, "" when present but unreadable."""
        try:
            return self._storage.get(self._key)
        except (OSError, UnicodeDecodeError) as exc:
            logger.warning(f"Failed to read stored conversation: {exc}", extra={"key": self._key})
            return ""

    def _commit(self) -> None:
        payload = _MESSAGES_ADAPTER.dump_json(self._messages, by_alias=True).decode("utf-8")
        self._storage.set(self._key, payload)
        self._notify()

    def _notify(self) -> None:
        if not self._observers:
            return
        snapshot = self.conversation
        for observer in list(self._observers):
            observer(snapshot)

    @staticmethod
    def _decode(payload: str) -> list[Message]:
        try:
            return _MESSAGES_ADAPTER.validate_json(payload)
        except SchemaValidationError as exc:
            raise PersistenceCorruptError(
                f"Stored conversation failed validation ({exc.error_count()} errors)"
            ) from exc


def _close_interrupted_turn(messages: list[Message]) -> tuple[list[Message], bool]:
    """Finalize a placeholder left behind by a session that died mid-stream."""
    if messages and messages[-1].role == "assistant" and not messages[-1].raw_text:
        messages[-1] = messages[-1].model_copy(update={"raw_text": APOLOGY_TEXT})
        return messages, True
    return messages, False
