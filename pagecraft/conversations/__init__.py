"""Streaming conversation core: extraction, assembly, storage and turn control."""

from .assembler import StreamAssembler
from .controller import ConversationController, GenerationService
from .errors import (
    BusyError,
    ConversationError,
    NotFoundError,
    PersistenceCorruptError,
    StreamFailure,
    ValidationError,
)
from .extractor import extract_html
from .models import Conversation, Message, Snapshot
from .store import ConversationStore

__all__ = [
    "BusyError",
    "Conversation",
    "ConversationController",
    "ConversationError",
    "ConversationStore",
    "GenerationService",
    "Message",
    "NotFoundError",
    "PersistenceCorruptError",
    "Snapshot",
    "StreamAssembler",
    "StreamFailure",
    "ValidationError",
    "extract_html",
]
