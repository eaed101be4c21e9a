"""
Conversation Errors

Exception taxonomy for the conversation core. Every error carries a
``recoverable`` flag so callers can decide whether to offer a retry.
"""

from typing import Any


class ConversationError(Exception):
    """
    Base exception for conversation errors.

    Attributes:
        message: Error description
        recoverable: Whether the conversation can continue after this error
        context: Additional context for debugging
    """

    def __init__(
        self,
        message: str,
        recoverable: bool = True,
        context: dict[str, Any] | None = None,
    ):
        self.message = message
        self.recoverable = recoverable
        self.context = context or {}
        super().__init__(message)

    def to_dict(self) -> dict[str, Any]:
        """Convert error to dictionary for logging."""
        return {
            "message": self.message,
            "recoverable": self.recoverable,
            "context": self.context,
            "type": self.__class__.__name__,
        }


class ValidationError(ConversationError):
    """Rejected user input (empty request)."""

    def __init__(self, message: str, context: dict[str, Any] | None = None):
        super().__init__(message, recoverable=True, context=context)


class BusyError(ConversationError):
    """A turn is already streaming."""

    def __init__(
        self,
        message: str = "A response is still being generated.",
        context: dict[str, Any] | None = None,
    ):
        super().__init__(message, recoverable=True, context=context)


class NotFoundError(ConversationError):
    """Attempt to amend a message that is not the open assistant turn."""

    def __init__(self, message: str, context: dict[str, Any] | None = None):
        super().__init__(message, recoverable=False, context=context)


class StreamFailure(ConversationError):
    """
    The generation stream failed mid-turn.

    Attributes:
        partial_text: Text accumulated before the failure
        cause: Underlying transport/service exception
    """

    def __init__(self, partial_text: str, cause: BaseException | None = None):
        self.partial_text = partial_text
        self.cause = cause
        super().__init__(
            f"Generation stream failed: {cause}" if cause else "Generation stream failed",
            recoverable=True,
            context={"partial_length": len(partial_text)},
        )


class PersistenceCorruptError(ConversationError):
    """Stored conversation data could not be decoded."""

    def __init__(self, message: str, context: dict[str, Any] | None = None):
        super().__init__(message, recoverable=True, context=context)
