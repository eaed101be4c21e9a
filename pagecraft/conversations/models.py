"""
Conversation Models

Pydantic models for conversation turns and streaming snapshots.
Messages serialize with camelCase keys so the stored history keeps the
``{role, rawText, htmlFragment, createdAt}`` record shape.
"""

from datetime import UTC, datetime
from typing import Literal
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


def _new_message_id() -> str:
    return uuid4().hex


def _utcnow() -> datetime:
    return datetime.now(UTC)


class Message(BaseModel):
    """Single conversation turn (user request or assistant response)."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
    )

    id: str = Field(
        default_factory=_new_message_id,
        description="Opaque message identifier",
    )
    role: Literal["user", "assistant"] = Field(
        ...,
        description="Message author",
    )
    raw_text: str = Field(
        default="",
        description="Full text accumulated for this turn so far",
    )
    html_fragment: str | None = Field(
        default=None,
        description="Best-known HTML fragment extracted from raw_text",
    )
    created_at: datetime = Field(
        default_factory=_utcnow,
        description="Creation time (timezone-aware)",
    )


class Conversation(BaseModel):
    """Ordered message history; insertion order is display order."""

    messages: list[Message] = Field(default_factory=list)

    def __len__(self) -> int:
        return len(self.messages)

    @property
    def assistant_messages(self) -> list[Message]:
        return [msg for msg in self.messages if msg.role == "assistant"]


class Snapshot(BaseModel):
    """Intermediate state of an assistant turn emitted while streaming."""

    model_config = ConfigDict(frozen=True)

    raw_text: str = Field(..., description="Accumulated text")
    html_fragment: str | None = Field(None, description="Extracted fragment")
    final: bool = Field(
        default=False,
        description="True for the end-of-stream snapshot",
    )
