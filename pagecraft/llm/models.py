"""
Provider Request Models

Provider-agnostic request and chunk types shared by the Google, OpenAI and
local providers. Page generation sends a single user message per turn, so
``LLMRequest.from_prompt`` covers the common case.
"""

from typing import Any, Literal

from pydantic import BaseModel, Field

FinishReason = Literal["stop", "length", "content_filter", "error"]


class LLMMessage(BaseModel):
    """One chat message handed to a provider."""

    role: Literal["system", "user", "assistant"] = Field(..., description="Author of the message")
    content: str = Field(..., min_length=1, description="Prompt or reply text")


class LLMRequest(BaseModel):
    """Generation request; unset sampling fields fall back to provider defaults."""

    messages: list[LLMMessage] = Field(..., min_length=1, description="Chat history to send")
    temperature: float | None = Field(None, ge=0.0, le=2.0, description="Per-request temperature")
    max_tokens: int | None = Field(None, gt=0, description="Per-request output token cap")
    model: str | None = Field(None, description="Model override for this request")
    metadata: dict[str, Any] = Field(
        default_factory=dict,
        description="Extra keyword arguments forwarded to the provider SDK",
    )

    @classmethod
    def from_prompt(cls, prompt: str, **overrides: Any) -> "LLMRequest":
        """Build a single-message request for a rendered page prompt."""
        return cls(messages=[LLMMessage(role="user", content=prompt)], **overrides)


class LLMStreamChunk(BaseModel):
    """A text delta from a streaming provider."""

    content: str = Field(..., description="Text added by this chunk")
    finish_reason: FinishReason | None = Field(
        None,
        description="Set on the chunk that ends the generation",
    )
    metadata: dict[str, Any] = Field(default_factory=dict, description="Provider chunk details")
