"""
Core streaming dataclasses and the wire schema for completion chunks.

This module provides the foundational types for the ingestion pipeline:
- Message kinds with lenient wire parsing
- Token usage statistics
- Decoded deltas handed to the conversation layer
- Pydantic models describing the JSON chunk on the wire
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from pydantic import AliasChoices, BaseModel, ConfigDict, Field


class MessageKind(Enum):
    """Closed set of message kinds shown in the conversation."""
    TEXT = "text"
    ERROR = "error"
    TOOL_START = "tool_start"
    TOOL_END = "tool_end"
    USER = "user"

    @classmethod
    def from_wire(cls, value: str | None) -> MessageKind:
        """Map a wire `type` value to a kind, falling back to TEXT."""
        if value is None:
            return cls.TEXT
        return _WIRE_KINDS.get(value, cls.TEXT)


_WIRE_KINDS: dict[str, MessageKind] = {
    **{kind.value: kind for kind in MessageKind},
    "toolStart": MessageKind.TOOL_START,
    "toolEnd": MessageKind.TOOL_END,
}


@dataclass(frozen=True)
class Usage:
    """Token usage statistics."""
    prompt_tokens: int
    completion_tokens: int
    total_tokens: int


@dataclass(frozen=True)
class Delta:
    """One decoded unit of a streamed response."""
    token_text: str
    kind: MessageKind = MessageKind.TEXT
    usage: Usage | None = None
    is_terminal: bool = False

    @classmethod
    def error(cls, description: str) -> Delta:
        """Synthetic delta reporting a transport failure."""
        return cls(
            token_text=f"[Error: {description}]",
            kind=MessageKind.ERROR,
            usage=None,
            is_terminal=True,
        )


# --------------------------------------------------------------------------- #
# Wire schema                                                                 #
# --------------------------------------------------------------------------- #


class ChunkDelta(BaseModel):
    """`choices[n].delta` of a streamed chunk."""
    model_config = ConfigDict(extra="ignore")

    role: str | None = None
    content: str | None = None
    type: str | None = None


class ChunkChoice(BaseModel):
    model_config = ConfigDict(extra="ignore")

    delta: ChunkDelta
    index: int = 0
    finish_reason: str | None = Field(
        default=None,
        validation_alias=AliasChoices("finish_reason", "finishReason"),
    )


class ChunkUsage(BaseModel):
    """Usage block; accepts camelCase and snake_case keys."""
    model_config = ConfigDict(extra="ignore")

    prompt_tokens: int = Field(
        validation_alias=AliasChoices("promptTokens", "prompt_tokens")
    )
    completion_tokens: int = Field(
        validation_alias=AliasChoices("completionTokens", "completion_tokens")
    )
    total_tokens: int = Field(
        validation_alias=AliasChoices("totalTokens", "total_tokens")
    )

    def to_usage(self) -> Usage:
        return Usage(
            prompt_tokens=self.prompt_tokens,
            completion_tokens=self.completion_tokens,
            total_tokens=self.total_tokens,
        )


class ChatChunk(BaseModel):
    """ChatGPT-style streamed chunk."""
    model_config = ConfigDict(extra="ignore")

    id: str | None = None
    object: str | None = None
    created: int | None = None
    model: str | None = None
    choices: list[ChunkChoice] = Field(default_factory=list)
    usage: ChunkUsage | None = None
