# src/history/models.py
from __future__ import annotations

import uuid
from datetime import UTC, datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from src.llm.models import Delta, MessageKind, Usage


class Message(BaseModel):
    """
    One entry of the conversation buffer.

    Identity (`id`) is generated once and never reused; two messages with the
    same text are still different entries.
    """
    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    text: str
    kind: MessageKind
    created_at: datetime = Field(default_factory=lambda: datetime.now(UTC))
    usage: Usage | None = None

    @classmethod
    def from_user(cls, text: str) -> Message:
        return cls(text=text, kind=MessageKind.USER)

    @classmethod
    def from_delta(cls, delta: Delta) -> Message:
        return cls(text=delta.token_text, kind=delta.kind, usage=delta.usage)

    def __eq__(self, other: Any) -> bool:
        if not isinstance(other, Message):
            return NotImplemented
        return self.id == other.id

    def __hash__(self) -> int:
        return hash(self.id)
