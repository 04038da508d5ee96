"""
Streaming completion integration with dataclass-based models.

This package provides the client side of the completion stream:
- Type-safe deltas, usage and message kinds
- Wire schema for streamed chunks
- Error types for transport and decode failures

The HTTP client lives in `src.llm.client` and the pipeline stages in
`src.llm.streaming`.
"""

from __future__ import annotations

from .exceptions import (
    ChunkDecodeError,
    StreamError,
    StreamStateError,
    TransportError,
)
from .models import (
    ChatChunk,
    ChunkChoice,
    ChunkDelta,
    ChunkUsage,
    Delta,
    MessageKind,
    Usage,
)

__all__ = [
    # Wire schema
    "ChatChunk",
    "ChunkChoice",
    # Exceptions
    "ChunkDecodeError",
    "ChunkDelta",
    "ChunkUsage",
    # Core models
    "Delta",
    "MessageKind",
    "StreamError",
    "StreamStateError",
    "TransportError",
    "Usage",
]
