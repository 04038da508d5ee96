"""
Streaming functionality for the stream client.

This package contains:
- SSE frame reading
- Chunk decoding
- Stream sessions driving one request/response cycle
"""

from __future__ import annotations

from .decoder import ChunkDecoder
from .models import SessionState, SessionStats
from .reader import DONE_SENTINEL, FrameReader
from .session import StreamSession

__all__ = [
    "DONE_SENTINEL",
    "ChunkDecoder",
    "FrameReader",
    "SessionState",
    "SessionStats",
    "StreamSession",
]
