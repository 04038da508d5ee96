"""
Streaming-specific dataclasses for the stream session.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class SessionState(Enum):
    """Lifecycle of a single request/response cycle."""
    IDLE = "idle"
    CONNECTING = "connecting"
    STREAMING = "streaming"
    COMPLETED = "completed"
    FAILED = "failed"

    @property
    def is_finished(self) -> bool:
        return self in (SessionState.COMPLETED, SessionState.FAILED)


@dataclass(frozen=True)
class SessionStats:
    """Statistics for one finished or running session."""
    state: SessionState
    delta_count: int
    dropped_chunks: int
    events: int
    saw_sentinel: bool
    duration: float
