"""
Fixed-capacity conversation buffer.

Messages are appended at the tail; once the capacity is exceeded the oldest
entries are evicted from the head in one step, so the buffer always holds the
most recent `capacity` messages in insertion order.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator

from src.history.models import Message

logger = logging.getLogger(__name__)

DEFAULT_CAPACITY = 10


class ConversationBuffer:
    """Ordered, append-only log with FIFO eviction."""

    def __init__(self, capacity: int = DEFAULT_CAPACITY) -> None:
        if not isinstance(capacity, int) or capacity < 1:
            raise ValueError("capacity must be a positive integer")
        self._capacity = capacity
        self._messages: list[Message] = []
        self._evicted = 0

    @property
    def capacity(self) -> int:
        return self._capacity

    @property
    def evicted_count(self) -> int:
        """Total number of messages evicted since creation."""
        return self._evicted

    def append(self, message: Message) -> None:
        """Insert at the tail, then trim the head down to capacity."""
        self._messages.append(message)

        overflow = len(self._messages) - self._capacity
        if overflow > 0:
            del self._messages[:overflow]
            self._evicted += overflow
            logger.debug(
                "Evicted %d message(s), buffer at capacity %d",
                overflow, self._capacity,
            )

    @property
    def last(self) -> Message | None:
        return self._messages[-1] if self._messages else None

    def snapshot(self) -> list[Message]:
        """Copy of the current contents, oldest first."""
        return list(self._messages)

    def __len__(self) -> int:
        return len(self._messages)

    def __iter__(self) -> Iterator[Message]:
        return iter(self.snapshot())
