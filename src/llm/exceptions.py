"""
Error types for the streaming pipeline.

This module provides the exception hierarchy with enough context to
classify and report failures:
- Transport failures that terminate a session
- Per-chunk decode failures that are recovered locally
- Misuse of single-use stream objects
"""

from __future__ import annotations


class StreamError(Exception):
    """Base streaming error."""


class TransportError(StreamError):
    """Connection refused, timeout, bad status or mid-stream disconnect."""

    def __init__(
        self,
        message: str,
        category: str = "unknown_error",
        status_code: int | None = None,
    ):
        super().__init__(message)
        self.category = category
        self.status_code = status_code


class ChunkDecodeError(StreamError):
    """A single event payload could not be decoded into a delta."""

    def __init__(self, message: str, payload: str):
        super().__init__(message)
        self.payload = payload


class StreamStateError(StreamError):
    """A single-use reader or session was driven more than once."""
    pass
