"""
HTTP client for the completion stream endpoint.

Owns the shared httpx connection pool and hands out single-use
StreamSession objects, one per user turn.
"""

from __future__ import annotations

from typing import Any

import httpx

from src.logging_utils import log_operation

from .streaming.decoder import ChunkDecoder
from .streaming.session import StreamSession


class StreamClient:
    """HTTP client for streaming completions over SSE."""

    def __init__(
        self,
        config: dict[str, Any],
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        # Validate required configuration parameters
        required_keys = ["endpoint", "connect_timeout", "read_timeout"]
        for key in required_keys:
            if key not in config:
                raise ValueError(
                    f"Required stream configuration parameter '{key}' not found. "
                    "All stream parameters must be explicitly configured."
                )

        self.config: dict[str, Any] = config
        self.endpoint: str = config["endpoint"]
        self.client: httpx.AsyncClient = httpx.AsyncClient(
            timeout=httpx.Timeout(
                connect=config["connect_timeout"],
                read=config["read_timeout"],
                write=config.get("write_timeout", config["connect_timeout"]),
                pool=config.get("pool_timeout", config["connect_timeout"]),
            ),
            transport=transport,
        )

    def open_session(self) -> StreamSession:
        """Create a fresh session; each session serves exactly one utterance."""
        return StreamSession(self.client, self.endpoint, ChunkDecoder())

    @log_operation("stream_client.close")
    async def close(self) -> None:
        """Close the HTTP client."""
        await self.client.aclose()

    async def __aenter__(self) -> StreamClient:
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()
