"""Shared fixtures for the stream client tests."""

from __future__ import annotations

import asyncio
import json
from collections.abc import Callable

import httpx
import pytest
import pytest_asyncio

from src.llm.client import StreamClient

TEST_ENDPOINT = "http://localhost:3000"


class ScriptedStream(httpx.AsyncByteStream):
    """Response body that yields fixed chunks, optionally waits, then may fail."""

    def __init__(
        self,
        chunks: list[bytes],
        *,
        error: Exception | None = None,
        gate: asyncio.Event | None = None,
        after_gate: list[bytes] | None = None,
    ) -> None:
        self.chunks = chunks
        self.error = error
        self.gate = gate
        self.after_gate = after_gate or []

    async def __aiter__(self):
        for chunk in self.chunks:
            yield chunk
        if self.gate is not None:
            await self.gate.wait()
            for chunk in self.after_gate:
                yield chunk
        if self.error is not None:
            raise self.error

    async def aclose(self) -> None:
        pass


def sse_response(
    chunks: list[bytes], status_code: int = 200, **stream_kwargs
) -> httpx.Response:
    return httpx.Response(
        status_code,
        headers={"content-type": "text/event-stream"},
        stream=ScriptedStream(chunks, **stream_kwargs),
    )


def chunk_line(content: str, kind: str | None = None, usage: dict | None = None) -> bytes:
    """One `data:` line carrying a ChatGPT-style chunk."""
    delta: dict = {"content": content}
    if kind is not None:
        delta["type"] = kind
    payload: dict = {
        "id": "chatcmpl-1",
        "object": "chat.completion.chunk",
        "created": 1700000000,
        "model": "echo",
        "choices": [{"delta": delta, "index": 0}],
    }
    if usage is not None:
        payload["usage"] = usage
    return f"data: {json.dumps(payload)}\n\n".encode()


DONE_LINE = b"data: [DONE]\n\n"


@pytest.fixture
def stream_config() -> dict:
    return {
        "endpoint": TEST_ENDPOINT,
        "connect_timeout": 5.0,
        "read_timeout": 5.0,
    }


@pytest_asyncio.fixture
async def make_client(stream_config):
    """Factory building StreamClients on top of an httpx.MockTransport."""
    clients: list[StreamClient] = []

    def factory(handler: Callable[[httpx.Request], httpx.Response]) -> StreamClient:
        client = StreamClient(stream_config, transport=httpx.MockTransport(handler))
        clients.append(client)
        return client

    yield factory

    for client in clients:
        await client.close()
