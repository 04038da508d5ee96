"""
SSE frame reader with cross-chunk line reassembly.

Turns a raw byte stream into the payloads of `data:` lines, stopping at the
`[DONE]` sentinel and surfacing transport failures as TransportError.
"""

from __future__ import annotations

import codecs
import re
from collections.abc import AsyncGenerator, AsyncIterable

import httpx

from src.llm.exceptions import StreamStateError
from src.logging_utils import StreamErrorHandler, logger

DONE_SENTINEL = "[DONE]"
DATA_FIELD = "data"

_LINE_BREAK = re.compile(r"\r\n|\r|\n")


class FrameReader:
    """Single-use async iterator over SSE `data:` payloads."""

    def __init__(self, byte_stream: AsyncIterable[bytes]):
        self._byte_stream = byte_stream
        self._decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")
        self._buffer = ""
        self._started = False
        self.saw_sentinel = False
        self.stats = {
            "lines": 0,
            "events": 0,
            "discarded": 0,
        }

    @classmethod
    def from_response(cls, response: httpx.Response) -> FrameReader:
        return cls(response.aiter_bytes())

    def __aiter__(self) -> AsyncGenerator[str]:
        if self._started:
            raise StreamStateError("FrameReader can only be iterated once")
        self._started = True
        return self._iterate()

    async def _iterate(self) -> AsyncGenerator[str]:
        try:
            async for chunk in self._byte_stream:
                self._buffer += self._decoder.decode(chunk)
                for line in self._split_lines(final=False):
                    payload = self._parse_line(line)
                    if payload is None:
                        continue
                    if payload.strip() == DONE_SENTINEL:
                        self.saw_sentinel = True
                        return
                    self.stats["events"] += 1
                    yield payload
        except (httpx.HTTPError, TimeoutError, OSError) as e:
            raise StreamErrorHandler.create_transport_error(
                e, "sse_read", {"events": self.stats["events"]}
            ) from e

        # Stream closed; flush a trailing line that had no newline
        self._buffer += self._decoder.decode(b"", final=True)
        for line in self._split_lines(final=True):
            payload = self._parse_line(line)
            if payload is None:
                continue
            if payload.strip() == DONE_SENTINEL:
                self.saw_sentinel = True
                return
            self.stats["events"] += 1
            yield payload

    def _split_lines(self, final: bool) -> list[str]:
        """Pop complete lines off the buffer."""
        lines: list[str] = []
        while True:
            match = _LINE_BREAK.search(self._buffer)
            if match is None:
                break
            # A lone CR at the end may be the first half of CRLF
            if (
                not final
                and match.group() == "\r"
                and match.end() == len(self._buffer)
            ):
                break
            lines.append(self._buffer[:match.start()])
            self._buffer = self._buffer[match.end():]

        if final and self._buffer:
            lines.append(self._buffer)
            self._buffer = ""
        return lines

    def _parse_line(self, line: str) -> str | None:
        """Return the payload of a `data:` line, or None for other framing."""
        self.stats["lines"] += 1

        if not line or line.startswith(":"):
            self.stats["discarded"] += 1
            return None

        field_name, _, value = line.partition(":")
        if field_name != DATA_FIELD:
            self.stats["discarded"] += 1
            return None

        if value.startswith(" "):
            value = value[1:]
        if not value.strip():
            # Keep-alive with an empty data field
            self.stats["discarded"] += 1
            logger.debug("Discarded empty data line")
            return None
        return value

    def get_stats(self) -> dict[str, int]:
        """Get reader statistics for monitoring."""
        return self.stats.copy()
