"""
Stream session driving one request/response cycle.

A session POSTs the utterance, pulls payloads from the FrameReader, decodes
them with the ChunkDecoder and hands each Delta to its consumer in wire
order. Transport failures end the session with one synthetic error delta.
"""

from __future__ import annotations

import inspect
import time
import uuid
from collections.abc import AsyncGenerator, Awaitable, Callable

import httpx

from src.llm.exceptions import StreamStateError, TransportError
from src.llm.models import Delta, MessageKind, Usage
from src.logging_utils import StreamErrorHandler, logger

from .decoder import ChunkDecoder
from .models import SessionState, SessionStats
from .reader import FrameReader

CONTENT_TYPE = "text/plain; charset=utf-8"

DeltaCallback = Callable[[str, MessageKind, Usage | None], Awaitable[None] | None]


class StreamSession:
    """Single-use streaming request against the completion endpoint."""

    def __init__(
        self,
        client: httpx.AsyncClient,
        endpoint: str,
        decoder: ChunkDecoder | None = None,
        session_id: str | None = None,
    ) -> None:
        self.session_id = session_id or uuid.uuid4().hex[:12]
        self.endpoint = endpoint
        self.state = SessionState.IDLE
        self.delta_count = 0
        self.error: TransportError | None = None

        self._client = client
        self._decoder = decoder or ChunkDecoder()
        self._reader: FrameReader | None = None
        self._claimed = False
        self._started_at: float | None = None
        self._finished_at: float | None = None
        self._log = logger.bind(session_id=self.session_id)

    def stream(self, utterance: str) -> AsyncGenerator[Delta]:
        """
        Open the stream and return the lazy sequence of deltas.

        The sequence is finite and cannot be restarted. A transport failure
        is reported as a final `error` delta rather than raised.

        Raises:
            StreamStateError: If this session has already been used
        """
        if self._claimed:
            raise StreamStateError(
                f"Session {self.session_id} has already been started"
            )
        self._claimed = True
        return self._run(utterance)

    async def send(self, utterance: str, on_delta: DeltaCallback) -> None:
        """Drive the stream, invoking `on_delta(token, kind, usage)` per delta."""
        async for delta in self.stream(utterance):
            result = on_delta(delta.token_text, delta.kind, delta.usage)
            if inspect.isawaitable(result):
                await result

    async def _run(self, utterance: str) -> AsyncGenerator[Delta]:
        self._started_at = time.perf_counter()
        self._transition(SessionState.CONNECTING)

        failure: TransportError | None = None
        try:
            async with self._client.stream(
                "POST",
                self.endpoint,
                content=utterance.encode("utf-8"),
                headers={"Content-Type": CONTENT_TYPE},
            ) as response:
                response.raise_for_status()
                self._transition(SessionState.STREAMING)

                self._reader = FrameReader.from_response(response)
                async for payload in self._reader:
                    delta = self._decoder.try_decode(payload)
                    if delta is None:
                        continue
                    self.delta_count += 1
                    yield delta

        except Exception as e:
            # Any failure ends the session with exactly one error delta
            failure = StreamErrorHandler.create_transport_error(
                e,
                "stream_session",
                {"session_id": self.session_id, "delta_count": self.delta_count},
            )

        if failure is not None:
            self.error = failure
            self._transition(SessionState.FAILED)
            yield Delta.error(str(failure))
            return

        self._transition(SessionState.COMPLETED)

    def _transition(self, state: SessionState) -> None:
        previous = self.state
        self.state = state
        if state.is_finished:
            self._finished_at = time.perf_counter()
            self._log.info(
                "Session finished",
                state=state.value,
                delta_count=self.delta_count,
                duration_ms=round(self.duration * 1000, 2),
            )
        else:
            self._log.debug(
                "Session state changed", previous=previous.value, state=state.value
            )

    @property
    def duration(self) -> float:
        if self._started_at is None:
            return 0.0
        end = self._finished_at or time.perf_counter()
        return end - self._started_at

    def get_stats(self) -> SessionStats:
        reader_stats = self._reader.get_stats() if self._reader else {}
        return SessionStats(
            state=self.state,
            delta_count=self.delta_count,
            dropped_chunks=self._decoder.get_stats()["dropped"],
            events=reader_stats.get("events", 0),
            saw_sentinel=self._reader.saw_sentinel if self._reader else False,
            duration=self.duration,
        )
