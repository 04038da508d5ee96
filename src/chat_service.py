"""
Chat Service for the echo stream client.

This module handles the orchestration of a voice/typed chat session:
- Appending finalized user utterances to the conversation buffer
- Running one StreamSession per utterance in a background task
- Serializing every delta onto a single dispatcher task, which appends it to
  the buffer and notifies the dispatch hook
- Tracking in-flight sessions; a new utterance never cancels an earlier one

All buffer writes happen on the event loop thread, and hook calls happen only
inside the dispatcher task, so neither needs a lock.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
from dataclasses import dataclass
from typing import Any

from pydantic import BaseModel, ConfigDict

from src.dispatch import DispatchHook, maybe_await
from src.history.buffer import ConversationBuffer
from src.history.models import Message
from src.llm.models import Delta
from src.llm.streaming.session import StreamSession
from src.logging_utils import StreamErrorHandler, log_operation, operation_context

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class _DispatchItem:
    """Unit of work for the dispatcher task."""
    session_id: str | None = None
    delta: Delta | None = None
    user_text: str | None = None
    session_done: bool = False


class ChatService:
    """
    Conversation orchestrator
    1. Takes the finalized utterance and records it
    2. Starts a stream session for it in the background
    3. Feeds every streamed delta into the buffer, in wire order
    4. Notifies the dispatch hook for presentation and audio
    """

    class ChatServiceConfig(BaseModel):
        model_config = ConfigDict(arbitrary_types_allowed=True)

        client: Any  # StreamClient
        buffer: ConversationBuffer
        hook: Any | None = None  # DispatchHook

    def __init__(self, service_config: ChatService.ChatServiceConfig):
        self.client = service_config.client
        self.buffer = service_config.buffer
        self.hook: DispatchHook | None = service_config.hook

        self._queue: asyncio.Queue[_DispatchItem] = asyncio.Queue()
        self._dispatcher: asyncio.Task[None] | None = None
        self._in_flight: dict[str, StreamSession] = {}
        self._session_tasks: dict[str, asyncio.Task[None]] = {}
        self._idle = asyncio.Event()
        self._idle.set()

    @property
    def in_flight(self) -> list[StreamSession]:
        """Sessions whose deltas have not all been dispatched yet."""
        return list(self._in_flight.values())

    def start(self) -> None:
        """Start the dispatcher task if it is not running."""
        if self._dispatcher is None or self._dispatcher.done():
            self._dispatcher = asyncio.create_task(
                self._dispatch_loop(), name="chat-dispatcher"
            )

    def submit_utterance(self, text: str) -> StreamSession | None:
        """
        Record a finalized user utterance and stream the response for it.

        The user message is in the buffer when this returns, before any
        response delta can arrive. Earlier sessions keep running.

        Returns:
            The started session, or None for a blank utterance
        """
        if not text or not text.strip():
            logger.debug("Ignoring blank utterance")
            return None

        self.start()
        self.buffer.append(Message.from_user(text))
        self._queue.put_nowait(_DispatchItem(user_text=text))

        session = self.client.open_session()
        if self._in_flight:
            logger.info(
                "Starting session %s while %d session(s) still in flight",
                session.session_id, len(self._in_flight),
            )
        self._in_flight[session.session_id] = session
        self._idle.clear()
        self._session_tasks[session.session_id] = asyncio.create_task(
            self._run_session(session, text),
            name=f"stream-session-{session.session_id}",
        )
        return session

    async def wait_idle(self) -> None:
        """Wait until no session is in flight and every event is dispatched."""
        await self._idle.wait()
        await self._queue.join()

    async def _run_session(self, session: StreamSession, text: str) -> None:
        try:
            async with operation_context(
                "stream_session", context={"session_id": session.session_id}
            ):
                async for delta in session.stream(text):
                    await self._queue.put(
                        _DispatchItem(session_id=session.session_id, delta=delta)
                    )
        except asyncio.CancelledError:
            raise
        except Exception as e:
            # Anything that is not a transport failure still ends the turn
            # with a visible error message
            await self._queue.put(
                _DispatchItem(
                    session_id=session.session_id,
                    delta=Delta.error(StreamErrorHandler.describe_error(e)),
                )
            )
        finally:
            self._session_tasks.pop(session.session_id, None)
            self._queue.put_nowait(
                _DispatchItem(session_id=session.session_id, session_done=True)
            )

    async def _dispatch_loop(self) -> None:
        while True:
            item = await self._queue.get()
            try:
                await self._dispatch(item)
            except Exception as e:
                logger.warning("Dispatch hook failed: %s", e, exc_info=True)
            finally:
                self._queue.task_done()

    async def _dispatch(self, item: _DispatchItem) -> None:
        if item.session_done:
            self._in_flight.pop(item.session_id or "", None)
            if not self._in_flight:
                self._idle.set()
            return

        if item.delta is not None:
            delta = item.delta
            self.buffer.append(Message.from_delta(delta))
            if self.hook is not None:
                await maybe_await(
                    self.hook.on_delta(delta.token_text, delta.kind, delta.usage)
                )
            return

        if item.user_text is not None and self.hook is not None:
            await maybe_await(self.hook.on_user_utterance(item.user_text))

    @log_operation("chat_service.close")
    async def aclose(self) -> None:
        """Cancel outstanding sessions and stop the dispatcher."""
        for task in list(self._session_tasks.values()):
            task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await task

        if self._dispatcher is not None:
            await self._queue.join()
            self._dispatcher.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await self._dispatcher
            self._dispatcher = None

        self._in_flight.clear()
        self._idle.set()

    async def __aenter__(self) -> ChatService:
        self.start()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.aclose()
