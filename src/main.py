"""
Console entry point for the stream client.

Typed lines stand in for finalized utterances; streamed messages are
printed as they are dispatched.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
import signal
import sys
import threading

from src.chat_service import ChatService
from src.config import Configuration
from src.dispatch import CompositeDispatchHook, LoggingDispatchHook
from src.history.buffer import ConversationBuffer
from src.llm.client import StreamClient
from src.llm.models import MessageKind, Usage
from src.logging_utils import configure_logging


class ConsoleDispatchHook:
    """Prints each dispatched message to stdout."""

    PREFIXES = {
        MessageKind.TEXT: "",
        MessageKind.ERROR: "[error] ",
        MessageKind.TOOL_START: "[tool] ",
        MessageKind.TOOL_END: "[tool done] ",
        MessageKind.USER: "> ",
    }

    def on_user_utterance(self, text: str) -> None:
        print(f"> {text}", flush=True)

    def on_delta(
        self, token_text: str, kind: MessageKind, usage: Usage | None
    ) -> None:
        if token_text:
            print(f"{self.PREFIXES[kind]}{token_text}", flush=True)
        if usage is not None:
            print(
                f"  ({usage.total_tokens} tokens: {usage.prompt_tokens} prompt, "
                f"{usage.completion_tokens} completion)",
                flush=True,
            )


def start_stdin_reader(loop: asyncio.AbstractEventLoop) -> asyncio.Queue[str | None]:
    """
    Read stdin lines on a daemon thread and feed them into a queue.

    The thread never blocks interpreter exit, so cancelling the consumer is
    enough to shut down. None marks end of input.
    """
    lines: asyncio.Queue[str | None] = asyncio.Queue()

    def producer() -> None:
        try:
            for line in sys.stdin:
                loop.call_soon_threadsafe(lines.put_nowait, line)
            loop.call_soon_threadsafe(lines.put_nowait, None)
        except RuntimeError:
            # Event loop already closed on shutdown
            return

    threading.Thread(target=producer, name="stdin-reader", daemon=True).start()
    return lines


async def read_utterances(service: ChatService, shutdown_event: asyncio.Event) -> None:
    """Submit each non-empty stdin line as an utterance until EOF."""
    lines = start_stdin_reader(asyncio.get_running_loop())
    while not shutdown_event.is_set():
        line = await lines.get()
        if line is None:
            break
        service.submit_utterance(line.strip())
    await service.wait_idle()


async def main() -> None:
    """Main entry point - console interface with graceful shutdown handling."""
    config = Configuration()
    configure_logging(config.get_logging_config())

    buffer = ConversationBuffer(config.get_conversation_config()["capacity"])
    hook = CompositeDispatchHook(ConsoleDispatchHook(), LoggingDispatchHook())

    shutdown_event = asyncio.Event()

    def signal_handler() -> None:
        """Handle shutdown signals gracefully."""
        logging.info("Received shutdown signal, initiating graceful shutdown...")
        shutdown_event.set()

    if sys.platform != "win32":
        loop = asyncio.get_running_loop()
        for sig in (signal.SIGTERM, signal.SIGINT):
            loop.add_signal_handler(sig, signal_handler)

    async with StreamClient(config.get_stream_config()) as client:
        service_config = ChatService.ChatServiceConfig(
            client=client, buffer=buffer, hook=hook
        )
        async with ChatService(service_config) as service:
            reader_task = asyncio.create_task(
                read_utterances(service, shutdown_event)
            )
            done, pending = await asyncio.wait(
                [reader_task, asyncio.create_task(shutdown_event.wait())],
                return_when=asyncio.FIRST_COMPLETED,
            )

            for task in pending:
                task.cancel()
                with contextlib.suppress(asyncio.CancelledError):
                    await task

            for task in done:
                if task == reader_task and task.exception() is not None:
                    raise task.exception()

    logging.info("Application shutdown complete")


def main_cli() -> None:
    asyncio.run(main())


if __name__ == "__main__":
    main_cli()
