"""
Dispatch hooks routing conversation events to side effects.

The ChatService calls a DispatchHook from its single dispatcher task, so an
implementation never sees overlapping calls. Audio collaborators are passed
in explicitly rather than looked up as process-wide singletons.
"""

from __future__ import annotations

import inspect
import logging
from typing import Protocol

from src.llm.models import MessageKind, Usage

logger = logging.getLogger(__name__)


class DispatchHook(Protocol):
    """Contract consumed by the presentation layer."""

    def on_delta(
        self, token_text: str, kind: MessageKind, usage: Usage | None
    ) -> object: ...

    def on_user_utterance(self, text: str) -> object: ...


class CuePlayer(Protocol):
    def play(self, cue: str) -> object: ...


class Speaker(Protocol):
    def speak(self, text: str) -> object: ...

    def prepare_for_new_turn(self) -> object: ...


async def maybe_await(result: object) -> None:
    if inspect.isawaitable(result):
        await result


class CueRouter:
    """
    Routes each message kind to its audio cue and speech.

    - user turn: speaker reset, then the `success` cue
    - text: `notification` cue, then the token is spoken
    - error: `error` cue
    - tool_start / tool_end: `alert` / `end` cues
    """

    KIND_CUES: dict[MessageKind, str] = {
        MessageKind.TEXT: "notification",
        MessageKind.ERROR: "error",
        MessageKind.TOOL_START: "alert",
        MessageKind.TOOL_END: "end",
    }
    USER_TURN_CUE = "success"

    def __init__(self, cue_player: CuePlayer, speaker: Speaker) -> None:
        self.cue_player = cue_player
        self.speaker = speaker

    async def on_user_utterance(self, text: str) -> None:
        await maybe_await(self.speaker.prepare_for_new_turn())
        await maybe_await(self.cue_player.play(self.USER_TURN_CUE))

    async def on_delta(
        self, token_text: str, kind: MessageKind, usage: Usage | None
    ) -> None:
        cue = self.KIND_CUES.get(kind)
        if cue is None:
            return
        await maybe_await(self.cue_player.play(cue))
        if kind is MessageKind.TEXT:
            await maybe_await(self.speaker.speak(token_text))


class LoggingDispatchHook:
    """Logs every dispatched event."""

    def on_user_utterance(self, text: str) -> None:
        logger.info("User utterance: %s", text)

    def on_delta(
        self, token_text: str, kind: MessageKind, usage: Usage | None
    ) -> None:
        if usage is not None:
            logger.info(
                "Delta [%s] %r (tokens: prompt=%d completion=%d total=%d)",
                kind.value, token_text, usage.prompt_tokens,
                usage.completion_tokens, usage.total_tokens,
            )
        else:
            logger.debug("Delta [%s] %r", kind.value, token_text)


class CompositeDispatchHook:
    """Fans each call out to several hooks, in order."""

    def __init__(self, *hooks: DispatchHook) -> None:
        self.hooks = list(hooks)

    async def on_user_utterance(self, text: str) -> None:
        for hook in self.hooks:
            await maybe_await(hook.on_user_utterance(text))

    async def on_delta(
        self, token_text: str, kind: MessageKind, usage: Usage | None
    ) -> None:
        for hook in self.hooks:
            await maybe_await(hook.on_delta(token_text, kind, usage))
