#!/usr/bin/env python3
"""
Tests for dispatch hooks and side-effect routing.
"""

import logging

import pytest

from src.dispatch import CompositeDispatchHook, CueRouter, LoggingDispatchHook
from src.llm.models import MessageKind, Usage


class FakeCuePlayer:
    def __init__(self, log):
        self.log = log

    def play(self, cue):
        self.log.append(("cue", cue))


class FakeSpeaker:
    def __init__(self, log):
        self.log = log

    async def speak(self, text):
        self.log.append(("speak", text))

    def prepare_for_new_turn(self):
        self.log.append(("prepare",))


@pytest.fixture
def router_and_log():
    log = []
    return CueRouter(FakeCuePlayer(log), FakeSpeaker(log)), log


class TestCueRouter:
    """Kind-to-side-effect routing."""

    @pytest.mark.asyncio
    async def test_user_turn(self, router_and_log):
        router, log = router_and_log
        await router.on_user_utterance("hello")
        assert log == [("prepare",), ("cue", "success")]

    @pytest.mark.asyncio
    async def test_text_plays_cue_and_speaks(self, router_and_log):
        router, log = router_and_log
        await router.on_delta("Hi there", MessageKind.TEXT, None)
        assert log == [("cue", "notification"), ("speak", "Hi there")]

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        ("kind", "cue"),
        [
            (MessageKind.ERROR, "error"),
            (MessageKind.TOOL_START, "alert"),
            (MessageKind.TOOL_END, "end"),
        ],
    )
    async def test_cue_only_kinds(self, router_and_log, kind, cue):
        router, log = router_and_log
        await router.on_delta("x", kind, None)
        assert log == [("cue", cue)]

    @pytest.mark.asyncio
    async def test_user_kind_delta_has_no_side_effect(self, router_and_log):
        router, log = router_and_log
        await router.on_delta("echo", MessageKind.USER, None)
        assert log == []


class TestCompositeHook:
    """Fan-out keeps hook order."""

    @pytest.mark.asyncio
    async def test_calls_hooks_in_order(self):
        log = []

        class Named:
            def __init__(self, name):
                self.name = name

            def on_user_utterance(self, text):
                log.append((self.name, "user", text))

            async def on_delta(self, token_text, kind, usage):
                log.append((self.name, kind.value, token_text))

        hook = CompositeDispatchHook(Named("a"), Named("b"))
        await hook.on_user_utterance("hi")
        await hook.on_delta("yo", MessageKind.TEXT, None)

        assert log == [
            ("a", "user", "hi"),
            ("b", "user", "hi"),
            ("a", "text", "yo"),
            ("b", "text", "yo"),
        ]


class TestLoggingHook:
    def test_logs_usage(self, caplog):
        hook = LoggingDispatchHook()
        with caplog.at_level(logging.INFO, logger="src.dispatch"):
            hook.on_user_utterance("hello")
            hook.on_delta("", MessageKind.TEXT, Usage(3, 4, 7))

        assert "User utterance: hello" in caplog.text
        assert "total=7" in caplog.text
