#!/usr/bin/env python3
"""
Tests for the console entry point's stdin handling.
"""

import asyncio
import io
import os

import pytest

from src.main import read_utterances, start_stdin_reader


class FakeService:
    def __init__(self):
        self.submitted = []
        self.idle_waits = 0

    def submit_utterance(self, text):
        self.submitted.append(text)

    async def wait_idle(self):
        self.idle_waits += 1


@pytest.mark.asyncio
async def test_stdin_lines_then_end_marker(monkeypatch):
    monkeypatch.setattr("sys.stdin", io.StringIO("hello\nworld\n"))
    lines = start_stdin_reader(asyncio.get_running_loop())

    received = [await asyncio.wait_for(lines.get(), timeout=5) for _ in range(3)]
    assert received == ["hello\n", "world\n", None]


@pytest.mark.asyncio
async def test_read_utterances_submits_until_eof(monkeypatch):
    monkeypatch.setattr("sys.stdin", io.StringIO("one\n  two  \n"))
    service = FakeService()

    await asyncio.wait_for(read_utterances(service, asyncio.Event()), timeout=5)

    assert service.submitted == ["one", "two"]
    assert service.idle_waits == 1


@pytest.mark.asyncio
async def test_cancel_while_stdin_is_blocked(monkeypatch):
    read_fd, write_fd = os.pipe()
    stdin = os.fdopen(read_fd, "r")
    monkeypatch.setattr("sys.stdin", stdin)
    service = FakeService()

    task = asyncio.create_task(read_utterances(service, asyncio.Event()))
    await asyncio.sleep(0.01)
    task.cancel()

    with pytest.raises(asyncio.CancelledError):
        await asyncio.wait_for(task, timeout=5)
    assert service.submitted == []

    # Let the reader thread reach EOF
    os.close(write_fd)
