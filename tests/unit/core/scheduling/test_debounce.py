"""Tests for the asyncio Debouncer."""

from __future__ import annotations

import asyncio

import pytest

from bloom.core.scheduling.debounce import Debouncer


def _run(coro):
    """Run an async coroutine synchronously (no pytest-asyncio required)."""
    loop = asyncio.new_event_loop()
    try:
        return loop.run_until_complete(coro)
    finally:
        loop.close()


class TestDebouncer:
    def test_fires_once_after_burst(self):
        calls = []

        async def _check():
            debouncer = Debouncer(lambda: calls.append(1), delay=0.02)
            for _ in range(5):
                debouncer.trigger()
            assert debouncer.pending
            await asyncio.sleep(0.1)
            assert not debouncer.pending

        _run(_check())
        assert calls == [1]

    def test_cancel_drops_pending_call(self):
        calls = []

        async def _check():
            debouncer = Debouncer(lambda: calls.append(1), delay=0.02)
            debouncer.trigger()
            debouncer.cancel()
            await asyncio.sleep(0.05)

        _run(_check())
        assert calls == []

    def test_flush_runs_pending_now(self):
        calls = []

        async def _check():
            debouncer = Debouncer(lambda: calls.append(1), delay=10)
            debouncer.trigger()
            assert debouncer.flush() is True
            assert calls == [1]
            assert debouncer.flush() is False

        _run(_check())
        assert calls == [1]

    def test_trigger_requires_running_loop(self):
        debouncer = Debouncer(lambda: None)
        with pytest.raises(RuntimeError):
            debouncer.trigger()

    def test_negative_delay_rejected(self):
        with pytest.raises(ValueError):
            Debouncer(lambda: None, delay=-1)
