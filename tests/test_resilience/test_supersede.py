"""Tests for latest-wins SupersedingRunner."""

from __future__ import annotations

import asyncio

import pytest

from clearpress.resilience.supersede import Superseded, SupersedingRunner


class TestSupersedingRunner:
    async def test_returns_result(self) -> None:
        runner = SupersedingRunner()

        async def op() -> int:
            return 42

        assert await runner.run("k", op) == 42
        assert runner.active_keys == []

    async def test_newer_call_supersedes_older(self) -> None:
        runner = SupersedingRunner()
        release = asyncio.Event()
        started = asyncio.Event()
        first_cancelled = asyncio.Event()

        async def slow() -> str:
            started.set()
            try:
                await release.wait()
            except asyncio.CancelledError:
                first_cancelled.set()
                raise
            return "slow"

        async def fast() -> str:
            return "fast"

        first = asyncio.create_task(runner.run("k", slow))
        await started.wait()
        second = await runner.run("k", fast)

        assert second == "fast"
        with pytest.raises(Superseded):
            await first
        assert first_cancelled.is_set()

    async def test_different_keys_independent(self) -> None:
        runner = SupersedingRunner()
        release = asyncio.Event()

        async def wait_then(value: str) -> str:
            await release.wait()
            return value

        a = asyncio.create_task(runner.run("a", lambda: wait_then("a")))
        b = asyncio.create_task(runner.run("b", lambda: wait_then("b")))
        await asyncio.sleep(0)
        assert sorted(runner.active_keys) == ["a", "b"]
        release.set()
        assert await a == "a"
        assert await b == "b"

    async def test_cancel_key(self) -> None:
        runner = SupersedingRunner()
        release = asyncio.Event()

        started = asyncio.Event()

        async def slow() -> None:
            started.set()
            await release.wait()

        task = asyncio.create_task(runner.run("k", slow))
        await started.wait()
        assert runner.cancel("k") is True
        with pytest.raises(Superseded):
            await task
        assert runner.cancel("k") is False

    async def test_errors_propagate(self) -> None:
        runner = SupersedingRunner()

        async def broken() -> None:
            raise ValueError("bad input")

        with pytest.raises(ValueError, match="bad input"):
            await runner.run("k", broken)
