"""Tests for bounded_map."""

import asyncio

import pytest

from linear_mcp.concurrency import bounded_map


@pytest.mark.asyncio
class TestBoundedMap:
    async def test_preserves_input_order(self) -> None:
        delays = {"a": 0.01, "b": 0.05, "c": 0.0}

        async def work(item: str) -> str:
            await asyncio.sleep(delays[item])
            return item.upper()

        assert await bounded_map(work, ["a", "b", "c"], limit=3) == ["A", "B", "C"]

    async def test_respects_limit(self) -> None:
        in_flight = 0
        peak = 0

        async def work(item: int) -> int:
            nonlocal in_flight, peak
            in_flight += 1
            peak = max(peak, in_flight)
            await asyncio.sleep(0.01)
            in_flight -= 1
            return item * 2

        result = await bounded_map(work, range(10), limit=3)

        assert result == [i * 2 for i in range(10)]
        assert peak == 3

    async def test_unbounded_runs_everything_at_once(self) -> None:
        started = asyncio.Event()
        count = 0

        async def work(item: int) -> int:
            nonlocal count
            count += 1
            if count == 5:
                started.set()
            await asyncio.wait_for(started.wait(), timeout=1)
            return item

        assert await bounded_map(work, range(5)) == [0, 1, 2, 3, 4]

    async def test_empty(self) -> None:
        async def work(item: int) -> int:
            return item

        assert await bounded_map(work, [], limit=2) == []

    async def test_exception_propagates(self) -> None:
        async def work(item: int) -> int:
            if item == 2:
                raise ValueError("bad item")
            return item

        with pytest.raises(ValueError, match="bad item"):
            await bounded_map(work, [1, 2, 3], limit=2)

    async def test_invalid_limit(self) -> None:
        async def work(item: int) -> int:
            return item

        with pytest.raises(ValueError):
            await bounded_map(work, [1], limit=0)
