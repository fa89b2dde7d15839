"""Tests for the fan-out limiter."""
import asyncio
import time

import pytest

from voicenotes.utils.rate_limit import AsyncLimiter


class TestAsyncLimiter:
    def test_rejects_invalid_settings(self):
        with pytest.raises(ValueError):
            AsyncLimiter(0)
        with pytest.raises(ValueError):
            AsyncLimiter(1, min_interval=-1)

    @pytest.mark.asyncio
    async def test_results_follow_input_order(self):
        limiter = AsyncLimiter(10)

        async def work(i):
            await asyncio.sleep(0.01 * (5 - i))
            return i * 10

        assert await limiter.map(work, range(5)) == [0, 10, 20, 30, 40]

    @pytest.mark.asyncio
    async def test_concurrency_never_exceeds_cap(self):
        limiter = AsyncLimiter(3)

        async def work(i):
            await asyncio.sleep(0.01)
            return i

        await limiter.map(work, range(12))
        assert limiter.peak_active == 3
        assert limiter.active == 0

    @pytest.mark.asyncio
    async def test_min_interval_spaces_starts(self):
        limiter = AsyncLimiter(10, min_interval=0.02)
        starts = []

        async def work(i):
            starts.append(time.monotonic())
            return i

        await limiter.map(work, range(4))
        gaps = [b - a for a, b in zip(starts, starts[1:])]
        assert all(gap >= 0.015 for gap in gaps)

    @pytest.mark.asyncio
    async def test_first_failure_cancels_pending(self):
        limiter = AsyncLimiter(5)
        finished = []

        async def work(i):
            if i == 0:
                raise RuntimeError("boom")
            await asyncio.sleep(0.2)
            finished.append(i)

        with pytest.raises(RuntimeError, match="boom"):
            await limiter.map(work, range(4))
        assert finished == []

    @pytest.mark.asyncio
    async def test_empty_input(self):
        assert await AsyncLimiter(2).map(lambda x: x, []) == []
