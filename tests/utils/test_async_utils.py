"""Async utility tests."""

import asyncio
from unittest.mock import MagicMock

import pytest

from referee.utils.async_utils import create_safe_task, gather_bounded


class TestGatherBounded:
    @pytest.mark.asyncio
    async def test_results_in_input_order(self):
        async def value(v, delay):
            await asyncio.sleep(delay)
            return v

        results = await gather_bounded(
            [lambda: value(1, 0.02), lambda: value(2, 0), lambda: value(3, 0.01)],
            limit=3,
        )
        assert results == [1, 2, 3]

    @pytest.mark.asyncio
    async def test_sequential_by_default(self):
        order = []

        async def step(i):
            order.append(("start", i))
            await asyncio.sleep(0)
            order.append(("end", i))
            return i

        await gather_bounded([lambda i=i: step(i) for i in range(3)])
        assert order == [("start", 0), ("end", 0), ("start", 1), ("end", 1), ("start", 2), ("end", 2)]

    @pytest.mark.asyncio
    async def test_first_error_cancels_rest(self):
        cancelled = asyncio.Event()

        async def fail():
            raise RuntimeError("boom")

        async def slow():
            try:
                await asyncio.sleep(10)
            except asyncio.CancelledError:
                cancelled.set()
                raise

        with pytest.raises(RuntimeError):
            await gather_bounded([slow, fail], limit=2)
        await asyncio.sleep(0.01)
        assert cancelled.is_set()

    @pytest.mark.asyncio
    async def test_invalid_limit(self):
        with pytest.raises(ValueError):
            await gather_bounded([], limit=0)

    @pytest.mark.asyncio
    async def test_empty(self):
        assert await gather_bounded([], limit=4) == []


class TestCreateSafeTask:
    @pytest.mark.asyncio
    async def test_error_callback(self):
        on_error = MagicMock()

        async def fail():
            raise ValueError("bad")

        task = create_safe_task(fail(), name="failing", on_error=on_error)
        with pytest.raises(ValueError):
            await task
        await asyncio.sleep(0)

        on_error.assert_called_once()
        assert isinstance(on_error.call_args.args[0], ValueError)

    @pytest.mark.asyncio
    async def test_result(self):
        async def ok():
            return 42

        assert await create_safe_task(ok(), name="ok") == 42
