"""Regression tests for the async worker pool, timeouts and cancellation."""

from __future__ import annotations

import asyncio
import gc
import sys
import warnings
from contextlib import contextmanager
from types import SimpleNamespace
from typing import TYPE_CHECKING

import pytest

from odoo_uigen.utils.concurrency import (
    BoundedSemaphore,
    CancellationToken,
    WorkerPool,
    run_with_timeout,
)

if TYPE_CHECKING:
    from collections.abc import Iterator


@contextmanager
def _capture_unraisable() -> Iterator[list[SimpleNamespace]]:
    captured: list[SimpleNamespace] = []
    original = sys.unraisablehook

    def hook(unraisable: object) -> None:
        captured.append(
            SimpleNamespace(
                exc_type=getattr(unraisable, "exc_type", None),
                err_msg=getattr(unraisable, "err_msg", None),
            )
        )

    sys.unraisablehook = hook
    try:
        yield captured
    finally:
        sys.unraisablehook = original


async def _slow() -> int:
    await asyncio.sleep(0.01)
    return 1


async def _slower() -> int:
    await asyncio.sleep(0.05)
    return 1


@pytest.mark.asyncio
async def test_run_with_timeout_returns_result() -> None:
    assert await run_with_timeout(_slow(), 1.0) == 1


@pytest.mark.asyncio
async def test_run_with_timeout_does_not_leak_coroutine_on_early_cancel() -> None:
    token = CancellationToken()
    token.cancel()

    with _capture_unraisable() as leaked, warnings.catch_warnings():
        warnings.simplefilter("error", RuntimeWarning)
        coro = _slow()
        with pytest.raises(asyncio.CancelledError):
            await run_with_timeout(coro, 1.0, token)
        del coro
        gc.collect()

    assert leaked == []


@pytest.mark.asyncio
async def test_run_with_timeout_timeout_path_does_not_leak_coroutine() -> None:
    with _capture_unraisable() as leaked, warnings.catch_warnings():
        warnings.simplefilter("error", RuntimeWarning)
        with pytest.raises(TimeoutError):
            await run_with_timeout(_slower(), 0.001, None)
        gc.collect()

    assert leaked == []


@pytest.mark.asyncio
async def test_run_with_timeout_rejects_non_positive_timeout() -> None:
    with pytest.raises(ValueError):
        await run_with_timeout(_slow(), 0)


@pytest.mark.asyncio
async def test_cancel_during_wait_raises_cancelled() -> None:
    token = CancellationToken()

    async def cancel_soon() -> None:
        await asyncio.sleep(0.01)
        token.cancel()

    canceller = asyncio.create_task(cancel_soon())
    with pytest.raises(asyncio.CancelledError):
        await run_with_timeout(asyncio.sleep(5), 5.0, token)
    await canceller


@pytest.mark.asyncio
async def test_worker_pool_bounds_concurrency_and_keeps_order() -> None:
    active = 0
    peak = 0

    async def worker(item: int) -> int:
        nonlocal active, peak
        active += 1
        peak = max(peak, active)
        await asyncio.sleep(0.01)
        active -= 1
        return item * 10

    pool: WorkerPool[int, int] = WorkerPool(max_concurrency=3)
    slots = await pool.run(list(range(10)), worker)

    assert [slot.value for slot in slots] == [item * 10 for item in range(10)]
    assert all(slot.started for slot in slots)
    assert peak <= 3
    assert pool.peak_concurrency == peak


@pytest.mark.asyncio
async def test_worker_pool_skips_items_after_cancellation() -> None:
    token = CancellationToken()
    processed: list[int] = []

    async def worker(item: int) -> int:
        processed.append(item)
        if item == 1:
            token.cancel()
        await asyncio.sleep(0)
        return item

    pool: WorkerPool[int, int] = WorkerPool(max_concurrency=1, cancel_token=token)
    slots = await pool.run([0, 1, 2, 3], worker)

    assert processed == [0, 1]
    assert [slot.started for slot in slots] == [True, True, False, False]
    assert slots[2].value is None


@pytest.mark.asyncio
async def test_worker_pool_propagates_worker_errors() -> None:
    async def worker(item: int) -> int:
        if item == 2:
            raise RuntimeError("boom")
        await asyncio.sleep(0.01)
        return item

    pool: WorkerPool[int, int] = WorkerPool(max_concurrency=2)

    with pytest.raises(RuntimeError, match="boom"):
        await pool.run([0, 1, 2, 3], worker)


def test_limits_must_be_positive() -> None:
    with pytest.raises(ValueError):
        BoundedSemaphore(0)
    with pytest.raises(ValueError):
        WorkerPool(max_concurrency=0)
