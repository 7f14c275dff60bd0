"""Tests for the batch-barrier worker pool."""

import asyncio

import pytest

from partscrape.pool import batched, run_batches


class Tracker:
    """Records concurrency and batch boundaries of a pool run."""

    def __init__(self):
        self.active = 0
        self.peak = 0
        self.started = []
        self.finished = []

    async def work(self, item, delay=0.01):
        self.active += 1
        self.peak = max(self.peak, self.active)
        self.started.append(item)
        try:
            await asyncio.sleep(delay)
            return item * 10
        finally:
            self.active -= 1
            self.finished.append(item)


def test_batched_sizes():
    assert [list(b) for b in batched(list(range(12)), 5)] == [[0, 1, 2, 3, 4], [5, 6, 7, 8, 9], [10, 11]]
    assert list(batched([], 3)) == []


def test_batched_rejects_non_positive_size():
    with pytest.raises(ValueError):
        list(batched([1, 2], 0))


@pytest.mark.asyncio
async def test_twelve_items_limit_five_runs_three_batches():
    tracker = Tracker()

    results = await run_batches(list(range(12)), tracker.work, limit=5)

    assert results == [i * 10 for i in range(12)]
    assert tracker.peak == 5
    # Nothing from batch two starts before all of batch one has finished
    first_of_second = tracker.started.index(5)
    assert set(tracker.finished[:5]) == {0, 1, 2, 3, 4}
    assert first_of_second == 5
    assert set(tracker.started[10:]) == {10, 11}


@pytest.mark.asyncio
async def test_order_preserved_when_completion_order_differs():
    async def worker(item):
        await asyncio.sleep(0.03 - item * 0.01)
        return item

    assert await run_batches([0, 1, 2], worker, limit=3) == [0, 1, 2]


@pytest.mark.asyncio
async def test_failure_yields_none_and_siblings_continue():
    async def worker(item):
        if item == 2:
            raise RuntimeError("boom")
        await asyncio.sleep(0)
        return item

    assert await run_batches([1, 2, 3, 4], worker, limit=2) == [1, None, 3, 4]


@pytest.mark.asyncio
async def test_fatal_error_raised_after_batch_completes():
    finished = []

    class Halt(Exception):
        pass

    async def worker(item):
        if item == 0:
            raise Halt()
        await asyncio.sleep(0.01)
        finished.append(item)
        return item

    with pytest.raises(Halt):
        await run_batches([0, 1, 2, 3, 4], worker, limit=3, fatal=(Halt,))

    # Siblings in the same batch ran to completion, the next batch never started
    assert sorted(finished) == [1, 2]


@pytest.mark.asyncio
async def test_empty_input():
    async def worker(item):
        return item

    assert await run_batches([], worker, limit=4) == []


@pytest.mark.asyncio
async def test_non_positive_limit_rejected():
    async def worker(item):
        return item

    with pytest.raises(ValueError):
        await run_batches([1], worker, limit=0)
