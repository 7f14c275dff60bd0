"""Batch-barrier worker pool.

Work is split into batches of ``limit`` items. Every item in a batch runs
concurrently, and the next batch starts only after the whole batch has
finished. At most ``limit`` workers are ever in flight, and a worker's
failure never cancels its siblings.

Results come back in input order. A worker that raises yields ``None`` in
its slot, except for exception types listed in ``fatal``: those are
re-raised once the batch they occurred in has fully completed.
"""

import asyncio
from typing import Awaitable, Callable, Iterator, List, Optional, Sequence, Tuple, Type, TypeVar

from partscrape.logging_config import get_logger

__all__ = ["batched", "run_batches"]

logger = get_logger("pool")

T = TypeVar("T")
R = TypeVar("R")


def batched(items: Sequence[T], size: int) -> Iterator[Sequence[T]]:
    """Split ``items`` into consecutive chunks of ``size`` (last may be shorter)."""
    if size <= 0:
        raise ValueError(f"Batch size must be positive, got {size}")
    for start in range(0, len(items), size):
        yield items[start:start + size]


async def _guarded(
    worker: Callable[[T], Awaitable[Optional[R]]],
    item: T,
    fatal: Tuple[Type[BaseException], ...],
) -> Tuple[Optional[R], Optional[BaseException]]:
    try:
        return await worker(item), None
    except fatal as e:
        return None, e
    except Exception as e:
        logger.error(f"Worker failed for {item!r}: {e}")
        return None, None


async def run_batches(
    items: Sequence[T],
    worker: Callable[[T], Awaitable[Optional[R]]],
    limit: int,
    fatal: Tuple[Type[BaseException], ...] = (),
) -> List[Optional[R]]:
    """Run ``worker`` over ``items`` with batch-barrier scheduling.

    Args:
        items: Work items; output order matches this order
        worker: Coroutine function processing one item
        limit: Batch size, i.e. the maximum number of concurrent workers
        fatal: Exception types that stop processing after the current batch

    Returns:
        One result per item; ``None`` where the worker returned None or failed

    Raises:
        ValueError: If ``limit`` is not positive
        The first ``fatal`` exception raised within a batch, after that
        batch completes
    """
    if limit <= 0:
        raise ValueError(f"Concurrency limit must be positive, got {limit}")

    results: List[Optional[R]] = []
    total_batches = (len(items) + limit - 1) // limit
    for number, batch in enumerate(batched(items, limit), start=1):
        logger.debug(f"Batch {number}/{total_batches}: {len(batch)} workers")
        outcomes = await asyncio.gather(*(_guarded(worker, item, fatal) for item in batch))

        for _, error in outcomes:
            if error is not None:
                raise error
        results.extend(result for result, _ in outcomes)
    return results
