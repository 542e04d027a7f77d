"""Partitioning of the forks needing sync into batches, and bounded parallel dispatch."""

import asyncio
from typing import Awaitable, Callable, Sequence, TypeVar

import structlog

from fork_sync_manager.synchronize.models import Batch
from fork_sync_manager.utils.retry import SleepFunction

logger: structlog.stdlib.BoundLogger = structlog.get_logger(__name__)

T = TypeVar("T")
R = TypeVar("R")


def create_batches(items: Sequence[T], batch_size: int) -> list[Batch]:
    """Split items into contiguous batches of at most batch_size, preserving order."""
    if batch_size < 1:
        raise ValueError(f"batch_size must be a positive integer, got {batch_size}")
    return [Batch(index=index, members=list(items[start : start + batch_size])) for index, start in enumerate(range(0, len(items), batch_size))]


async def run_batch(
    batch: Batch,
    process: Callable[[T], Awaitable[R]],
    pause: float,
    sleep: SleepFunction | None = None,
) -> list[R]:
    """Process the members of one batch strictly one after another.

    A fixed pause separates consecutive members.
    """
    if sleep is None:
        sleep = asyncio.sleep
    logger.info("Processing batch", batch=batch.index + 1, size=len(batch))
    results: list[R] = []
    for position, member in enumerate(batch.members):
        if position > 0 and pause > 0:
            await sleep(pause)
        results.append(await process(member))
    logger.info("Finished batch", batch=batch.index + 1, size=len(batch))
    return results


async def run_batches(
    batches: Sequence[Batch],
    process: Callable[[T], Awaitable[R]],
    max_parallel: int,
    pause: float,
    sleep: SleepFunction | None = None,
) -> list[R]:
    """Run batches concurrently, never more than max_parallel at a time.

    Returns the results of every member, ordered as the batches were given.
    """
    if max_parallel < 1:
        raise ValueError(f"max_parallel must be a positive integer, got {max_parallel}")
    semaphore = asyncio.Semaphore(max_parallel)

    async def worker(batch: Batch) -> list[R]:
        async with semaphore:
            return await run_batch(batch, process, pause, sleep=sleep)

    batch_results = await asyncio.gather(*(worker(batch) for batch in batches))
    return [result for results in batch_results for result in results]
