"""
Parallel execution helpers.

Provides:
- An order-preserving thread-pool map for pure per-node work
- Concurrent async task execution with a limit
"""

from __future__ import annotations

import asyncio
import os
from concurrent.futures import ThreadPoolExecutor
from typing import Awaitable, Callable, Iterable, Optional, TypeVar

T = TypeVar("T")
R = TypeVar("R")

# Below this many items a pool costs more than it saves
MIN_PARALLEL_ITEMS = 64


def default_workers() -> int:
    return min(32, (os.cpu_count() or 1) + 4)


def parallel_map(
    func: Callable[[T], R],
    items: Iterable[T],
    max_workers: Optional[int] = None,
) -> list[R]:
    """
    Apply a pure function to every item using a thread pool.

    Results come back in input order. The function must not mutate shared
    state; no locking is done here.

    Args:
        func: Side-effect free function
        items: Inputs
        max_workers: Pool size (defaults to default_workers(); 1 runs inline)

    Returns:
        List of results, same order as items
    """
    materialized = list(items)
    workers = max_workers or default_workers()
    if workers <= 1 or len(materialized) < MIN_PARALLEL_ITEMS:
        return [func(item) for item in materialized]

    with ThreadPoolExecutor(max_workers=workers) as executor:
        return list(executor.map(func, materialized))


async def gather_with_concurrency(
    n: int,
    tasks: list[Callable[[], Awaitable[T]]],
    return_exceptions: bool = False,
) -> list[T]:
    """
    Execute async tasks with limited concurrency.

    Args:
        n: Maximum number of concurrent tasks
        tasks: List of async task factories (callables that return awaitables)
        return_exceptions: If True, return exceptions instead of raising

    Returns:
        List of results in the same order as tasks
    """
    semaphore = asyncio.Semaphore(n)

    async def limited_task(task: Callable[[], Awaitable[T]]) -> T:
        async with semaphore:
            return await task()

    return await asyncio.gather(
        *[limited_task(t) for t in tasks],
        return_exceptions=return_exceptions,
    )
