"""Order-preserving concurrent map with an optional concurrency cap."""

import asyncio
from collections.abc import Awaitable, Callable, Iterable
from typing import TypeVar

T = TypeVar("T")
R = TypeVar("R")


async def bounded_map(
    func: Callable[[T], Awaitable[R]],
    items: Iterable[T],
    limit: int | None = None,
) -> list[R]:
    """Apply ``func`` to every item concurrently and return results in input order.

    ``limit`` caps how many calls are in flight at once; ``None`` means unbounded.
    The first exception raised by ``func`` propagates to the caller.
    """
    items = list(items)
    if limit is None:
        return list(await asyncio.gather(*(func(item) for item in items)))
    if limit < 1:
        raise ValueError("limit must be at least 1")

    semaphore = asyncio.Semaphore(limit)

    async def run(item: T) -> R:
        async with semaphore:
            return await func(item)

    return list(await asyncio.gather(*(run(item) for item in items)))
