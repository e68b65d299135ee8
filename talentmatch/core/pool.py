# talentmatch/core/pool.py
import asyncio
from typing import Awaitable, Callable, Iterable, TypeVar


T = TypeVar("T")
R = TypeVar("R")


async def run_bounded(
    items: Iterable[T],
    worker: Callable[[T], Awaitable[R]],
    concurrency: int,
) -> list[R | BaseException]:
    """
    Run ``worker`` over ``items`` with at most ``concurrency`` in flight.

    Results come back in input order. A failing item yields its exception in
    place of a result; siblings keep running. Workers bound their own time.
    """
    items = list(items)
    if not items:
        return []
    semaphore = asyncio.Semaphore(max(1, concurrency))

    async def _one(item: T) -> R:
        async with semaphore:
            return await worker(item)

    return await asyncio.gather(*(_one(i) for i in items), return_exceptions=True)
