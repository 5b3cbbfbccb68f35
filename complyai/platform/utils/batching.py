import asyncio
from typing import Awaitable, Callable, List, Sequence, TypeVar

T = TypeVar("T")
R = TypeVar("R")


async def run_in_batches(
    items: Sequence[T],
    batch_size: int,
    func: Callable[[T], Awaitable[R]],
) -> List[R]:
    """
    Run func over items in fixed-size batches.

    Calls inside a batch run concurrently; the next batch starts only once the
    previous one has finished. Results keep the order of items. func is
    expected to handle its own failures.
    """
    if batch_size < 1:
        raise ValueError("batch_size must be at least 1")

    results: List[R] = []
    for start in range(0, len(items), batch_size):
        batch = items[start:start + batch_size]
        results.extend(await asyncio.gather(*(func(item) for item in batch)))
    return results
