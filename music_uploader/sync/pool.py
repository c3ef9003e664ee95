"""
Bounded asyncio task pool

Runs a coroutine function over a sequence of items with at most
`max_workers` in flight. Results always come back in input order, whatever
the completion order. With one worker the items are processed strictly one
after another.
"""

import asyncio
from typing import Awaitable, Callable, Iterable, List, Optional, TypeVar


T = TypeVar('T')
R = TypeVar('R')


class BoundedTaskPool:
    """Ordered map over coroutines with a concurrency cap"""

    def __init__(self, max_workers: int = 1):
        if max_workers < 1:
            raise ValueError(f"max_workers must be at least 1, got {max_workers}")
        self.max_workers = max_workers

    async def map(
        self,
        func: Callable[[T], Awaitable[R]],
        items: Iterable[T],
        on_done: Optional[Callable[[int, R], None]] = None,
    ) -> List[R]:
        """
        Apply `func` to every item

        Args:
            func: Coroutine function called once per item
            items: Items to process
            on_done: Called with (completed count, result) after each item

        Returns:
            Results in the same order as `items`
        """
        items = list(items)
        completed = 0

        def finished(result: R) -> None:
            nonlocal completed
            completed += 1
            if on_done is not None:
                on_done(completed, result)

        if self.max_workers == 1:
            results = []
            for item in items:
                result = await func(item)
                finished(result)
                results.append(result)
            return results

        semaphore = asyncio.Semaphore(self.max_workers)

        async def run_one(item: T) -> R:
            async with semaphore:
                result = await func(item)
            finished(result)
            return result

        return list(await asyncio.gather(*(run_one(item) for item in items)))
