"""Bounded fan-out for coroutines.

``gather_bounded`` is the single limiter used wherever the pipeline needs
"at most N at a time": Coresignal collect calls, BrightData boards and
analysis calls in the scoring stage.
"""

import asyncio
from dataclasses import dataclass
from typing import Awaitable, Callable, Generic, Iterable, List, Optional, TypeVar

T = TypeVar("T")
R = TypeVar("R")


@dataclass
class Outcome(Generic[T, R]):
    """Result of running the worker on one item: a value or the raised exception."""

    item: T
    value: Optional[R] = None
    error: Optional[BaseException] = None

    @property
    def ok(self) -> bool:
        return self.error is None


async def gather_bounded(
    worker: Callable[[T], Awaitable[R]],
    items: Iterable[T],
    limit: int,
) -> List[Outcome[T, R]]:
    """Run ``worker`` over ``items`` with at most ``limit`` calls in flight.

    Every item gets an Outcome in input order; an exception from one item is
    captured on its Outcome and never cancels the others.

    Raises:
        ValueError: If limit is less than 1
    """
    if limit < 1:
        raise ValueError(f"Concurrency limit must be at least 1, got {limit}")

    semaphore = asyncio.Semaphore(limit)

    async def run(item: T) -> Outcome[T, R]:
        async with semaphore:
            try:
                return Outcome(item=item, value=await worker(item))
            except Exception as e:
                return Outcome(item=item, error=e)

    return list(await asyncio.gather(*(run(item) for item in items)))
