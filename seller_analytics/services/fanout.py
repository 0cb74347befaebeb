"""
Fan-out / Fan-in

Runs one coroutine per item with bounded concurrency and a per-item
timeout, then hands back the successful results separately from the
failures so aggregation only ever sees complete per-store data.
"""

import asyncio
from dataclasses import dataclass, field
from typing import Awaitable, Callable, Generic, List, Optional, Sequence, Tuple, TypeVar

import structlog

logger = structlog.get_logger(__name__)

T = TypeVar("T")
R = TypeVar("R")


@dataclass
class FanOutFailure(Generic[T]):
    """An item whose worker raised or timed out"""
    item: T
    error: BaseException

    @property
    def is_timeout(self) -> bool:
        return isinstance(self.error, asyncio.TimeoutError)


@dataclass
class FanOutResult(Generic[T, R]):
    """Successful ``(item, result)`` pairs in input order, plus failures"""
    successes: List[Tuple[T, R]] = field(default_factory=list)
    failures: List[FanOutFailure[T]] = field(default_factory=list)

    @property
    def results(self) -> List[R]:
        return [result for _, result in self.successes]

    @property
    def failed_items(self) -> List[T]:
        return [f.item for f in self.failures]


async def fan_out(
    items: Sequence[T],
    worker: Callable[[T], Awaitable[R]],
    max_concurrency: int = 8,
    timeout: Optional[float] = None,
) -> FanOutResult[T, R]:
    """
    Run ``worker`` for every item concurrently.

    Args:
        items: Work items, e.g. target stores
        worker: Coroutine function producing one result per item
        max_concurrency: Upper bound on workers running at once
        timeout: Seconds allowed per item; ``None`` waits indefinitely

    Returns:
        FanOutResult with successes in input order and captured failures.
        Cancellation of the caller still propagates.
    """
    semaphore = asyncio.Semaphore(max(1, max_concurrency))

    async def run(item: T) -> R:
        async with semaphore:
            return await asyncio.wait_for(worker(item), timeout=timeout)

    outcomes = await asyncio.gather(*(run(item) for item in items), return_exceptions=True)

    result: FanOutResult[T, R] = FanOutResult()
    for item, outcome in zip(items, outcomes):
        if isinstance(outcome, asyncio.CancelledError):
            raise outcome
        if isinstance(outcome, BaseException):
            result.failures.append(FanOutFailure(item=item, error=outcome))
            logger.warning(
                "Fan-out worker failed",
                item=repr(item),
                error=str(outcome) or type(outcome).__name__,
            )
        else:
            result.successes.append((item, outcome))

    if result.failures:
        logger.info(
            "Fan-out completed with failures",
            succeeded=len(result.successes),
            failed=len(result.failures),
        )
    return result
