"""
Utility functions for timeout handling across the PropertyScrape system.

Dependencies that ignore their own timeout parameter are raced against a
software timer instead of being trusted; the loser of the race is cancelled
so that a late result is discarded rather than awaited.
"""

import asyncio
import logging
from typing import Any, Awaitable, Callable, Optional, Tuple

logger = logging.getLogger(__name__)

_TIMED_OUT = object()


async def first_settled(*aws: Awaitable) -> Tuple[int, Any]:
    """
    Await several awaitables concurrently and return the first one to settle.

    "Settled" means finished either way: if the winner raised, its exception
    propagates from here. Every other awaitable is cancelled.

    Args:
        *aws: Coroutines, tasks or futures to race

    Returns:
        Tuple of (index of the winner in ``aws``, its result)
    """
    if not aws:
        raise ValueError("first_settled() needs at least one awaitable")

    tasks = [asyncio.ensure_future(aw) for aw in aws]
    try:
        done, _ = await asyncio.wait(tasks, return_when=asyncio.FIRST_COMPLETED)
    finally:
        for task in tasks:
            if not task.done():
                task.cancel()

    # Ties go to the earliest argument
    winner = next(task for task in tasks if task in done)
    for task in done:
        if task is not winner and not task.cancelled():
            # Mark secondary outcomes as retrieved
            task.exception()
    return tasks.index(winner), winner.result()


async def with_soft_timeout(aw: Awaitable, timeout: float,
                            timeout_error: Optional[Callable[[], BaseException]] = None) -> Any:
    """
    Race ``aw`` against a timer of ``timeout`` seconds.

    Args:
        aw: The awaitable to bound
        timeout: Seconds before the timer wins
        timeout_error: Factory for the exception raised when the timer wins;
            asyncio.TimeoutError by default

    Returns:
        The result of ``aw`` when it settles first

    Raises:
        Whatever ``aw`` raised, or the timeout exception
    """
    index, result = await first_settled(aw, asyncio.sleep(timeout, result=_TIMED_OUT))
    if index == 1:
        logger.warning(f"Software timeout fired after {timeout} seconds")
        if timeout_error is not None:
            raise timeout_error()
        raise asyncio.TimeoutError(f"Timed out after {timeout} seconds")
    return result


def soft_timeout_for(service_timeout: float, grace: float) -> float:
    """Software timeout layered over a dependency: always strictly longer than its own."""
    return service_timeout + max(grace, 0.001)
