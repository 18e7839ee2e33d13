"""Backoff retries for company-source lookups.

Directory APIs fail transiently (rate limits, gateway errors), so the ingest
command wraps each source search in :func:`retry_async`. Generation calls are
not retried: a failed agent call is reported upward at once.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Awaitable, Callable, Iterator, Tuple, Type

logger = logging.getLogger(__name__)


def backoff_delays(initial_wait: float, max_wait: float) -> Iterator[float]:
    """Yield doubling delays starting at ``initial_wait``, capped at ``max_wait``."""
    delay = initial_wait
    while True:
        yield min(delay, max_wait)
        delay *= 2


async def retry_async(
    func: Callable[..., Awaitable[Any]],
    *args: Any,
    exceptions: Tuple[Type[BaseException], ...] = (Exception,),
    attempts: int = 3,
    initial_wait: float = 1.0,
    max_wait: float = 8.0,
    **kwargs: Any,
) -> Any:
    """Await ``func(*args, **kwargs)``, retrying on ``exceptions``.

    At most ``attempts`` calls are made; waits between them follow
    :func:`backoff_delays`. Exceptions outside ``exceptions`` propagate
    immediately, and the error from the final attempt is re-raised.

    Examples
    --------
    >>> records = await retry_async(source.search, "Miami, FL", term="HVAC")  # doctest: +SKIP
    """
    if attempts < 1:
        raise ValueError("attempts must be at least 1")
    delays = backoff_delays(initial_wait, max_wait)
    attempt = 1
    while True:
        try:
            return await func(*args, **kwargs)
        except exceptions as exc:  # type: ignore[misc]
            if attempt >= attempts:
                logger.error("Giving up after %d attempts: %s", attempts, exc)
                raise
            delay = next(delays)
            logger.warning("Attempt %d/%d failed: %s; retrying in %.1fs", attempt, attempts, exc, delay)
            await asyncio.sleep(delay)
            attempt += 1
