import asyncio
import logging
from typing import Awaitable, Callable, TypeVar

from shop_insights.core.exceptions import is_transient_error

logger = logging.getLogger(__name__)

T = TypeVar("T")


async def with_retry(
    operation: Callable[[], Awaitable[T]],
    label: str,
    retries: int = 3,
    base_delay: float = 0.2,
) -> T:
    """
    Await ``operation()`` and retry it when it fails on a transient infrastructure error.

    Only connection-pool exhaustion counts as transient; every other error is
    re-raised immediately and unchanged. After ``retries`` failed retries the
    last error is re-raised unchanged as well. The wait before retry ``n`` is
    ``base_delay * 2 ** (n - 1)`` seconds.

    Args:
        operation: Zero-argument callable returning a fresh awaitable on every call
        label: Name of the operation, used in log messages
        retries: Number of retries after the first attempt
        base_delay: Delay in seconds before the first retry
    """
    attempt = 0
    while True:
        try:
            return await operation()
        except Exception as exc:
            attempt += 1
            if attempt > retries or not is_transient_error(exc):
                raise
            delay = base_delay * 2 ** (attempt - 1)
            logger.warning(f"{label} failed (attempt {attempt}/{retries}): {exc}. Retrying in {delay:.2f}s...")
            await asyncio.sleep(delay)
