import asyncio
from typing import Awaitable, TypeVar

T = TypeVar("T")


def run_async(coro: Awaitable[T]) -> T:
    """
    Runs a coroutine inside a valid or new event loop.
    """
    try:
        loop = asyncio.get_event_loop()
        # If the loop is closed, raise to create a new one
        if loop.is_closed():
            raise RuntimeError
    except RuntimeError:
        loop = asyncio.new_event_loop()
        asyncio.set_event_loop(loop)
    return loop.run_until_complete(coro)
