"""Bridge from the synchronous graph API to its async implementation."""

import asyncio
import contextvars
import logging
from concurrent.futures import ThreadPoolExecutor
from typing import Awaitable, Callable, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")

WORKER_THREAD_PREFIX = "switchyard-sync"


def _loop_is_running() -> bool:
    try:
        asyncio.get_running_loop()
    except RuntimeError:
        return False
    return True


def run_async(async_func: Callable[[], Awaitable[T]]) -> T:
    """Drive a coroutine factory to completion from synchronous code.

    With no event loop running on the calling thread, the coroutine runs right there on a fresh loop. Inside a
    running loop (notebooks, async web handlers) that loop cannot be re-entered, so the coroutine gets its own
    loop on a worker thread while the caller blocks. Either way it sees the caller's context variables.

    Args:
        async_func: A callable that returns an awaitable.

    Returns:
        The result of the awaitable.
    """

    async def execute_async() -> T:
        return await async_func()

    if not _loop_is_running():
        return asyncio.run(execute_async())

    logger.debug("thread_prefix=<%s> | event loop already running, using a worker thread", WORKER_THREAD_PREFIX)
    context = contextvars.copy_context()
    with ThreadPoolExecutor(max_workers=1, thread_name_prefix=WORKER_THREAD_PREFIX) as executor:
        future = executor.submit(context.run, asyncio.run, execute_async())
        return future.result()
