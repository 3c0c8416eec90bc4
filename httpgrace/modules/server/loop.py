import asyncio
from typing import Any, Coroutine, TypeVar

from ..logging import BaseLogger

T = TypeVar('T')


def run_sync(coroutine: Coroutine[Any, Any, T], logger: BaseLogger) -> T:
    """
    Run a coroutine to completion on a fresh event loop.

    Leftover tasks are drained and the loop is closed afterwards whatever the
    coroutine's result, so repeated calls in one process start clean.

    Args:
        coroutine: The coroutine to execute
        logger: Logger for cleanup problems

    Returns:
        The result of the coroutine

    Raises:
        Any exception raised by the coroutine
    """
    loop = asyncio.new_event_loop()
    asyncio.set_event_loop(loop)
    try:
        return loop.run_until_complete(coroutine)
    finally:
        # Clean up any pending tasks
        try:
            pending = asyncio.all_tasks(loop)
            for task in pending:
                task.cancel()
            if pending:
                loop.run_until_complete(
                    asyncio.gather(*pending, return_exceptions=True)
                )
        except Exception as e:
            logger.log_warning("error cleaning up pending tasks", error=str(e))

        # Close the loop properly
        try:
            loop.run_until_complete(loop.shutdown_asyncgens())
            loop.close()
        except Exception as e:
            logger.log_warning("error closing event loop", error=str(e))
        finally:
            asyncio.set_event_loop(None)
