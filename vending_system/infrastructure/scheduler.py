"""
Completion scheduler backed by the asyncio event loop.
"""

import asyncio
from typing import Any, Callable, Optional

from vending_system.loggers import logger


class AsyncioCompletionScheduler:
    """
    Runs deferred callbacks on an asyncio event loop.

    Callbacks execute on the loop thread, the same context that processes
    commands, so controller state is only touched from one place.

    Attributes:
        loop: Event loop used for ``call_later``.
    """

    def __init__(self, loop: Optional[asyncio.AbstractEventLoop] = None) -> None:
        """
        Initialize the scheduler.

        Args:
            loop: Event loop to use; defaults to the running loop at
                scheduling time.
        """
        self.loop = loop

    def schedule(self, delay: float, callback: Callable[[], Any]) -> asyncio.TimerHandle:
        """
        Schedule ``callback`` after ``delay`` seconds.

        Returns:
            The loop's TimerHandle.
        """
        loop = self.loop or asyncio.get_running_loop()
        handle = loop.call_later(delay, self._run, callback)
        logger.debug(f"Callback scheduled in {delay}s")
        return handle

    def cancel(self, handle: asyncio.TimerHandle) -> None:
        """Cancel a pending TimerHandle."""
        if handle is not None:
            handle.cancel()

    @staticmethod
    def _run(callback: Callable[[], Any]) -> None:
        try:
            callback()
        except Exception as e:
            logger.error(f"Scheduled callback error: {e}")
