"""
Timeout handling for blocking writes run in worker threads.

asyncio.wait_for stops waiting on a thread but cannot stop the thread, so
each write carries a WriteTicket. The worker commits only while holding the
ticket lock and only if the caller has not given up; the caller gives up
under the same lock. A write either commits before the caller sees the
outcome or never commits at all.
"""

import asyncio
import logging
import threading
from collections.abc import Callable
from typing import Any

logger = logging.getLogger(__name__)


class WriteTicket:
    def __init__(self):
        self.lock = threading.Lock()
        self.abandoned = False
        self.committed = False

    def commit(self, apply: Callable[[], None]) -> bool:
        """Run ``apply`` unless the write was abandoned. Called from the worker."""
        with self.lock:
            if self.abandoned:
                return False
            apply()
            self.committed = True
            return True

    def abandon(self) -> bool:
        """Give up on the write. Returns True if it had already committed."""
        with self.lock:
            if self.committed:
                return True
            self.abandoned = True
            return False


async def run_guarded_write(
    write: Callable[..., None], timeout: float, *args: Any
) -> bool:
    """
    Run ``write(*args, ticket)`` in a thread, bounded by ``timeout`` seconds.

    Returns True once the write has committed.

    Raises:
        asyncio.TimeoutError: The write did not commit in time and never will.
    """
    ticket = WriteTicket()
    try:
        await asyncio.wait_for(asyncio.to_thread(write, *args, ticket), timeout=timeout)
    except asyncio.TimeoutError:
        if ticket.abandon():
            logger.warning("Write committed at the timeout boundary; keeping it")
            return True
        raise
    except asyncio.CancelledError:
        ticket.abandon()
        raise
    return True
