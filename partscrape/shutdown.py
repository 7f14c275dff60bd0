"""Graceful shutdown for long crawls.

The first SIGINT/SIGTERM only sets a flag. The crawl driver checks it
between listing pages, so a running batch of detail workers always finishes
and closes its sessions. A second signal exits immediately.

Handlers are registered on the running event loop, so they fire promptly
even while the loop is waiting on page loads.
"""

import asyncio
import signal
import sys
from typing import List, Optional

from partscrape.logging_config import get_logger

__all__ = [
    "ShutdownHandler",
    "get_shutdown_handler",
    "shutdown_requested",
]

logger = get_logger("shutdown")

SIGNALS = (signal.SIGINT, signal.SIGTERM)


class ShutdownHandler:
    """Process-wide shutdown flag fed by OS signals.

    Usage:
        handler = get_shutdown_handler().install(asyncio.get_running_loop())
        try:
            ...  # crawl; the driver polls shutdown_requested()
        finally:
            handler.uninstall()
    """

    _instance: Optional["ShutdownHandler"] = None

    def __init__(self) -> None:
        self._requested = False
        self._signal_count = 0
        self._loop: Optional[asyncio.AbstractEventLoop] = None
        self._watched: List[int] = []

    @classmethod
    def get_instance(cls) -> "ShutdownHandler":
        if cls._instance is None:
            cls._instance = cls()
        return cls._instance

    def install(self, loop: asyncio.AbstractEventLoop) -> "ShutdownHandler":
        """Register SIGINT/SIGTERM on ``loop``. Idempotent."""
        if self._loop is not None:
            return self
        for signum in SIGNALS:
            try:
                loop.add_signal_handler(signum, self._handle_signal, signum)
            except NotImplementedError:
                # Windows event loops have no signal support; Ctrl+C still raises KeyboardInterrupt
                logger.debug(f"Cannot watch {signal.Signals(signum).name} on this platform")
                continue
            self._watched.append(signum)
        self._loop = loop
        return self

    def uninstall(self) -> None:
        if self._loop is None:
            return
        for signum in self._watched:
            self._loop.remove_signal_handler(signum)
        self._watched.clear()
        self._loop = None

    def _handle_signal(self, signum: int) -> None:
        self._signal_count += 1
        name = signal.Signals(signum).name
        if self._signal_count > 1:
            logger.error(f"Received {name} again, force quitting")
            sys.exit(1)
        logger.warning(
            f"Received {name}, finishing the current batch before stopping "
            f"(send again to force quit)"
        )
        self._requested = True

    @property
    def shutdown_requested(self) -> bool:
        return self._requested

    def request_shutdown(self) -> None:
        self._requested = True

    def reset(self) -> None:
        """Clear the flag (for tests or a second run in the same process)."""
        self._requested = False
        self._signal_count = 0


def get_shutdown_handler() -> ShutdownHandler:
    return ShutdownHandler.get_instance()


def shutdown_requested() -> bool:
    return get_shutdown_handler().shutdown_requested
