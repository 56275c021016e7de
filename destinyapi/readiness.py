"""
Gate that holds requests back until the client has finished bootstrapping.
"""

from typing import Callable, List, Optional

from destinyapi import log

logger = log.get_logger(__name__)

Waiter = Callable[[Optional[Exception]], None]


class ReadinessGate:
    """Buffers deferred calls and replays them exactly once when released."""

    def __init__(self) -> None:
        self.waiters: List[Waiter] = []

    def __len__(self) -> int:
        return len(self.waiters)

    def wait(self, fn: Waiter) -> None:
        """Defers fn until the next release."""
        self.waiters.append(fn)

    def release(self, err: Optional[Exception] = None) -> None:
        """Calls every deferred waiter with the outcome of the bootstrap."""
        waiters, self.waiters = self.waiters, []
        if waiters:
            logger.info('Releasing %s deferred requests', len(waiters))
        # Waiters that get deferred again end up in the fresh list
        for fn in waiters:
            fn(err)
