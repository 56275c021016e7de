"""
Timers used for polling and for rescheduling throttled requests.
"""

import abc
import itertools

from typing import Callable, Dict

from PyQt6.QtCore import QObject, QTimer

from destinyapi import log

logger = log.get_logger(__name__)


class Scheduler(abc.ABC):
    """Schedules callbacks after a delay or at a fixed period (milliseconds)."""

    @abc.abstractmethod
    def set_timeout(self, fn: Callable[[], None], delay: int) -> int:
        """Calls fn once after delay, returns a handle."""

    @abc.abstractmethod
    def set_interval(self, fn: Callable[[], None], period: int) -> int:
        """Calls fn every period, returns a handle."""

    @abc.abstractmethod
    def clear(self, handle: int) -> None:
        """Cancels a pending timeout or interval."""


class QtScheduler(Scheduler):
    """Scheduler running on the Qt event loop of the current thread."""

    def __init__(self, parent: QObject | None = None) -> None:
        self.parent = parent
        self.timers: Dict[int, QTimer] = {}
        self._handles = itertools.count(1)

    def _start(self, fn: Callable[[], None], delay: int, single_shot: bool) -> int:
        handle = next(self._handles)
        timer = QTimer(self.parent)
        timer.setSingleShot(single_shot)

        def fire() -> None:
            if single_shot:
                self.timers.pop(handle, None)
                timer.deleteLater()
            fn()

        timer.timeout.connect(fire)
        timer.start(max(int(delay), 0))
        self.timers[handle] = timer
        return handle

    def set_timeout(self, fn: Callable[[], None], delay: int) -> int:
        return self._start(fn, delay, True)

    def set_interval(self, fn: Callable[[], None], period: int) -> int:
        return self._start(fn, period, False)

    def clear(self, handle: int) -> None:
        timer = self.timers.pop(handle, None)
        if timer is not None:
            timer.stop()
            timer.deleteLater()
