"""
Threads used by the client.
"""

import abc
import collections
import dataclasses
import threading
from typing import Any, Callable, Deque, Iterable

from PyQt6.QtCore import QThread, pyqtSignal

from destinyapi import log

logger = log.get_logger(__name__)


@dataclasses.dataclass
class Call:
    """Represents a service call and its callback."""

    request: Any
    cb: Callable[[Any], None]


@dataclasses.dataclass
class Ret:
    """Represents a service return and the callback it belongs to."""

    cb: Callable[[Any], None]
    result: Any


class KillThread:
    """Represents a message to kill the thread."""


Action = Call | KillThread


class QThreadABCMeta(type(QThread), type(abc.ABC)):
    """Final metatype for QThread and ABC."""


class RetrieveThread(QThread, abc.ABC, metaclass=QThreadABCMeta):
    """
    QThread that will retrieve from some service. Consumes messages from a
    queue, serving these calls and handing the results back to the thread that
    owns this object, where the callbacks are invoked.
    """

    output = pyqtSignal(object)

    def __init__(self) -> None:
        super().__init__()
        self.queue: Deque[Action] = collections.deque()
        self.cond = threading.Condition()
        # Queued connection, the slot runs on the owning thread's event loop
        self.output.connect(self.deliver)
        self.start()

    def kill_thread(self) -> None:
        """Kills the thread."""
        with self.cond:
            self.queue.appendleft(KillThread())
            self.cond.notify()
        self.wait()

    def insert(self, calls: Iterable[Call]) -> None:
        """Inserts calls into the queue."""
        with self.cond:
            self.queue.extend(calls)
            self.cond.notify()

    def consume(self) -> Action:
        """Consumes an element from the queue (blocking)."""
        with self.cond:
            while not self.queue:
                self.cond.wait()
            return self.queue.popleft()

    def run(self) -> None:
        """Runs the thread."""
        while True:
            action = self.consume()
            if isinstance(action, KillThread):
                break

            self.output.emit(Ret(action.cb, self.service(action.request)))
        logger.info('Thread finished')

    def deliver(self, ret: Ret) -> None:
        """Calls the callback of a finished call."""
        ret.cb(ret.result)

    @abc.abstractmethod
    def service(self, request: Any) -> Any:
        """Serves a single call, runs on the worker thread."""
