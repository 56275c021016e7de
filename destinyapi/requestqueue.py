"""
De-duplication of identical in-flight requests.
"""

import collections

from typing import Any, Callable, Dict, List, Optional, Tuple

from destinyapi import log

logger = log.get_logger(__name__)

Callback = Callable[[Optional[Exception], Any], None]
Key = Tuple[str, str]


class RequestQueue:
    """
    Keeps one entry per (method, url) that is currently in flight. Everyone
    asking for the same thing while it is outstanding is queued behind the
    first caller and receives the same result.
    """

    def __init__(self) -> None:
        self.entries: Dict[Key, List[Callback]] = collections.OrderedDict()

    def __contains__(self, key: Key) -> bool:
        return key in self.entries

    def __len__(self) -> int:
        return len(self.entries)

    def waiters(self, method: str, url: str) -> List[Callback]:
        """Returns a copy of the callbacks waiting on (method, url)."""
        return list(self.entries.get((method.upper(), url), ()))

    def add(self, method: str, url: str, fn: Callback) -> bool:
        """
        Adds a callback for (method, url). Returns True if the request is
        already in flight, in which case the caller must not send it again.
        """
        key = (method.upper(), url)
        if key in self.entries:
            logger.debug('Queueing duplicate request %s %s', *key)
            self.entries[key].append(fn)
            return True

        self.entries[key] = [fn]
        return False

    def run(self, method: str, url: str, err: Optional[Exception], data: Any) -> None:
        """Resolves every waiter of (method, url) and removes the entry."""
        key = (method.upper(), url)
        # Pop before calling so waiters can issue the same request again
        waiters = self.entries.pop(key, [])
        for fn in waiters:
            fn(err, data)

    def remove(self, method: str, url: str, fn: Callback) -> None:
        """Removes a single waiter without resolving the others."""
        key = (method.upper(), url)
        waiters = self.entries.get(key)
        if waiters is None:
            return

        try:
            waiters.remove(fn)
        except ValueError:
            logger.warning('Callback is not waiting on %s %s', *key)

        if not waiters:
            del self.entries[key]
