"""
The vault of the signed in account.
"""

import functools
import time

from typing import TYPE_CHECKING, Any, Callable, Dict, List, Optional

from PyQt6.QtCore import QObject, pyqtSignal

from destinyapi import log, util

if TYPE_CHECKING:
    from destinyapi import client as m_client

logger = log.get_logger(__name__)

VaultCallback = Callable[[Optional[Exception], Any], None]


class Vault(QObject):
    """
    Items stored in the vault. The items are fetched on demand and kept for
    `ttl` milliseconds, after which the next use fetches them again.
    """

    refreshed = pyqtSignal(object)

    def __init__(self, client: 'm_client.Destiny', ttl: int | str) -> None:
        super().__init__()
        self.client = client
        self.ttl = util.parse_duration(ttl)
        self.refreshed_at: Optional[float] = None
        self.loading = False
        self.items: List[Dict[str, Any]] = []
        self.waiters: List[VaultCallback] = []
        self._generation = 0

    @property
    def stale(self) -> bool:
        """Returns whether the items have to be fetched again."""
        if self.refreshed_at is None:
            return True
        return (time.monotonic() - self.refreshed_at) * 1000 > self.ttl

    def refresh(self, fn: Optional[VaultCallback] = None) -> 'Vault':
        """Fetches the vault, only one fetch is in flight at a time."""
        if fn is not None:
            self.waiters.append(fn)
        if self.loading:
            return self

        self.loading = True
        self.items = []
        self.client.user.vault(functools.partial(self._received, self._generation))
        return self

    def _received(
        self, generation: int, err: Optional[Exception], buckets: Any
    ) -> None:
        if generation != self._generation:
            logger.debug('Dropping vault of a previous session')
            return

        self.loading = False
        if err is None:
            self.items = [
                item
                for bucket in buckets or []
                for item in bucket.get('items', [])
            ]
            self.refreshed_at = time.monotonic()
            logger.info('Vault holds %s items', len(self.items))
        else:
            logger.error('Unable to refresh vault: %s', err)

        waiters, self.waiters = self.waiters, []
        for fn in waiters:
            fn(err, None if err is not None else self)
        self.refreshed.emit(err)

    def go(self, fn: VaultCallback) -> 'Vault':
        """Calls fn with the vault once its items are fresh."""
        if self.stale:
            return self.refresh(fn)
        fn(None, self)
        return self

    def filter(self, query: Dict[str, Any], fn: VaultCallback) -> 'Vault':
        """Calls fn with the items whose fields match every query value."""

        def filtered(err: Optional[Exception], _: Any) -> None:
            if err is not None:
                fn(err, None)
                return
            fn(
                None,
                [
                    item
                    for item in self.items
                    if all(item.get(key) == value for key, value in query.items())
                ],
            )

        return self.go(filtered)

    def clear(self) -> None:
        """
        Forgets the items, the next use fetches them again. A fetch in flight
        is dropped, its waiters are served by a new fetch.
        """
        self._generation += 1
        self.loading = False
        self.items = []
        self.refreshed_at = None
        if self.waiters:
            self.refresh()
