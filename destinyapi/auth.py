"""
Authentication providers that hand out access tokens for requests.
"""

import abc

from typing import Any, Callable, Dict, Optional

TokenCallback = Callable[[Optional[Exception], Optional[Dict[str, Any]]], None]


class AuthProvider(abc.ABC):
    """
    Supplies the API key and bearer tokens. Tokens are delivered as
    `{'accessToken': {'value': ...}}` to the callback given to `token`.
    """

    @property
    @abc.abstractmethod
    def key(self) -> str:
        """Bungie API key."""

    @abc.abstractmethod
    def token(self, fn: TokenCallback) -> None:
        """Fetches a (possibly cached) access token."""

    def clear(self) -> None:
        """Forgets any persisted credentials, called on a hard reset."""


class StaticAuth(AuthProvider):
    """Provider with a fixed key and an optional fixed access token."""

    def __init__(self, key: str = '', access_token: str = '') -> None:
        self._key = key
        self.access_token = access_token

    @property
    def key(self) -> str:
        return self._key

    def token(self, fn: TokenCallback) -> None:
        fn(None, {'accessToken': {'value': self.access_token}})

    def clear(self) -> None:
        self.access_token = ''
