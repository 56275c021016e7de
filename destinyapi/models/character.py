"""
Representation of one of the Destiny characters of an account.
"""

from typing import TYPE_CHECKING, Any, Dict

from destinyapi import requestqueue, util
from destinyapi.endpoints import endpoint

if TYPE_CHECKING:
    from destinyapi import client as m_client


class Character:
    """A character, identified by its id across polls."""

    def __init__(self, client: 'm_client.Destiny', data: Dict[str, Any]) -> None:
        self.client = client
        self.set(data)

    def __repr__(self) -> str:
        return f'Character({self.id!r}, played={self.played.isoformat()})'

    def set(self, data: Dict[str, Any]) -> None:
        """Updates the character to match the `characterBase` from the API."""
        self.data = data
        self.id = str(data.get('characterId', ''))  # pylint: disable=invalid-name
        self.played = util.parse_date(data.get('dateLastPlayed'))

    def _send(self, method: str, fn: requestqueue.Callback):
        # The session is read when the request is sent, not when it is made
        return getattr(self.client.character, method)(
            endpoint.PLATFORM, endpoint.MEMBERSHIP_ID, self.id, fn
        )

    def main(self, fn: requestqueue.Callback):
        """Requests the character summary."""
        return self._send('main', fn)

    def inventory(self, fn: requestqueue.Callback):
        """Requests the current inventory of the character."""
        return self._send('inventory', fn)

    def activities(self, fn: requestqueue.Callback):
        """Requests the activities of the character."""
        return self._send('activities', fn)

    def progression(self, fn: requestqueue.Callback):
        """Requests the progression of the character."""
        return self._send('progression', fn)
