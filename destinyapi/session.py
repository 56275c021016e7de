"""
Session identity of the account the client is acting for.
"""

import dataclasses
import enum

from typing import Optional


class ReadyState(enum.IntEnum):
    """Readiness of the client to send gated requests."""

    CLOSED = 1
    LOADING = 2
    COMPLETE = 3


class Platform(enum.IntEnum):
    """Console platform, values are Bungie membership types."""

    XBOX = 1
    PLAYSTATION = 2

    def __str__(self) -> str:
        return 'Xbox' if self is Platform.XBOX else 'PlayStation'

    @property
    def api_name(self) -> str:
        """Legacy platform name used by the Tiger account endpoints."""
        return 'TigerXbox' if self is Platform.XBOX else 'TigerPSN'

    @classmethod
    def parse(cls, value: 'Platform | int | str') -> 'Platform':
        """Anything containing `xb` is an Xbox, everything else a PlayStation."""
        if isinstance(value, int):
            return cls(value)
        if value.isdigit():
            return cls(int(value))
        return cls.XBOX if 'xb' in value.lower() else cls.PLAYSTATION


@dataclasses.dataclass
class SessionIdentity:
    """
    Who we are talking to the API as. Owned and mutated by the client only;
    collaborators receive a reference and read from it.
    """

    platform: Optional[Platform] = None
    username: str = ''
    id: str = ''  # pylint: disable=invalid-name
    readystate: ReadyState = ReadyState.CLOSED

    @property
    def complete(self) -> bool:
        """Returns whether the membership id has been resolved."""
        return self.readystate == ReadyState.COMPLETE

    def clear(self) -> None:
        """Forgets everything about the account."""
        self.platform = None
        self.username = ''
        self.id = ''
        self.readystate = ReadyState.CLOSED
