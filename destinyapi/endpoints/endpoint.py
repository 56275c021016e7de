"""
Base class of the endpoint helpers.
"""

from typing import TYPE_CHECKING, Any, Sequence

from destinyapi import request, requestqueue, session

if TYPE_CHECKING:
    from destinyapi import client as m_client

# Resolved by the client once the request leaves the readiness gate
PLATFORM = '{platform}'
MEMBERSHIP_ID = '{id}'


def membership_type(platform: session.Platform | int | str) -> int | str:
    """Path segment of a platform, placeholders are kept as they are."""
    if platform == PLATFORM:
        return PLATFORM
    return int(session.Platform.parse(platform))


class Endpoint:
    """Helper that turns method calls into requests on the client."""

    # Path segments every URL of the endpoint starts with
    prefix: Sequence[str] = ('Destiny',)

    def __init__(self, client: 'm_client.Destiny') -> None:
        self.client = client

    def send(
        self, path: Sequence[Any], fn: requestqueue.Callback, **options: Any
    ) -> 'm_client.Destiny':
        """Sends a request for the given path relative to the prefix."""
        return self.client.send(
            request.Request(url=[*self.prefix, *path], **options), fn
        )
