"""
Account level endpoints.
"""

from typing import Any, Optional

from destinyapi import errors, log, requestqueue, session
from destinyapi.endpoints import endpoint

logger = log.get_logger(__name__)


class User(endpoint.Endpoint):
    """The API for interacting with the user account details."""

    prefix = ()

    def get(self, fn: requestqueue.Callback):
        """
        Fetches the user details. The API key is leading, so the username and
        platform of the client are updated to the account it belongs to.
        """

        def completion(err: Optional[Exception], data: Any) -> None:
            if err is None and not data:
                err = errors.ApplicationError(
                    'Failed to lookup user, no details returned'
                )
            if err is not None:
                fn(err, None)
                return

            if data.get('psnId'):
                self.client.change(
                    username=data['psnId'], platform=session.Platform.PLAYSTATION
                )
            elif data.get('gamerTag'):
                self.client.change(
                    username=data['gamerTag'], platform=session.Platform.XBOX
                )
            else:
                fn(errors.ApplicationError('No console account is linked', data), None)
                return

            logger.info(
                'Signed in as %s on %s',
                self.client.session.username,
                self.client.session.platform,
            )
            fn(None, data)

        return self.send(
            ['User', 'GetBungieNetUser'], completion, method='GET', bypass=True
        )

    def search(
        self,
        platform: session.Platform | int | str,
        username: str,
        fn: requestqueue.Callback,
    ):
        """Searches the membership ids for a username."""
        return self.send(
            [
                'Destiny',
                'SearchDestinyPlayer',
                endpoint.membership_type(platform),
                username,
            ],
            fn,
            method='GET',
            bypass=True,
        )

    def account(
        self,
        platform: session.Platform | int | str,
        membership_id: str,
        fn: requestqueue.Callback,
    ):
        """Account summary, including all characters of the membership."""
        return self.send(
            [
                'Destiny',
                endpoint.membership_type(platform),
                'Account',
                membership_id,
                'Summary',
            ],
            fn,
            method='GET',
            filter='data',
            bypass=True,
        )

    def vault(self, fn: requestqueue.Callback):
        """Vault buckets of the signed in account."""
        return self.send(
            ['Destiny', endpoint.PLATFORM, 'MyAccount', 'Vault'],
            fn,
            method='GET',
            filter='data.buckets',
        )
