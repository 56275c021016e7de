"""
Character level endpoints.
"""

from destinyapi import requestqueue, session
from destinyapi.endpoints import endpoint


class CharacterEndpoint(endpoint.Endpoint):
    """API endpoint to interact with a single Destiny character."""

    def _character(
        self,
        suffix: str,
        platform: session.Platform | int | str,
        membership_id: str,
        character_id: str,
        fn: requestqueue.Callback,
    ):
        path = [
            endpoint.membership_type(platform),
            'Account',
            membership_id,
            'Character',
            character_id,
        ]
        if suffix:
            path.append(suffix)
        return self.send(path, fn, method='GET')

    def main(self, platform, membership_id, character_id, fn):
        """Character summary."""
        return self._character('', platform, membership_id, character_id, fn)

    def inventory(self, platform, membership_id, character_id, fn):
        """Equipped and carried items."""
        return self._character('Inventory', platform, membership_id, character_id, fn)

    def activities(self, platform, membership_id, character_id, fn):
        """Activity history."""
        return self._character('Activities', platform, membership_id, character_id, fn)

    def progression(self, platform, membership_id, character_id, fn):
        """Faction and level progression."""
        return self._character(
            'Progression', platform, membership_id, character_id, fn
        )
