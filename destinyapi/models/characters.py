"""
Live collection of the characters of the signed in account.
"""

from collections.abc import Mapping, Sequence
from typing import TYPE_CHECKING, Any, Iterator, List, Optional

from PyQt6.QtCore import QObject, pyqtSignal

from destinyapi import consts, log, session as m_session
from destinyapi.models import character as m_character

if TYPE_CHECKING:
    from destinyapi import client as m_client

logger = log.get_logger(__name__)


class Characters(QObject):
    """
    Characters of the account, most recently played first. The collection
    polls the account summary and merges every snapshot into the existing
    characters, so a character keeps its identity for as long as the session
    lasts.
    """

    updated = pyqtSignal(object)
    error = pyqtSignal(object)

    def __init__(
        self,
        client: 'm_client.Destiny',
        session: m_session.SessionIdentity,
        interval: int = consts.CHARACTERS_INTERVAL,
    ) -> None:
        super().__init__()
        self.client = client
        self.session = session
        self.characters: List[m_character.Character] = []
        self.timer: Optional[int] = client.scheduler.set_interval(
            self.refresh, interval
        )

    def __iter__(self) -> Iterator[m_character.Character]:
        return iter(self.characters)

    def __len__(self) -> int:
        return len(self.characters)

    def refresh(self) -> None:
        """Requests the account summary, ignored until the session is known."""
        if self.timer is None:
            return
        if not self.session.platform or not self.session.id:
            return

        self.client.user.account(self.session.platform, self.session.id, self._received)

    def _received(self, err: Optional[Exception], data: Any) -> None:
        if self.timer is None:
            # Replaced while the request was in flight
            return
        if err is not None:
            logger.error('Unable to refresh characters: %s', err)
            self.error.emit(err)
            return
        self.set(data)

    def set(self, data: Any) -> bool:
        """
        Merges an account summary into the collection. Known ids are updated in
        place, unknown ids are added. Returns whether the payload was used.
        """
        records = data.get('characters') if isinstance(data, Mapping) else None
        if not isinstance(records, Sequence) or isinstance(records, str):
            logger.warning('Ignoring malformed character payload')
            return False

        for record in records:
            base = record.get('characterBase') if isinstance(record, Mapping) else None
            if not isinstance(base, Mapping) or not base.get('characterId'):
                logger.warning('Skipping character without id')
                continue

            character = self.find(str(base['characterId']))
            if character is None:
                self.characters.append(m_character.Character(self.client, base))
            else:
                character.set(base)

        self.characters.sort(key=lambda character: character.played, reverse=True)
        logger.debug('Merged characters %s', self.characters)
        self.updated.emit(data)
        return True

    def find(self, character_id: str) -> Optional[m_character.Character]:
        """Finds a character by id."""
        return next(
            (
                character
                for character in self.characters
                if character.id == character_id
            ),
            None,
        )

    def get(self, index: int) -> Optional[m_character.Character]:
        """Returns the character at the index, None if there is none."""
        if -len(self.characters) <= index < len(self.characters):
            return self.characters[index]
        return None

    def active(self) -> Optional[m_character.Character]:
        """Returns the most recently played character."""
        return self.get(0)

    def destroy(self) -> None:
        """Stops polling and forgets the characters."""
        if self.timer is not None:
            self.client.scheduler.clear(self.timer)
            self.timer = None
        self.characters.clear()
