"""
Client configuration, optionally persisted through QSettings.
"""

import dataclasses

from typing import Any, Optional

from PyQt6.QtCore import QSettings

from destinyapi import consts, log

logger = log.get_logger(__name__)


@dataclasses.dataclass
class Config:
    """
    Recognized client options.

    - api:         Location of the API server that we're requesting.
    - key:         Bungie API key, the auth provider's key wins when it has one.
    - platform:    Console that is used, resolved again during bootstrap.
    - username:    Username of the account, resolved again during bootstrap.
    - timeout:     Maximum request time in milliseconds.
    - ttl:         Time to live of the vault before it is fetched again.
    - definitions: Ask the API to include extended metadata.
    - language:    Locale code of the returned definitions.
    - max_retries: Times a throttled request is rescheduled, None for no limit.
    """

    api: str = consts.API_URL
    key: str = ''
    platform: str = ''
    username: str = ''
    timeout: int = consts.DEFAULT_TIMEOUT
    ttl: int | str = consts.DEFAULT_TTL
    definitions: bool = True
    language: str = consts.DEFAULT_LANGUAGE
    max_retries: Optional[int] = consts.DEFAULT_MAX_RETRIES

    def __post_init__(self) -> None:
        if not self.api.endswith('/'):
            self.api += '/'

    @classmethod
    def fields(cls) -> tuple:
        """Names of all options."""
        return tuple(field.name for field in dataclasses.fields(cls))

    @classmethod
    def load(cls, settings: Optional[QSettings] = None) -> 'Config':
        """Creates a config from stored settings, using defaults for the rest."""
        if settings is None:
            settings = _default_settings()

        config = cls()
        settings.beginGroup(consts.SETTINGS_GROUP)
        for name in settings.childKeys():
            if name not in cls.fields():
                logger.warning('Ignoring unknown setting %s', name)
                continue
            setattr(config, name, _convert(getattr(config, name), settings.value(name)))
        settings.endGroup()
        config.__post_init__()
        return config

    def save(self, settings: Optional[QSettings] = None) -> None:
        """Stores all options, the API key excluded."""
        if settings is None:
            settings = _default_settings()

        settings.beginGroup(consts.SETTINGS_GROUP)
        for name, value in dataclasses.asdict(self).items():
            if name == 'key':
                continue
            if value is None:
                settings.remove(name)
            else:
                settings.setValue(name, value)
        settings.endGroup()
        settings.sync()


def _default_settings() -> QSettings:
    return QSettings(
        QSettings.Format.IniFormat,
        QSettings.Scope.UserScope,
        'DestinyAPI',
        'DestinyAPI',
    )


def _convert(default: Any, value: Any) -> Any:
    """INI settings come back as strings, convert them to the default's type."""
    if isinstance(default, bool):
        return str(value).lower() in ('1', 'true', 'yes')
    if isinstance(default, int):
        try:
            return int(value)
        except (TypeError, ValueError):
            return value
    return value
