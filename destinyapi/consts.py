"""
Constants shared by the client, its endpoints and its models.
"""

import os

from PyQt6.QtCore import QSettings

from destinyapi import file

VERSION = '0.3.0'

# Base location of the Bungie platform API, should always end with a `/`
API_URL = 'https://www.bungie.net/Platform/'

# HTTPS request headers
USER_AGENT = f'destiny-api/{VERSION}'

# Application error codes returned in the `ErrorCode` field of a response
BENIGN_CODES = (0, 1)
THROTTLE_CODE = 36

# Milliseconds
DEFAULT_TIMEOUT = 30000
CHARACTERS_INTERVAL = 10000

# Vault time to live, anything util.parse_duration understands
DEFAULT_TTL = '5 minutes'

DEFAULT_LANGUAGE = 'en'

# Maximum number of times a throttled request is rescheduled (None = forever)
DEFAULT_MAX_RETRIES = 10

SETTINGS_GROUP = 'destiny'

_settings = QSettings(
    QSettings.Format.IniFormat,
    QSettings.Scope.UserScope,
    'DestinyAPI',
    'DestinyAPI',
).fileName()
APPDATA_DIR = os.path.dirname(_settings)
file.create_directories(_settings)
