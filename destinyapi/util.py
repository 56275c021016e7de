"""
Utility functions.
"""

import datetime
import re

from typing import Any, Dict, Optional, Sequence

from destinyapi import log

logger = log.get_logger(__name__)

EPOCH = datetime.datetime.min.replace(tzinfo=datetime.timezone.utc)

# Unit name to milliseconds
_UNITS: Dict[str, int] = {
    'ms': 1,
    'millisecond': 1,
    's': 1000,
    'sec': 1000,
    'second': 1000,
    'm': 60 * 1000,
    'min': 60 * 1000,
    'minute': 60 * 1000,
    'h': 60 * 60 * 1000,
    'hour': 60 * 60 * 1000,
    'd': 24 * 60 * 60 * 1000,
    'day': 24 * 60 * 60 * 1000,
}

_DURATION = re.compile(r'^\s*(\d+(?:\.\d+)?)\s*([a-z]*)\s*$', re.IGNORECASE)


def parse_duration(value: int | float | str) -> int:
    """
    Converts a duration to milliseconds. Numbers are already milliseconds,
    strings look like `'5 minutes'`, `'10s'` or `'250 ms'`.
    """
    if isinstance(value, (int, float)):
        return int(value)

    match = _DURATION.match(value)
    if match is None:
        raise ValueError(f'Invalid duration: {value!r}')

    amount, unit = match.groups()
    unit = unit.lower()
    if not unit:
        return int(float(amount))

    # Plurals
    if unit not in _UNITS and unit.endswith('s'):
        unit = unit[:-1]
    if unit not in _UNITS:
        raise ValueError(f'Unknown duration unit: {value!r}')

    return int(float(amount) * _UNITS[unit])


def pathval(obj: Any, path: Optional[str]) -> Any:
    """
    Extracts a dotted path (`'data.characters.0'`) from nested dicts and lists.
    Returns None if any part of the path is missing.
    """
    if not path:
        return obj

    for part in path.split('.'):
        if isinstance(obj, dict):
            obj = obj.get(part)
        elif isinstance(obj, Sequence) and not isinstance(obj, str) and part.isdigit():
            index = int(part)
            obj = obj[index] if index < len(obj) else None
        else:
            return None
        if obj is None:
            return None

    return obj


def parse_date(value: Any) -> datetime.datetime:
    """Parses an ISO 8601 date from the API, falling back to the epoch."""
    if not isinstance(value, str) or not value:
        return EPOCH

    try:
        date = datetime.datetime.fromisoformat(value.replace('Z', '+00:00'))
    except ValueError:
        logger.warning('Unable to parse date %s', value)
        return EPOCH

    if date.tzinfo is None:
        date = date.replace(tzinfo=datetime.timezone.utc)
    return date
