# sqlcsv/formatting.py
"""
Conversion of database values to their CSV text representation.

Values arrive from the query engine with whatever Python type the driver
chose. :class:`ValueFormatter` maps each one to a string in a single ordered
type dispatch; escaping is left to the CSV encoder.
"""

import datetime as dt
import re
from decimal import Decimal
from typing import Any, Optional, Union

import pytz

from .config import get_setting
from .exceptions import ConfigurationError, EncodingError

MIDNIGHT = dt.time(0, 0, 0)
# Long form used when no time format is configured:
# 1973-11-29 21:33:09 +0000 UTC, 2024-01-15 08:00:00.25 -0600 CST
DATETIME_FORMAT = '%Y-%m-%d %H:%M:%S'
TIME_FORMAT = '%H:%M:%S'

_OFFSET_RE = re.compile(r'^([+-])(\d{2}):?(\d{2})$')

TzLike = Union[str, dt.tzinfo, None]


def resolve_timezone(timezone: TzLike) -> Optional[dt.tzinfo]:
    """
    Turn a timezone name or offset string into a tzinfo.

    Args:
        timezone: Olson name ('UTC', 'America/New_York'), offset ('+05:00', '-0800'),
            an existing tzinfo, or None

    Returns:
        tzinfo object, or None when timezone is None/empty

    Raises:
        ConfigurationError: if the name is not a known timezone
    """
    if not timezone:
        return None
    if isinstance(timezone, dt.tzinfo):
        return timezone

    offset_match = _OFFSET_RE.match(timezone)
    if offset_match:
        sign = 1 if offset_match.group(1) == '+' else -1
        minutes = int(offset_match.group(2)) * 60 + int(offset_match.group(3))
        return dt.timezone(dt.timedelta(minutes=sign * minutes))

    try:
        return pytz.timezone(timezone)
    except pytz.UnknownTimeZoneError as e:
        raise ConfigurationError(f"Unknown timezone: {timezone}") from e


def localize(value: dt.datetime, tz: Optional[dt.tzinfo]) -> dt.datetime:
    """Attach tz to a naive datetime. Aware values and tz=None pass through."""
    if value.tzinfo is not None or tz is None:
        return value
    if hasattr(tz, 'localize'):
        # pytz zones need localize() to pick the right DST offset
        return tz.localize(value)
    return value.replace(tzinfo=tz)


def _fraction(microsecond: int) -> str:
    if not microsecond:
        return ''
    return f'.{microsecond:06d}'.rstrip('0')


def _join_zone(text: str, value: Union[dt.datetime, dt.time]) -> str:
    parts = [text, value.strftime('%z'), value.strftime('%Z')]
    return ' '.join(part for part in parts if part)


def format_datetime(value: dt.datetime, time_format: Optional[str] = None) -> str:
    """
    Render a datetime with time_format, or the long form when it is None.

    The long form is ``YYYY-MM-DD HH:MM:SS[.fraction] ±HHMM ZONE``; the fraction
    only appears when microseconds are non-zero and has trailing zeros
    trimmed. Offset and zone are omitted for naive values.
    """
    if time_format:
        return value.strftime(time_format)
    return _join_zone(value.strftime(DATETIME_FORMAT) + _fraction(value.microsecond), value)


def format_time(value: dt.time, time_format: Optional[str] = None) -> str:
    """Render a time of day with time_format, or ``HH:MM:SS[.ffffff][ ±HHMM]``."""
    if time_format:
        return value.strftime(time_format)
    text = value.strftime(TIME_FORMAT)
    if value.microsecond:
        text += f'.{value.microsecond:06d}'
    if value.tzinfo:
        text += value.strftime(' %z')
    return text


class ValueFormatter:
    """
    Convert loosely typed column values to CSV field text.

    One instance is built per export, after the converter options have been
    validated, and applied to every value of every row.

    Parameters
    ----------
    time_format : str, optional
        strftime pattern for temporal values. None uses the long form.
    timezone : str or tzinfo, optional
        Zone assumed for naive datetimes and dates. Defaults to
        settings['default_timezone'].
    null_string : str, optional
        Text written for NULL. Defaults to settings['null_string_csv'].

    Dispatch order
    --------------
    ========================  ======================================
    None                      null_string
    datetime                  localized, then time_format/long form
    date                      midnight of that day, as datetime
    time                      time_format or HH:MM:SS
    bool                      ``true`` / ``false``
    int, Decimal              base-10 text
    float                     shortest round-trip repr
    str                       unchanged
    bytes-like                UTF-8 decoded text
    objects with read()       LOBs, read then converted
    anything else             str(value)
    ========================  ======================================
    """

    def __init__(self,
                 time_format: Optional[str] = None,
                 timezone: TzLike = None,
                 null_string: Optional[str] = None):
        self.time_format = time_format
        if timezone is None:
            timezone = get_setting('default_timezone')
        self.tz = resolve_timezone(timezone)
        self.null_string = get_setting('null_string_csv', '') if null_string is None else null_string

    def __call__(self, value: Any) -> str:
        return self.format(value)

    def format(self, value: Any) -> str:
        """
        Convert one value to text.

        Raises:
            EncodingError: if the value cannot be rendered
        """
        try:
            return self._format(value)
        except EncodingError:
            raise
        except Exception as e:
            raise EncodingError(f"Cannot convert {type(value).__name__} value {value!r} to text: {e}") from e

    def _format(self, obj: Any) -> str:
        if obj is None:
            return self.null_string
        elif isinstance(obj, dt.datetime):
            return format_datetime(localize(obj, self.tz), self.time_format)
        elif isinstance(obj, dt.date):
            return format_datetime(localize(dt.datetime.combine(obj, MIDNIGHT), self.tz), self.time_format)
        elif isinstance(obj, dt.time):
            return format_time(obj, self.time_format)
        elif isinstance(obj, bool):
            return 'true' if obj else 'false'
        elif isinstance(obj, (int, Decimal)):
            return str(obj)
        elif isinstance(obj, float):
            return repr(obj)
        elif isinstance(obj, str):
            return obj
        elif isinstance(obj, (bytes, bytearray, memoryview)):
            return bytes(obj).decode('utf-8')
        elif hasattr(obj, 'read'):
            # Handle LOB objects
            return self._format(obj.read())
        else:
            return str(obj)


def to_string(value: Any,
              time_format: Optional[str] = None,
              timezone: TzLike = None,
              null_string: Optional[str] = None) -> str:
    """
    Convert a single database value to its CSV text.

    Example:
        >>> to_string(None)
        ''
        >>> to_string(True)
        'true'
        >>> to_string(dt.datetime(1973, 11, 29, 21, 33, 9))
        '1973-11-29 21:33:09 +0000 UTC'
    """
    return ValueFormatter(time_format, timezone, null_string).format(value)
