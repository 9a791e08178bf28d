"""
Date codec for WSDOT and WSF wire formats.

Response bodies carry timestamps as ``/Date(<epoch ms>[+-hhmm])/`` strings
(WSF sometimes escapes the slashes: ``\\/Date(...)\\/``). Requests take plain
calendar dates (``YYYY-MM-DD``) in the path or query string. Both directions
are separate: an endpoint may accept a calendar date and answer with full
timestamps.
"""

import re
from datetime import date, datetime, timedelta, timezone
from typing import Any, Optional, Union

from wsdottie.errors import DecodeError

EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)

WSDOT_DATE_RE = re.compile(r"^\\?/Date\((-?\d+)(?:([+-])(\d{2})(\d{2}))?\)\\?/$")
CALENDAR_DATE_RE = re.compile(r"^(\d{4})-(\d{2})-(\d{2})$")


def decode_wsdot_date(value: Optional[str]) -> Optional[datetime]:
    """
    Decode a ``/Date(ms)/`` wire string into an aware datetime.

    The epoch milliseconds are absolute; an offset suffix only selects the
    timezone the returned datetime is expressed in (UTC when absent).

    Args:
        value: Wire string, or None

    Returns:
        Timezone-aware datetime, or None when ``value`` is None

    Raises:
        DecodeError: If ``value`` is present but not a wire timestamp
    """
    if value is None:
        return None
    if not isinstance(value, str):
        raise DecodeError(f"Expected a /Date(ms)/ string, got {type(value).__name__}")

    match = WSDOT_DATE_RE.match(value.strip())
    if not match:
        raise DecodeError(f"Invalid WSDOT date string: {value!r}")

    millis, sign, hours, minutes = match.groups()
    tz = timezone.utc
    if sign:
        offset = timedelta(hours=int(hours), minutes=int(minutes))
        tz = timezone(-offset if sign == "-" else offset)

    try:
        decoded = EPOCH + timedelta(milliseconds=int(millis))
    except OverflowError as e:
        raise DecodeError(f"WSDOT date out of range: {value!r}") from e
    return decoded.astimezone(tz)


def encode_wsdot_date(value: datetime) -> str:
    """
    Encode a datetime into the ``/Date(ms)/`` wire form.

    Naive datetimes are taken as UTC. A non-UTC offset is kept as the
    ``+hhmm``/``-hhmm`` suffix so that decoding restores the same timezone.
    """
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)

    millis = (value - EPOCH) // timedelta(milliseconds=1)
    offset = value.utcoffset() or timedelta(0)
    if not offset:
        return f"/Date({millis})/"

    sign = "-" if offset < timedelta(0) else "+"
    total_minutes = abs(offset) // timedelta(minutes=1)
    hours, minutes = divmod(total_minutes, 60)
    return f"/Date({millis}{sign}{hours:02d}{minutes:02d})/"


def encode_calendar_date(value: Union[date, datetime]) -> str:
    """Format a date (or the date part of a datetime) as ``YYYY-MM-DD``."""
    if isinstance(value, datetime):
        value = value.date()
    return value.strftime("%Y-%m-%d")


def decode_calendar_date(value: str) -> date:
    """
    Parse a ``YYYY-MM-DD`` string.

    Raises:
        DecodeError: If the string is not a valid calendar date
    """
    match = CALENDAR_DATE_RE.match(value or "")
    if not match:
        raise DecodeError(f"Invalid calendar date: {value!r}")
    try:
        return date(*(int(part) for part in match.groups()))
    except ValueError as e:
        raise DecodeError(f"Invalid calendar date: {value!r}") from e


def decode_wire_dates(value: Any) -> Any:
    """
    Decode every ``/Date(ms)/`` string found in a parsed JSON value.

    Dicts and lists are walked recursively and copied; other strings and
    scalars are returned unchanged. Used when a response skips its output
    schema.
    """
    if isinstance(value, dict):
        return {key: decode_wire_dates(item) for key, item in value.items()}
    if isinstance(value, list):
        return [decode_wire_dates(item) for item in value]
    if isinstance(value, str) and WSDOT_DATE_RE.match(value.strip()):
        return decode_wsdot_date(value)
    return value
