"""
Timestamp parsing for export records.
"""

import logging
from datetime import date, datetime, timezone
from typing import Any, Optional

from dateutil import parser as date_parser


def utc_now() -> datetime:
    """Current time as a naive UTC datetime (the form stored in the database)."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def _to_naive_utc(value: datetime) -> datetime:
    if value.tzinfo is not None:
        value = value.astimezone(timezone.utc).replace(tzinfo=None)
    return value


def parse_datetime(value: Any, default: Optional[datetime] = None) -> Optional[datetime]:
    """
    Parse an exported timestamp.

    Accepts datetimes and dates (YAML decodes these itself), numeric unix
    timestamps and any string dateutil understands, digit-only dates such
    as "20190101" included. Empty or unparsable values give ``default``.
    """
    if value is None or value == "":
        return default

    if isinstance(value, datetime):
        return _to_naive_utc(value)

    if isinstance(value, date):
        return datetime(value.year, value.month, value.day)

    if isinstance(value, bool):
        return default

    if isinstance(value, (int, float)):
        try:
            return datetime.fromtimestamp(float(value), tz=timezone.utc).replace(tzinfo=None)
        except (OverflowError, OSError, ValueError):
            logging.warning(f"Timestamp out of range: {value!r}")
            return default

    if isinstance(value, str):
        try:
            return _to_naive_utc(date_parser.parse(value))
        except (ValueError, OverflowError):
            logging.warning(f"Could not parse timestamp: {value!r}")
            return default

    return default
