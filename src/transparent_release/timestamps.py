# Copyright (c) 2024 - 2025, Oracle and/or its affiliates. All rights reserved.
# Licensed under the Universal Permissive License v 1.0 as shown at https://oss.oracle.com/licenses/upl/.

"""This module converts timestamps from and to their RFC 3339 string representation, as used by in-toto."""

import datetime
import re

from transparent_release.errors import DecodeError

_RFC3339_PATTERN = re.compile(
    r"^(?P<date>\d{4}-\d{2}-\d{2})[Tt ](?P<time>\d{2}:\d{2}:\d{2})"
    r"(?:\.(?P<fraction>\d+))?"
    r"(?P<offset>[Zz]|[+-]\d{2}:\d{2})$"
)


def parse_timestamp(value: str) -> datetime.datetime:
    """Parse an RFC 3339 timestamp into a timezone-aware datetime in UTC.

    Fractional seconds beyond microsecond precision are truncated.

    Parameters
    ----------
    value : str
        The timestamp, e.g. ``2023-01-02T03:04:05.123Z`` or ``2023-01-02T05:04:05+02:00``.

    Returns
    -------
    datetime.datetime
        The timestamp, converted to UTC.

    Raises
    ------
    DecodeError
        If the value is not an RFC 3339 timestamp with a timezone offset.
    """
    match = _RFC3339_PATTERN.match(value)
    if match is None:
        raise DecodeError(f"The timestamp '{value}' is not a valid RFC 3339 timestamp.")

    offset = match.group("offset").upper()
    fraction = match.group("fraction")
    normalized = f"{match.group('date')}T{match.group('time')}"
    if fraction:
        normalized += "." + fraction[:6].ljust(6, "0")
    normalized += "+00:00" if offset == "Z" else offset

    try:
        result = datetime.datetime.fromisoformat(normalized)
    except ValueError as error:
        raise DecodeError(f"The timestamp '{value}' is not a valid RFC 3339 timestamp: {error}") from error

    return result.astimezone(datetime.timezone.utc)


def format_timestamp(value: datetime.datetime) -> str:
    """Return the RFC 3339 representation of a timezone-aware datetime, in UTC with a ``Z`` suffix.

    Raises
    ------
    ValueError
        If the datetime is naive.
    """
    if value.tzinfo is None or value.utcoffset() is None:
        raise ValueError("tzinfo is required")
    value = value.astimezone(datetime.timezone.utc).replace(tzinfo=None)
    return value.isoformat(sep="T") + "Z"


def utc_now() -> datetime.datetime:
    """Return the current time in UTC."""
    return datetime.datetime.now(tz=datetime.timezone.utc)
