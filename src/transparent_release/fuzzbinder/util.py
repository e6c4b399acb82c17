# Copyright (c) 2024 - 2025, Oracle and/or its affiliates. All rights reserved.
# Licensed under the Universal Permissive License v 1.0 as shown at https://oss.oracle.com/licenses/upl/.

"""Helpers for the dates of fuzzing reports and the validity of fuzzing claims."""

import datetime
import logging

from transparent_release.claims.claim import ClaimValidity
from transparent_release.config.defaults import defaults
from transparent_release.errors import (
    DecodeError,
    InvalidFuzzingDateError,
    NotAfterNotAfterNotBeforeError,
    TemporalInvariantError,
)

logger: logging.Logger = logging.getLogger(__name__)

#: The format of the dates of the fuzzing reports, e.g. ``20221206``.
DATE_FORMAT = "%Y%m%d"

#: The format of the dates in the paths of the fuzzing logs, e.g. ``2022-12-06``.
LOG_DATE_FORMAT = "%Y-%m-%d"


def parse_date(date: str) -> datetime.datetime:
    """Parse a ``yyyymmdd`` date into a datetime at midnight UTC.

    Raises
    ------
    DecodeError
        If the date does not have the ``yyyymmdd`` format.
    """
    try:
        if len(date) != 8 or not date.isdigit():
            raise ValueError(date)
        parsed = datetime.datetime.strptime(date, DATE_FORMAT)
    except ValueError as error:
        raise DecodeError(f"The format of {date} is not valid: the date format should be yyyymmdd.") from error
    return parsed.replace(tzinfo=datetime.timezone.utc)


def to_log_date(date: str) -> str:
    """Convert a ``yyyymmdd`` date into the ``yyyy-mm-dd`` format of the fuzzing log paths.

    >>> to_log_date("20221206")
    '2022-12-06'
    """
    return parse_date(date).strftime(LOG_DATE_FORMAT)


def validate_fuzzing_date(date: str, reference_time: datetime.datetime) -> None:
    """Check that the fuzzing logs of a date are still available at ``reference_time``.

    OSS-Fuzz deletes the fuzzing logs after ``log_retention_days`` days.

    Parameters
    ----------
    date : str
        The fuzzing date, in the ``yyyymmdd`` format.
    reference_time : datetime.datetime
        The current time.

    Raises
    ------
    InvalidFuzzingDateError
        If the date is malformed, the logs are already deleted, or the date is in the future.
    """
    try:
        fuzzing_date = parse_date(date)
    except DecodeError as error:
        raise InvalidFuzzingDateError(str(error)) from error

    retention_days = defaults.getint("fuzzbinder", "log_retention_days", fallback=15)
    if fuzzing_date < reference_time - datetime.timedelta(days=retention_days):
        raise InvalidFuzzingDateError(f"The fuzzing logs on {date} are deleted: select a more recent date.")
    if fuzzing_date > reference_time:
        raise InvalidFuzzingDateError(f"No fuzzing logs generated for {date}: do not select a date in the future.")


def get_valid_fuzz_claim_validity(current_time: datetime.datetime, not_before: str, not_after: str) -> ClaimValidity:
    """Return the validity of a fuzzing claim from ``yyyymmdd`` dates, checking it.

    Parameters
    ----------
    current_time : datetime.datetime
        The time the claim is generated.
    not_before : str
        The first day of validity.
    not_after : str
        The end of validity.

    Returns
    -------
    ClaimValidity
        The validity.

    Raises
    ------
    DecodeError
        If a date does not have the ``yyyymmdd`` format.
    TemporalInvariantError
        If the validity starts before ``current_time`` or the validity window is empty.
    """
    validity = ClaimValidity(not_before=parse_date(not_before), not_after=parse_date(not_after))
    if validity.not_before < current_time:
        raise TemporalInvariantError(
            f"notBefore ({validity.not_before.isoformat()}) is not after the current time "
            + f"({current_time.isoformat()}).",
            validity.not_before,
            current_time,
        )
    if validity.not_after <= validity.not_before:
        raise NotAfterNotAfterNotBeforeError(validity.not_after, validity.not_before)
    return validity


def default_fuzz_claim_dates(current_time: datetime.datetime) -> tuple[str, str]:
    """Return the default ``notBefore`` and ``notAfter`` dates of a fuzzing claim, as ``yyyymmdd`` strings."""
    not_before_days = defaults.getint("fuzzbinder", "validity_not_before_days", fallback=1)
    not_after_days = defaults.getint("fuzzbinder", "validity_not_after_days", fallback=90)
    return (
        (current_time + datetime.timedelta(days=not_before_days)).strftime(DATE_FORMAT),
        (current_time + datetime.timedelta(days=not_after_days)).strftime(DATE_FORMAT),
    )
