# Copyright (c) 2024 - 2025, Oracle and/or its affiliates. All rights reserved.
# Licensed under the Universal Permissive License v 1.0 as shown at https://oss.oracle.com/licenses/upl/.

"""This module provides utility functions for JSON data."""
import json
import logging
from collections.abc import Sequence
from typing import TypeVar

from transparent_release.errors import DecodeError

JsonType = int | float | str | None | bool | list["JsonType"] | dict[str, "JsonType"]
T = TypeVar("T", bound=JsonType)

logger: logging.Logger = logging.getLogger(__name__)


def json_extract(entry: dict | list, keys: Sequence[str | int], type_: type[T]) -> T | None:
    """Return the value found by following the list of depth-sequential keys inside the passed JSON dictionary.

    The value must be of the passed type.

    Parameters
    ----------
    entry: dict | list
        An entry point into a JSON structure.
    keys: Sequence[str | int]
        The sequence of depth-sequential keys within the JSON. Can be dict keys or list indices.
    type: type[T]
        The type to check the value against and return it as.

    Returns
    -------
    T | None:
        The found value as the type of the type parameter.
    """
    for key in keys:
        if isinstance(entry, dict) and isinstance(key, str):
            if key not in entry:
                logger.debug("JSON key '%s' not found in dict entry.", key)
                return None
            entry = entry[key]
        elif isinstance(entry, list) and isinstance(key, int):
            if key < 0 or key >= len(entry):
                logger.debug("JSON list index '%s' is outside of list bounds %s.", key, len(entry))
                return None
            entry = entry[key]
        else:
            logger.debug("Cannot index '%s' (type: %s) in entry (type: %s).", key, type(key), type(entry))
            return None

    # bool is a subclass of int, so an int lookup must not accept a boolean.
    if isinstance(entry, type_) and not (isinstance(entry, bool) and type_ in (int, float)):
        return entry

    logger.debug("Found value of incorrect type: %s instead of %s.", type(entry), type_)
    return None


def load_json_object(data: bytes | str, what: str) -> dict[str, JsonType]:
    """Deserialize ``data`` and check that its root is a JSON object.

    Parameters
    ----------
    data : bytes | str
        The serialized JSON document.
    what : str
        A short description of the document, used in error messages.

    Returns
    -------
    dict[str, JsonType]
        The deserialized JSON object.

    Raises
    ------
    DecodeError
        If ``data`` is not valid JSON or its root is not an object.
    """
    try:
        content = json.loads(data)
    except (json.JSONDecodeError, UnicodeDecodeError, TypeError) as error:
        raise DecodeError(f"Cannot deserialize the {what} as JSON: {error}") from error

    if not isinstance(content, dict):
        raise DecodeError(f"The {what} is not a JSON object.")

    return content


def require(entry: dict, key: str, type_: type[T], what: str) -> T:
    """Return the value of a mandatory key of a JSON object, checking its type.

    Raises
    ------
    DecodeError
        If the key is missing or the value has another type.
    """
    if key not in entry:
        raise DecodeError(f"The attribute '{key}' of the {what} is missing.")
    if type_ is float:
        number = json_extract(entry, [key], int)
        if number is not None:
            return float(number)  # type: ignore[return-value]
    value = json_extract(entry, [key], type_)
    if value is None:
        raise DecodeError(f"The value of attribute '{key}' in the {what} is invalid: expecting {type_.__name__}.")
    return value


def parse_digest_set(value: JsonType, what: str) -> dict[str, str]:
    """Check that ``value`` is a JSON object mapping algorithm names to hex digests.

    Raises
    ------
    DecodeError
        If ``value`` is not a mapping of strings to strings.
    """
    if not isinstance(value, dict):
        raise DecodeError(f"The digest of the {what} is invalid: expecting an object.")
    for algorithm, digest in value.items():
        if not isinstance(digest, str):
            raise DecodeError(f"The {algorithm} digest of the {what} is invalid: expecting a string.")
    return dict(value)  # type: ignore[arg-type]
