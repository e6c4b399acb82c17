# Copyright (c) 2024 - 2025, Oracle and/or its affiliates. All rights reserved.
# Licensed under the Universal Permissive License v 1.0 as shown at https://oss.oracle.com/licenses/upl/.

"""Tests for the JSON utility functions."""

import pytest

from transparent_release.errors import DecodeError
from transparent_release.json_tools import JsonType, json_extract, load_json_object, parse_digest_set, require

DOCUMENT: dict = {"data": [{"totals": {"percent": 50, "ratio": 0.5, "covered": True}}], "name": "oak"}


@pytest.mark.parametrize(
    ("keys", "type_", "expected"),
    [
        pytest.param(["name"], str, "oak", id="String"),
        pytest.param(["data", 0, "totals", "percent"], int, 50, id="Nested integer"),
        pytest.param(["data", 0, "totals", "ratio"], float, 0.5, id="Nested float"),
        pytest.param(["data", 0, "totals", "covered"], bool, True, id="Boolean"),
        pytest.param(["data", 0, "totals", "covered"], int, None, id="Boolean is not an integer"),
        pytest.param(["data", 1], dict, None, id="Index out of bounds"),
        pytest.param(["data", "totals"], dict, None, id="String key on a list"),
        pytest.param(["missing"], str, None, id="Missing key"),
        pytest.param(["name"], int, None, id="Wrong type"),
    ],
)
def test_json_extract(keys: list[str | int], type_: type, expected: JsonType) -> None:
    """Test following keys inside a JSON document."""
    assert json_extract(DOCUMENT, keys, type_) == expected


@pytest.mark.parametrize(
    "data",
    [
        pytest.param("{", id="Not JSON"),
        pytest.param("[1, 2]", id="Not an object"),
        pytest.param(b"\x80abc", id="Not UTF-8"),
    ],
)
def test_load_invalid_json_object(data: bytes | str) -> None:
    """Test the documents that are not JSON objects."""
    with pytest.raises(DecodeError):
        load_json_object(data, "test document")


def test_require() -> None:
    """Test reading mandatory attributes."""
    entry = {"count": 3, "percent": 38.24, "name": "oak"}
    assert require(entry, "name", str, "summary") == "oak"
    assert require(entry, "count", float, "summary") == 3.0
    assert isinstance(require(entry, "count", float, "summary"), float)

    with pytest.raises(DecodeError):
        require(entry, "missing", str, "summary")
    with pytest.raises(DecodeError):
        require(entry, "percent", int, "summary")


def test_parse_digest_set() -> None:
    """Test that a digest set maps algorithm names to strings."""
    assert parse_digest_set({"sha256": "15dc16c4"}, "subject") == {"sha256": "15dc16c4"}
    with pytest.raises(DecodeError):
        parse_digest_set(["sha256"], "subject")
    with pytest.raises(DecodeError):
        parse_digest_set({"sha256": 15}, "subject")
