# Copyright (c) 2024 - 2025, Oracle and/or its affiliates. All rights reserved.
# Licensed under the Universal Permissive License v 1.0 as shown at https://oss.oracle.com/licenses/upl/.

"""Tests for the JSON schema validator."""

import json
from pathlib import Path

import pytest

from transparent_release.errors import ConfigurationError, DecodeError
from transparent_release.schema import JsonSchemaValidator, load_provenance_schema

SCHEMA = json.dumps(
    {
        "$schema": "http://json-schema.org/draft-07/schema#",
        "type": "object",
        "required": ["name", "count"],
        "properties": {"name": {"type": "string"}, "count": {"type": "integer"}},
    }
)


@pytest.mark.parametrize(
    ("document", "expected_errors"),
    [
        pytest.param('{"name": "oak", "count": 1}', [], id="Valid document"),
        pytest.param('{"name": "oak"}', ["$: 'count' is a required property"], id="Missing property"),
        pytest.param(
            '{"name": 1, "count": "1"}',
            ["$.count: '1' is not of type 'integer'", "$.name: 1 is not of type 'string'"],
            id="Every violation is reported",
        ),
    ],
)
def test_validate(document: str, expected_errors: list[str]) -> None:
    """Test the violations reported by the validator."""
    result = JsonSchemaValidator().validate(SCHEMA, document)
    assert result.valid == (not expected_errors)
    assert result.errors == expected_errors


def test_document_not_json() -> None:
    """Test that a document that is not JSON cannot be validated."""
    with pytest.raises(DecodeError):
        JsonSchemaValidator().validate(SCHEMA, "{")


@pytest.mark.parametrize(
    "schema",
    [
        pytest.param("{", id="Not JSON"),
        pytest.param('{"type": 12}', id="Invalid schema"),
    ],
)
def test_invalid_schema(schema: str) -> None:
    """Test that an invalid schema is a configuration error."""
    with pytest.raises(ConfigurationError):
        JsonSchemaValidator().validate(schema, "{}")


def test_load_packaged_schema() -> None:
    """Test that the packaged provenance schema is loaded by default."""
    schema = load_provenance_schema()
    assert json.loads(schema.text)["title"] == "Amber SLSA v0.2 provenance"


def test_load_missing_schema(tmp_path: Path) -> None:
    """Test that a missing schema file is a configuration error."""
    with pytest.raises(ConfigurationError):
        load_provenance_schema(str(tmp_path.joinpath("missing.json")))
