# Copyright (c) 2024 - 2025, Oracle and/or its affiliates. All rights reserved.
# Licensed under the Universal Permissive License v 1.0 as shown at https://oss.oracle.com/licenses/upl/.

"""This module validates JSON documents against JSON schemas."""

import json
import logging
import os
from dataclasses import dataclass, field
from typing import Protocol

import jsonschema

from transparent_release import TRANSPARENT_RELEASE_PATH
from transparent_release.errors import ConfigurationError, DecodeError

logger: logging.Logger = logging.getLogger(__name__)

#: The packaged schema of Amber SLSA v0.2 provenances.
AMBER_PROVENANCE_SCHEMA_PATH = os.path.join(
    TRANSPARENT_RELEASE_PATH, "resources", "schemas", "amber_slsa_buildtype_v1_provenance.json"
)


@dataclass(frozen=True)
class SchemaValidationResult:
    """The outcome of validating a document against a schema."""

    valid: bool
    errors: list[str] = field(default_factory=list)


class SchemaValidator(Protocol):
    """Validate a JSON document against a JSON schema, reporting every violation."""

    def validate(self, schema_text: str, document_text: str | bytes) -> SchemaValidationResult:
        """Validate ``document_text`` against ``schema_text``.

        Raises
        ------
        DecodeError
            If the document is not valid JSON.
        ConfigurationError
            If the schema is not a valid JSON schema.
        """


class JsonSchemaValidator:
    """A ``SchemaValidator`` backed by the ``jsonschema`` library."""

    def validate(self, schema_text: str, document_text: str | bytes) -> SchemaValidationResult:
        """Validate ``document_text`` against ``schema_text``, collecting every violation.

        The violations are sorted by their location in the document.
        """
        try:
            schema = json.loads(schema_text)
        except json.JSONDecodeError as error:
            raise ConfigurationError(f"The JSON schema is not valid JSON: {error}") from error

        try:
            document = json.loads(document_text)
        except (json.JSONDecodeError, UnicodeDecodeError) as error:
            raise DecodeError(f"Cannot deserialize the document as JSON: {error}") from error

        try:
            validator_class = jsonschema.validators.validator_for(schema)
            validator_class.check_schema(schema)
        except jsonschema.SchemaError as error:
            raise ConfigurationError(f"The JSON schema is invalid: {error.message}") from error

        validator = validator_class(schema)
        errors = sorted(validator.iter_errors(document), key=lambda error: list(error.absolute_path))
        messages = [f"{error.json_path}: {error.message}" for error in errors]
        for message in messages:
            logger.debug("Schema violation: %s", message)

        return SchemaValidationResult(valid=not messages, errors=messages)


@dataclass(frozen=True)
class ProvenanceSchema:
    """The JSON schema that provenance files are validated against, loaded once by the caller."""

    text: str
    path: str = ""


def load_provenance_schema(path: str | None = None) -> ProvenanceSchema:
    """Load the JSON schema of provenance files.

    Parameters
    ----------
    path : str | None
        The path to the schema. The packaged Amber provenance schema is used if not set.

    Returns
    -------
    ProvenanceSchema
        The schema.

    Raises
    ------
    ConfigurationError
        If the schema cannot be read.
    """
    schema_path = path or AMBER_PROVENANCE_SCHEMA_PATH
    try:
        with open(schema_path, encoding="utf-8") as schema_file:
            return ProvenanceSchema(text=schema_file.read(), path=schema_path)
    except OSError as error:
        raise ConfigurationError(f"Cannot read the provenance schema {schema_path}: {error}") from error
