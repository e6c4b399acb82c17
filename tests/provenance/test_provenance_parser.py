# Copyright (c) 2024 - 2025, Oracle and/or its affiliates. All rights reserved.
# Licensed under the Universal Permissive License v 1.0 as shown at https://oss.oracle.com/licenses/upl/.

"""Tests for parsing provenance files into the provenance IR."""

import base64
import json
from collections.abc import Callable
from pathlib import Path

import pytest

from transparent_release.errors import (
    BuilderImageNotFoundError,
    DecodeError,
    SchemaValidationError,
    UnrecognizedPredicateError,
    UnsupportedBuildTypeError,
)
from transparent_release.intoto.statement import parse_statement
from transparent_release.provenance.parser import from_provenance, parse_provenance_file, read_provenance_file
from transparent_release.schema import ProvenanceSchema, SchemaValidationResult
from transparent_release.slsa.amber import AMBER_BUILD_TYPE_V1
from transparent_release.slsa.v02 import GENERIC_SLSA_BUILD_TYPE

RESOURCES_DIR = Path(__file__).parent.joinpath("resources")


def _load(file_name: str) -> dict:
    with open(RESOURCES_DIR.joinpath(file_name), encoding="utf-8") as file:
        return dict(json.load(file))


def test_amber_provenance(provenance_schema: ProvenanceSchema) -> None:
    """Test the IR of an Amber provenance."""
    ir = read_provenance_file(RESOURCES_DIR.joinpath("amber_provenance.json"), provenance_schema)

    assert ir.get_binary_name() == "oak_functions_loader"
    assert ir.get_binary_sha256_digest() == "15dc16c42a4ac9ed77f337a4a3065a63e444c29c18c8cf69d6a6b4ae678dca5c"
    assert ir.get_builder_image_sha256_digest() == (
        "53ca44b5889e2265c3ae9e542d7097b7de12ea4c6a33785da8478c7333b9a320"
    )
    assert ir.get_build_type() == AMBER_BUILD_TYPE_V1
    assert ir.get_build_cmd() == ["./scripts/runner", "build-functions-server"]
    assert ir.get_repo_uris() == ["https://github.com/project-oak/oak"]
    assert ir.get_trusted_builder() == "https://github.com/project-oak/transparent-release"


def test_generic_slsa_provenance() -> None:
    """Test that a provenance of the generic SLSA generator has no build command nor builder image."""
    with open(RESOURCES_DIR.joinpath("generic_slsa_provenance.json"), "rb") as file:
        ir = from_provenance(parse_statement(file.read()))

    assert ir.get_build_type() == GENERIC_SLSA_BUILD_TYPE
    assert ir.get_repo_uris() == ["git+https://github.com/project-oak/oak@refs/heads/main"]
    assert not ir.has_build_cmd()
    assert not ir.has_builder_image_sha256_digest()


def test_schema_violations(provenance_schema: ProvenanceSchema) -> None:
    """Test that every violation of the schema is reported."""
    with open(RESOURCES_DIR.joinpath("invalid_provenance.json"), "rb") as file:
        content = file.read()

    with pytest.raises(SchemaValidationError) as error:
        parse_provenance_file(content, provenance_schema)

    assert len(error.value.errors) == 2
    assert any("sha256" in message for message in error.value.errors)
    assert any("command" in message for message in error.value.errors)


def test_injected_validator(provenance_schema: ProvenanceSchema) -> None:
    """Test that the parser uses the schema validator it is given."""

    class RejectAll:
        """A validator rejecting every document."""

        def validate(self, schema_text: str, document_text: str | bytes) -> SchemaValidationResult:
            """Reject the document."""
            return SchemaValidationResult(valid=False, errors=[f"rejected with a schema of {len(schema_text)}"])

    with open(RESOURCES_DIR.joinpath("amber_provenance.json"), "rb") as file:
        content = file.read()

    with pytest.raises(SchemaValidationError):
        parse_provenance_file(content, provenance_schema, RejectAll())


def test_not_json(provenance_schema: ProvenanceSchema) -> None:
    """Test that a provenance that is not JSON is a decoding error."""
    with pytest.raises(DecodeError):
        parse_provenance_file(b"{not json", provenance_schema)


@pytest.mark.parametrize(
    "wrap",
    [
        pytest.param(lambda payload: {"payloadType": "application/vnd.in-toto+json", "payload": payload}, id="DSSE"),
        pytest.param(lambda payload: {"dsseEnvelope": {"payload": payload, "signatures": []}}, id="Sigstore bundle"),
    ],
)
def test_provenance_in_envelope(provenance_schema: ProvenanceSchema, wrap: Callable[[str], dict]) -> None:
    """Test that a provenance carried by an envelope has the same IR as the bare provenance."""
    with open(RESOURCES_DIR.joinpath("amber_provenance.json"), "rb") as file:
        content = file.read()
    envelope = json.dumps(wrap(base64.b64encode(content).decode("ascii")))

    ir = parse_provenance_file(envelope, provenance_schema)
    bare_ir = parse_provenance_file(content, provenance_schema)
    assert ir.get_statement() == bare_ir.get_statement()
    assert ir.get_binary_sha256_digest() == "15dc16c42a4ac9ed77f337a4a3065a63e444c29c18c8cf69d6a6b4ae678dca5c"
    assert ir.get_build_cmd() == bare_ir.get_build_cmd()
    assert ir.get_builder_image_sha256_digest() == bare_ir.get_builder_image_sha256_digest()


def test_envelope_of_invalid_provenance(provenance_schema: ProvenanceSchema) -> None:
    """Test that the schema is checked against the statement carried by an envelope."""
    with open(RESOURCES_DIR.joinpath("invalid_provenance.json"), "rb") as file:
        payload = base64.b64encode(file.read()).decode("ascii")

    with pytest.raises(SchemaValidationError):
        parse_provenance_file(json.dumps({"payload": payload}), provenance_schema)


def test_unsupported_build_type() -> None:
    """Test that a provenance with an unknown build type is rejected."""
    content = _load("amber_provenance.json")
    content["predicate"]["buildType"] = "https://example.com/unknown-build-type"

    with pytest.raises(UnsupportedBuildTypeError):
        from_provenance(parse_statement(json.dumps(content)))


def test_unrecognized_predicate_type() -> None:
    """Test that a statement that is not a SLSA v0.2 provenance is rejected."""
    content = _load("amber_provenance.json")
    content["predicateType"] = "https://slsa.dev/provenance/v1"

    with pytest.raises(UnrecognizedPredicateError):
        from_provenance(parse_statement(json.dumps(content)))


def test_missing_builder_image() -> None:
    """Test that an Amber provenance must reference its builder image."""
    content = _load("amber_provenance.json")
    content["predicate"]["materials"] = content["predicate"]["materials"][1:]

    with pytest.raises(BuilderImageNotFoundError):
        from_provenance(parse_statement(json.dumps(content)))


def test_first_builder_image_wins() -> None:
    """Test that the first material that looks like a builder image is selected."""
    content = _load("amber_provenance.json")
    other_digest = "0" * 64
    content["predicate"]["materials"].append(
        {"uri": f"gcr.io/oak-ci/oak-other@sha256:{other_digest}", "digest": {"sha256": other_digest}}
    )

    ir = from_provenance(parse_statement(json.dumps(content)))
    assert ir.get_builder_image_sha256_digest() == (
        "53ca44b5889e2265c3ae9e542d7097b7de12ea4c6a33785da8478c7333b9a320"
    )
