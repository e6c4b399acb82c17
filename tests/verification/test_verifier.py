# Copyright (c) 2024 - 2025, Oracle and/or its affiliates. All rights reserved.
# Licensed under the Universal Permissive License v 1.0 as shown at https://oss.oracle.com/licenses/upl/.

"""Tests for verifying provenances against reference values."""

from dataclasses import replace
from pathlib import Path

import pytest

from transparent_release.errors import VerificationError
from transparent_release.intoto.statement import Statement, Subject
from transparent_release.provenance.ir import ProvenanceIR
from transparent_release.provenance.parser import read_provenance_file
from transparent_release.schema import ProvenanceSchema
from transparent_release.slsa.v02 import PREDICATE_SLSA_PROVENANCE_V02
from transparent_release.verification.reference import ReferenceValues, load_reference_values
from transparent_release.verification.verifier import ProvenanceIRVerifier

RESOURCES_DIR = Path(__file__).parent.joinpath("resources")
PROVENANCES_DIR = Path(__file__).parent.parent.joinpath("provenance", "resources")


@pytest.fixture(name="reference_values")
def reference_values_() -> ReferenceValues:
    """Load the reference values of the Oak Functions loader."""
    return load_reference_values(RESOURCES_DIR.joinpath("reference_values.toml"))


@pytest.fixture(name="provenance")
def provenance_(provenance_schema: ProvenanceSchema) -> ProvenanceIR:
    """Load the provenance of the Oak Functions loader."""
    return read_provenance_file(PROVENANCES_DIR.joinpath("amber_provenance.json"), provenance_schema)


def test_verify(provenance: ProvenanceIR, reference_values: ReferenceValues) -> None:
    """Test that a provenance matching the reference values passes."""
    ProvenanceIRVerifier(provenance, reference_values).verify()


def test_verify_every_failure_is_reported(provenance: ProvenanceIR, reference_values: ReferenceValues) -> None:
    """Test that every failed criterion is reported together."""
    want = replace(
        reference_values,
        binary_sha256_digests=("0" * 64,),
        builder_image_sha256_digests=("1" * 64,),
        repo_uri="https://github.com/project-oak/transparent-release",
        trusted_builders=("https://github.com/slsa-framework/slsa-github-generator",),
    )
    with pytest.raises(VerificationError) as error:
        ProvenanceIRVerifier(provenance, want).verify()
    assert len(error.value.errors) == 4


def test_verify_empty_build_cmd(reference_values: ReferenceValues) -> None:
    """Test that a build command is required when the reference values want one."""
    statement = Statement(
        predicate_type=PREDICATE_SLSA_PROVENANCE_V02,
        subject=(Subject(name="oak_functions_loader", digest={"sha256": reference_values.binary_sha256_digests[0]}),),
        predicate={},
    )
    provenance = ProvenanceIR(statement).with_build_cmd([]).freeze()

    with pytest.raises(VerificationError) as error:
        ProvenanceIRVerifier(provenance, reference_values).verify()
    assert error.value.errors == ["No build command found in the provenance."]


def test_unset_fields_are_not_checked() -> None:
    """Test that the fields missing from the provenance or the reference values are not checked."""
    statement = Statement(
        predicate_type=PREDICATE_SLSA_PROVENANCE_V02,
        subject=(Subject(name="oak", digest={"sha256": "15dc16c4"}),),
        predicate={},
    )
    want = ReferenceValues(
        want_build_cmds=True,
        builder_image_sha256_digests=("1" * 64,),
        repo_uri="https://github.com/project-oak/oak",
        trusted_builders=(),
    )
    ProvenanceIRVerifier(ProvenanceIR(statement).freeze(), want).verify()
