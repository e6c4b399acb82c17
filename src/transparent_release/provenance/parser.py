# Copyright (c) 2024 - 2025, Oracle and/or its affiliates. All rights reserved.
# Licensed under the Universal Permissive License v 1.0 as shown at https://oss.oracle.com/licenses/upl/.

"""This module parses provenance files into the provenance IR."""

import logging
import os
from collections.abc import Callable

from transparent_release.errors import SchemaValidationError, UnrecognizedPredicateError, UnsupportedBuildTypeError
from transparent_release.intoto.envelope import decode_envelope, find_payload
from transparent_release.intoto.statement import Statement, parse_statement
from transparent_release.json_tools import load_json_object
from transparent_release.provenance.ir import ProvenanceIR
from transparent_release.schema import JsonSchemaValidator, ProvenanceSchema, SchemaValidator
from transparent_release.slsa.amber import AMBER_BUILD_TYPE_V1, get_build_cmd, get_builder_image_digest
from transparent_release.slsa.v02 import (
    GENERIC_SLSA_BUILD_TYPE,
    PREDICATE_SLSA_PROVENANCE_V02,
    ProvenancePredicate,
    get_materials_git_uris,
)

logger: logging.Logger = logging.getLogger(__name__)


def _slsa_v02_predicate(ir: ProvenanceIR) -> ProvenancePredicate:
    statement = ir.get_statement()
    if statement.predicate_type != PREDICATE_SLSA_PROVENANCE_V02:
        raise UnrecognizedPredicateError(statement.predicate_type)
    if isinstance(statement.predicate, ProvenancePredicate):
        return statement.predicate
    if isinstance(statement.predicate, dict):
        return ProvenancePredicate.from_dict(statement.predicate)
    raise UnrecognizedPredicateError(statement.predicate_type)


def set_amber_provenance_data(ir: ProvenanceIR) -> ProvenanceIR:
    """Set the fields of an IR from a SLSA v0.2 provenance with the Amber build type.

    Raises
    ------
    DecodeError
        If the build config is not valid.
    BuilderImageNotFoundError
        If no material is the builder image.
    FieldAlreadySetError
        If a field of the IR is already set.
    """
    predicate = _slsa_v02_predicate(ir)
    return (
        ir.with_build_type(predicate.build_type)
        .with_build_cmd(get_build_cmd(predicate))
        .with_builder_image_sha256_digest(get_builder_image_digest(predicate))
        .with_repo_uris(get_materials_git_uris(predicate))
        .with_trusted_builder(predicate.builder_id)
    )


def set_generic_slsa_provenance_data(ir: ProvenanceIR) -> ProvenanceIR:
    """Set the fields of an IR from a SLSA v0.2 provenance made by the generic SLSA GitHub generator."""
    predicate = _slsa_v02_predicate(ir)
    return (
        ir.with_build_type(predicate.build_type)
        .with_repo_uris(get_materials_git_uris(predicate))
        .with_trusted_builder(predicate.builder_id)
    )


BUILD_TYPE_EXTRACTORS: dict[str, Callable[[ProvenanceIR], ProvenanceIR]] = {
    AMBER_BUILD_TYPE_V1: set_amber_provenance_data,
    GENERIC_SLSA_BUILD_TYPE: set_generic_slsa_provenance_data,
}


def from_provenance(statement: Statement) -> ProvenanceIR:
    """Build the IR of a provenance statement, using the extractor of its build type.

    Parameters
    ----------
    statement : Statement
        The provenance statement.

    Returns
    -------
    ProvenanceIR
        The populated and frozen IR.

    Raises
    ------
    MalformedSubjectError
        If the statement does not have exactly one subject with a sha256 digest.
    UnrecognizedPredicateError
        If the predicate type is not supported.
    UnsupportedBuildTypeError
        If the build type is not supported.
    """
    ir = ProvenanceIR(statement)
    predicate = _slsa_v02_predicate(ir)
    extractor = BUILD_TYPE_EXTRACTORS.get(predicate.build_type)
    if extractor is None:
        raise UnsupportedBuildTypeError(predicate.build_type)

    logger.debug("Extracting the provenance of %s with build type %s.", ir.get_binary_name(), predicate.build_type)
    return extractor(ir).freeze()


def parse_provenance_file(
    data: bytes | str,
    schema: ProvenanceSchema,
    validator: SchemaValidator | None = None,
) -> ProvenanceIR:
    """Validate a provenance against its schema, then build its IR.

    A statement wrapped in a DSSE envelope or a Sigstore bundle is unwrapped first, and the schema is checked
    against the statement it carries. Signatures are not verified.

    Parameters
    ----------
    data : bytes | str
        The serialized provenance statement, bare or in an envelope.
    schema : ProvenanceSchema
        The schema that the provenance must conform to.
    validator : SchemaValidator | None
        The schema validator. A ``JsonSchemaValidator`` is used if not set.

    Returns
    -------
    ProvenanceIR
        The IR of the provenance.

    Raises
    ------
    SchemaValidationError
        If the provenance does not conform to the schema. Every violation is reported.
    DecodeError
        If the provenance is not an in-toto statement.
    StructuralError
        If the provenance cannot be converted into the IR.
    """
    if find_payload(load_json_object(data, "provenance")) is not None:
        logger.debug("Unwrapping the provenance statement from its envelope.")
        data = decode_envelope(data)

    validator = validator or JsonSchemaValidator()
    result = validator.validate(schema.text, data)
    if not result.valid:
        raise SchemaValidationError(result.errors)

    return from_provenance(parse_statement(data))


def read_provenance_file(
    path: str | os.PathLike[str],
    schema: ProvenanceSchema,
    validator: SchemaValidator | None = None,
) -> ProvenanceIR:
    """Read a provenance file and build its IR. See :func:`parse_provenance_file`.

    Raises
    ------
    OSError
        If the file cannot be read.
    """
    with open(path, "rb") as file:
        return parse_provenance_file(file.read(), schema, validator)
