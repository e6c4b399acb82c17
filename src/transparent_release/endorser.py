# Copyright (c) 2024 - 2025, Oracle and/or its affiliates. All rights reserved.
# Licensed under the Universal Permissive License v 1.0 as shown at https://oss.oracle.com/licenses/upl/.

"""Generate endorsements for binaries from their provenance files.

The provenances are loaded, checked against the digest of the binary, and referenced as the evidence of the
endorsement. The endorsement is validated before it is returned.
"""

import datetime
import logging
from collections.abc import Sequence
from pathlib import Path

from transparent_release.claims.claim import ClaimValidity
from transparent_release.claims.endorsement import (
    ProvenanceData,
    VerifiedProvenanceSet,
    generate_endorsement_statement,
    validate_endorsement,
)
from transparent_release.config.defaults import defaults
from transparent_release.errors import InconsistentProvenancesError, StructuralError
from transparent_release.intoto.statement import Statement
from transparent_release.provenance.ir import ProvenanceIR
from transparent_release.provenance.parser import parse_provenance_file
from transparent_release.schema import ProvenanceSchema, SchemaValidator
from transparent_release.util import sha256_hexdigest

logger: logging.Logger = logging.getLogger(__name__)


def load_provenances(
    provenance_paths: Sequence[str],
    schema: ProvenanceSchema,
    validator: SchemaValidator | None = None,
) -> tuple[list[ProvenanceIR], VerifiedProvenanceSet]:
    """Load the provenance files of a binary.

    Parameters
    ----------
    provenance_paths : Sequence[str]
        The paths to the local provenance files, each a bare statement or an envelope. At least one is required.
    schema : ProvenanceSchema
        The schema that the provenances must conform to.
    validator : SchemaValidator | None
        The schema validator.

    Returns
    -------
    tuple[list[ProvenanceIR], VerifiedProvenanceSet]
        The IRs of the provenances, and the set of provenances for the endorsement.

    Raises
    ------
    StructuralError
        If no provenance is given.
    InconsistentProvenancesError
        If the provenances do not describe the same binary.
    OSError
        If a provenance file cannot be read.
    """
    if not provenance_paths:
        raise StructuralError("At least one provenance file must be provided.")

    irs: list[ProvenanceIR] = []
    provenances: list[ProvenanceData] = []
    for path in provenance_paths:
        with open(path, "rb") as provenance_file:
            content = provenance_file.read()
        logger.debug("Loading the provenance %s.", path)
        irs.append(parse_provenance_file(content, schema, validator))
        provenances.append(ProvenanceData(uri=Path(path).resolve().as_uri(), sha256_digest=sha256_hexdigest(content)))

    binary_name = irs[0].get_binary_name()
    binary_digest = irs[0].get_binary_sha256_digest()
    for path, ir in zip(provenance_paths, irs):
        if ir.get_binary_name() != binary_name or ir.get_binary_sha256_digest() != binary_digest:
            raise InconsistentProvenancesError(
                f"The provenance {path} is about {ir.get_binary_name()} ({ir.get_binary_sha256_digest()}), "
                + f"but the first provenance is about {binary_name} ({binary_digest})."
            )

    return irs, VerifiedProvenanceSet(
        binary_name=binary_name,
        binary_digest=binary_digest,
        provenances=tuple(provenances),
    )


def verify_binary_digest(provenances: Sequence[ProvenanceIR], binary_digest: str) -> None:
    """Check that every provenance is about the binary with the given sha256 digest.

    Raises
    ------
    InconsistentProvenancesError
        If a provenance is about another binary.
    """
    for index, provenance in enumerate(provenances):
        if provenance.get_binary_sha256_digest() != binary_digest:
            raise InconsistentProvenancesError(
                f"The binary digest ({binary_digest}) is different from the subject digest "
                + f"({provenance.get_binary_sha256_digest()}) of the provenance at index {index}."
            )


def default_validity(now: datetime.datetime) -> ClaimValidity:
    """Return the default validity of an endorsement generated at ``now``, as configured in ``defaults.ini``."""
    not_before_days = defaults.getint("endorsement", "validity_not_before_days", fallback=0)
    not_after_days = defaults.getint("endorsement", "validity_not_after_days", fallback=90)
    return ClaimValidity(
        not_before=now + datetime.timedelta(days=not_before_days),
        not_after=now + datetime.timedelta(days=not_after_days),
    )


def generate_endorsement(
    binary_digest: str,
    validity: ClaimValidity,
    provenance_paths: Sequence[str],
    schema: ProvenanceSchema,
    validator: SchemaValidator | None = None,
    issued_on: datetime.datetime | None = None,
) -> Statement:
    """Generate the endorsement of a binary, using its provenances as evidence.

    Parameters
    ----------
    binary_digest : str
        The sha256 digest of the binary.
    validity : ClaimValidity
        The validity of the endorsement.
    provenance_paths : Sequence[str]
        The paths to the provenance files of the binary.
    schema : ProvenanceSchema
        The schema that the provenances must conform to.
    validator : SchemaValidator | None
        The schema validator.
    issued_on : datetime.datetime | None
        The issuance time. The current time is used if not set.

    Returns
    -------
    Statement
        The validated endorsement statement.

    Raises
    ------
    TransparentReleaseError
        If a provenance is invalid or is not about the binary, or the endorsement is not valid.
    """
    irs, provenance_set = load_provenances(provenance_paths, schema, validator)
    verify_binary_digest(irs, binary_digest)

    statement = generate_endorsement_statement(validity, provenance_set, issued_on)
    validate_endorsement(statement)
    logger.info(
        "Generated the endorsement of %s with %d provenance(s).",
        provenance_set.binary_name,
        len(provenance_set.provenances),
    )
    return statement
