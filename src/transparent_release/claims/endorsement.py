# Copyright (c) 2024 - 2025, Oracle and/or its affiliates. All rights reserved.
# Licensed under the Universal Permissive License v 1.0 as shown at https://oss.oracle.com/licenses/upl/.

"""Endorsement statements: claims that a binary is endorsed for use, backed by its verified provenances."""

from __future__ import annotations

import datetime
import logging
import os
from dataclasses import dataclass

from transparent_release.claims.claim import (
    CLAIM_V1,
    ClaimEvidence,
    ClaimPredicate,
    ClaimValidity,
    validate_claim,
    validate_claim_type,
)
from transparent_release.intoto.statement import STATEMENT_INTOTO_V01, Statement, Subject, parse_statement
from transparent_release.timestamps import utc_now

logger: logging.Logger = logging.getLogger(__name__)

#: The claim type of endorsements, used together with the ``CLAIM_V1`` predicate type.
ENDORSEMENT_V2 = "https://github.com/project-oak/transparent-release/endorsement/v2"

#: The role of the evidence entries that reference a provenance.
PROVENANCE_EVIDENCE_ROLE = "Provenance"


@dataclass(frozen=True)
class ProvenanceData:
    """Identify a provenance by its URI and the sha256 digest of its content.

    The digest covers the file as stored, so for a provenance in a DSSE envelope or a Sigstore bundle it is
    the digest of the envelope.
    """

    uri: str
    sha256_digest: str


@dataclass(frozen=True)
class VerifiedProvenanceSet:
    """A list of verified provenances that agree on the binary they describe."""

    #: The name of the binary.
    binary_name: str

    #: The sha256 digest of the binary.
    binary_digest: str

    #: The provenances. May be empty.
    provenances: tuple[ProvenanceData, ...] = ()


def generate_endorsement_statement(
    validity: ClaimValidity,
    provenances: VerifiedProvenanceSet,
    issued_on: datetime.datetime | None = None,
) -> Statement:
    """Generate an endorsement statement for the binary described by a set of verified provenances.

    Each provenance becomes one evidence of the claim, in order.

    Parameters
    ----------
    validity : ClaimValidity
        The validity of the endorsement.
    provenances : VerifiedProvenanceSet
        The provenances of the binary.
    issued_on : datetime.datetime | None
        The issuance time. The current time is used if not set.

    Returns
    -------
    Statement
        The endorsement statement.
    """
    evidence = tuple(
        ClaimEvidence(
            role=PROVENANCE_EVIDENCE_ROLE,
            uri=provenance.uri,
            digest={"sha256": provenance.sha256_digest},
        )
        for provenance in provenances.provenances
    )

    predicate = ClaimPredicate(
        claim_type=ENDORSEMENT_V2,
        issued_on=issued_on or utc_now(),
        validity=validity,
        evidence=evidence,
    )

    return Statement(
        type=STATEMENT_INTOTO_V01,
        predicate_type=CLAIM_V1,
        subject=(Subject(name=provenances.binary_name, digest={"sha256": provenances.binary_digest}),),
        predicate=predicate,
    )


def validate_endorsement(statement: Statement) -> ClaimPredicate:
    """Validate that a statement is a valid endorsement claim.

    Raises
    ------
    StructuralError
        If the statement is not an endorsement.
    TemporalInvariantError
        If the validity of the endorsement is invalid.
    """
    return validate_claim_type(validate_claim(statement), ENDORSEMENT_V2)


def parse_endorsement_bytes(data: bytes | str) -> Statement:
    """Parse and validate a serialized endorsement statement.

    Returns
    -------
    Statement
        The statement, holding a ``ClaimPredicate``.
    """
    statement = parse_statement(data)
    return statement.with_predicate(validate_endorsement(statement))


def parse_endorsement_file(path: str | os.PathLike[str]) -> Statement:
    """Read, parse and validate the endorsement statement stored in a file."""
    with open(path, "rb") as file:
        return parse_endorsement_bytes(file.read())
