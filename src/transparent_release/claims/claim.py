# Copyright (c) 2024 - 2025, Oracle and/or its affiliates. All rights reserved.
# Licensed under the Universal Permissive License v 1.0 as shown at https://oss.oracle.com/licenses/upl/.

"""The claim predicate and its validation.

A claim is a generic predicate for security and privacy claims about a software artifact. The meaning of the
claim is given by its ``claimType``, which also determines the shape of the optional ``claimSpec`` and the
role of each evidence.
"""

from __future__ import annotations

import datetime
import logging
import urllib.parse
from dataclasses import dataclass, field, replace

from transparent_release.errors import (
    DecodeError,
    InvalidEvidenceURIError,
    NotAfterNotAfterNotBeforeError,
    NotBeforePrecedesIssuanceError,
    WrongClaimTypeError,
    WrongPredicateShapeError,
    WrongPredicateTypeError,
)
from transparent_release.intoto.statement import DigestSet, PredicateModel, Statement
from transparent_release.json_tools import JsonType, parse_digest_set, require
from transparent_release.timestamps import format_timestamp, parse_timestamp

logger: logging.Logger = logging.getLogger(__name__)

#: The predicate type of statements carrying a claim.
CLAIM_V1 = "https://github.com/project-oak/transparent-release/claim/v1"


@dataclass(frozen=True)
class ClaimValidity:
    """The time range in which a claim is valid."""

    #: The time from which the claim is effective.
    not_before: datetime.datetime

    #: The time from which the claim is no longer effective.
    not_after: datetime.datetime

    @classmethod
    def from_dict(cls, value: JsonType) -> ClaimValidity:
        """Decode the ``validity`` object of a claim."""
        if not isinstance(value, dict):
            raise DecodeError("The validity of the claim is invalid: expecting an object.")
        return cls(
            not_before=parse_timestamp(require(value, "notBefore", str, "claim validity")),
            not_after=parse_timestamp(require(value, "notAfter", str, "claim validity")),
        )

    def to_dict(self) -> dict[str, JsonType]:
        """Return the JSON representation of the validity."""
        return {"notBefore": format_timestamp(self.not_before), "notAfter": format_timestamp(self.not_after)}


@dataclass(frozen=True)
class ClaimEvidence:
    """An artifact supporting the truth of a claim."""

    #: The URI uniquely identifying the evidence.
    uri: str

    #: The digests of the content of the evidence.
    digest: DigestSet = field(default_factory=dict)

    #: The role of the evidence within the claim.
    role: str | None = None

    @classmethod
    def from_dict(cls, value: JsonType) -> ClaimEvidence:
        """Decode one ``evidence`` entry of a claim."""
        if not isinstance(value, dict):
            raise DecodeError("An evidence of the claim is invalid: expecting an object.")
        uri = require(value, "uri", str, "claim evidence")
        role = value.get("role")
        if role is not None and not isinstance(role, str):
            raise DecodeError(f"The role of the evidence {uri} is invalid: expecting a string.")
        return cls(uri=uri, digest=parse_digest_set(value.get("digest", {}), f"evidence {uri}"), role=role or None)

    def to_dict(self) -> dict[str, JsonType]:
        """Return the JSON representation of the evidence."""
        result: dict[str, JsonType] = {}
        if self.role:
            result["role"] = self.role
        result["uri"] = self.uri
        result["digest"] = dict(self.digest)
        return result


@dataclass(frozen=True)
class ClaimPredicate:
    """The predicate of a claim statement."""

    #: The URI identifying the type of the claim.
    claim_type: str

    #: The time the claim was issued.
    issued_on: datetime.datetime

    #: The validity of the claim.
    validity: ClaimValidity

    #: The detailed description of the claim, either raw JSON or a model selected by ``claim_type``.
    claim_spec: dict[str, JsonType] | PredicateModel | None = None

    #: The artifacts supporting the claim.
    evidence: tuple[ClaimEvidence, ...] = ()

    @classmethod
    def from_dict(cls, value: dict[str, JsonType]) -> ClaimPredicate:
        """Decode a claim predicate, keeping the ``claimSpec`` as raw JSON.

        Parameters
        ----------
        value : dict[str, JsonType]
            The JSON object of the predicate.

        Returns
        -------
        ClaimPredicate
            The decoded predicate.

        Raises
        ------
        DecodeError
            If the predicate is not a valid claim predicate.
        """
        claim_spec = value.get("claimSpec")
        if claim_spec is not None and not isinstance(claim_spec, dict):
            raise DecodeError("The claimSpec of the claim is invalid: expecting an object.")
        evidence = value.get("evidence", [])
        if not isinstance(evidence, list):
            raise DecodeError("The evidence of the claim is invalid: expecting a list.")

        return cls(
            claim_type=require(value, "claimType", str, "claim"),
            issued_on=parse_timestamp(require(value, "issuedOn", str, "claim")),
            validity=ClaimValidity.from_dict(value.get("validity")),
            claim_spec=claim_spec,
            evidence=tuple(ClaimEvidence.from_dict(entry) for entry in evidence),
        )

    def with_claim_spec(self, claim_spec: dict[str, JsonType] | PredicateModel | None) -> ClaimPredicate:
        """Return a copy of this predicate holding another claim spec."""
        return replace(self, claim_spec=claim_spec)

    def to_dict(self) -> dict[str, JsonType]:
        """Return the JSON representation of the predicate."""
        result: dict[str, JsonType] = {"claimType": self.claim_type}
        if self.claim_spec is not None:
            result["claimSpec"] = (
                self.claim_spec.to_dict() if isinstance(self.claim_spec, PredicateModel) else self.claim_spec
            )
        result["issuedOn"] = format_timestamp(self.issued_on)
        result["validity"] = self.validity.to_dict()
        if self.evidence:
            result["evidence"] = [evidence.to_dict() for evidence in self.evidence]
        return result


def as_claim_predicate(predicate: object) -> ClaimPredicate:
    """Return the predicate of a claim statement as a ``ClaimPredicate``, decoding raw JSON if needed.

    Raises
    ------
    WrongPredicateShapeError
        If the predicate cannot be read as a claim predicate.
    """
    if isinstance(predicate, ClaimPredicate):
        return predicate
    if isinstance(predicate, dict):
        try:
            return ClaimPredicate.from_dict(predicate)
        except DecodeError as error:
            raise WrongPredicateShapeError(f"The predicate is not a valid claim predicate: {error}") from error
    raise WrongPredicateShapeError(
        f"The predicate does not have the expected type; got: {type(predicate).__name__}, want: ClaimPredicate."
    )


def validate_claim(statement: Statement) -> ClaimPredicate:
    """Validate that an in-toto statement is a claim with a valid claim predicate.

    The checks are applied in order and the first failure is raised.

    Parameters
    ----------
    statement : Statement
        The statement to validate.

    Returns
    -------
    ClaimPredicate
        The validated claim predicate.

    Raises
    ------
    WrongPredicateTypeError
        If the predicate type is not ``CLAIM_V1``.
    WrongPredicateShapeError
        If the predicate is not a claim predicate.
    InvalidEvidenceURIError
        If the URI of an evidence has no scheme.
    NotBeforePrecedesIssuanceError
        If the claim becomes valid before it is issued.
    NotAfterNotAfterNotBeforeError
        If the validity window is empty.
    """
    if statement.predicate_type != CLAIM_V1:
        raise WrongPredicateTypeError(
            "The statement does not have the expected predicate type; "
            + f"got: {statement.predicate_type}, want: {CLAIM_V1}."
        )

    predicate = as_claim_predicate(statement.predicate)

    for evidence in predicate.evidence:
        try:
            scheme = urllib.parse.urlparse(evidence.uri).scheme
        except ValueError:
            scheme = ""
        if not scheme:
            raise InvalidEvidenceURIError(evidence.uri)

    # The claim may become valid exactly when it is issued.
    if predicate.validity.not_before < predicate.issued_on:
        raise NotBeforePrecedesIssuanceError(predicate.validity.not_before, predicate.issued_on)

    if predicate.validity.not_after <= predicate.validity.not_before:
        raise NotAfterNotAfterNotBeforeError(predicate.validity.not_after, predicate.validity.not_before)

    return predicate


def validate_claim_type(predicate: ClaimPredicate, expected_claim_type: str) -> ClaimPredicate:
    """Check that a claim has the expected claim type.

    Raises
    ------
    WrongClaimTypeError
        If the claim type differs.
    """
    if predicate.claim_type != expected_claim_type:
        raise WrongClaimTypeError(predicate.claim_type, expected_claim_type)
    return predicate
