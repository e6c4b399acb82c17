# Copyright (c) 2024 - 2025, Oracle and/or its affiliates. All rights reserved.
# Licensed under the Universal Permissive License v 1.0 as shown at https://oss.oracle.com/licenses/upl/.

"""The fuzzing claim spec and its validation.

A fuzzing claim is a claim about a revision of a source repository. It reports the fuzzing statistics of each
fuzz target and of the whole project, as collected by OSS-Fuzz.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass

from transparent_release.claims.claim import ClaimPredicate, validate_claim, validate_claim_type
from transparent_release.errors import ConsistencyError, DecodeError, WrongPredicateShapeError
from transparent_release.intoto.statement import Statement, parse_statement
from transparent_release.json_tools import JsonType, require

logger: logging.Logger = logging.getLogger(__name__)

#: The claim type of fuzzing claims.
FUZZ_CLAIM_V1 = "https://github.com/project-oak/transparent-release/fuzz_claim/v1"


@dataclass(frozen=True)
class FuzzStats:
    """The fuzzing statistics of one fuzz target or of a whole project."""

    #: The line coverage, e.g. ``"38.24% (4390/11481)"``.
    line_coverage: str

    #: The branch coverage, in the same format as the line coverage.
    branch_coverage: str

    #: Whether any crash was detected.
    detected_crashes: bool

    #: The fuzzing time in seconds.
    fuzz_time_seconds: float

    #: The number of executed fuzz tests.
    number_fuzz_tests: int

    @classmethod
    def from_dict(cls, value: JsonType) -> FuzzStats:
        """Decode a ``fuzzStats`` or ``perProject`` object."""
        if not isinstance(value, dict):
            raise DecodeError("The fuzzing statistics are invalid: expecting an object.")

        detected_crashes = value.get("detectedCrashes", False)
        if not isinstance(detected_crashes, bool):
            raise DecodeError("The attribute 'detectedCrashes' is invalid: expecting a boolean.")

        return cls(
            line_coverage=require(value, "lineCoverage", str, "fuzzing statistics")
            if "lineCoverage" in value
            else "",
            branch_coverage=require(value, "branchCoverage", str, "fuzzing statistics")
            if "branchCoverage" in value
            else "",
            detected_crashes=detected_crashes,
            fuzz_time_seconds=require(value, "fuzzTimeSeconds", float, "fuzzing statistics")
            if "fuzzTimeSeconds" in value
            else 0.0,
            number_fuzz_tests=require(value, "numberFuzzTests", int, "fuzzing statistics")
            if "numberFuzzTests" in value
            else 0,
        )

    def to_dict(self) -> dict[str, JsonType]:
        """Return the JSON representation of the statistics."""
        return {
            "lineCoverage": self.line_coverage,
            "branchCoverage": self.branch_coverage,
            "detectedCrashes": self.detected_crashes,
            "fuzzTimeSeconds": self.fuzz_time_seconds,
            "numberFuzzTests": self.number_fuzz_tests,
        }


@dataclass(frozen=True)
class FuzzSpecPerTarget:
    """The fuzzing statistics of one fuzz target."""

    #: The name of the fuzz target.
    name: str

    #: The path of the fuzz target, relative to the root of the repository.
    path: str

    #: The fuzzing statistics of the fuzz target.
    stats: FuzzStats

    @classmethod
    def from_dict(cls, value: JsonType) -> FuzzSpecPerTarget:
        """Decode one ``perTarget`` entry."""
        if not isinstance(value, dict):
            raise DecodeError("A perTarget entry of the fuzzing claim is invalid: expecting an object.")
        return cls(
            name=require(value, "name", str, "fuzz target"),
            path=require(value, "path", str, "fuzz target"),
            stats=FuzzStats.from_dict(value.get("fuzzStats")),
        )

    def to_dict(self) -> dict[str, JsonType]:
        """Return the JSON representation of the fuzz target."""
        return {"name": self.name, "path": self.path, "fuzzStats": self.stats.to_dict()}


@dataclass(frozen=True)
class FuzzClaimSpec:
    """The ``claimSpec`` of a fuzzing claim."""

    #: The statistics of each fuzz target.
    per_target: tuple[FuzzSpecPerTarget, ...]

    #: The statistics of the whole project.
    per_project: FuzzStats

    @classmethod
    def from_dict(cls, value: dict[str, JsonType]) -> FuzzClaimSpec:
        """Decode the ``claimSpec`` of a fuzzing claim.

        Raises
        ------
        DecodeError
            If the claim spec does not have the expected shape.
        """
        per_target = value.get("perTarget", [])
        if not isinstance(per_target, list):
            raise DecodeError("The attribute 'perTarget' of the fuzzing claim is invalid: expecting a list.")
        return cls(
            per_target=tuple(FuzzSpecPerTarget.from_dict(entry) for entry in per_target),
            per_project=FuzzStats.from_dict(value.get("perProject")),
        )

    def to_dict(self) -> dict[str, JsonType]:
        """Return the JSON representation of the claim spec."""
        return {
            "perTarget": [target.to_dict() for target in self.per_target],
            "perProject": self.per_project.to_dict(),
        }


def validate_fuzz_claim_spec(spec: FuzzClaimSpec) -> FuzzClaimSpec:
    """Check that the per-project statistics are the aggregation of the per-target statistics.

    The fuzzing time and the number of fuzz tests must be the sums of the per-target values, and the project
    has detected crashes if and only if a fuzz target has. Floating point values are compared exactly: the sum
    is computed in the order of the fuzz targets, as it is when the claim is generated.

    Parameters
    ----------
    spec : FuzzClaimSpec
        The claim spec to check.

    Returns
    -------
    FuzzClaimSpec
        The claim spec.

    Raises
    ------
    ConsistencyError
        If a per-project value disagrees with the per-target values.
    """
    sum_time_seconds = 0.0
    sum_number_tests = 0
    detected_crashes = False
    for target in spec.per_target:
        sum_time_seconds += target.stats.fuzz_time_seconds
        sum_number_tests += target.stats.number_fuzz_tests
        detected_crashes = detected_crashes or target.stats.detected_crashes

    if spec.per_project.fuzz_time_seconds != sum_time_seconds:
        raise ConsistencyError("fuzzTimeSeconds", spec.per_project.fuzz_time_seconds, sum_time_seconds)
    if spec.per_project.number_fuzz_tests != sum_number_tests:
        raise ConsistencyError("numberFuzzTests", spec.per_project.number_fuzz_tests, sum_number_tests)
    if spec.per_project.detected_crashes != detected_crashes:
        raise ConsistencyError("detectedCrashes", spec.per_project.detected_crashes, detected_crashes, "disjunction")

    return spec


def as_fuzz_claim_spec(claim_spec: object) -> FuzzClaimSpec:
    """Return the claim spec of a fuzzing claim as a ``FuzzClaimSpec``, decoding raw JSON if needed.

    Raises
    ------
    WrongPredicateShapeError
        If the claim spec cannot be read as a fuzzing claim spec.
    """
    if isinstance(claim_spec, FuzzClaimSpec):
        return claim_spec
    if isinstance(claim_spec, dict):
        try:
            return FuzzClaimSpec.from_dict(claim_spec)
        except DecodeError as error:
            raise WrongPredicateShapeError(f"The claimSpec is not a valid fuzzing claim spec: {error}") from error
    raise WrongPredicateShapeError(
        f"The claimSpec does not have the expected type; got: {type(claim_spec).__name__}, want: FuzzClaimSpec."
    )


def validate_fuzz_claim(statement: Statement) -> ClaimPredicate:
    """Validate that a statement is a fuzzing claim with consistent statistics.

    Returns
    -------
    ClaimPredicate
        The claim predicate, holding a ``FuzzClaimSpec``.

    Raises
    ------
    StructuralError
        If the statement is not a fuzzing claim.
    TemporalInvariantError
        If the validity of the claim is invalid.
    ConsistencyError
        If the per-project statistics disagree with the per-target statistics.
    """
    predicate = validate_claim_type(validate_claim(statement), FUZZ_CLAIM_V1)
    spec = validate_fuzz_claim_spec(as_fuzz_claim_spec(predicate.claim_spec))
    return predicate.with_claim_spec(spec)


def parse_fuzz_claim_bytes(data: bytes | str) -> Statement:
    """Parse and validate a serialized fuzzing claim.

    Returns
    -------
    Statement
        The statement, holding a ``ClaimPredicate`` with a ``FuzzClaimSpec``.
    """
    statement = parse_statement(data)
    return statement.with_predicate(validate_fuzz_claim(statement))


def parse_fuzz_claim_file(path: str | os.PathLike[str]) -> Statement:
    """Read, parse and validate the fuzzing claim stored in a file."""
    with open(path, "rb") as file:
        return parse_fuzz_claim_bytes(file.read())
