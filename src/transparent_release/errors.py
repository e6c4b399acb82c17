# Copyright (c) 2024 - 2025, Oracle and/or its affiliates. All rights reserved.
# Licensed under the Universal Permissive License v 1.0 as shown at https://oss.oracle.com/licenses/upl/.

"""This module contains error classes for transparent_release."""

from datetime import datetime


class TransparentReleaseError(Exception):
    """The base class for transparent_release errors."""


class ConfigurationError(TransparentReleaseError):
    """Happens when there is an error in the configuration (.ini) file."""


class DecodeError(TransparentReleaseError):
    """Happens when the input bytes are not valid JSON or do not have the expected JSON shape."""


class EnvelopeDecodeError(DecodeError):
    """Happens when a DSSE envelope or a Sigstore bundle cannot be decoded."""


class SchemaValidationError(TransparentReleaseError):
    """Happens when a document does not conform to its JSON schema."""

    def __init__(self, errors: list[str]) -> None:
        self.errors = errors
        super().__init__("The document is not valid against the schema:\n" + "\n".join(f"- {e}" for e in errors))


class StructuralError(TransparentReleaseError):
    """The base class for errors about a well-formed document with the wrong structure."""


class WrongPredicateTypeError(StructuralError):
    """Happens when a statement does not have the expected predicate type."""


class WrongPredicateShapeError(StructuralError):
    """Happens when the predicate of a statement cannot be read as the expected predicate."""


class InvalidEvidenceURIError(StructuralError):
    """Happens when an evidence URI of a claim has no scheme."""

    def __init__(self, uri: str) -> None:
        self.uri = uri
        super().__init__(f"The evidence URI '{uri}' is not a valid URI: a scheme is required.")


class MalformedSubjectError(StructuralError):
    """Happens when a statement does not have exactly one subject with a sha256 digest."""


class WrongClaimTypeError(StructuralError):
    """Happens when a claim does not have the expected claim type."""

    def __init__(self, got: str, want: str) -> None:
        self.got = got
        self.want = want
        super().__init__(f"The claim type is {got}, but {want} was expected.")


class UnrecognizedPredicateError(StructuralError):
    """Happens when there is no decoder registered for a predicate type."""

    def __init__(self, predicate_type: str) -> None:
        self.predicate_type = predicate_type
        super().__init__(f"The predicate type {predicate_type} is not supported.")


class UnsupportedBuildTypeError(StructuralError):
    """Happens when there is no extractor for the build type of a provenance."""

    def __init__(self, build_type: str) -> None:
        self.build_type = build_type
        super().__init__(f"The build type {build_type} is not supported.")


class FieldAlreadySetError(StructuralError):
    """Happens when a field of the provenance IR is set more than once."""

    def __init__(self, field: str) -> None:
        self.field = field
        super().__init__(f"The field '{field}' of the provenance is already set.")


class InconsistentProvenancesError(StructuralError):
    """Happens when a set of provenances does not describe the same binary."""


class TemporalInvariantError(TransparentReleaseError):
    """The base class for errors about the ordering of two timestamps."""

    def __init__(self, message: str, first: datetime, second: datetime) -> None:
        self.first = first
        self.second = second
        super().__init__(message)


class NotBeforePrecedesIssuanceError(TemporalInvariantError):
    """Happens when the validity of a claim starts before the claim is issued."""

    def __init__(self, not_before: datetime, issued_on: datetime) -> None:
        super().__init__(
            f"notBefore ({not_before.isoformat()}) must not precede issuedOn ({issued_on.isoformat()}).",
            not_before,
            issued_on,
        )


class NotAfterNotAfterNotBeforeError(TemporalInvariantError):
    """Happens when the validity window of a claim is empty."""

    def __init__(self, not_after: datetime, not_before: datetime) -> None:
        super().__init__(
            f"notAfter ({not_after.isoformat()}) must be after notBefore ({not_before.isoformat()}).",
            not_after,
            not_before,
        )


class InvalidFuzzingDateError(TransparentReleaseError):
    """Happens when the fuzzing date is malformed or there are no fuzzing logs for it."""


class ConsistencyError(TransparentReleaseError):
    """Happens when the per-project fuzzing statistics disagree with the per-target ones."""

    def __init__(
        self, field: str, per_project: float | int | bool, per_targets: float | int | bool, aggregation: str = "sum"
    ) -> None:
        self.field = field
        self.per_project = per_project
        self.per_targets = per_targets
        super().__init__(
            f"perProject.{field} ({per_project}) is not equal to the {aggregation} "
            + f"of per-target {field} ({per_targets})."
        )


class FieldNotSetError(TransparentReleaseError):
    """Happens when reading an optional field of the provenance IR that was never set."""

    def __init__(self, field: str) -> None:
        self.field = field
        super().__init__(f"The field '{field}' of the provenance is not set.")


class NotFoundError(TransparentReleaseError):
    """The base class for errors about a required item that is absent."""


class BuilderImageNotFoundError(NotFoundError):
    """Happens when no material of a provenance identifies the builder image."""


class BlobNotFoundError(NotFoundError):
    """Happens when a blob does not exist in a bucket."""


class NoMatchingLogError(NotFoundError):
    """Happens when no fuzzing log of a target was produced for the expected revision."""

    def __init__(self, target: str, revision: str) -> None:
        self.target = target
        self.revision = revision
        super().__init__(f"No fuzzing log of fuzz target {target} matches the revision {revision}.")


class BlobStoreError(TransparentReleaseError):
    """Happens when the blob store cannot be reached or returns an unexpected response."""


class FuzzLogError(TransparentReleaseError):
    """Happens when a fuzzing log does not contain the expected fuzzing statistics."""


class FuzzTargetError(TransparentReleaseError):
    """Happens when the fuzzing statistics of one fuzz target cannot be collected."""

    def __init__(self, target: str, cause: TransparentReleaseError) -> None:
        self.target = target
        self.cause = cause
        super().__init__(f"Could not collect the fuzzing statistics of fuzz target {target}: {cause}")


class VerificationError(TransparentReleaseError):
    """Happens when a provenance does not match the reference values."""

    def __init__(self, errors: list[str]) -> None:
        self.errors = errors
        super().__init__("The provenance failed verification:\n" + "\n".join(f"- {e}" for e in errors))
