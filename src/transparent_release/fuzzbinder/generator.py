# Copyright (c) 2024 - 2025, Oracle and/or its affiliates. All rights reserved.
# Licensed under the Universal Permissive License v 1.0 as shown at https://oss.oracle.com/licenses/upl/.

"""Generate fuzzing claims from the fuzzing reports and logs of OSS-Fuzz."""

import datetime
import logging
from dataclasses import dataclass

from transparent_release.blobstore.base import BlobStore
from transparent_release.claims.claim import CLAIM_V1, ClaimPredicate, ClaimValidity
from transparent_release.config.defaults import defaults
from transparent_release.errors import FuzzTargetError, TransparentReleaseError
from transparent_release.fuzzbinder.claim import (
    FUZZ_CLAIM_V1,
    FuzzClaimSpec,
    FuzzSpecPerTarget,
    FuzzStats,
    validate_fuzz_claim,
    validate_fuzz_claim_spec,
)
from transparent_release.fuzzbinder.scraper import (
    Coverage,
    CoverageLevel,
    Crash,
    FuzzEffort,
    FuzzParameters,
    get_coverage,
    get_coverage_revision,
    get_crashes,
    get_evidences,
    get_fuzz_effort,
    get_fuzz_targets,
)
from transparent_release.intoto.statement import STATEMENT_INTOTO_V01, DigestSet, Statement, Subject
from transparent_release.timestamps import utc_now

logger: logging.Logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class _TargetResult:
    coverage: Coverage
    effort: FuzzEffort
    crash: Crash


def get_fuzz_target_path(params: FuzzParameters, fuzz_target: str) -> str:
    """Return the path of a fuzz target in the repository of the project.

    >>> get_fuzz_target_path(FuzzParameters("oak", "", "libFuzzer", "asan", "20221206"), "apply_policy")
    'oak/fuzz/fuzz_targets/apply_policy.rs'
    """
    template = defaults.get("fuzzbinder", "fuzz_target_path", fallback="{project}/fuzz/fuzz_targets/{target}.rs")
    return template.format(project=params.project_name, target=fuzz_target)


def _collect_target(
    store: BlobStore, revision_digest: DigestSet, params: FuzzParameters, fuzz_target: str
) -> _TargetResult:
    try:
        return _TargetResult(
            coverage=get_coverage(store, params, CoverageLevel.PER_TARGET, fuzz_target),
            effort=get_fuzz_effort(store, revision_digest, params, fuzz_target),
            crash=get_crashes(store, revision_digest, params, fuzz_target),
        )
    except TransparentReleaseError as error:
        raise FuzzTargetError(fuzz_target, error) from error


def generate_fuzz_claim_spec(
    store: BlobStore, revision_digest: DigestSet, params: FuzzParameters, fuzz_targets: list[str]
) -> FuzzClaimSpec:
    """Collect the fuzzing statistics of every fuzz target and roll them up into a claim spec.

    The fuzz targets are processed one after the other and the first failure stops the collection. The
    per-project fuzzing time and number of fuzz tests are the sums of the per-target values, in the order of
    ``fuzz_targets``, and the project has detected crashes if any fuzz target has. The per-project coverage
    is read from the coverage report of the project.

    Parameters
    ----------
    store : BlobStore
        The blob store holding the fuzzing reports and logs.
    revision_digest : DigestSet
        The revision that was fuzzed.
    params : FuzzParameters
        The fuzzing parameters.
    fuzz_targets : list[str]
        The fuzz targets.

    Returns
    -------
    FuzzClaimSpec
        The claim spec.

    Raises
    ------
    FuzzTargetError
        If the statistics of a fuzz target cannot be collected.
    TransparentReleaseError
        If the project coverage cannot be read.
    """
    results: dict[str, _TargetResult] = {}
    for fuzz_target in fuzz_targets:
        logger.info("Collecting the fuzzing statistics of %s.", fuzz_target)
        results[fuzz_target] = _collect_target(store, revision_digest, params, fuzz_target)

    fuzz_time_seconds = 0.0
    number_fuzz_tests = 0
    detected_crashes = False
    per_target = []
    for fuzz_target in fuzz_targets:
        result = results[fuzz_target]
        fuzz_time_seconds += result.effort.fuzz_time_seconds
        number_fuzz_tests += result.effort.number_fuzz_tests
        detected_crashes = detected_crashes or result.crash.detected
        per_target.append(
            FuzzSpecPerTarget(
                name=fuzz_target,
                path=get_fuzz_target_path(params, fuzz_target),
                stats=FuzzStats(
                    line_coverage=result.coverage.line_coverage,
                    branch_coverage=result.coverage.branch_coverage,
                    detected_crashes=result.crash.detected,
                    fuzz_time_seconds=result.effort.fuzz_time_seconds,
                    number_fuzz_tests=result.effort.number_fuzz_tests,
                ),
            )
        )

    project_coverage = get_coverage(store, params, CoverageLevel.PER_PROJECT)
    spec = FuzzClaimSpec(
        per_target=tuple(per_target),
        per_project=FuzzStats(
            line_coverage=project_coverage.line_coverage,
            branch_coverage=project_coverage.branch_coverage,
            detected_crashes=detected_crashes,
            fuzz_time_seconds=fuzz_time_seconds,
            number_fuzz_tests=number_fuzz_tests,
        ),
    )
    return validate_fuzz_claim_spec(spec)


def generate_fuzz_claim(
    store: BlobStore,
    params: FuzzParameters,
    validity: ClaimValidity,
    issued_on: datetime.datetime | None = None,
) -> Statement:
    """Generate the fuzzing claim of the revision of a project fuzzed on the fuzzing date.

    The subject of the claim is the git repository of the project with the fuzzed revision. The source map
    and the coverage reports are the evidence of the claim.

    Parameters
    ----------
    store : BlobStore
        The blob store holding the fuzzing reports and logs.
    params : FuzzParameters
        The fuzzing parameters.
    validity : ClaimValidity
        The validity of the claim.
    issued_on : datetime.datetime | None
        The issuance time. The current time is used if not set.

    Returns
    -------
    Statement
        The validated fuzzing claim, holding a ``ClaimPredicate`` with a ``FuzzClaimSpec``.

    Raises
    ------
    TransparentReleaseError
        If the fuzzing reports cannot be read or the claim is not valid.
    """
    revision_digest = get_coverage_revision(store, params)
    logger.info("The fuzzed revision of %s is %s.", params.project_name, revision_digest.get("sha1"))

    fuzz_targets = get_fuzz_targets(store, params)
    logger.info("Found %d fuzz target(s) for %s.", len(fuzz_targets), params.project_name)

    spec = generate_fuzz_claim_spec(store, revision_digest, params, fuzz_targets)
    evidence = get_evidences(store, params, fuzz_targets)

    predicate = ClaimPredicate(
        claim_type=FUZZ_CLAIM_V1,
        issued_on=issued_on or utc_now(),
        validity=validity,
        claim_spec=spec,
        evidence=tuple(evidence),
    )
    statement = Statement(
        type=STATEMENT_INTOTO_V01,
        predicate_type=CLAIM_V1,
        subject=(Subject(name=params.project_git_repo, digest=revision_digest),),
        predicate=predicate,
    )
    return statement.with_predicate(validate_fuzz_claim(statement))
