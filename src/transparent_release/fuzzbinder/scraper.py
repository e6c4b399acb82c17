# Copyright (c) 2024 - 2025, Oracle and/or its affiliates. All rights reserved.
# Licensed under the Universal Permissive License v 1.0 as shown at https://oss.oracle.com/licenses/upl/.

"""Collect the fuzzing statistics of a project from the reports and logs that OSS-Fuzz stores in blob storage.

The coverage reports, the fuzzer stats and the source maps are stored in the coverage bucket::

    <project>/reports/<yyyymmdd>/linux/summary.json
    <project>/fuzzer_stats/<yyyymmdd>/<fuzz target>.json
    <project>/srcmap/<yyyymmdd>.json

The fuzzing logs of a fuzz target are stored in the logs bucket of the project, under::

    <fuzz engine>_<project>_<fuzz target>/<lowercase fuzz engine>_<sanitizer>_<project>/<yyyy-mm-dd>/
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import StrEnum

from transparent_release.blobstore.base import BlobStore, BucketHandle, read_blob
from transparent_release.claims.claim import ClaimEvidence
from transparent_release.config.defaults import defaults
from transparent_release.errors import DecodeError, FuzzLogError, NoMatchingLogError, NotFoundError
from transparent_release.fuzzbinder.util import to_log_date
from transparent_release.intoto.statement import DigestSet
from transparent_release.json_tools import json_extract, load_json_object
from transparent_release.util import sha256_hexdigest

logger: logging.Logger = logging.getLogger(__name__)


class CoverageLevel(StrEnum):
    """The level of a coverage report."""

    PER_PROJECT = "perProject"
    PER_TARGET = "perTarget"


@dataclass(frozen=True)
class FuzzParameters:
    """The parameters identifying the fuzzing reports of a project."""

    #: The name of the project in OSS-Fuzz.
    project_name: str

    #: The URL of the git repository of the project.
    project_git_repo: str

    #: The fuzz engine, e.g. ``libFuzzer``.
    fuzz_engine: str

    #: The sanitizer, e.g. ``asan``.
    sanitizer: str

    #: The fuzzing date, in the ``yyyymmdd`` format.
    date: str


@dataclass(frozen=True)
class Coverage:
    """The line and branch coverage, formatted as ``"<percent>% (<covered>/<count>)"``."""

    line_coverage: str
    branch_coverage: str


@dataclass(frozen=True)
class FuzzEffort:
    """The fuzzing effort of a fuzz target."""

    fuzz_time_seconds: float
    number_fuzz_tests: int


@dataclass(frozen=True)
class Crash:
    """Whether a crash was detected."""

    detected: bool


def get_coverage_bucket() -> str:
    """Return the name of the bucket holding the coverage reports."""
    return defaults.get("fuzzbinder", "coverage_bucket", fallback="oss-fuzz-coverage")


def get_srcmap_blob_path(params: FuzzParameters) -> str:
    """Return the path of the source map of the fuzzing date."""
    return f"{params.project_name}/srcmap/{params.date}.json"


def get_coverage_blob_path(params: FuzzParameters, level: CoverageLevel, fuzz_target: str = "") -> str:
    """Return the path of the coverage report of the project or of one fuzz target."""
    if level == CoverageLevel.PER_PROJECT:
        return f"{params.project_name}/reports/{params.date}/linux/summary.json"
    return f"{params.project_name}/fuzzer_stats/{params.date}/{fuzz_target}.json"


def get_log_dir_info(params: FuzzParameters, fuzz_target: str) -> tuple[str, str]:
    """Return the bucket and the path prefix of the fuzzing logs of a fuzz target.

    >>> get_log_dir_info(FuzzParameters("oak", "", "libFuzzer", "asan", "20221206"), "apply_policy")
    ('oak-logs.clusterfuzz-external.appspot.com', 'libFuzzer_oak_apply_policy/libfuzzer_asan_oak/2022-12-06')
    """
    suffix = defaults.get("fuzzbinder", "logs_bucket_suffix", fallback="-logs.clusterfuzz-external.appspot.com")
    project = params.project_name
    prefix = (
        f"{params.fuzz_engine}_{project}_{fuzz_target}/"
        + f"{params.fuzz_engine.lower()}_{params.sanitizer}_{project}/"
        + to_log_date(params.date)
    )
    return f"{project}{suffix}", prefix


def get_coverage_revision(store: BlobStore, params: FuzzParameters) -> DigestSet:
    """Return the git revision of the project that was fuzzed on the fuzzing date, from its source map.

    Returns
    -------
    DigestSet
        The revision, as ``{"sha1": <commit hash>}``.

    Raises
    ------
    DecodeError
        If the source map is not valid JSON.
    NotFoundError
        If the source map does not have the revision of the project.
    """
    bucket = store.get_bucket(get_coverage_bucket())
    content = load_json_object(read_blob(store, bucket, get_srcmap_blob_path(params)), "source map")
    revision = json_extract(content, [f"/src/{params.project_name}", "rev"], str)
    if not revision:
        raise NotFoundError(f"The source map of {params.date} does not have the revision of {params.project_name}.")
    return {"sha1": revision}


def get_fuzz_targets(store: BlobStore, params: FuzzParameters) -> list[str]:
    """Return the names of the fuzz targets that have fuzzer stats on the fuzzing date, sorted by name."""
    bucket = store.get_bucket(get_coverage_bucket())
    prefix = f"{params.project_name}/fuzzer_stats/{params.date}/"
    targets = []
    for blob in store.list_blobs(bucket, prefix):
        file_name = blob.rsplit("/", 1)[-1]
        if file_name.endswith(".json"):
            targets.append(file_name.removesuffix(".json"))
    return sorted(targets)


def _number(totals: dict, keys: list[str | int]) -> float | None:
    value = json_extract(totals, keys, float)
    if value is None:
        value = json_extract(totals, keys, int)
    return value


def _coverage_totals(totals: dict, kind: str) -> str:
    percent = _number(totals, [kind, "percent"])
    covered = _number(totals, [kind, "covered"])
    count = _number(totals, [kind, "count"])
    if percent is None or covered is None or count is None:
        raise DecodeError(f"The {kind} totals of the coverage summary are missing or invalid.")
    return f"{percent:.2f}% ({int(covered)}/{int(count)})"


def parse_coverage_summary(data: bytes | str) -> Coverage:
    """Read the line and branch coverage from a coverage summary.

    Parameters
    ----------
    data : bytes | str
        The content of a ``summary.json`` report or of a fuzzer stats file.

    Returns
    -------
    Coverage
        The coverage, e.g. ``"38.24% (4390/11481)"``.

    Raises
    ------
    DecodeError
        If the summary does not have the expected shape.
    """
    content = load_json_object(data, "coverage summary")
    totals = json_extract(content, ["data", 0, "totals"], dict)
    if totals is None:
        raise DecodeError("The coverage summary does not have data[0].totals.")
    return Coverage(
        line_coverage=_coverage_totals(totals, "lines"),
        branch_coverage=_coverage_totals(totals, "branches"),
    )


def get_coverage(store: BlobStore, params: FuzzParameters, level: CoverageLevel, fuzz_target: str = "") -> Coverage:
    """Return the coverage of the project or of one fuzz target on the fuzzing date."""
    bucket = store.get_bucket(get_coverage_bucket())
    return parse_coverage_summary(read_blob(store, bucket, get_coverage_blob_path(params, level, fuzz_target)))


def _revision(revision_digest: DigestSet) -> str:
    revision = revision_digest.get("sha1", "")
    if not revision:
        raise DecodeError("The revision digest does not have a sha1 digest.")
    return revision


def check_hash(revision_digest: DigestSet, data: bytes) -> bool:
    """Return True if a fuzzing log was produced for the revision, i.e. it mentions its commit hash."""
    return _revision(revision_digest) in data.decode("utf-8", errors="replace")


def _first_token_after(text: str, marker: str) -> str | None:
    for line in text.splitlines():
        index = line.find(marker)
        if index == -1:
            continue
        tokens = line[index + len(marker) :].lstrip(": \t").split()
        return tokens[0] if tokens else ""
    return None


def get_fuzz_effort_from_file(revision_digest: DigestSet, data: bytes) -> FuzzEffort | None:
    """Read the fuzzing time and the number of fuzz tests from a fuzzing log.

    Parameters
    ----------
    revision_digest : DigestSet
        The revision that was fuzzed.
    data : bytes
        The content of the log.

    Returns
    -------
    FuzzEffort | None
        The fuzzing effort, or None if the log was not produced for the revision.

    Raises
    ------
    FuzzLogError
        If the log was produced for the revision but does not report the fuzzing effort.
    """
    if not check_hash(revision_digest, data):
        return None

    text = data.decode("utf-8", errors="replace")
    time_marker = defaults.get("fuzzbinder", "fuzz_time_marker", fallback="Time ran:")
    units_marker = defaults.get("fuzzbinder", "executed_units_marker", fallback="stat::number_of_executed_units")

    time_token = _first_token_after(text, time_marker)
    units_token = _first_token_after(text, units_marker)
    if time_token is None or units_token is None:
        raise FuzzLogError(f"The fuzzing log does not contain '{time_marker}' and '{units_marker}'.")

    try:
        return FuzzEffort(fuzz_time_seconds=float(time_token), number_fuzz_tests=int(units_token))
    except ValueError as error:
        raise FuzzLogError(f"The fuzzing effort in the log is not a number: {error}") from error


def crash_detected_in_file(revision_digest: DigestSet, data: bytes) -> Crash | None:
    """Return whether a fuzzing log reports a crash, or None if the log was not produced for the revision."""
    if not check_hash(revision_digest, data):
        return None
    text = data.decode("utf-8", errors="replace")
    markers = defaults.get_list("fuzzbinder", "crash_markers")
    return Crash(detected=any(marker in text for marker in markers))


def _log_blobs(store: BlobStore, params: FuzzParameters, fuzz_target: str) -> tuple[BucketHandle, list[str]]:
    bucket_name, prefix = get_log_dir_info(params, fuzz_target)
    bucket = store.get_bucket(bucket_name)
    return bucket, [blob for blob in store.list_blobs(bucket, prefix) if ".log" in blob]


def get_fuzz_effort(
    store: BlobStore, revision_digest: DigestSet, params: FuzzParameters, fuzz_target: str
) -> FuzzEffort:
    """Return the fuzzing effort of a fuzz target, summed over its logs for the revision on the fuzzing date.

    Raises
    ------
    NoMatchingLogError
        If no log of the fuzz target was produced for the revision.
    FuzzLogError
        If a log of the revision does not report the fuzzing effort.
    """
    bucket, blobs = _log_blobs(store, params, fuzz_target)
    fuzz_time_seconds = 0.0
    number_fuzz_tests = 0
    matched = False
    for blob in blobs:
        effort = get_fuzz_effort_from_file(revision_digest, read_blob(store, bucket, blob))
        if effort is None:
            continue
        matched = True
        fuzz_time_seconds += effort.fuzz_time_seconds
        number_fuzz_tests += effort.number_fuzz_tests

    if not matched:
        raise NoMatchingLogError(fuzz_target, _revision(revision_digest))

    logger.debug("Fuzz target %s ran %s tests in %s seconds.", fuzz_target, number_fuzz_tests, fuzz_time_seconds)
    return FuzzEffort(fuzz_time_seconds=fuzz_time_seconds, number_fuzz_tests=number_fuzz_tests)


def get_crashes(store: BlobStore, revision_digest: DigestSet, params: FuzzParameters, fuzz_target: str) -> Crash:
    """Return whether a log of a fuzz target for the revision reports a crash.

    The logs are read in the order of the store and reading stops at the first crash.

    Raises
    ------
    NoMatchingLogError
        If no log of the fuzz target was produced for the revision.
    """
    bucket, blobs = _log_blobs(store, params, fuzz_target)
    matched = False
    for blob in blobs:
        crash = crash_detected_in_file(revision_digest, read_blob(store, bucket, blob))
        if crash is None:
            continue
        if crash.detected:
            logger.info("Fuzz target %s crashed, see %s.", fuzz_target, blob)
            return crash
        matched = True

    if not matched:
        raise NoMatchingLogError(fuzz_target, _revision(revision_digest))
    return Crash(detected=False)


def get_evidences(store: BlobStore, params: FuzzParameters, fuzz_targets: list[str]) -> list[ClaimEvidence]:
    """Return the evidence of a fuzzing claim: the source map and the coverage reports, with their digests.

    Raises
    ------
    BlobNotFoundError
        If a report does not exist.
    """
    bucket_name = get_coverage_bucket()
    bucket = store.get_bucket(bucket_name)
    blobs: list[tuple[str, str]] = [
        ("revision", get_srcmap_blob_path(params)),
        ("project coverage", get_coverage_blob_path(params, CoverageLevel.PER_PROJECT)),
    ]
    for fuzz_target in fuzz_targets:
        role = f"{params.fuzz_engine}_{params.project_name}_{fuzz_target} coverage"
        blobs.append((role, get_coverage_blob_path(params, CoverageLevel.PER_TARGET, fuzz_target)))

    evidence = []
    for role, blob in blobs:
        digest = sha256_hexdigest(read_blob(store, bucket, blob))
        evidence.append(ClaimEvidence(role=role, uri=f"gs://{bucket_name}/{blob}", digest={"sha256": digest}))
    return evidence

