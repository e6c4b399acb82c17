# Copyright (c) 2024 - 2025, Oracle and/or its affiliates. All rights reserved.
# Licensed under the Universal Permissive License v 1.0 as shown at https://oss.oracle.com/licenses/upl/.

"""This is the main entrypoint to run transparent_release."""

import argparse
import datetime
import logging
import os
import sys
from importlib import metadata as importlib_metadata

import transparent_release
from transparent_release.blobstore.gcs import GCSBlobStore
from transparent_release.claims.claim import ClaimValidity
from transparent_release.config.defaults import create_defaults, defaults, load_defaults
from transparent_release.config.global_config import global_config
from transparent_release.endorser import default_validity, generate_endorsement
from transparent_release.errors import ConfigurationError, TransparentReleaseError
from transparent_release.fuzzbinder.generator import generate_fuzz_claim
from transparent_release.fuzzbinder.scraper import FuzzParameters
from transparent_release.fuzzbinder.util import (
    default_fuzz_claim_dates,
    get_valid_fuzz_claim_validity,
    parse_date,
    validate_fuzzing_date,
)
from transparent_release.intoto.statement import write_statement
from transparent_release.provenance.parser import read_provenance_file
from transparent_release.schema import load_provenance_schema
from transparent_release.timestamps import utc_now
from transparent_release.verification.reference import load_reference_values
from transparent_release.verification.verifier import ProvenanceIRVerifier

logger: logging.Logger = logging.getLogger(__name__)


def _output_file(path: str | None, file_name: str) -> str:
    return path or os.path.join(global_config.output_path, file_name)


def _endorsement_not_before(date: str, now: datetime.datetime) -> datetime.datetime:
    # An endorsement cannot be valid before it is issued, so today starts now rather than at midnight.
    not_before = parse_date(date)
    if not_before.date() == now.date():
        logger.info("The endorsement is valid from its issuance at %s.", now.isoformat())
        return now
    return not_before


def endorse(endorse_args: argparse.Namespace) -> int:
    """Generate the endorsement of a binary from its provenances.

    Returns
    -------
    int
        Returns os.EX_OK if successful or the corresponding error code on failure.
    """
    now = utc_now()
    try:
        validity = default_validity(now)
        if endorse_args.not_before or endorse_args.not_after:
            validity = ClaimValidity(
                not_before=(
                    _endorsement_not_before(endorse_args.not_before, now)
                    if endorse_args.not_before
                    else validity.not_before
                ),
                not_after=parse_date(endorse_args.not_after) if endorse_args.not_after else validity.not_after,
            )
        schema = load_provenance_schema(endorse_args.schema)
    except TransparentReleaseError as error:
        logger.error(error)
        return os.EX_USAGE

    try:
        statement = generate_endorsement(
            endorse_args.binary_digest, validity, endorse_args.provenance, schema, issued_on=now
        )
    except OSError as error:
        logger.error("Could not read the provenance files: %s", error)
        return os.EX_NOINPUT
    except TransparentReleaseError as error:
        logger.error("Could not generate the endorsement: %s", error)
        return os.EX_DATAERR

    endorsement_path = _output_file(endorse_args.endorsement_path, "endorsement.json")
    try:
        write_statement(statement, endorsement_path)
    except OSError as error:
        logger.error("Could not write the endorsement to %s: %s", endorsement_path, error)
        return os.EX_CANTCREAT

    logger.info("The endorsement is stored in %s.", endorsement_path)
    return os.EX_OK


def fuzzbinder(fuzzbinder_args: argparse.Namespace) -> int:
    """Generate the fuzzing claim of a project from the fuzzing reports of OSS-Fuzz.

    Returns
    -------
    int
        Returns os.EX_OK if successful or the corresponding error code on failure.
    """
    now = utc_now()
    default_not_before, default_not_after = default_fuzz_claim_dates(now)
    try:
        validate_fuzzing_date(fuzzbinder_args.date, now)
        validity = get_valid_fuzz_claim_validity(
            now,
            fuzzbinder_args.not_before or default_not_before,
            fuzzbinder_args.not_after or default_not_after,
        )
    except TransparentReleaseError as error:
        logger.error(error)
        return os.EX_USAGE

    store = GCSBlobStore()
    try:
        store.load_defaults()
    except ConfigurationError as error:
        logger.error(error)
        return os.EX_USAGE

    params = FuzzParameters(
        project_name=fuzzbinder_args.project_name,
        project_git_repo=fuzzbinder_args.git_repo,
        fuzz_engine=fuzzbinder_args.fuzz_engine or defaults.get("fuzzbinder", "fuzz_engine", fallback="libFuzzer"),
        sanitizer=fuzzbinder_args.sanitizer or defaults.get("fuzzbinder", "sanitizer", fallback="asan"),
        date=fuzzbinder_args.date,
    )
    try:
        statement = generate_fuzz_claim(store, params, validity, issued_on=now)
    except TransparentReleaseError as error:
        logger.error("Could not generate the fuzzing claim: %s", error)
        return os.EX_DATAERR

    fuzzclaim_path = _output_file(fuzzbinder_args.fuzzclaim_path, "fuzzclaim.json")
    try:
        write_statement(statement, fuzzclaim_path)
    except OSError as error:
        logger.error("Could not write the fuzzing claim to %s: %s", fuzzclaim_path, error)
        return os.EX_CANTCREAT

    logger.info("The fuzzing claim is stored in %s.", fuzzclaim_path)
    return os.EX_OK


def verify(verify_args: argparse.Namespace) -> int:
    """Verify a provenance against reference values.

    Returns
    -------
    int
        Returns os.EX_OK if successful or the corresponding error code on failure.
    """
    try:
        schema = load_provenance_schema(verify_args.schema)
        reference_values = load_reference_values(verify_args.reference_values)
    except ConfigurationError as error:
        logger.error(error)
        return os.EX_USAGE

    try:
        provenance = read_provenance_file(verify_args.provenance, schema)
        ProvenanceIRVerifier(provenance, reference_values).verify()
    except OSError as error:
        logger.error("Could not read the provenance %s: %s", verify_args.provenance, error)
        return os.EX_NOINPUT
    except TransparentReleaseError as error:
        logger.error(error)
        return os.EX_DATAERR

    logger.info("The provenance of %s passed verification.", provenance.get_binary_name())
    return os.EX_OK


def perform_action(action_args: argparse.Namespace) -> None:
    """Perform the indicated action of transparent_release."""
    match action_args.action:
        case "dump-defaults":
            # Create the defaults.ini file in the output dir and exit.
            create_defaults(action_args.output_dir, os.getcwd())
            sys.exit(os.EX_OK)

        case "endorse":
            sys.exit(endorse(action_args))

        case "fuzzbinder":
            sys.exit(fuzzbinder(action_args))

        case "verify":
            sys.exit(verify(action_args))

        case _:
            logger.error("transparent_release does not support command option %s.", action_args.action)
            sys.exit(os.EX_USAGE)


def main(argv: list[str] | None = None) -> None:
    """Execute transparent_release as a standalone command-line tool.

    Parameters
    ----------
    argv: list[str] | None
        Command-line arguments.
        If ``argv`` is ``None``, argparse automatically looks at ``sys.argv``.
        Hence, we set ``argv = None`` by default.
    """
    main_parser = argparse.ArgumentParser(prog="transparent-release")

    main_parser.add_argument(
        "-V",
        "--version",
        action="version",
        version=f"%(prog)s {importlib_metadata.version('transparent-release')}",
        help="Show the version number and exit",
    )

    main_parser.add_argument(
        "-v",
        "--verbose",
        help="Run with more debug logs",
        action="store_true",
    )

    main_parser.add_argument(
        "-o",
        "--output-dir",
        default=os.path.join(os.getcwd(), "output"),
        help="The output destination path",
    )

    main_parser.add_argument(
        "-dp",
        "--defaults-path",
        default="",
        help="The path to the defaults configuration file.",
    )

    # Add sub parsers for each action.
    sub_parser = main_parser.add_subparsers(dest="action", help="Run transparent-release <action> --help for help")

    # Generate the endorsement of a binary.
    endorse_parser = sub_parser.add_parser(name="endorse")

    endorse_parser.add_argument(
        "-d",
        "--binary-digest",
        required=True,
        type=str,
        help="The sha256 digest of the binary to endorse.",
    )

    endorse_parser.add_argument(
        "-p",
        "--provenance",
        required=True,
        action="append",
        help="The path to a provenance file of the binary. Can be repeated.",
    )

    endorse_parser.add_argument(
        "--not-before",
        default="",
        help="The first day of validity of the endorsement, in the yyyymmdd format. "
        + "If it is today, the endorsement is valid from the time it is issued.",
    )

    endorse_parser.add_argument(
        "--not-after",
        default="",
        help="The end of validity of the endorsement, in the yyyymmdd format.",
    )

    endorse_parser.add_argument(
        "--schema",
        default=None,
        help="The path to the JSON schema of the provenance files.",
    )

    endorse_parser.add_argument(
        "--endorsement-path",
        default=None,
        help="The path of the endorsement file. Defaults to endorsement.json in the output directory.",
    )

    # Generate the fuzzing claim of a project.
    fuzzbinder_parser = sub_parser.add_parser(name="fuzzbinder")

    fuzzbinder_parser.add_argument("--project-name", required=True, type=str, help="The project name in OSS-Fuzz.")
    fuzzbinder_parser.add_argument(
        "--git-repo", required=True, type=str, help="The URL of the git repository of the project."
    )
    fuzzbinder_parser.add_argument(
        "--fuzz-engine",
        default="",
        help="The fuzz engine. Defaults to the fuzz_engine of the [fuzzbinder] section.",
    )
    fuzzbinder_parser.add_argument(
        "--sanitizer",
        default="",
        help="The sanitizer. Defaults to the sanitizer of the [fuzzbinder] section.",
    )
    fuzzbinder_parser.add_argument(
        "--date", required=True, type=str, help="The fuzzing date, in the yyyymmdd format."
    )
    fuzzbinder_parser.add_argument(
        "--not-before", default="", help="The first day of validity of the claim, in the yyyymmdd format."
    )
    fuzzbinder_parser.add_argument(
        "--not-after", default="", help="The end of validity of the claim, in the yyyymmdd format."
    )
    fuzzbinder_parser.add_argument(
        "--fuzzclaim-path",
        default=None,
        help="The path of the fuzzing claim file. Defaults to fuzzclaim.json in the output directory.",
    )

    # Verify a provenance against reference values.
    verify_parser = sub_parser.add_parser(name="verify")

    verify_parser.add_argument("-p", "--provenance", required=True, type=str, help="Path to the provenance file.")
    verify_parser.add_argument(
        "-r", "--reference-values", required=True, type=str, help="Path to the TOML reference values."
    )
    verify_parser.add_argument(
        "--schema", default=None, help="The path to the JSON schema of the provenance file."
    )

    # Dump the default values.
    sub_parser.add_parser(name="dump-defaults", description="Dumps the defaults.ini file to the output directory.")

    args = main_parser.parse_args(argv)

    if not args.action:
        main_parser.print_help()
        sys.exit(os.EX_USAGE)

    if args.verbose:
        log_level = logging.DEBUG
        log_format = "%(asctime)s [%(name)s:%(funcName)s:%(lineno)d] [%(levelname)s] %(message)s"
    else:
        log_level = logging.INFO
        log_format = "%(asctime)s [%(levelname)s] %(message)s"

    # Set global logging config. We need the stream handler for the initial
    # output directory checking log messages.
    st_handler = logging.StreamHandler(sys.stdout)
    logging.basicConfig(format=log_format, handlers=[st_handler], force=True, level=log_level)

    # Set the output directory.
    if not args.output_dir:
        logger.error("The output path cannot be empty. Exiting ...")
        sys.exit(os.EX_USAGE)

    if os.path.isfile(args.output_dir):
        logger.error("The output directory already exists. Exiting ...")
        sys.exit(os.EX_USAGE)

    if os.path.isdir(args.output_dir):
        logger.info("Setting the output directory to %s", os.path.relpath(args.output_dir, os.getcwd()))
    else:
        logger.info("No directory at %s. Creating one ...", os.path.relpath(args.output_dir, os.getcwd()))
        os.makedirs(args.output_dir)

    # Add file handler to the root logger. Remove stream handler from the
    # root logger to prevent dependencies printing logs to stdout.
    debug_log_path = os.path.join(args.output_dir, "debug.log")
    log_file_handler = logging.FileHandler(debug_log_path, "w")
    log_file_handler.setFormatter(logging.Formatter(log_format))
    logging.getLogger().removeHandler(st_handler)
    logging.getLogger().addHandler(log_file_handler)

    # Add StreamHandler to the package logger only.
    package_logger = logging.getLogger("transparent_release")
    package_logger.addHandler(st_handler)

    logger.info("The logs will be stored in debug.log")

    global_config.load(
        package_path=transparent_release.TRANSPARENT_RELEASE_PATH,
        output_path=args.output_dir,
        debug_level=log_level,
    )

    # Load the default values from defaults.ini files.
    if not load_defaults(args.defaults_path):
        logger.error("Exiting because the defaults configuration could not be loaded.")
        sys.exit(os.EX_NOINPUT)

    perform_action(args)


if __name__ == "__main__":
    main()
