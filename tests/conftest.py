# Copyright (c) 2024 - 2025, Oracle and/or its affiliates. All rights reserved.
# Licensed under the Universal Permissive License v 1.0 as shown at https://oss.oracle.com/licenses/upl/.

"""Fixtures for tests."""
from pathlib import Path
from typing import NoReturn

import pytest

from transparent_release.config.defaults import create_defaults, defaults, load_defaults
from transparent_release.schema import ProvenanceSchema, load_provenance_schema

# We need to pass fixture names as arguments to maintain an order.
# pylint: disable=redefined-outer-name


@pytest.fixture()
def test_dir() -> Path:
    """Set the root test_dir path.

    Returns
    -------
    Path
        The root path to the test directory.
    """
    return Path(__file__).parent


@pytest.fixture()
def package_path() -> Path:
    """Set the path to the repository root.

    Returns
    -------
    Path
        The repository root.
    """
    return Path(__file__).parent.parent


@pytest.fixture(autouse=True)
def setup_test(test_dir: Path, package_path: Path) -> NoReturn:  # type: ignore
    """Set up the necessary values for the tests.

    Parameters
    ----------
    test_dir: Path
        Depends on test_dir fixture.
    package_path: Path
        Depends on package_path fixture.

    Returns
    -------
    NoReturn
    """
    # Load values from defaults.ini.
    if not test_dir.joinpath("defaults.ini").exists():
        create_defaults(str(test_dir), str(package_path))

    load_defaults(str(package_path))
    yield
    defaults.clear()


@pytest.fixture(name="provenance_schema")
def provenance_schema_() -> ProvenanceSchema:
    """Load the packaged schema of Amber provenances."""
    return load_provenance_schema()
