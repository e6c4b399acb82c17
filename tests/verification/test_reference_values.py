# Copyright (c) 2024 - 2025, Oracle and/or its affiliates. All rights reserved.
# Licensed under the Universal Permissive License v 1.0 as shown at https://oss.oracle.com/licenses/upl/.

"""Tests for loading reference values."""

from pathlib import Path

import pytest

from transparent_release.errors import ConfigurationError
from transparent_release.verification.reference import ReferenceValues, load_reference_values

RESOURCES_DIR = Path(__file__).parent.joinpath("resources")


def test_load_reference_values() -> None:
    """Test loading every reference value."""
    assert load_reference_values(RESOURCES_DIR.joinpath("reference_values.toml")) == ReferenceValues(
        binary_sha256_digests=("15dc16c42a4ac9ed77f337a4a3065a63e444c29c18c8cf69d6a6b4ae678dca5c",),
        want_build_cmds=True,
        builder_image_sha256_digests=("53ca44b5889e2265c3ae9e542d7097b7de12ea4c6a33785da8478c7333b9a320",),
        repo_uri="https://github.com/project-oak/oak",
        trusted_builders=("https://github.com/project-oak/transparent-release",),
    )


def test_unset_values(tmp_path: Path) -> None:
    """Test that the reference values that are not set are not checked."""
    path = tmp_path.joinpath("reference_values.toml")
    path.write_text('repo_uri = "https://github.com/project-oak/oak"\n', encoding="utf-8")

    reference_values = load_reference_values(path)
    assert reference_values.binary_sha256_digests is None
    assert reference_values.builder_image_sha256_digests is None
    assert reference_values.trusted_builders is None
    assert not reference_values.want_build_cmds


@pytest.mark.parametrize(
    "content",
    [
        pytest.param("binary_sha256_digests = [", id="Not TOML"),
        pytest.param('binary_sha256_digests = "15dc16c4"', id="Digests not a list"),
        pytest.param("want_build_cmds = 1", id="Build commands not a boolean"),
        pytest.param("repo_uri = [1]", id="Repo URI not a string"),
    ],
)
def test_invalid_reference_values(tmp_path: Path, content: str) -> None:
    """Test the reference values files that cannot be loaded."""
    path = tmp_path.joinpath("reference_values.toml")
    path.write_text(content, encoding="utf-8")
    with pytest.raises(ConfigurationError):
        load_reference_values(path)


def test_missing_reference_values(tmp_path: Path) -> None:
    """Test that a missing file is a configuration error."""
    with pytest.raises(ConfigurationError):
        load_reference_values(tmp_path.joinpath("missing.toml"))
