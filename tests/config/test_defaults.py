# Copyright (c) 2024 - 2025, Oracle and/or its affiliates. All rights reserved.
# Licensed under the Universal Permissive License v 1.0 as shown at https://oss.oracle.com/licenses/upl/.

"""This module tests the defaults module."""

import os
from pathlib import Path

import pytest

from transparent_release.config.defaults import create_defaults, defaults, load_defaults


def _load_user_config(tmp_path: Path, user_config_input: str) -> None:
    user_config_path = os.path.join(tmp_path, "config.ini")
    with open(user_config_path, "w", encoding="utf-8") as user_config_file:
        user_config_file.write(user_config_input)
    # The ``setup_test`` fixture reloads the ``defaults`` object before every test.
    assert load_defaults(user_config_path) is True


def test_packaged_defaults() -> None:
    """Test the values of the packaged defaults.ini."""
    assert defaults.get("fuzzbinder", "coverage_bucket") == "oss-fuzz-coverage"
    assert defaults.getint("fuzzbinder", "log_retention_days") == 15
    assert defaults.get("fuzzbinder", "fuzz_target_path") == "{project}/fuzz/fuzz_targets/{target}.rs"
    assert defaults.get_list("fuzzbinder", "crash_markers") == [
        "ERROR: AddressSanitizer",
        "ERROR: MemorySanitizer",
        "ERROR: UndefinedBehaviorSanitizer",
        "ERROR: libFuzzer",
    ]


def test_load_defaults(tmp_path: Path) -> None:
    """Test that the values of the user configuration are prioritized."""
    _load_user_config(
        tmp_path,
        """
        [fuzzbinder]
        log_retention_days = 30
        """,
    )
    assert defaults.getint("fuzzbinder", "log_retention_days") == 30
    assert defaults.get("fuzzbinder", "coverage_bucket") == "oss-fuzz-coverage"


def test_load_invalid_defaults(tmp_path: Path) -> None:
    """Test loading a user configuration that is not an .ini file."""
    user_config_path = os.path.join(tmp_path, "config.ini")
    with open(user_config_path, "w", encoding="utf-8") as user_config_file:
        user_config_file.write("no section header")
    assert load_defaults(user_config_path) is False


def test_create_defaults(tmp_path: Path) -> None:
    """Test dumping the default values."""
    assert create_defaults(str(tmp_path), str(tmp_path)) is True
    assert load_defaults(str(tmp_path.joinpath("defaults.ini"))) is True
    assert defaults.get("requests", "timeout") == "10"


@pytest.mark.xfail(
    os.geteuid() == 0,
    reason="Only effective for non-root users",
)
def test_create_defaults_without_permission() -> None:
    """Test dumping default config in cases where the user does not have write permission to the output location."""
    assert create_defaults(output_path="/", cwd_path="/") is False


@pytest.mark.parametrize(
    ("user_config_input", "delimiter", "duplicated_ok", "expect"),
    [
        pytest.param(
            """
            [test.list]
            list =
                ERROR: AddressSanitizer
                space string

                space string
            """,
            "\n",
            False,
            ["ERROR: AddressSanitizer", "space string"],
            id="One entry per line",
        ),
        pytest.param(
            """
            [test.list]
            list =
                ERROR: AddressSanitizer
                space string
                space string
            """,
            "\n",
            True,
            ["ERROR: AddressSanitizer", "space string", "space string"],
            id="Duplicates kept",
        ),
        pytest.param(
            """
            [test.list]
            list = ,github.com, gitlab.com, gitlab.com
            """,
            ",",
            False,
            ["github.com", "gitlab.com"],
            id="Custom delimiter",
        ),
        pytest.param(
            """
            [test.list]
            list =
                github.com
                space string
            """,
            None,
            False,
            ["github.com", "space", "string"],
            id="Any whitespace",
        ),
        pytest.param(
            """
            [test.list]
            list =
            """,
            "\n",
            False,
            [],
            id="Empty list",
        ),
    ],
)
def test_get_list(
    user_config_input: str, delimiter: str | None, duplicated_ok: bool, expect: list[str], tmp_path: Path
) -> None:
    """Test getting a list of strings from defaults.ini."""
    _load_user_config(tmp_path, user_config_input)
    assert defaults.get_list("test.list", "list", delimiter=delimiter, duplicated_ok=duplicated_ok) == expect


@pytest.mark.parametrize(
    ("section", "item", "fallback", "expect"),
    [
        pytest.param("fuzzbinder", "non-existing", None, [], id="Missing option"),
        pytest.param("non-existing", "option", None, [], id="Missing section"),
        pytest.param("non-existing", "option", ["some", "fallback"], ["some", "fallback"], id="Fallback"),
    ],
)
def test_get_list_fallback(section: str, item: str, fallback: list[str] | None, expect: list[str]) -> None:
    """Test the value returned for an option that does not exist."""
    assert defaults.get_list(section, item, fallback=fallback) == expect
