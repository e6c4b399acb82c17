# Copyright (c) 2024 - 2025, Oracle and/or its affiliates. All rights reserved.
# Licensed under the Universal Permissive License v 1.0 as shown at https://oss.oracle.com/licenses/upl/.

"""This module loads the reference values that a provenance is verified against."""

from __future__ import annotations

import logging
import os
import tomllib
from dataclasses import dataclass
from typing import Any

from transparent_release.errors import ConfigurationError

logger: logging.Logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ReferenceValues:
    """The values that a product team expects in the provenances of its binaries.

    A criterion that is not set is not checked.
    """

    #: The digests of the binaries whose provenance is verified.
    binary_sha256_digests: tuple[str, ...] | None = None

    #: If True, the provenance must have a non-empty build command.
    want_build_cmds: bool = False

    #: The digests of the trusted builder images.
    builder_image_sha256_digests: tuple[str, ...] | None = None

    #: The URI of the repository holding the sources of the binary.
    repo_uri: str = ""

    #: The trusted builders.
    trusted_builders: tuple[str, ...] | None = None

    @classmethod
    def from_dict(cls, content: dict[str, Any]) -> ReferenceValues:
        """Read the reference values from the content of a TOML document.

        Raises
        ------
        ConfigurationError
            If a value has an unexpected type.
        """
        return cls(
            binary_sha256_digests=_string_list(content, "binary_sha256_digests"),
            want_build_cmds=_boolean(content, "want_build_cmds"),
            builder_image_sha256_digests=_string_list(content, "builder_image_sha256_digests"),
            repo_uri=_string(content, "repo_uri"),
            trusted_builders=_string_list(content, "trusted_builders"),
        )


def _string_list(content: dict[str, Any], key: str) -> tuple[str, ...] | None:
    value = content.get(key)
    if value is None:
        return None
    if not isinstance(value, list) or not all(isinstance(item, str) for item in value):
        raise ConfigurationError(f"The reference value '{key}' must be a list of strings.")
    return tuple(value)


def _boolean(content: dict[str, Any], key: str) -> bool:
    value = content.get(key, False)
    if not isinstance(value, bool):
        raise ConfigurationError(f"The reference value '{key}' must be a boolean.")
    return value


def _string(content: dict[str, Any], key: str) -> str:
    value = content.get(key, "")
    if not isinstance(value, str):
        raise ConfigurationError(f"The reference value '{key}' must be a string.")
    return value


def load_reference_values(path: str | os.PathLike[str]) -> ReferenceValues:
    """Load the reference values from a TOML file.

    Parameters
    ----------
    path : str | os.PathLike[str]
        The path to the TOML file.

    Returns
    -------
    ReferenceValues
        The reference values.

    Raises
    ------
    ConfigurationError
        If the file cannot be read or is not valid.
    """
    try:
        with open(path, "rb") as toml_file:
            content = tomllib.load(toml_file)
    except (OSError, tomllib.TOMLDecodeError) as error:
        raise ConfigurationError(f"Failed to read the reference values file {path}: {error}") from error

    return ReferenceValues.from_dict(content)
