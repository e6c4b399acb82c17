# Copyright (c) 2024 - 2025, Oracle and/or its affiliates. All rights reserved.
# Licensed under the Universal Permissive License v 1.0 as shown at https://oss.oracle.com/licenses/upl/.

"""This module reads the build details of SLSA v0.2 provenances with the Amber build type."""

from __future__ import annotations

import logging
from dataclasses import dataclass

from transparent_release.config.defaults import defaults
from transparent_release.errors import BuilderImageNotFoundError, DecodeError
from transparent_release.json_tools import JsonType
from transparent_release.slsa.v02 import ProvenancePredicate

logger: logging.Logger = logging.getLogger(__name__)

#: The SLSA build type of Amber builds.
AMBER_BUILD_TYPE_V1 = (
    "https://github.com/project-oak/transparent-release/schema/amber-slsa-buildtype/v1/provenance.json"
)


@dataclass(frozen=True)
class BuildConfig:
    """The ``buildConfig`` of an Amber provenance."""

    #: The command that builds the binary, as a list of arguments.
    command: tuple[str, ...]

    #: The path of the built binary in the build environment.
    output_path: str = ""

    @classmethod
    def from_dict(cls, value: JsonType) -> BuildConfig:
        """Decode the ``buildConfig`` object of an Amber provenance.

        Raises
        ------
        DecodeError
            If the build config is missing or does not have the expected shape.
        """
        if not isinstance(value, dict):
            raise DecodeError("The buildConfig of the provenance is invalid: expecting an object.")
        command = value.get("command", [])
        if not isinstance(command, list) or not all(isinstance(arg, str) for arg in command):
            raise DecodeError("The buildConfig command of the provenance is invalid: expecting a list of strings.")
        output_path = value.get("outputPath", "")
        if not isinstance(output_path, str):
            raise DecodeError("The buildConfig outputPath of the provenance is invalid: expecting a string.")
        return cls(command=tuple(command), output_path=output_path)


def parse_build_config(predicate: ProvenancePredicate) -> BuildConfig:
    """Decode the build config of an Amber provenance predicate."""
    return BuildConfig.from_dict(predicate.build_config)


def get_build_cmd(predicate: ProvenancePredicate) -> list[str]:
    """Return the build command of an Amber provenance predicate.

    Raises
    ------
    DecodeError
        If the build config cannot be decoded.
    """
    return list(parse_build_config(predicate).command)


def get_builder_image_digest(predicate: ProvenancePredicate) -> str:
    """Return the sha256 digest of the builder image of a provenance predicate.

    The builder image is the first material whose URI contains ``@sha256:``.

    Parameters
    ----------
    predicate : ProvenancePredicate
        The provenance predicate.

    Returns
    -------
    str
        The sha256 digest of the builder image.

    Raises
    ------
    BuilderImageNotFoundError
        If no material is a builder image, or the builder image has no sha256 digest.
    """
    marker = defaults.get("provenance", "builder_image_marker", fallback="@sha256:")
    for material in predicate.materials:
        # A loose match: a wrong digest here makes the reference value check fail.
        if marker in material.uri:
            digest = material.digest.get("sha256")
            if not digest:
                raise BuilderImageNotFoundError(f"The builder image {material.uri} does not have a sha256 digest.")
            return digest

    raise BuilderImageNotFoundError(
        f"Could not find the builder image in the materials {[material.uri for material in predicate.materials]}."
    )
