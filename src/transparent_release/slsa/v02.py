# Copyright (c) 2024 - 2025, Oracle and/or its affiliates. All rights reserved.
# Licensed under the Universal Permissive License v 1.0 as shown at https://oss.oracle.com/licenses/upl/.

"""This module models the SLSA provenance v0.2 predicate.

Specification: https://slsa.dev/provenance/v0.2.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from transparent_release.config.defaults import defaults
from transparent_release.errors import DecodeError
from transparent_release.intoto.statement import DigestSet
from transparent_release.json_tools import JsonType, json_extract, parse_digest_set, require

logger: logging.Logger = logging.getLogger(__name__)

#: The predicate type of SLSA v0.2 provenances.
PREDICATE_SLSA_PROVENANCE_V02 = "https://slsa.dev/provenance/v0.2"

#: The build type used by the generic SLSA GitHub generator.
GENERIC_SLSA_BUILD_TYPE = "https://github.com/slsa-framework/slsa-github-generator/generic@v1"


@dataclass(frozen=True)
class ProvenanceMaterial:
    """An artifact that influenced the build, such as a source repository or a builder image."""

    uri: str = ""
    digest: DigestSet = field(default_factory=dict)

    @classmethod
    def from_dict(cls, value: JsonType) -> ProvenanceMaterial:
        """Decode one ``materials`` entry."""
        if not isinstance(value, dict):
            raise DecodeError("A material of the provenance is invalid: expecting an object.")
        uri = value.get("uri", "")
        if not isinstance(uri, str):
            raise DecodeError("The uri of a material is invalid: expecting a string.")
        return cls(uri=uri, digest=parse_digest_set(value.get("digest", {}), f"material {uri}"))

    def to_dict(self) -> dict[str, JsonType]:
        """Return the JSON representation of the material."""
        result: dict[str, JsonType] = {}
        if self.uri:
            result["uri"] = self.uri
        if self.digest:
            result["digest"] = dict(self.digest)
        return result


@dataclass(frozen=True)
class ProvenancePredicate:
    """A SLSA v0.2 provenance predicate.

    ``build_config``, ``invocation`` and ``metadata`` are kept as raw JSON: their schema depends on the build type.
    """

    #: The identity of the entity that executed the build.
    builder_id: str

    #: The URI indicating what type of build was performed.
    build_type: str

    #: The steps of the build, with a schema defined by ``build_type``.
    build_config: dict[str, JsonType] | None = None

    #: The artifacts that influenced the build.
    materials: tuple[ProvenanceMaterial, ...] = ()

    #: The event that kicked off the build.
    invocation: dict[str, JsonType] | None = None

    #: Other properties of the build.
    metadata: dict[str, JsonType] | None = None

    @classmethod
    def from_dict(cls, value: dict[str, JsonType]) -> ProvenancePredicate:
        """Decode a SLSA v0.2 provenance predicate.

        Raises
        ------
        DecodeError
            If the predicate does not follow the SLSA v0.2 schema.
        """
        builder_id = json_extract(value, ["builder", "id"], str)
        if builder_id is None:
            raise DecodeError("The attribute 'builder.id' of the provenance is missing or is not a string.")

        optional_objects: dict[str, dict[str, JsonType] | None] = {}
        for key in ("buildConfig", "invocation", "metadata"):
            entry = value.get(key)
            if entry is not None and not isinstance(entry, dict):
                raise DecodeError(f"The attribute '{key}' of the provenance is invalid: expecting an object.")
            optional_objects[key] = entry

        materials = value.get("materials", [])
        if not isinstance(materials, list):
            raise DecodeError("The attribute 'materials' of the provenance is invalid: expecting a list.")

        return cls(
            builder_id=builder_id,
            build_type=require(value, "buildType", str, "provenance"),
            build_config=optional_objects["buildConfig"],
            materials=tuple(ProvenanceMaterial.from_dict(material) for material in materials),
            invocation=optional_objects["invocation"],
            metadata=optional_objects["metadata"],
        )

    def to_dict(self) -> dict[str, JsonType]:
        """Return the JSON representation of the predicate."""
        result: dict[str, JsonType] = {"builder": {"id": self.builder_id}, "buildType": self.build_type}
        if self.invocation is not None:
            result["invocation"] = self.invocation
        if self.build_config is not None:
            result["buildConfig"] = self.build_config
        if self.metadata is not None:
            result["metadata"] = self.metadata
        if self.materials:
            result["materials"] = [material.to_dict() for material in self.materials]
        return result


def get_materials_git_uris(predicate: ProvenancePredicate) -> list[str]:
    """Return the URIs of the materials that reference a git repository, in order and without duplicates.

    This is a loose match on the URI: a material whose URI contains the configured marker is a repository.
    """
    marker = defaults.get("provenance", "repo_uri_marker", fallback="git")
    uris = [material.uri for material in predicate.materials if marker in material.uri]
    return list(dict.fromkeys(uris))
