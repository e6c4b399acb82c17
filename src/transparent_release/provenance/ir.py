# Copyright (c) 2024 - 2025, Oracle and/or its affiliates. All rights reserved.
# Licensed under the Universal Permissive License v 1.0 as shown at https://oss.oracle.com/licenses/upl/.

"""The intermediate representation of a provenance, independent of its predicate and build types.

The fields that are not present in every kind of provenance are optional. They are set at most once, by the
extractor of the build type, and reading a field that was never set raises :class:`FieldNotSetError`.
"""

from __future__ import annotations

import logging

from transparent_release.errors import FieldAlreadySetError, FieldNotSetError
from transparent_release.intoto.statement import Statement

logger: logging.Logger = logging.getLogger(__name__)


class ProvenanceIR:
    """A provenance statement and the build details extracted from it.

    The statement must have exactly one subject with a sha256 digest: the binary the provenance is about.
    """

    def __init__(self, statement: Statement) -> None:
        """Initialize an empty IR for a provenance statement.

        Raises
        ------
        MalformedSubjectError
            If the statement does not have exactly one subject with a sha256 digest.
        """
        self._statement = statement
        self._subject = statement.single_sha256_subject()
        self._frozen = False
        self._build_type: str | None = None
        self._build_cmd: list[str] | None = None
        self._builder_image_sha256_digest: str | None = None
        self._repo_uris: list[str] | None = None
        self._trusted_builder: str | None = None

    def __repr__(self) -> str:
        return f"ProvenanceIR(binary_name={self._subject.name!r}, build_type={self._build_type!r})"

    def _check_settable(self, name: str, current: object) -> None:
        if self._frozen or current is not None:
            raise FieldAlreadySetError(name)

    def freeze(self) -> ProvenanceIR:
        """End the population of the IR. Setting a field afterwards raises ``FieldAlreadySetError``."""
        self._frozen = True
        return self

    def with_build_type(self, build_type: str) -> ProvenanceIR:
        """Set the build type."""
        self._check_settable("build_type", self._build_type)
        self._build_type = build_type
        return self

    def with_build_cmd(self, build_cmd: list[str]) -> ProvenanceIR:
        """Set the build command."""
        self._check_settable("build_cmd", self._build_cmd)
        self._build_cmd = list(build_cmd)
        return self

    def with_builder_image_sha256_digest(self, digest: str) -> ProvenanceIR:
        """Set the sha256 digest of the builder image."""
        self._check_settable("builder_image_sha256_digest", self._builder_image_sha256_digest)
        self._builder_image_sha256_digest = digest
        return self

    def with_repo_uris(self, repo_uris: list[str]) -> ProvenanceIR:
        """Set the URIs of the source repositories."""
        self._check_settable("repo_uris", self._repo_uris)
        self._repo_uris = list(repo_uris)
        return self

    def with_trusted_builder(self, trusted_builder: str) -> ProvenanceIR:
        """Set the identity of the builder."""
        self._check_settable("trusted_builder", self._trusted_builder)
        self._trusted_builder = trusted_builder
        return self

    def has_build_type(self) -> bool:
        """Return True if the build type is set."""
        return self._build_type is not None

    def has_build_cmd(self) -> bool:
        """Return True if the build command is set."""
        return self._build_cmd is not None

    def has_builder_image_sha256_digest(self) -> bool:
        """Return True if the builder image digest is set."""
        return self._builder_image_sha256_digest is not None

    def has_repo_uris(self) -> bool:
        """Return True if the repository URIs are set."""
        return self._repo_uris is not None

    def has_trusted_builder(self) -> bool:
        """Return True if the builder identity is set."""
        return self._trusted_builder is not None

    def get_build_type(self) -> str:
        """Return the build type.

        Raises
        ------
        FieldNotSetError
            If the build type is not set.
        """
        if self._build_type is None:
            raise FieldNotSetError("build_type")
        return self._build_type

    def get_build_cmd(self) -> list[str]:
        """Return the build command.

        Raises
        ------
        FieldNotSetError
            If the build command is not set.
        """
        if self._build_cmd is None:
            raise FieldNotSetError("build_cmd")
        return list(self._build_cmd)

    def get_builder_image_sha256_digest(self) -> str:
        """Return the sha256 digest of the builder image.

        Raises
        ------
        FieldNotSetError
            If the builder image digest is not set.
        """
        if self._builder_image_sha256_digest is None:
            raise FieldNotSetError("builder_image_sha256_digest")
        return self._builder_image_sha256_digest

    def get_repo_uris(self) -> list[str]:
        """Return the URIs of the source repositories.

        Raises
        ------
        FieldNotSetError
            If the repository URIs are not set.
        """
        if self._repo_uris is None:
            raise FieldNotSetError("repo_uris")
        return list(self._repo_uris)

    def get_trusted_builder(self) -> str:
        """Return the identity of the builder.

        Raises
        ------
        FieldNotSetError
            If the builder identity is not set.
        """
        if self._trusted_builder is None:
            raise FieldNotSetError("trusted_builder")
        return self._trusted_builder

    def get_binary_name(self) -> str:
        """Return the name of the binary the provenance is about."""
        return self._subject.name

    def get_binary_sha256_digest(self) -> str:
        """Return the sha256 digest of the binary the provenance is about."""
        return self._subject.digest["sha256"]

    def get_statement(self) -> Statement:
        """Return the provenance statement."""
        return self._statement
