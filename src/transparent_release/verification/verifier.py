# Copyright (c) 2024 - 2025, Oracle and/or its affiliates. All rights reserved.
# Licensed under the Universal Permissive License v 1.0 as shown at https://oss.oracle.com/licenses/upl/.

"""This module verifies the IR of a provenance against reference values."""

import logging

from transparent_release.errors import VerificationError
from transparent_release.provenance.ir import ProvenanceIR
from transparent_release.verification.reference import ReferenceValues

logger: logging.Logger = logging.getLogger(__name__)


class ProvenanceIRVerifier:
    """Verify a provenance against reference values.

    A criterion is checked only if the field is set in the provenance and the reference value is set.
    """

    def __init__(self, got: ProvenanceIR, want: ReferenceValues) -> None:
        self.got = got
        self.want = want

    def verify(self) -> None:
        """Check every criterion and report all the failures together.

        Raises
        ------
        VerificationError
            If the provenance does not match the reference values.
        """
        errors: list[str] = []
        errors.extend(self._verify_binary_sha256_digest())
        errors.extend(self._verify_build_cmd())
        errors.extend(self._verify_builder_image_digest())
        errors.extend(self._verify_repo_uris())
        errors.extend(self._verify_trusted_builder())

        if errors:
            raise VerificationError(errors)
        logger.info("The provenance of %s matches the reference values.", self.got.get_binary_name())

    def _verify_binary_sha256_digest(self) -> list[str]:
        if self.want.binary_sha256_digests is None:
            return []
        got = self.got.get_binary_sha256_digest()
        if got in self.want.binary_sha256_digests:
            return []
        return [
            f"The reference binary SHA256 digests {list(self.want.binary_sha256_digests)} "
            + f"do not contain the actual binary SHA256 digest {got}."
        ]

    def _verify_build_cmd(self) -> list[str]:
        if self.got.has_build_cmd() and self.want.want_build_cmds and not self.got.get_build_cmd():
            return ["No build command found in the provenance."]
        return []

    def _verify_builder_image_digest(self) -> list[str]:
        if not self.got.has_builder_image_sha256_digest() or self.want.builder_image_sha256_digests is None:
            return []
        got = self.got.get_builder_image_sha256_digest()
        if got in self.want.builder_image_sha256_digests:
            return []
        return [
            f"The reference builder image digests {list(self.want.builder_image_sha256_digests)} "
            + f"do not contain the actual builder image digest {got}."
        ]

    def _verify_repo_uris(self) -> list[str]:
        if not self.got.has_repo_uris() or not self.want.repo_uri:
            return []
        # The reference repo URI must be contained in every repo URI of the provenance.
        return [
            f"The URI from the provenance {uri} does not contain the repo URI {self.want.repo_uri}."
            for uri in self.got.get_repo_uris()
            if self.want.repo_uri not in uri
        ]

    def _verify_trusted_builder(self) -> list[str]:
        if not self.got.has_trusted_builder() or self.want.trusted_builders is None:
            return []
        got = self.got.get_trusted_builder()
        if got in self.want.trusted_builders:
            return []
        return [f"The reference trusted builders {list(self.want.trusted_builders)} do not contain {got}."]
