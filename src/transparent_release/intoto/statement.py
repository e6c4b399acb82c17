# Copyright (c) 2024 - 2025, Oracle and/or its affiliates. All rights reserved.
# Licensed under the Universal Permissive License v 1.0 as shown at https://oss.oracle.com/licenses/upl/.

"""This module handles in-toto version 0.1 statements.

Specification: https://github.com/in-toto/attestation/tree/main/spec/v0.1.0#statement.

A statement is decoded in two phases. :func:`parse_statement` checks the statement layer and keeps the
predicate as a raw JSON object. The predicate is then decoded into a typed model, selected by its
``predicateType``, with :func:`transparent_release.intoto.predicates.decode_predicate`.
"""

from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass, field, replace
from typing import Protocol, runtime_checkable

from transparent_release.errors import DecodeError, MalformedSubjectError
from transparent_release.json_tools import JsonType, load_json_object, parse_digest_set, require

logger: logging.Logger = logging.getLogger(__name__)

#: The ``_type`` of in-toto version 0.1 statements.
STATEMENT_INTOTO_V01 = "https://in-toto.io/Statement/v0.1"

#: A collection of cryptographic digests, keyed by algorithm name, e.g. ``{"sha256": "<lowercase hex>"}``.
DigestSet = dict[str, str]


@runtime_checkable
class PredicateModel(Protocol):
    """A typed predicate that can be converted back to its JSON representation."""

    def to_dict(self) -> dict[str, JsonType]:
        """Return the JSON representation of the predicate."""


@dataclass(frozen=True)
class Subject:
    """An in-toto subject: an artifact name and its digests."""

    #: The name of the artifact, e.g. a binary name or a git repository URL.
    name: str

    #: The digests of the artifact.
    digest: DigestSet = field(default_factory=dict)

    def to_dict(self) -> dict[str, JsonType]:
        """Return the JSON representation of the subject."""
        return {"name": self.name, "digest": dict(self.digest)}


@dataclass(frozen=True)
class Statement:
    """An in-toto version 0.1 statement.

    The predicate is either the raw JSON object, or a typed predicate once decoded.
    """

    #: Identifier of the type of the predicate.
    predicate_type: str

    #: The artifacts the statement is about. Never empty.
    subject: tuple[Subject, ...]

    #: The predicate of the statement.
    predicate: dict[str, JsonType] | PredicateModel

    #: Identifier of the schema of the statement layer.
    type: str = STATEMENT_INTOTO_V01

    def with_predicate(self, predicate: dict[str, JsonType] | PredicateModel) -> Statement:
        """Return a copy of this statement holding another predicate."""
        return replace(self, predicate=predicate)

    def single_sha256_subject(self) -> Subject:
        """Return the only subject of the statement, checking that it has a sha256 digest.

        Raises
        ------
        MalformedSubjectError
            If the statement does not have exactly one subject, or the subject has no sha256 digest.
        """
        if len(self.subject) != 1:
            raise MalformedSubjectError(f"The statement must have exactly one subject, found {len(self.subject)}.")
        subject = self.subject[0]
        if not subject.digest.get("sha256"):
            raise MalformedSubjectError(f"The subject {subject.name} does not have a sha256 digest.")
        return subject

    def to_dict(self) -> dict[str, JsonType]:
        """Return the JSON representation of the statement."""
        predicate = self.predicate.to_dict() if isinstance(self.predicate, PredicateModel) else self.predicate
        return {
            "_type": self.type,
            "predicateType": self.predicate_type,
            "subject": [subject.to_dict() for subject in self.subject],
            "predicate": predicate,
        }


def parse_subject(value: JsonType) -> Subject:
    """Decode a single subject of an in-toto statement.

    Raises
    ------
    DecodeError
        When the subject does not follow the expected schema.
    """
    if not isinstance(value, dict):
        raise DecodeError("A subject in the in-toto statement is invalid: expecting an object.")
    name = require(value, "name", str, "subject")
    return Subject(name=name, digest=parse_digest_set(value.get("digest"), f"subject {name}"))


def statement_from_dict(payload: dict[str, JsonType]) -> Statement:
    """Decode the statement layer of an already deserialized in-toto statement.

    Parameters
    ----------
    payload : dict[str, JsonType]
        The JSON object of the statement.

    Returns
    -------
    Statement
        The statement, with the predicate kept as a raw JSON object.

    Raises
    ------
    DecodeError
        When the payload does not follow the in-toto statement schema.
    """
    type_ = require(payload, "_type", str, "in-toto statement")
    predicate_type = require(payload, "predicateType", str, "in-toto statement")
    subjects = require(payload, "subject", list, "in-toto statement")
    if not subjects:
        raise DecodeError("The attribute 'subject' of the in-toto statement must not be empty.")
    predicate = require(payload, "predicate", dict, "in-toto statement")

    return Statement(
        type=type_,
        predicate_type=predicate_type,
        subject=tuple(parse_subject(subject) for subject in subjects),
        predicate=predicate,
    )


def parse_statement(data: bytes | str) -> Statement:
    """Deserialize an in-toto statement, keeping its predicate as a raw JSON object.

    Parameters
    ----------
    data : bytes | str
        The serialized statement.

    Returns
    -------
    Statement
        The decoded statement.

    Raises
    ------
    DecodeError
        If ``data`` is not valid JSON or does not follow the in-toto statement schema.
    """
    return statement_from_dict(load_json_object(data, "in-toto statement"))


def serialize_statement(statement: Statement) -> str:
    """Serialize a statement as indented JSON, terminated by a newline."""
    return json.dumps(statement.to_dict(), indent=4) + "\n"


def write_statement(statement: Statement, path: str | os.PathLike[str]) -> None:
    """Write a statement to a file that only the current user can read and write.

    Parameters
    ----------
    statement : Statement
        The statement to write.
    path : str | os.PathLike[str]
        The destination path. An existing file is overwritten.

    Raises
    ------
    OSError
        If the file cannot be written.
    """
    content = serialize_statement(statement)
    file_descriptor = os.open(path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, 0o600)
    with os.fdopen(file_descriptor, "w", encoding="utf-8") as file:
        file.write(content)
    # The mode passed to os.open only applies to newly created files.
    os.chmod(path, 0o600)
    logger.debug("Wrote the statement to %s.", path)


def read_statement_file(path: str | os.PathLike[str]) -> Statement:
    """Read and parse the in-toto statement stored in a file.

    Raises
    ------
    OSError
        If the file cannot be read.
    DecodeError
        If the content of the file is not an in-toto statement.
    """
    with open(path, "rb") as file:
        return parse_statement(file.read())
