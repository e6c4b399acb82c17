# Copyright (c) 2024 - 2025, Oracle and/or its affiliates. All rights reserved.
# Licensed under the Universal Permissive License v 1.0 as shown at https://oss.oracle.com/licenses/upl/.

"""Decode the predicate of an in-toto statement into a typed model, selected by its predicate type.

Claims are decoded one level deeper: the ``claimSpec`` of a claim is selected by its ``claimType``.
"""

import logging
from collections.abc import Callable

from transparent_release.claims.claim import CLAIM_V1, ClaimPredicate
from transparent_release.claims.endorsement import ENDORSEMENT_V2
from transparent_release.errors import UnrecognizedPredicateError
from transparent_release.fuzzbinder.claim import FUZZ_CLAIM_V1, FuzzClaimSpec
from transparent_release.intoto.statement import PredicateModel, Statement
from transparent_release.json_tools import JsonType
from transparent_release.slsa.v02 import PREDICATE_SLSA_PROVENANCE_V02, ProvenancePredicate

logger: logging.Logger = logging.getLogger(__name__)

PREDICATE_DECODERS: dict[str, Callable[[dict[str, JsonType]], PredicateModel]] = {
    CLAIM_V1: ClaimPredicate.from_dict,
    PREDICATE_SLSA_PROVENANCE_V02: ProvenancePredicate.from_dict,
}

# Claim types mapped to None have no claim spec.
CLAIM_SPEC_DECODERS: dict[str, Callable[[dict[str, JsonType]], PredicateModel] | None] = {
    FUZZ_CLAIM_V1: FuzzClaimSpec.from_dict,
    ENDORSEMENT_V2: None,
}


def decode_claim_spec(predicate: ClaimPredicate) -> ClaimPredicate:
    """Decode the raw ``claimSpec`` of a claim into the model registered for its claim type.

    The claim spec of an unknown claim type is kept as raw JSON.

    Raises
    ------
    DecodeError
        If the claim spec does not have the shape required by its claim type.
    """
    if not isinstance(predicate.claim_spec, dict):
        return predicate
    if predicate.claim_type not in CLAIM_SPEC_DECODERS:
        logger.debug("No claim spec model for the claim type %s.", predicate.claim_type)
        return predicate
    decoder = CLAIM_SPEC_DECODERS[predicate.claim_type]
    if decoder is None:
        return predicate
    return predicate.with_claim_spec(decoder(predicate.claim_spec))


def decode_predicate(statement: Statement) -> Statement:
    """Return a copy of the statement whose predicate is decoded into the model of its predicate type.

    Parameters
    ----------
    statement : Statement
        A statement, as returned by :func:`transparent_release.intoto.statement.parse_statement`.

    Returns
    -------
    Statement
        The statement with a typed predicate. A statement that already has a typed predicate is returned as is.

    Raises
    ------
    UnrecognizedPredicateError
        If there is no model for the predicate type.
    DecodeError
        If the predicate does not have the shape required by its predicate type.
    """
    if not isinstance(statement.predicate, dict):
        return statement

    decoder = PREDICATE_DECODERS.get(statement.predicate_type)
    if decoder is None:
        raise UnrecognizedPredicateError(statement.predicate_type)

    predicate = decoder(statement.predicate)
    if isinstance(predicate, ClaimPredicate):
        predicate = decode_claim_spec(predicate)
    return statement.with_predicate(predicate)
