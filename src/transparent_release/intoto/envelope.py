# Copyright (c) 2024 - 2025, Oracle and/or its affiliates. All rights reserved.
# Licensed under the Universal Permissive License v 1.0 as shown at https://oss.oracle.com/licenses/upl/.

"""Functions to extract the in-toto statement from a DSSE envelope or a Sigstore bundle.

For more details about the envelope, see:
https://github.com/in-toto/attestation/blob/main/spec/v1/envelope.md.

Signatures are not verified here.
"""

import base64
import binascii
import logging

from transparent_release.errors import DecodeError, EnvelopeDecodeError
from transparent_release.intoto.statement import Statement, parse_statement, statement_from_dict
from transparent_release.json_tools import JsonType, json_extract, load_json_object

logger: logging.Logger = logging.getLogger(__name__)

#: The payload type of DSSE envelopes carrying in-toto statements.
INTOTO_PAYLOAD_TYPE = "application/vnd.in-toto+json"


def encode_payload(payload: bytes) -> str:
    """Encode (base64 encoding) the payload of an in-toto attestation."""
    return base64.b64encode(payload).decode("ascii")


def find_payload(envelope: dict[str, JsonType]) -> str | None:
    """Return the base64-encoded payload of a DSSE envelope or a Sigstore bundle, if any."""
    # Sigstore bundles store the DSSE envelope in the `dsseEnvelope` property.
    payload = json_extract(envelope, ["dsseEnvelope", "payload"], str)
    if payload:
        logger.debug("Found dsseEnvelope property in the attestation.")
        return payload
    return json_extract(envelope, ["payload"], str) or None


def decode_envelope(data: bytes | str) -> bytes:
    """Decode the serialized in-toto statement carried by a DSSE envelope or a Sigstore bundle.

    Parameters
    ----------
    data : bytes | str
        The serialized envelope.

    Returns
    -------
    bytes
        The serialized statement.

    Raises
    ------
    EnvelopeDecodeError
        If there is no payload, or the payload is not base64 encoded.
    """
    try:
        envelope = load_json_object(data, "envelope")
    except DecodeError as error:
        raise EnvelopeDecodeError(str(error)) from error

    payload = find_payload(envelope)
    if payload is None:
        raise EnvelopeDecodeError('Cannot find the "payload" field in the envelope.')

    payload_type = json_extract(envelope, ["dsseEnvelope", "payloadType"], str) or json_extract(
        envelope, ["payloadType"], str
    )
    if payload_type and payload_type != INTOTO_PAYLOAD_TYPE:
        logger.debug("Unexpected payload type %s in the envelope.", payload_type)

    try:
        return base64.b64decode(payload, validate=True)
    except (binascii.Error, ValueError) as error:
        raise EnvelopeDecodeError("Cannot base64-decode the envelope payload.") from error


def parse_statement_or_envelope(data: bytes | str) -> Statement:
    """Parse an in-toto statement that is either bare or wrapped in a DSSE envelope or Sigstore bundle.

    Raises
    ------
    DecodeError
        If ``data`` is neither a statement nor an envelope carrying one.
    """
    content = load_json_object(data, "attestation")
    if find_payload(content) is None:
        return statement_from_dict(content)
    return parse_statement(decode_envelope(data))
