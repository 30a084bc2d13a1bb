"""
Decoder for serialized signed exchanges

Reads the application/signed-exchange;v=b2 and v=b3 binary formats into
an Exchange.
"""

import logging
import string
from typing import BinaryIO, Dict, Tuple

import cbor2

from .types import (
    Exchange,
    Version,
    MAX_SIGNATURE_LENGTH,
    MAX_HEADER_LENGTH,
)
from ..exceptions import LoadError

logger = logging.getLogger(__name__)

MAGIC_LENGTH = 8


def _read_exact(stream: BinaryIO, length: int, what: str) -> bytes:
    data = stream.read(length)
    if data is None or len(data) != length:
        raise LoadError(
            f"Unexpected end of input while reading {what}",
            "TRUNCATED_INPUT",
            {'expected': length, 'actual': len(data or b"")}
        )
    return data


def _read_length(stream: BinaryIO, size: int, what: str) -> int:
    return int.from_bytes(_read_exact(stream, size, what), 'big')


def decode_response_headers(header_bytes: bytes) -> Tuple[int, Dict[str, str]]:
    """
    Decode the CBOR map of signed response headers

    Args:
        header_bytes: CBOR-encoded header map

    Returns:
        tuple: (status code, headers keyed by lowercase name)

    Raises:
        LoadError: If the headers are malformed
    """
    try:
        decoded = cbor2.loads(header_bytes)
    except (cbor2.CBORDecodeError, ValueError) as e:
        raise LoadError(f"Failed to decode signed headers: {e}", "INVALID_HEADERS")

    if not isinstance(decoded, dict):
        raise LoadError("Signed headers must be a CBOR map", "INVALID_HEADERS")

    status = None
    headers: Dict[str, str] = {}
    for key, value in decoded.items():
        if not isinstance(key, bytes) or not isinstance(value, bytes):
            raise LoadError("Signed header names and values must be byte strings", "INVALID_HEADERS")
        try:
            name = key.decode('ascii')
            text = value.decode('latin-1')
        except UnicodeDecodeError:
            raise LoadError(f"Non-ASCII header name: {key!r}", "INVALID_HEADERS")

        if name.startswith(':'):
            if name != ':status':
                raise LoadError(f"Unknown pseudo header: {name}", "INVALID_HEADERS")
            if len(text) != 3 or not all(c in string.digits for c in text):
                raise LoadError(f"Invalid :status value: {text!r}", "INVALID_HEADERS")
            status = int(text)
            continue

        if name != name.lower():
            raise LoadError(f"Header name must be lowercase: {name}", "INVALID_HEADERS")
        headers[name] = text

    if status is None:
        raise LoadError("Signed headers have no :status", "INVALID_HEADERS")

    return status, headers


def read_exchange(stream: BinaryIO) -> Exchange:
    """
    Read a signed exchange from a binary stream

    Args:
        stream: Readable binary stream positioned at the start of the exchange

    Returns:
        Exchange: Decoded exchange, payload holding the wire bytes

    Raises:
        LoadError: If the stream is not a supported signed exchange
    """
    magic = _read_exact(stream, MAGIC_LENGTH, "magic")
    version = Version.from_magic(magic)
    if version is None:
        raise LoadError(f"Unsupported signed exchange magic: {magic!r}", "UNSUPPORTED_VERSION")

    url_length = _read_length(stream, 2, "fallback URL length")
    try:
        request_uri = _read_exact(stream, url_length, "fallback URL").decode('utf-8')
    except UnicodeDecodeError:
        raise LoadError("Fallback URL is not valid UTF-8", "INVALID_URL")

    signature_length = _read_length(stream, 3, "signature length")
    if signature_length > MAX_SIGNATURE_LENGTH:
        raise LoadError(
            f"Signature length {signature_length} exceeds limit {MAX_SIGNATURE_LENGTH}",
            "SIGNATURE_TOO_LONG"
        )

    header_length = _read_length(stream, 3, "header length")
    if header_length > MAX_HEADER_LENGTH:
        raise LoadError(
            f"Header length {header_length} exceeds limit {MAX_HEADER_LENGTH}",
            "HEADERS_TOO_LONG"
        )

    try:
        signature_header_value = _read_exact(stream, signature_length, "signature").decode('ascii')
    except UnicodeDecodeError:
        raise LoadError("Signature header value is not ASCII", "INVALID_SIGNATURE")

    signed_headers = _read_exact(stream, header_length, "signed headers")
    status, response_headers = decode_response_headers(signed_headers)

    payload = stream.read()

    logger.debug(
        f"Read {version.value} exchange for {request_uri} "
        f"({len(response_headers)} headers, {len(payload)} payload bytes)"
    )

    return Exchange(
        version=version,
        request_uri=request_uri,
        request_method="GET",
        response_status=status,
        signature_header_value=signature_header_value,
        payload=payload,
        response_headers=response_headers,
        signed_headers=signed_headers,
    )
