"""
Merkle Integrity content encoding (mi-sha256-03)

The encoded body is an 8-byte big-endian record size followed by the
records of the payload, each record except the last followed by the
integrity proof of the next one:

    proof(last) = SHA-256(last || 0x00)
    proof(r[i]) = SHA-256(r[i] || proof(r[i+1]) || 0x01)

The proof of the first record is carried in the Digest header as
"mi-sha256-03=<base64>".
"""

import base64
import hashlib
import hmac
from typing import List, Optional, Tuple

from ..exceptions import IntegrityError

MI_ENCODING = "mi-sha256-03"
DEFAULT_RECORD_SIZE = 4096
RECORD_SIZE_LENGTH = 8
PROOF_LENGTH = 32


def _last_record_proof(record: bytes) -> bytes:
    return hashlib.sha256(record + b"\x00").digest()


def _record_proof(record: bytes, next_proof: bytes) -> bytes:
    return hashlib.sha256(record + next_proof + b"\x01").digest()


def parse_digest_header(value: Optional[str]) -> bytes:
    """
    Extract the mi-sha256-03 proof from a Digest header value

    Args:
        value: Digest header value, possibly listing several digests

    Returns:
        bytes: Top-level integrity proof

    Raises:
        IntegrityError: If no usable mi-sha256-03 digest is present
    """
    if not value:
        raise IntegrityError("No digest header", "MISSING_DIGEST")

    for entry in value.split(","):
        name, sep, encoded = entry.strip().partition("=")
        if not sep or name.strip().lower() != MI_ENCODING:
            continue
        try:
            proof = base64.b64decode(encoded.strip(), validate=True)
        except ValueError as e:
            raise IntegrityError(f"Invalid base64 in digest header: {e}", "INVALID_DIGEST")
        if len(proof) != PROOF_LENGTH:
            raise IntegrityError(f"Digest must be {PROOF_LENGTH} bytes, got {len(proof)}", "INVALID_DIGEST")
        return proof

    raise IntegrityError(f"Digest header has no {MI_ENCODING} value", "MISSING_DIGEST")


def encode(payload: bytes, record_size: int = DEFAULT_RECORD_SIZE) -> Tuple[bytes, str]:
    """
    Encode a payload with mi-sha256-03

    Args:
        payload: Payload to encode
        record_size: Size of each record in bytes

    Returns:
        tuple: (encoded body, Digest header value)
    """
    if record_size <= 0:
        raise ValueError("Record size must be positive")

    records = [payload[i:i + record_size] for i in range(0, len(payload), record_size)]

    if not records:
        top_proof = _last_record_proof(b"")
        return record_size.to_bytes(RECORD_SIZE_LENGTH, 'big'), _digest_value(top_proof)

    proofs: List[bytes] = [b""] * len(records)
    proofs[-1] = _last_record_proof(records[-1])
    for i in range(len(records) - 2, -1, -1):
        proofs[i] = _record_proof(records[i], proofs[i + 1])

    parts = [record_size.to_bytes(RECORD_SIZE_LENGTH, 'big')]
    for i, record in enumerate(records):
        parts.append(record)
        if i + 1 < len(records):
            parts.append(proofs[i + 1])

    return b"".join(parts), _digest_value(proofs[0])


def _digest_value(proof: bytes) -> str:
    return f"{MI_ENCODING}=" + base64.b64encode(proof).decode('ascii')


def decode(encoded: bytes, digest_header: Optional[str]) -> bytes:
    """
    Decode and validate an mi-sha256-03 encoded body

    Args:
        encoded: Encoded body
        digest_header: Digest header value holding the top-level proof

    Returns:
        bytes: Decoded payload

    Raises:
        IntegrityError: If the body is malformed or any record fails its proof
    """
    expected = parse_digest_header(digest_header)

    if len(encoded) < RECORD_SIZE_LENGTH:
        raise IntegrityError("Encoded body is shorter than the record size field", "TRUNCATED_BODY")

    record_size = int.from_bytes(encoded[:RECORD_SIZE_LENGTH], 'big')
    body = encoded[RECORD_SIZE_LENGTH:]

    if not body:
        if not hmac.compare_digest(_last_record_proof(b""), expected):
            raise IntegrityError("Integrity proof mismatch for empty payload", "PROOF_MISMATCH")
        return b""

    if record_size == 0:
        raise IntegrityError("Record size must be positive", "INVALID_RECORD_SIZE")

    decoded: List[bytes] = []
    pos = 0
    index = 0
    while True:
        remaining = len(body) - pos
        if remaining <= record_size:
            record = body[pos:]
            if not hmac.compare_digest(_last_record_proof(record), expected):
                raise IntegrityError(f"Integrity proof mismatch in record {index}", "PROOF_MISMATCH")
            decoded.append(record)
            break

        if remaining <= record_size + PROOF_LENGTH:
            raise IntegrityError(f"Record {index} is followed by a truncated proof", "TRUNCATED_BODY")

        record = body[pos:pos + record_size]
        next_proof = body[pos + record_size:pos + record_size + PROOF_LENGTH]
        if not hmac.compare_digest(_record_proof(record, next_proof), expected):
            raise IntegrityError(f"Integrity proof mismatch in record {index}", "PROOF_MISMATCH")

        decoded.append(record)
        expected = next_proof
        pos += record_size + PROOF_LENGTH
        index += 1

    return b"".join(decoded)
