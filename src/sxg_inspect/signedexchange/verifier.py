"""
Signature verification for signed exchanges

This module checks an exchange's Signature header against the certificate
named by each signature's cert-url, and validates the payload's Merkle
Integrity encoding. Every step is narrated to a log sink so that callers
can show why a signature was or was not accepted.
"""

import hashlib
import hmac
import struct
from datetime import datetime
from typing import Callable, List, Optional, Tuple
from urllib.parse import urlparse

from cryptography.exceptions import InvalidSignature
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.asymmetric import ec

from .types import (
    Exchange,
    LogSink,
    SignatureParams,
    MAX_SIGNATURE_DURATION,
)
from .structured_header import parse_parameterised_list
from .certchain import read_cert_chain, load_leaf_certificate
from . import mice
from ..exceptions import (
    CertChainError,
    CertificateResolutionError,
    IntegrityError,
    StructuredHeaderError,
)

CertFetcher = Callable[[str], bytes]

# Response headers that make an exchange unsuitable for sharing
STATEFUL_HEADERS = frozenset([
    'authentication-info',
    'clear-site-data',
    'set-cookie',
    'set-cookie2',
    'setprofile',
    'www-authenticate',
    'proxy-authenticate',
    'connection',
    'keep-alive',
    'proxy-connection',
    'trailer',
    'transfer-encoding',
    'upgrade',
])

_DEFAULT_PORTS = {'http': 80, 'https': 443}


def _require(params: dict, name: str, kind: type, label: str):
    if name not in params:
        raise StructuredHeaderError(f"Signature '{label}' has no '{name}' parameter", "MISSING_PARAMETER")
    value = params[name]
    if not isinstance(value, kind) or isinstance(value, bool):
        raise StructuredHeaderError(
            f"Signature '{label}' parameter '{name}' has the wrong type",
            "INVALID_PARAMETER"
        )
    return value


def parse_signatures(header_value: str) -> List[SignatureParams]:
    """
    Parse a Signature header value into signature parameters

    Args:
        header_value: Raw Signature header value

    Returns:
        List[SignatureParams]: Signatures in header order

    Raises:
        StructuredHeaderError: If the header or any signature is malformed
    """
    signatures = []
    for item in parse_parameterised_list(header_value):
        params = item.params
        signatures.append(SignatureParams(
            label=item.label,
            sig=_require(params, 'sig', bytes, item.label),
            integrity=_require(params, 'integrity', str, item.label),
            cert_url=_require(params, 'cert-url', str, item.label),
            cert_sha256=_require(params, 'cert-sha256', bytes, item.label),
            validity_url=_require(params, 'validity-url', str, item.label),
            date=_require(params, 'date', int, item.label),
            expires=_require(params, 'expires', int, item.label),
        ))
    return signatures


def _origin(url: str) -> Tuple[str, str, Optional[int]]:
    parsed = urlparse(url)
    scheme = parsed.scheme.lower()
    return scheme, (parsed.hostname or '').lower(), parsed.port or _DEFAULT_PORTS.get(scheme)


def _is_https(url: str) -> bool:
    parsed = urlparse(url)
    return parsed.scheme.lower() == 'https' and bool(parsed.netloc)


def _length_prefixed(data: bytes) -> bytes:
    return struct.pack('>Q', len(data)) + data


def serialize_signed_message(exchange: Exchange, signature: SignatureParams) -> bytes:
    """
    Build the message covered by a signature

    Args:
        exchange: Exchange being verified
        signature: Signature parameters

    Returns:
        bytes: Signed message
    """
    parts = [
        b"\x20" * 64,
        exchange.version.signature_context,
        b"\x00",
    ]
    if signature.cert_sha256:
        parts.append(bytes([len(signature.cert_sha256)]) + signature.cert_sha256)
    else:
        parts.append(b"\x00")
    parts.append(_length_prefixed(signature.validity_url.encode('utf-8')))
    parts.append(struct.pack('>Q', signature.date))
    parts.append(struct.pack('>Q', signature.expires))
    parts.append(_length_prefixed(exchange.request_uri.encode('utf-8')))
    parts.append(_length_prefixed(exchange.signed_headers))
    return b"".join(parts)


class _SignatureCheck:
    """Verification of one signature; check() narrates and returns the decoded payload or None"""

    def __init__(self, exchange: Exchange, signature: SignatureParams, at_time: int,
                 cert_fetcher: CertFetcher, log_sink: LogSink):
        self.exchange = exchange
        self.signature = signature
        self.at_time = at_time
        self.cert_fetcher = cert_fetcher
        self.log = log_sink.write

    def check(self) -> Optional[bytes]:
        sig = self.signature
        self.log(f"Verifying signature '{sig.label}'")

        if sig.integrity != self.exchange.version.integrity_identifier:
            self.log(f"  integrity: unsupported value {sig.integrity!r}")
            return None
        self.log(f"  integrity: {sig.integrity}")

        if not self._check_urls():
            return None

        public_key = self._resolve_key()
        if public_key is None:
            return None

        if not self._check_validity_window():
            return None

        try:
            public_key.verify(sig.sig, serialize_signed_message(self.exchange, sig), ec.ECDSA(hashes.SHA256()))
        except InvalidSignature:
            self.log("  signature: invalid")
            return None
        self.log("  signature: ok")

        stateful = sorted(name for name in self.exchange.response_headers if name in STATEFUL_HEADERS)
        if stateful:
            self.log(f"  response headers: stateful headers present: {', '.join(stateful)}")
            return None

        return self._decode_payload()

    def _check_urls(self) -> bool:
        try:
            return self._check_url_values()
        except ValueError as e:
            self.log(f"  URL: invalid: {e}")
            return False

    def _check_url_values(self) -> bool:
        sig = self.signature
        if not _is_https(self.exchange.request_uri):
            self.log(f"  request URL: not https: {self.exchange.request_uri}")
            return False
        if not _is_https(sig.cert_url):
            self.log(f"  cert-url: not https: {sig.cert_url}")
            return False
        if not _is_https(sig.validity_url):
            self.log(f"  validity-url: not https: {sig.validity_url}")
            return False
        if _origin(sig.validity_url) != _origin(self.exchange.request_uri):
            self.log(f"  validity-url: not same-origin with request URL: {sig.validity_url}")
            return False
        return True

    def _resolve_key(self) -> Optional[ec.EllipticCurvePublicKey]:
        sig = self.signature
        try:
            chain = read_cert_chain(self.cert_fetcher(sig.cert_url))
        except CertificateResolutionError as e:
            self.log(f"  certificate: failed to fetch {sig.cert_url}: {e}")
            return None
        except CertChainError as e:
            self.log(f"  certificate: invalid cert chain from {sig.cert_url}: {e}")
            return None

        actual = hashlib.sha256(chain.leaf.cert).digest()
        if not hmac.compare_digest(actual, sig.cert_sha256):
            self.log("  certificate: cert-sha256 mismatch")
            return None

        try:
            certificate = load_leaf_certificate(chain)
        except CertChainError as e:
            self.log(f"  certificate: {e}")
            return None

        public_key = certificate.public_key()
        if not isinstance(public_key, ec.EllipticCurvePublicKey) or not isinstance(public_key.curve, ec.SECP256R1):
            self.log("  certificate: public key is not ECDSA P-256")
            return None

        self.log(f"  certificate: {certificate.subject.rfc4514_string()} (cert-sha256 ok)")
        return public_key

    def _check_validity_window(self) -> bool:
        sig = self.signature
        if sig.expires < sig.date:
            self.log("  validity: expires is before date")
            return False
        if sig.expires - sig.date > MAX_SIGNATURE_DURATION:
            self.log(f"  validity: lifetime of {sig.expires - sig.date}s exceeds {MAX_SIGNATURE_DURATION}s")
            return False
        if self.at_time < sig.date:
            self.log(f"  validity: not yet valid (date {sig.date}, now {self.at_time})")
            return False
        if self.at_time > sig.expires:
            self.log(f"  validity: expired (expires {sig.expires}, now {self.at_time})")
            return False
        self.log(f"  validity: ok (date {sig.date}, expires {sig.expires})")
        return True

    def _decode_payload(self) -> Optional[bytes]:
        exchange = self.exchange
        encoding = exchange.version.mi_encoding
        content_encodings = [
            token.strip().lower()
            for token in (exchange.get_response_header('content-encoding') or '').split(',')
        ]
        if encoding not in content_encodings:
            self.log(f"  payload: content-encoding does not include {encoding}")
            return None

        try:
            decoded = mice.decode(exchange.payload, exchange.get_response_header('digest'))
        except IntegrityError as e:
            self.log(f"  payload: {e}")
            return None

        self.log(f"  payload: integrity ok ({len(decoded)} bytes decoded)")
        return decoded


def verify_exchange(
    exchange: Exchange,
    verification_time: datetime,
    cert_fetcher: CertFetcher,
    log_sink: LogSink
) -> Tuple[Optional[bytes], bool]:
    """
    Verify the signatures of an exchange

    Signatures are tried in header order and the first valid one wins.
    The exchange is not modified.

    Args:
        exchange: Exchange to verify
        verification_time: Instant used for all validity checks
        cert_fetcher: Callable mapping a cert-url to cert-chain bytes
        log_sink: Destination for verification narration

    Returns:
        tuple: (decoded payload, True) on success, (None, False) otherwise
    """
    try:
        signatures = parse_signatures(exchange.signature_header_value)
    except StructuredHeaderError as e:
        log_sink.write(f"Failed to parse signature header: {e}")
        return None, False

    at_time = int(verification_time.timestamp())
    for signature in signatures:
        decoded = _SignatureCheck(exchange, signature, at_time, cert_fetcher, log_sink).check()
        if decoded is not None:
            log_sink.write(f"Signature '{signature.label}' is valid")
            return decoded, True

    log_sink.write("No valid signature found")
    return None, False
