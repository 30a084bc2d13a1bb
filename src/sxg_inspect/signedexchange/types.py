"""
Type definitions for signed exchanges

This module provides the in-memory representation of a decoded
application/signed-exchange resource together with the supporting
types used while verifying it.
"""

from typing import Dict, List, Optional, Any, Protocol, runtime_checkable
from dataclasses import dataclass, field
from enum import Enum

# Format limits for the b2/b3 binary encoding
MAX_SIGNATURE_LENGTH = 16 * 1024
MAX_HEADER_LENGTH = 512 * 1024

# Maximum allowed distance between a signature's date and expires parameters
MAX_SIGNATURE_DURATION = 7 * 24 * 60 * 60


class Version(str, Enum):
    """Signed exchange format version"""
    V1B2 = "1b2"
    V1B3 = "1b3"

    @property
    def magic(self) -> bytes:
        """Magic bytes that open a serialized exchange of this version"""
        return {
            Version.V1B2: b"sxg1-b2\x00",
            Version.V1B3: b"sxg1-b3\x00",
        }[self]

    @property
    def signature_context(self) -> bytes:
        """Context string embedded in the signed message"""
        return {
            Version.V1B2: b"HTTP Exchange 1 b2",
            Version.V1B3: b"HTTP Exchange 1 b3",
        }[self]

    @property
    def mi_encoding(self) -> str:
        """Content encoding used for payload integrity"""
        return "mi-sha256-03"

    @property
    def integrity_identifier(self) -> str:
        """Expected value of the signature's integrity parameter"""
        return "digest/mi-sha256-03"

    @classmethod
    def from_magic(cls, magic: bytes) -> Optional['Version']:
        """Look up a version by its magic bytes"""
        for version in cls:
            if version.magic == magic:
                return version
        return None


@dataclass
class Exchange:
    """
    A decoded signed exchange.

    The payload holds the wire bytes as read from the input until
    replace_payload() swaps in the decoded body after a successful
    verification. That swap may happen at most once.

    Attributes:
        version: Format version
        request_uri: Request URL (the fallback URL of the exchange)
        request_method: Request method, always GET for b2/b3
        request_headers: Request headers (empty for b2/b3)
        response_status: Response status code
        response_headers: Response headers keyed by lowercase name
        signature_header_value: Raw Signature header value
        payload: Payload bytes
        signed_headers: Raw CBOR bytes of the signed response headers
    """
    version: Version
    request_uri: str
    request_method: str
    response_status: int
    signature_header_value: str
    payload: bytes
    request_headers: Dict[str, str] = field(default_factory=dict)
    response_headers: Dict[str, str] = field(default_factory=dict)
    signed_headers: bytes = b""
    payload_decoded: bool = field(default=False, init=False)

    def replace_payload(self, decoded_payload: bytes) -> None:
        """
        Replace the wire payload with its decoded form

        Args:
            decoded_payload: Payload produced by a successful verification

        Raises:
            ValueError: If the payload was already replaced
        """
        if self.payload_decoded:
            raise ValueError("Exchange payload has already been replaced")
        self.payload = decoded_payload
        self.payload_decoded = True

    def get_response_header(self, name: str) -> Optional[str]:
        """Get a response header value (case-insensitive)"""
        return self.response_headers.get(name.lower())


@dataclass
class ParameterisedIdentifier:
    """One member of a parameterised list"""
    label: str
    params: Dict[str, Any] = field(default_factory=dict)


@dataclass
class SignatureParams:
    """Parameters of one signature in the Signature header"""
    label: str
    sig: bytes
    integrity: str
    cert_url: str
    cert_sha256: bytes
    validity_url: str
    date: int
    expires: int


@dataclass
class CertChainItem:
    """One entry of an application/cert-chain+cbor resource"""
    cert: bytes
    ocsp: Optional[bytes] = None
    sct: Optional[bytes] = None


@dataclass
class CertChain:
    """Parsed certificate chain, leaf first"""
    items: List[CertChainItem]

    @property
    def leaf(self) -> CertChainItem:
        """The certificate whose key signed the exchange"""
        return self.items[0]


@runtime_checkable
class LogSink(Protocol):
    """Destination for step-by-step verification narration"""

    def write(self, line: str) -> None:
        """Record one line of narration"""
        ...
