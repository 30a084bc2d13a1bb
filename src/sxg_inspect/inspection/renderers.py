"""
Output renderers

TextRenderer prints the verification narration, headers and payload for
a human. StructuredRenderer prints a single JSON record for machines; it
never includes narration or payload bytes.
"""

import base64
import hashlib
import json
import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Any, BinaryIO, Dict, Optional

from .cert_source import CertificateSource
from .orchestrator import VerificationOrchestrator, VerificationOutcome
from .sinks import DiscardSink
from ..exceptions import StructuredHeaderError
from ..signedexchange.structured_header import parse_parameterised_list
from ..signedexchange.types import Exchange

logger = logging.getLogger(__name__)

VALID_SIGNATURE_MESSAGE = "The exchange has a valid signature."

# Header values are decoded as latin-1 and written back byte for byte
HEADER_ENCODING = 'latin-1'


def header_integrity(exchange: Exchange) -> str:
    """SHA-256 integrity string of the signed response headers"""
    digest = hashlib.sha256(exchange.signed_headers).digest()
    return "sha256-" + base64.b64encode(digest).decode('ascii')


class TextRenderer:
    """Human-readable rendering written to a binary stream"""

    def __init__(self, out: BinaryIO):
        self.out = out

    def _line(self, text: str = "", encoding: str = 'utf-8') -> None:
        self.out.write(text.encode(encoding) + b"\n")

    def render_verification(self, exchange: Exchange, outcome: VerificationOutcome) -> None:
        """
        Print the narration and verdict, then adopt the decoded payload.

        The exchange's payload is replaced only when the outcome is valid.
        """
        for line in outcome.diagnostic_trace:
            self._line(line)
        if outcome.valid:
            exchange.replace_payload(outcome.decoded_payload)
            self._line(VALID_SIGNATURE_MESSAGE)
        self._line()

    def render_headers(self, exchange: Exchange) -> None:
        self._line(f"format version: {exchange.version.value}")
        self._line("request:")
        self._line(f"  method: {exchange.request_method}")
        self._line(f"  uri: {exchange.request_uri}")
        self._line("  headers:")
        for name in sorted(exchange.request_headers):
            self._line(f"    {name}: {exchange.request_headers[name]}", HEADER_ENCODING)
        self._line()
        self._line("response:")
        self._line(f"  status: {exchange.response_status}")
        self._line("  headers:")
        for name in sorted(exchange.response_headers):
            self._line(f"    {name}: {exchange.response_headers[name]}", HEADER_ENCODING)
        self._line()
        self._line(f"signature: {exchange.signature_header_value}")
        self._line(f"header integrity: {header_integrity(exchange)}")

    def render_payload(self, exchange: Exchange) -> None:
        self._line(f"payload [{len(exchange.payload)} bytes]:")
        self.out.write(exchange.payload)

    def render(self, exchange: Exchange, outcome: Optional[VerificationOutcome] = None) -> None:
        """
        Render an exchange.

        Args:
            exchange: Exchange to print
            outcome: Verification outcome, when verification was requested
        """
        if outcome is not None:
            self.render_verification(exchange, outcome)
        self.render_headers(exchange)
        self.render_payload(exchange)
        self.out.flush()


def _json_value(value: Any) -> Any:
    if isinstance(value, bytes):
        return base64.b64encode(value).decode('ascii')
    return value


def signature_parameters(exchange: Exchange) -> Dict[str, Any]:
    """
    Parameters of the first signature in the exchange's Signature header.

    Byte-sequence values are base64 encoded. An unparseable header yields
    an empty mapping.
    """
    try:
        items = parse_parameterised_list(exchange.signature_header_value)
    except StructuredHeaderError as e:
        logger.warning(f"Could not parse signature header: {e}")
        return {}
    return {name: _json_value(value) for name, value in items[0].params.items()}


@dataclass
class StructuredRecord:
    """
    Machine-readable projection of an exchange.

    The field set is chosen here rather than derived from Exchange, so
    Valid, Payload and SignatureHeaderValue always hold the values computed
    for the record and never the exchange's raw attributes. Payload is always
    written as an empty array.
    """
    Valid: bool
    SignatureHeaderValue: Dict[str, Any]
    Version: str
    RequestURI: str
    RequestMethod: str
    RequestHeaders: Dict[str, str]
    ResponseStatus: int
    ResponseHeaders: Dict[str, str]

    @classmethod
    def from_exchange(cls, exchange: Exchange, valid: bool) -> 'StructuredRecord':
        return cls(
            Valid=valid,
            SignatureHeaderValue=signature_parameters(exchange),
            Version=exchange.version.value,
            RequestURI=exchange.request_uri,
            RequestMethod=exchange.request_method,
            RequestHeaders=dict(sorted(exchange.request_headers.items())),
            ResponseStatus=exchange.response_status,
            ResponseHeaders=dict(sorted(exchange.response_headers.items())),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            'Valid': self.Valid,
            'Payload': [],
            'SignatureHeaderValue': self.SignatureHeaderValue,
            'Version': self.Version,
            'RequestURI': self.RequestURI,
            'RequestMethod': self.RequestMethod,
            'RequestHeaders': self.RequestHeaders,
            'ResponseStatus': self.ResponseStatus,
            'ResponseHeaders': self.ResponseHeaders,
        }

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), indent=2)


class StructuredRenderer:
    """JSON rendering written to a binary stream"""

    def __init__(
        self,
        out: BinaryIO,
        cert_source: Optional[CertificateSource] = None,
        orchestrator: Optional[VerificationOrchestrator] = None
    ):
        self.out = out
        self.cert_source = cert_source
        self.orchestrator = orchestrator or VerificationOrchestrator()

    def evaluate(self, exchange: Exchange, at_time: Optional[datetime] = None) -> VerificationOutcome:
        """Run a verification whose narration is discarded"""
        if self.cert_source is None:
            raise ValueError("StructuredRenderer needs a certificate source to verify")
        return self.orchestrator.verify(exchange, self.cert_source, at_time, DiscardSink())

    def render(
        self,
        exchange: Exchange,
        outcome: Optional[VerificationOutcome] = None,
        at_time: Optional[datetime] = None
    ) -> StructuredRecord:
        """
        Render an exchange as JSON.

        Args:
            exchange: Exchange to print (its payload is never adopted or emitted)
            outcome: Outcome of an evaluation made with a discarding sink;
                evaluated here when omitted
            at_time: Instant for validity checks when evaluating here

        Returns:
            StructuredRecord: The record that was written
        """
        if outcome is None:
            outcome = self.evaluate(exchange, at_time)
        record = StructuredRecord.from_exchange(exchange, outcome.valid)
        self.out.write(record.to_json().encode('utf-8') + b"\n")
        self.out.flush()
        return record
