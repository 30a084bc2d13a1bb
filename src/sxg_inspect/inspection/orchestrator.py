"""
Verification orchestration

Runs one verification evaluation of an exchange against a certificate
source and packages the result as an immutable VerificationOutcome.
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Callable, Optional, Tuple

from .cert_source import CertificateSource
from .sinks import DiagnosticSink, RecordingSink
from ..exceptions import CertificateResolutionError
from ..signedexchange.types import Exchange
from ..signedexchange.verifier import verify_exchange

logger = logging.getLogger(__name__)

Verifier = Callable[..., Tuple[Optional[bytes], bool]]


@dataclass(frozen=True)
class VerificationOutcome:
    """
    Result of one verification evaluation.

    Attributes:
        valid: Whether a signature was accepted
        decoded_payload: Decoded payload, present only when valid
        diagnostic_trace: Narration recorded during verification
    """
    valid: bool
    decoded_payload: Optional[bytes] = None
    diagnostic_trace: Tuple[str, ...] = ()

    def __post_init__(self):
        """Enforce that a decoded payload accompanies exactly the valid outcomes"""
        if self.valid and self.decoded_payload is None:
            raise ValueError("A valid outcome requires a decoded payload")
        if not self.valid and self.decoded_payload is not None:
            raise ValueError("An invalid outcome cannot carry a decoded payload")


class VerificationOrchestrator:
    """
    Performs verification evaluations.

    The verifier is injectable so that callers can substitute the
    cryptographic check; it is called as
    verifier(exchange, at_time, cert_fetcher, log_sink).
    """

    def __init__(self, verifier: Optional[Verifier] = None):
        self.verifier = verifier or verify_exchange
        self.evaluations = 0

    def verify(
        self,
        exchange: Exchange,
        cert_source: CertificateSource,
        at_time: Optional[datetime] = None,
        log_sink: Optional[DiagnosticSink] = None
    ) -> VerificationOutcome:
        """
        Evaluate the exchange's signature once.

        Certificate resolution failures do not propagate; they produce an
        invalid outcome with the reason in the trace.

        Args:
            exchange: Exchange to verify (not modified)
            cert_source: Certificate source used for cert-url lookups
            at_time: Instant for validity checks (now when omitted)
            log_sink: Narration destination (a new RecordingSink when omitted)

        Returns:
            VerificationOutcome: The outcome
        """
        if at_time is None:
            at_time = datetime.now(timezone.utc)
        if log_sink is None:
            log_sink = RecordingSink()

        self.evaluations += 1
        logger.debug(f"Verifying exchange for {exchange.request_uri} at {at_time.isoformat()}")

        try:
            decoded_payload, valid = self.verifier(exchange, at_time, cert_source.resolve, log_sink)
        except CertificateResolutionError as e:
            log_sink.write(f"Certificate resolution failed: {e}")
            decoded_payload, valid = None, False

        if not valid:
            decoded_payload = None
        elif decoded_payload is None:
            decoded_payload = b""

        trace = tuple(getattr(log_sink, 'lines', ()))
        logger.info(f"Verification of {exchange.request_uri}: {'valid' if valid else 'invalid'}")
        return VerificationOutcome(valid=bool(valid), decoded_payload=decoded_payload, diagnostic_trace=trace)
