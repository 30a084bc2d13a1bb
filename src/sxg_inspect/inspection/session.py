"""
Inspection session

Composes one inspection: load the exchange, choose a certificate source,
evaluate the signature when the output mode calls for it, and run exactly
one renderer.
"""

import io
import logging
import sys
from datetime import datetime, timezone
from typing import BinaryIO, Callable, Optional

from .cert_source import CertFetcher, CertificateSource, select_cert_source
from .orchestrator import VerificationOrchestrator, VerificationOutcome
from .renderers import StructuredRenderer, TextRenderer
from .sinks import DiscardSink, RecordingSink
from ..config import InspectConfig
from ..exceptions import LoadError
from ..signedexchange.reader import read_exchange
from ..signedexchange.types import Exchange

logger = logging.getLogger(__name__)


class InspectionSession:
    """
    One inspection of one signed exchange.

    Output is assembled in memory and written to the output stream only
    after every stage has completed, so a fatal error leaves the stream
    untouched.
    """

    def __init__(
        self,
        config: InspectConfig,
        out: Optional[BinaryIO] = None,
        stdin: Optional[BinaryIO] = None,
        orchestrator: Optional[VerificationOrchestrator] = None,
        fetcher: Optional[CertFetcher] = None,
        clock: Optional[Callable[[], datetime]] = None
    ):
        """
        Initialize the session.

        Args:
            config: Inspection configuration
            out: Binary output stream (stdout by default)
            stdin: Binary input stream used when no input path is configured
            orchestrator: Verification orchestrator
            fetcher: Remote certificate fetcher (HTTP by default)
            clock: Source of the verification instant
        """
        self.config = config
        self.out = out if out is not None else sys.stdout.buffer
        self.stdin = stdin if stdin is not None else sys.stdin.buffer
        self.orchestrator = orchestrator or VerificationOrchestrator()
        self.fetcher = fetcher
        self.clock = clock or (lambda: datetime.now(timezone.utc))

    def load(self) -> Exchange:
        """
        Open and decode the input.

        Raises:
            LoadError: If the input cannot be opened or decoded
        """
        path = self.config.input_path
        if path is None:
            logger.debug("Reading signed exchange from standard input")
            return read_exchange(self.stdin)

        try:
            with open(path, 'rb') as f:
                exchange = read_exchange(f)
        except OSError as e:
            raise LoadError(f"could not open {path}: {e}", "FILE_ERROR", {'path': path})
        logger.info(f"Loaded {exchange.version.value} exchange for {exchange.request_uri} from {path}")
        return exchange

    def cert_source(self) -> CertificateSource:
        """Build the session's certificate source"""
        return select_cert_source(self.config.cert_path, self.fetcher, self.config.fetch)

    def verify(self, exchange: Exchange, cert_source: CertificateSource, structured: bool) -> VerificationOutcome:
        """Evaluate once, narrating only for text output"""
        sink = DiscardSink() if structured else RecordingSink()
        return self.orchestrator.verify(exchange, cert_source, self.clock(), sink)

    def run(self) -> None:
        """
        Run the session.

        Raises:
            LoadError: If the input cannot be loaded
            FileError: If the certificate override cannot be read
        """
        exchange = self.load()
        buffer = io.BytesIO()

        if self.config.json_output:
            cert_source = self.cert_source()
            outcome = self.verify(exchange, cert_source, structured=True)
            StructuredRenderer(buffer, cert_source, self.orchestrator).render(exchange, outcome)
        elif self.config.signature_only:
            buffer.write(exchange.signature_header_value.encode('ascii') + b"\n")
        else:
            outcome = None
            if self.config.verify:
                outcome = self.verify(exchange, self.cert_source(), structured=False)
            TextRenderer(buffer).render(exchange, outcome)

        self.out.write(buffer.getvalue())
        self.out.flush()


def run(config: InspectConfig, out: Optional[BinaryIO] = None, stdin: Optional[BinaryIO] = None) -> None:
    """Run one inspection session with default collaborators"""
    InspectionSession(config, out=out, stdin=stdin).run()
