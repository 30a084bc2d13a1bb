"""
Signed exchange inspection

This module composes a single inspection of a signed exchange:
- Certificate source selection (local override or remote fetch)
- One verification evaluation with a selectable diagnostic sink
- Text or structured rendering of the result
"""

from .sinks import DiagnosticSink, RecordingSink, DiscardSink
from .cert_source import (
    CertificateSource,
    OverrideSource,
    RemoteSource,
    select_cert_source,
)
from .orchestrator import VerificationOutcome, VerificationOrchestrator
from .renderers import (
    TextRenderer,
    StructuredRenderer,
    StructuredRecord,
    signature_parameters,
    header_integrity,
    VALID_SIGNATURE_MESSAGE,
)
from .session import InspectionSession, run

__all__ = [
    # Sinks
    'DiagnosticSink',
    'RecordingSink',
    'DiscardSink',

    # Certificate sources
    'CertificateSource',
    'OverrideSource',
    'RemoteSource',
    'select_cert_source',

    # Verification
    'VerificationOutcome',
    'VerificationOrchestrator',

    # Rendering
    'TextRenderer',
    'StructuredRenderer',
    'StructuredRecord',
    'signature_parameters',
    'header_integrity',
    'VALID_SIGNATURE_MESSAGE',

    # Session
    'InspectionSession',
    'run',
]
