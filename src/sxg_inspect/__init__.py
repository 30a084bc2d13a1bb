"""
sxg-inspect
Inspection and signature verification of signed HTTP exchanges
"""

from .version import __version__
from .exceptions import (
    SXGInspectError,
    LoadError,
    CertificateResolutionError,
    FileError,
    FetchError,
    StructuredHeaderError,
    CertChainError,
    IntegrityError,
    ConfigError,
)
from .config import InspectConfig, FetchConfig, LoggingConfig, load_config_file
from .signedexchange import (
    Exchange,
    Version,
    read_exchange,
    verify_exchange,
    parse_parameterised_list,
    read_cert_chain,
    default_cert_fetcher,
)
from .inspection import (
    CertificateSource,
    OverrideSource,
    RemoteSource,
    select_cert_source,
    VerificationOutcome,
    VerificationOrchestrator,
    TextRenderer,
    StructuredRenderer,
    StructuredRecord,
    InspectionSession,
)

__all__ = [
    '__version__',

    # Exceptions
    'SXGInspectError',
    'LoadError',
    'CertificateResolutionError',
    'FileError',
    'FetchError',
    'StructuredHeaderError',
    'CertChainError',
    'IntegrityError',
    'ConfigError',

    # Configuration
    'InspectConfig',
    'FetchConfig',
    'LoggingConfig',
    'load_config_file',

    # Signed exchanges
    'Exchange',
    'Version',
    'read_exchange',
    'verify_exchange',
    'parse_parameterised_list',
    'read_cert_chain',
    'default_cert_fetcher',

    # Inspection
    'CertificateSource',
    'OverrideSource',
    'RemoteSource',
    'select_cert_source',
    'VerificationOutcome',
    'VerificationOrchestrator',
    'TextRenderer',
    'StructuredRenderer',
    'StructuredRecord',
    'InspectionSession',
]
