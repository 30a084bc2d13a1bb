"""
Signed exchange format support for sxg-inspect

This package implements the pieces an inspection builds on:
- Decoding of application/signed-exchange b2/b3 resources
- Structured header parsing of the Signature header
- Certificate chain (application/cert-chain+cbor) decoding
- Merkle Integrity (mi-sha256-03) payload decoding
- Remote certificate fetching
- Signature verification
"""

from .types import (
    Version,
    Exchange,
    ParameterisedIdentifier,
    SignatureParams,
    CertChain,
    CertChainItem,
    LogSink,
    MAX_SIGNATURE_LENGTH,
    MAX_HEADER_LENGTH,
    MAX_SIGNATURE_DURATION,
)
from .reader import read_exchange, decode_response_headers
from .structured_header import parse_parameterised_list
from .certchain import read_cert_chain, encode_cert_chain, load_leaf_certificate, CERT_CHAIN_MAGIC
from .fetcher import HttpCertFetcher, default_cert_fetcher, CertFetcher
from .verifier import (
    verify_exchange,
    parse_signatures,
    serialize_signed_message,
    STATEFUL_HEADERS,
)
from . import mice

__all__ = [
    # Types
    'Version',
    'Exchange',
    'ParameterisedIdentifier',
    'SignatureParams',
    'CertChain',
    'CertChainItem',
    'LogSink',
    'MAX_SIGNATURE_LENGTH',
    'MAX_HEADER_LENGTH',
    'MAX_SIGNATURE_DURATION',

    # Decoding
    'read_exchange',
    'decode_response_headers',
    'parse_parameterised_list',
    'read_cert_chain',
    'encode_cert_chain',
    'load_leaf_certificate',
    'CERT_CHAIN_MAGIC',
    'mice',

    # Fetching
    'HttpCertFetcher',
    'default_cert_fetcher',
    'CertFetcher',

    # Verification
    'verify_exchange',
    'parse_signatures',
    'serialize_signed_message',
    'STATEFUL_HEADERS',
]
