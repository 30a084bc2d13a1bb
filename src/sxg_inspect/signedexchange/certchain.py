"""
Certificate chain decoding for application/cert-chain+cbor resources
"""

from typing import Any, Dict, List

import cbor2
from cryptography import x509

from .types import CertChain, CertChainItem
from ..exceptions import CertChainError

CERT_CHAIN_MAGIC = "\U0001F4DC\u26D3"


def _bytes_field(entry: Dict[Any, Any], name: str, index: int, required: bool = False):
    value = entry.get(name)
    if value is None:
        if required:
            raise CertChainError(f"Cert chain item {index} has no '{name}'", "MISSING_FIELD")
        return None
    if not isinstance(value, bytes):
        raise CertChainError(f"Cert chain item {index} field '{name}' must be a byte string", "INVALID_FIELD")
    return value


def read_cert_chain(data: bytes) -> CertChain:
    """
    Parse an application/cert-chain+cbor resource

    Args:
        data: CBOR bytes

    Returns:
        CertChain: Certificates, leaf first

    Raises:
        CertChainError: If the data is not a valid certificate chain
    """
    try:
        decoded = cbor2.loads(data)
    except (cbor2.CBORDecodeError, ValueError) as e:
        raise CertChainError(f"Failed to decode cert chain: {e}", "INVALID_CBOR")

    if not isinstance(decoded, list) or not decoded:
        raise CertChainError("Cert chain must be a non-empty CBOR array", "INVALID_STRUCTURE")
    if decoded[0] != CERT_CHAIN_MAGIC:
        raise CertChainError("Cert chain does not start with the cert-chain magic", "INVALID_MAGIC")

    items: List[CertChainItem] = []
    for index, entry in enumerate(decoded[1:]):
        if not isinstance(entry, dict):
            raise CertChainError(f"Cert chain item {index} must be a map", "INVALID_STRUCTURE")
        items.append(CertChainItem(
            cert=_bytes_field(entry, 'cert', index, required=True),
            ocsp=_bytes_field(entry, 'ocsp', index),
            sct=_bytes_field(entry, 'sct', index),
        ))

    if not items:
        raise CertChainError("Cert chain contains no certificates", "EMPTY_CHAIN")

    return CertChain(items=items)


def load_leaf_certificate(chain: CertChain) -> x509.Certificate:
    """
    Load the leaf certificate of a chain

    Raises:
        CertChainError: If the leaf is not a DER X.509 certificate
    """
    try:
        return x509.load_der_x509_certificate(chain.leaf.cert)
    except ValueError as e:
        raise CertChainError(f"Invalid leaf certificate: {e}", "INVALID_CERTIFICATE")


def encode_cert_chain(chain: CertChain) -> bytes:
    """Serialize a certificate chain as application/cert-chain+cbor"""
    entries: List[Any] = [CERT_CHAIN_MAGIC]
    for item in chain.items:
        entry: Dict[str, bytes] = {'cert': item.cert}
        if item.ocsp is not None:
            entry['ocsp'] = item.ocsp
        if item.sct is not None:
            entry['sct'] = item.sct
        entries.append(entry)
    return cbor2.dumps(entries, canonical=True)
