"""
Shared fixtures: real P-256 keys, self-signed certificates, certificate
chains and signed exchanges built so the verifier runs end to end.
"""

import base64
import hashlib
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Dict, Optional

import cbor2
import pytest
from cryptography import x509
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import ec
from cryptography.x509.oid import NameOID

from sxg_inspect.signedexchange import mice
from sxg_inspect.signedexchange.certchain import encode_cert_chain
from sxg_inspect.signedexchange.types import (
    CertChain,
    CertChainItem,
    Exchange,
    SignatureParams,
    Version,
)
from sxg_inspect.signedexchange.verifier import serialize_signed_message

REQUEST_URL = "https://example.com/index.html"
CERT_URL = "https://example.com/cert.cbor"
VALIDITY_URL = "https://example.com/resource.validity"
SIGNATURE_DATE = 1700000000
SIGNATURE_EXPIRES = SIGNATURE_DATE + 3600
PAYLOAD = b"<!DOCTYPE html>\n<html><body>Hello, signed world!</body></html>\n"


def b64(data: bytes) -> str:
    return base64.b64encode(data).decode('ascii')


def make_certificate_der(key: ec.EllipticCurvePrivateKey, common_name: str = "example.com") -> bytes:
    name = x509.Name([x509.NameAttribute(NameOID.COMMON_NAME, common_name)])
    certificate = (
        x509.CertificateBuilder()
        .subject_name(name)
        .issuer_name(name)
        .public_key(key.public_key())
        .serial_number(x509.random_serial_number())
        .not_valid_before(datetime(2020, 1, 1, tzinfo=timezone.utc))
        .not_valid_after(datetime(2035, 1, 1, tzinfo=timezone.utc))
        .sign(key, hashes.SHA256())
    )
    return certificate.public_bytes(serialization.Encoding.DER)


@dataclass
class SignedExchangeFixture:
    """A serialized exchange together with what it was built from"""
    data: bytes
    payload: bytes
    encoded_payload: bytes
    signature_header_value: str
    header_bytes: bytes


@pytest.fixture(scope="session")
def signing_key():
    return ec.generate_private_key(ec.SECP256R1())


@pytest.fixture(scope="session")
def other_key():
    return ec.generate_private_key(ec.SECP256R1())


@pytest.fixture(scope="session")
def cert_der(signing_key):
    return make_certificate_der(signing_key)


@pytest.fixture(scope="session")
def cert_chain_bytes(cert_der):
    return encode_cert_chain(CertChain(items=[CertChainItem(cert=cert_der, ocsp=b"ocsp-response")]))


@pytest.fixture(scope="session")
def other_cert_chain_bytes(other_key):
    der = make_certificate_der(other_key)
    return encode_cert_chain(CertChain(items=[CertChainItem(cert=der, ocsp=b"ocsp-response")]))


@pytest.fixture
def at_time():
    return datetime.fromtimestamp(SIGNATURE_DATE, tz=timezone.utc) + timedelta(minutes=5)


@pytest.fixture
def cert_file(tmp_path, cert_chain_bytes):
    path = tmp_path / "cert.cbor"
    path.write_bytes(cert_chain_bytes)
    return path


@pytest.fixture
def other_cert_file(tmp_path, other_cert_chain_bytes):
    path = tmp_path / "other-cert.cbor"
    path.write_bytes(other_cert_chain_bytes)
    return path


@pytest.fixture
def make_exchange(signing_key, cert_der):
    """Factory building serialized signed exchanges"""

    def _make(
        payload: bytes = PAYLOAD,
        version: Version = Version.V1B3,
        request_url: str = REQUEST_URL,
        cert_url: str = CERT_URL,
        validity_url: str = VALIDITY_URL,
        date: int = SIGNATURE_DATE,
        expires: int = SIGNATURE_EXPIRES,
        extra_headers: Optional[Dict[str, str]] = None,
        record_size: int = 16,
        key: Optional[ec.EllipticCurvePrivateKey] = None,
        signature_header_value: Optional[str] = None,
        corrupt_payload: bool = False,
    ) -> SignedExchangeFixture:
        encoded, digest = mice.encode(payload, record_size)
        headers = {
            b":status": b"200",
            b"content-type": b"text/html; charset=utf-8",
            b"content-encoding": b"mi-sha256-03",
            b"digest": digest.encode('ascii'),
        }
        for name, value in (extra_headers or {}).items():
            headers[name.encode('ascii')] = value.encode('ascii')
        header_bytes = cbor2.dumps(headers, canonical=True)

        cert_sha256 = hashlib.sha256(cert_der).digest()
        if signature_header_value is None:
            unsigned = Exchange(
                version=version,
                request_uri=request_url,
                request_method="GET",
                response_status=200,
                signature_header_value="",
                payload=encoded,
                signed_headers=header_bytes,
            )
            params = SignatureParams(
                label="sig1",
                sig=b"",
                integrity="digest/mi-sha256-03",
                cert_url=cert_url,
                cert_sha256=cert_sha256,
                validity_url=validity_url,
                date=date,
                expires=expires,
            )
            message = serialize_signed_message(unsigned, params)
            sig = (key or signing_key).sign(message, ec.ECDSA(hashes.SHA256()))
            signature_header_value = (
                f'sig1; sig=*{b64(sig)}*; integrity="digest/mi-sha256-03"; '
                f'cert-url="{cert_url}"; cert-sha256=*{b64(cert_sha256)}*; '
                f'validity-url="{validity_url}"; date={date}; expires={expires}'
            )

        wire_payload = encoded
        if corrupt_payload:
            wire_payload = encoded[:-1] + bytes([encoded[-1] ^ 0xFF])

        url_bytes = request_url.encode('utf-8')
        sig_bytes = signature_header_value.encode('ascii')
        data = b"".join([
            version.magic,
            len(url_bytes).to_bytes(2, 'big'),
            url_bytes,
            len(sig_bytes).to_bytes(3, 'big'),
            len(header_bytes).to_bytes(3, 'big'),
            sig_bytes,
            header_bytes,
            wire_payload,
        ])
        return SignedExchangeFixture(
            data=data,
            payload=payload,
            encoded_payload=wire_payload,
            signature_header_value=signature_header_value,
            header_bytes=header_bytes,
        )

    return _make


@pytest.fixture
def signed_exchange(make_exchange):
    return make_exchange()


@pytest.fixture
def exchange_file(tmp_path, signed_exchange):
    path = tmp_path / "example.sxg"
    path.write_bytes(signed_exchange.data)
    return path
