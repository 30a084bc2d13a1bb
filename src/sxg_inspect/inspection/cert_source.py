"""
Certificate sources

A certificate source maps a signature's cert-url to certificate chain
bytes. OverrideSource serves a local file for every URL; RemoteSource
fetches the URL. The choice is made once per session.
"""

import logging
from pathlib import Path
from typing import Callable, Optional, Protocol, Union, runtime_checkable

from ..config import FetchConfig
from ..exceptions import CertificateResolutionError, FetchError, FileError
from ..signedexchange.fetcher import HttpCertFetcher

logger = logging.getLogger(__name__)

CertFetcher = Callable[[str], bytes]


@runtime_checkable
class CertificateSource(Protocol):
    """Protocol for certificate source implementations"""

    def resolve(self, cert_url: str) -> bytes:
        """
        Resolve certificate bytes.

        Args:
            cert_url: URL from the signature's cert-url parameter

        Returns:
            bytes: Certificate chain bytes

        Raises:
            CertificateResolutionError: If the certificate cannot be resolved
        """
        ...


class OverrideSource:
    """Serves certificate bytes loaded once from a local file, ignoring the URL"""

    def __init__(self, path: Union[str, Path]):
        """
        Read the override file.

        Raises:
            FileError: If the file cannot be read
        """
        self.path = str(path)
        try:
            with open(self.path, 'rb') as f:
                self._cert_bytes = f.read()
        except OSError as e:
            raise FileError(f"could not read {self.path}: {e}", path=self.path)
        logger.info(f"Using certificate override from {self.path} ({len(self._cert_bytes)} bytes)")

    def resolve(self, cert_url: str) -> bytes:
        logger.debug(f"Ignoring cert-url {cert_url}; serving override {self.path}")
        return self._cert_bytes


class RemoteSource:
    """Fetches the certificate chain named by the cert-url"""

    def __init__(self, fetcher: Optional[CertFetcher] = None, fetch_config: Optional[FetchConfig] = None):
        self.fetcher = fetcher or HttpCertFetcher(fetch_config)

    def resolve(self, cert_url: str) -> bytes:
        try:
            return self.fetcher(cert_url)
        except CertificateResolutionError:
            raise
        except Exception as e:
            raise FetchError(f"Certificate fetch failed: {e}", details={'url': cert_url})


def select_cert_source(
    cert_path: Optional[str],
    fetcher: Optional[CertFetcher] = None,
    fetch_config: Optional[FetchConfig] = None
) -> CertificateSource:
    """
    Choose the certificate source for a session.

    An override path always wins over remote fetching.

    Args:
        cert_path: Local certificate chain file, if configured
        fetcher: Fetcher used by RemoteSource (HTTP by default)
        fetch_config: Settings for the default HTTP fetcher

    Returns:
        CertificateSource: OverrideSource if cert_path is set, else RemoteSource

    Raises:
        FileError: If the override file cannot be read
    """
    if cert_path:
        return OverrideSource(cert_path)
    logger.info("Certificates will be fetched from each signature's cert-url")
    return RemoteSource(fetcher, fetch_config)
