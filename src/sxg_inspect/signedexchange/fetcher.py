"""
Remote certificate fetching

Fetches application/cert-chain+cbor resources named by a signature's
cert-url parameter.
"""

import logging
from typing import Callable, Optional
from urllib.parse import urlparse

import requests

from ..config import FetchConfig
from ..exceptions import FetchError

logger = logging.getLogger(__name__)

CERT_CHAIN_MEDIA_TYPE = "application/cert-chain+cbor"

CertFetcher = Callable[[str], bytes]


class HttpCertFetcher:
    """
    Fetches certificate chains over HTTP(S).

    Instances are callable so they can be passed anywhere a CertFetcher
    is expected.
    """

    def __init__(self, config: Optional[FetchConfig] = None, session: Optional[requests.Session] = None):
        """
        Initialize the fetcher.

        Args:
            config: Fetch settings (defaults apply when omitted)
            session: requests session to reuse
        """
        self.config = config or FetchConfig()
        self.session = session or requests.Session()
        self.session.headers.update({
            'Accept': CERT_CHAIN_MEDIA_TYPE,
            'User-Agent': self.config.user_agent,
        })

    def __call__(self, url: str) -> bytes:
        return self.fetch(url)

    def fetch(self, url: str) -> bytes:
        """
        Fetch the certificate chain at url.

        Args:
            url: Certificate URL

        Returns:
            bytes: Response body

        Raises:
            FetchError: On network errors, non-200 responses or oversize bodies
        """
        parsed = urlparse(url)
        if parsed.scheme not in ('http', 'https') or not parsed.netloc:
            raise FetchError(f"Unsupported certificate URL: {url}", "UNSUPPORTED_URL", details={'url': url})

        limit = self.config.max_cert_chain_size
        try:
            logger.info(f"Fetching certificate chain from {url}")
            response = self.session.get(url, timeout=self.config.timeout, stream=True)
            try:
                if response.status_code != 200:
                    raise FetchError(
                        f"Certificate fetch failed: HTTP {response.status_code}: {response.reason}",
                        "HTTP_ERROR",
                        http_status=response.status_code,
                        details={'url': url}
                    )

                body = bytearray()
                for chunk in response.iter_content(chunk_size=8192):
                    body.extend(chunk)
                    if len(body) > limit:
                        raise FetchError(
                            f"Certificate chain exceeds {limit} bytes",
                            "RESPONSE_TOO_LARGE",
                            http_status=response.status_code,
                            details={'url': url}
                        )
            finally:
                response.close()

        except requests.exceptions.Timeout:
            raise FetchError(f"Request timeout after {self.config.timeout} seconds", "TIMEOUT", details={'url': url})
        except requests.exceptions.ConnectionError as e:
            raise FetchError(f"Connection error: {e}", "CONNECTION_ERROR", details={'url': url})
        except requests.exceptions.RequestException as e:
            raise FetchError(f"Request failed: {e}", "REQUEST_FAILED", details={'url': url})

        logger.debug(f"Fetched {len(body)} bytes from {url}")
        return bytes(body)


def default_cert_fetcher(url: str) -> bytes:
    """Fetch a certificate chain with default settings"""
    return HttpCertFetcher()(url)
