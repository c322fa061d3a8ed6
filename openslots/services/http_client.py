"""HTTP client service for downloading schedule documents."""
import httpx
from typing import Optional

from ..config import settings
from ..exceptions import FetchError
from ..utils.logger import logger


class HTTPClient:
    """Async HTTP client for fetching documents."""

    def __init__(
        self,
        timeout: Optional[int] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """Initialize the HTTP client.

        Args:
            timeout: Request timeout in seconds. Defaults to settings.default_timeout
            transport: Optional httpx transport (used by tests)
        """
        self.timeout = timeout or settings.default_timeout
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    async def __aenter__(self):
        """Async context manager entry."""
        self._client = httpx.AsyncClient(
            timeout=self.timeout,
            follow_redirects=True,
            transport=self._transport,
            headers={
                "User-Agent": "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/119.0.0.0 Safari/537.36"
            },
        )
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """Async context manager exit."""
        if self._client:
            await self._client.aclose()

    async def fetch_bytes(self, url: str) -> bytes:
        """Download a document in a single attempt.

        Args:
            url: URL to fetch

        Returns:
            Raw response body

        Raises:
            FetchError: on a non-success status or a transport failure
        """
        if not self._client:
            raise RuntimeError("HTTPClient must be used as an async context manager")

        logger.info(f"[FETCH] Downloading {url}")
        try:
            response = await self._client.get(url)
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            raise FetchError(
                f"PDF download failed: {e.response.status_code} {e.response.reason_phrase}",
                status_code=e.response.status_code,
            ) from e
        except httpx.TimeoutException as e:
            raise FetchError(f"PDF download timed out after {self.timeout} seconds") from e
        except httpx.RequestError as e:
            raise FetchError(f"PDF download failed: {str(e)}") from e

        logger.info(f"[FETCH] Downloaded {len(response.content)} bytes from {url}")
        return response.content


async def fetch_bytes(url: str) -> bytes:
    """Convenience function to download a document.

    Args:
        url: URL to fetch

    Returns:
        Raw response body
    """
    async with HTTPClient() as client:
        return await client.fetch_bytes(url)
