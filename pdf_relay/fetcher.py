"""
Upstream PDF retrieval.

One outbound GET per call, bounded by a fixed timeout. No retry, no pooling
across requests: every failure is surfaced to the caller as
UpstreamFetchError carrying the underlying message.
"""

import asyncio
import logging
from typing import Optional

import httpx

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT_SECONDS = 10.0


class UpstreamFetchError(Exception):
    """Raised when the upstream PDF could not be retrieved."""

    def __init__(self, message: str, url: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.url = url
        self.status_code = status_code


def _describe(exc: Exception) -> str:
    # httpx timeouts frequently carry an empty message
    return str(exc) or exc.__class__.__name__


class PdfFetcher:
    """Fetches PDF bytes from an upstream URL with httpx."""

    def __init__(
        self,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.timeout = timeout
        self._transport = transport

    async def fetch(self, url: str) -> bytes:
        """
        Download the document at ``url``.

        Args:
            url: Upstream URL, treated as opaque

        Returns:
            Raw response body

        Raises:
            UpstreamFetchError: on network error, timeout, non-2xx status,
                invalid URL, or any other failure during the fetch
        """
        try:
            # httpx timeouts apply per operation; the deadline covers the whole transfer
            return await asyncio.wait_for(self._get(url), timeout=self.timeout)
        except (asyncio.TimeoutError, httpx.TimeoutException) as e:
            logger.error(f"Upstream timeout after {self.timeout}s for {url}")
            raise UpstreamFetchError(
                f"timeout of {int(self.timeout * 1000)}ms exceeded ({_describe(e)})", url
            ) from e
        except httpx.HTTPStatusError as e:
            logger.error(f"Upstream returned {e.response.status_code} for {url}")
            raise UpstreamFetchError(
                _describe(e), url, status_code=e.response.status_code
            ) from e
        except Exception as e:
            logger.error(f"Upstream fetch failed for {url}: {_describe(e)}")
            raise UpstreamFetchError(_describe(e), url) from e

    async def _get(self, url: str) -> bytes:
        async with httpx.AsyncClient(
            timeout=self.timeout,
            follow_redirects=True,
            transport=self._transport,
        ) as client:
            response = await client.get(url)
            response.raise_for_status()
            return response.content
