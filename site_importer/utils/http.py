"""
HTTP utilities for the source adapters.

Provides async HTTP requests with retry logic, rate limiting awareness,
and proper error handling.
"""

import httpx
from loguru import logger
from tenacity import (
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from site_importer.config import settings


# Default headers for requests
DEFAULT_HEADERS = {
    "User-Agent": settings.importer.user_agent,
    "Accept": "application/json, */*",
}


class HTTPError(Exception):
    """Custom HTTP error with status code."""

    def __init__(self, message: str, status_code: int = None, response: httpx.Response = None):
        super().__init__(message)
        self.status_code = status_code
        self.response = response


class RateLimitError(HTTPError):
    """Raised when rate limited by a data source."""
    pass


async def send_request(
    client: httpx.AsyncClient,
    url: str,
    method: str = "GET",
    headers: dict | None = None,
    params: dict | None = None,
    data: dict | None = None,
    timeout: float | None = None,
) -> httpx.Response:
    """
    Send a single HTTP request and raise on error statuses.

    Args:
        client: Shared async HTTP client
        url: URL to fetch
        method: HTTP method (GET, POST, etc.)
        headers: Additional headers to include
        params: Query parameters
        data: Form data for POST requests (application/x-www-form-urlencoded)
        timeout: Request timeout in seconds (client default when omitted)

    Returns:
        httpx.Response object

    Raises:
        HTTPError: For HTTP errors (4xx, 5xx)
        RateLimitError: When rate limited (429)
        httpx.TransportError: On timeouts and connection failures
    """
    request_headers = {**DEFAULT_HEADERS, **(headers or {})}
    extra = {"timeout": timeout} if timeout is not None else {}

    logger.debug(f"Fetching {method} {url}")

    response = await client.request(
        method=method,
        url=url,
        headers=request_headers,
        params=params,
        data=data,
        **extra,
    )

    if response.status_code == 429:
        retry_after = response.headers.get("Retry-After", "60")
        raise RateLimitError(
            f"Rate limited by {url}. Retry after {retry_after}s",
            status_code=429,
            response=response,
        )

    if response.status_code >= 400:
        raise HTTPError(
            f"HTTP {response.status_code} for {url}: {response.text[:200]}",
            status_code=response.status_code,
            response=response,
        )

    logger.debug(f"Fetched {url} ({response.status_code}, {len(response.content)} bytes)")
    return response


@retry(
    stop=stop_after_attempt(settings.importer.http_max_retries),
    wait=wait_exponential(multiplier=settings.importer.http_retry_delay, min=1, max=60),
    retry=retry_if_exception_type((httpx.TimeoutException, httpx.ConnectError)),
    reraise=True,
)
async def fetch_with_retry(client: httpx.AsyncClient, url: str, **kwargs) -> httpx.Response:
    """
    Send a request with automatic retry on transient transport failures.

    Accepts the same keyword arguments as send_request(). HTTP error statuses
    are not retried.
    """
    return await send_request(client, url, **kwargs)
