"""Async HTTP client with retry logic.

httpx + tenacity client used to talk to player services.

Features:
- Async HTTP client with connection pooling
- Automatic retry with exponential backoff on timeouts and network errors
- Per-request timeout override
"""

import logging
from typing import Any

import httpx
from tenacity import (
    AsyncRetrying,
    before_sleep_log,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

logger = logging.getLogger(__name__)


# Retry configuration
DEFAULT_MAX_RETRIES = 3
DEFAULT_MIN_WAIT = 1  # seconds
DEFAULT_MAX_WAIT = 10  # seconds

RETRYABLE_ERRORS = (httpx.TimeoutException, httpx.NetworkError)


class AsyncHttpClient:
    """Async HTTP client with retry logic and connection pooling.

    Usage:
        async with AsyncHttpClient() as client:
            data = await client.get_json("http://localhost:3001/info")
    """

    def __init__(
        self,
        timeout: float = 10.0,
        connect_timeout: float = 5.0,
        max_connections: int = 100,
        max_keepalive_connections: int = 20,
        max_retries: int = DEFAULT_MAX_RETRIES,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        """Initialize HTTP client.

        Args:
            timeout: Default total request timeout in seconds
            connect_timeout: Connection timeout in seconds
            max_connections: Maximum concurrent connections
            max_keepalive_connections: Maximum keepalive connections
            max_retries: Attempts per request (1 disables retrying)
            transport: Optional transport (tests pass httpx.MockTransport)
        """
        self._timeout = httpx.Timeout(timeout, connect=connect_timeout)
        self._limits = httpx.Limits(
            max_connections=max_connections,
            max_keepalive_connections=max_keepalive_connections,
        )
        self._max_retries = max_retries
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    async def __aenter__(self) -> "AsyncHttpClient":
        """Async context manager entry."""
        self._client = httpx.AsyncClient(
            timeout=self._timeout,
            limits=self._limits,
            follow_redirects=True,
            transport=self._transport,
        )
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        """Async context manager exit."""
        if self._client:
            await self._client.aclose()
            self._client = None

    @property
    def client(self) -> httpx.AsyncClient:
        """Get the underlying httpx client."""
        if not self._client:
            raise RuntimeError("Client not initialized. Use 'async with' context manager.")
        return self._client

    def _retrying(self, max_retries: int | None = None) -> AsyncRetrying:
        return AsyncRetrying(
            stop=stop_after_attempt(max_retries or self._max_retries),
            wait=wait_exponential(multiplier=1, min=DEFAULT_MIN_WAIT, max=DEFAULT_MAX_WAIT),
            retry=retry_if_exception_type(RETRYABLE_ERRORS),
            before_sleep=before_sleep_log(logger, logging.WARNING),
            reraise=True,
        )

    async def get(
        self,
        url: str,
        *,
        max_retries: int | None = None,
        **kwargs,
    ) -> httpx.Response:
        """GET request with retry.

        Args:
            url: Request URL
            max_retries: Override the client-wide attempt count
            **kwargs: Additional httpx request arguments (params, timeout, ...)

        Returns:
            HTTP response

        Raises:
            httpx.TimeoutException, httpx.NetworkError after the last attempt,
            httpx.HTTPStatusError on a non-2xx response (not retried)
        """
        async for attempt in self._retrying(max_retries):
            with attempt:
                response = await self.client.get(url, **kwargs)
                response.raise_for_status()
        return response

    async def get_json(self, url: str, **kwargs) -> Any:
        """GET request returning JSON.

        Args:
            url: Request URL
            **kwargs: Additional request arguments

        Returns:
            Parsed JSON response
        """
        response = await self.get(url, **kwargs)
        return response.json()
