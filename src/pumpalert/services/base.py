"""Shared HTTP transport for the feed fetchers.

Every request gets at most ``max_retries`` attempts with a fixed pause in
between. Rate limiting, server errors and connection failures are retried;
any other 4xx is final on the first response.
"""

import asyncio
from typing import Any

import httpx
import structlog

from pumpalert.constants.polling import (
    FETCH_MAX_RETRIES,
    FETCH_RETRY_DELAY_SECONDS,
    REQUEST_TIMEOUT_SECONDS,
)
from pumpalert.core.exceptions import ExternalServiceError

log = structlog.get_logger(__name__)

RATE_LIMITED = 429


def is_retryable_status(status_code: int) -> bool:
    """True for statuses worth another attempt (429 and 5xx)."""
    return status_code == RATE_LIMITED or status_code >= 500


class BaseAPIClient:
    """Feed client base with a bounded, fixed-delay retry loop.

    The httpx client is created on the first request and recreated if a
    caller closed it, so one instance can live for the whole process.

    Attributes:
        base_url: Prefix for every request path.
        timeout: Per-request timeout in seconds.
        headers: Headers sent with every request.
        max_retries: Attempts per request, including the first.
        retry_delay: Pause between attempts in seconds.

    Example:
        client = BaseAPIClient(base_url="https://api.dexscreener.com")
        try:
            response = await client.get("/token-profiles/latest/v1")
        finally:
            await client.close()
    """

    SERVICE_NAME = "http"

    def __init__(
        self,
        base_url: str,
        timeout: float = REQUEST_TIMEOUT_SECONDS,
        headers: dict[str, str] | None = None,
        max_retries: int = FETCH_MAX_RETRIES,
        retry_delay: float = FETCH_RETRY_DELAY_SECONDS,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        if max_retries < 1:
            raise ValueError("max_retries must be at least 1")

        self.base_url = base_url
        self.timeout = timeout
        self.headers = headers or {}
        self.max_retries = max_retries
        self.retry_delay = retry_delay
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    async def _get_client(self) -> httpx.AsyncClient:
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                base_url=self.base_url,
                timeout=self.timeout,
                headers=self.headers,
                transport=self._transport,
            )
            log.debug("http_client_opened", service=self.SERVICE_NAME)
        return self._client

    async def close(self) -> None:
        """Release the underlying connection pool."""
        if self._client is not None:
            await self._client.aclose()
            self._client = None
            log.debug("http_client_closed", service=self.SERVICE_NAME)

    async def _request(self, method: str, path: str, **kwargs: Any) -> httpx.Response:
        """Send one request, retrying transient failures.

        Args:
            method: HTTP method.
            path: Path relative to ``base_url``.
            **kwargs: Passed through to ``httpx.AsyncClient.request``.

        Returns:
            The first 2xx response.

        Raises:
            ExternalServiceError: On a non-retryable status, or once every
                attempt has failed.
        """
        client = await self._get_client()
        last_error: Exception | None = None

        for attempt in range(1, self.max_retries + 1):
            try:
                response = await client.request(method, path, **kwargs)
                response.raise_for_status()
                return response
            except httpx.HTTPStatusError as e:
                status_code = e.response.status_code
                if not is_retryable_status(status_code):
                    log.warning(
                        "fetch_rejected",
                        service=self.SERVICE_NAME,
                        path=path,
                        status_code=status_code,
                    )
                    raise ExternalServiceError(
                        service=self.SERVICE_NAME,
                        message=str(e),
                        status_code=status_code,
                    ) from e
                last_error = e
                log.warning(
                    "fetch_attempt_failed",
                    service=self.SERVICE_NAME,
                    path=path,
                    status_code=status_code,
                    attempt=attempt,
                    max_retries=self.max_retries,
                )
            except httpx.RequestError as e:
                last_error = e
                log.warning(
                    "fetch_attempt_failed",
                    service=self.SERVICE_NAME,
                    path=path,
                    error=str(e),
                    attempt=attempt,
                    max_retries=self.max_retries,
                )

            if attempt < self.max_retries:
                await asyncio.sleep(self.retry_delay)

        log.error(
            "fetch_exhausted",
            service=self.SERVICE_NAME,
            method=method,
            path=path,
            max_retries=self.max_retries,
        )
        raise ExternalServiceError(
            service=self.SERVICE_NAME,
            message=f"Max retries ({self.max_retries}) exceeded: {last_error}",
        )

    async def get(self, path: str, **kwargs: Any) -> httpx.Response:
        return await self._request("GET", path, **kwargs)
