"""
Retrying HTTP transport for the sentiment backend.

Provides:
- RetryConfig: backoff schedule and which failures are worth retrying
- HTTPClient: httpx.AsyncClient wrapper with bearer auth and retries

Only transport concerns live here. Mapping backend payloads to alerts and
driver snapshots is done by SentimentBackendClient.
"""

import asyncio
import logging
import random
from dataclasses import dataclass, field
from typing import Any

import httpx

logger = logging.getLogger(__name__)

RETRYABLE_STATUS_CODES = frozenset({429, 500, 502, 503, 504})
RETRYABLE_EXCEPTIONS: tuple[type[Exception], ...] = (
    httpx.TimeoutException,
    httpx.ConnectError,
    httpx.ReadError,
)


@dataclass
class RetryConfig:
    """
    Backoff schedule for backend requests.

    The delay before retry ``n`` (0-indexed) is
    ``min(max_backoff_seconds, base_delay * 2**n)`` plus up to
    ``jitter_factor`` of that value at random.

    Lifecycle actions are POSTs. They are not in ``retry_methods`` and are
    sent exactly once, so a commit that succeeded slowly is never repeated.
    """

    max_retries: int = 3
    max_backoff_seconds: float = 60.0
    base_delay: float = 1.0
    jitter_factor: float = 0.1
    retry_methods: frozenset[str] = field(
        default_factory=lambda: frozenset({"GET", "PUT"})
    )

    def calculate_backoff(self, attempt: int) -> float:
        """Seconds to wait after failed attempt number ``attempt`` (0-indexed)."""
        delay = min(self.base_delay * (2**attempt), self.max_backoff_seconds)
        return delay + delay * self.jitter_factor * random.random()

    def attempts_for(self, method: str) -> int:
        """Total attempts allowed for an HTTP method."""
        if method.upper() in self.retry_methods:
            return self.max_retries + 1
        return 1

    def is_retryable_status(self, status_code: int) -> bool:
        """Rate limiting (429) and gateway/server failures (500, 502-504)."""
        return status_code in RETRYABLE_STATUS_CODES

    def is_retryable_exception(self, exc: Exception) -> bool:
        """Timeouts and connection/read failures."""
        return isinstance(exc, RETRYABLE_EXCEPTIONS)


class HTTPClientError(Exception):
    """A backend request failed for good."""

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        response_body: str | None = None,
    ):
        super().__init__(message)
        self.status_code = status_code
        self.response_body = response_body


class RateLimitError(HTTPClientError):
    """The backend kept answering 429 until retries ran out."""


class HTTPClient:
    """
    Async HTTP client for one backend base URL.

    Idempotent methods are retried with backoff on 429/5xx responses and on
    transport errors. Any other 4xx, or the last failed attempt, raises
    HTTPClientError.

    Example:
        async with HTTPClient("http://backend:8080/api", token="...") as client:
            response = await client.get("/alerts/active")
    """

    def __init__(
        self,
        base_url: str = "",
        token: str | None = None,
        retry_config: RetryConfig | None = None,
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.token = token
        self.retry_config = retry_config or RetryConfig()
        self.timeout = timeout
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    async def __aenter__(self) -> "HTTPClient":
        await self.open()
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        await self.close()

    def _default_headers(self) -> dict[str, str]:
        headers = {"Accept": "application/json"}
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        return headers

    async def open(self) -> None:
        """Create the underlying httpx client (no-op when already open)."""
        if self._client is not None:
            return
        self._client = httpx.AsyncClient(
            base_url=self.base_url,
            headers=self._default_headers(),
            timeout=self.timeout,
            transport=self._transport,
        )

    async def close(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def get(self, url: str, params: dict[str, Any] | None = None) -> httpx.Response:
        return await self.request("GET", url, params=params)

    async def post(self, url: str, json_body: dict[str, Any] | None = None) -> httpx.Response:
        """Single-attempt POST."""
        return await self.request("POST", url, json_body=json_body)

    async def put(self, url: str, json_body: dict[str, Any] | None = None) -> httpx.Response:
        return await self.request("PUT", url, json_body=json_body)

    async def _pause(self, url: str, attempt: int, attempts: int, cause: str) -> None:
        backoff = self.retry_config.calculate_backoff(attempt)
        logger.warning(
            "%s from %s (attempt %d/%d), retrying in %.2fs",
            cause, url, attempt + 1, attempts, backoff,
        )
        await asyncio.sleep(backoff)

    async def request(
        self,
        method: str,
        url: str,
        params: dict[str, Any] | None = None,
        json_body: dict[str, Any] | None = None,
    ) -> httpx.Response:
        """
        Send a request, retrying where the method and failure allow it.

        Returns:
            The first response with a status below 400.

        Raises:
            HTTPClientError: Non-retryable status, or retries exhausted.
            RateLimitError: Still rate limited on the last attempt.
            RuntimeError: The client was not opened.
        """
        if self._client is None:
            raise RuntimeError("HTTPClient must be opened before use")

        attempts = self.retry_config.attempts_for(method)
        last_status: int | None = None
        last_body: str | None = None

        for attempt in range(attempts):
            final = attempt == attempts - 1
            try:
                response = await self._client.request(
                    method, url, params=params or None, json=json_body,
                )
            except httpx.HTTPError as e:
                if self.retry_config.is_retryable_exception(e) and not final:
                    await self._pause(url, attempt, attempts, type(e).__name__)
                    continue
                raise HTTPClientError(
                    f"{method} {url} failed after {attempt + 1} attempts: {e}",
                    status_code=last_status,
                ) from e

            status_code = response.status_code
            if status_code < 400:
                return response

            if not self.retry_config.is_retryable_status(status_code):
                raise HTTPClientError(
                    f"{method} {url} returned {status_code}",
                    status_code=status_code,
                    response_body=response.text,
                )

            last_status, last_body = status_code, response.text
            if not final:
                await self._pause(url, attempt, attempts, f"Status {status_code}")
                continue

            error_cls = RateLimitError if status_code == 429 else HTTPClientError
            raise error_cls(
                f"{method} {url} returned {status_code} after {attempt + 1} attempts",
                status_code=status_code,
                response_body=last_body,
            )

        raise HTTPClientError(
            f"{method} {url} failed after {attempts} attempts",
            status_code=last_status,
            response_body=last_body,
        )
