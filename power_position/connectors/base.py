"""Base connector infrastructure for trade sources.

Provides the TradeSource protocol consumed by the job processor and the
BaseConnector abstract class with:
- Async HTTP client via httpx
- Retry with exponential backoff + jitter via tenacity
- Structured logging via structlog

Exception hierarchy:
- ConnectorError: base for all connector errors
- RateLimitError: API rate limit hit (HTTP 429)
- DataParsingError: response data parse failure
- FetchError: HTTP fetch failure after retries exhausted
"""

import abc
from datetime import date
from typing import Any, Protocol

import httpx
import structlog
from tenacity import (
    AsyncRetrying,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential_jitter,
)

from power_position.core.models import Trade


# ---------------------------------------------------------------------------
# Exception hierarchy
# ---------------------------------------------------------------------------
class ConnectorError(Exception):
    """Base exception for all connector errors."""


class RateLimitError(ConnectorError):
    """Raised when the API returns a 429 rate limit response."""


class DataParsingError(ConnectorError):
    """Raised when response data cannot be parsed into trades."""


class FetchError(ConnectorError):
    """Raised when an HTTP request fails after all retry attempts."""


# ---------------------------------------------------------------------------
# TradeSource protocol
# ---------------------------------------------------------------------------
class TradeSource(Protocol):
    """Anything that can return the trades of a power day."""

    async def get_trades(self, power_day: date) -> list[Trade]:
        ...


# ---------------------------------------------------------------------------
# BaseConnector ABC
# ---------------------------------------------------------------------------
class BaseConnector(abc.ABC):
    """Abstract base class for HTTP trade source connectors.

    Subclasses MUST override:
        SOURCE_NAME: str - identifier used in log context

    Subclasses MAY override:
        MAX_RETRIES: int - retry attempts on failure (default 3)
        TIMEOUT_SECONDS: float - HTTP timeout per request (default 30.0)

    Usage::

        async with MyConnector(base_url) as conn:
            trades = await conn.get_trades(power_day)
    """

    SOURCE_NAME: str = ""

    MAX_RETRIES: int = 3
    TIMEOUT_SECONDS: float = 30.0

    def __init__(
        self,
        base_url: str = "",
        timeout_seconds: float | None = None,
        max_retries: int | None = None,
    ) -> None:
        self.base_url = base_url
        if timeout_seconds is not None:
            self.TIMEOUT_SECONDS = timeout_seconds
        if max_retries is not None:
            self.MAX_RETRIES = max_retries
        self._client: httpx.AsyncClient | None = None
        self.log = structlog.get_logger().bind(connector=self.SOURCE_NAME)

    async def __aenter__(self) -> "BaseConnector":
        """Create and configure the httpx async client."""
        self._client = httpx.AsyncClient(
            base_url=self.base_url,
            timeout=httpx.Timeout(self.TIMEOUT_SECONDS),
        )
        return self

    async def __aexit__(self, *exc: Any) -> None:
        """Close the httpx async client if open."""
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    @property
    def client(self) -> httpx.AsyncClient:
        """Return the active httpx client.

        Raises:
            ConnectorError: If the client has not been initialized via __aenter__.
        """
        if self._client is None:
            raise ConnectorError(
                f"{self.SOURCE_NAME}: HTTP client not initialized. "
                "Use 'async with connector:' context manager."
            )
        return self._client

    async def _request(
        self, method: str, url: str, **kwargs: Any
    ) -> httpx.Response:
        """Execute an HTTP request with tenacity retry logic.

        Uses AsyncRetrying so that instance attributes (MAX_RETRIES) are
        accessible at runtime rather than decoration time.

        Retries on: httpx.HTTPStatusError, httpx.ConnectError, httpx.TimeoutException.
        Backoff: exponential with jitter (initial=1s, max=30s, jitter=5s).

        Raises:
            RateLimitError: If the API returns HTTP 429 on the last attempt.
            FetchError: If all retry attempts are exhausted.
        """
        try:
            async for attempt in AsyncRetrying(
                retry=retry_if_exception_type(
                    (
                        httpx.HTTPStatusError,
                        httpx.ConnectError,
                        httpx.TimeoutException,
                        RateLimitError,
                    )
                ),
                stop=stop_after_attempt(self.MAX_RETRIES),
                wait=wait_exponential_jitter(initial=1, max=30, jitter=5),
                reraise=True,
            ):
                with attempt:
                    self.log.debug(
                        "http_request",
                        method=method,
                        url=url,
                        attempt=attempt.retry_state.attempt_number,
                    )
                    response = await self.client.request(method, url, **kwargs)
                    if response.status_code == 429:
                        raise RateLimitError(
                            f"{self.SOURCE_NAME}: Rate limit exceeded (HTTP 429)"
                        )
                    response.raise_for_status()
                    return response
        except RateLimitError:
            raise
        except httpx.HTTPError as exc:
            raise FetchError(
                f"{self.SOURCE_NAME}: {method} {url} failed after "
                f"{self.MAX_RETRIES} attempt(s): {exc}"
            ) from exc

        # Should not be reached, but satisfies type checker
        raise FetchError(f"{self.SOURCE_NAME}: Request failed after retries")  # pragma: no cover

    # ---------------------------------------------------------------------------
    # Abstract interface
    # ---------------------------------------------------------------------------
    @abc.abstractmethod
    async def get_trades(self, power_day: date) -> list[Trade]:
        """Fetch all trades for a power day.

        Args:
            power_day: The power day to retrieve trades for.

        Returns:
            Trades for the day (possibly empty).

        Raises:
            ConnectorError: If the trades could not be retrieved.
        """
        ...
