"""
HTTP utilities for the location pipeline.

Provides request throttling, retry policies and error types shared by
outbound API clients.
"""

import time
from typing import Any, Callable, Optional

import httpx
from loguru import logger
from tenacity import (
    RetryCallState,
    Retrying,
    retry_if_exception_type,
    stop_after_attempt,
    wait_incrementing,
)


# Default headers for requests
DEFAULT_HEADERS = {
    "Accept": "application/json",
}


class NetworkFailure(Exception):
    """A request did not produce a usable response (timeout, transport error, bad status)."""

    def __init__(self, message: str, status_code: int = None, response: httpx.Response = None):
        super().__init__(message)
        self.status_code = status_code
        self.response = response


class HTTPError(NetworkFailure):
    """Non-2xx HTTP response."""
    pass


class RateLimitError(HTTPError):
    """Raised when rate limited by the upstream provider."""
    pass


class RequestThrottle:
    """Enforces a minimum delay between consecutive outbound requests.

    One instance is shared by every request of a client, so the delay holds
    across retries and across different queries alike.
    """

    def __init__(
        self,
        min_interval: float,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.min_interval = min_interval
        self._clock = clock
        self._sleep = sleep
        self._last_request_time: float | None = None

    def wait(self) -> None:
        """Block until the next request is allowed, then claim the slot."""
        if self.min_interval > 0 and self._last_request_time is not None:
            elapsed = self._clock() - self._last_request_time
            if elapsed < self.min_interval:
                self._sleep(self.min_interval - elapsed)

        self._last_request_time = self._clock()


def _log_retry(retry_state: RetryCallState) -> None:
    error = retry_state.outcome.exception() if retry_state.outcome else None
    logger.warning(f"Attempt {retry_state.attempt_number} failed: {error}")


def build_retrying(
    max_attempts: int,
    backoff: float,
    sleep: Callable[[float], None] = time.sleep,
) -> Retrying:
    """
    Build the retry policy for outbound requests.

    Failed attempt n waits n * backoff seconds before attempt n + 1; the last
    failure is re-raised once max_attempts is reached.
    """
    return Retrying(
        stop=stop_after_attempt(max_attempts),
        wait=wait_incrementing(start=backoff, increment=backoff),
        retry=retry_if_exception_type(NetworkFailure),
        before_sleep=_log_retry,
        sleep=sleep,
        reraise=True,
    )


def fetch_json(
    client: httpx.Client,
    url: str,
    params: Optional[dict] = None,
    headers: Optional[dict] = None,
) -> Any:
    """
    GET a URL and decode its JSON body.

    Args:
        client: httpx client to send the request with
        url: URL to fetch
        params: Query parameters
        headers: Additional headers to include

    Returns:
        Decoded JSON payload

    Raises:
        RateLimitError: When rate limited (429)
        HTTPError: For other non-2xx responses or an undecodable body
        NetworkFailure: On timeouts and transport errors
    """
    request_headers = {**DEFAULT_HEADERS, **(headers or {})}

    logger.debug(f"Fetching GET {url} {params or ''}")

    try:
        response = client.get(url, params=params, headers=request_headers)
    except httpx.TransportError as e:
        raise NetworkFailure(f"{type(e).__name__} for {url}: {e}") from e

    if response.status_code == 429:
        retry_after = response.headers.get("Retry-After", "60")
        raise RateLimitError(
            f"Rate limited by {url}. Retry after {retry_after}s",
            status_code=429,
            response=response,
        )

    if not response.is_success:
        raise HTTPError(
            f"HTTP {response.status_code} for {url}: {response.text[:200]}",
            status_code=response.status_code,
            response=response,
        )

    try:
        return response.json()
    except ValueError as e:
        raise HTTPError(
            f"Invalid JSON from {url}: {e}",
            status_code=response.status_code,
            response=response,
        ) from e
