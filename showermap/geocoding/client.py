"""
Nominatim search client.

Provides throttled, retried address lookups:
- One shared RequestThrottle holds every request (first tries and retries
  alike) to the provider's fair-use interval
- Failed requests are retried with incrementing backoff via tenacity
- Transport errors and bad statuses surface as NetworkFailure once retries
  are exhausted
"""

import time
from typing import Any, Callable, Optional

import httpx
from loguru import logger

from showermap.config import settings
from showermap.utils.http import RequestThrottle, build_retrying, fetch_json


class NominatimClient:
    """
    Address search against a Nominatim-compatible endpoint.

    Usage:
        with NominatimClient() as client:
            result = client.search("100 Main St, Springfield, IL")
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        user_agent: Optional[str] = None,
        country_codes: Optional[str] = None,
        timeout: Optional[float] = None,
        request_delay: Optional[float] = None,
        max_attempts: Optional[int] = None,
        retry_backoff: Optional[float] = None,
        http_client: Optional[httpx.Client] = None,
        sleep: Callable[[float], None] = time.sleep,
        clock: Callable[[], float] = time.monotonic,
    ):
        """
        Initialize the client. Unset options fall back to GeocoderSettings.

        Args:
            base_url: Search endpoint URL
            user_agent: Identifying User-Agent sent with every request
            country_codes: Comma-separated ISO country filter
            timeout: Request timeout in seconds
            request_delay: Minimum seconds between any two requests
            max_attempts: Attempts per query before giving up
            retry_backoff: Seconds multiplied by the attempt number between retries
            http_client: Optional shared HTTP client
            sleep: Sleep function used for throttling and backoff
            clock: Monotonic clock used for throttling
        """
        config = settings.geocoder

        self.base_url = base_url or config.base_url
        self.user_agent = user_agent or config.user_agent
        self.country_codes = country_codes or config.country_codes
        self.timeout = timeout or config.timeout
        self.max_attempts = max_attempts or config.max_attempts

        self.throttle = RequestThrottle(
            config.request_delay if request_delay is None else request_delay,
            clock=clock,
            sleep=sleep,
        )
        self._retrying = build_retrying(
            self.max_attempts,
            config.retry_backoff if retry_backoff is None else retry_backoff,
            sleep=sleep,
        )

        self._http_client = http_client
        self._owns_client = http_client is None

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()

    @property
    def client(self) -> httpx.Client:
        """Get or create HTTP client."""
        if self._http_client is None:
            self._http_client = httpx.Client(timeout=self.timeout, follow_redirects=True)
            self._owns_client = True
        return self._http_client

    def close(self) -> None:
        if self._owns_client and self._http_client is not None:
            self._http_client.close()
            self._http_client = None

    def _request(self, query: str) -> Any:
        self.throttle.wait()
        return fetch_json(
            self.client,
            self.base_url,
            params={
                "format": "json",
                "limit": 1,
                "addressdetails": 1,
                "countrycodes": self.country_codes,
                "q": query,
            },
            headers={"User-Agent": self.user_agent},
        )

    def search(
        self,
        query: str,
        on_attempt: Optional[Callable[[int], None]] = None,
    ) -> Optional[dict]:
        """
        Look up an address.

        Args:
            query: Free-form address string
            on_attempt: Called with the attempt number before each request

        Returns:
            Top search result, or None when the provider found nothing
            usable (an empty list or a first entry that is not an object)

        Raises:
            NetworkFailure: When every attempt failed
        """
        attempt_number = 0
        for attempt in self._retrying:
            with attempt:
                attempt_number += 1
                if on_attempt:
                    on_attempt(attempt_number)
                results = self._request(query)

        if isinstance(results, list) and results and isinstance(results[0], dict):
            return results[0]

        logger.debug(f"No geocoding result for '{query}'")
        return None
