"""Rate-limited HTTP client for legislation sources.

Primary source is Thu Vien Phap Luat (thuvienphapluat.vn); the Official
Gazette (vanban.chinhphu.vn) serves as a fallback. Both are open access, so
no auth is needed, but requests must be spaced out:

 - minimum delay between requests, enforced by a ``RateLimiter`` shared by
   every call that goes through it
 - retry with exponential backoff on 429/5xx and transport errors
 - an identifying User-Agent
"""
from __future__ import annotations

import logging
import threading
import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional

import requests  # type: ignore[import-untyped]

from lexcorpus import config
from lexcorpus.errors import NetworkError

logger = logging.getLogger(__name__)

DEFAULT_HEADERS = {
    'User-Agent': config.USER_AGENT,
    'Accept': 'text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8',
    'Accept-Language': 'vi,en;q=0.5',
}


@dataclass
class FetchResult:
    status: int
    body: str
    content_type: str
    final_url: str

    @property
    def ok(self) -> bool:
        return self.status == 200


class RateLimiter:
    """Enforces a minimum delay between consecutive acquisitions.

    One limiter is meant to be shared by every fetch against the same host.
    ``clock`` and ``sleep`` are injectable so tests can run without waiting.
    """

    def __init__(
        self,
        min_delay_seconds: float,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.min_delay = max(0.0, float(min_delay_seconds))
        self._clock = clock
        self._sleep = sleep
        self._last: Optional[float] = None
        self._lock = threading.Lock()

    def wait(self) -> float:
        """Block until the next request may be sent. Returns seconds slept."""
        with self._lock:
            slept = 0.0
            now = self._clock()
            if self._last is not None:
                elapsed = now - self._last
                if elapsed < self.min_delay:
                    slept = self.min_delay - elapsed
                    self._sleep(slept)
            self._last = self._clock()
            return slept


class Fetcher:
    """Fetch pages politely: one limiter, bounded retries, explicit failures."""

    RETRY_STATUSES = frozenset({429})

    def __init__(
        self,
        limiter: Optional[RateLimiter] = None,
        session: Any = None,
        max_retries: int = config.FETCH_MAX_RETRIES,
        backoff_base: float = config.FETCH_BACKOFF_BASE,
        timeout: float = config.FETCH_TIMEOUT,
        headers: Optional[Dict[str, str]] = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.limiter = limiter or RateLimiter(config.FETCH_MIN_DELAY_MS / 1000.0)
        self.session = session or requests.Session()
        self.max_retries = max(0, int(max_retries))
        self.backoff_base = backoff_base
        self.timeout = timeout
        self.headers = dict(DEFAULT_HEADERS)
        if headers:
            self.headers.update(headers)
        self._sleep = sleep

    def _should_retry(self, status: int) -> bool:
        return status in self.RETRY_STATUSES or status >= 500

    def _backoff(self, attempt: int) -> float:
        return self.backoff_base * (2 ** attempt)

    def fetch(self, url: str) -> FetchResult:
        """GET ``url``; retryable failures are retried up to ``max_retries`` times.

        A 429/5xx that persists past the last retry is returned as-is, as is
        any other non-2xx response. Transport errors that persist raise
        ``NetworkError``.
        """
        self.limiter.wait()
        last_error: Optional[Exception] = None
        for attempt in range(self.max_retries + 1):
            try:
                response = self.session.get(
                    url, headers=self.headers, timeout=self.timeout, allow_redirects=True
                )
            except requests.exceptions.RequestException as e:
                last_error = e
                if attempt < self.max_retries:
                    delay = self._backoff(attempt)
                    logger.warning(f"Network error for {url}: {e}; retrying in {delay:.1f}s")
                    self._sleep(delay)
                    continue
                break

            if self._should_retry(response.status_code) and attempt < self.max_retries:
                delay = self._backoff(attempt)
                logger.warning(f"HTTP {response.status_code} for {url}; retrying in {delay:.1f}s")
                self._sleep(delay)
                continue

            return FetchResult(
                status=response.status_code,
                body=response.text,
                content_type=response.headers.get('content-type', ''),
                final_url=response.url or url,
            )

        raise NetworkError(url, self.max_retries + 1, last_error)


__all__ = ['FetchResult', 'RateLimiter', 'Fetcher']
