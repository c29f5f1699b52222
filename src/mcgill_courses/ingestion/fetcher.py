"""
Fetcher Module - HTTP GET with bounded retries and fixed backoff.
=================================================================

Every page the loader reads goes through ``Fetcher.fetch``:
- One requests session per worker thread
- Transport failures and HTTP error statuses are retried
- A fixed delay between attempts (no exponential backoff, no jitter)
- ``FetchExhausted`` once the retry budget is spent
"""

import threading
from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional

import requests
from tenacity import (
    RetryError,
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_fixed,
)

from mcgill_courses.shared.config import get_settings
from mcgill_courses.shared.errors import FetchExhausted, TransientFetchError
from mcgill_courses.shared.logging import get_logger

logger = get_logger(__name__)


# ─────────────────────────────────────────────────────────────────────────────
# Data Classes
# ─────────────────────────────────────────────────────────────────────────────


@dataclass
class FetcherStats:
    """Statistics for a fetch session."""

    total_requests: int = 0
    successful: int = 0
    failed_attempts: int = 0
    exhausted: int = 0
    total_bytes: int = 0
    start_time: datetime = field(default_factory=datetime.now)

    @property
    def success_rate(self) -> float:
        """Share of attempts that returned a body."""
        attempts = self.successful + self.failed_attempts
        if attempts == 0:
            return 1.0
        return self.successful / attempts


# ─────────────────────────────────────────────────────────────────────────────
# Fetcher Class
# ─────────────────────────────────────────────────────────────────────────────


class Fetcher:
    """
    Retrying HTTP fetcher, safe to share between worker threads.

    Example:
        >>> with Fetcher(retries=3, retry_delay=1.0) as fetcher:
        ...     html = fetcher.fetch("https://www.mcgill.ca/study/2023-2024/courses/search")
    """

    def __init__(
        self,
        user_agent: Optional[str] = None,
        retries: Optional[int] = None,
        retry_delay: Optional[float] = None,
        timeout: Optional[int] = None,
    ):
        """
        Initialize the fetcher.

        Args:
            user_agent: User agent string
            retries: Retries after the first failed attempt
            retry_delay: Seconds to wait between attempts
            timeout: Request timeout in seconds
        """
        settings = get_settings()
        loader_config = settings.loader

        self.user_agent = user_agent or settings.get_effective_user_agent()
        self.retries = retries if retries is not None else loader_config.retries
        self.retry_delay = retry_delay if retry_delay is not None else loader_config.retry_delay
        self.timeout = timeout if timeout is not None else loader_config.timeout

        self._local = threading.local()
        self._sessions: list[requests.Session] = []
        self._lock = threading.Lock()
        self.stats = FetcherStats()

        logger.debug(
            f"Fetcher initialized: retries={self.retries}, "
            f"retry_delay={self.retry_delay}s, timeout={self.timeout}s"
        )

    @property
    def session(self) -> requests.Session:
        """Get or create the requests session of the calling thread."""
        session = getattr(self._local, "session", None)
        if session is None:
            session = requests.Session()
            session.headers.update(
                {
                    "User-Agent": self.user_agent,
                    "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
                    "Accept-Language": "en-US,en;q=0.5",
                }
            )
            self._local.session = session
            with self._lock:
                self._sessions.append(session)
        return session

    def _get(self, url: str) -> str:
        """Make a single attempt."""
        with self._lock:
            self.stats.total_requests += 1

        try:
            response = self.session.get(url, timeout=self.timeout)
            response.raise_for_status()
        except requests.RequestException as e:
            with self._lock:
                self.stats.failed_attempts += 1
            raise TransientFetchError(url, e) from e

        with self._lock:
            self.stats.successful += 1
            self.stats.total_bytes += len(response.content)

        return response.text

    def fetch(self, url: str, max_retries: Optional[int] = None) -> str:
        """
        Fetch a URL, retrying failed attempts with a fixed delay.

        Args:
            url: URL to fetch
            max_retries: Override of the configured retry count

        Returns:
            The response body of the first successful attempt

        Raises:
            FetchExhausted: If every attempt failed
        """
        retries = self.retries if max_retries is None else max_retries
        attempts = retries + 1

        @retry(
            retry=retry_if_exception_type(TransientFetchError),
            stop=stop_after_attempt(attempts),
            wait=wait_fixed(self.retry_delay),
            before_sleep=lambda retry_state: logger.warning(
                f"Retry {retry_state.attempt_number}/{retries} for {url}: "
                f"{retry_state.outcome.exception()}"
            ),
        )
        def _get_with_retry() -> str:
            return self._get(url)

        try:
            return _get_with_retry()
        except RetryError as e:
            logger.error(f"Failed to fetch {url} after {attempts} attempts")
            with self._lock:
                self.stats.exhausted += 1
            raise FetchExhausted(url, attempts) from e.last_attempt.exception()

    def get_stats(self) -> FetcherStats:
        """Get fetch statistics."""
        return self.stats

    def close(self) -> None:
        """Close every session opened by this fetcher."""
        with self._lock:
            for session in self._sessions:
                session.close()
            self._sessions.clear()
        self._local = threading.local()

    def __enter__(self) -> "Fetcher":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:  # type: ignore[no-untyped-def]
        self.close()


# ─────────────────────────────────────────────────────────────────────────────
# Convenience Functions
# ─────────────────────────────────────────────────────────────────────────────


def fetch(url: str, max_retries: Optional[int] = None) -> str:
    """
    Convenience function to fetch a single URL with the configured settings.
    """
    with Fetcher() as fetcher:
        return fetcher.fetch(url, max_retries=max_retries)
