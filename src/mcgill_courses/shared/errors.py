"""
Errors Module - Exception taxonomy for the ingestion pipeline.
==============================================================

- TransientFetchError: one failed HTTP attempt, retried inside the fetcher
- FetchExhausted: the fetcher gave up on a URL
- ExtractionError: required markup is missing from a page
- PermanentExtractionError: a page kept failing extraction after re-fetching
- DuplicateReviewError: a user tried to review the same course twice
"""

from typing import Optional


class PipelineError(Exception):
    """Base class for all pipeline errors."""


class TransientFetchError(PipelineError):
    """A single fetch attempt failed (network error or HTTP error status)."""

    def __init__(self, url: str, cause: Exception):
        self.url = url
        self.cause = cause
        super().__init__(f"Request to {url} failed: {cause}")


class FetchExhausted(PipelineError):
    """All fetch attempts for a URL failed."""

    def __init__(self, url: str, attempts: int):
        self.url = url
        self.attempts = attempts
        super().__init__(f"Giving up on {url} after {attempts} attempts")


RetryExhausted = FetchExhausted


class ExtractionError(PipelineError):
    """Required fields could not be extracted from a page."""

    def __init__(self, message: str, url: Optional[str] = None):
        self.url = url
        super().__init__(message if url is None else f"{message} ({url})")


class PermanentExtractionError(ExtractionError):
    """Extraction kept failing after repeated re-fetches."""

    def __init__(self, url: str, attempts: int, last_error: Optional[Exception] = None):
        self.attempts = attempts
        self.last_error = last_error
        super().__init__(
            f"Extraction failed {attempts} times, last error: {last_error}", url=url
        )


class DuplicateReviewError(PipelineError):
    """A review for this (course, user) pair already exists."""

    def __init__(self, course_id: str, user_id: str):
        self.course_id = course_id
        self.user_id = user_id
        super().__init__(f"User {user_id} has already reviewed {course_id}")
