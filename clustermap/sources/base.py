from __future__ import annotations

import logging
import time
from abc import ABC, abstractmethod


LOGGER = logging.getLogger(__name__)


class SourceError(Exception):
    """The CSV could not be fetched or read."""

    def __init__(self, message: str, retryable: bool = True) -> None:
        super().__init__(message)
        self.retryable = retryable


class CsvSource(ABC):
    source_name: str
    retryable: bool = True

    @abstractmethod
    def fetch_text(self) -> str:
        """Return the raw CSV text."""


def fetch_with_retry(source: CsvSource, max_attempts: int = 3, backoff_seconds: float = 2.0) -> str:
    last_error: SourceError | None = None
    if not source.retryable:
        max_attempts = 1
    for attempt in range(1, max_attempts + 1):
        try:
            return source.fetch_text()
        except SourceError as exc:
            last_error = exc
            if not exc.retryable or attempt >= max_attempts:
                break
            wait_seconds = attempt * backoff_seconds
            LOGGER.warning(
                "Source retry source=%s attempt=%s/%s wait=%ss error=%s",
                source.source_name,
                attempt,
                max_attempts,
                wait_seconds,
                exc,
            )
            time.sleep(wait_seconds)
    if last_error:
        raise last_error
    raise SourceError(f"No fetch attempted for source={source.source_name}")
