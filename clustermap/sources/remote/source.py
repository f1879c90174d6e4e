from __future__ import annotations

import httpx

from clustermap.sources.base import CsvSource, SourceError


class RemoteCsvSource(CsvSource):
    source_name = "remote"

    def __init__(
        self,
        url: str,
        timeout_seconds: float = 20.0,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self.url = url
        self.timeout_seconds = timeout_seconds
        self.transport = transport

    def fetch_text(self) -> str:
        try:
            with httpx.Client(
                timeout=self.timeout_seconds,
                follow_redirects=True,
                transport=self.transport,
            ) as client:
                response = client.get(self.url)
                response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            # Only 5xx responses are retried.
            status = exc.response.status_code
            raise SourceError(f"Fetching {self.url} failed: {exc}", retryable=not 400 <= status < 500) from exc
        except httpx.HTTPError as exc:
            raise SourceError(f"Fetching {self.url} failed: {exc}") from exc
        return response.text.lstrip("\ufeff")
