from __future__ import annotations

from pathlib import Path

from clustermap.sources.base import CsvSource, SourceError


class LocalFileSource(CsvSource):
    source_name = "file"
    retryable = False

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path)

    def fetch_text(self) -> str:
        try:
            # utf-8-sig also accepts files without a BOM.
            return self.path.read_text(encoding="utf-8-sig")
        except FileNotFoundError as exc:
            raise SourceError(f"CSV file not found: {self.path}") from exc
        except (OSError, UnicodeDecodeError) as exc:
            raise SourceError(f"Could not read {self.path}: {exc}") from exc
