from __future__ import annotations

import csv
import io
import logging
from collections import Counter
from enum import Enum
from typing import Any, Iterable, Mapping

from clustermap.core.models import CSV_COLUMNS, IngestionResult, PropertyRecord, safe_float


LOGGER = logging.getLogger(__name__)

INT_FIELDS = ("bedrooms", "bathrooms", "floors", "cluster")
INT_MINIMUMS = {"floors": 1}
FLOAT_FIELDS = ("land_area", "building_area", "price")
COORDINATE_RANGES = {"longitude": 180.0, "latitude": 90.0}
OPTIONAL_COLUMNS = frozenset({"url"})


class IngestionError(Exception):
    """Raw input could not be read as tabular listing data."""


class CoercionPolicy(str, Enum):
    DEFAULT_ZERO = "default"
    REJECT = "reject"

    @classmethod
    def parse(cls, value: str | None, default: CoercionPolicy | None = None) -> CoercionPolicy:
        fallback = default or cls.DEFAULT_ZERO
        if not value:
            return fallback
        needle = value.strip().lower()
        for policy in cls:
            if policy.value == needle or policy.name.lower() == needle:
                return policy
        return fallback


def parse_csv_text(text: str) -> list[dict[str, str]]:
    if text is None or not text.strip():
        raise IngestionError("CSV input is empty.")
    stream = io.StringIO(text.lstrip("\ufeff"), newline="")
    reader = csv.DictReader(stream, strict=True, skipinitialspace=True)
    try:
        header = [column.strip() for column in (reader.fieldnames or [])]
        if not any(header):
            raise IngestionError("CSV header row is missing.")
        missing = [c for c in CSV_COLUMNS if c not in header and c not in OPTIONAL_COLUMNS]
        if missing:
            raise IngestionError(f"CSV is missing required columns: {', '.join(missing)}")
        extra = [c for c in header if c and c not in CSV_COLUMNS]
        if extra:
            LOGGER.info("Ignoring extra CSV columns: %s", ", ".join(extra))
        reader.fieldnames = header

        rows: list[dict[str, str]] = []
        for raw in reader:
            values = [v for k, v in raw.items() if k is not None]
            if all(v is None or not str(v).strip() for v in values):
                continue
            rows.append({k: v for k, v in raw.items() if k in CSV_COLUMNS})
        return rows
    except csv.Error as exc:
        raise IngestionError(f"Malformed CSV near line {reader.line_num}: {exc}") from exc


def ingest_rows(
    rows: Iterable[Mapping[str, Any]],
    policy: CoercionPolicy = CoercionPolicy.DEFAULT_ZERO,
) -> IngestionResult:
    records: list[PropertyRecord] = []
    field_defaults: Counter[str] = Counter()
    rows_read = 0
    rows_defaulted = 0
    rows_skipped = 0

    for row in rows:
        rows_read += 1
        record, failed = _coerce_row(row)
        if failed:
            if policy is CoercionPolicy.REJECT:
                rows_skipped += 1
                LOGGER.debug("Skipping row %s: invalid fields %s", rows_read, ", ".join(failed))
                continue
            rows_defaulted += 1
            field_defaults.update(failed)
        records.append(record)

    result = IngestionResult(
        records=records,
        rows_read=rows_read,
        rows_defaulted=rows_defaulted,
        rows_skipped=rows_skipped,
        field_defaults=dict(field_defaults),
    )
    if not result.is_clean:
        LOGGER.warning(
            "Ingested rows=%s records=%s defaulted=%s skipped=%s field_defaults=%s",
            rows_read,
            len(records),
            rows_defaulted,
            rows_skipped,
            result.field_defaults,
        )
    return result


def ingest_csv_text(text: str, policy: CoercionPolicy = CoercionPolicy.DEFAULT_ZERO) -> IngestionResult:
    return ingest_rows(parse_csv_text(text), policy=policy)


def _coerce_row(row: Mapping[str, Any]) -> tuple[PropertyRecord, list[str]]:
    failed: list[str] = []
    values: dict[str, Any] = {}

    for name in INT_FIELDS:
        value = _safe_count(row.get(name))
        if value is None or value < INT_MINIMUMS.get(name, 0):
            failed.append(name)
            value = 0
        values[name] = value

    for name in FLOAT_FIELDS:
        value = safe_float(row.get(name))
        if value is None or value < 0:
            failed.append(name)
            value = 0.0
        values[name] = value

    # Unusable coordinates keep the record off the map instead of pinning it at (0, 0).
    for name, limit in COORDINATE_RANGES.items():
        value = safe_float(row.get(name))
        if value is not None and not -limit <= value <= limit:
            value = None
        if value is None:
            failed.append(name)
        values[name] = value

    record = PropertyRecord(
        name=_clean_text(row.get("name")) or "",
        url=_clean_text(row.get("url")),
        **values,
    )
    return record, failed


def _clean_text(value: Any) -> str | None:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def _safe_count(value: Any) -> int | None:
    parsed = safe_float(value)
    if parsed is None or parsed < 0 or not parsed.is_integer():
        return None
    return int(parsed)
