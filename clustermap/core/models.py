from __future__ import annotations

import math
from dataclasses import dataclass, field, replace
from typing import Any


CSV_COLUMNS = (
    "name",
    "url",
    "bedrooms",
    "bathrooms",
    "floors",
    "land_area",
    "building_area",
    "longitude",
    "latitude",
    "price",
    "cluster",
)


@dataclass(slots=True, frozen=True)
class PropertyRecord:
    name: str
    url: str | None
    bedrooms: int
    bathrooms: int
    floors: int
    land_area: float  # m2
    building_area: float  # m2
    longitude: float | None
    latitude: float | None
    price: float
    cluster: int

    @property
    def is_mappable(self) -> bool:
        return is_number(self.latitude) and is_number(self.longitude)


@dataclass(slots=True, frozen=True)
class FilterCriteria:
    cluster: int | None = None  # None = all clusters
    min_price: float | None = None
    max_price: float | None = None
    min_bedrooms: int | None = None

    def with_field(self, name: str, raw_value: Any) -> FilterCriteria:
        """
        Return a copy with exactly one field replaced from a raw UI value.
        """
        if name not in CRITERIA_FIELDS:
            raise ValueError(f"Unknown filter field: {name}")
        return replace(self, **{name: parse_criterion(name, raw_value)})


CRITERIA_FIELDS = ("cluster", "min_price", "max_price", "min_bedrooms")
MATCH_ALL_TOKENS = frozenset({"", "all", "any"})


@dataclass(slots=True, frozen=True)
class ClusterAggregate:
    cluster_id: int
    count: int
    mean_price: float = 0.0
    mean_land_area: float = 0.0
    mean_building_area: float = 0.0
    mean_bedrooms: float = 0.0
    mean_bathrooms: float = 0.0


@dataclass(slots=True, frozen=True)
class ScatterPoint:
    land_area: float
    price: float
    cluster: int


@dataclass(slots=True)
class IngestionResult:
    records: list[PropertyRecord]
    rows_read: int
    rows_defaulted: int = 0
    rows_skipped: int = 0
    field_defaults: dict[str, int] = field(default_factory=dict)

    @property
    def is_clean(self) -> bool:
        return self.rows_defaulted == 0 and self.rows_skipped == 0


def parse_criterion(name: str, raw: Any) -> int | float | None:
    """
    Normalize one filter criterion; anything that is not a finite number means "inactive".
    """
    if isinstance(raw, str) and raw.strip().lower() in MATCH_ALL_TOKENS:
        return None
    value = safe_float(raw)
    if value is None:
        return None
    if name == "cluster":
        return int(value) if value.is_integer() else None
    if name == "min_bedrooms":
        return int(math.ceil(value))
    return value


def is_number(value: Any) -> bool:
    if value is None or isinstance(value, bool):
        return False
    return isinstance(value, (int, float)) and not math.isnan(value)


def safe_float(value: Any) -> float | None:
    if value is None or isinstance(value, bool):
        return None
    try:
        parsed = float(value.strip()) if isinstance(value, str) else float(value)
    except (TypeError, ValueError):
        return None
    return parsed if math.isfinite(parsed) else None
