from __future__ import annotations

import logging
from dataclasses import asdict
from typing import Any

from clustermap.core.aggregate import aggregate_by_cluster, discover_cluster_ids, scatter_series
from clustermap.core.colors import DEFAULT_PALETTE, ClusterPalette
from clustermap.core.filters import apply_filters
from clustermap.core.models import ClusterAggregate, FilterCriteria, IngestionResult, PropertyRecord
from clustermap.core.presenter import (
    build_chart_payloads,
    build_map_markers,
    property_details,
    summary_text,
)


LOGGER = logging.getLogger(__name__)


class DashboardSession:
    """
    Read-write view state: source records, current criteria and selection.

    Filtered records and aggregates are derived on demand and cached; any change
    to records or criteria drops the cache.
    """

    def __init__(
        self,
        result: IngestionResult | None = None,
        palette: ClusterPalette | None = None,
        cluster_ids: list[int] | None = None,
    ) -> None:
        self.palette = palette or DEFAULT_PALETTE
        self._fixed_cluster_ids = list(cluster_ids) if cluster_ids is not None else None
        self._records: tuple[PropertyRecord, ...] = ()
        self._ingestion: IngestionResult | None = None
        self._criteria = FilterCriteria()
        self._selected: PropertyRecord | None = None
        self._filtered: list[PropertyRecord] | None = None
        self._aggregates: list[ClusterAggregate] | None = None
        if result is not None:
            self.load(result)

    @property
    def records(self) -> tuple[PropertyRecord, ...]:
        return self._records

    @property
    def criteria(self) -> FilterCriteria:
        return self._criteria

    @property
    def selected(self) -> PropertyRecord | None:
        return self._selected

    @property
    def cluster_ids(self) -> list[int]:
        if self._fixed_cluster_ids is not None:
            return list(self._fixed_cluster_ids)
        # Without records, chart the palette clusters at zero.
        return discover_cluster_ids(self._records) or sorted(self.palette.colors)

    @property
    def filtered(self) -> list[PropertyRecord]:
        if self._filtered is None:
            self._filtered = apply_filters(self._records, self._criteria)
        return list(self._filtered)

    @property
    def aggregates(self) -> list[ClusterAggregate]:
        if self._aggregates is None:
            self._aggregates = aggregate_by_cluster(self.filtered, self.cluster_ids)
        return list(self._aggregates)

    def load(self, result: IngestionResult) -> None:
        self._records = tuple(result.records)
        self._ingestion = result
        self._selected = None
        self._invalidate()
        LOGGER.info("Loaded %s records (rows_read=%s)", len(self._records), result.rows_read)

    def set_criteria(self, criteria: FilterCriteria) -> None:
        if criteria != self._criteria:
            self._criteria = criteria
            self._invalidate()

    def update_filter(self, name: str, raw_value: Any) -> FilterCriteria:
        self.set_criteria(self._criteria.with_field(name, raw_value))
        return self._criteria

    def reset_filters(self) -> None:
        self.set_criteria(FilterCriteria())

    def select(self, record: PropertyRecord | None) -> None:
        self._selected = record

    def select_by_name(self, name: str) -> PropertyRecord | None:
        match = next((record for record in self._records if record.name == name), None)
        self._selected = match
        return match

    def snapshot(self) -> dict[str, Any]:
        filtered = self.filtered
        aggregates = self.aggregates
        ingestion = self._ingestion
        return {
            "status": "ok",
            "error": None,
            "summary": summary_text(len(filtered), len(self._records)),
            "criteria": asdict(self._criteria),
            "cluster_ids": self.cluster_ids,
            "markers": build_map_markers(filtered, self.palette, selected=self._selected),
            "aggregates": [asdict(item) for item in aggregates],
            "charts": build_chart_payloads(aggregates, scatter_series(filtered), self.palette),
            "selected": property_details(self._selected, self.palette),
            "ingestion": {
                "rows_read": ingestion.rows_read,
                "rows_defaulted": ingestion.rows_defaulted,
                "rows_skipped": ingestion.rows_skipped,
                "field_defaults": dict(ingestion.field_defaults),
            }
            if ingestion is not None
            else None,
        }

    def _invalidate(self) -> None:
        self._filtered = None
        self._aggregates = None
