from __future__ import annotations

import math
from collections import defaultdict
from typing import Any, Iterable, Sequence

from clustermap.core.models import ClusterAggregate, PropertyRecord, ScatterPoint, is_number


MEAN_FIELDS = {
    "mean_price": "price",
    "mean_land_area": "land_area",
    "mean_building_area": "building_area",
    "mean_bedrooms": "bedrooms",
    "mean_bathrooms": "bathrooms",
}


def discover_cluster_ids(records: Iterable[PropertyRecord]) -> list[int]:
    return sorted({record.cluster for record in records})


def aggregate_by_cluster(
    records: Iterable[PropertyRecord],
    cluster_ids: Sequence[int] | None = None,
) -> list[ClusterAggregate]:
    """
    One aggregate per cluster id, in the order given.

    When ``cluster_ids`` is omitted the ids are discovered from ``records``.
    Records whose cluster is not listed are left out of every aggregate;
    a listed cluster without records reports count 0 and zero means.
    """
    groups: dict[int, list[PropertyRecord]] = defaultdict(list)
    for record in records:
        groups[record.cluster].append(record)

    ids = list(cluster_ids) if cluster_ids is not None else sorted(groups)
    out: list[ClusterAggregate] = []
    for cluster_id in ids:
        members = groups.get(cluster_id, [])
        means = {
            attr: mean_of(getattr(record, field_name) for record in members)
            for attr, field_name in MEAN_FIELDS.items()
        }
        out.append(ClusterAggregate(cluster_id=cluster_id, count=len(members), **means))
    return out


def scatter_series(records: Iterable[PropertyRecord]) -> list[ScatterPoint]:
    return [
        ScatterPoint(land_area=float(record.land_area), price=float(record.price), cluster=record.cluster)
        for record in records
        if is_number(record.land_area) and is_number(record.price)
    ]


def total_count(aggregates: Iterable[ClusterAggregate]) -> int:
    return sum(item.count for item in aggregates)


def mean_of(values: Iterable[Any]) -> float:
    # Empty groups report 0.0 so chart series never carry NaN.
    valid = [float(value) for value in values if is_number(value)]
    if not valid:
        return 0.0
    return math.fsum(valid) / len(valid)

