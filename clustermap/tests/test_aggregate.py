from clustermap.core.aggregate import (
    aggregate_by_cluster,
    discover_cluster_ids,
    mean_of,
    scatter_series,
    total_count,
)
from clustermap.core.filters import apply_filters
from clustermap.core.models import ClusterAggregate, FilterCriteria, PropertyRecord, ScatterPoint


def _record(cluster, price, land_area=100.0, bedrooms=2, bathrooms=1, building_area=50.0):
    return PropertyRecord(
        name=f"c{cluster}-{price}",
        url=None,
        bedrooms=bedrooms,
        bathrooms=bathrooms,
        floors=1,
        land_area=land_area,
        building_area=building_area,
        longitude=107.5,
        latitude=-6.9,
        price=price,
        cluster=cluster,
    )


def test_mean_price_per_cluster():
    records = [_record(1, 100.0), _record(1, 200.0), _record(1, 300.0), _record(2, 50.0)]

    aggregates = aggregate_by_cluster(records, [1, 2])

    assert aggregates[0].cluster_id == 1
    assert aggregates[0].count == 3
    assert aggregates[0].mean_price == 200.0
    assert aggregates[1].mean_price == 50.0


def test_empty_cluster_yields_zero_count_and_zero_means():
    aggregates = aggregate_by_cluster([_record(1, 100.0)], [1, 4])

    assert aggregates[1] == ClusterAggregate(
        cluster_id=4,
        count=0,
        mean_price=0.0,
        mean_land_area=0.0,
        mean_building_area=0.0,
        mean_bedrooms=0.0,
        mean_bathrooms=0.0,
    )


def test_aggregates_follow_requested_order():
    records = [_record(1, 1.0), _record(3, 1.0), _record(2, 1.0)]

    assert [a.cluster_id for a in aggregate_by_cluster(records, [3, 1, 2])] == [3, 1, 2]


def test_unlisted_cluster_is_excluded():
    records = [_record(1, 1.0), _record(9, 1.0)]

    aggregates = aggregate_by_cluster(records, [1])

    assert total_count(aggregates) == 1


def test_counts_sum_to_filtered_size_when_ids_are_discovered():
    records = [_record(c, p) for c, p in [(1, 10), (2, 20), (2, 30), (3, 40), (0, 5)]]
    filtered = apply_filters(records, FilterCriteria(min_price=10))

    aggregates = aggregate_by_cluster(filtered, discover_cluster_ids(records))

    assert total_count(aggregates) == len(filtered)
    assert [a.cluster_id for a in aggregates] == [0, 1, 2, 3]


def test_omitted_ids_are_discovered_from_records():
    records = [_record(4, 1.0), _record(2, 1.0)]

    assert [a.cluster_id for a in aggregate_by_cluster(records)] == [2, 4]


def test_means_cover_every_numeric_field():
    records = [
        _record(1, 100.0, land_area=100.0, bedrooms=2, bathrooms=1, building_area=60.0),
        _record(1, 300.0, land_area=200.0, bedrooms=4, bathrooms=3, building_area=80.0),
    ]

    (aggregate,) = aggregate_by_cluster(records, [1])

    assert aggregate.mean_land_area == 150.0
    assert aggregate.mean_building_area == 70.0
    assert aggregate.mean_bedrooms == 3.0
    assert aggregate.mean_bathrooms == 2.0


def test_mean_of_skips_invalid_values():
    assert mean_of([1.0, float("nan"), None, 3.0]) == 2.0
    assert mean_of([]) == 0.0


def test_filter_then_aggregate_is_idempotent():
    records = [_record(c, p) for c, p in [(1, 10), (2, 20), (2, 35), (3, 40)]]
    criteria = FilterCriteria(min_price=15)

    first = aggregate_by_cluster(apply_filters(records, criteria), [1, 2, 3])
    second = aggregate_by_cluster(apply_filters(records, criteria), [1, 2, 3])

    assert first == second
    assert [a.mean_price for a in first] == [a.mean_price for a in second]


def test_scatter_series_extracts_valid_points():
    records = [_record(1, 100.0, land_area=50.0), _record(2, float("nan"), land_area=70.0)]

    assert scatter_series(records) == [ScatterPoint(land_area=50.0, price=100.0, cluster=1)]
