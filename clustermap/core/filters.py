from __future__ import annotations

from typing import Any, Iterable, Mapping

from clustermap.core.models import FilterCriteria, PropertyRecord, parse_criterion


# UI form keys accepted alongside the dataclass field names.
FORM_ALIASES = {
    "cluster": "cluster",
    "min_price": "min_price",
    "minPrice": "min_price",
    "max_price": "max_price",
    "maxPrice": "max_price",
    "min_bedrooms": "min_bedrooms",
    "minBedrooms": "min_bedrooms",
}


def apply_filters(records: Iterable[PropertyRecord], criteria: FilterCriteria) -> list[PropertyRecord]:
    """
    Conjunctive filter: a record survives only if it passes every active criterion.
    Unset or non-numeric criteria are inactive. Input order is preserved.
    """
    cluster = parse_criterion("cluster", criteria.cluster)
    min_price = parse_criterion("min_price", criteria.min_price)
    max_price = parse_criterion("max_price", criteria.max_price)
    min_bedrooms = parse_criterion("min_bedrooms", criteria.min_bedrooms)

    out: list[PropertyRecord] = []
    for record in records:
        if cluster is not None and record.cluster != cluster:
            continue
        if min_price is not None and not record.price >= min_price:
            continue
        if max_price is not None and not record.price <= max_price:
            continue
        if min_bedrooms is not None and not record.bedrooms >= min_bedrooms:
            continue
        out.append(record)
    return out


def mappable_records(records: Iterable[PropertyRecord]) -> list[PropertyRecord]:
    return [record for record in records if record.is_mappable]


def criteria_from_form(form: Mapping[str, Any]) -> FilterCriteria:
    values: dict[str, Any] = {}
    for key, raw in form.items():
        name = FORM_ALIASES.get(key)
        if name is None:
            continue
        values[name] = parse_criterion(name, raw)
    return FilterCriteria(**values)

