from __future__ import annotations

import html
import re
from dataclasses import asdict
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Callable, Iterable, Sequence

from clustermap.core.colors import DEFAULT_PALETTE, ClusterPalette
from clustermap.core.models import ClusterAggregate, PropertyRecord, ScatterPoint


MARKER_SIZE = 25
SELECTED_MARKER_SIZE = 35

BAR_CHARTS = (
    ("price", "mean_price", "Average price (IDR)"),
    ("land_area", "mean_land_area", "Average land area (m²)"),
    ("building_area", "mean_building_area", "Average building area (m²)"),
    ("bedrooms", "mean_bedrooms", "Average bedrooms"),
    ("bathrooms", "mean_bathrooms", "Average bathrooms"),
)

ColorLookup = Callable[[int], str]


def build_map_markers(
    records: Iterable[PropertyRecord],
    color_for: ColorLookup,
    selected: PropertyRecord | None = None,
) -> list[dict[str, Any]]:
    markers: list[dict[str, Any]] = []
    for record in records:
        if not record.is_mappable:
            continue
        is_selected = selected is not None and record == selected
        markers.append(
            {
                "name": record.name,
                "url": record.url,
                "cluster": record.cluster,
                "lat": record.latitude,
                "lng": record.longitude,
                "color": color_for(record.cluster),
                "size": SELECTED_MARKER_SIZE if is_selected else MARKER_SIZE,
                "selected": is_selected,
                "popup_html": _popup_html(record),
            }
        )
    return markers


def build_chart_payloads(
    aggregates: Sequence[ClusterAggregate],
    scatter: Sequence[ScatterPoint],
    color_for: ColorLookup,
) -> dict[str, Any]:
    labels = [cluster_label(item.cluster_id) for item in aggregates]
    colors = [color_for(item.cluster_id) for item in aggregates]

    charts: dict[str, Any] = {
        "counts": {
            "type": "pie",
            "labels": labels,
            "datasets": [{"data": [item.count for item in aggregates], "backgroundColor": colors}],
        }
    }
    for key, attr, title in BAR_CHARTS:
        charts[key] = {
            "type": "bar",
            "labels": labels,
            "datasets": [
                {
                    "label": title,
                    "data": [getattr(item, attr) for item in aggregates],
                    "backgroundColor": colors,
                }
            ],
        }
    charts["price_vs_land_area"] = {
        "type": "scatter",
        "axes": {"x": "Land area (m²)", "y": "Price (IDR)"},
        "datasets": [
            {
                "label": "Price vs land area",
                "data": [{"x": p.land_area, "y": p.price, "cluster": p.cluster} for p in scatter],
                "backgroundColor": [color_for(p.cluster) for p in scatter],
                "pointRadius": 4,
            }
        ],
    }
    return charts


def property_details(record: PropertyRecord | None, color_for: ColorLookup) -> dict[str, Any] | None:
    if record is None:
        return None
    details = asdict(record)
    details.update(
        {
            "title": capitalize_words(record.name),
            "cluster_label": cluster_label(record.cluster),
            "cluster_color": color_for(record.cluster),
            "price_display": format_price_idr(record.price),
            "coordinates_display": (
                f"{record.latitude:.6f}, {record.longitude:.6f}" if record.is_mappable else None
            ),
        }
    )
    return details


def empty_dashboard(error: str | None = None, palette: ClusterPalette = DEFAULT_PALETTE) -> dict[str, Any]:
    cluster_ids = sorted(palette.colors)
    aggregates = [ClusterAggregate(cluster_id=cluster_id, count=0) for cluster_id in cluster_ids]
    return {
        "status": "error" if error else "empty",
        "error": error,
        "summary": summary_text(0, 0),
        "criteria": {},
        "cluster_ids": cluster_ids,
        "markers": [],
        "aggregates": [asdict(item) for item in aggregates],
        "charts": build_chart_payloads(aggregates, [], palette),
        "selected": None,
        "ingestion": None,
    }


def summary_text(shown: int, total: int) -> str:
    return f"{shown} of {total} properties"


def cluster_label(cluster_id: int) -> str:
    return f"Cluster {cluster_id}"


def capitalize_words(text: str) -> str:
    return re.sub(r"\b\w", lambda match: match.group(0).upper(), text)


def format_price_idr(price: float) -> str:
    # id-ID grouping uses dots for thousands, no decimals; halves round away from zero.
    whole = Decimal(str(price)).quantize(Decimal(1), rounding=ROUND_HALF_UP)
    grouped = f"{int(whole):,}".replace(",", ".")
    return f"Rp {grouped}"


def _popup_html(record: PropertyRecord) -> str:
    return (
        '<div class="popup">'
        f"<h3>{html.escape(record.name)}</h3>"
        f"<p><strong>Cluster:</strong> {record.cluster}</p>"
        "</div>"
    )
