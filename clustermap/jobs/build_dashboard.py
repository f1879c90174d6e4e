from __future__ import annotations

import argparse
import json
import logging
import sys
from typing import Any, Sequence
from urllib.parse import urlparse

from clustermap.core.aggregate import discover_cluster_ids
from clustermap.core.colors import DEFAULT_PALETTE, ClusterPalette
from clustermap.core.filters import criteria_from_form
from clustermap.core.ingest import CoercionPolicy, IngestionError, ingest_csv_text
from clustermap.core.presenter import empty_dashboard
from clustermap.core.session import DashboardSession
from clustermap.core.settings import Settings
from clustermap.sources.base import CsvSource, SourceError, fetch_with_retry
from clustermap.sources.local.source import LocalFileSource
from clustermap.sources.remote.source import RemoteCsvSource


LOGGER = logging.getLogger(__name__)


def resolve_source(location: str, settings: Settings) -> CsvSource:
    if urlparse(location).scheme in {"http", "https"}:
        return RemoteCsvSource(location, timeout_seconds=settings.http_timeout_seconds)
    return LocalFileSource(location)


def build_dashboard(
    source: CsvSource,
    form: dict[str, Any] | None = None,
    policy: CoercionPolicy = CoercionPolicy.DEFAULT_ZERO,
    palette: ClusterPalette | None = None,
    select_name: str | None = None,
    fetch_attempts: int = 3,
    discover_colors: bool = False,
) -> dict[str, Any]:
    try:
        text = fetch_with_retry(source, max_attempts=fetch_attempts)
        result = ingest_csv_text(text, policy=policy)
    except (SourceError, IngestionError) as exc:
        LOGGER.exception("Dashboard build failed for source=%s: %s", source.source_name, exc)
        return empty_dashboard(error=str(exc))

    if discover_colors:
        palette = ClusterPalette.for_clusters(discover_cluster_ids(result.records))
    session = DashboardSession(result, palette=palette or DEFAULT_PALETTE)
    session.set_criteria(criteria_from_form(form or {}))
    if select_name:
        if session.select_by_name(select_name) is None:
            LOGGER.warning("No property named %r to select.", select_name)
    snapshot = session.snapshot()
    LOGGER.info("Dashboard built source=%s %s", source.source_name, snapshot["summary"])
    return snapshot


def main(argv: Sequence[str] | None = None) -> int:
    settings = Settings.from_env()
    parser = argparse.ArgumentParser(description="Build map and chart payloads from a clustered listings CSV.")
    parser.add_argument("--source", default=settings.source, help="CSV path or http(s) URL.")
    parser.add_argument("--cluster", default="all", help="Cluster id, or 'all'.")
    parser.add_argument("--min-price", default="", help="Inclusive lower price bound.")
    parser.add_argument("--max-price", default="", help="Inclusive upper price bound.")
    parser.add_argument("--min-bedrooms", default="", help="Inclusive minimum bedrooms, or 'any'.")
    parser.add_argument(
        "--policy",
        choices=[policy.value for policy in CoercionPolicy],
        default=settings.ingest_policy.value,
        help="How to treat numeric fields that fail to parse.",
    )
    parser.add_argument("--select", default=None, help="Name of the property to mark as selected.")
    parser.add_argument(
        "--discover-colors",
        action="store_true",
        help="Assign colors to the cluster ids found in the data instead of the fixed 1-4 palette.",
    )
    parser.add_argument("--output", default=None, help="Write JSON here instead of stdout.")
    args = parser.parse_args(argv)

    logging.basicConfig(level=settings.log_level, format="%(asctime)s %(levelname)s %(message)s")
    if not args.source:
        parser.error("--source (or CLUSTERMAP_SOURCE) is required.")

    source = resolve_source(args.source, settings)
    snapshot = build_dashboard(
        source,
        form={
            "cluster": args.cluster,
            "min_price": args.min_price,
            "max_price": args.max_price,
            "min_bedrooms": args.min_bedrooms,
        },
        policy=CoercionPolicy.parse(args.policy),
        select_name=args.select,
        fetch_attempts=settings.fetch_attempts,
        discover_colors=args.discover_colors,
    )
    _write_output(snapshot, args.output)
    return 0 if snapshot["status"] == "ok" else 1


def _write_output(payload: dict[str, Any], output: str | None) -> None:
    serialized = json.dumps(payload, ensure_ascii=False, indent=2)
    if output:
        with open(output, "w", encoding="utf-8") as handle:
            handle.write(serialized)
            handle.write("\n")
    else:
        sys.stdout.write(serialized + "\n")


if __name__ == "__main__":
    sys.exit(main())
