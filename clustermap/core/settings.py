from __future__ import annotations

import logging
import os
from dataclasses import dataclass

from clustermap.core.ingest import CoercionPolicy


@dataclass(slots=True)
class Settings:
    source: str | None = None
    ingest_policy: CoercionPolicy = CoercionPolicy.DEFAULT_ZERO
    http_timeout_seconds: float = 20.0
    fetch_attempts: int = 3
    log_level: int = logging.INFO

    @classmethod
    def from_env(cls) -> Settings:
        return cls(
            source=os.environ.get("CLUSTERMAP_SOURCE") or None,
            ingest_policy=CoercionPolicy.parse(os.environ.get("CLUSTERMAP_INGEST_POLICY")),
            http_timeout_seconds=_env_float("CLUSTERMAP_HTTP_TIMEOUT", default=20.0),
            fetch_attempts=max(1, _env_int("CLUSTERMAP_FETCH_ATTEMPTS", default=3)),
            log_level=_env_log_level("CLUSTERMAP_LOG_LEVEL", default=logging.INFO),
        )


def _env_int(name: str, default: int) -> int:
    raw = os.environ.get(name)
    if raw is None:
        return default
    try:
        return int(raw.strip())
    except (TypeError, ValueError):
        return default


def _env_float(name: str, default: float) -> float:
    raw = os.environ.get(name)
    if raw is None:
        return default
    try:
        value = float(raw.strip())
    except (TypeError, ValueError):
        return default
    return value if value > 0 else default


def _env_log_level(name: str, default: int) -> int:
    raw = (os.environ.get(name) or "").strip().upper()
    level = logging.getLevelName(raw) if raw else default
    return level if isinstance(level, int) else default
