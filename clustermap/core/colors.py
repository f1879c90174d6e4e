from __future__ import annotations

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Iterable, Mapping


FALLBACK_COLOR = "#6b7280"  # gray
BASE_COLORS = (
    "#ef4444",  # red
    "#3b82f6",  # blue
    "#10b981",  # green
    "#f59e0b",  # yellow
    "#8b5cf6",  # violet
    "#ec4899",  # pink
    "#14b8a6",  # teal
    "#f97316",  # orange
)


@dataclass(frozen=True)
class ClusterPalette:
    colors: Mapping[int, str] = field(default_factory=dict)
    fallback: str = FALLBACK_COLOR

    def __post_init__(self) -> None:
        object.__setattr__(self, "colors", MappingProxyType(dict(self.colors)))

    def __call__(self, cluster: int) -> str:
        return self.color_for(cluster)

    def color_for(self, cluster: int) -> str:
        return self.colors.get(cluster, self.fallback)

    @classmethod
    def for_clusters(
        cls,
        cluster_ids: Iterable[int],
        base: Iterable[str] = BASE_COLORS,
        fallback: str = FALLBACK_COLOR,
    ) -> ClusterPalette:
        """
        Assign base colors to cluster ids in order; ids past the base list use the fallback.
        """
        return cls(colors=dict(zip(cluster_ids, base)), fallback=fallback)


DEFAULT_PALETTE = ClusterPalette(colors={1: "#ef4444", 2: "#3b82f6", 3: "#10b981", 4: "#f59e0b"})
