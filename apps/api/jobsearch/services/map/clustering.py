"""Zoom-adaptive equal-population clustering of job coordinates.

Points are ordered by (longitude, latitude) and cut into at most N buckets of
roughly equal size, where N comes from a zoom step table. Jobs sharing exact
coordinates always land in the same bucket. Single-job buckets are dropped:
sparse locations only show up once the map is zoomed in far enough to use the
raw point query.
"""

from dataclasses import dataclass, field
from typing import Sequence

from jobsearch.core import Settings
from jobsearch.schemas import MapCluster
from jobsearch.services.search.repository import GeoPoint


@dataclass(frozen=True)
class ClusterConfig:
    # (zoom upper bound exclusive, bucket count), ascending by zoom
    zoom_bucket_steps: tuple[tuple[int, int], ...] = ((5, 2), (8, 4), (10, 6), (11, 7), (12, 8))
    zoom_bucket_default: int = 20
    member_ids_cap: int = 50
    fallback_points_limit: int = 100

    @classmethod
    def from_settings(cls, s: Settings) -> "ClusterConfig":
        return cls(
            zoom_bucket_steps=tuple((int(z), int(n)) for z, n in s.zoom_bucket_steps),
            zoom_bucket_default=s.zoom_bucket_default,
            member_ids_cap=s.cluster_member_ids_cap,
            fallback_points_limit=s.map_fallback_points_limit,
        )


@dataclass
class Bucket:
    points: list[GeoPoint] = field(default_factory=list)

    @property
    def count(self) -> int:
        return len(self.points)


def bucket_count_for_zoom(
    zoom: int,
    steps: Sequence[tuple[int, int]] = ClusterConfig.zoom_bucket_steps,
    default: int = ClusterConfig.zoom_bucket_default,
) -> int:
    for upper, buckets in steps:
        if zoom < upper:
            return buckets
    return default


def _coords(p: GeoPoint) -> tuple[float, float]:
    return (p.longitude, p.latitude)


def bucket_auto(points: Sequence[GeoPoint], bucket_count: int) -> list[Bucket]:
    if bucket_count < 1:
        raise ValueError("bucket_count must be at least 1")
    ordered = sorted(points, key=lambda p: (p.longitude, p.latitude, p.job_id))
    n = len(ordered)
    buckets: list[Bucket] = []
    start = 0
    for i in range(bucket_count):
        if start >= n:
            break
        end = n if i == bucket_count - 1 else max(start + 1, round((i + 1) * n / bucket_count))
        while end < n and _coords(ordered[end]) == _coords(ordered[end - 1]):
            end += 1
        buckets.append(Bucket(points=ordered[start:end]))
        start = end
    return buckets


def build_clusters(buckets: Sequence[Bucket], member_ids_cap: int) -> list[MapCluster]:
    clusters = []
    for b in buckets:
        if b.count <= 1:
            continue
        clusters.append(
            MapCluster(
                type="cluster",
                latitude=sum(p.latitude for p in b.points) / b.count,
                longitude=sum(p.longitude for p in b.points) / b.count,
                count=b.count,
                job_ids=[p.job_id for p in b.points] if b.count <= member_ids_cap else None,
            )
        )
    return clusters
