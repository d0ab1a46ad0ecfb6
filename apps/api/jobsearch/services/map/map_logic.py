"""Map viewport queries: raw points for high zoom, bucketed clusters below."""

import logging
from typing import Optional

from jobsearch.schemas import CompanySummary, MapBounds, MapCluster, MapClustersResponse, MapFilters, MapPoint
from jobsearch.services.errors import MapQueryError, SearchStage
from jobsearch.services.search.filters import build_map_filter
from jobsearch.services.search.repository import JobCard, JobSearchRepository

from .clustering import ClusterConfig, bucket_auto, bucket_count_for_zoom, build_clusters

logger = logging.getLogger(__name__)


def _card_to_point(card: JobCard) -> MapPoint:
    return MapPoint(
        id=card.id,
        title=card.title,
        latitude=card.latitude,
        longitude=card.longitude,
        min_salary=card.min_salary,
        max_salary=card.max_salary,
        type=card.job_type,
        work_type=card.work_type,
        province=card.province,
        district=card.district,
        company=CompanySummary(name=card.company_name, logo=card.company_logo),
    )


async def find_jobs_in_bounds(
    repo: JobSearchRepository,
    bounds: MapBounds,
    filters: Optional[MapFilters],
    limit: int,
) -> list[MapPoint]:
    try:
        cards = await repo.points_in_bounds(build_map_filter(bounds, filters), limit)
    except Exception as e:
        logger.exception("Map point query failed")
        raise MapQueryError(SearchStage.POINTS, "Map point query failed", e) from e
    return [_card_to_point(c) for c in cards if c.latitude is not None and c.longitude is not None]


async def get_map_clusters(
    repo: JobSearchRepository,
    bounds: MapBounds,
    zoom: int,
    filters: Optional[MapFilters],
    config: ClusterConfig = ClusterConfig(),
) -> MapClustersResponse:
    """Multi-job clusters in the viewport; on failure, up to fallback_points_limit one-job points."""
    buckets_wanted = bucket_count_for_zoom(zoom, config.zoom_bucket_steps, config.zoom_bucket_default)
    try:
        points = await repo.coordinates_in_bounds(build_map_filter(bounds, filters))
        clusters = build_clusters(bucket_auto(points, buckets_wanted), config.member_ids_cap)
    except Exception as e:
        logger.warning(
            "Map %s stage failed at zoom %s, falling back to raw points: %s", SearchStage.CLUSTER.value, zoom, e
        )
        points = await find_jobs_in_bounds(repo, bounds, filters, config.fallback_points_limit)
        degenerate = [
            MapCluster(
                type="point",
                latitude=p.latitude,
                longitude=p.longitude,
                count=1,
                job_ids=[p.id],
                job_id=p.id,
                title=p.title,
            )
            for p in points
        ]
        return MapClustersResponse(data=degenerate, zoom=zoom, bucket_count=buckets_wanted, fallback=True)

    logger.info(
        "Map clusters at zoom %s: %d points -> %d clusters (buckets=%d)",
        zoom,
        len(points),
        len(clusters),
        buckets_wanted,
    )
    return MapClustersResponse(data=clusters, zoom=zoom, bucket_count=buckets_wanted)
