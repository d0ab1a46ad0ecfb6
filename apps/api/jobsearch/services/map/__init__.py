from .clustering import ClusterConfig, bucket_auto, bucket_count_for_zoom, build_clusters
from .map_logic import find_jobs_in_bounds, get_map_clusters

__all__ = [
    "ClusterConfig",
    "bucket_auto",
    "bucket_count_for_zoom",
    "build_clusters",
    "find_jobs_in_bounds",
    "get_map_clusters",
]
