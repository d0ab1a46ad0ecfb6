"""Job search service facade.

Business logic is split across:
- hybrid search and listing: jobsearch.services.search.search_logic
- title autocomplete: jobsearch.services.search.autocomplete
- map points and clusters: jobsearch.services.map.map_logic
"""

from datetime import datetime
from typing import Optional

from jobsearch.schemas import (
    AutocompleteSuggestion,
    JobSearchResponse,
    MapBounds,
    MapClustersResponse,
    MapFilters,
    MapPoint,
    SearchParams,
)
from jobsearch.services.map import ClusterConfig, find_jobs_in_bounds, get_map_clusters
from jobsearch.services.search import JobSearchRepository, SearchConfig, autocomplete_titles, run_search
from jobsearch.services.search.search_logic import EmbedderFactory


class JobSearchService:
    """Facade over a job store and an embedding provider factory."""

    def __init__(
        self,
        repo: JobSearchRepository,
        embedder_factory: EmbedderFactory,
        search_config: SearchConfig = SearchConfig(),
        cluster_config: ClusterConfig = ClusterConfig(),
        map_points_limit: int = 50,
    ):
        self.repo = repo
        self.embedder_factory = embedder_factory
        self.search_config = search_config
        self.cluster_config = cluster_config
        self.map_points_limit = map_points_limit

    async def search(
        self,
        params: SearchParams,
        candidate_id: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> JobSearchResponse:
        return await run_search(
            self.repo, self.embedder_factory, params, candidate_id, self.search_config, now
        )

    async def autocomplete(self, query: str, limit: int) -> list[AutocompleteSuggestion]:
        return await autocomplete_titles(
            self.repo, query, limit, self.search_config.autocomplete_candidate_limit
        )

    async def map_points(
        self, bounds: MapBounds, filters: Optional[MapFilters] = None, limit: Optional[int] = None
    ) -> list[MapPoint]:
        """Bounding-box points, capped at map_points_limit whatever the caller asks for."""
        cap = self.map_points_limit if limit is None else min(limit, self.map_points_limit)
        return await find_jobs_in_bounds(self.repo, bounds, filters, cap)

    async def map_clusters(
        self, bounds: MapBounds, zoom: int, filters: Optional[MapFilters] = None
    ) -> MapClustersResponse:
        return await get_map_clusters(self.repo, bounds, zoom, filters, self.cluster_config)
