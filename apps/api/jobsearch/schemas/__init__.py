"""Pydantic request/response schemas."""

from jobsearch.schemas.search import (
    SearchParams,
    AutocompleteParams,
    CompanySummary,
    JobSearchItem,
    SearchMeta,
    JobSearchResponse,
    AutocompleteSuggestion,
)
from jobsearch.schemas.map import (
    MapFilters,
    MapBounds,
    MapPointsParams,
    MapClustersParams,
    MapPoint,
    MapCluster,
    MapPointsResponse,
    MapClustersResponse,
)

__all__ = [
    "SearchParams",
    "AutocompleteParams",
    "CompanySummary",
    "JobSearchItem",
    "SearchMeta",
    "JobSearchResponse",
    "AutocompleteSuggestion",
    "MapFilters",
    "MapBounds",
    "MapPointsParams",
    "MapClustersParams",
    "MapPoint",
    "MapCluster",
    "MapPointsResponse",
    "MapClustersResponse",
]
