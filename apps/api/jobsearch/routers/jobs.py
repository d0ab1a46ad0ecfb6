from typing import Annotated, Optional

from fastapi import APIRouter, Depends, Query, Request

from jobsearch.core import get_settings, limiter
from jobsearch.dependencies import get_job_search_service, get_optional_candidate_id
from jobsearch.schemas import (
    AutocompleteParams,
    AutocompleteSuggestion,
    JobSearchResponse,
    MapClustersParams,
    MapClustersResponse,
    MapPointsParams,
    MapPointsResponse,
    SearchParams,
)
from jobsearch.services import JobSearchService

router = APIRouter(prefix="/jobs", tags=["jobs"])

_settings = get_settings()


@router.get("/search/hybrid", response_model=JobSearchResponse)
@limiter.limit(_settings.search_rate_limit)
async def hybrid_search(
    request: Request,
    params: Annotated[SearchParams, Query()],
    candidate_id: Annotated[Optional[str], Depends(get_optional_candidate_id)],
    service: Annotated[JobSearchService, Depends(get_job_search_service)],
):
    """Keyword + semantic job search. Without a query, newest open jobs matching the filters."""
    return await service.search(params, candidate_id)


@router.get("/autocomplete/titles", response_model=list[AutocompleteSuggestion])
@limiter.limit(_settings.autocomplete_rate_limit)
async def autocomplete_job_titles(
    request: Request,
    params: Annotated[AutocompleteParams, Query()],
    service: Annotated[JobSearchService, Depends(get_job_search_service)],
):
    return await service.autocomplete(params.query, params.limit)


@router.get("/map-search", response_model=MapPointsResponse)
@limiter.limit(_settings.map_rate_limit)
async def map_search(
    request: Request,
    params: Annotated[MapPointsParams, Query()],
    service: Annotated[JobSearchService, Depends(get_job_search_service)],
):
    """Raw job points inside the viewport (high zoom; the client clusters them)."""
    points = await service.map_points(params, params, params.limit)
    return MapPointsResponse(data=points)


@router.get("/map-clusters", response_model=MapClustersResponse)
@limiter.limit(_settings.map_rate_limit)
async def map_clusters(
    request: Request,
    params: Annotated[MapClustersParams, Query()],
    service: Annotated[JobSearchService, Depends(get_job_search_service)],
):
    """Multi-job clusters inside the viewport, sized by zoom."""
    return await service.map_clusters(params, params.zoom, params)
