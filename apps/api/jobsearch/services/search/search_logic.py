"""Hybrid job search business logic.

No query: pre-filter (with hard radius) -> newest-first page -> saved flags.
Query: [text branch || embed -> vector branch] -> hard radius over the union of hits
-> per-branch ranks -> weighted RRF -> page window -> light cards -> saved flags.
"""

import asyncio
import logging
from datetime import datetime, timezone
from typing import Callable, Optional

from sqlalchemy.exc import SQLAlchemyError

from jobsearch.providers import EmbeddingProvider, EmbeddingServiceError, embed_query
from jobsearch.schemas import JobSearchResponse, SearchParams
from jobsearch.services.errors import SearchError, SearchQueryError, SearchStage

from .branches import assign_ranks, branch_limit, num_candidates
from .filters import (
    JobFilter,
    build_pre_filter,
    build_search_filter,
    radius_clause,
    to_predicate,
)
from .fusion import FusedResult, filter_hits_by_radius, fuse
from .pagination import attach_saved_flags, build_meta, card_to_item, page_skip, window
from .repository import BranchHit, JobSearchRepository
from .tuning import SearchConfig

logger = logging.getLogger(__name__)

EmbedderFactory = Callable[[], EmbeddingProvider]


# -----------------------------------------------------------------------------
# Listing path (no query)
# -----------------------------------------------------------------------------
async def _list_newest(
    repo: JobSearchRepository,
    params: SearchParams,
    candidate_id: Optional[str],
    config: SearchConfig,
    now: datetime,
) -> JobSearchResponse:
    job_filter = build_pre_filter(params, now, hard_radius=True, earth_radius_km=config.earth_radius_km)
    try:
        cards, total = await repo.list_jobs(job_filter, page_skip(params.page, params.size), params.size)
    except SQLAlchemyError as e:
        logger.exception("Job listing query failed")
        raise SearchQueryError(SearchStage.LISTING, "Job listing query failed", e) from e
    items = [card_to_item(c) for c in cards]
    items = await attach_saved_flags(repo, candidate_id, items)
    return JobSearchResponse(data=items, meta=build_meta(params, total))


# -----------------------------------------------------------------------------
# Hybrid path
# -----------------------------------------------------------------------------
async def _embed_query_vector(query: str, embedder_factory: EmbedderFactory, config: SearchConfig) -> list[float]:
    try:
        provider = embedder_factory()
        return await embed_query(
            provider,
            query,
            retries=config.embed_retries,
            base_delay_s=config.embed_retry_base_delay_s,
        )
    except (EmbeddingServiceError, RuntimeError) as e:
        logger.warning("Query embedding failed: %s", e)
        raise SearchQueryError(SearchStage.EMBED, "Query embedding failed", e) from e


async def _text_hits(repo: JobSearchRepository, query: str, job_filter: JobFilter, limit: int) -> list[BranchHit]:
    try:
        return await repo.text_branch(query, job_filter, limit)
    except SQLAlchemyError as e:
        logger.exception("Text branch query failed")
        raise SearchQueryError(SearchStage.TEXT_BRANCH, "Text branch query failed", e) from e


async def _vector_hits(
    repo: JobSearchRepository,
    query: str,
    embedder_factory: EmbedderFactory,
    job_filter: JobFilter,
    limit: int,
    config: SearchConfig,
) -> list[BranchHit]:
    vector = await _embed_query_vector(query, embedder_factory, config)
    try:
        return await repo.vector_branch(vector, job_filter, limit, num_candidates(limit, config))
    except SQLAlchemyError as e:
        logger.exception("Vector branch query failed")
        raise SearchQueryError(SearchStage.VECTOR_BRANCH, "Vector branch query failed", e) from e


def _raise_branch_failure(text_res: object, vector_res: object) -> None:
    """Re-raise a branch failure; an embedding failure wins over any store failure."""
    if isinstance(vector_res, SearchError) and vector_res.stage == SearchStage.EMBED:
        raise vector_res
    for res in (text_res, vector_res):
        if isinstance(res, BaseException):
            raise res


async def _hybrid(
    repo: JobSearchRepository,
    embedder_factory: EmbedderFactory,
    params: SearchParams,
    candidate_id: Optional[str],
    config: SearchConfig,
    now: datetime,
) -> JobSearchResponse:
    query = params.query or ""
    limit = branch_limit(params.page, params.size, config)
    search_filter = build_search_filter(params, now, config.geo_pivot_meters, config.earth_radius_km)
    pre_filter = build_pre_filter(params, now, hard_radius=False, earth_radius_km=config.earth_radius_km)

    text_res, vector_res = await asyncio.gather(
        _text_hits(repo, query, search_filter, limit),
        _vector_hits(repo, query, embedder_factory, pre_filter, limit, config),
        return_exceptions=True,
    )
    _raise_branch_failure(text_res, vector_res)
    text_hits: list[BranchHit] = text_res  # type: ignore[assignment]
    vector_hits: list[BranchHit] = vector_res  # type: ignore[assignment]

    radius = radius_clause(params, config.earth_radius_km)
    if radius is not None:
        inside = to_predicate(radius)
        text_hits = filter_hits_by_radius(text_hits, inside)
        vector_hits = filter_hits_by_radius(vector_hits, inside)

    fused = fuse(
        assign_ranks(text_hits, "text"),
        assign_ranks(vector_hits, "vector"),
        text_weight=params.text_weight if params.text_weight is not None else config.default_text_weight,
        vector_weight=params.vector_weight if params.vector_weight is not None else config.default_vector_weight,
        k=config.rrf_k,
    )
    logger.info(
        "Hybrid search %r: text=%d vector=%d fused=%d",
        query,
        len(text_hits),
        len(vector_hits),
        len(fused),
    )

    page: list[FusedResult] = window(fused, params.page, params.size)
    try:
        cards = await repo.load_job_cards([f.job_id for f in page])
    except SQLAlchemyError as e:
        logger.exception("Loading job cards failed")
        raise SearchQueryError(SearchStage.ENRICH, "Loading job cards failed", e) from e

    items = []
    for f in page:
        card = cards.get(f.job_id)
        if card is None:
            logger.warning("Job %s ranked but no longer loadable; skipped", f.job_id)
            continue
        items.append(card_to_item(card, f))
    items = await attach_saved_flags(repo, candidate_id, items)
    return JobSearchResponse(data=items, meta=build_meta(params, len(fused)))


async def run_search(
    repo: JobSearchRepository,
    embedder_factory: EmbedderFactory,
    params: SearchParams,
    candidate_id: Optional[str] = None,
    config: SearchConfig = SearchConfig(),
    now: Optional[datetime] = None,
) -> JobSearchResponse:
    """Run a job search. The embedding provider is only built when the request has a query."""
    now = now or datetime.now(timezone.utc)
    if not params.has_query:
        return await _list_newest(repo, params, candidate_id, config, now)
    return await _hybrid(repo, embedder_factory, params, candidate_id, config, now)
