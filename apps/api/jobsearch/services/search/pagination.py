"""Page windowing, response meta and light-card enrichment."""

import logging
import math
from typing import Optional, Sequence, TypeVar

from jobsearch.schemas import CompanySummary, JobSearchItem, SearchMeta, SearchParams

from .fusion import FusedResult
from .repository import JobCard, JobSearchRepository

logger = logging.getLogger(__name__)

T = TypeVar("T")


def page_skip(page: int, size: int) -> int:
    return (page - 1) * size


def window(items: Sequence[T], page: int, size: int) -> list[T]:
    skip = page_skip(page, size)
    return list(items[skip:skip + size])


def build_meta(params: SearchParams, total_items: int) -> SearchMeta:
    return SearchMeta(
        current_page=params.page,
        total_pages=math.ceil(total_items / params.size) if total_items else 0,
        total_items=total_items,
        limit=params.size,
        search_query=params.query,
        applied_filters=params.applied_filters(),
    )


def card_to_item(card: JobCard, fused: Optional[FusedResult] = None) -> JobSearchItem:
    item = JobSearchItem(
        id=card.id,
        title=card.title,
        category=card.category,
        type=card.job_type,
        work_type=card.work_type,
        experience=card.experience,
        min_salary=card.min_salary,
        max_salary=card.max_salary,
        province=card.province,
        district=card.district,
        latitude=card.latitude,
        longitude=card.longitude,
        deadline=card.deadline,
        created_at=card.created_at,
        company=CompanySummary(name=card.company_name, logo=card.company_logo),
    )
    if fused is not None:
        item.rank = fused.rank
        item.rrf_score = fused.rrf_score
        item.text_score = fused.text_score
        item.vector_score = fused.vector_score
    return item


async def attach_saved_flags(
    repo: JobSearchRepository,
    candidate_id: Optional[str],
    items: list[JobSearchItem],
) -> list[JobSearchItem]:
    """Set is_saved for a signed-in candidate. A failed lookup leaves every flag False."""
    if not candidate_id or not items:
        return items
    try:
        saved = await repo.saved_job_ids(candidate_id, [i.id for i in items])
    except Exception as e:
        logger.warning("Saved-job lookup failed for candidate %s, returning unsaved flags: %s", candidate_id, e)
        return items
    for item in items:
        item.is_saved = item.id in saved
    return items
