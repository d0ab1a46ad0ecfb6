"""Read-only job store used by search, autocomplete and map.

PostgresJobSearchRepository opens a fresh session per call so the text and
vector branches can run concurrently on separate connections.
"""

import logging
import re
from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Optional

from sqlalchemy import case, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from jobsearch.db.models import Job, JobChunk, RecruiterProfile, SavedJob
from jobsearch.domain import JOB_STATUS_ACTIVE, MODERATION_APPROVED
from jobsearch.utils import TITLE_WORD_SPLIT, query_terms
from .filters import JobFilter, boost_sql, to_sql

logger = logging.getLogger(__name__)

# Title weighs double against description/requirements in the text branch
TITLE_BOOST = 2.0
FUZZY_PREFIX_LENGTH = 2
FUZZY_MAX_EDITS = 1


# -----------------------------------------------------------------------------
# Row types
# -----------------------------------------------------------------------------
@dataclass(frozen=True)
class BranchHit:
    """One job returned by a retrieval branch, with its native score and coordinates."""
    job_id: str
    score: float
    latitude: Optional[float] = None
    longitude: Optional[float] = None


@dataclass(frozen=True)
class JobCard:
    """Light projection shared by listing, hybrid results and map points."""
    id: str
    title: str
    category: Optional[str] = None
    job_type: Optional[str] = None
    work_type: Optional[str] = None
    experience: Optional[str] = None
    min_salary: Optional[float] = None
    max_salary: Optional[float] = None
    province: Optional[str] = None
    district: Optional[str] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    deadline: Optional[datetime] = None
    created_at: Optional[datetime] = None
    company_name: Optional[str] = None
    company_logo: Optional[str] = None


@dataclass(frozen=True)
class TitleCandidate:
    title: str
    score: float


@dataclass(frozen=True)
class GeoPoint:
    job_id: str
    latitude: float
    longitude: float


class JobSearchRepository(ABC):
    @abstractmethod
    async def text_branch(self, query: str, job_filter: JobFilter, limit: int) -> list[BranchHit]:
        """Lexical hits (fuzzy title match required), best score first."""

    @abstractmethod
    async def vector_branch(
        self, vector: list[float], job_filter: JobFilter, limit: int, num_candidates: int
    ) -> list[BranchHit]:
        """Semantic hits scored by best chunk similarity, best score first."""

    @abstractmethod
    async def list_jobs(self, job_filter: JobFilter, skip: int, limit: int) -> tuple[list[JobCard], int]:
        """Newest-first page of jobs plus the total number matching."""

    @abstractmethod
    async def load_job_cards(self, job_ids: list[str]) -> dict[str, JobCard]:
        pass

    @abstractmethod
    async def saved_job_ids(self, candidate_id: str, job_ids: list[str]) -> set[str]:
        pass

    @abstractmethod
    async def autocomplete_titles(self, query: str, limit: int) -> list[TitleCandidate]:
        """Fuzzy prefix title candidates with a relevance score (may repeat titles)."""

    @abstractmethod
    async def autocomplete_titles_fallback(self, query: str, limit: int) -> list[TitleCandidate]:
        """Literal substring title candidates; scores are not meaningful."""

    @abstractmethod
    async def points_in_bounds(self, job_filter: JobFilter, limit: int) -> list[JobCard]:
        pass

    @abstractmethod
    async def coordinates_in_bounds(self, job_filter: JobFilter) -> list[GeoPoint]:
        pass


# -----------------------------------------------------------------------------
# Postgres (pg_trgm + fuzzystrmatch + pgvector)
# -----------------------------------------------------------------------------
def _to_float(v: Any) -> Optional[float]:
    return float(v) if v is not None else None


def _card_columns():
    return (
        Job.id,
        Job.title,
        Job.category,
        Job.job_type,
        Job.work_type,
        Job.experience,
        Job.min_salary,
        Job.max_salary,
        Job.province,
        Job.district,
        Job.latitude,
        Job.longitude,
        Job.deadline,
        Job.created_at,
        RecruiterProfile.company_name,
        RecruiterProfile.company_logo,
    )


def _card_from_row(row: Any) -> JobCard:
    return JobCard(
        id=str(row.id),
        title=row.title,
        category=row.category,
        job_type=row.job_type,
        work_type=row.work_type,
        experience=row.experience,
        min_salary=_to_float(row.min_salary),
        max_salary=_to_float(row.max_salary),
        province=row.province,
        district=row.district,
        latitude=row.latitude,
        longitude=row.longitude,
        deadline=row.deadline,
        created_at=row.created_at,
        company_name=row.company_name,
        company_logo=row.company_logo,
    )


def _cards_stmt():
    return select(*_card_columns()).outerjoin(
        RecruiterProfile, RecruiterProfile.id == Job.recruiter_profile_id
    )


def _title_words():
    return func.regexp_split_to_table(func.lower(Job.title), TITLE_WORD_SPLIT).column_valued("word")


def _fuzzy_title_term(term: str):
    """EXISTS a title word sharing the first two letters and within one edit of term."""
    word = _title_words()
    return (
        select(word)
        .where(
            func.left(word, FUZZY_PREFIX_LENGTH) == term[:FUZZY_PREFIX_LENGTH],
            func.levenshtein(word, term) <= FUZZY_MAX_EDITS,
        )
        .exists()
    )


def _fuzzy_title_prefix(term: str):
    """EXISTS a title word whose leading len(term) characters are within one edit of term."""
    word = _title_words()
    return (
        select(word)
        .where(func.levenshtein(func.left(word, len(term)), term) <= FUZZY_MAX_EDITS)
        .exists()
    )


def build_text_branch_stmt(query: str, job_filter: JobFilter, limit: int):
    terms = query_terms(query)
    if not terms:
        return None
    matched = [_fuzzy_title_term(t) for t in terms]
    matched_fraction = sum(case((m, 1.0), else_=0.0) for m in matched) / float(len(terms))
    title_rank = func.ts_rank_cd(
        func.to_tsvector("simple", func.coalesce(Job.title, "")),
        func.plainto_tsquery("simple", query),
    )
    body_rank = func.ts_rank_cd(
        func.to_tsvector(
            "simple",
            func.coalesce(Job.description, "") + " " + func.coalesce(Job.requirements, ""),
        ),
        func.plainto_tsquery("simple", query),
    )
    score = (TITLE_BOOST * (title_rank + matched_fraction) + body_rank + boost_sql(job_filter)).label("score")
    return (
        select(Job.id, score, Job.latitude, Job.longitude)
        .where(to_sql(job_filter))
        .where(or_(*matched))
        .order_by(score.desc(), Job.id.asc())
        .limit(limit)
    )


def build_vector_branch_stmt(vector: list[float], job_filter: JobFilter, limit: int, num_candidates: int):
    distance = JobChunk.embedding.cosine_distance(vector)
    nearest = (
        select(JobChunk.job_id.label("job_id"), distance.label("distance"))
        .join(Job, Job.id == JobChunk.job_id)
        .where(JobChunk.embedding.is_not(None))
        .where(to_sql(job_filter))
        .order_by(distance)
        .limit(num_candidates)
        .subquery("nearest_chunks")
    )
    best = func.min(nearest.c.distance).label("distance")
    return (
        select(nearest.c.job_id, best, Job.latitude, Job.longitude)
        .join(Job, Job.id == nearest.c.job_id)
        .group_by(nearest.c.job_id, Job.latitude, Job.longitude)
        .order_by(best.asc(), nearest.c.job_id.asc())
        .limit(limit)
    )


def build_ef_search_stmt(num_candidates: int, ef_search_max: int = 1000):
    """Transaction-local hnsw.ef_search so the index scan yields about num_candidates chunks before filtering."""
    ef_search = max(1, min(num_candidates, ef_search_max))
    return select(func.set_config("hnsw.ef_search", str(ef_search), True))


def _similarity_from_distance(d: float) -> float:
    return 1.0 / (1.0 + float(d))


def _autocomplete_population():
    return (Job.status == JOB_STATUS_ACTIVE, Job.moderation_status == MODERATION_APPROVED)


def _title_prefix_first(query: str):
    """ORDER BY key putting literal prefix matches ahead of the candidate-pool cut."""
    return func.lower(Job.title).startswith(query.strip().lower(), autoescape=True).desc()


def build_autocomplete_stmt(query: str, limit: int):
    terms = query_terms(query)
    if not terms:
        return None
    score = func.max(func.word_similarity(query.lower(), func.lower(Job.title))).label("score")
    return (
        select(Job.title, score)
        .where(*_autocomplete_population())
        .where(*[_fuzzy_title_prefix(t) for t in terms])
        .group_by(Job.title)
        .order_by(_title_prefix_first(query), score.desc(), Job.title.asc())
        .limit(limit)
    )


def build_autocomplete_fallback_stmt(query: str, limit: int):
    return (
        select(Job.title)
        .where(*_autocomplete_population())
        .where(Job.title.op("~*")(re.escape(query)))
        .group_by(Job.title)
        .order_by(_title_prefix_first(query), Job.title.asc())
        .limit(limit)
    )


class PostgresJobSearchRepository(JobSearchRepository):
    def __init__(self, session_factory: async_sessionmaker[AsyncSession], ef_search_max: int = 1000):
        self._session_factory = session_factory
        self.ef_search_max = ef_search_max

    async def text_branch(self, query: str, job_filter: JobFilter, limit: int) -> list[BranchHit]:
        stmt = build_text_branch_stmt(query, job_filter, limit)
        if stmt is None:
            return []
        async with self._session_factory() as session:
            rows = (await session.execute(stmt)).all()
        logger.debug("text_branch: %d hits (limit=%d)", len(rows), limit)
        return [BranchHit(str(r.id), float(r.score), r.latitude, r.longitude) for r in rows]

    async def vector_branch(
        self, vector: list[float], job_filter: JobFilter, limit: int, num_candidates: int
    ) -> list[BranchHit]:
        stmt = build_vector_branch_stmt(vector, job_filter, limit, num_candidates)
        async with self._session_factory() as session:
            await session.execute(build_ef_search_stmt(num_candidates, self.ef_search_max))
            rows = (await session.execute(stmt)).all()
        logger.debug("vector_branch: %d hits (limit=%d, num_candidates=%d)", len(rows), limit, num_candidates)
        return [
            BranchHit(str(r.job_id), _similarity_from_distance(r.distance), r.latitude, r.longitude)
            for r in rows
        ]

    async def list_jobs(self, job_filter: JobFilter, skip: int, limit: int) -> tuple[list[JobCard], int]:
        where = to_sql(job_filter)
        page_stmt = (
            _cards_stmt()
            .where(where)
            .order_by(Job.created_at.desc(), Job.id.asc())
            .offset(skip)
            .limit(limit)
        )
        count_stmt = select(func.count()).select_from(Job).where(where)
        async with self._session_factory() as session:
            rows = (await session.execute(page_stmt)).all()
            total = (await session.execute(count_stmt)).scalar_one()
        return [_card_from_row(r) for r in rows], int(total)

    async def load_job_cards(self, job_ids: list[str]) -> dict[str, JobCard]:
        if not job_ids:
            return {}
        async with self._session_factory() as session:
            rows = (await session.execute(_cards_stmt().where(Job.id.in_(job_ids)))).all()
        return {str(r.id): _card_from_row(r) for r in rows}

    async def saved_job_ids(self, candidate_id: str, job_ids: list[str]) -> set[str]:
        if not job_ids:
            return set()
        stmt = select(SavedJob.job_id).where(
            SavedJob.candidate_id == candidate_id, SavedJob.job_id.in_(job_ids)
        )
        async with self._session_factory() as session:
            rows = (await session.execute(stmt)).scalars().all()
        return {str(j) for j in rows}

    async def autocomplete_titles(self, query: str, limit: int) -> list[TitleCandidate]:
        stmt = build_autocomplete_stmt(query, limit)
        if stmt is None:
            return []
        async with self._session_factory() as session:
            rows = (await session.execute(stmt)).all()
        return [TitleCandidate(r.title, float(r.score or 0.0)) for r in rows]

    async def autocomplete_titles_fallback(self, query: str, limit: int) -> list[TitleCandidate]:
        async with self._session_factory() as session:
            rows = (await session.execute(build_autocomplete_fallback_stmt(query, limit))).scalars().all()
        return [TitleCandidate(t, 1.0) for t in rows]

    async def points_in_bounds(self, job_filter: JobFilter, limit: int) -> list[JobCard]:
        stmt = _cards_stmt().where(to_sql(job_filter)).order_by(Job.created_at.desc(), Job.id.asc()).limit(limit)
        async with self._session_factory() as session:
            rows = (await session.execute(stmt)).all()
        return [_card_from_row(r) for r in rows]

    async def coordinates_in_bounds(self, job_filter: JobFilter) -> list[GeoPoint]:
        stmt = select(Job.id, Job.latitude, Job.longitude).where(to_sql(job_filter))
        async with self._session_factory() as session:
            rows = (await session.execute(stmt)).all()
        return [GeoPoint(str(r.id), r.latitude, r.longitude) for r in rows]

