import math
import re
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Any, Optional

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.exc import OperationalError

from jobsearch.core import limiter
from jobsearch.dependencies import get_job_search_service
from jobsearch.main import app
from jobsearch.providers import EmbeddingProvider, EmbeddingServiceError
from jobsearch.services import JobSearchService
from jobsearch.services.map import ClusterConfig
from jobsearch.services.search import JobSearchRepository, SearchConfig
from jobsearch.services.search.filters import JobFilter, boost_score, to_predicate
from jobsearch.services.search.repository import BranchHit, GeoPoint, JobCard, TitleCandidate
from jobsearch.utils import TITLE_WORD_SPLIT, query_terms

NOW = datetime(2026, 10, 19, 12, 0, tzinfo=timezone.utc)
FAR_DEADLINE = datetime(2099, 1, 1, tzinfo=timezone.utc)


def _db_down(what: str) -> OperationalError:
    return OperationalError(what, {}, Exception("connection refused"))


def _levenshtein(a: str, b: str) -> int:
    prev = list(range(len(b) + 1))
    for i, ca in enumerate(a, start=1):
        cur = [i]
        for j, cb in enumerate(b, start=1):
            cur.append(min(prev[j] + 1, cur[j - 1] + 1, prev[j - 1] + (ca != cb)))
        prev = cur
    return prev[-1]


def _title_words(title: str) -> list[str]:
    return [w for w in re.split(TITLE_WORD_SPLIT, title.lower()) if w]


def _cosine_distance(a: list[float], b: list[float]) -> float:
    dot = sum(x * y for x, y in zip(a, b))
    na = math.sqrt(sum(x * x for x in a))
    nb = math.sqrt(sum(y * y for y in b))
    if not na or not nb:
        return 1.0
    return 1.0 - dot / (na * nb)


@dataclass
class InMemoryJobRepository(JobSearchRepository):
    """Job store over plain dicts; eligibility goes through the same filter AST as SQL."""
    jobs: list[dict] = field(default_factory=list)
    saved: dict[str, set[str]] = field(default_factory=dict)
    fail_text: bool = False
    fail_vector: bool = False
    fail_saved: bool = False
    fail_autocomplete: bool = False
    fail_autocomplete_fallback: bool = False
    fail_coordinates: bool = False
    fail_points: bool = False
    calls: list[str] = field(default_factory=list)

    def _eligible(self, job_filter: JobFilter) -> list[dict]:
        pred = to_predicate(job_filter)
        return [j for j in self.jobs if pred(j)]

    def _card(self, j: dict) -> JobCard:
        return JobCard(
            id=j["id"],
            title=j["title"],
            category=j.get("category"),
            job_type=j.get("job_type"),
            work_type=j.get("work_type"),
            experience=j.get("experience"),
            min_salary=j.get("min_salary"),
            max_salary=j.get("max_salary"),
            province=j.get("province"),
            district=j.get("district"),
            latitude=j.get("latitude"),
            longitude=j.get("longitude"),
            deadline=j.get("deadline"),
            created_at=j.get("created_at"),
            company_name=j.get("company_name"),
            company_logo=j.get("company_logo"),
        )

    async def text_branch(self, query: str, job_filter: JobFilter, limit: int) -> list[BranchHit]:
        self.calls.append("text_branch")
        if self.fail_text:
            raise _db_down("text branch")
        terms = query_terms(query)
        hits = []
        for j in self._eligible(job_filter):
            words = _title_words(j["title"])
            matched = [
                t for t in terms
                if any(w[:2] == t[:2] and _levenshtein(w, t) <= 1 for w in words)
            ]
            if not matched:
                continue
            body = (j.get("description") or "").lower()
            body_hits = sum(1 for t in terms if t in body)
            score = 2.0 * len(matched) / len(terms) + body_hits / len(terms) + boost_score(job_filter, j)
            hits.append(BranchHit(j["id"], score, j.get("latitude"), j.get("longitude")))
        hits.sort(key=lambda h: (-h.score, h.job_id))
        return hits[:limit]

    async def vector_branch(
        self, vector: list[float], job_filter: JobFilter, limit: int, num_candidates: int
    ) -> list[BranchHit]:
        self.calls.append("vector_branch")
        if self.fail_vector:
            raise _db_down("vector branch")
        hits = []
        for j in self._eligible(job_filter):
            chunks = j.get("embeddings") or []
            if not chunks:
                continue
            best = min(_cosine_distance(vector, c) for c in chunks)
            hits.append(BranchHit(j["id"], 1.0 / (1.0 + best), j.get("latitude"), j.get("longitude")))
        hits.sort(key=lambda h: (-h.score, h.job_id))
        return hits[:limit]

    async def list_jobs(self, job_filter: JobFilter, skip: int, limit: int) -> tuple[list[JobCard], int]:
        self.calls.append("list_jobs")
        rows = sorted(self._eligible(job_filter), key=lambda j: j["id"])
        rows.sort(key=lambda j: j["created_at"], reverse=True)
        return [self._card(j) for j in rows[skip:skip + limit]], len(rows)

    async def load_job_cards(self, job_ids: list[str]) -> dict[str, JobCard]:
        self.calls.append("load_job_cards")
        wanted = set(job_ids)
        return {j["id"]: self._card(j) for j in self.jobs if j["id"] in wanted}

    async def saved_job_ids(self, candidate_id: str, job_ids: list[str]) -> set[str]:
        self.calls.append("saved_job_ids")
        if self.fail_saved:
            raise _db_down("saved jobs")
        return self.saved.get(candidate_id, set()) & set(job_ids)

    def _autocomplete_population(self) -> list[dict]:
        return [j for j in self.jobs if j["status"] == "ACTIVE" and j["moderation_status"] == "APPROVED"]

    async def autocomplete_titles(self, query: str, limit: int) -> list[TitleCandidate]:
        self.calls.append("autocomplete_titles")
        if self.fail_autocomplete:
            raise _db_down("autocomplete index")
        terms = query_terms(query)
        out = []
        for j in self._autocomplete_population():
            words = _title_words(j["title"])
            if all(any(_levenshtein(w[:len(t)], t) <= 1 for w in words) for t in terms):
                out.append(TitleCandidate(j["title"], 1.0 / (1 + len(j["title"]))))
        # Same ORDER BY as the SQL: literal prefix first, then score, then title
        prefix = query.strip().lower()
        out.sort(key=lambda c: (not c.title.lower().startswith(prefix), -c.score, c.title))
        return out[:limit]

    async def autocomplete_titles_fallback(self, query: str, limit: int) -> list[TitleCandidate]:
        self.calls.append("autocomplete_titles_fallback")
        if self.fail_autocomplete_fallback:
            raise _db_down("autocomplete fallback")
        rx = re.compile(re.escape(query), re.I)
        prefix = query.strip().lower()
        titles = sorted(
            {j["title"] for j in self._autocomplete_population() if rx.search(j["title"])},
            key=lambda t: (not t.lower().startswith(prefix), t),
        )
        return [TitleCandidate(t, 1.0) for t in titles[:limit]]

    async def points_in_bounds(self, job_filter: JobFilter, limit: int) -> list[JobCard]:
        self.calls.append("points_in_bounds")
        if self.fail_points:
            raise _db_down("points")
        rows = sorted(self._eligible(job_filter), key=lambda j: j["id"])
        rows.sort(key=lambda j: j["created_at"], reverse=True)
        return [self._card(j) for j in rows[:limit]]

    async def coordinates_in_bounds(self, job_filter: JobFilter) -> list[GeoPoint]:
        self.calls.append("coordinates_in_bounds")
        if self.fail_coordinates:
            raise _db_down("coordinates")
        return [GeoPoint(j["id"], j["latitude"], j["longitude"]) for j in self._eligible(job_filter)]


class FakeEmbedder(EmbeddingProvider):
    """Maps known queries to fixed vectors; unknown queries get a constant vector."""

    def __init__(self, vectors: Optional[dict[str, list[float]]] = None, fail: bool = False):
        self.vectors = vectors or {}
        self.fail = fail
        self.calls = 0

    @property
    def dimension(self) -> int:
        return 3

    async def embed(self, texts: list[str]) -> list[list[float]]:
        self.calls += 1
        if self.fail:
            raise EmbeddingServiceError("Embedding API returned 503. Please try again later.")
        return [self.vectors.get(t, [1.0, 0.0, 0.0]) for t in texts]


def make_job(job_id: str, title: str, **overrides: Any) -> dict:
    job = {
        "id": job_id,
        "title": title,
        "description": "",
        "category": "IT",
        "job_type": "FULL_TIME",
        "work_type": "ON_SITE",
        "experience": "MID_LEVEL",
        "min_salary": None,
        "max_salary": None,
        "province": "Ha Noi",
        "district": None,
        "latitude": None,
        "longitude": None,
        "deadline": FAR_DEADLINE,
        "status": "ACTIVE",
        "moderation_status": "APPROVED",
        "created_at": NOW - timedelta(days=1),
        "company_name": "Acme",
        "company_logo": None,
        "embeddings": [],
    }
    job.update(overrides)
    return job


@pytest.fixture
def repo():
    return InMemoryJobRepository()


@pytest.fixture
def embedder():
    return FakeEmbedder()


@pytest.fixture
def search_config():
    return SearchConfig(embed_retry_base_delay_s=0.0)


@pytest.fixture
def service(repo, embedder, search_config):
    return JobSearchService(
        repo=repo,
        embedder_factory=lambda: embedder,
        search_config=search_config,
        cluster_config=ClusterConfig(),
    )


@pytest.fixture
def client(service):
    app.dependency_overrides[get_job_search_service] = lambda: service
    limiter.enabled = False
    c = TestClient(app)
    yield c
    limiter.enabled = True
    app.dependency_overrides.clear()
