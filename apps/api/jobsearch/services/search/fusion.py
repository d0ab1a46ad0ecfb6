"""Reciprocal Rank Fusion of the text and vector branches.

rrf(job) = sum over branches b containing job of weight_b / (k + rank_b(job))

Fused results are totally ordered by:
  1. rrf score, descending
  2. vector score, descending (absent last)
  3. text score, descending (absent last)
  4. job id, ascending
so identical inputs always paginate identically.
"""

from dataclasses import dataclass
from typing import Callable, Iterable, Optional

from jobsearch.domain import Branch

from .repository import BranchHit


@dataclass(frozen=True)
class RankedCandidate:
    job_id: str
    branch: Branch
    score: float
    rank: int


@dataclass(frozen=True)
class FusedResult:
    job_id: str
    rrf_score: float
    text_score: Optional[float]
    vector_score: Optional[float]
    rank: int


def filter_hits_by_radius(hits: Iterable[BranchHit], predicate: Callable[[BranchHit], bool]) -> list[BranchHit]:
    """Keep hits inside the hard radius. Applied to raw hits of both branches before ranking."""
    return [h for h in hits if predicate(h)]


def _missing_last(score: Optional[float]) -> tuple[int, float]:
    return (1, 0.0) if score is None else (0, -score)


def fuse(
    text: list[RankedCandidate],
    vector: list[RankedCandidate],
    text_weight: float,
    vector_weight: float,
    k: int,
) -> list[FusedResult]:
    rrf: dict[str, float] = {}
    text_scores: dict[str, float] = {}
    vector_scores: dict[str, float] = {}

    # Text contributions are added first, then vector, for every job
    for c in text:
        rrf[c.job_id] = rrf.get(c.job_id, 0.0) + text_weight / (k + c.rank)
        prev = text_scores.get(c.job_id)
        text_scores[c.job_id] = c.score if prev is None else max(prev, c.score)
    for c in vector:
        rrf[c.job_id] = rrf.get(c.job_id, 0.0) + vector_weight / (k + c.rank)
        prev = vector_scores.get(c.job_id)
        vector_scores[c.job_id] = c.score if prev is None else max(prev, c.score)

    ordered = sorted(
        rrf,
        key=lambda jid: (
            -rrf[jid],
            _missing_last(vector_scores.get(jid)),
            _missing_last(text_scores.get(jid)),
            jid,
        ),
    )
    return [
        FusedResult(
            job_id=jid,
            rrf_score=rrf[jid],
            text_score=text_scores.get(jid),
            vector_score=vector_scores.get(jid),
            rank=i,
        )
        for i, jid in enumerate(ordered, start=1)
    ]
