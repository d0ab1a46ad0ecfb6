"""Branch sizing and per-branch ranking for hybrid search."""

from jobsearch.domain import Branch
from .fusion import RankedCandidate
from .tuning import SearchConfig
from .repository import BranchHit


def branch_limit(page: int, size: int, config: SearchConfig) -> int:
    """Hits each branch must return so the requested page survives fusion."""
    return max(page * size + config.branch_page_padding, config.branch_min_limit)


def num_candidates(limit: int, config: SearchConfig) -> int:
    """ANN candidate pool for the vector branch."""
    return max(config.num_candidates_min, limit * config.num_candidates_factor)


def assign_ranks(hits: list[BranchHit], branch: Branch) -> list[RankedCandidate]:
    """1-based ranks by score descending; sort is stable so store order breaks ties."""
    ordered = sorted(hits, key=lambda h: -h.score)
    return [
        RankedCandidate(job_id=h.job_id, branch=branch, score=h.score, rank=i)
        for i, h in enumerate(ordered, start=1)
    ]
