"""Job title autocomplete with a literal-substring fallback."""

import logging

from sqlalchemy.exc import SQLAlchemyError

from jobsearch.schemas import AutocompleteSuggestion
from jobsearch.services.errors import SearchError

from .repository import JobSearchRepository, TitleCandidate

logger = logging.getLogger(__name__)

FALLBACK_SCORE = 1.0


def rank_suggestions(
    candidates: list[TitleCandidate],
    query: str,
    limit: int,
    by_score: bool = True,
) -> list[AutocompleteSuggestion]:
    """Dedup by title (best score kept), prefix matches first, then score (or title) order."""
    best: dict[str, float] = {}
    for c in candidates:
        if c.title not in best or c.score > best[c.title]:
            best[c.title] = c.score
    prefix = query.strip().lower()
    suggestions = [
        AutocompleteSuggestion(title=title, score=score, is_prefix_match=title.lower().startswith(prefix))
        for title, score in best.items()
    ]
    if by_score:
        suggestions.sort(key=lambda s: (not s.is_prefix_match, -s.score, s.title))
    else:
        suggestions.sort(key=lambda s: (not s.is_prefix_match, s.title))
    return suggestions[:limit]


async def autocomplete_titles(
    repo: JobSearchRepository,
    query: str,
    limit: int,
    candidate_limit: int = 200,
) -> list[AutocompleteSuggestion]:
    """Never raises: primary failure degrades to the substring path, a second failure to []."""
    q = (query or "").strip()
    if not q:
        return []
    pool = max(limit, candidate_limit)
    try:
        candidates = await repo.autocomplete_titles(q, pool)
        return rank_suggestions(candidates, q, limit, by_score=True)
    except (SQLAlchemyError, SearchError) as e:
        logger.warning("Autocomplete primary path failed, using substring fallback: %s", e)
    try:
        candidates = await repo.autocomplete_titles_fallback(q, pool)
    except (SQLAlchemyError, SearchError):
        logger.exception("Autocomplete fallback failed for %r", q)
        return []
    return rank_suggestions(
        [TitleCandidate(c.title, FALLBACK_SCORE) for c in candidates], q, limit, by_score=False
    )
