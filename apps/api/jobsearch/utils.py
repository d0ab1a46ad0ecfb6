"""Shared utilities."""

import math
import re

from jobsearch.core import EMBEDDING_DIM

# Query tokens and SQL title words split on the same class (\w keeps "_" in both)
TITLE_WORD_SPLIT = r"\W+"
_WORD_RE = re.compile(r"\w+", re.UNICODE)


def normalize_embedding(vec: list[float], dim: int = EMBEDDING_DIM) -> list[float]:
    """Truncate or zero-pad vector to fixed dimension (e.g. for DB storage)."""
    if len(vec) < dim:
        return vec[:dim] + [0.0] * (dim - len(vec))
    return vec[:dim]


def query_terms(query: str) -> list[str]:
    """Lowercased word tokens, first occurrence order, duplicates removed."""
    seen: list[str] = []
    for tok in _WORD_RE.findall((query or "").lower()):
        if tok not in seen:
            seen.append(tok)
    return seen


def haversine_km(lat1: float, lng1: float, lat2: float, lng2: float, radius_km: float = 6378.1) -> float:
    """Great-circle distance on a sphere of the given radius."""
    p1, p2 = math.radians(lat1), math.radians(lat2)
    dp = p2 - p1
    dl = math.radians(lng2 - lng1)
    a = math.sin(dp / 2) ** 2 + math.cos(p1) * math.cos(p2) * math.sin(dl / 2) ** 2
    return 2 * radius_km * math.asin(min(1.0, math.sqrt(a)))
