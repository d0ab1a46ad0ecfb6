"""Stage-tagged error types for the search and map pipelines."""

from enum import Enum
from typing import Optional


class SearchStage(str, Enum):
    """Pipeline stage identifiers for error reporting."""
    EMBED = "embed"
    TEXT_BRANCH = "text_branch"
    VECTOR_BRANCH = "vector_branch"
    LISTING = "listing"
    ENRICH = "enrich"
    CLUSTER = "cluster"
    POINTS = "points"


class SearchError(Exception):
    """Search/map error with stage context. The message is for logs, not for clients."""
    def __init__(self, stage: SearchStage, message: str, cause: Optional[Exception] = None):
        self.stage = stage
        self.message = message
        self.cause = cause
        super().__init__(f"[{stage.value}] {message}")


class SearchQueryError(SearchError):
    """The ranked result cannot be produced (embedding or a retrieval branch failed)."""


class MapQueryError(SearchError):
    """The viewport point query failed, including the clustering fallback."""
