from .errors import SearchError, SearchQueryError, MapQueryError, SearchStage
from .job_search import JobSearchService

__all__ = ["SearchError", "SearchQueryError", "MapQueryError", "SearchStage", "JobSearchService"]
