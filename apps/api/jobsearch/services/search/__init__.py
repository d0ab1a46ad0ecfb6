from .autocomplete import autocomplete_titles, rank_suggestions
from .repository import JobSearchRepository, PostgresJobSearchRepository
from .search_logic import run_search
from .tuning import SearchConfig

__all__ = [
    "autocomplete_titles",
    "rank_suggestions",
    "JobSearchRepository",
    "PostgresJobSearchRepository",
    "run_search",
    "SearchConfig",
]
