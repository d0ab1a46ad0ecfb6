from functools import lru_cache
from typing import Annotated, Optional

from fastapi import Depends
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials

from jobsearch.core import decode_access_token, get_settings
from jobsearch.db.session import async_session
from jobsearch.providers import get_embedding_provider
from jobsearch.services import JobSearchService
from jobsearch.services.map import ClusterConfig
from jobsearch.services.search import PostgresJobSearchRepository, SearchConfig

security = HTTPBearer(auto_error=False)


@lru_cache
def get_job_search_service() -> JobSearchService:
    s = get_settings()
    return JobSearchService(
        repo=PostgresJobSearchRepository(async_session, ef_search_max=s.hnsw_ef_search_max),
        embedder_factory=get_embedding_provider,
        search_config=SearchConfig.from_settings(s),
        cluster_config=ClusterConfig.from_settings(s),
        map_points_limit=s.map_points_limit,
    )


async def get_optional_candidate_id(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(security)],
) -> Optional[str]:
    """Candidate id from a valid bearer token; anonymous (None) when missing or invalid."""
    if not credentials:
        return None
    return decode_access_token(credentials.credentials)
