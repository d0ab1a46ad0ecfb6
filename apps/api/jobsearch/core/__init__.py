"""Core configuration, auth, and shared infrastructure."""

from jobsearch.core.config import Settings, get_settings
from jobsearch.core.constants import EMBEDDING_DIM, SEARCH_FAILED_MESSAGE
from jobsearch.core.auth import create_access_token, decode_access_token
from jobsearch.core.limiter import limiter

__all__ = [
    "Settings",
    "get_settings",
    "EMBEDDING_DIM",
    "SEARCH_FAILED_MESSAGE",
    "create_access_token",
    "decode_access_token",
    "limiter",
]
