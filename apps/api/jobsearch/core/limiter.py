from typing import Optional

from fastapi import Request
from slowapi import Limiter
from slowapi.util import get_remote_address

from jobsearch.core.auth import decode_access_token


def _bearer_candidate(request: Request) -> Optional[str]:
    scheme, _, token = (request.headers.get("Authorization") or "").partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        return None
    return decode_access_token(token.strip())


def get_rate_limit_key(request: Request) -> str:
    """Signed-in candidates share one bucket across IPs; anonymous searches are limited per IP."""
    candidate_id = _bearer_candidate(request)
    if candidate_id:
        return f"candidate:{candidate_id}"
    return get_remote_address(request)


limiter = Limiter(key_func=get_rate_limit_key)
