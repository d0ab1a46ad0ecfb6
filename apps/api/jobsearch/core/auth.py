"""Bearer tokens for candidates. Tokens are issued by the account service; this API only reads them."""

from datetime import datetime, timedelta, timezone
from typing import Optional

from jose import JWTError, jwt

from jobsearch.core.config import get_settings


def create_access_token(candidate_id: str, expire_minutes: Optional[int] = None) -> str:
    """Signed token carrying the candidate id as ``sub``. Used by tests and local tooling."""
    s = get_settings()
    minutes = s.jwt_expire_minutes if expire_minutes is None else expire_minutes
    claims = {"sub": candidate_id, "exp": datetime.now(timezone.utc) + timedelta(minutes=minutes)}
    return jwt.encode(claims, s.jwt_secret, algorithm=s.jwt_algorithm)


def decode_access_token(token: str) -> Optional[str]:
    """Candidate id for a valid, unexpired token; None for anything else."""
    s = get_settings()
    try:
        claims = jwt.decode(token, s.jwt_secret, algorithms=[s.jwt_algorithm])
    except JWTError:
        return None
    candidate_id = claims.get("sub")
    return str(candidate_id) if candidate_id else None
