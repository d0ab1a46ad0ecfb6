from functools import lru_cache
from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict

# Load .env from apps/api so it works regardless of CWD
_env_file = Path(__file__).resolve().parent.parent.parent / ".env"


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=_env_file, extra="ignore")

    database_url: str = "postgresql://localhost/jobsearch"
    jwt_secret: str = "change-me-in-production"
    jwt_algorithm: str = "HS256"
    jwt_expire_minutes: int = 60 * 24 * 7  # 7 days

    # Embeddings (OpenAI-compatible); dimension must match job_chunks.embedding
    embed_api_base_url: str | None = None
    embed_api_key: str | None = None
    embed_model: str = "text-embedding-3-small"
    embed_dimension: int = 768
    embed_timeout_s: float = 30.0
    embed_retries: int = 2
    embed_retry_base_delay_s: float = 0.5

    # Hybrid search / rank fusion
    rrf_k: int = 60
    default_text_weight: float = 0.4
    default_vector_weight: float = 0.6
    max_page_size: int = 50
    # Deepest reachable page; bounds branch sizing (page * size + padding)
    max_page: int = 100
    branch_min_limit: int = 500
    branch_page_padding: int = 100
    num_candidates_min: int = 1000
    num_candidates_factor: int = 20
    # pgvector caps hnsw.ef_search at 1000
    hnsw_ef_search_max: int = 1000
    geo_pivot_meters: float = 20000.0
    earth_radius_km: float = 6378.1

    # Autocomplete
    autocomplete_default_limit: int = 10
    autocomplete_max_limit: int = 20
    autocomplete_candidate_limit: int = 200

    # Map (bbox points for high zoom, bucketed clusters below)
    map_points_limit: int = 50
    map_fallback_points_limit: int = 100
    cluster_member_ids_cap: int = 50
    # (zoom upper bound exclusive, bucket count); zooms past the last step use the default
    zoom_bucket_steps: list[tuple[int, int]] = [(5, 2), (8, 4), (10, 6), (11, 7), (12, 8)]
    zoom_bucket_default: int = 20

    # Rate limiting (per-user when a bearer token is present, else per IP)
    search_rate_limit: str = "30/minute"
    autocomplete_rate_limit: str = "120/minute"
    map_rate_limit: str = "60/minute"

    # CORS (comma-separated origins; * allows all)
    cors_origins: str = "*"

    @property
    def cors_origins_list(self) -> list[str]:
        """Parsed CORS origins for middleware."""
        raw = self.cors_origins.strip()
        return ["*"] if not raw else [o.strip() for o in raw.split(",") if o.strip()]


@lru_cache
def get_settings() -> Settings:
    return Settings()
