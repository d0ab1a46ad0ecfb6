from dataclasses import dataclass

from jobsearch.core import Settings


@dataclass(frozen=True)
class SearchConfig:
    """Search tuning, built once from Settings and passed down so ranking code never reads globals."""
    rrf_k: int = 60
    default_text_weight: float = 0.4
    default_vector_weight: float = 0.6
    branch_min_limit: int = 500
    branch_page_padding: int = 100
    num_candidates_min: int = 1000
    num_candidates_factor: int = 20
    geo_pivot_meters: float = 20000.0
    earth_radius_km: float = 6378.1
    embed_retries: int = 2
    embed_retry_base_delay_s: float = 0.5
    autocomplete_candidate_limit: int = 200

    @classmethod
    def from_settings(cls, s: Settings) -> "SearchConfig":
        return cls(
            rrf_k=s.rrf_k,
            default_text_weight=s.default_text_weight,
            default_vector_weight=s.default_vector_weight,
            branch_min_limit=s.branch_min_limit,
            branch_page_padding=s.branch_page_padding,
            num_candidates_min=s.num_candidates_min,
            num_candidates_factor=s.num_candidates_factor,
            geo_pivot_meters=s.geo_pivot_meters,
            earth_radius_km=s.earth_radius_km,
            embed_retries=s.embed_retries,
            embed_retry_base_delay_s=s.embed_retry_base_delay_s,
            autocomplete_candidate_limit=s.autocomplete_candidate_limit,
        )
