from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, Field, field_validator, model_validator

from jobsearch.core import get_settings
from jobsearch.domain import ExperienceLevel, JobCategory, JobType, WorkType

_settings = get_settings()

# Filters echoed back in SearchMeta.applied_filters (in this order)
_APPLIED_FILTER_FIELDS = (
    "category",
    "type",
    "work_type",
    "experience",
    "province",
    "district",
    "min_salary",
    "max_salary",
    "latitude",
    "longitude",
    "distance",
)


# ---------------------------------------------------------------------------
# Request
# ---------------------------------------------------------------------------

class SearchParams(BaseModel):
    """Query string of GET /jobs/search/hybrid. Empty query => newest-first listing."""
    query: Optional[str] = Field(None, max_length=200)
    page: int = Field(1, ge=1, le=_settings.max_page)
    size: int = Field(10, ge=1, le=_settings.max_page_size)

    category: Optional[JobCategory] = None
    type: Optional[JobType] = None
    work_type: Optional[WorkType] = None
    experience: Optional[ExperienceLevel] = None
    province: Optional[str] = Field(None, max_length=255)
    district: Optional[str] = Field(None, max_length=255)

    min_salary: Optional[float] = Field(None, ge=0)
    max_salary: Optional[float] = Field(None, ge=0)

    latitude: Optional[float] = Field(None, ge=-90, le=90)
    longitude: Optional[float] = Field(None, ge=-180, le=180)
    distance: Optional[float] = Field(None, ge=1, description="Hard radius in km around latitude/longitude")

    # None => configured defaults; weights need not sum to 1
    text_weight: Optional[float] = Field(None, ge=0, le=1)
    vector_weight: Optional[float] = Field(None, ge=0, le=1)

    @field_validator("query", "province", "district", mode="before")
    @classmethod
    def _blank_to_none(cls, v: Any) -> Any:
        if isinstance(v, str):
            v = v.strip()
            return v or None
        return v

    @model_validator(mode="after")
    def _check_combinations(self) -> "SearchParams":
        if (
            self.min_salary is not None
            and self.max_salary is not None
            and self.max_salary < self.min_salary
        ):
            raise ValueError("max_salary must be greater than or equal to min_salary")
        if (self.latitude is None) != (self.longitude is None):
            raise ValueError("latitude and longitude must be provided together")
        if self.distance is not None and self.latitude is None:
            raise ValueError("distance requires latitude and longitude")
        if self.district and not self.province:
            raise ValueError("district requires province")
        return self

    @property
    def has_query(self) -> bool:
        return bool(self.query)

    def applied_filters(self) -> dict[str, Any]:
        out: dict[str, Any] = {}
        for name in _APPLIED_FILTER_FIELDS:
            value = getattr(self, name)
            if value is not None:
                out[name] = value
        return out


class AutocompleteParams(BaseModel):
    query: str = Field(..., min_length=1, max_length=100)
    limit: int = Field(_settings.autocomplete_default_limit, ge=1, le=_settings.autocomplete_max_limit)


# ---------------------------------------------------------------------------
# Response
# ---------------------------------------------------------------------------

class CompanySummary(BaseModel):
    name: Optional[str] = None
    logo: Optional[str] = None


class JobSearchItem(BaseModel):
    """Light job card: description/requirements/benefits/address are never included."""
    id: str
    title: str
    category: Optional[str] = None
    type: Optional[str] = None
    work_type: Optional[str] = None
    experience: Optional[str] = None
    min_salary: Optional[float] = None
    max_salary: Optional[float] = None
    province: Optional[str] = None
    district: Optional[str] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    deadline: Optional[datetime] = None
    created_at: Optional[datetime] = None
    company: CompanySummary = CompanySummary()
    is_saved: bool = False
    # Present on hybrid results only
    rank: Optional[int] = None
    rrf_score: Optional[float] = None
    text_score: Optional[float] = None
    vector_score: Optional[float] = None


class SearchMeta(BaseModel):
    current_page: int
    total_pages: int
    total_items: int
    limit: int
    search_query: Optional[str] = None
    applied_filters: dict[str, Any] = {}


class JobSearchResponse(BaseModel):
    data: list[JobSearchItem]
    meta: SearchMeta


class AutocompleteSuggestion(BaseModel):
    title: str
    score: float
    is_prefix_match: bool
