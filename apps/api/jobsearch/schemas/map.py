from typing import Any, Literal, Optional

from pydantic import BaseModel, Field, field_validator, model_validator

from jobsearch.core import get_settings
from jobsearch.domain import ExperienceLevel, JobCategory, JobType, WorkType
from jobsearch.schemas.search import CompanySummary

_settings = get_settings()


class MapFilters(BaseModel):
    """Equality filters shared by map points and map clusters."""
    category: Optional[JobCategory] = None
    type: Optional[JobType] = None
    work_type: Optional[WorkType] = None
    experience: Optional[ExperienceLevel] = None
    province: Optional[str] = Field(None, max_length=255)
    district: Optional[str] = Field(None, max_length=255)

    @field_validator("province", "district", mode="before")
    @classmethod
    def _blank_to_none(cls, v: Any) -> Any:
        if isinstance(v, str):
            return v.strip() or None
        return v


class MapBounds(BaseModel):
    """Viewport box. Boxes crossing the antimeridian are rejected (sw_lng must be <= ne_lng)."""
    sw_lat: float = Field(..., ge=-90, le=90)
    sw_lng: float = Field(..., ge=-180, le=180)
    ne_lat: float = Field(..., ge=-90, le=90)
    ne_lng: float = Field(..., ge=-180, le=180)

    @model_validator(mode="after")
    def _check_corners(self) -> "MapBounds":
        if self.sw_lat > self.ne_lat:
            raise ValueError("sw_lat must be less than or equal to ne_lat")
        if self.sw_lng > self.ne_lng:
            raise ValueError("sw_lng must be less than or equal to ne_lng")
        return self


class MapPointsParams(MapBounds, MapFilters):
    """Query string of GET /jobs/map-search."""
    limit: int = Field(_settings.map_points_limit, ge=1, le=_settings.map_points_limit)


class MapClustersParams(MapBounds, MapFilters):
    """Query string of GET /jobs/map-clusters."""
    zoom: int = Field(..., ge=1, le=20)


class MapPoint(BaseModel):
    id: str
    title: str
    latitude: float
    longitude: float
    min_salary: Optional[float] = None
    max_salary: Optional[float] = None
    type: Optional[str] = None
    work_type: Optional[str] = None
    province: Optional[str] = None
    district: Optional[str] = None
    company: CompanySummary = CompanySummary()


class MapCluster(BaseModel):
    """A bucket of nearby jobs, or a one-job point when clustering fell back to raw points."""
    type: Literal["cluster", "point"] = "cluster"
    latitude: float
    longitude: float
    count: int
    job_ids: Optional[list[str]] = None  # omitted above the member cap
    job_id: Optional[str] = None
    title: Optional[str] = None


class MapPointsResponse(BaseModel):
    data: list[MapPoint]


class MapClustersResponse(BaseModel):
    data: list[MapCluster]
    zoom: int
    bucket_count: int
    fallback: bool = False
