"""Job filter AST shared by every retrieval path.

Request parameters are turned into one tree of frozen clause nodes. That tree
is rendered two ways:

* ``to_sql`` gives a SQLAlchemy boolean expression over ``Job`` columns, used
  by the text branch, the vector branch pre-filter, the listing path and the
  map queries.
* ``to_predicate`` gives a Python callable over a row (mapping or object). It
  is used for the radius filter applied to the union of branch hits, and by
  in-memory repositories.

Both renderers walk the same nodes, so a job is eligible on one path exactly
when it is eligible on the other.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Callable, Mapping, Optional, Union

from sqlalchemy import and_, case, false, func, literal, or_, true
from sqlalchemy.sql.elements import ColumnElement

from jobsearch.db.models import Job
from jobsearch.domain import JOB_STATUS_ACTIVE, MODERATION_APPROVED
from jobsearch.utils import haversine_km

DEFAULT_EARTH_RADIUS_KM = 6378.1

# Request attribute -> Job column for equality filters
_EQUALITY_FIELDS = (
    ("category", "category"),
    ("type", "job_type"),
    ("work_type", "work_type"),
    ("experience", "experience"),
    ("province", "province"),
    ("district", "district"),
)


# -----------------------------------------------------------------------------
# Nodes
# -----------------------------------------------------------------------------
@dataclass(frozen=True)
class Equals:
    field: str
    value: Any


@dataclass(frozen=True)
class Range:
    """gte/lte bounds on a column; rows with no value pass only when include_missing is set."""
    field: str
    gte: Any = None
    lte: Any = None
    include_missing: bool = False


@dataclass(frozen=True)
class Exists:
    field: str


@dataclass(frozen=True)
class AllOf:
    clauses: tuple


@dataclass(frozen=True)
class AnyOf:
    clauses: tuple


@dataclass(frozen=True)
class GeoRadius:
    latitude: float
    longitude: float
    radius_km: float
    earth_radius_km: float = DEFAULT_EARTH_RADIUS_KM


@dataclass(frozen=True)
class GeoBox:
    sw_lat: float
    sw_lng: float
    ne_lat: float
    ne_lng: float


@dataclass(frozen=True)
class GeoNear:
    """Boost that decays with distance: pivot / (pivot + distance_m)."""
    latitude: float
    longitude: float
    pivot_m: float
    earth_radius_km: float = DEFAULT_EARTH_RADIUS_KM


Clause = Union[Equals, Range, Exists, AllOf, AnyOf, GeoRadius, GeoBox]


@dataclass(frozen=True)
class JobFilter:
    """must: conjunctive eligibility clauses. should: score boosts that never exclude."""
    must: tuple = ()
    should: tuple = ()

    def with_clause(self, clause: Clause) -> "JobFilter":
        return JobFilter(must=self.must + (clause,), should=self.should)


# -----------------------------------------------------------------------------
# Builders
# -----------------------------------------------------------------------------
def salary_overlap(min_salary: Optional[float], max_salary: Optional[float]) -> Optional[Clause]:
    """Job salary range must overlap [min_salary, max_salary]; an open request side is unconstrained.

    A job must publish at least one bound to match; a missing job bound counts as open.
    """
    if min_salary is None and max_salary is None:
        return None
    clauses: list[Clause] = [AnyOf((Exists("min_salary"), Exists("max_salary")))]
    if min_salary is not None:
        clauses.append(Range("max_salary", gte=min_salary, include_missing=True))
    if max_salary is not None:
        clauses.append(Range("min_salary", lte=max_salary, include_missing=True))
    return AllOf(tuple(clauses))


def _equality_clauses(params: Any) -> list[Clause]:
    out: list[Clause] = []
    for attr, column in _EQUALITY_FIELDS:
        value = getattr(params, attr, None)
        if value is not None:
            out.append(Equals(column, value))
    return out


def build_base_clauses(params: Any, now: datetime) -> list[Clause]:
    """Predicates every search path shares: open (ACTIVE, before deadline) plus requested filters."""
    clauses: list[Clause] = [
        Equals("status", JOB_STATUS_ACTIVE),
        Range("deadline", gte=now),
    ]
    clauses.extend(_equality_clauses(params))
    salary = salary_overlap(getattr(params, "min_salary", None), getattr(params, "max_salary", None))
    if salary is not None:
        clauses.append(salary)
    return clauses


def build_search_filter(
    params: Any,
    now: datetime,
    pivot_m: float,
    earth_radius_km: float = DEFAULT_EARTH_RADIUS_KM,
) -> JobFilter:
    """Text branch filter: base predicates; user coordinates only boost, never exclude."""
    should: tuple = ()
    if getattr(params, "latitude", None) is not None and getattr(params, "longitude", None) is not None:
        should = (GeoNear(params.latitude, params.longitude, pivot_m, earth_radius_km),)
    return JobFilter(must=tuple(build_base_clauses(params, now)), should=should)


def radius_clause(params: Any, earth_radius_km: float = DEFAULT_EARTH_RADIUS_KM) -> Optional[GeoRadius]:
    lat = getattr(params, "latitude", None)
    lng = getattr(params, "longitude", None)
    distance = getattr(params, "distance", None)
    if lat is None or lng is None or distance is None:
        return None
    return GeoRadius(lat, lng, distance, earth_radius_km)


def build_pre_filter(
    params: Any,
    now: datetime,
    hard_radius: bool,
    earth_radius_km: float = DEFAULT_EARTH_RADIUS_KM,
) -> JobFilter:
    """Vector pre-filter (hard_radius=False) and no-query listing filter (hard_radius=True)."""
    f = JobFilter(must=tuple(build_base_clauses(params, now)))
    if hard_radius:
        radius = radius_clause(params, earth_radius_km)
        if radius is not None:
            f = f.with_clause(radius)
    return f


def build_map_filter(bounds: Any, filters: Any = None) -> JobFilter:
    """Map viewport: ACTIVE, approved, inside the box, plus optional equality filters."""
    clauses: list[Clause] = [
        Equals("status", JOB_STATUS_ACTIVE),
        Equals("moderation_status", MODERATION_APPROVED),
        GeoBox(bounds.sw_lat, bounds.sw_lng, bounds.ne_lat, bounds.ne_lng),
    ]
    if filters is not None:
        clauses.extend(_equality_clauses(filters))
    return JobFilter(must=tuple(clauses))


# -----------------------------------------------------------------------------
# SQL rendering
# -----------------------------------------------------------------------------
def _column(field: str, model=Job):
    col = getattr(model, field, None)
    if col is None:
        raise ValueError(f"Unknown job filter field: {field}")
    return col


def haversine_sql(latitude: float, longitude: float, earth_radius_km: float, model=Job) -> ColumnElement:
    """Great-circle distance in km from (latitude, longitude) to the row's coordinates."""
    dlat = func.radians(model.latitude - latitude) / 2
    dlng = func.radians(model.longitude - longitude) / 2
    a = func.power(func.sin(dlat), 2) + func.cos(func.radians(literal(latitude))) * func.cos(
        func.radians(model.latitude)
    ) * func.power(func.sin(dlng), 2)
    return 2 * earth_radius_km * func.asin(func.least(1.0, func.sqrt(a)))


def to_sql(clause: Any, model=Job) -> ColumnElement:
    if isinstance(clause, JobFilter):
        if not clause.must:
            return true()
        return and_(*(to_sql(c, model) for c in clause.must))
    if isinstance(clause, Equals):
        return _column(clause.field, model) == clause.value
    if isinstance(clause, Range):
        col = _column(clause.field, model)
        bounds = []
        if clause.gte is not None:
            bounds.append(col >= clause.gte)
        if clause.lte is not None:
            bounds.append(col <= clause.lte)
        expr = and_(col.is_not(None), *bounds) if bounds else col.is_not(None)
        return or_(col.is_(None), expr) if clause.include_missing else expr
    if isinstance(clause, Exists):
        return _column(clause.field, model).is_not(None)
    if isinstance(clause, AllOf):
        return and_(*(to_sql(c, model) for c in clause.clauses)) if clause.clauses else true()
    if isinstance(clause, AnyOf):
        return or_(*(to_sql(c, model) for c in clause.clauses)) if clause.clauses else false()
    if isinstance(clause, GeoRadius):
        return and_(
            model.latitude.is_not(None),
            model.longitude.is_not(None),
            haversine_sql(clause.latitude, clause.longitude, clause.earth_radius_km, model) <= clause.radius_km,
        )
    if isinstance(clause, GeoBox):
        return and_(
            model.latitude.between(clause.sw_lat, clause.ne_lat),
            model.longitude.between(clause.sw_lng, clause.ne_lng),
        )
    raise TypeError(f"Unsupported filter clause: {type(clause).__name__}")


def boost_sql(job_filter: JobFilter, model=Job) -> ColumnElement:
    """Sum of should-clause boosts; rows without coordinates get 0."""
    terms = []
    for near in job_filter.should:
        dist_m = haversine_sql(near.latitude, near.longitude, near.earth_radius_km, model) * 1000.0
        terms.append(
            case(
                (or_(model.latitude.is_(None), model.longitude.is_(None)), literal(0.0)),
                else_=near.pivot_m / (near.pivot_m + dist_m),
            )
        )
    if not terms:
        return literal(0.0)
    total = terms[0]
    for t in terms[1:]:
        total = total + t
    return total


# -----------------------------------------------------------------------------
# In-memory rendering
# -----------------------------------------------------------------------------
def _get(record: Any, field: str) -> Any:
    if isinstance(record, Mapping):
        return record.get(field)
    return getattr(record, field, None)


def to_predicate(clause: Any) -> Callable[[Any], bool]:
    if isinstance(clause, JobFilter):
        parts = [to_predicate(c) for c in clause.must]
        return lambda r: all(p(r) for p in parts)
    if isinstance(clause, Equals):
        return lambda r: _get(r, clause.field) == clause.value
    if isinstance(clause, Range):
        def _range(r: Any) -> bool:
            v = _get(r, clause.field)
            if v is None:
                return clause.include_missing
            if clause.gte is not None and not v >= clause.gte:
                return False
            if clause.lte is not None and not v <= clause.lte:
                return False
            return True
        return _range
    if isinstance(clause, Exists):
        return lambda r: _get(r, clause.field) is not None
    if isinstance(clause, AllOf):
        parts = [to_predicate(c) for c in clause.clauses]
        return lambda r: all(p(r) for p in parts)
    if isinstance(clause, AnyOf):
        parts = [to_predicate(c) for c in clause.clauses]
        return lambda r: any(p(r) for p in parts)
    if isinstance(clause, GeoRadius):
        def _radius(r: Any) -> bool:
            lat, lng = _get(r, "latitude"), _get(r, "longitude")
            if lat is None or lng is None:
                return False
            d = haversine_km(clause.latitude, clause.longitude, lat, lng, clause.earth_radius_km)
            return d <= clause.radius_km
        return _radius
    if isinstance(clause, GeoBox):
        def _box(r: Any) -> bool:
            lat, lng = _get(r, "latitude"), _get(r, "longitude")
            if lat is None or lng is None:
                return False
            return clause.sw_lat <= lat <= clause.ne_lat and clause.sw_lng <= lng <= clause.ne_lng
        return _box
    raise TypeError(f"Unsupported filter clause: {type(clause).__name__}")


def boost_score(job_filter: JobFilter, record: Any) -> float:
    total = 0.0
    for near in job_filter.should:
        lat, lng = _get(record, "latitude"), _get(record, "longitude")
        if lat is None or lng is None:
            continue
        dist_m = haversine_km(near.latitude, near.longitude, lat, lng, near.earth_radius_km) * 1000.0
        total += near.pivot_m / (near.pivot_m + dist_m)
    return total
