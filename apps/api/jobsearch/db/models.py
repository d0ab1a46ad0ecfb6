import uuid
from datetime import datetime, timezone

from sqlalchemy import (
    Column,
    String,
    Text,
    Integer,
    Numeric,
    Float,
    DateTime,
    ForeignKey,
    Index,
    UniqueConstraint,
    func,
)
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship

from .session import Base
from jobsearch.core.constants import EMBEDDING_DIM
from jobsearch.domain import JOB_STATUS_ACTIVE, MODERATION_PENDING

from pgvector.sqlalchemy import Vector


def uuid4_str():
    return str(uuid.uuid4())


class RecruiterProfile(Base):
    """Company behind a posting; only the fields listings denormalize are mapped."""
    __tablename__ = "recruiter_profiles"

    id = Column(UUID(as_uuid=False), primary_key=True, default=uuid4_str)
    company_name = Column(String(255), nullable=False)
    company_logo = Column(String(1000), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    jobs = relationship("Job", back_populates="recruiter_profile")


class Job(Base):
    __tablename__ = "jobs"

    id = Column(UUID(as_uuid=False), primary_key=True, default=uuid4_str)
    recruiter_profile_id = Column(
        UUID(as_uuid=False), ForeignKey("recruiter_profiles.id", ondelete="CASCADE"), nullable=False
    )

    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    requirements = Column(Text, nullable=True)
    benefits = Column(Text, nullable=True)
    address = Column(String(500), nullable=True)

    category = Column(String(50), nullable=True)
    job_type = Column(String(50), nullable=True)
    work_type = Column(String(50), nullable=True)
    experience = Column(String(50), nullable=True)

    # Either bound may be missing; salary filters treat a missing bound as open
    min_salary = Column(Numeric(14, 2), nullable=True)
    max_salary = Column(Numeric(14, 2), nullable=True)

    province = Column(String(255), nullable=True)
    district = Column(String(255), nullable=True)
    latitude = Column(Float, nullable=True)
    longitude = Column(Float, nullable=True)

    deadline = Column(DateTime(timezone=True), nullable=False)
    status = Column(String(20), nullable=False, default=JOB_STATUS_ACTIVE)
    moderation_status = Column(String(20), nullable=False, default=MODERATION_PENDING)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=lambda: datetime.now(timezone.utc))

    recruiter_profile = relationship("RecruiterProfile", back_populates="jobs")
    chunks = relationship("JobChunk", back_populates="job", cascade="all, delete-orphan")

    __table_args__ = (
        Index("ix_jobs_status_deadline", "status", "deadline"),
        Index("ix_jobs_status_moderation", "status", "moderation_status"),
        Index("ix_jobs_created_at", "created_at"),
        Index("ix_jobs_lat_lng", "latitude", "longitude"),
        Index("ix_jobs_province_district", "province", "district"),
    )


class JobChunk(Base):
    """Embedded slice of a job's text; a job matches semantically via its best chunk."""
    __tablename__ = "job_chunks"

    id = Column(UUID(as_uuid=False), primary_key=True, default=uuid4_str)
    job_id = Column(UUID(as_uuid=False), ForeignKey("jobs.id", ondelete="CASCADE"), nullable=False, index=True)
    chunk_index = Column(Integer, nullable=False, default=0)
    page_content = Column(Text, nullable=False)
    embedding = Column(Vector(EMBEDDING_DIM), nullable=True)

    job = relationship("Job", back_populates="chunks")


class SavedJob(Base):
    __tablename__ = "saved_jobs"

    id = Column(UUID(as_uuid=False), primary_key=True, default=uuid4_str)
    candidate_id = Column(UUID(as_uuid=False), nullable=False, index=True)
    job_id = Column(UUID(as_uuid=False), ForeignKey("jobs.id", ondelete="CASCADE"), nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    __table_args__ = (UniqueConstraint("candidate_id", "job_id", name="uq_saved_jobs_candidate_job"),)
