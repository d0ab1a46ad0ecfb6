"""Job search schema: recruiter profiles, jobs, embedded job chunks, saved jobs and search indexes.

Revision ID: 001
Revises:
Create Date: 2026-10-19

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql
from pgvector.sqlalchemy import Vector


revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

EMBEDDING_DIM = 768


def upgrade() -> None:
    op.execute("CREATE EXTENSION IF NOT EXISTS vector")
    # word_similarity for autocomplete, trigram index for title substring fallback
    op.execute("CREATE EXTENSION IF NOT EXISTS pg_trgm")
    # levenshtein for fuzzy title matching
    op.execute("CREATE EXTENSION IF NOT EXISTS fuzzystrmatch")

    op.create_table(
        "recruiter_profiles",
        sa.Column("id", postgresql.UUID(as_uuid=False), primary_key=True),
        sa.Column("company_name", sa.String(255), nullable=False),
        sa.Column("company_logo", sa.String(1000), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )

    op.create_table(
        "jobs",
        sa.Column("id", postgresql.UUID(as_uuid=False), primary_key=True),
        sa.Column(
            "recruiter_profile_id",
            postgresql.UUID(as_uuid=False),
            sa.ForeignKey("recruiter_profiles.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("title", sa.String(255), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("requirements", sa.Text(), nullable=True),
        sa.Column("benefits", sa.Text(), nullable=True),
        sa.Column("address", sa.String(500), nullable=True),
        sa.Column("category", sa.String(50), nullable=True),
        sa.Column("job_type", sa.String(50), nullable=True),
        sa.Column("work_type", sa.String(50), nullable=True),
        sa.Column("experience", sa.String(50), nullable=True),
        sa.Column("min_salary", sa.Numeric(14, 2), nullable=True),
        sa.Column("max_salary", sa.Numeric(14, 2), nullable=True),
        sa.Column("province", sa.String(255), nullable=True),
        sa.Column("district", sa.String(255), nullable=True),
        sa.Column("latitude", sa.Float(), nullable=True),
        sa.Column("longitude", sa.Float(), nullable=True),
        sa.Column("deadline", sa.DateTime(timezone=True), nullable=False),
        sa.Column("status", sa.String(20), nullable=False, server_default="ACTIVE"),
        sa.Column("moderation_status", sa.String(20), nullable=False, server_default="PENDING"),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index("ix_jobs_status_deadline", "jobs", ["status", "deadline"], unique=False)
    op.create_index("ix_jobs_status_moderation", "jobs", ["status", "moderation_status"], unique=False)
    op.create_index("ix_jobs_created_at", "jobs", ["created_at"], unique=False)
    op.create_index("ix_jobs_lat_lng", "jobs", ["latitude", "longitude"], unique=False)
    op.create_index("ix_jobs_province_district", "jobs", ["province", "district"], unique=False)
    op.execute(
        "CREATE INDEX IF NOT EXISTS ix_jobs_title_gin_trgm "
        "ON jobs USING GIN (lower(title) gin_trgm_ops)"
    )
    # Full-text relevance for the text branch
    op.execute(
        "CREATE INDEX IF NOT EXISTS ix_jobs_body_fts "
        "ON jobs USING GIN (to_tsvector('simple', coalesce(description, '') || ' ' || coalesce(requirements, '')))"
    )

    op.create_table(
        "job_chunks",
        sa.Column("id", postgresql.UUID(as_uuid=False), primary_key=True),
        sa.Column(
            "job_id",
            postgresql.UUID(as_uuid=False),
            sa.ForeignKey("jobs.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("chunk_index", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("page_content", sa.Text(), nullable=False),
        sa.Column("embedding", Vector(EMBEDDING_DIM), nullable=True),
    )
    op.create_index("ix_job_chunks_job_id", "job_chunks", ["job_id"], unique=False)
    # HNSW for cosine (<=>) nearest-chunk search
    op.execute(
        "CREATE INDEX IF NOT EXISTS ix_job_chunks_embedding_hnsw "
        "ON job_chunks USING hnsw (embedding vector_cosine_ops)"
    )

    op.create_table(
        "saved_jobs",
        sa.Column("id", postgresql.UUID(as_uuid=False), primary_key=True),
        sa.Column("candidate_id", postgresql.UUID(as_uuid=False), nullable=False),
        sa.Column(
            "job_id",
            postgresql.UUID(as_uuid=False),
            sa.ForeignKey("jobs.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.UniqueConstraint("candidate_id", "job_id", name="uq_saved_jobs_candidate_job"),
    )
    op.create_index("ix_saved_jobs_candidate_id", "saved_jobs", ["candidate_id"], unique=False)


def downgrade() -> None:
    op.drop_index("ix_saved_jobs_candidate_id", table_name="saved_jobs")
    op.drop_table("saved_jobs")
    op.execute("DROP INDEX IF EXISTS ix_job_chunks_embedding_hnsw")
    op.drop_index("ix_job_chunks_job_id", table_name="job_chunks")
    op.drop_table("job_chunks")
    op.execute("DROP INDEX IF EXISTS ix_jobs_body_fts")
    op.execute("DROP INDEX IF EXISTS ix_jobs_title_gin_trgm")
    op.drop_index("ix_jobs_province_district", table_name="jobs")
    op.drop_index("ix_jobs_lat_lng", table_name="jobs")
    op.drop_index("ix_jobs_created_at", table_name="jobs")
    op.drop_index("ix_jobs_status_moderation", table_name="jobs")
    op.drop_index("ix_jobs_status_deadline", table_name="jobs")
    op.drop_table("jobs")
    op.drop_table("recruiter_profiles")
