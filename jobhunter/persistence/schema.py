"""Database schema definition and ORM models.

Timestamps are stored as fixed-width ISO 8601 strings (see
``jobhunter.utils.timestamps``) so staleness cutoffs compare lexically.
"""

import logging

from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    Float,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
    inspect,
)
from sqlalchemy.engine import Engine
from sqlalchemy.orm import declarative_base

from jobhunter.domain.models import IngestionRunLog, JobRecord
from jobhunter.utils.timestamps import from_storage, to_storage, utc_now

logger = logging.getLogger(__name__)

Base = declarative_base()


class JobModel(Base):
    """ORM model for the jobs table."""

    __tablename__ = "jobs"

    id = Column(Integer, primary_key=True, autoincrement=True)

    # Identity
    external_id = Column(String(255), nullable=False)
    source_name = Column(String(50), nullable=False)
    canonical_key = Column(Text, nullable=False)

    # Content
    title = Column(Text, nullable=False)
    company = Column(String(255), nullable=False)
    link = Column(Text, nullable=False)
    description = Column(Text, nullable=True)
    location = Column(String(255), nullable=True)
    remote_eligible = Column(Boolean, nullable=False, default=False)
    seniority = Column(String(50), nullable=True)
    interview_style = Column(String(50), nullable=True)
    role_type = Column(String(50), nullable=True)
    compensation = Column(String(255), nullable=True)
    # "metadata" is reserved on declarative classes
    extra = Column("metadata", JSON, nullable=False, default=dict)

    # Scoring
    score = Column(Float, nullable=False, default=0.0)
    score_breakdown = Column(JSON, nullable=False, default=dict)
    summary = Column(Text, nullable=True)
    scored_from_defaults = Column(Boolean, nullable=False, default=False)

    # Lifecycle
    duplicate_of_id = Column(Integer, ForeignKey("jobs.id"), nullable=True)
    is_stale = Column(Boolean, nullable=False, default=False)
    export_status = Column(String(20), nullable=False, default="pending")
    export_cursor = Column(Integer, nullable=False, default=0)

    created_at = Column(String(50), nullable=False)
    updated_at = Column(String(50), nullable=False)

    __table_args__ = (
        UniqueConstraint("external_id", "source_name", name="uq_jobs_external_source"),
        Index("idx_jobs_canonical_key", "canonical_key"),
        Index("idx_jobs_score", "score"),
        Index("idx_jobs_updated_at", "updated_at"),
    )

    def to_domain(self) -> JobRecord:
        return JobRecord(
            id=self.id,
            external_id=self.external_id,
            source_name=self.source_name,
            canonical_key=self.canonical_key,
            title=self.title,
            company=self.company,
            link=self.link,
            description=self.description,
            location=self.location,
            remote_eligible=bool(self.remote_eligible),
            seniority=self.seniority,
            interview_style=self.interview_style,
            role_type=self.role_type,
            compensation=self.compensation,
            metadata=self.extra or {},
            score=self.score or 0.0,
            score_breakdown=self.score_breakdown or {},
            summary=self.summary,
            scored_from_defaults=bool(self.scored_from_defaults),
            duplicate_of_id=self.duplicate_of_id,
            is_stale=bool(self.is_stale),
            export_status=self.export_status,
            export_cursor=self.export_cursor,
            created_at=from_storage(self.created_at),
            updated_at=from_storage(self.updated_at),
        )

    @classmethod
    def from_domain(cls, record: JobRecord) -> "JobModel":
        """Build a new row from a record; ``id`` is left to the store."""
        observed = record.updated_at or record.created_at or utc_now()
        return cls(
            external_id=record.external_id,
            source_name=record.source_name,
            canonical_key=record.canonical_key,
            title=record.title,
            company=record.company,
            link=record.link,
            description=record.description,
            location=record.location,
            remote_eligible=record.remote_eligible,
            seniority=record.seniority,
            interview_style=record.interview_style,
            role_type=record.role_type,
            compensation=record.compensation,
            extra=dict(record.metadata),
            score=record.score,
            score_breakdown=dict(record.score_breakdown),
            summary=record.summary,
            scored_from_defaults=record.scored_from_defaults,
            duplicate_of_id=record.duplicate_of_id,
            is_stale=record.is_stale,
            export_status=record.export_status,
            export_cursor=record.export_cursor,
            created_at=to_storage(record.created_at or observed),
            updated_at=to_storage(observed),
        )


class IngestionLogModel(Base):
    """ORM model for the ingestion_logs table (one row per provider per run)."""

    __tablename__ = "ingestion_logs"

    id = Column(Integer, primary_key=True, autoincrement=True)
    provider = Column(String(50), nullable=False)
    fetched = Column(Integer, nullable=False, default=0)
    after_role_filter = Column(Integer, nullable=False, default=0)
    after_location_filter = Column(Integer, nullable=False, default=0)
    inserted = Column(Integer, nullable=False, default=0)
    duplicates = Column(Integer, nullable=False, default=0)
    scored = Column(Integer, nullable=False, default=0)
    error = Column(Text, nullable=True)
    ran_at = Column(String(50), nullable=False)

    __table_args__ = (Index("idx_ingestion_logs_provider_ran_at", "provider", "ran_at"),)

    def to_domain(self) -> IngestionRunLog:
        return IngestionRunLog(
            id=self.id,
            provider=self.provider,
            fetched=self.fetched,
            after_role_filter=self.after_role_filter,
            after_location_filter=self.after_location_filter,
            inserted=self.inserted,
            duplicates=self.duplicates,
            scored=self.scored,
            error=self.error,
            ran_at=from_storage(self.ran_at),
        )

    @classmethod
    def from_domain(cls, log: IngestionRunLog) -> "IngestionLogModel":
        return cls(
            provider=log.provider,
            fetched=log.fetched,
            after_role_filter=log.after_role_filter,
            after_location_filter=log.after_location_filter,
            inserted=log.inserted,
            duplicates=log.duplicates,
            scored=log.scored,
            error=log.error,
            ran_at=to_storage(log.ran_at),
        )


class ApplicationModel(Base):
    """ORM model for the applications table, written by the front-end."""

    __tablename__ = "applications"

    id = Column(Integer, primary_key=True, autoincrement=True)
    job_id = Column(Integer, ForeignKey("jobs.id"), nullable=False, unique=True)
    status = Column(String(20), nullable=False, default="not_applied")
    updated_at = Column(String(50), nullable=False)


def create_schema(engine: Engine) -> None:
    """Create all tables and indexes if they don't exist (idempotent)."""
    logger.info("Creating database schema if not exists")

    try:
        Base.metadata.create_all(engine, checkfirst=True)
        tables = inspect(engine).get_table_names()
        logger.info(f"Database schema ready. Tables: {', '.join(tables)}")
    except Exception as e:
        logger.error(f"Failed to create database schema: {e}", exc_info=True)
        raise
