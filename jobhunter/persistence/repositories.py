"""Data access layer (repositories) for persistence operations.

Repositories wrap a session, return domain models rather than ORM rows and
translate SQLAlchemy errors into PersistenceError subclasses. They never
commit; the caller's ``get_session()`` block owns the transaction.
"""

import logging
from datetime import datetime
from typing import Dict, Iterable, List, Optional

from sqlalchemy import func, select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from jobhunter.domain.models import (
    ACTED_STATUSES,
    ApplicationStatus,
    IngestionRunLog,
    JobRecord,
)
from jobhunter.utils.timestamps import to_storage, utc_now

from .exceptions import DataIntegrityError, PersistenceError, RecordNotFoundError
from .schema import ApplicationModel, IngestionLogModel, JobModel

logger = logging.getLogger(__name__)

ACTED_FILTERS = ("any", "unacted", "acted")


class JobRepository:
    """Repository for job record operations, including the ranked query surface."""

    def __init__(self, session: Session):
        self.session = session

    def get_by_id(self, job_id: int) -> Optional[JobRecord]:
        try:
            model = self.session.get(JobModel, job_id)
            return model.to_domain() if model else None
        except SQLAlchemyError as e:
            logger.error(f"Error retrieving job {job_id}: {e}", exc_info=True)
            raise PersistenceError(f"Failed to retrieve job: {e}") from e

    def get_by_identity(self, external_id: str, source_name: str) -> Optional[JobRecord]:
        """Look up a record by its per-source identity."""
        try:
            stmt = select(JobModel).where(
                JobModel.external_id == external_id,
                JobModel.source_name == source_name,
            )
            model = self.session.execute(stmt).scalar_one_or_none()
            return model.to_domain() if model else None
        except SQLAlchemyError as e:
            logger.error(
                f"Error retrieving job {source_name}/{external_id}: {e}", exc_info=True
            )
            raise PersistenceError(f"Failed to retrieve job: {e}") from e

    def insert(self, record: JobRecord) -> JobRecord:
        """Insert a new record and return it with its assigned id.

        Raises:
            DataIntegrityError: If (external_id, source_name) already exists
            PersistenceError: On other database errors
        """
        try:
            model = JobModel.from_domain(record)
            self.session.add(model)
            self.session.flush()
            return model.to_domain()
        except IntegrityError as e:
            raise DataIntegrityError(
                f"Job {record.source_name}/{record.external_id} violates a constraint: {e}"
            ) from e
        except SQLAlchemyError as e:
            logger.error(
                f"Error inserting job {record.source_name}/{record.external_id}: {e}",
                exc_info=True,
            )
            raise PersistenceError(f"Failed to insert job: {e}") from e

    def refresh_observation(
        self,
        job_id: int,
        description: Optional[str],
        compensation: Optional[str],
        location: Optional[str],
        observed_at: Optional[datetime] = None,
    ) -> JobRecord:
        """Update the mutable descriptive fields of a re-observed record.

        Identity, canonical key and duplicate linkage are left untouched.

        Raises:
            RecordNotFoundError: If job_id doesn't exist
        """
        try:
            model = self.session.get(JobModel, job_id)
            if model is None:
                raise RecordNotFoundError(f"Job with id {job_id} not found")
            model.description = description
            model.compensation = compensation
            model.location = location
            model.updated_at = to_storage(observed_at or utc_now())
            self.session.flush()
            return model.to_domain()
        except RecordNotFoundError:
            raise
        except SQLAlchemyError as e:
            logger.error(f"Error refreshing job {job_id}: {e}", exc_info=True)
            raise PersistenceError(f"Failed to refresh job: {e}") from e

    def find_primary_by_canonical_key(
        self, canonical_key: str, exclude_id: Optional[int] = None
    ) -> Optional[JobRecord]:
        """Return the primary (non-duplicate) record holding canonical_key, if any."""
        try:
            stmt = select(JobModel).where(
                JobModel.canonical_key == canonical_key,
                JobModel.duplicate_of_id.is_(None),
            )
            if exclude_id is not None:
                stmt = stmt.where(JobModel.id != exclude_id)
            model = self.session.execute(stmt.order_by(JobModel.id).limit(1)).scalar_one_or_none()
            return model.to_domain() if model else None
        except SQLAlchemyError as e:
            logger.error(f"Error looking up canonical key: {e}", exc_info=True)
            raise PersistenceError(f"Failed to look up canonical key: {e}") from e

    def find_by_key_prefix(self, prefix: str, exclude_id: Optional[int] = None) -> List[JobRecord]:
        """Records whose canonical key starts with prefix (e.g. ``company::title::``)."""
        try:
            stmt = select(JobModel).where(JobModel.canonical_key.startswith(prefix, autoescape=True))
            if exclude_id is not None:
                stmt = stmt.where(JobModel.id != exclude_id)
            models = self.session.execute(stmt.order_by(JobModel.id)).scalars().all()
            return [model.to_domain() for model in models]
        except SQLAlchemyError as e:
            logger.error(f"Error looking up key prefix: {e}", exc_info=True)
            raise PersistenceError(f"Failed to look up key prefix: {e}") from e

    def link_duplicate(self, job_id: int, primary_id: int) -> None:
        """Point job_id at primary_id. The primary must not itself be a duplicate."""
        try:
            primary = self.session.get(JobModel, primary_id)
            if primary is None:
                raise RecordNotFoundError(f"Primary job with id {primary_id} not found")
            if primary.duplicate_of_id is not None:
                raise DataIntegrityError(
                    f"Job {primary_id} is itself a duplicate and cannot be a primary"
                )
            result = self.session.execute(
                update(JobModel).where(JobModel.id == job_id).values(duplicate_of_id=primary_id)
            )
            if result.rowcount == 0:
                raise RecordNotFoundError(f"Job with id {job_id} not found")
            self.session.flush()
        except PersistenceError:
            raise
        except SQLAlchemyError as e:
            logger.error(f"Error linking job {job_id} to {primary_id}: {e}", exc_info=True)
            raise PersistenceError(f"Failed to link duplicate: {e}") from e

    def apply_scores(
        self,
        job_id: int,
        score: float,
        breakdown: Dict[str, float],
        seniority: Optional[str],
        interview_style: Optional[str],
        role_type: Optional[str],
        scored_from_defaults: bool,
        summary: Optional[str] = None,
        remote_eligible: Optional[bool] = None,
        keep_summary: bool = False,
    ) -> None:
        """Write scoring results. ``remote_eligible`` is only written when not None.

        With ``keep_summary`` the stored summary is left as is.
        """
        values = {
            "score": score,
            "score_breakdown": dict(breakdown),
            "seniority": seniority,
            "interview_style": interview_style,
            "role_type": role_type,
            "scored_from_defaults": scored_from_defaults,
        }
        if not keep_summary:
            values["summary"] = summary
        if remote_eligible is not None:
            values["remote_eligible"] = remote_eligible

        try:
            result = self.session.execute(
                update(JobModel).where(JobModel.id == job_id).values(**values)
            )
            if result.rowcount == 0:
                raise RecordNotFoundError(f"Job with id {job_id} not found")
            self.session.flush()
        except RecordNotFoundError:
            raise
        except SQLAlchemyError as e:
            logger.error(f"Error applying scores to job {job_id}: {e}", exc_info=True)
            raise PersistenceError(f"Failed to apply scores: {e}") from e

    def mark_stale(self, cutoff: datetime) -> int:
        """Flag non-stale records last updated before cutoff. Returns rows changed."""
        try:
            result = self.session.execute(
                update(JobModel)
                .where(JobModel.is_stale.is_(False), JobModel.updated_at < to_storage(cutoff))
                .values(is_stale=True)
            )
            self.session.flush()
            return result.rowcount or 0
        except SQLAlchemyError as e:
            logger.error(f"Error marking stale jobs: {e}", exc_info=True)
            raise PersistenceError(f"Failed to mark stale jobs: {e}") from e

    def count_existing(self, source_name: str, external_ids: Iterable[str]) -> int:
        """How many of the given external ids this source already has stored."""
        ids = list(set(external_ids))
        if not ids:
            return 0
        try:
            stmt = select(func.count(JobModel.id)).where(
                JobModel.source_name == source_name,
                JobModel.external_id.in_(ids),
            )
            return self.session.execute(stmt).scalar_one()
        except SQLAlchemyError as e:
            logger.error(f"Error counting existing jobs: {e}", exc_info=True)
            raise PersistenceError(f"Failed to count existing jobs: {e}") from e

    def list_for_rescore(self) -> List[JobRecord]:
        """Non-stale primaries with a description, in id order."""
        try:
            stmt = (
                select(JobModel)
                .where(
                    JobModel.is_stale.is_(False),
                    JobModel.duplicate_of_id.is_(None),
                    JobModel.description.is_not(None),
                    JobModel.description != "",
                )
                .order_by(JobModel.id)
            )
            return [model.to_domain() for model in self.session.execute(stmt).scalars().all()]
        except SQLAlchemyError as e:
            logger.error(f"Error listing jobs for rescore: {e}", exc_info=True)
            raise PersistenceError(f"Failed to list jobs for rescore: {e}") from e

    def query_ranked(
        self,
        limit: Optional[int] = None,
        seniority: Optional[str] = None,
        acted: str = "any",
        unexported_only: bool = False,
        interleave: bool = True,
    ) -> List[JobRecord]:
        """Ranked, non-stale, non-duplicate records for the display and export surfaces.

        Args:
            limit: Maximum number of records
            seniority: Only records with this extracted seniority
            acted: "any", "unacted" (no application beyond not_applied) or
                "acted" (applied, interviewing, offer or rejected)
            unexported_only: Only records with export_status "pending"
            interleave: One slot per employer per round: every company's best
                job first, then every company's second best, and so on

        Raises:
            ValueError: If acted is not a known filter
        """
        if acted not in ACTED_FILTERS:
            raise ValueError(f"acted must be one of {ACTED_FILTERS}, got: {acted}")

        conditions = [JobModel.is_stale.is_(False), JobModel.duplicate_of_id.is_(None)]
        if seniority:
            conditions.append(JobModel.seniority == seniority.lower())
        if unexported_only:
            conditions.append(JobModel.export_status == "pending")
        if acted == "unacted":
            conditions.append(
                ~select(ApplicationModel.id)
                .where(
                    ApplicationModel.job_id == JobModel.id,
                    ApplicationModel.status != ApplicationStatus.NOT_APPLIED.value,
                )
                .exists()
            )
        elif acted == "acted":
            conditions.append(
                select(ApplicationModel.id)
                .where(
                    ApplicationModel.job_id == JobModel.id,
                    ApplicationModel.status.in_(ACTED_STATUSES),
                )
                .exists()
            )

        try:
            if interleave:
                company_rank = (
                    func.row_number()
                    .over(
                        partition_by=func.lower(JobModel.company),
                        order_by=(JobModel.score.desc(), JobModel.id),
                    )
                    .label("company_rank")
                )
                ranked = select(JobModel.id.label("job_id"), company_rank).where(*conditions).subquery()
                stmt = (
                    select(JobModel)
                    .join(ranked, JobModel.id == ranked.c.job_id)
                    .order_by(ranked.c.company_rank, JobModel.score.desc(), JobModel.id)
                )
            else:
                stmt = select(JobModel).where(*conditions).order_by(JobModel.score.desc(), JobModel.id)

            if limit is not None:
                stmt = stmt.limit(limit)
            return [model.to_domain() for model in self.session.execute(stmt).scalars().all()]
        except SQLAlchemyError as e:
            logger.error(f"Error querying ranked jobs: {e}", exc_info=True)
            raise PersistenceError(f"Failed to query ranked jobs: {e}") from e


class IngestionLogRepository:
    """Repository for per-provider ingestion run logs."""

    def __init__(self, session: Session):
        self.session = session

    def record(self, log: IngestionRunLog) -> IngestionRunLog:
        try:
            model = IngestionLogModel.from_domain(log)
            self.session.add(model)
            self.session.flush()
            return model.to_domain()
        except SQLAlchemyError as e:
            logger.error(f"Error recording ingestion log for {log.provider}: {e}", exc_info=True)
            raise PersistenceError(f"Failed to record ingestion log: {e}") from e

    def count_since(self, provider: str, since: datetime) -> int:
        """Number of runs logged for provider at or after since."""
        try:
            stmt = select(func.count(IngestionLogModel.id)).where(
                IngestionLogModel.provider == provider,
                IngestionLogModel.ran_at >= to_storage(since),
            )
            return self.session.execute(stmt).scalar_one()
        except SQLAlchemyError as e:
            logger.error(f"Error counting ingestion logs for {provider}: {e}", exc_info=True)
            raise PersistenceError(f"Failed to count ingestion logs: {e}") from e

    def recent(self, limit: int = 20) -> List[IngestionRunLog]:
        try:
            stmt = (
                select(IngestionLogModel)
                .order_by(IngestionLogModel.ran_at.desc(), IngestionLogModel.id.desc())
                .limit(limit)
            )
            return [model.to_domain() for model in self.session.execute(stmt).scalars().all()]
        except SQLAlchemyError as e:
            logger.error(f"Error listing ingestion logs: {e}", exc_info=True)
            raise PersistenceError(f"Failed to list ingestion logs: {e}") from e


class ApplicationRepository:
    """Repository for the user's application statuses."""

    def __init__(self, session: Session):
        self.session = session

    def set_status(self, job_id: int, status: ApplicationStatus) -> None:
        """Create or update the application status for a job.

        Raises:
            RecordNotFoundError: If job_id doesn't exist
        """
        status_value = ApplicationStatus(status).value
        try:
            if self.session.get(JobModel, job_id) is None:
                raise RecordNotFoundError(f"Job with id {job_id} not found")
            stmt = select(ApplicationModel).where(ApplicationModel.job_id == job_id)
            existing = self.session.execute(stmt).scalar_one_or_none()
            now = to_storage(utc_now())
            if existing:
                existing.status = status_value
                existing.updated_at = now
            else:
                self.session.add(ApplicationModel(job_id=job_id, status=status_value, updated_at=now))
            self.session.flush()
        except RecordNotFoundError:
            raise
        except SQLAlchemyError as e:
            logger.error(f"Error setting application status for job {job_id}: {e}", exc_info=True)
            raise PersistenceError(f"Failed to set application status: {e}") from e
