"""Identity resolution and soft deduplication against the store.

Per record, inside a single transaction:

1. insert-if-absent on (external_id, source_name);
2. on a fresh insert, link to an existing primary sharing the canonical key,
   or, failing that, become a primary and log any same company/title records
   as an advisory warning;
3. on a re-observation, refresh description, compensation, location and
   updated_at only.

Because the insert and the link happen in one transaction on the event
loop's thread, no other provider's insert can land between them.
"""

import logging
from typing import Callable, ContextManager, Iterable, Optional, Tuple

from sqlalchemy.orm import Session

from jobhunter.domain.models import JobRecord
from jobhunter.logging import get_logger
from jobhunter.normalization.service import company_title_prefix, has_fingerprint
from jobhunter.persistence import get_session
from jobhunter.persistence.exceptions import DataIntegrityError, PersistenceError
from jobhunter.persistence.repositories import JobRepository

from .models import DedupResult, IngestOutcome

logger = get_logger(__name__, component="dedup")

SessionFactory = Callable[[], ContextManager[Session]]


class DedupEngine:
    """Resolves per-source identity and cross-source duplicate linkage."""

    def __init__(
        self,
        session_factory: SessionFactory = get_session,
        logger_instance: Optional[logging.LoggerAdapter] = None,
    ):
        self.session_factory = session_factory
        self.logger = logger_instance or logger

    def ingest(self, records: Iterable[JobRecord]) -> DedupResult:
        """Persist a batch of normalized records, one transaction per record.

        A PersistenceError for one record is logged and the record counted as
        failed; the rest of the batch continues.
        """
        result = DedupResult()
        for record in records:
            try:
                outcome, stored = self.ingest_record(record)
            except PersistenceError as e:
                self.logger.error(
                    f"Failed to persist {record.source_name}/{record.external_id}: {e}",
                    extra={
                        "event": "dedup.record.failed",
                        "provider": record.source_name,
                        "external_id": record.external_id,
                        "error_type": type(e).__name__,
                    },
                )
                result.add(IngestOutcome.FAILED)
                continue
            result.add(outcome, stored)

        self.logger.info(
            "Batch ingested",
            extra={
                "event": "dedup.batch.completed",
                "inserted": len(result.inserted),
                "duplicates": len(result.duplicates),
                "refreshed": result.refreshed,
                "failed": result.failed,
            },
        )
        return result

    def ingest_record(self, record: JobRecord) -> Tuple[IngestOutcome, JobRecord]:
        """Insert-if-absent, then link or refresh.

        Raises:
            PersistenceError: If the store fails for this record
        """
        try:
            with self.session_factory() as session:
                return self._ingest(JobRepository(session), record)
        except DataIntegrityError:
            # Lost an insert race on (external_id, source_name): the row now
            # exists, so treat this posting as a re-observation.
            with self.session_factory() as session:
                repo = JobRepository(session)
                existing = repo.get_by_identity(record.external_id, record.source_name)
                if existing is None:
                    raise
                return IngestOutcome.REFRESHED, self._refresh(repo, existing, record)

    def _ingest(self, repo: JobRepository, record: JobRecord) -> Tuple[IngestOutcome, JobRecord]:
        existing = repo.get_by_identity(record.external_id, record.source_name)
        if existing is not None:
            return IngestOutcome.REFRESHED, self._refresh(repo, existing, record)

        inserted = repo.insert(record)

        # Descriptionless records share a sentinel fingerprint and are never linked
        if not has_fingerprint(inserted.canonical_key):
            return IngestOutcome.INSERTED, inserted

        primary = repo.find_primary_by_canonical_key(inserted.canonical_key, exclude_id=inserted.id)
        if primary is not None:
            repo.link_duplicate(inserted.id, primary.id)
            linked = inserted.model_copy(update={"duplicate_of_id": primary.id})
            self.logger.info(
                f"Likely duplicate: {inserted.source_name}/{inserted.external_id} "
                f"matches {primary.source_name}/{primary.external_id}",
                extra={
                    "event": "dedup.likely_duplicate",
                    "job_id": inserted.id,
                    "duplicate_of_id": primary.id,
                    "provider": inserted.source_name,
                    "primary_provider": primary.source_name,
                    "canonical_key": inserted.canonical_key,
                },
            )
            return IngestOutcome.DUPLICATE, linked

        self._warn_same_role(repo, inserted)
        return IngestOutcome.INSERTED, inserted

    def _refresh(self, repo: JobRepository, existing: JobRecord, record: JobRecord) -> JobRecord:
        return repo.refresh_observation(
            existing.id,
            description=record.description,
            compensation=record.compensation,
            location=record.location,
            observed_at=record.updated_at,
        )

    def _warn_same_role(self, repo: JobRepository, inserted: JobRecord) -> None:
        """Log records with the same company and title but a different description."""
        prefix = company_title_prefix(inserted.company, inserted.title)
        similar = repo.find_by_key_prefix(prefix, exclude_id=inserted.id)
        if not similar:
            return
        self.logger.warning(
            f"Same company and title with a different description: {inserted.company} / {inserted.title}",
            extra={
                "event": "dedup.same_role_different_description",
                "job_id": inserted.id,
                "similar_ids": [job.id for job in similar],
                "provider": inserted.source_name,
            },
        )
