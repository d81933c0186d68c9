"""Concurrency-bounded scoring of freshly inserted primary records."""

import asyncio
import logging
from typing import Callable, ContextManager, Iterable, Optional

from sqlalchemy.orm import Session

from jobhunter.config.models import ScoringConfig
from jobhunter.domain.models import JobRecord
from jobhunter.logging import get_logger
from jobhunter.persistence import JobRepository, get_session
from jobhunter.utils.concurrency import gather_bounded

from .analyzer import AnalysisClient
from .exceptions import ExtractionError, SummaryError
from .models import JobMetadata, ScoreResult
from .scorer import score_job

logger = get_logger(__name__, component="scoring")

SessionFactory = Callable[[], ContextManager[Session]]


class ScoringStage:
    """Extracts metadata, applies the formula and stores the result per record.

    Failure semantics:
    - extraction failure: score from JobMetadata.defaults() and mark the
      record ``scored_from_defaults``; the remote flag is then left untouched;
    - summary failure: the record keeps its score and gets no summary;
    - persistence failure: logged, the record is counted as not scored.
    """

    def __init__(
        self,
        analyzer: AnalysisClient,
        scoring: ScoringConfig,
        session_factory: SessionFactory = get_session,
        logger_instance: Optional[logging.LoggerAdapter] = None,
    ):
        self.analyzer = analyzer
        self.scoring = scoring
        self.session_factory = session_factory
        self.logger = logger_instance or logger

    async def score_records(self, records: Iterable[JobRecord]) -> int:
        """Score primaries that have a description, at most ``scoring.concurrency`` at a time.

        Returns:
            Number of records whose score was stored
        """
        candidates = [record for record in records if not record.is_duplicate and record.has_description]
        if not candidates:
            return 0

        outcomes = await gather_bounded(self._score_and_store, candidates, self.scoring.concurrency)
        return self._count_stored(outcomes, "scoring.batch.completed")

    async def rescore_all(self, rerun_analysis: bool = False, with_summaries: bool = False) -> int:
        """Re-apply the formula to every non-stale primary with a description.

        Args:
            rerun_analysis: Re-extract metadata instead of using stored fields
            with_summaries: Regenerate summaries above the threshold; otherwise
                stored summaries are kept

        Returns:
            Number of records rescored
        """
        with self.session_factory() as session:
            records = JobRepository(session).list_for_rescore()

        self.logger.info(
            f"Rescoring {len(records)} records",
            extra={
                "event": "scoring.rescore.started",
                "count": len(records),
                "rerun_analysis": rerun_analysis,
                "with_summaries": with_summaries,
            },
        )

        async def rescore(record: JobRecord) -> ScoreResult:
            metadata = None if rerun_analysis else JobMetadata.from_record(record)
            return await self._score_and_store(record, metadata=metadata, summarize=with_summaries)

        outcomes = await gather_bounded(rescore, records, self.scoring.concurrency)
        return self._count_stored(outcomes, "scoring.rescore.completed")

    async def _score_and_store(
        self,
        record: JobRecord,
        metadata: Optional[JobMetadata] = None,
        summarize: bool = True,
    ) -> ScoreResult:
        if metadata is None:
            metadata = await self._extract(record)

        result = score_job(metadata, record.location, self.scoring)
        summary = await self._summarize(record, metadata, result) if summarize else None

        with self.session_factory() as session:
            JobRepository(session).apply_scores(
                record.id,
                score=result.score,
                breakdown=result.breakdown,
                seniority=metadata.seniority,
                interview_style=metadata.interview_style,
                role_type=metadata.role_type,
                scored_from_defaults=metadata.from_defaults,
                summary=summary,
                remote_eligible=None if metadata.from_defaults else metadata.remote_eligible,
                keep_summary=not summarize,
            )

        self.logger.debug(
            f"Scored job {record.id}: {result.score:.2f}",
            extra={
                "event": "scoring.record.scored",
                "job_id": record.id,
                "score": result.score,
                "from_defaults": metadata.from_defaults,
                "has_summary": summary is not None,
            },
        )
        return result

    async def _extract(self, record: JobRecord) -> JobMetadata:
        if not self.analyzer.enabled:
            return JobMetadata.defaults()
        try:
            return await asyncio.to_thread(
                self.analyzer.extract_metadata, record.title, record.description, record.location
            )
        except ExtractionError as e:
            self.logger.warning(
                f"Extraction failed for job {record.id}, using defaults: {e}",
                extra={"event": "scoring.extraction.failed", "job_id": record.id},
            )
            return JobMetadata.defaults()

    async def _summarize(self, record: JobRecord, metadata: JobMetadata, result: ScoreResult) -> Optional[str]:
        if result.score < self.scoring.summary_threshold or not self.analyzer.enabled:
            return None
        try:
            return await asyncio.to_thread(self.analyzer.summarize, record.title, record.description, metadata)
        except SummaryError as e:
            self.logger.warning(
                f"Summary failed for job {record.id}: {e}",
                extra={"event": "scoring.summary.failed", "job_id": record.id},
            )
            return None

    def _count_stored(self, outcomes, event: str) -> int:
        stored = 0
        for outcome in outcomes:
            if outcome.ok:
                stored += 1
                continue
            self.logger.error(
                f"Failed to score job {outcome.item.id}: {outcome.error}",
                extra={
                    "event": "scoring.record.failed",
                    "job_id": outcome.item.id,
                    "error_type": type(outcome.error).__name__,
                },
            )
        self.logger.info(
            f"Scored {stored} of {len(outcomes)} records",
            extra={"event": event, "scored": stored, "total": len(outcomes)},
        )
        return stored
