"""Tiered ingestion orchestration.

A run walks the configured provider tiers in order. Tiers are strictly
sequential so that higher-quality sources insert first and later tiers
link against them; providers inside a tier run concurrently. For each
provider:

    fetch → role filter → location filter → normalize → dedup/store
          → score new primaries → ingestion run log

After the last tier the staleness sweep runs once and the aggregated
IngestionSummary is returned.
"""

import asyncio
import threading
import time
from typing import Callable, ContextManager, Dict, List, Optional, Sequence
from uuid import uuid4

from sqlalchemy.orm import Session

from jobhunter.adapters.base import BaseAdapter
from jobhunter.adapters.exceptions import ProviderError
from jobhunter.adapters.factory import build_providers
from jobhunter.config.environment import EnvironmentConfig
from jobhunter.config.models import AppConfig
from jobhunter.dedup import DedupEngine
from jobhunter.logging import get_logger, log_context
from jobhunter.normalization import NormalizationService, passes_location_filter, passes_role_filter
from jobhunter.persistence import IngestionLogRepository, JobRepository, get_session
from jobhunter.persistence.exceptions import PersistenceError
from jobhunter.scoring import AnalysisClient, ScoringStage
from jobhunter.utils.timestamps import start_of_month, utc_now

from .models import IngestionSummary, ProviderRunResult
from .staleness import StalenessSweeper

logger = get_logger(__name__, component="pipeline")

ProviderBuilder = Callable[[AppConfig], List[BaseAdapter]]


def plan_tiers(tiers: Sequence[Sequence[str]], providers: Sequence[BaseAdapter]) -> List[List[BaseAdapter]]:
    """Group built providers by tier; providers not named in any tier form a trailing tier."""
    by_name: Dict[str, BaseAdapter] = {provider.name: provider for provider in providers}
    planned: List[List[BaseAdapter]] = []
    placed = set()

    for tier in tiers:
        members = [by_name[name] for name in tier if name in by_name]
        if members:
            planned.append(members)
            placed.update(provider.name for provider in members)

    leftovers = [provider for provider in providers if provider.name not in placed]
    if leftovers:
        planned.append(leftovers)
    return planned


class IngestionOrchestrator:
    """
    Runs ingestion across all built providers.

    Only one run executes at a time per orchestrator; a run requested while
    another is in progress returns immediately with ``skipped=True``.
    """

    def __init__(
        self,
        config: AppConfig,
        env_config: EnvironmentConfig,
        provider_builder: Optional[ProviderBuilder] = None,
        analyzer: Optional[AnalysisClient] = None,
        session_factory: Callable[[], ContextManager[Session]] = get_session,
    ):
        """
        Args:
            config: Configuration used when run() is not given one
            env_config: Credentials for providers and the analysis service
            provider_builder: Builds adapters for a config (defaults to build_providers)
            analyzer: Analysis client (defaults to one built per run from config)
            session_factory: Transaction scope for persistence calls
        """
        self.config = config
        self.env_config = env_config
        self.provider_builder = provider_builder or self._build_providers
        self.analyzer = analyzer
        self.session_factory = session_factory
        self.dedup_engine = DedupEngine(session_factory=session_factory)
        self._lock = threading.Lock()

    # ------------------------------------------------------------------
    # Entry points
    # ------------------------------------------------------------------

    def run_once(self, config: Optional[AppConfig] = None) -> IngestionSummary:
        """Blocking wrapper around run() for the scheduler and CLI."""
        return asyncio.run(self.run(config))

    async def run(self, config: Optional[AppConfig] = None) -> IngestionSummary:
        """
        Execute one ingestion run.

        Args:
            config: Configuration value for this run (defaults to the one
                given at construction)

        Returns:
            IngestionSummary with per-provider results; provider failures are
            recorded in it rather than raised
        """
        config = config or self.config
        run_id = uuid4().hex[:12]
        started_at = utc_now()

        if not self._lock.acquire(blocking=False):
            with log_context(run_id=run_id):
                logger.warning(
                    "Ingestion run skipped: previous run still in progress",
                    extra={"event": "pipeline.run.skipped", "reason": "lock_held"},
                )
            return IngestionSummary(
                run_id=run_id,
                run_started_at=started_at,
                run_finished_at=utc_now(),
                config_version=config.version,
                skipped=True,
            )

        try:
            with log_context(run_id=run_id, config_version=config.version):
                return await self._run(config, run_id, started_at)
        finally:
            self._lock.release()

    # ------------------------------------------------------------------
    # Run internals
    # ------------------------------------------------------------------

    async def _run(self, config: AppConfig, run_id: str, started_at) -> IngestionSummary:
        providers = self.provider_builder(config)
        tiers = plan_tiers(config.pipeline.tiers, providers)
        analyzer = self.analyzer or AnalysisClient(
            self.env_config.anthropic_api_key,
            settings=config.scoring.analysis,
            candidate_profile=config.scoring.candidate_profile,
        )
        scoring_stage = ScoringStage(analyzer, config.scoring, session_factory=self.session_factory)

        logger.info(
            "Ingestion run started",
            extra={
                "event": "pipeline.run.started",
                "providers": [provider.name for provider in providers],
                "tiers": len(tiers),
            },
        )
        if not providers:
            logger.warning(
                "No providers could be built, nothing to fetch",
                extra={"event": "pipeline.run.no_providers"},
            )

        results: List[ProviderRunResult] = []
        try:
            for index, tier in enumerate(tiers, start=1):
                results.extend(await self._run_tier(index, tier, config, scoring_stage))
        finally:
            for provider in providers:
                provider.close()
            if self.analyzer is None:
                analyzer.close()

        stale_marked = self._sweep(config)

        summary = IngestionSummary(
            run_id=run_id,
            run_started_at=started_at,
            run_finished_at=utc_now(),
            config_version=config.version,
            results=results,
            stale_marked=stale_marked,
        )
        logger.info(
            "Ingestion run completed",
            extra={
                "event": "pipeline.run.completed",
                "duration_ms": int(summary.duration_seconds * 1000),
                "total_fetched": summary.total_fetched,
                "total_new": summary.total_new,
                "total_duplicates": summary.total_duplicates,
                "total_scored": summary.total_scored,
                "stale_marked": stale_marked,
                "had_errors": summary.had_errors,
            },
        )
        return summary

    async def _run_tier(
        self,
        index: int,
        tier: List[BaseAdapter],
        config: AppConfig,
        scoring_stage: ScoringStage,
    ) -> List[ProviderRunResult]:
        names = [provider.name for provider in tier]
        logger.info(
            f"Starting tier {index}: {', '.join(names)}",
            extra={"event": "pipeline.tier.started", "tier": index, "providers": names},
        )

        settled = await asyncio.gather(
            *(self._run_provider(provider, config, scoring_stage) for provider in tier),
            return_exceptions=True,
        )

        results = []
        for provider, outcome in zip(tier, settled):
            if isinstance(outcome, BaseException):
                logger.error(
                    f"Provider {provider.name} task failed: {outcome}",
                    extra={"event": "pipeline.provider.crashed", "provider": provider.name},
                )
                outcome = ProviderRunResult(provider=provider.name, error=str(outcome))
            results.append(outcome)

        logger.info(
            f"Tier {index} complete",
            extra={
                "event": "pipeline.tier.completed",
                "tier": index,
                "new": sum(r.inserted for r in results),
                "errors": sum(1 for r in results if r.had_error),
            },
        )
        return results

    async def _run_provider(
        self,
        provider: BaseAdapter,
        config: AppConfig,
        scoring_stage: ScoringStage,
    ) -> ProviderRunResult:
        result = ProviderRunResult(provider=provider.name)
        started = time.monotonic()

        with log_context(provider=provider.name):
            try:
                postings = await provider.fetch_jobs()
                result.fetched = len(postings)

                role_matched = [p for p in postings if passes_role_filter(p, config.filters)]
                result.after_role_filter = len(role_matched)

                located = [p for p in role_matched if passes_location_filter(p, config.filters)]
                result.after_location_filter = len(located)

                logger.info(
                    f"Filtered {result.fetched} postings to {result.after_location_filter}",
                    extra={
                        "event": "provider.filtered",
                        "fetched": result.fetched,
                        "after_role_filter": result.after_role_filter,
                        "after_location_filter": result.after_location_filter,
                    },
                )

                records = NormalizationService(config.normalization).normalize_batch(located, provider.name)
                dedup = self.dedup_engine.ingest(records)
                result.inserted = len(dedup.inserted)
                result.duplicates = len(dedup.duplicates)
                result.refreshed = dedup.refreshed

                result.scored = await scoring_stage.score_records(dedup.inserted)

            except ProviderError as e:
                result.error = str(e)
                logger.error(
                    f"Provider {provider.name} failed: {e}",
                    extra={"event": "provider.run.failed", "error_type": type(e).__name__},
                )
            except Exception as e:
                result.error = str(e) or type(e).__name__
                logger.error(
                    f"Unexpected error processing {provider.name}: {e}",
                    extra={"event": "provider.run.failed", "error_type": type(e).__name__},
                    exc_info=True,
                )
            finally:
                result.duration_seconds = time.monotonic() - started

            self._record_run_log(result)

            logger.info(
                f"Provider {provider.name} finished",
                extra={
                    "event": "provider.run.completed",
                    "inserted": result.inserted,
                    "duplicates": result.duplicates,
                    "refreshed": result.refreshed,
                    "scored": result.scored,
                    "duration_seconds": round(result.duration_seconds, 3),
                    "had_error": result.had_error,
                },
            )
        return result

    def _record_run_log(self, result: ProviderRunResult) -> None:
        try:
            with self.session_factory() as session:
                IngestionLogRepository(session).record(result.to_run_log(utc_now()))
        except PersistenceError as e:
            logger.error(
                f"Failed to write ingestion log for {result.provider}: {e}",
                extra={"event": "pipeline.run_log.failed", "provider": result.provider},
            )

    def _sweep(self, config: AppConfig) -> int:
        try:
            return StalenessSweeper(config.pipeline.stale_after_seconds, self.session_factory).sweep()
        except PersistenceError as e:
            logger.error(
                f"Staleness sweep failed: {e}",
                extra={"event": "staleness.sweep.failed"},
            )
            return 0

    # ------------------------------------------------------------------
    # Provider construction
    # ------------------------------------------------------------------

    def _build_providers(self, config: AppConfig) -> List[BaseAdapter]:
        return build_providers(
            config,
            self.env_config,
            existing_checker=self._count_existing_serpapi,
            usage_checker=self._serpapi_runs_this_month,
        )

    def _count_existing_serpapi(self, external_ids: List[str]) -> int:
        with self.session_factory() as session:
            return JobRepository(session).count_existing("serpapi", external_ids)

    def _serpapi_runs_this_month(self) -> int:
        with self.session_factory() as session:
            return IngestionLogRepository(session).count_since("serpapi", start_of_month())
