"""Data models for ingestion run tracking and reporting."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Optional

from jobhunter.domain.models import IngestionRunLog


@dataclass
class ProviderRunResult:
    """
    Counts for one provider within one ingestion run.

    Attributes:
        provider: Provider name
        fetched: Postings returned by the adapter
        after_role_filter: Postings left after the role filter
        after_location_filter: Postings left after the location filter
        inserted: New primary records
        duplicates: New records linked to an existing primary
        refreshed: Re-observed records whose descriptive fields were updated
        scored: Records whose score was stored
        duration_seconds: Time spent on this provider
        error: Error message if the provider failed
    """

    provider: str
    fetched: int = 0
    after_role_filter: int = 0
    after_location_filter: int = 0
    inserted: int = 0
    duplicates: int = 0
    refreshed: int = 0
    scored: int = 0
    duration_seconds: float = 0.0
    error: Optional[str] = None

    @property
    def had_error(self) -> bool:
        return self.error is not None

    def to_run_log(self, ran_at: datetime) -> IngestionRunLog:
        return IngestionRunLog(
            provider=self.provider,
            fetched=self.fetched,
            after_role_filter=self.after_role_filter,
            after_location_filter=self.after_location_filter,
            inserted=self.inserted,
            duplicates=self.duplicates,
            scored=self.scored,
            error=self.error,
            ran_at=ran_at,
        )


@dataclass
class IngestionSummary:
    """
    Aggregate result of one ingestion run.

    Attributes:
        run_id: Identifier carried by every log line of the run
        run_started_at: UTC timestamp when the run began
        run_finished_at: UTC timestamp when the run completed
        config_version: Version of the configuration value the run used
        results: Per-provider results, in tier order
        stale_marked: Records marked stale by the closing sweep
        skipped: Whether the run was skipped because another run held the lock
    """

    run_id: str
    run_started_at: datetime
    run_finished_at: datetime
    config_version: int = 1
    results: List[ProviderRunResult] = field(default_factory=list)
    stale_marked: int = 0
    skipped: bool = False

    @property
    def duration_seconds(self) -> float:
        return (self.run_finished_at - self.run_started_at).total_seconds()

    @property
    def total_fetched(self) -> int:
        return sum(r.fetched for r in self.results)

    @property
    def total_new(self) -> int:
        return sum(r.inserted for r in self.results)

    @property
    def total_duplicates(self) -> int:
        return sum(r.duplicates for r in self.results)

    @property
    def total_scored(self) -> int:
        return sum(r.scored for r in self.results)

    @property
    def had_errors(self) -> bool:
        return any(r.had_error for r in self.results)

    def render(self) -> str:
        """Plain-text summary for alerting and CLI output."""
        if self.skipped:
            return f"Ingestion run {self.run_id} skipped: previous run still in progress"

        lines = [
            f"Ingestion run {self.run_id} finished in {self.duration_seconds:.1f}s "
            f"(config v{self.config_version})"
        ]
        for r in self.results:
            if r.had_error:
                lines.append(f"  {r.provider}: ERROR {r.error}")
                continue
            lines.append(
                f"  {r.provider}: fetched {r.fetched}, role {r.after_role_filter}, "
                f"location {r.after_location_filter}, new {r.inserted}, "
                f"duplicates {r.duplicates}, scored {r.scored}"
            )
        if not self.results:
            lines.append("  no providers ran")
        lines.append(
            f"Totals: fetched {self.total_fetched}, new {self.total_new}, "
            f"duplicates {self.total_duplicates}, scored {self.total_scored}, "
            f"marked stale {self.stale_marked}"
        )
        return "\n".join(lines)
