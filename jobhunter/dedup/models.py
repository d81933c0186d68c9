"""Data models for the identity/dedup engine."""

from dataclasses import dataclass, field
from enum import Enum
from typing import List

from jobhunter.domain.models import JobRecord


class IngestOutcome(str, Enum):
    """What happened to one normalized record."""

    INSERTED = "inserted"
    DUPLICATE = "duplicate"
    REFRESHED = "refreshed"
    FAILED = "failed"


@dataclass
class DedupResult:
    """Outcome of ingesting one provider's batch.

    Attributes:
        inserted: Fresh primaries, in ingestion order (the records to score)
        duplicates: Fresh records linked to an existing primary
        refreshed: Count of re-observed records whose descriptive fields were updated
        failed: Count of records skipped because of a persistence error
    """

    inserted: List[JobRecord] = field(default_factory=list)
    duplicates: List[JobRecord] = field(default_factory=list)
    refreshed: int = 0
    failed: int = 0

    @property
    def processed(self) -> int:
        return len(self.inserted) + len(self.duplicates) + self.refreshed + self.failed

    def add(self, outcome: IngestOutcome, record: JobRecord = None) -> None:
        if outcome is IngestOutcome.INSERTED:
            self.inserted.append(record)
        elif outcome is IngestOutcome.DUPLICATE:
            self.duplicates.append(record)
        elif outcome is IngestOutcome.REFRESHED:
            self.refreshed += 1
        else:
            self.failed += 1
