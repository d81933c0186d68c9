"""Identity/dedup engine: per-source uniqueness and soft cross-source linkage."""

from .engine import DedupEngine
from .models import DedupResult, IngestOutcome

__all__ = ["DedupEngine", "DedupResult", "IngestOutcome"]
