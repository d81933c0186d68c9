"""Ingestion pipeline: tiered orchestration, run reporting and staleness."""

from .models import IngestionSummary, ProviderRunResult
from .orchestrator import IngestionOrchestrator, plan_tiers
from .staleness import StalenessSweeper

__all__ = [
    "IngestionOrchestrator",
    "IngestionSummary",
    "ProviderRunResult",
    "StalenessSweeper",
    "plan_tiers",
]
