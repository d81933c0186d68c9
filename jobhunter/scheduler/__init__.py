"""Scheduling module for periodic ingestion runs."""

from .service import SchedulerService

__all__ = [
    "SchedulerService",
]
