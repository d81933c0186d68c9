"""Domain models for Job Hunter."""

from .models import ACTED_STATUSES, ApplicationStatus, IngestionRunLog, JobRecord, RawPosting

__all__ = ["RawPosting", "JobRecord", "IngestionRunLog", "ApplicationStatus", "ACTED_STATUSES"]
