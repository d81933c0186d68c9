"""Scoring stage: metadata extraction, weighted score and match summary."""

from .analyzer import AnalysisClient
from .exceptions import AnalysisError, ExtractionError, SummaryError
from .models import JobMetadata, ScoreResult
from .scorer import employer_location_factor, score_job, seniority_factor
from .stage import ScoringStage

__all__ = [
    "AnalysisClient",
    "AnalysisError",
    "ExtractionError",
    "SummaryError",
    "JobMetadata",
    "ScoreResult",
    "ScoringStage",
    "score_job",
    "employer_location_factor",
    "seniority_factor",
]
