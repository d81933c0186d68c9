"""Weighted-sum scoring formula.

Each factor is a value in [0, 1] multiplied by its configured weight; each
contribution is rounded to two decimals and the total is normalized to a
0-10 scale.
"""

import re
from typing import Dict, Iterable, Optional

from jobhunter.config.models import EmployerLocationConfig, ScoringConfig

from .models import JobMetadata, ScoreResult

MISSING_FACTOR = 0.5


def _contains_keyword(text: str, keywords: Iterable[str]) -> bool:
    return any(re.search(rf"\b{re.escape(keyword)}\b", text) for keyword in keywords)


def remote_factor(metadata: JobMetadata) -> float:
    return 1.0 if metadata.remote_eligible else 0.0


def seniority_factor(metadata: JobMetadata, scoring: ScoringConfig) -> float:
    if metadata.seniority in scoring.target_seniority:
        return 1.0
    if metadata.seniority in scoring.stretch_seniority:
        return 0.3
    return 0.0


def employer_location_factor(location: Optional[str], buckets: EmployerLocationConfig) -> float:
    """1.0 for a primary-region match, 0.5 for secondary, 0.0 otherwise.

    A posting with no location gets ``unknown_factor``.
    """
    if not location or not location.strip():
        return buckets.unknown_factor
    lowered = location.lower()
    if _contains_keyword(lowered, buckets.primary):
        return 1.0
    if _contains_keyword(lowered, buckets.secondary):
        return 0.5
    return 0.0


def lookup_factor(table: Dict[str, float], key: str) -> float:
    return table.get(key, MISSING_FACTOR)


def score_job(metadata: JobMetadata, location: Optional[str], scoring: ScoringConfig) -> ScoreResult:
    weights = scoring.weights
    breakdown = {
        "remote": round(remote_factor(metadata) * weights.remote_eligible, 2),
        "seniority": round(seniority_factor(metadata, scoring) * weights.seniority_match, 2),
        "employer_location": round(
            employer_location_factor(location, scoring.employer_location) * weights.employer_location, 2
        ),
        "interview_style": round(
            lookup_factor(scoring.interview_preferences, metadata.interview_style) * weights.interview_style, 2
        ),
        "role_type": round(lookup_factor(scoring.role_type_preferences, metadata.role_type) * weights.role_type, 2),
    }

    raw = sum(breakdown.values())
    score = round(raw / weights.total * 10, 2)
    return ScoreResult(score=min(max(score, 0.0), 10.0), breakdown=breakdown)
