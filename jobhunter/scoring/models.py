"""Data models for the scoring stage.

- JobMetadata: structured fields extracted from a posting by the analysis service
- ScoreResult: the weighted score and its per-factor breakdown
"""

from dataclasses import dataclass, field
from typing import Dict, Literal

from pydantic import BaseModel, Field

from jobhunter.domain.models import JobRecord

Seniority = Literal["senior", "mid", "junior", "lead", "staff", "unknown"]
InterviewStyle = Literal["assignment", "leetcode", "unknown"]
RoleType = Literal["backend", "platform", "software_engineer", "fullstack", "other"]

SENIORITY_VALUES = ("senior", "mid", "junior", "lead", "staff", "unknown")
INTERVIEW_STYLE_VALUES = ("assignment", "leetcode", "unknown")
ROLE_TYPE_VALUES = ("backend", "platform", "software_engineer", "fullstack", "other")


class JobMetadata(BaseModel):
    """Metadata extracted from one posting.

    ``from_defaults`` marks a value produced by the fallback path rather than
    by a successful extraction; it is never part of the extraction schema.
    """

    seniority: Seniority
    remote_eligible: bool
    interview_style: InterviewStyle
    role_type: RoleType
    from_defaults: bool = Field(False, exclude=True)

    @classmethod
    def defaults(cls) -> "JobMetadata":
        return cls(
            seniority="unknown",
            remote_eligible=False,
            interview_style="unknown",
            role_type="software_engineer",
            from_defaults=True,
        )

    @classmethod
    def from_record(cls, record: JobRecord) -> "JobMetadata":
        """Rebuild metadata from a stored record, mapping unrecognized values to defaults."""
        seniority = (record.seniority or "").lower()
        interview_style = (record.interview_style or "").lower()
        role_type = (record.role_type or "").lower()
        return cls(
            seniority=seniority if seniority in SENIORITY_VALUES else "unknown",
            remote_eligible=record.remote_eligible,
            interview_style=interview_style if interview_style in INTERVIEW_STYLE_VALUES else "unknown",
            role_type=role_type if role_type in ROLE_TYPE_VALUES else "software_engineer",
            from_defaults=record.scored_from_defaults,
        )


@dataclass
class ScoreResult:
    """Weighted score in [0, 10] with the contribution of each factor."""

    score: float
    breakdown: Dict[str, float] = field(default_factory=dict)
