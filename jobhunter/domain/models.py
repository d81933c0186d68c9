"""Core domain models for postings, job records and run logs.

- RawPosting: what a provider adapter returns, before filtering/normalization
- JobRecord: the persisted, normalized unit of work
- IngestionRunLog: one provider's counts for one run
- ApplicationStatus: how the user has acted on a job
"""

from datetime import datetime
from enum import Enum
from typing import Any, Dict, Optional

from pydantic import BaseModel, Field, field_validator

from jobhunter.utils.timestamps import ensure_utc


class ApplicationStatus(str, Enum):
    """Statuses recorded by the front-end when the user acts on a job."""

    NOT_APPLIED = "not_applied"
    APPLIED = "applied"
    INTERVIEWING = "interviewing"
    OFFER = "offer"
    REJECTED = "rejected"
    SKIPPED = "skipped"


ACTED_STATUSES = (
    ApplicationStatus.APPLIED.value,
    ApplicationStatus.INTERVIEWING.value,
    ApplicationStatus.OFFER.value,
    ApplicationStatus.REJECTED.value,
)


def _optional_text(v: Optional[str]) -> Optional[str]:
    if v is None:
        return None
    stripped = v.strip()
    return stripped if stripped else None


class RawPosting(BaseModel):
    """Posting as returned by a provider adapter.

    Only identity, title, company and link are required; everything else is
    whatever the source happens to expose. Source-specific extras go into
    ``metadata``.
    """

    external_id: str = Field(..., description="Posting ID within the source")
    title: str
    company: str
    link: str = Field(..., description="Where the user applies or reads more")
    description: Optional[str] = Field(None, description="May contain HTML")
    location: Optional[str] = None
    remote_eligible: Optional[bool] = Field(None, description="Set only when the source asserts it")
    seniority: Optional[str] = None
    compensation: Optional[str] = None
    metadata: Dict[str, Any] = Field(default_factory=dict)

    @field_validator("external_id", "title", "company", "link")
    @classmethod
    def strip_required(cls, v: str) -> str:
        if not v or not v.strip():
            raise ValueError("Field cannot be empty or whitespace-only")
        return v.strip()

    @field_validator("description", "location", "seniority", "compensation")
    @classmethod
    def strip_optional(cls, v: Optional[str]) -> Optional[str]:
        return _optional_text(v)

    @field_validator("metadata")
    @classmethod
    def drop_empty_metadata(cls, v: Dict[str, Any]) -> Dict[str, Any]:
        return {key: value for key, value in v.items() if value is not None}


class JobRecord(BaseModel):
    """Normalized job posting, the system's source of truth.

    ``(external_id, source_name)`` identifies the posting within a source;
    ``canonical_key`` identifies it across sources. ``duplicate_of_id`` is a
    plain id reference to the primary record sharing the canonical key.
    """

    id: Optional[int] = Field(None, description="Assigned by the store on insert")
    external_id: str
    source_name: str
    canonical_key: str

    title: str
    company: str
    link: str
    description: Optional[str] = None
    location: Optional[str] = None
    remote_eligible: bool = False
    seniority: Optional[str] = None
    interview_style: Optional[str] = None
    role_type: Optional[str] = None
    compensation: Optional[str] = None
    metadata: Dict[str, Any] = Field(default_factory=dict)

    score: float = Field(0.0, ge=0.0, le=10.0)
    score_breakdown: Dict[str, float] = Field(default_factory=dict)
    summary: Optional[str] = None
    scored_from_defaults: bool = False

    duplicate_of_id: Optional[int] = None
    is_stale: bool = False
    export_status: str = "pending"
    export_cursor: int = 0

    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @field_validator("created_at", "updated_at")
    @classmethod
    def to_utc(cls, v: Optional[datetime]) -> Optional[datetime]:
        return ensure_utc(v)

    @property
    def is_duplicate(self) -> bool:
        return self.duplicate_of_id is not None

    @property
    def has_description(self) -> bool:
        return bool(self.description and self.description.strip())


class IngestionRunLog(BaseModel):
    """Per-provider counts for one ingestion run. Written once, never updated."""

    id: Optional[int] = None
    provider: str
    fetched: int = Field(0, ge=0)
    after_role_filter: int = Field(0, ge=0)
    after_location_filter: int = Field(0, ge=0)
    inserted: int = Field(0, ge=0)
    duplicates: int = Field(0, ge=0)
    scored: int = Field(0, ge=0)
    error: Optional[str] = None
    ran_at: datetime

    @field_validator("ran_at")
    @classmethod
    def to_utc(cls, v: datetime) -> datetime:
        return ensure_utc(v)
