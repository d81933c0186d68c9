"""Configuration schema models using Pydantic."""

from enum import Enum
from typing import Dict, List, Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import BaseModel, Field, field_validator, model_validator

from .duration import DurationParseError, parse_duration, validate_duration_range

PROVIDER_NAMES = (
    "greenhouse",
    "ashby",
    "adzuna",
    "remotive",
    "coresignal",
    "brightdata",
    "serpapi",
)

DEFAULT_TIERS = [
    ["coresignal"],
    ["brightdata"],
    ["greenhouse", "ashby", "adzuna", "remotive"],
    ["serpapi"],
]

SENIORITY_LEVELS = ("senior", "mid", "junior", "lead", "staff", "unknown")


class LogLevel(str, Enum):
    """Logging levels."""

    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class LogFormat(str, Enum):
    """Log output formats."""

    JSON = "json"
    KEY_VALUE = "key-value"


def _normalize_keywords(values: List[str]) -> List[str]:
    """Lowercase, strip and drop empty keywords while keeping order."""
    normalized = []
    for value in values:
        stripped = value.strip().lower()
        if stripped and stripped not in normalized:
            normalized.append(stripped)
    return normalized


class BoardConfig(BaseModel):
    """One sub-board (company board, search or category) of a provider."""

    name: str = Field(..., min_length=1, description="Board identifier used in logs")
    token: Optional[str] = Field(None, description="Board token/slug for REST boards")
    label: Optional[str] = Field(None, description="Display label or search location")
    country: Optional[str] = None
    keywords: Optional[str] = None
    category: Optional[str] = None
    employment_type: Optional[str] = None
    max_collect: Optional[int] = Field(None, gt=0, description="Cap on records collected per run")

    @field_validator("name")
    @classmethod
    def strip_name(cls, v: str) -> str:
        stripped = v.strip()
        if not stripped:
            raise ValueError("Board name cannot be empty or whitespace-only")
        return stripped

    @property
    def slug(self) -> str:
        """Token used in REST board URLs, falling back to the board name."""
        return self.token or self.name


class ProviderConfig(BaseModel):
    """Settings shared by every provider."""

    enabled: bool = Field(False, description="Whether the provider takes part in runs")
    boards: List[BoardConfig] = Field(default_factory=list)

    @model_validator(mode="after")
    def check_unique_boards(self):
        names = [board.name for board in self.boards]
        duplicates = sorted({name for name in names if names.count(name) > 1})
        if duplicates:
            raise ValueError(f"Duplicate board names: {', '.join(duplicates)}")
        return self


class SerpApiConfig(ProviderConfig):
    """Search-engine provider with crawl-depth and budget controls."""

    max_pages: int = Field(3, ge=1, le=10, description="Upper bound on pages per search")
    monthly_budget: int = Field(
        200, ge=1, description="Runs per month after which crawls are forced shallow"
    )


class ProvidersConfig(BaseModel):
    """Per-provider settings, keyed by provider name."""

    greenhouse: ProviderConfig = Field(default_factory=ProviderConfig)
    ashby: ProviderConfig = Field(default_factory=ProviderConfig)
    adzuna: ProviderConfig = Field(default_factory=ProviderConfig)
    remotive: ProviderConfig = Field(default_factory=ProviderConfig)
    coresignal: ProviderConfig = Field(default_factory=ProviderConfig)
    brightdata: ProviderConfig = Field(default_factory=ProviderConfig)
    serpapi: SerpApiConfig = Field(default_factory=SerpApiConfig)

    def get(self, name: str) -> ProviderConfig:
        return getattr(self, name)

    def enabled_names(self) -> List[str]:
        return [name for name in PROVIDER_NAMES if self.get(name).enabled]


class FiltersConfig(BaseModel):
    """Keyword lists for the role and location filters."""

    exclude_titles: List[str] = Field(default_factory=list)
    include_titles: List[str] = Field(default_factory=list)
    home_locations: List[str] = Field(
        default_factory=list, description="Location tokens that always pass"
    )
    location_keywords: List[str] = Field(default_factory=list)
    remote_indicators: List[str] = Field(default_factory=lambda: ["remote"])
    onsite_indicators: List[str] = Field(default_factory=lambda: ["hybrid", "on-site", "onsite"])

    @field_validator(
        "exclude_titles",
        "include_titles",
        "home_locations",
        "location_keywords",
        "remote_indicators",
        "onsite_indicators",
    )
    @classmethod
    def normalize_terms(cls, v: List[str]) -> List[str]:
        return _normalize_keywords(v)

    @model_validator(mode="after")
    def check_conflicts(self):
        conflicts = set(self.exclude_titles) & set(self.include_titles)
        if conflicts:
            raise ValueError(
                f"Terms cannot be both included and excluded: {', '.join(sorted(conflicts))}"
            )
        return self


class NormalizationConfig(BaseModel):
    """Keywords used to infer remote eligibility when a provider does not assert it."""

    remote_keywords: List[str] = Field(
        default_factory=lambda: ["remote", "work from anywhere", "distributed"]
    )

    @field_validator("remote_keywords")
    @classmethod
    def normalize_terms(cls, v: List[str]) -> List[str]:
        return _normalize_keywords(v)


class ScoringWeights(BaseModel):
    """The five named weights of the scoring formula."""

    remote_eligible: float = Field(3.0, ge=0)
    seniority_match: float = Field(2.5, ge=0)
    employer_location: float = Field(1.5, ge=0)
    interview_style: float = Field(1.5, ge=0)
    role_type: float = Field(1.5, ge=0)

    @property
    def total(self) -> float:
        return (
            self.remote_eligible
            + self.seniority_match
            + self.employer_location
            + self.interview_style
            + self.role_type
        )

    @model_validator(mode="after")
    def check_total(self):
        if self.total <= 0:
            raise ValueError("At least one scoring weight must be greater than zero")
        return self


class EmployerLocationConfig(BaseModel):
    """Geography keyword buckets for the employer-location factor."""

    primary: List[str] = Field(default_factory=list, description="Keywords scoring 1.0")
    secondary: List[str] = Field(default_factory=list, description="Keywords scoring 0.5")
    unknown_factor: float = Field(
        0.5, ge=0, le=1, description="Factor used when a posting has no location"
    )

    @field_validator("primary", "secondary")
    @classmethod
    def normalize_terms(cls, v: List[str]) -> List[str]:
        return _normalize_keywords(v)


class AnalysisConfig(BaseModel):
    """External analysis (LLM) service settings."""

    extraction_model: str = Field("claude-haiku-4-5", min_length=1)
    summary_model: str = Field("claude-sonnet-4-5", min_length=1)
    timeout: int = Field(60, ge=5, le=600, description="Request timeout in seconds")


class ScoringConfig(BaseModel):
    """Weights, factor tables and gates for the scoring stage."""

    weights: ScoringWeights = Field(default_factory=ScoringWeights)
    role_type_preferences: Dict[str, float] = Field(
        default_factory=lambda: {
            "backend": 1.0,
            "platform": 1.0,
            "software_engineer": 0.8,
            "fullstack": 0.6,
        }
    )
    interview_preferences: Dict[str, float] = Field(
        default_factory=lambda: {"assignment": 1.0, "unknown": 0.5, "leetcode": 0.0}
    )
    target_seniority: List[str] = Field(default_factory=lambda: ["senior", "mid"])
    stretch_seniority: List[str] = Field(default_factory=lambda: ["lead", "staff"])
    employer_location: EmployerLocationConfig = Field(default_factory=EmployerLocationConfig)
    summary_threshold: float = Field(5.0, ge=0, le=10)
    concurrency: int = Field(5, ge=1, le=50, description="Concurrent analysis calls")
    candidate_profile: str = Field(
        "Software engineer looking for remote-friendly backend or platform roles.",
        description="Short profile the summary rationale is written against",
    )
    analysis: AnalysisConfig = Field(default_factory=AnalysisConfig)

    @field_validator("role_type_preferences", "interview_preferences")
    @classmethod
    def check_factor_range(cls, v: Dict[str, float]) -> Dict[str, float]:
        for key, factor in v.items():
            if not 0 <= factor <= 1:
                raise ValueError(f"Factor for '{key}' must be between 0 and 1, got {factor}")
        return {key.strip().lower(): factor for key, factor in v.items()}

    @field_validator("target_seniority", "stretch_seniority")
    @classmethod
    def check_seniority(cls, v: List[str]) -> List[str]:
        levels = _normalize_keywords(v)
        unknown = [level for level in levels if level not in SENIORITY_LEVELS]
        if unknown:
            raise ValueError(
                f"Unknown seniority level(s): {', '.join(unknown)}. "
                f"Expected one of: {', '.join(SENIORITY_LEVELS)}"
            )
        return levels


class ScheduleConfig(BaseModel):
    """When ingestion runs."""

    interval: str = Field("4h", description="Time between ingestion runs")
    timezone: str = Field("UTC", description="Timezone for time-of-day crawl depth")
    run_on_startup: bool = Field(True, description="Run once immediately on start")

    # Computed field
    interval_seconds: Optional[int] = None

    @field_validator("interval")
    @classmethod
    def validate_interval(cls, v: str) -> str:
        try:
            seconds = parse_duration(v)
            validate_duration_range(seconds, min_seconds=900, max_seconds=86400, label="Schedule interval")
        except DurationParseError as e:
            raise ValueError(str(e)) from e
        return v

    @field_validator("timezone")
    @classmethod
    def validate_timezone(cls, v: str) -> str:
        try:
            ZoneInfo(v)
        except (ZoneInfoNotFoundError, ValueError) as e:
            raise ValueError(f"Unknown timezone: '{v}'") from e
        return v

    @model_validator(mode="after")
    def compute_seconds(self):
        self.interval_seconds = parse_duration(self.interval)
        return self


class PipelineConfig(BaseModel):
    """Tier layout and retention."""

    tiers: List[List[str]] = Field(default_factory=lambda: [list(tier) for tier in DEFAULT_TIERS])
    stale_after: str = Field("30d", description="Records not re-observed for this long go stale")

    # Computed field
    stale_after_seconds: Optional[int] = None

    @field_validator("tiers")
    @classmethod
    def validate_tiers(cls, v: List[List[str]]) -> List[List[str]]:
        seen = set()
        tiers = []
        for tier in v:
            names = [name.strip().lower() for name in tier if name.strip()]
            for name in names:
                if name not in PROVIDER_NAMES:
                    raise ValueError(f"Unknown provider in tiers: '{name}'")
                if name in seen:
                    raise ValueError(f"Provider '{name}' appears in more than one tier")
                seen.add(name)
            if names:
                tiers.append(names)
        return tiers

    @field_validator("stale_after")
    @classmethod
    def validate_stale_after(cls, v: str) -> str:
        try:
            seconds = parse_duration(v)
            validate_duration_range(seconds, min_seconds=86400, max_seconds=365 * 86400, label="stale_after")
        except DurationParseError as e:
            raise ValueError(str(e)) from e
        return v

    @model_validator(mode="after")
    def compute_seconds(self):
        self.stale_after_seconds = parse_duration(self.stale_after)
        return self


class LoggingConfig(BaseModel):
    """Logging configuration."""

    level: LogLevel = Field(LogLevel.INFO, description="Log level")
    format: LogFormat = Field(
        LogFormat.KEY_VALUE, description="Log output format (json or key-value)"
    )

    model_config = {"use_enum_values": True}


class AdvancedConfig(BaseModel):
    """HTTP settings shared by all provider adapters."""

    http_request_timeout: int = Field(
        30, ge=5, le=300, description="Request timeout for provider API calls (seconds)"
    )
    user_agent: str = Field("JobHunter/1.0", min_length=1)

    @field_validator("user_agent")
    @classmethod
    def strip_user_agent(cls, v: str) -> str:
        stripped = v.strip()
        if not stripped:
            raise ValueError("user_agent cannot be empty")
        return stripped


class AppConfig(BaseModel):
    """Root configuration value.

    A loaded AppConfig is treated as immutable: reloading produces a new value
    with a higher ``version`` which callers pass explicitly into the next run.
    """

    version: int = Field(1, ge=1, description="Assigned by the loader on each (re)load")
    schedule: ScheduleConfig = Field(default_factory=ScheduleConfig)
    providers: ProvidersConfig = Field(default_factory=ProvidersConfig)
    filters: FiltersConfig = Field(default_factory=FiltersConfig)
    normalization: NormalizationConfig = Field(default_factory=NormalizationConfig)
    scoring: ScoringConfig = Field(default_factory=ScoringConfig)
    pipeline: PipelineConfig = Field(default_factory=PipelineConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    advanced: AdvancedConfig = Field(default_factory=AdvancedConfig)

    @model_validator(mode="after")
    def check_enabled_providers(self):
        if not self.providers.enabled_names():
            raise ValueError(
                "At least one provider must be enabled. All providers have enabled=false."
            )
        return self
