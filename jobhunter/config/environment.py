"""Environment variable loading and validation."""

import os
from typing import Optional

from .exceptions import ConfigurationError

VALID_LOG_LEVELS = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]


class EnvironmentConfig:
    """Environment variable configuration holder (credentials and runtime overrides)."""

    def __init__(
        self,
        database_url: Optional[str] = None,
        log_level: Optional[str] = None,
        anthropic_api_key: Optional[str] = None,
        adzuna_app_id: Optional[str] = None,
        adzuna_app_key: Optional[str] = None,
        coresignal_api_key: Optional[str] = None,
        brightdata_api_token: Optional[str] = None,
        serpapi_api_key: Optional[str] = None,
    ):
        self.database_url = database_url or "sqlite:///./data/jobhunter.db"
        self.log_level = log_level
        self.anthropic_api_key = anthropic_api_key
        self.adzuna_app_id = adzuna_app_id
        self.adzuna_app_key = adzuna_app_key
        self.coresignal_api_key = coresignal_api_key
        self.brightdata_api_token = brightdata_api_token
        self.serpapi_api_key = serpapi_api_key


def load_environment_config() -> EnvironmentConfig:
    """
    Load and validate environment variables.

    All variables are optional; providers whose credentials are missing are
    skipped at build time, and analysis falls back to default metadata when
    ANTHROPIC_API_KEY is absent.

    - DATABASE_URL: SQLAlchemy URL (default: sqlite:///./data/jobhunter.db)
    - LOG_LEVEL: Override log level
    - ANTHROPIC_API_KEY: Analysis service key
    - ADZUNA_APP_ID / ADZUNA_APP_KEY: Adzuna credentials (both or neither)
    - CORESIGNAL_API_KEY, BRIGHTDATA_API_TOKEN, SERPAPI_API_KEY

    Raises:
        ConfigurationError: If a value is malformed or a credential pair is incomplete
    """
    errors = []

    log_level = os.getenv("LOG_LEVEL")
    adzuna_app_id = os.getenv("ADZUNA_APP_ID")
    adzuna_app_key = os.getenv("ADZUNA_APP_KEY")

    if log_level and log_level.upper() not in VALID_LOG_LEVELS:
        errors.append(
            f"Invalid LOG_LEVEL: '{log_level}'. Must be one of: {', '.join(VALID_LOG_LEVELS)}"
        )

    if adzuna_app_id and not adzuna_app_key:
        errors.append("ADZUNA_APP_ID is set but ADZUNA_APP_KEY is not. Both must be set.")
    elif adzuna_app_key and not adzuna_app_id:
        errors.append("ADZUNA_APP_KEY is set but ADZUNA_APP_ID is not. Both must be set.")

    if errors:
        raise ConfigurationError(
            "Environment variable validation failed",
            errors=errors,
            suggestions=[
                "Copy .env.example to .env and fill in your credentials",
                "Unset credentials for providers you do not use",
            ],
        )

    return EnvironmentConfig(
        database_url=os.getenv("DATABASE_URL"),
        log_level=log_level.upper() if log_level else None,
        anthropic_api_key=os.getenv("ANTHROPIC_API_KEY"),
        adzuna_app_id=adzuna_app_id,
        adzuna_app_key=adzuna_app_key,
        coresignal_api_key=os.getenv("CORESIGNAL_API_KEY"),
        brightdata_api_token=os.getenv("BRIGHTDATA_API_TOKEN"),
        serpapi_api_key=os.getenv("SERPAPI_API_KEY"),
    )
