"""Persistence layer: engine/session lifecycle, repositories and errors.

Example usage:
    >>> from jobhunter.persistence import init_database, get_session, JobRepository
    >>> init_database("sqlite:///./data/jobhunter.db")
    >>> with get_session() as session:
    ...     top = JobRepository(session).query_ranked(limit=10)
"""

from .database import close_database, get_engine, get_session, init_database
from .exceptions import (
    DatabaseConnectionError,
    DataIntegrityError,
    PersistenceError,
    RecordNotFoundError,
)
from .repositories import ApplicationRepository, IngestionLogRepository, JobRepository

__all__ = [
    # Database functions
    "init_database",
    "get_session",
    "close_database",
    "get_engine",
    # Repositories
    "JobRepository",
    "IngestionLogRepository",
    "ApplicationRepository",
    # Exceptions
    "PersistenceError",
    "DatabaseConnectionError",
    "RecordNotFoundError",
    "DataIntegrityError",
]
