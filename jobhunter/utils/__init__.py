"""Utility functions for hashing, time handling and bounded concurrency."""

from .concurrency import Outcome, gather_bounded
from .hashing import collapse_whitespace, hash_string, short_digest
from .timestamps import (
    ensure_utc,
    from_storage,
    start_of_month,
    to_storage,
    utc_now,
)

__all__ = [
    # Concurrency
    "Outcome",
    "gather_bounded",
    # Hashing
    "collapse_whitespace",
    "hash_string",
    "short_digest",
    # Timestamps
    "utc_now",
    "ensure_utc",
    "to_storage",
    "from_storage",
    "start_of_month",
]
