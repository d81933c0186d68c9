"""Hashing helpers used for description fingerprints."""

import hashlib
import re

_WHITESPACE = re.compile(r"\s+")


def collapse_whitespace(text: str) -> str:
    """Replace runs of whitespace with a single space and strip the ends."""
    return _WHITESPACE.sub(" ", text).strip()


def hash_string(value: str) -> str:
    """Return the SHA-256 hex digest (64 characters) of a string."""
    return hashlib.sha256(value.encode("utf-8")).hexdigest()


def short_digest(value: str, length: int = 12) -> str:
    """Return the first ``length`` hex characters of the SHA-256 digest.

    Example:
        >>> len(short_digest("backend engineer"))
        12
    """
    if length < 1 or length > 64:
        raise ValueError(f"Digest length must be between 1 and 64, got {length}")
    return hash_string(value)[:length]
