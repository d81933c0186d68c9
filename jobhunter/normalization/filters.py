"""Stateless role and location predicates applied to raw postings.

Keyword lists are lowercased by the config model, so matching here is a
plain substring test against lowercased text.
"""

from typing import Iterable

from jobhunter.config.models import FiltersConfig
from jobhunter.domain.models import RawPosting


def _contains_any(text: str, keywords: Iterable[str]) -> bool:
    return any(keyword in text for keyword in keywords)


def passes_role_filter(posting: RawPosting, filters: FiltersConfig) -> bool:
    """Exclude keywords always win; otherwise at least one include keyword must match."""
    title = posting.title.lower()
    if _contains_any(title, filters.exclude_titles):
        return False
    return _contains_any(title, filters.include_titles)


def passes_location_filter(posting: RawPosting, filters: FiltersConfig) -> bool:
    """Accept home-metro postings outright, then regional or remote ones without onsite/hybrid signals.

    >>> # "Remote" with a "hybrid work schedule" description is rejected,
    >>> # "Toronto" with "#LI-Onsite" passes when toronto is a home location.
    """
    location = (posting.location or "").lower()
    description = (posting.description or "").lower()

    if _contains_any(location, filters.home_locations):
        return True

    regional = _contains_any(location, filters.location_keywords)
    remote = _contains_any(location, filters.remote_indicators) or _contains_any(
        description, filters.remote_indicators
    )
    if not (regional or remote):
        return False

    onsite = _contains_any(location, filters.onsite_indicators) or _contains_any(
        description, filters.onsite_indicators
    )
    return not onsite
