"""Filtering and normalization of raw postings.

This module provides:
- passes_role_filter / passes_location_filter: predicates run before normalization
- NormalizationService: RawPosting -> JobRecord with canonical key
- Pure key helpers: normalize_company, normalize_title, description_fingerprint,
  build_canonical_key, strip_html
"""

from .filters import passes_location_filter, passes_role_filter
from .service import (
    NO_DESCRIPTION_FINGERPRINT,
    NormalizationService,
    build_canonical_key,
    company_title_prefix,
    description_fingerprint,
    detect_remote,
    has_fingerprint,
    normalize_company,
    normalize_title,
    strip_html,
)

__all__ = [
    "passes_role_filter",
    "passes_location_filter",
    "NormalizationService",
    "NO_DESCRIPTION_FINGERPRINT",
    "build_canonical_key",
    "company_title_prefix",
    "description_fingerprint",
    "detect_remote",
    "has_fingerprint",
    "normalize_company",
    "normalize_title",
    "strip_html",
]
