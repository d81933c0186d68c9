"""Normalization of raw provider postings into JobRecords.

Besides cleaning text, this module derives the cross-source identity of a
posting: its canonical key ``company::title::fingerprint``. The key
functions are pure, so the same inputs always produce the same key no
matter which provider the posting came from.
"""

import re
from datetime import datetime
from typing import Iterable, List, Optional

from jobhunter.config.models import NormalizationConfig
from jobhunter.domain.models import JobRecord, RawPosting
from jobhunter.logging import get_logger
from jobhunter.utils.hashing import collapse_whitespace, short_digest
from jobhunter.utils.timestamps import ensure_utc, utc_now

logger = get_logger(__name__, component="normalization")

NO_DESCRIPTION_FINGERPRINT = "nodesc"
FINGERPRINT_LENGTH = 12
FINGERPRINT_SOURCE_CHARS = 500
KEY_SEPARATOR = "::"

_TAG = re.compile(r"<[^>]*>")
_ENTITIES = {
    "&nbsp;": " ",
    "&amp;": "&",
    "&lt;": "<",
    "&gt;": ">",
}
_LEGAL_SUFFIX = re.compile(
    r"\b(?:inc\.?|incorporated|ltd\.?|limited|corp\.?|corporation|llc|l\.l\.c\.|co\.?|company)(?=\W|$)"
)
_SENIOR = re.compile(r"\bsr\b")
_JUNIOR = re.compile(r"\bjr\b")


def strip_html(text: Optional[str]) -> str:
    """Remove tags, decode a small fixed set of entities and collapse whitespace."""
    if not text:
        return ""
    stripped = _TAG.sub(" ", text)
    for entity, replacement in _ENTITIES.items():
        stripped = stripped.replace(entity, replacement)
    return collapse_whitespace(stripped)


def normalize_company(name: str) -> str:
    """Lowercase, drop legal-entity suffixes and punctuation.

    >>> normalize_company("Acme Inc.")
    'acme'
    """
    lowered = name.lower()
    without_suffix = _LEGAL_SUFFIX.sub("", lowered)
    return collapse_whitespace(re.sub(r"[.,]", "", without_suffix))


def normalize_title(title: str) -> str:
    """Lowercase and expand Sr/Jr as whole words.

    >>> normalize_title("Sr Engineer")
    'senior engineer'
    """
    lowered = title.lower()
    expanded = _JUNIOR.sub("junior", _SENIOR.sub("senior", lowered))
    return collapse_whitespace(expanded)


def description_fingerprint(description: Optional[str]) -> str:
    """Short digest of the start of the description, or the no-description sentinel."""
    if not description or not description.strip():
        return NO_DESCRIPTION_FINGERPRINT
    normalized = collapse_whitespace(description.lower())
    return short_digest(normalized[:FINGERPRINT_SOURCE_CHARS], FINGERPRINT_LENGTH)


def company_title_prefix(company: str, title: str) -> str:
    """The ``company::title::`` part shared by every fingerprint variant of a role."""
    return f"{normalize_company(company)}{KEY_SEPARATOR}{normalize_title(title)}{KEY_SEPARATOR}"


def build_canonical_key(company: str, title: str, description: Optional[str]) -> str:
    return company_title_prefix(company, title) + description_fingerprint(description)


def has_fingerprint(canonical_key: str) -> bool:
    """False for keys built from a posting without a description."""
    return not canonical_key.endswith(KEY_SEPARATOR + NO_DESCRIPTION_FINGERPRINT)


def detect_remote(location: Optional[str], description: Optional[str], keywords: Iterable[str]) -> bool:
    haystack = f"{location or ''} {description or ''}".lower()
    return any(keyword in haystack for keyword in keywords)


class NormalizationService:
    """Converts RawPostings from one provider into JobRecords ready for dedup."""

    def __init__(self, config: NormalizationConfig):
        self.config = config

    def normalize(
        self,
        posting: RawPosting,
        source_name: str,
        observed_at: Optional[datetime] = None,
    ) -> JobRecord:
        description = strip_html(posting.description) or None
        location = collapse_whitespace(posting.location) if posting.location else None

        if posting.remote_eligible is not None:
            remote_eligible = posting.remote_eligible
        else:
            remote_eligible = detect_remote(location, description, self.config.remote_keywords)

        timestamp = ensure_utc(observed_at) or utc_now()

        return JobRecord(
            external_id=posting.external_id,
            source_name=source_name,
            canonical_key=build_canonical_key(posting.company, posting.title, description),
            title=collapse_whitespace(posting.title),
            company=collapse_whitespace(posting.company),
            link=posting.link,
            description=description,
            location=location,
            remote_eligible=remote_eligible,
            seniority=posting.seniority.lower() if posting.seniority else None,
            compensation=posting.compensation,
            metadata=dict(posting.metadata),
            created_at=timestamp,
            updated_at=timestamp,
        )

    def normalize_batch(
        self,
        postings: Iterable[RawPosting],
        source_name: str,
        observed_at: Optional[datetime] = None,
    ) -> List[JobRecord]:
        """Normalize postings sharing one observation timestamp; bad postings are logged and skipped."""
        timestamp = ensure_utc(observed_at) or utc_now()
        records = []
        for posting in postings:
            try:
                records.append(self.normalize(posting, source_name, timestamp))
            except ValueError as e:
                logger.warning(
                    f"Skipping posting {posting.external_id} from {source_name}: {e}",
                    extra={
                        "event": "normalization.posting.skipped",
                        "provider": source_name,
                        "external_id": posting.external_id,
                    },
                )
        return records
