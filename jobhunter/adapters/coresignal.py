"""Coresignal job-data adapter.

Coresignal splits retrieval in two: a filtered search returns bare job IDs
(paged with an ``x-next-page-after`` cursor header), then each ID is
collected individually. Collect calls run at most COLLECT_CONCURRENCY at a
time; a failed collect drops that one ID.
"""

from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional

from jobhunter.config.models import BoardConfig
from jobhunter.domain.models import RawPosting
from jobhunter.logging import get_logger
from jobhunter.utils.concurrency import gather_bounded

from .base import BaseAdapter, format_salary_range
from .exceptions import ProviderConfigurationError, ProviderResponseError

logger = get_logger(__name__, component="adapter")

COLLECT_FIELDS = (
    "professional_network_job_id",
    "title",
    "description",
    "location",
    "country",
    "employment_type",
    "seniority",
    "url",
    "salary",
    "company",
    "application_active",
    "deleted",
)


def format_salary(salary: Optional[Dict[str, Any]]) -> Optional[str]:
    """Render a Coresignal salary object, e.g. '100,000 – 120,000 USD per year'."""
    if not salary:
        return None
    text = format_salary_range(salary.get("min"), salary.get("max"))
    if text is None:
        return None
    parts = [text]
    if salary.get("currency"):
        parts.append(salary["currency"])
    if salary.get("unit"):
        parts.append(f"per {salary['unit'].lower()}")
    return " ".join(parts)


class CoresignalAdapter(BaseAdapter):
    """Adapter for the Coresignal job_base API (search, then collect)."""

    PROVIDER_NAME = "coresignal"
    API_BASE_URL = "https://api.coresignal.com/cdapi/v2/job_base"
    COLLECT_CONCURRENCY = 10
    DEFAULT_MAX_COLLECT = 50
    FRESHNESS_DAYS = 7

    def __init__(self, boards, api_key: str, **kwargs):
        super().__init__(boards, **kwargs)
        if not api_key:
            raise ProviderConfigurationError("Coresignal requires an API key", provider=self.PROVIDER_NAME)
        self.api_key = api_key

    async def fetch_jobs(self) -> List[RawPosting]:
        return await self._fetch_all_boards(self._fetch_board)

    async def _fetch_board(self, board: BoardConfig) -> List[RawPosting]:
        ids = await self._search_job_ids(board)
        if not ids:
            logger.debug(
                f"No job IDs found for {board.name}",
                extra={"event": "provider.search.empty", "provider": self.name, "board": board.name},
            )
            return []

        logger.info(
            f"Collecting {len(ids)} Coresignal records",
            extra={"event": "provider.collect.started", "provider": self.name, "board": board.name, "ids": len(ids)},
        )
        jobs = await self._collect_jobs(ids)
        live = [job for job in jobs if job.get("application_active") != 0 and job.get("deleted") != 1]
        return self._build_postings(live, lambda job: self._transform_job(job, board), board)

    def _search_body(self, board: BoardConfig, now: Optional[datetime] = None) -> Dict[str, Any]:
        cutoff = (now or datetime.now(timezone.utc)) - timedelta(days=self.FRESHNESS_DAYS)
        body: Dict[str, Any] = {
            "application_active": 1,
            "deleted": 0,
            "last_updated_gte": cutoff.strftime("%Y-%m-%d %H:%M:%S"),
        }
        if board.country:
            body["country"] = board.country
        if board.employment_type:
            body["employment_type"] = board.employment_type
        if board.keywords:
            body["title"] = board.keywords
        return body

    async def _search_job_ids(self, board: BoardConfig) -> List[int]:
        max_collect = board.max_collect or self.DEFAULT_MAX_COLLECT
        body = self._search_body(board)
        ids: List[int] = []
        cursor = None

        while len(ids) < max_collect:
            params = {"after": cursor} if cursor else None
            response = await self._request_response(
                f"{self.API_BASE_URL}/search/filter",
                method="POST",
                headers={"apikey": self.api_key, "Content-Type": "application/json"},
                params=params,
                json_data=body,
            )
            try:
                page_ids = response.json()
            except ValueError as e:
                raise ProviderResponseError(f"Coresignal search {board.name}: invalid JSON", provider=self.name) from e
            if not isinstance(page_ids, list):
                raise ProviderResponseError(
                    f"Coresignal search {board.name}: expected list of IDs", provider=self.name
                )
            if not page_ids:
                break

            ids.extend(page_ids[: max_collect - len(ids)])
            cursor = response.headers.get("x-next-page-after")
            if not cursor:
                break

        return ids

    async def _collect_jobs(self, ids: List[int]) -> List[Dict[str, Any]]:
        fields = ",".join(COLLECT_FIELDS)

        async def collect(job_id: int) -> Dict[str, Any]:
            return await self._request(
                f"{self.API_BASE_URL}/collect/{job_id}",
                headers={"apikey": self.api_key},
                params={"fields": fields},
            )

        jobs = []
        for outcome in await gather_bounded(collect, ids, self.COLLECT_CONCURRENCY):
            if outcome.ok and isinstance(outcome.value, dict):
                jobs.append(outcome.value)
            else:
                logger.warning(
                    f"Collect failed for job ID {outcome.item}",
                    extra={
                        "event": "provider.collect.failed",
                        "provider": self.name,
                        "job_id": outcome.item,
                        "error": str(outcome.error) if outcome.error else "unexpected payload",
                    },
                )
        return jobs

    def _transform_job(self, job: Dict[str, Any], board: BoardConfig) -> RawPosting:
        company = job.get("company") or {}

        return RawPosting(
            external_id=str(job["professional_network_job_id"]),
            title=job["title"],
            company=company.get("name") or board.label or board.name,
            link=job["url"],
            description=job.get("description"),
            location=job.get("location"),
            seniority=job.get("seniority"),
            compensation=format_salary(job.get("salary")),
            metadata={
                "country": job.get("country"),
                "employment_type": job.get("employment_type"),
                "company_website": company.get("website"),
            },
        )
