"""Ashby ATS adapter implementation."""

import logging
from typing import Any, Dict, List

from jobhunter.config.models import BoardConfig
from jobhunter.domain.models import RawPosting

from .base import BaseAdapter
from .exceptions import ProviderResponseError

logger = logging.getLogger(__name__)


class AshbyAdapter(BaseAdapter):
    """Adapter for Ashby public job boards.

    API Details:
        Endpoint: https://api.ashbyhq.com/posting-api/job-board/{board}?includeCompensation=true
        Method: GET
        Authentication: None required for public job boards
        Response: JSON object with 'jobs' array
    """

    PROVIDER_NAME = "ashby"
    API_BASE_URL = "https://api.ashbyhq.com/posting-api/job-board"

    async def fetch_jobs(self) -> List[RawPosting]:
        return await self._fetch_all_boards(self._fetch_board)

    async def _fetch_board(self, board: BoardConfig) -> List[RawPosting]:
        url = f"{self.API_BASE_URL}/{board.slug}"

        logger.info(
            "Fetching jobs from Ashby",
            extra={"event": "provider.board.fetch", "provider": self.name, "board": board.name, "url": url},
        )

        response = await self._request(url, params={"includeCompensation": "true"})
        if not isinstance(response, dict):
            raise ProviderResponseError(
                f"Expected JSON object response, got {type(response).__name__}", provider=self.name
            )

        jobs_data = response.get("jobs") or []
        if not isinstance(jobs_data, list):
            raise ProviderResponseError(
                f"Expected 'jobs' field to be array, got {type(jobs_data).__name__}", provider=self.name
            )

        company = board.label or board.name
        return self._build_postings(jobs_data, lambda job: self._transform_job(job, company), board)

    def _transform_job(self, job: Dict[str, Any], company: str) -> RawPosting:
        """Transform one Ashby job posting to a RawPosting.

        Ashby asserts remote eligibility with ``isRemote``; postings that omit
        it are left for the normalizer to infer.
        """
        compensation = job.get("compensation") or {}
        is_remote = job.get("isRemote")

        return RawPosting(
            external_id=str(job["id"]),
            title=job["title"],
            company=company,
            link=job.get("jobUrl") or job.get("applyUrl") or "",
            description=job.get("descriptionHtml") or job.get("descriptionPlain"),
            location=job.get("location"),
            remote_eligible=True if is_remote else None,
            compensation=compensation.get("compensationTierSummary"),
            metadata={
                "department": job.get("department"),
                "employment_type": job.get("employmentType"),
                "published_at": job.get("publishedAt"),
            },
        )
