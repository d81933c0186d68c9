"""Greenhouse ATS adapter implementation."""

from __future__ import annotations

import html
from typing import Any

from jobhunter.config.models import BoardConfig
from jobhunter.domain.models import RawPosting
from jobhunter.logging import get_logger

from .base import BaseAdapter
from .exceptions import ProviderResponseError

logger = get_logger(__name__, component="adapter")


class GreenhouseAdapter(BaseAdapter):
    """Adapter for Greenhouse public job boards.

    Each board is one company. All boards are fetched concurrently.

    API Details:
        Endpoint: https://boards-api.greenhouse.io/v1/boards/{token}/jobs?content=true
        Method: GET
        Authentication: None (public)
        Response: JSON object with 'jobs' array; 'content' is HTML-escaped HTML
    """

    PROVIDER_NAME = "greenhouse"
    API_BASE_URL = "https://boards-api.greenhouse.io/v1/boards"

    async def fetch_jobs(self) -> list[RawPosting]:
        return await self._fetch_all_boards(self._fetch_board)

    async def _fetch_board(self, board: BoardConfig) -> list[RawPosting]:
        url = f"{self.API_BASE_URL}/{board.slug}/jobs"

        logger.info(
            "Fetching jobs from Greenhouse",
            extra={"event": "provider.board.fetch", "provider": self.name, "board": board.name, "url": url},
        )

        response = await self._request(url, params={"content": "true"})
        if not isinstance(response, dict):
            raise ProviderResponseError(
                f"Expected JSON object response, got {type(response).__name__}", provider=self.name
            )

        jobs_data = response.get("jobs", [])
        if not isinstance(jobs_data, list):
            raise ProviderResponseError(
                f"Expected 'jobs' field to be array, got {type(jobs_data).__name__}", provider=self.name
            )

        company = board.label or board.name
        return self._build_postings(jobs_data, lambda job: self._transform_job(job, company), board)

    def _transform_job(self, job: dict[str, Any], company: str) -> RawPosting:
        """Transform one Greenhouse job object to a RawPosting.

        Raises:
            KeyError: If id or title is missing
        """
        content = job.get("content")
        location = job.get("location") or {}

        return RawPosting(
            external_id=str(job["id"]),
            title=job["title"],
            company=company,
            link=job.get("absolute_url") or "",
            description=html.unescape(content) if content else None,
            location=location.get("name") if isinstance(location, dict) else None,
            metadata={"updated_at": job.get("updated_at")},
        )
