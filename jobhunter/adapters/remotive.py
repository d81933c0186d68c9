"""Remotive remote-jobs adapter."""

import asyncio
from typing import Any, Dict, List

from jobhunter.config.models import BoardConfig
from jobhunter.domain.models import RawPosting
from jobhunter.logging import get_logger
from jobhunter.utils.concurrency import Outcome

from .base import BaseAdapter
from .exceptions import ProviderResponseError

logger = get_logger(__name__, component="adapter")


class RemotiveAdapter(BaseAdapter):
    """Adapter for the Remotive public API.

    Remotive rate-limits aggressively, so boards (categories) are fetched one
    at a time with RATE_LIMIT_DELAY seconds between requests. Every Remotive
    posting is remote by definition.

    API Details:
        Endpoint: https://remotive.com/api/remote-jobs?category=...&search=...
        Method: GET
        Authentication: None
        Response: JSON object with 'jobs' array
    """

    PROVIDER_NAME = "remotive"
    API_URL = "https://remotive.com/api/remote-jobs"
    RATE_LIMIT_DELAY = 31.0

    async def fetch_jobs(self) -> List[RawPosting]:
        outcomes: List[Outcome] = []
        for index, board in enumerate(self.boards):
            if index > 0:
                logger.debug(
                    f"Waiting {self.RATE_LIMIT_DELAY}s before next Remotive request",
                    extra={"event": "provider.rate_limit.wait", "provider": self.name},
                )
                await asyncio.sleep(self.RATE_LIMIT_DELAY)
            try:
                outcomes.append(Outcome(item=board, value=await self._fetch_category(board)))
            except Exception as e:
                outcomes.append(Outcome(item=board, error=e))

        if not outcomes:
            return []
        return self._merge_board_outcomes(outcomes)

    async def _fetch_category(self, board: BoardConfig) -> List[RawPosting]:
        params = {}
        if board.category:
            params["category"] = board.category
        if board.keywords:
            params["search"] = board.keywords

        response = await self._request(self.API_URL, params=params)
        if not isinstance(response, dict) or not isinstance(response.get("jobs"), list):
            raise ProviderResponseError(f"Remotive {board.name}: missing 'jobs' array", provider=self.name)

        return self._build_postings(response["jobs"], self._transform_job, board)

    def _transform_job(self, job: Dict[str, Any]) -> RawPosting:
        return RawPosting(
            external_id=str(job["id"]),
            title=job["title"],
            company=job["company_name"],
            link=job["url"],
            description=job.get("description"),
            location=job.get("candidate_required_location"),
            remote_eligible=True,
            compensation=job.get("salary") or None,
            metadata={"job_type": job.get("job_type"), "publication_date": job.get("publication_date")},
        )
