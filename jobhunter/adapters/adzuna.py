"""Adzuna job search adapter."""

from typing import Any, Dict, List

from jobhunter.config.models import BoardConfig
from jobhunter.domain.models import RawPosting
from jobhunter.logging import get_logger

from .base import BaseAdapter, format_salary_range
from .exceptions import ProviderConfigurationError, ProviderResponseError

logger = get_logger(__name__, component="adapter")


class AdzunaAdapter(BaseAdapter):
    """Adapter for the Adzuna search API.

    Each board is a keyword search in one country. Pages of 50 are fetched
    until a short page or MAX_PAGES, whichever comes first.

    API Details:
        Endpoint: https://api.adzuna.com/v1/api/jobs/{country}/search/{page}
        Method: GET
        Authentication: app_id and app_key query parameters
        Response: JSON object with 'results' array
    """

    PROVIDER_NAME = "adzuna"
    API_BASE_URL = "https://api.adzuna.com/v1/api/jobs"
    MAX_PAGES = 5
    RESULTS_PER_PAGE = 50
    DEFAULT_COUNTRY = "us"

    def __init__(self, boards, app_id: str, app_key: str, **kwargs):
        super().__init__(boards, **kwargs)
        if not app_id or not app_key:
            raise ProviderConfigurationError("Adzuna requires app_id and app_key", provider=self.PROVIDER_NAME)
        self.app_id = app_id
        self.app_key = app_key

    async def fetch_jobs(self) -> List[RawPosting]:
        return await self._fetch_all_boards(self._fetch_search)

    async def _fetch_search(self, board: BoardConfig) -> List[RawPosting]:
        country = (board.country or self.DEFAULT_COUNTRY).lower()
        postings: List[RawPosting] = []

        for page in range(1, self.MAX_PAGES + 1):
            url = f"{self.API_BASE_URL}/{country}/search/{page}"
            params: Dict[str, Any] = {
                "app_id": self.app_id,
                "app_key": self.app_key,
                "results_per_page": self.RESULTS_PER_PAGE,
            }
            if board.keywords:
                params["what"] = board.keywords

            logger.debug(
                f"Fetching Adzuna page {page}",
                extra={"event": "provider.page.fetch", "provider": self.name, "board": board.name, "page": page},
            )
            response = await self._request(url, params=params)
            if not isinstance(response, dict) or not isinstance(response.get("results"), list):
                raise ProviderResponseError(
                    f"Adzuna {board.name} page {page}: missing 'results' array", provider=self.name
                )

            results = response["results"]
            postings.extend(self._build_postings(results, lambda job: self._transform_job(job, board), board))

            if len(results) < self.RESULTS_PER_PAGE:
                break

        return postings

    def _transform_job(self, job: Dict[str, Any], board: BoardConfig) -> RawPosting:
        company = (job.get("company") or {}).get("display_name")
        location = (job.get("location") or {}).get("display_name")

        return RawPosting(
            external_id=str(job["id"]),
            title=job["title"],
            company=company or board.label or board.name,
            link=job["redirect_url"],
            description=job.get("description"),
            location=location,
            compensation=format_salary_range(job.get("salary_min"), job.get("salary_max")),
            metadata={"created": job.get("created"), "category": (job.get("category") or {}).get("label")},
        )
