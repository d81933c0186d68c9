"""SerpApi (Google Jobs) adapter with adaptive crawl depth."""

from typing import Any, Callable, Dict, List, Optional
from urllib.parse import quote_plus

from jobhunter.config.models import BoardConfig, SerpApiConfig
from jobhunter.domain.models import RawPosting
from jobhunter.logging import get_logger

from .base import BaseAdapter
from .exceptions import ProviderConfigurationError, ProviderError, ProviderResponseError

logger = get_logger(__name__, component="adapter")

ExistingChecker = Callable[[List[str]], int]
UsageChecker = Callable[[], int]


def crawl_depth(hour: int) -> int:
    """Pages per search for the given local hour: deeper crawls early in the day."""
    if hour < 9:
        return 3
    if hour < 15:
        return 2
    return 1


class SerpApiAdapter(BaseAdapter):
    """Adapter for SerpApi's google_jobs engine.

    Each search is metered, so the crawl depth adapts:

    - ``max_depth`` comes from the time of day (see crawl_depth()) and is
      capped by ``max_pages``;
    - once this month's run count reaches ``monthly_budget``, or the usage
      check itself fails, every search is forced to one page;
    - when every page-1 result is already stored, deeper pages are skipped.

    An error on page 1 fails the search; an error on a deeper page keeps
    the pages already fetched.
    """

    PROVIDER_NAME = "serpapi"
    API_URL = "https://serpapi.com/search"
    DEFAULT_QUERY = "software engineer"
    DEFAULT_LOCATION = "Canada"

    def __init__(
        self,
        boards,
        api_key: str,
        settings: Optional[SerpApiConfig] = None,
        max_depth: int = 1,
        existing_checker: Optional[ExistingChecker] = None,
        usage_checker: Optional[UsageChecker] = None,
        **kwargs,
    ):
        super().__init__(boards, **kwargs)
        if not api_key:
            raise ProviderConfigurationError("SerpApi requires an API key", provider=self.PROVIDER_NAME)
        self.api_key = api_key
        self.settings = settings or SerpApiConfig()
        self.max_depth = max(1, max_depth)
        self.existing_checker = existing_checker
        self.usage_checker = usage_checker

    async def fetch_jobs(self) -> List[RawPosting]:
        depth = self._effective_depth()
        logger.info(
            f"SerpApi fetch starting at depth {depth}",
            extra={"event": "provider.fetch.started", "provider": self.name, "depth": depth},
        )

        async def fetch(board: BoardConfig) -> List[RawPosting]:
            return await self._fetch_search(board, depth)

        return await self._fetch_all_boards(fetch)

    def _effective_depth(self) -> int:
        depth = min(self.max_depth, self.settings.max_pages)
        if self.usage_checker is None:
            return depth
        try:
            used = self.usage_checker()
        except Exception as e:
            logger.error(
                f"Failed to check monthly usage, defaulting to depth 1: {e}",
                extra={"event": "provider.budget.check_failed", "provider": self.name},
            )
            return 1
        if used >= self.settings.monthly_budget:
            logger.warning(
                "Monthly budget reached, forcing depth 1",
                extra={
                    "event": "provider.budget.exhausted",
                    "provider": self.name,
                    "used": used,
                    "budget": self.settings.monthly_budget,
                },
            )
            return 1
        return depth

    def _search_params(self, board: BoardConfig, page_token: Optional[str]) -> Dict[str, Any]:
        params = {
            "engine": "google_jobs",
            "q": board.keywords or self.DEFAULT_QUERY,
            "api_key": self.api_key,
            "location": board.label or self.DEFAULT_LOCATION,
            "gl": "ca",
            "google_domain": "google.ca",
        }
        if page_token:
            params["next_page_token"] = page_token
        return params

    async def _fetch_search(self, board: BoardConfig, depth: int) -> List[RawPosting]:
        postings: List[RawPosting] = []
        page_token = None
        pages_fetched = 0

        for page in range(depth):
            try:
                data = await self._request(self.API_URL, params=self._search_params(board, page_token))
                if not isinstance(data, dict):
                    raise ProviderResponseError(
                        f"SerpApi {board.name}: expected JSON object", provider=self.name
                    )
                if data.get("error"):
                    raise ProviderResponseError(f"SerpApi {board.name}: {data['error']}", provider=self.name)
            except ProviderError as e:
                if page == 0:
                    raise
                logger.warning(
                    f"Error on page {page + 1}, returning partial results: {e}",
                    extra={"event": "provider.page.partial", "provider": self.name, "board": board.name, "page": page},
                )
                break

            pages_fetched += 1
            mapped = self._build_postings(data.get("jobs_results") or [], self._transform_job, board)
            postings.extend(mapped)

            if page == 0 and depth > 1 and mapped and self._all_seen(board, mapped):
                break

            page_token = (data.get("serpapi_pagination") or {}).get("next_page_token")
            if not page_token:
                break

        logger.info(
            f"Search {board.name} complete",
            extra={
                "event": "provider.search.completed",
                "provider": self.name,
                "board": board.name,
                "pages_fetched": pages_fetched,
                "total": len(postings),
            },
        )
        return postings

    def _all_seen(self, board: BoardConfig, postings: List[RawPosting]) -> bool:
        """Newness gate: True when every posting is already in the store."""
        if self.existing_checker is None:
            return False
        ids = [posting.external_id for posting in postings]
        try:
            existing = self.existing_checker(ids)
        except Exception as e:
            logger.error(
                f"Newness check failed, proceeding anyway: {e}",
                extra={"event": "provider.newness.check_failed", "provider": self.name, "board": board.name},
            )
            return False
        if existing >= len(ids):
            logger.info(
                "Page 1 all seen, skipping deeper pages",
                extra={"event": "provider.newness.all_seen", "provider": self.name, "board": board.name, "checked": len(ids)},
            )
            return True
        return False

    def _transform_job(self, job: Dict[str, Any]) -> RawPosting:
        extensions = job.get("detected_extensions") or {}
        return RawPosting(
            external_id=job["job_id"],
            title=job["title"],
            company=job["company_name"],
            link=self._pick_link(job),
            description=job.get("description"),
            location=job.get("location"),
            remote_eligible=True if extensions.get("work_from_home") is True else None,
            compensation=extensions.get("salary"),
            metadata={
                "posted_at": extensions.get("posted_at"),
                "schedule_type": extensions.get("schedule_type"),
                "share_link": job.get("share_link"),
            },
        )

    @staticmethod
    def _pick_link(job: Dict[str, Any]) -> str:
        apply_options = job.get("apply_options") or []
        if apply_options and apply_options[0].get("link"):
            return apply_options[0]["link"]
        if job.get("share_link"):
            return job["share_link"]
        query = quote_plus(f"{job.get('title', '')} {job.get('company_name', '')}")
        return f"https://www.google.com/search?q={query}&ibp=htl;jobs"
