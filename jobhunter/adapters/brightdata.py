"""Bright Data datasets adapter (trigger, poll, download)."""

import asyncio
import time
from typing import Any, Dict, List, Optional

from jobhunter.config.models import BoardConfig
from jobhunter.domain.models import RawPosting
from jobhunter.logging import get_logger

from .base import BaseAdapter
from .exceptions import ProviderConfigurationError, ProviderResponseError, ProviderTimeoutError

logger = get_logger(__name__, component="adapter")

DATASET_IDS = {
    "linkedin": "gd_lpfll7v5hcqtkxl6l",
    "indeed": "gd_l4dx9j9sscpvs7no2",
    "glassdoor": "gd_lpfbbndm1xnopbrcr0",
}


class BrightDataAdapter(BaseAdapter):
    """Adapter for Bright Data's asynchronous dataset API.

    Each board names a source (``category``: linkedin, indeed or glassdoor)
    and is collected in three steps:

    1. POST /trigger starts a discovery snapshot (never retried; each trigger
       costs money);
    2. GET /progress/{snapshot_id} is polled with a linear backoff until the
       snapshot is ready, fails, or POLL_TIMEOUT elapses;
    3. GET /snapshot/{snapshot_id} downloads the records.

    At most BOARD_CONCURRENCY boards are in flight at once.
    """

    PROVIDER_NAME = "brightdata"
    API_BASE_URL = "https://api.brightdata.com/datasets/v3"
    BOARD_CONCURRENCY = 3
    DEFAULT_MAX_RECORDS = 100
    POLL_INITIAL_INTERVAL = 15.0
    POLL_MAX_INTERVAL = 60.0
    POLL_TIMEOUT = 300.0

    def __init__(self, boards, api_token: str, **kwargs):
        super().__init__(boards, **kwargs)
        if not api_token:
            raise ProviderConfigurationError("Bright Data requires an API token", provider=self.PROVIDER_NAME)
        self.api_token = api_token

    @property
    def _auth_headers(self) -> Dict[str, str]:
        return {"Authorization": f"Bearer {self.api_token}"}

    async def fetch_jobs(self) -> List[RawPosting]:
        return await self._fetch_all_boards(self._fetch_board, limit=self.BOARD_CONCURRENCY)

    async def _fetch_board(self, board: BoardConfig) -> List[RawPosting]:
        source = (board.category or "linkedin").lower()
        dataset_id = DATASET_IDS.get(source)
        if dataset_id is None:
            logger.warning(
                f"Unknown Bright Data source '{source}', skipping board {board.name}",
                extra={"event": "provider.board.skipped", "provider": self.name, "board": board.name},
            )
            return []

        snapshot_id = await self._trigger_snapshot(board, dataset_id, source)
        await self._poll_until_ready(snapshot_id, board)
        records = await self._download_snapshot(snapshot_id, board)
        return self._map_records(records, source, board)

    def _build_input(self, board: BoardConfig, source: str) -> Dict[str, Any]:
        payload: Dict[str, Any] = {}
        if board.keywords:
            payload["keyword"] = board.keywords
        if board.country:
            payload["country"] = board.country
            payload["location"] = board.country
        if source in ("linkedin", "indeed"):
            if board.employment_type:
                payload["job_type"] = board.employment_type
        elif source == "glassdoor":
            payload["days"] = 7
        return payload

    async def _trigger_snapshot(self, board: BoardConfig, dataset_id: str, source: str) -> str:
        limit = board.max_collect or self.DEFAULT_MAX_RECORDS
        params = {
            "dataset_id": dataset_id,
            "type": "discover_new",
            "discover_by": "keyword",
            "limit_per_input": limit,
            "include_errors": "true",
            "format": "json",
        }

        logger.info(
            f"Triggering Bright Data snapshot for {board.name}",
            extra={"event": "provider.snapshot.trigger", "provider": self.name, "board": board.name, "source": source, "limit": limit},
        )
        data = await self._request(
            f"{self.API_BASE_URL}/trigger",
            method="POST",
            headers={**self._auth_headers, "Content-Type": "application/json"},
            params=params,
            json_data=[self._build_input(board, source)],
        )

        snapshot_id = data.get("snapshot_id") if isinstance(data, dict) else None
        if not snapshot_id:
            raise ProviderResponseError(
                f"Bright Data trigger {board.name}: response has no snapshot_id", provider=self.name
            )
        return snapshot_id

    async def _poll_until_ready(self, snapshot_id: str, board: BoardConfig) -> None:
        """
        Raises:
            ProviderTimeoutError: If the snapshot is not ready within POLL_TIMEOUT
            ProviderResponseError: If the snapshot reports 'failed'
        """
        started = time.monotonic()
        interval = self.POLL_INITIAL_INTERVAL

        while True:
            elapsed = time.monotonic() - started
            if elapsed >= self.POLL_TIMEOUT:
                raise ProviderTimeoutError(
                    f"Bright Data snapshot {snapshot_id} timed out after {self.POLL_TIMEOUT:.0f}s "
                    f"for board '{board.name}'",
                    provider=self.name,
                )

            await asyncio.sleep(interval)

            data = await self._request(f"{self.API_BASE_URL}/progress/{snapshot_id}", headers=self._auth_headers)
            status = data.get("status") if isinstance(data, dict) else None
            logger.debug(
                f"Snapshot {snapshot_id} status: {status}",
                extra={"event": "provider.snapshot.poll", "provider": self.name, "board": board.name, "status": status},
            )

            if status == "ready":
                return
            if status == "failed":
                raise ProviderResponseError(
                    f"Bright Data snapshot {snapshot_id} failed for board '{board.name}'", provider=self.name
                )

            interval = min(interval + self.POLL_INITIAL_INTERVAL, self.POLL_MAX_INTERVAL)

    async def _download_snapshot(self, snapshot_id: str, board: BoardConfig) -> List[Dict[str, Any]]:
        data = await self._request(
            f"{self.API_BASE_URL}/snapshot/{snapshot_id}",
            headers=self._auth_headers,
            params={"format": "json"},
        )
        if not isinstance(data, list):
            logger.warning(
                f"Unexpected snapshot format: {type(data).__name__}",
                extra={"event": "provider.snapshot.unexpected", "provider": self.name, "board": board.name},
            )
            return []

        logger.info(
            f"Downloaded {len(data)} records for {board.name}",
            extra={"event": "provider.snapshot.downloaded", "provider": self.name, "board": board.name, "records": len(data)},
        )
        return data

    def _map_records(self, records: List[Dict[str, Any]], source: str, board: BoardConfig) -> List[RawPosting]:
        mappers = {
            "linkedin": self._map_linkedin,
            "indeed": self._map_indeed,
            "glassdoor": self._map_glassdoor,
        }
        mapper = mappers[source]
        return self._build_postings(records, lambda record: mapper(record, board), board)

    def _map_linkedin(self, job: Dict[str, Any], board: BoardConfig) -> RawPosting:
        location = job.get("job_location")
        compensation = job.get("job_base_pay_range")
        if not compensation and job.get("base_salary"):
            compensation = f"${job['base_salary']:,}"

        return RawPosting(
            external_id=job.get("job_posting_id") or job.get("apply_link") or job.get("url") or "",
            title=job["job_title"],
            company=job.get("company_name") or board.label or board.name,
            link=job.get("apply_link") or job.get("url") or "",
            description=job.get("job_description_formatted") or job.get("job_summary"),
            location=location,
            seniority=job.get("job_seniority_level"),
            compensation=compensation,
            remote_eligible=_remote_from_location(location),
            metadata={
                "source": "linkedin",
                "employment_type": job.get("job_employment_type"),
                "industries": job.get("job_industries"),
                "job_function": job.get("job_function"),
                "posted_date": job.get("job_posted_date"),
                "country_code": job.get("country_code"),
            },
        )

    def _map_indeed(self, job: Dict[str, Any], board: BoardConfig) -> RawPosting:
        return RawPosting(
            external_id=job.get("jobid") or job.get("url") or "",
            title=job["job_title"],
            company=job.get("company_name") or board.label or board.name,
            link=job.get("url") or "",
            description=job.get("description_text"),
            location=job.get("location"),
            compensation=job.get("salary"),
            metadata={
                "source": "indeed",
                "job_type": job.get("job_type"),
                "posted_date": job.get("date_posted_parsed"),
                "benefits": job.get("benefits"),
            },
        )

    def _map_glassdoor(self, job: Dict[str, Any], board: BoardConfig) -> RawPosting:
        return RawPosting(
            external_id=job.get("url") or "",
            title=job["job_title"],
            company=job.get("company_name") or board.label or board.name,
            link=job.get("url") or "",
            description=job.get("job_overview"),
            location=job.get("job_location"),
            metadata={"source": "glassdoor", "company_rating": job.get("company_rating")},
        )


def _remote_from_location(location: Optional[str]) -> Optional[bool]:
    if not location:
        return None
    lowered = location.lower()
    return True if "remote" in lowered or "anywhere" in lowered else None
