"""Base adapter class with shared functionality for all provider adapters.

Adapters share one contract: ``await adapter.fetch_jobs()`` returns the
provider's postings as RawPosting models, raising ProviderError only when
the provider as a whole failed. HTTP goes through a blocking
``requests.Session`` that is driven from the event loop with
``asyncio.to_thread``.
"""

import asyncio
import logging
from abc import ABC, abstractmethod
from typing import Any, Awaitable, Callable, Dict, Iterable, List, Optional, Sequence

import requests

from jobhunter.config.models import BoardConfig
from jobhunter.domain.models import RawPosting
from jobhunter.logging import get_logger
from jobhunter.utils.concurrency import Outcome, gather_bounded

from .exceptions import (
    ProviderConfigurationError,
    ProviderError,
    ProviderHTTPError,
    ProviderResponseError,
    ProviderTimeoutError,
)

logger = get_logger(__name__, component="adapter")

BoardFetcher = Callable[[BoardConfig], Awaitable[List[RawPosting]]]


class BaseAdapter(ABC):
    """Base class for all provider adapters.

    Subclasses set PROVIDER_NAME and implement fetch_jobs(). Most implement
    fetch_jobs() as ``self._fetch_all_boards(self._fetch_board)`` so that one
    failing board never loses the results of its siblings.

    Attributes:
        boards: Sub-boards (company boards, searches, categories) to fetch
        timeout: HTTP request timeout in seconds
        user_agent: User-Agent header for HTTP requests
    """

    PROVIDER_NAME = ""

    def __init__(
        self,
        boards: Sequence[BoardConfig],
        timeout: int = 30,
        user_agent: str = "JobHunter/1.0",
    ) -> None:
        """
        Raises:
            ProviderConfigurationError: If timeout is outside 5-300 seconds or user_agent is empty
        """
        if not 5 <= timeout <= 300:
            raise ProviderConfigurationError(
                f"Timeout must be between 5 and 300 seconds, got: {timeout}",
                provider=self.PROVIDER_NAME,
            )
        if not user_agent or not user_agent.strip():
            raise ProviderConfigurationError("user_agent cannot be empty", provider=self.PROVIDER_NAME)

        self.boards = list(boards)
        self.timeout = timeout
        self.user_agent = user_agent.strip()

        self._session = requests.Session()
        self._session.headers.update({"User-Agent": self.user_agent})

    @property
    def name(self) -> str:
        return self.PROVIDER_NAME

    @abstractmethod
    async def fetch_jobs(self) -> List[RawPosting]:
        """Fetch postings from every configured board.

        Returns:
            Postings from all boards that succeeded

        Raises:
            ProviderError: If the provider could not produce any result
        """

    def close(self) -> None:
        self._session.close()

    # ------------------------------------------------------------------
    # HTTP
    # ------------------------------------------------------------------

    def _send(
        self,
        url: str,
        method: str = "GET",
        headers: Optional[Dict[str, str]] = None,
        params: Optional[Dict[str, Any]] = None,
        json_data: Any = None,
    ) -> requests.Response:
        """Send a request and map transport failures to provider errors.

        Raises:
            ProviderHTTPError: On a 4xx/5xx status or a connection failure
            ProviderTimeoutError: On request timeout
        """
        logger.debug(
            f"HTTP {method} request to {url}",
            extra={"event": "adapter.fetch.request", "provider": self.name, "method": method, "url": url},
        )

        try:
            response = self._session.request(
                method=method,
                url=url,
                headers=headers,
                params=params,
                json=json_data,
                timeout=self.timeout,
            )
        except requests.exceptions.Timeout as e:
            logger.warning(
                f"Request to {url} timed out after {self.timeout} seconds",
                extra={"event": "adapter.fetch.timeout", "provider": self.name, "url": url},
            )
            raise ProviderTimeoutError(
                f"Request to {url} timed out after {self.timeout} seconds",
                url=url,
                provider=self.name,
            ) from e
        except requests.exceptions.RequestException as e:
            logger.error(
                f"Request to {url} failed: {e}",
                extra={"event": "adapter.fetch.error", "provider": self.name, "error_type": type(e).__name__},
            )
            raise ProviderHTTPError(
                f"Request to {url} failed: {e}", status_code=0, url=url, provider=self.name
            ) from e

        if response.status_code >= 400:
            retryable = response.status_code >= 500 or response.status_code == 429
            logger.log(
                logging.WARNING if retryable else logging.ERROR,
                f"HTTP {response.status_code} error from {url}",
                extra={
                    "event": "adapter.fetch.retryable_error" if retryable else "adapter.fetch.error",
                    "provider": self.name,
                    "status_code": response.status_code,
                },
            )
            raise ProviderHTTPError(
                f"HTTP {response.status_code}: {response.reason}",
                status_code=response.status_code,
                url=url,
                provider=self.name,
            )

        return response

    def _make_request(
        self,
        url: str,
        method: str = "GET",
        headers: Optional[Dict[str, str]] = None,
        params: Optional[Dict[str, Any]] = None,
        json_data: Any = None,
    ) -> Any:
        """Send a request and return the parsed JSON body.

        Raises:
            ProviderHTTPError, ProviderTimeoutError: See _send()
            ProviderResponseError: If the body is not valid JSON
        """
        response = self._send(url, method=method, headers=headers, params=params, json_data=json_data)
        try:
            return response.json()
        except ValueError as e:
            logger.error(
                f"Failed to parse JSON response from {url}",
                extra={"event": "adapter.fetch.error", "provider": self.name, "error_type": "JSONDecodeError"},
            )
            raise ProviderResponseError(
                f"Failed to parse JSON response from {url}: {e}", provider=self.name
            ) from e

    async def _request(self, url: str, **kwargs: Any) -> Any:
        """Awaitable _make_request(); the blocking call runs in a worker thread."""
        return await asyncio.to_thread(self._make_request, url, **kwargs)

    async def _request_response(self, url: str, **kwargs: Any) -> requests.Response:
        """Awaitable _send(), for callers that need headers as well as the body."""
        return await asyncio.to_thread(self._send, url, **kwargs)

    # ------------------------------------------------------------------
    # Board fan-out
    # ------------------------------------------------------------------

    async def _fetch_all_boards(self, fetch_board: BoardFetcher, limit: Optional[int] = None) -> List[RawPosting]:
        """Fetch every board concurrently (at most ``limit`` at once) with per-board isolation."""
        if not self.boards:
            return []
        outcomes = await gather_bounded(fetch_board, self.boards, limit or len(self.boards))
        return self._merge_board_outcomes(outcomes)

    def _merge_board_outcomes(self, outcomes: Sequence[Outcome]) -> List[RawPosting]:
        """Flatten successful boards and log failed ones.

        Raises:
            ProviderError: If every board failed
        """
        postings: List[RawPosting] = []
        failures = []
        for outcome in outcomes:
            board = outcome.item
            if outcome.ok:
                postings.extend(outcome.value)
                continue
            failures.append(outcome)
            logger.error(
                f"Board {board.name} failed: {outcome.error}",
                extra={
                    "event": "provider.board.failed",
                    "provider": self.name,
                    "board": board.name,
                    "error_type": type(outcome.error).__name__,
                },
            )

        if failures and len(failures) == len(outcomes):
            first = failures[0].error
            raise ProviderError(
                f"All {len(failures)} {self.name} board(s) failed; first error: {first}",
                provider=self.name,
            ) from first

        logger.info(
            f"{self.name} fetch complete",
            extra={
                "event": "provider.fetch.completed",
                "provider": self.name,
                "total": len(postings),
                "boards": len(outcomes),
                "failed_boards": len(failures),
            },
        )
        return postings

    def _build_postings(
        self,
        items: Iterable[Dict[str, Any]],
        transform: Callable[[Dict[str, Any]], RawPosting],
        board: BoardConfig,
    ) -> List[RawPosting]:
        """Apply transform to each item, skipping (and logging) items that don't map."""
        postings = []
        for item in items:
            try:
                postings.append(transform(item))
            except (KeyError, TypeError, ValueError) as e:
                logger.warning(
                    f"Failed to transform {self.name} posting",
                    extra={
                        "event": "adapter.posting.skipped",
                        "provider": self.name,
                        "board": board.name,
                        "error": str(e),
                    },
                )
        return postings


def format_salary_range(minimum: Optional[float], maximum: Optional[float]) -> Optional[str]:
    """'120,000 – 150,000', 'From 120,000', 'Up to 150,000' or None."""
    if minimum and maximum:
        return f"{minimum:,.0f} – {maximum:,.0f}"
    if minimum:
        return f"From {minimum:,.0f}"
    if maximum:
        return f"Up to {maximum:,.0f}"
    return None
