"""Marks records that have not been re-observed recently as stale."""

from datetime import datetime, timedelta
from typing import Callable, ContextManager, Optional

from sqlalchemy.orm import Session

from jobhunter.logging import get_logger
from jobhunter.persistence import JobRepository, get_session
from jobhunter.utils.timestamps import ensure_utc, utc_now

logger = get_logger(__name__, component="staleness")


class StalenessSweeper:
    """Sets ``is_stale`` on every live record whose ``updated_at`` is older than the cutoff.

    The flag is one-way: later re-observations refresh ``updated_at`` but
    never clear it.
    """

    def __init__(
        self,
        stale_after_seconds: int,
        session_factory: Callable[[], ContextManager[Session]] = get_session,
    ):
        self.stale_after = timedelta(seconds=stale_after_seconds)
        self.session_factory = session_factory

    def sweep(self, now: Optional[datetime] = None) -> int:
        cutoff = (ensure_utc(now) or utc_now()) - self.stale_after
        with self.session_factory() as session:
            marked = JobRepository(session).mark_stale(cutoff)

        if marked:
            logger.info(
                f"Marked {marked} stale records",
                extra={"event": "staleness.sweep.completed", "marked": marked, "cutoff": cutoff.isoformat()},
            )
        return marked
