"""Context propagation for structured logging.

Fields pushed here are attached to every log record emitted inside the
scope. Storage is a ContextVar, so each asyncio task sees the context that
was active when it was created (a provider task keeps its own ``provider``
field while sibling tasks run).
"""

from contextlib import contextmanager
from contextvars import ContextVar, Token
from typing import Any, Dict, Iterator

_LOG_CONTEXT: ContextVar[Dict[str, Any]] = ContextVar("jobhunter_log_context", default={})


def get_log_context() -> Dict[str, Any]:
    """Return a copy of the active context fields."""
    return dict(_LOG_CONTEXT.get())


def push_log_context(**fields: Any) -> Token:
    """Merge fields into the active context; pass the token to pop_log_context()."""
    return _LOG_CONTEXT.set({**_LOG_CONTEXT.get(), **fields})


def pop_log_context(token: Token) -> None:
    """Restore the context that was active before the matching push."""
    _LOG_CONTEXT.reset(token)


def clear_log_context() -> None:
    """Drop all context fields (used by tests)."""
    _LOG_CONTEXT.set({})


@contextmanager
def log_context(**fields: Any) -> Iterator[Dict[str, Any]]:
    """Scope context fields to a block.

    Example:
        >>> with log_context(run_id="abc123", provider="greenhouse"):
        ...     logger.info("Fetching boards")
    """
    token = push_log_context(**fields)
    try:
        yield get_log_context()
    finally:
        pop_log_context(token)
