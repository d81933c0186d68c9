"""Exceptions raised by provider adapters."""

from typing import Optional


class ProviderError(Exception):
    """Base exception for a provider fetch that could not complete.

    The orchestrator catches this per provider: the provider contributes an
    error-annotated, zero-result entry to the run summary and the run goes on.
    """

    def __init__(self, message: str, provider: Optional[str] = None) -> None:
        super().__init__(message)
        self.provider = provider


class ProviderHTTPError(ProviderError):
    """HTTP request failed with a 4xx/5xx status, or could not be sent at all (status 0)."""

    def __init__(self, message: str, status_code: int, url: str, provider: Optional[str] = None) -> None:
        super().__init__(message, provider=provider)
        self.status_code = status_code
        self.url = url

    @property
    def is_retryable(self) -> bool:
        return self.status_code == 0 or self.status_code == 429 or self.status_code >= 500


class ProviderTimeoutError(ProviderError):
    """A request, or a remote job being polled, did not finish in time."""

    def __init__(self, message: str, url: Optional[str] = None, provider: Optional[str] = None) -> None:
        super().__init__(message, provider=provider)
        self.url = url


class ProviderResponseError(ProviderError):
    """The response arrived but could not be parsed, or reported an error/failed state."""


class ProviderConfigurationError(ProviderError):
    """Invalid adapter settings (bad timeout, missing credentials, unknown dataset)."""
