"""Provider adapters for the job sources the pipeline ingests from.

One class per transport pattern, all implementing BaseAdapter.fetch_jobs():
- Greenhouse, Ashby: simple REST boards
- Adzuna: paginated search
- Remotive: rate-limited sequential categories
- Coresignal: two-step search/collect
- Bright Data: asynchronous trigger/poll/download
- SerpApi: adaptive-depth search

Use the factory to build the enabled providers:
    from jobhunter.adapters import build_providers
    adapters = build_providers(config, env)
    postings = await adapters[0].fetch_jobs()
"""

from .adzuna import AdzunaAdapter
from .ashby import AshbyAdapter
from .base import BaseAdapter
from .brightdata import BrightDataAdapter
from .coresignal import CoresignalAdapter
from .exceptions import (
    ProviderConfigurationError,
    ProviderError,
    ProviderHTTPError,
    ProviderResponseError,
    ProviderTimeoutError,
)
from .factory import build_providers
from .greenhouse import GreenhouseAdapter
from .remotive import RemotiveAdapter
from .serpapi import SerpApiAdapter, crawl_depth

__all__ = [
    # Base and factory
    "BaseAdapter",
    "build_providers",
    # Adapters
    "GreenhouseAdapter",
    "AshbyAdapter",
    "AdzunaAdapter",
    "RemotiveAdapter",
    "CoresignalAdapter",
    "BrightDataAdapter",
    "SerpApiAdapter",
    "crawl_depth",
    # Exceptions
    "ProviderError",
    "ProviderHTTPError",
    "ProviderTimeoutError",
    "ProviderResponseError",
    "ProviderConfigurationError",
]
