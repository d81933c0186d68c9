"""Factory functions for instantiating provider adapters."""

from datetime import datetime
from typing import Dict, List, Optional
from zoneinfo import ZoneInfo

from jobhunter.config.environment import EnvironmentConfig
from jobhunter.config.models import AppConfig
from jobhunter.logging import get_logger
from jobhunter.utils.timestamps import utc_now

from .adzuna import AdzunaAdapter
from .ashby import AshbyAdapter
from .base import BaseAdapter
from .brightdata import BrightDataAdapter
from .coresignal import CoresignalAdapter
from .exceptions import ProviderConfigurationError
from .greenhouse import GreenhouseAdapter
from .remotive import RemotiveAdapter
from .serpapi import ExistingChecker, SerpApiAdapter, UsageChecker, crawl_depth

logger = get_logger(__name__, component="adapter")


def _credentials(name: str, env: EnvironmentConfig) -> Optional[Dict[str, str]]:
    """Constructor keyword arguments carrying the provider's credentials, or None if missing."""
    if name in ("greenhouse", "ashby", "remotive"):
        return {}
    if name == "adzuna":
        if env.adzuna_app_id and env.adzuna_app_key:
            return {"app_id": env.adzuna_app_id, "app_key": env.adzuna_app_key}
        return None
    if name == "coresignal":
        return {"api_key": env.coresignal_api_key} if env.coresignal_api_key else None
    if name == "brightdata":
        return {"api_token": env.brightdata_api_token} if env.brightdata_api_token else None
    if name == "serpapi":
        return {"api_key": env.serpapi_api_key} if env.serpapi_api_key else None
    raise ProviderConfigurationError(f"Unknown provider: {name}")


ADAPTER_CLASSES = {
    "greenhouse": GreenhouseAdapter,
    "ashby": AshbyAdapter,
    "adzuna": AdzunaAdapter,
    "remotive": RemotiveAdapter,
    "coresignal": CoresignalAdapter,
    "brightdata": BrightDataAdapter,
    "serpapi": SerpApiAdapter,
}


def build_providers(
    config: AppConfig,
    env: EnvironmentConfig,
    existing_checker: Optional[ExistingChecker] = None,
    usage_checker: Optional[UsageChecker] = None,
    now: Optional[datetime] = None,
) -> List[BaseAdapter]:
    """Instantiate every enabled provider that has boards and credentials.

    Providers that are enabled but cannot run (no boards, missing
    credentials, rejected settings) are skipped with a warning so that one
    misconfigured provider never prevents the others from running.

    Args:
        config: Application configuration
        env: Environment credentials
        existing_checker: SerpApi newness gate; counts stored IDs among those given
        usage_checker: SerpApi budget check; this month's serpapi run count
        now: Clock override for the time-of-day crawl depth

    Returns:
        Adapters in provider-name order
    """
    adapters: List[BaseAdapter] = []

    for name in config.providers.enabled_names():
        provider_config = config.providers.get(name)
        if not provider_config.boards:
            logger.warning(
                f"Provider {name} is enabled but has no boards, skipping",
                extra={"event": "provider.skipped", "provider": name, "reason": "no_boards"},
            )
            continue

        kwargs = _credentials(name, env)
        if kwargs is None:
            logger.warning(
                f"Provider {name} is enabled but its credentials are not set, skipping",
                extra={"event": "provider.skipped", "provider": name, "reason": "missing_credentials"},
            )
            continue

        if name == "serpapi":
            local_hour = (now or utc_now()).astimezone(ZoneInfo(config.schedule.timezone)).hour
            kwargs.update(
                settings=config.providers.serpapi,
                max_depth=crawl_depth(local_hour),
                existing_checker=existing_checker,
                usage_checker=usage_checker,
            )

        try:
            adapter = ADAPTER_CLASSES[name](
                provider_config.boards,
                timeout=config.advanced.http_request_timeout,
                user_agent=config.advanced.user_agent,
                **kwargs,
            )
        except ProviderConfigurationError as e:
            logger.warning(
                f"Failed to create {name} adapter: {e}",
                extra={"event": "provider.skipped", "provider": name, "reason": "configuration"},
            )
            continue

        logger.debug(
            f"Created {type(adapter).__name__} with {len(provider_config.boards)} board(s)",
            extra={"event": "provider.created", "provider": name},
        )
        adapters.append(adapter)

    return adapters
