"""Non-fatal configuration checks."""

import warnings
from typing import List

from .models import PROVIDER_NAMES, AppConfig

# Providers whose boards are meaningless without these fields
_REQUIRED_BOARD_FIELDS = {
    "greenhouse": (),
    "ashby": (),
    "adzuna": ("keywords",),
    "remotive": (),
    "coresignal": ("keywords",),
    "brightdata": ("keywords",),
    "serpapi": ("keywords",),
}


def check_for_warnings(config: AppConfig) -> List[str]:
    """
    Check a validated configuration for likely mistakes.

    Args:
        config: Validated application configuration

    Returns:
        List of warning messages
    """
    messages = []

    for name in PROVIDER_NAMES:
        provider = config.providers.get(name)
        if provider.enabled and not provider.boards:
            messages.append(f"Provider '{name}' is enabled but has no boards and will fetch nothing")
        if not provider.enabled:
            continue
        for board in provider.boards:
            for field in _REQUIRED_BOARD_FIELDS[name]:
                if not getattr(board, field):
                    messages.append(f"Board '{board.name}' of provider '{name}' has no {field}")

    tiered = {name for tier in config.pipeline.tiers for name in tier}
    for name in config.providers.enabled_names():
        if name not in tiered:
            messages.append(f"Provider '{name}' is not assigned to a tier and will run last")

    if not config.filters.include_titles:
        messages.append("filters.include_titles is empty; every posting will fail the role filter")

    weights = config.scoring.weights
    for field in type(weights).model_fields:
        if getattr(weights, field) == 0:
            messages.append(f"Scoring weight '{field}' is zero and will not affect scores")

    return messages


def emit_warnings(warning_messages: List[str]) -> None:
    """Emit warning messages using Python's warnings module."""
    for message in warning_messages:
        warnings.warn(message, UserWarning, stacklevel=2)
