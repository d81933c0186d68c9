"""Configuration management module for Job Hunter."""

from .environment import EnvironmentConfig, load_environment_config
from .exceptions import ConfigurationError
from .loader import load_config, reload_config
from .models import (
    AdvancedConfig,
    AppConfig,
    BoardConfig,
    EmployerLocationConfig,
    FiltersConfig,
    LogFormat,
    LogLevel,
    LoggingConfig,
    NormalizationConfig,
    PipelineConfig,
    ProviderConfig,
    ProvidersConfig,
    ScheduleConfig,
    ScoringConfig,
    ScoringWeights,
    SerpApiConfig,
)

__all__ = [
    # Loader functions
    "load_config",
    "reload_config",
    "load_environment_config",
    # Configuration models
    "AppConfig",
    "BoardConfig",
    "ProviderConfig",
    "SerpApiConfig",
    "ProvidersConfig",
    "FiltersConfig",
    "NormalizationConfig",
    "ScoringConfig",
    "ScoringWeights",
    "EmployerLocationConfig",
    "ScheduleConfig",
    "PipelineConfig",
    "LoggingConfig",
    "AdvancedConfig",
    "EnvironmentConfig",
    # Enums
    "LogLevel",
    "LogFormat",
    # Exceptions
    "ConfigurationError",
]
