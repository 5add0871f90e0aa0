"""Configuration management module for the record intake service."""

from .environment import EnvironmentConfig, load_environment_config
from .exceptions import ConfigurationError
from .loader import load_config, parse_app_config, validate_config_file
from .models import (
    AppConfig,
    CalculatorConfig,
    DeliveryConfig,
    LogFormat,
    LogLevel,
    LoggingConfig,
    RetryQueueConfig,
    SenderConfig,
)

__all__ = [
    # Main loader functions
    "load_config",
    "parse_app_config",
    "validate_config_file",
    "load_environment_config",
    # Configuration models
    "AppConfig",
    "DeliveryConfig",
    "SenderConfig",
    "RetryQueueConfig",
    "CalculatorConfig",
    "LoggingConfig",
    "EnvironmentConfig",
    # Enums
    "LogLevel",
    "LogFormat",
    # Exceptions
    "ConfigurationError",
]
