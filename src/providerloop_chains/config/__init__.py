"""Config module.

This module provides configuration management functionality.
"""

from providerloop_chains.config.manager import get_api_key, load_config
from providerloop_chains.config.schema import (
    AutomationConfig,
    CardScanConfig,
    Config,
    EndpointsConfig,
    LoggingConfig,
    OpenAIConfig,
    StorageConfig,
    TransportConfig,
    UploadsConfig,
)

__all__ = [
    "load_config",
    "get_api_key",
    "Config",
    "EndpointsConfig",
    "OpenAIConfig",
    "CardScanConfig",
    "AutomationConfig",
    "TransportConfig",
    "UploadsConfig",
    "StorageConfig",
    "LoggingConfig",
]
