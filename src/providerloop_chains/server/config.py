"""Configuration for the local automation server."""

import json
import os
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, Field, ValidationError, field_validator

from providerloop_chains.utils.exceptions import ConfigurationError

ENV_PREFIX = "PROVIDERLOOP_SERVER_"
DEFAULT_SERVER_CONFIG_PATH = Path("config/server.json")


class ServerConfig(BaseModel):
    """Server configuration model.

    Configuration precedence:
    1. Environment variables (PROVIDERLOOP_SERVER_* prefix)
    2. JSON config file
    3. Default values

    Attributes:
        host: Bind address
        port: HTTP port
        chain_start_path: Path of the mock start-chain-run endpoint
        webhook_path: Path of the agent response webhook
        response_delay_ms: Artificial delay before answering chain starts
        failure_rate: Probability of answering a chain start with HTTP 500
        dispatch_log_path: Dispatch log the webhook updates
    """

    host: str = Field(default="127.0.0.1")
    port: int = Field(default=8080)
    chain_start_path: str = Field(default="/chains/start")
    webhook_path: str = Field(default="/webhook/agents")
    response_delay_ms: int = Field(default=0, ge=0, le=5000)
    failure_rate: float = Field(default=0.0, ge=0.0, le=1.0)
    dispatch_log_path: Path = Field(default=Path("data/dispatch-log.jsonl"))

    @field_validator("port")
    @classmethod
    def validate_port(cls, v: int) -> int:
        """Validate port number is in valid range."""
        if not 1 <= v <= 65535:
            raise ValueError(f"Invalid port {v}. Must be between 1 and 65535.")
        return v

    @field_validator("chain_start_path", "webhook_path")
    @classmethod
    def validate_path(cls, v: str) -> str:
        if not v.startswith("/"):
            raise ValueError(f"Endpoint path must start with '/': {v}")
        return v


_INT_FIELDS = {"port", "response_delay_ms"}
_FLOAT_FIELDS = {"failure_rate"}


def load_server_config(config_file: Optional[Path] = None) -> ServerConfig:
    """Load server configuration from file and environment variables.

    Args:
        config_file: JSON file; defaults to config/server.json if present

    Raises:
        ConfigurationError: If the file is missing (when given explicitly),
            malformed, or the values are invalid
    """
    path = config_file or DEFAULT_SERVER_CONFIG_PATH
    config_data: dict = {}
    if path.exists():
        try:
            with open(path, "r", encoding="utf-8") as f:
                config_data = json.load(f)
        except json.JSONDecodeError as e:
            raise ConfigurationError(
                f"Failed to parse server configuration '{path}': {e}. "
                f"Ensure the file contains valid JSON."
            ) from e
    elif config_file is not None:
        raise ConfigurationError(f"Server configuration file not found: '{path}'")

    for key in ServerConfig.model_fields:
        env_key = f"{ENV_PREFIX}{key.upper()}"
        if env_key not in os.environ:
            continue
        value: object = os.environ[env_key]
        try:
            if key in _INT_FIELDS:
                value = int(value)
            elif key in _FLOAT_FIELDS:
                value = float(value)
        except ValueError as e:
            raise ConfigurationError(f"Invalid value for {env_key}: '{value}'") from e
        config_data[key] = value

    try:
        return ServerConfig(**config_data)
    except ValidationError as e:
        raise ConfigurationError(f"Server configuration validation failed: {e}") from e
