"""Configuration loading.

A JSON file (or the built-in defaults when there is none) is merged with
PROVIDERLOOP_* environment variables and validated against config.schema.
API keys never live in the file; get_api_key reads them from the
environment or a .env file.
"""

import copy
import json
import logging
import os
from pathlib import Path
from typing import Any, Optional

from dotenv import load_dotenv
from pydantic import ValidationError

from providerloop_chains.config.defaults import DEFAULT_CONFIG, DEFAULT_CONFIG_PATH
from providerloop_chains.config.schema import Config
from providerloop_chains.utils.exceptions import ConfigurationError

logger = logging.getLogger(__name__)

ENV_PREFIX = "PROVIDERLOOP_"

# (environment suffix, config section, field, converter)
_ENV_OVERRIDES: list[tuple[str, str, str, Any]] = [
    ("AUTOMATION_URL", "endpoints", "automation_url", str),
    ("CARDSCAN_URL", "endpoints", "cardscan_url", str),
    ("VISION_MODEL", "openai", "vision_model", str),
    ("TRANSCRIPTION_MODEL", "openai", "transcription_model", str),
    ("RUN_EMAIL", "automation", "run_email", str),
    ("DEFAULT_CHAIN", "automation", "default_chain", str),
    ("DISPATCH_TIMEOUT", "automation", "timeout_seconds", int),
    ("VERIFY_TLS", "transport", "verify_tls", "bool"),
    ("TIMEOUT_CONNECT", "transport", "timeout_connect", int),
    ("TIMEOUT_READ", "transport", "timeout_read", int),
    ("MAX_RETRIES", "transport", "max_retries", int),
    ("DISPATCH_LOG_PATH", "storage", "dispatch_log_path", str),
    ("CUSTOM_CHAINS_PATH", "storage", "custom_chains_path", str),
    ("LOG_LEVEL", "logging", "level", str),
    ("LOG_FILE", "logging", "log_file", str),
    ("REDACT_PII", "logging", "redact_pii", "bool"),
]


def load_config(config_path: Optional[Path] = None) -> Config:
    """Load configuration from file and environment variables.

    Configuration is loaded with the following precedence (highest to lowest):
    1. CLI arguments (handled by caller)
    2. Environment variables (PROVIDERLOOP_* prefix)
    3. Configuration file (JSON)
    4. Default values

    Args:
        config_path: Path to configuration file. If None, uses ./config/config.json

    Returns:
        Validated Config instance

    Raises:
        ConfigurationError: If configuration is invalid or malformed

    Example:
        >>> config = load_config(Path("custom/config.json"))
        >>> config.endpoints.automation_url
    """
    load_dotenv()

    if config_path is None:
        config_path = Path(DEFAULT_CONFIG_PATH)

    config_dict = _load_config_file(config_path)
    config_dict = _apply_env_overrides(config_dict)
    _check_sensitive_values(config_dict)

    try:
        return Config(**config_dict)
    except ValidationError as e:
        raise ConfigurationError(
            f"Configuration validation failed:\n{e}\n\n"
            f"Fix: Check your configuration file at {config_path} and ensure all "
            f"values match the expected format."
        ) from e


def _load_config_file(config_path: Path) -> dict[str, Any]:
    """Read the JSON file, or a copy of DEFAULT_CONFIG when it does not exist."""
    if not config_path.exists():
        logger.info(f"No configuration file at {config_path}; using defaults")
        return copy.deepcopy(DEFAULT_CONFIG)

    try:
        text = config_path.read_text(encoding="utf-8")
    except OSError as e:
        raise ConfigurationError(
            f"Cannot read configuration file {config_path}: {e}. "
            f"Fix: Check the path and file permissions."
        ) from e

    try:
        config_dict = json.loads(text)
    except json.JSONDecodeError as e:
        raise ConfigurationError(
            f"Invalid JSON in configuration file {config_path}: {e.msg}. "
            f"Fix: Check the syntax at line {e.lineno}, column {e.colno}."
        ) from e

    if not isinstance(config_dict, dict):
        raise ConfigurationError(
            f"Configuration file {config_path} must contain a JSON object"
        )
    logger.info(f"Loaded configuration from {config_path}")
    return config_dict


def _apply_env_overrides(config_dict: dict[str, Any]) -> dict[str, Any]:
    """Overlay PROVIDERLOOP_<NAME> variables listed in _ENV_OVERRIDES.

    Empty variables are ignored.

    Raises:
        ConfigurationError: If a numeric override cannot be converted
    """
    for suffix, section, field_name, converter in _ENV_OVERRIDES:
        env_name = f"{ENV_PREFIX}{suffix}"
        raw = os.getenv(env_name)
        if not raw:
            continue

        if converter == "bool":
            value: Any = _parse_bool(raw)
        else:
            try:
                value = converter(raw)
            except ValueError as e:
                raise ConfigurationError(
                    f"Invalid value for {env_name}: '{raw}'. "
                    f"Fix: Use a valid {converter.__name__} value."
                ) from e

        config_dict.setdefault(section, {})[field_name] = value
        logger.debug(f"Override: {section}.{field_name} from environment")

    return config_dict


def _parse_bool(value: str) -> bool:
    return value.lower() in ("true", "1", "yes", "on")


def _check_sensitive_values(config_dict: dict[str, Any]) -> None:
    """Warn when an API key was written into the configuration file."""
    for section in ("openai", "cardscan"):
        if "api_key" in config_dict.get(section, {}):
            logger.warning(
                f"WARNING: API key found in '{section}' configuration section! "
                "Keys should be stored in environment variables, not config files. "
                f"Set '{section}.api_key_env_var' to the variable name instead."
            )


def get_api_key(env_var: str) -> str:
    """Read an API key from the environment.

    Args:
        env_var: Name of the environment variable

    Returns:
        API key value

    Raises:
        ConfigurationError: If the variable is unset or empty
    """
    load_dotenv()
    value = os.getenv(env_var, "").strip()
    if not value:
        raise ConfigurationError(
            f"API key not configured: environment variable {env_var} is not set. "
            f"Fix: export {env_var}=<key> or add it to .env"
        )
    return value
