"""
Shared pytest configuration and fixtures.

This module provides fixtures and configuration used across all test suites
(unit and integration tests).
"""

import json
import os
from pathlib import Path
from typing import Any, Callable, Optional
from unittest.mock import MagicMock

import pytest

from providerloop_chains.automation.dispatch_log import DispatchLog
from providerloop_chains.config.schema import (
    Config,
    EndpointsConfig,
    LoggingConfig,
    StorageConfig,
)

AUTOMATION_URL = "http://automation.test/chains/start"

# Smallest valid PNG (1x1 transparent pixel)
PNG_BYTES = bytes.fromhex(
    "89504e470d0a1a0a0000000d4948445200000001000000010806000000"
    "1f15c4890000000d49444154789c6360000002000154a24f5d0000000049454e44ae426082"
)


@pytest.fixture(autouse=True)
def isolated_environment(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """
    Run every test from an empty working directory with no overrides set.

    Config files, .env files, logs and data files are all resolved relative
    to the working directory, so each test starts clean.
    """
    monkeypatch.chdir(tmp_path)
    for name in list(os.environ):
        if name.startswith("PROVIDERLOOP_"):
            monkeypatch.delenv(name)
    monkeypatch.delenv("OPENAI_API_KEY", raising=False)
    monkeypatch.delenv("CARDSCAN_API_KEY", raising=False)
    return tmp_path


@pytest.fixture
def config(tmp_path: Path) -> Config:
    """
    Return a configuration whose files all live under tmp_path.

    Returns:
        Config: Configuration pointing at a fake automation endpoint.
    """
    return Config(
        endpoints=EndpointsConfig(automation_url=AUTOMATION_URL),
        storage=StorageConfig(
            dispatch_log_path=tmp_path / "data" / "dispatch-log.jsonl",
            custom_chains_path=tmp_path / "data" / "custom-chains.json",
        ),
        logging=LoggingConfig(log_file=tmp_path / "logs" / "test.log"),
    )


@pytest.fixture
def config_file(tmp_path: Path) -> Path:
    """
    Write a configuration file for CLI tests.

    Returns:
        Path: Path to the JSON configuration file.
    """
    path = tmp_path / "config" / "test-config.json"
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(
        json.dumps(
            {
                "endpoints": {"automation_url": AUTOMATION_URL},
                "automation": {"run_email": "ops@clinic.test"},
                "storage": {
                    "dispatch_log_path": str(tmp_path / "data" / "dispatch-log.jsonl"),
                    "custom_chains_path": str(tmp_path / "data" / "custom-chains.json"),
                },
                "logging": {"level": "INFO", "log_file": str(tmp_path / "logs" / "cli.log")},
            }
        )
    )
    return path


@pytest.fixture
def dispatch_log(config: Config) -> DispatchLog:
    """Return an empty dispatch log at the configured path."""
    return DispatchLog(config.storage.dispatch_log_path)


@pytest.fixture
def sample_image(tmp_path: Path) -> Path:
    """Write a tiny PNG image and return its path."""
    path = tmp_path / "uploads" / "license.png"
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(PNG_BYTES)
    return path


@pytest.fixture
def sample_audio(tmp_path: Path) -> Path:
    """Write a small placeholder recording and return its path."""
    path = tmp_path / "uploads" / "visit.webm"
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(b"\x1a\x45\xdf\xa3" + b"\x00" * 64)
    return path


@pytest.fixture
def make_response() -> Callable[..., MagicMock]:
    """
    Return a factory for requests-style response mocks.

    Example:
        >>> response = make_response(200, json_data={"ChainRun_ID": "run-1"})
    """

    def _make(
        status_code: int = 200,
        text: Optional[str] = None,
        json_data: Optional[Any] = None,
    ) -> MagicMock:
        response = MagicMock()
        response.status_code = status_code
        response.ok = 200 <= status_code < 400
        response.reason = "OK" if response.ok else "Error"
        if json_data is not None:
            response.json.return_value = json_data
            response.text = text if text is not None else json.dumps(json_data)
        else:
            response.json.side_effect = ValueError("No JSON object could be decoded")
            response.text = text or ""
        return response

    return _make
