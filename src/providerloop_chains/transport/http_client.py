"""Pooled HTTP sessions for the automation and card-scanning endpoints.

Automatic retries are off by default so that a chain trigger is never sent
twice without the user asking for it.
"""

import logging
from dataclasses import dataclass
from threading import Lock
from typing import Optional

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from providerloop_chains.config.schema import TransportConfig

logger = logging.getLogger(__name__)

# Retried on any method, POST included, when retries are enabled
RETRY_STATUSES = (429, 500, 502, 503, 504)


@dataclass
class ConnectionPoolConfig:
    """Settings for a pooled session.

    Attributes:
        max_connections: Connections kept per host
        pool_block: Block instead of opening extra connections when exhausted
        retry_count: Automatic retries; 0 sends every request exactly once
        backoff_factor: Exponential backoff between retries
        verify_tls: Verify server certificates
    """

    max_connections: int = 4
    pool_block: bool = True
    retry_count: int = 0
    backoff_factor: float = 0.3
    verify_tls: bool = True

    def __post_init__(self) -> None:
        if self.max_connections < 1:
            raise ValueError(f"max_connections must be >= 1, got {self.max_connections}")
        for name in ("retry_count", "backoff_factor"):
            if getattr(self, name) < 0:
                raise ValueError(f"{name} must be >= 0, got {getattr(self, name)}")


class ConnectionPool:
    """Holds one lazily created session; usable as a context manager.

    Example:
        >>> with ConnectionPool(ConnectionPoolConfig(verify_tls=False)) as pool:
        ...     response = pool.get_session().post(url, json=body, timeout=(10, 30))
    """

    def __init__(self, config: Optional[ConnectionPoolConfig] = None) -> None:
        self.config = config or ConnectionPoolConfig()
        self._session: Optional[requests.Session] = None
        self._lock = Lock()

    def get_session(self) -> requests.Session:
        with self._lock:
            if self._session is None:
                self._session = self._create_session()
            return self._session

    def _create_session(self) -> requests.Session:
        retry = Retry(
            total=self.config.retry_count,
            backoff_factor=self.config.backoff_factor,
            status_forcelist=RETRY_STATUSES,
            allowed_methods=None,
            raise_on_status=False,
        )
        adapter = HTTPAdapter(
            pool_connections=self.config.max_connections,
            pool_maxsize=self.config.max_connections,
            pool_block=self.config.pool_block,
            max_retries=retry,
        )

        session = requests.Session()
        session.mount("http://", adapter)
        session.mount("https://", adapter)
        session.verify = self.config.verify_tls
        logger.debug(
            f"Created HTTP session (pool={self.config.max_connections}, "
            f"retries={self.config.retry_count}, verify_tls={self.config.verify_tls})"
        )
        return session

    def close(self) -> None:
        """Close the session; the next get_session() opens a new one."""
        with self._lock:
            if self._session is not None:
                self._session.close()
                self._session = None

    def __enter__(self) -> "ConnectionPool":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()


def pool_config_from_transport(transport: TransportConfig) -> ConnectionPoolConfig:
    return ConnectionPoolConfig(
        retry_count=transport.max_retries,
        backoff_factor=transport.backoff_factor,
        verify_tls=transport.verify_tls,
    )


def create_session_from_config(transport: TransportConfig) -> requests.Session:
    """Create a pooled session from the transport section of the configuration.

    The caller owns the session and closes it.
    """
    return ConnectionPool(pool_config_from_transport(transport)).get_session()
