"""Transport module.

Pooled HTTP sessions for the automation service and card-scanning API.
"""

from providerloop_chains.transport.http_client import (
    ConnectionPool,
    ConnectionPoolConfig,
    create_session_from_config,
    pool_config_from_transport,
)

__all__ = [
    "ConnectionPool",
    "ConnectionPoolConfig",
    "create_session_from_config",
    "pool_config_from_transport",
]
