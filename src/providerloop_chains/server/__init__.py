"""Server module.

Flask application serving the mock chain-start endpoint and the agent webhook.
"""

from providerloop_chains.server.app import create_app, run_server
from providerloop_chains.server.config import ServerConfig, load_server_config

__all__ = ["create_app", "run_server", "ServerConfig", "load_server_config"]
