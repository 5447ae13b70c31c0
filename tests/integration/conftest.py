"""Integration test fixtures.

The local server is exercised in-process: a requests-style session adapter
forwards the dispatcher's POSTs to the Flask test client, so dispatches and
webhook callbacks go through the real endpoints without opening a socket.
"""

import json
from typing import Any, Optional
from urllib.parse import urlparse

import pytest
from flask import Flask
from flask.testing import FlaskClient

from providerloop_chains.automation.dispatch_log import DispatchLog
from providerloop_chains.automation.dispatcher import AutomationDispatcher
from providerloop_chains.config.schema import Config
from providerloop_chains.server.app import create_app
from providerloop_chains.server.config import ServerConfig


class TestClientResponse:
    """Subset of requests.Response backed by a Flask test response."""

    __test__ = False

    def __init__(self, response: Any) -> None:
        self.status_code = response.status_code
        self.text = response.get_data(as_text=True)
        self.ok = 200 <= self.status_code < 400
        self.reason = response.status.split(" ", 1)[-1]

    def json(self) -> Any:
        return json.loads(self.text)


class TestClientSession:
    """Subset of requests.Session that sends requests to a Flask test client."""

    __test__ = False

    def __init__(self, client: FlaskClient) -> None:
        self.client = client
        self.requests: list[dict[str, Any]] = []
        self.closed = False

    def post(
        self,
        url: str,
        json: Optional[Any] = None,
        headers: Optional[dict[str, str]] = None,
        timeout: Optional[Any] = None,
        **kwargs: Any,
    ) -> TestClientResponse:
        self.requests.append({"url": url, "json": json, "headers": dict(headers or {})})
        response = self.client.post(urlparse(url).path, json=json, headers=headers or {})
        return TestClientResponse(response)

    def close(self) -> None:
        self.closed = True


@pytest.fixture
def server_config() -> ServerConfig:
    return ServerConfig()


@pytest.fixture
def app(server_config: ServerConfig, dispatch_log: DispatchLog) -> Flask:
    """Server app sharing the dispatch log the dispatcher writes to."""
    app = create_app(server_config, dispatch_log)
    app.config["TESTING"] = True
    return app


@pytest.fixture
def client(app: Flask) -> FlaskClient:
    return app.test_client()


@pytest.fixture
def server_session(client: FlaskClient) -> TestClientSession:
    return TestClientSession(client)


@pytest.fixture
def session_for(dispatch_log: DispatchLog):
    """Return a factory for sessions talking to a server built from a ServerConfig."""

    def _session_for(server_config: ServerConfig) -> TestClientSession:
        return TestClientSession(create_app(server_config, dispatch_log).test_client())

    return _session_for


@pytest.fixture
def dispatcher(
    config: Config, server_session: TestClientSession, dispatch_log: DispatchLog
) -> AutomationDispatcher:
    return AutomationDispatcher(config, session=server_session, log=dispatch_log)
