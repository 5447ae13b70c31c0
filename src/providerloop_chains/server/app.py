"""Flask application for the local automation server.

Two endpoints are served:

* a mock start-chain-run endpoint that answers like the automation service,
  for exercising dispatch without the real service
* the agent webhook the automation service calls when an agent finishes a
  chain run; it attaches the agent's response to the matching dispatch record
"""

import logging
import random
import time
import uuid
from datetime import datetime, timezone
from threading import Lock
from typing import Any, Optional

from flask import Flask, jsonify, request

from providerloop_chains import __version__
from providerloop_chains.automation.dispatch_log import DispatchLog
from providerloop_chains.logging_audit.audit import log_audit_event
from providerloop_chains.server.config import ServerConfig, load_server_config

logger = logging.getLogger(__name__)

CHAIN_RUN_ID_KEYS = ("chainRunId", "ChainRunId", "chainrun_id", "chain_run_id", "Chain Run ID")
CONTENT_KEYS = ("agentResponse", "summ", "response", "content", "message")
AGENT_NAME_KEYS = ("agentName", "agent_name", "name")
TIMESTAMP_KEYS = ("timestamp", "Current ISO DateTime", "datetime", "time")
DEFAULT_AGENT_NAME = "Agents System"
NO_CONTENT = "Webhook received (no response content)"

REQUIRED_CHAIN_FIELDS = ("run_email", "chain_to_run")


def _first_value(payload: dict[str, Any], keys: tuple[str, ...]) -> Optional[Any]:
    for key in keys:
        value = payload.get(key)
        if value not in (None, ""):
            return value
    return None


def create_app(
    config: Optional[ServerConfig] = None,
    dispatch_log: Optional[DispatchLog] = None,
) -> Flask:
    """Create the Flask application.

    Args:
        config: Server configuration (defaults to ServerConfig())
        dispatch_log: Log the webhook updates (defaults to config.dispatch_log_path)

    Example:
        >>> app = create_app(ServerConfig(), DispatchLog(Path("data/dispatch-log.jsonl")))
        >>> client = app.test_client()
        >>> client.get("/health").status_code
        200
    """
    config = config or ServerConfig()
    dispatch_log = dispatch_log if dispatch_log is not None else DispatchLog(config.dispatch_log_path)

    app = Flask(__name__)
    app.config["SERVER_CONFIG"] = config
    app.config["DISPATCH_LOG"] = dispatch_log

    state: dict[str, Any] = {
        "start_time": datetime.now(timezone.utc),
        "request_count": 0,
        "runs_by_key": {},
    }
    lock = Lock()

    @app.before_request
    def log_request():
        """Log all incoming requests."""
        with lock:
            state["request_count"] += 1
            count = state["request_count"]
        logger.info(
            f"Request #{count}: {request.method} {request.path} "
            f"(Content-Length: {request.content_length or 0})"
        )

    @app.route("/health", methods=["GET"])
    def health_check():
        """Report server status, endpoints and uptime."""
        uptime_seconds = int((datetime.now(timezone.utc) - state["start_time"]).total_seconds())
        return jsonify(
            {
                "status": "healthy",
                "version": __version__,
                "port": config.port,
                "endpoints": ["/health", config.chain_start_path, config.webhook_path],
                "uptime_seconds": uptime_seconds,
                "request_count": state["request_count"],
                "timestamp": datetime.now(timezone.utc).isoformat(),
            }
        ), 200

    @app.route(config.chain_start_path, methods=["POST"])
    def start_chain_run():
        """Accept a chain-trigger payload and answer with a ChainRun_ID.

        The same Idempotency-Key always receives the same ChainRun_ID.
        """
        payload = request.get_json(silent=True)
        if not isinstance(payload, dict):
            return jsonify({"error": "Request body must be a JSON object"}), 400

        missing = [name for name in REQUIRED_CHAIN_FIELDS if not str(payload.get(name) or "").strip()]
        if missing:
            return jsonify({"error": f"Missing required field(s): {', '.join(missing)}"}), 400

        if config.response_delay_ms:
            time.sleep(config.response_delay_ms / 1000.0)

        if config.failure_rate and random.random() < config.failure_rate:
            logger.warning("Simulated chain start failure")
            return jsonify({"error": "Simulated failure starting chain run"}), 500

        variables = payload.get("starting_variables")
        key = request.headers.get("Idempotency-Key") or (
            variables.get("idempotency_key") if isinstance(variables, dict) else None
        )
        with lock:
            run_id = state["runs_by_key"].get(key) if key else None
            if run_id is None:
                run_id = f"run-{uuid.uuid4().hex[:12]}"
                if key:
                    state["runs_by_key"][key] = run_id

        logger.info(f"Started chain '{payload['chain_to_run']}' as {run_id}")
        return jsonify(
            {
                "ChainRun_ID": run_id,
                "chain_to_run": payload["chain_to_run"],
                "source_id": payload.get("source_id", ""),
                "status": "started",
            }
        ), 200

    @app.route(config.webhook_path, methods=["POST"])
    def agent_webhook():
        """Attach an agent's response to the dispatch record for its chain run."""
        payload = request.get_json(silent=True)
        if not isinstance(payload, dict):
            payload = request.form.to_dict() if request.form else {}

        chain_run_id = _first_value(payload, CHAIN_RUN_ID_KEYS)
        if not chain_run_id:
            return jsonify(
                {
                    "error": "chainRunId is required",
                    "details": f"Provide one of: {', '.join(CHAIN_RUN_ID_KEYS)}",
                    "receivedKeys": list(payload),
                }
            ), 400

        chain_run_id = str(chain_run_id)
        content = _first_value(payload, CONTENT_KEYS) or NO_CONTENT
        agent_name = str(_first_value(payload, AGENT_NAME_KEYS) or DEFAULT_AGENT_NAME)

        record = dispatch_log.apply_agent_response(chain_run_id, str(content), agent_name, payload)
        if record is None:
            return jsonify(
                {
                    "error": "No automation found with the provided chainRunId",
                    "chainRunId": chain_run_id,
                }
            ), 404

        log_audit_event(
            "AGENT_RESPONSE_RECEIVED",
            {"status": "success", "chain_run_id": chain_run_id, "agent_name": agent_name},
        )
        response: dict[str, Any] = {
            "message": "Agent response processed successfully",
            "chainRunId": chain_run_id,
            "status": "success",
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "receivedFields": list(payload),
        }
        for field_name, value in payload.items():
            response.setdefault(field_name.replace(" ", "_").lower(), value)
        return jsonify(response), 200

    return app


def run_server(
    host: Optional[str] = None,
    port: Optional[int] = None,
    config: Optional[ServerConfig] = None,
    debug: bool = False,
) -> None:
    """Run the server until interrupted.

    Args:
        host: Bind address (overrides config)
        port: Port number (overrides config)
        config: Server configuration (loaded from file/environment if omitted)
        debug: Enable Flask debug mode
    """
    config = config or load_server_config()
    updates = {k: v for k, v in (("host", host), ("port", port)) if v is not None}
    if updates:
        config = config.model_copy(update=updates)

    app = create_app(config)
    logger.info(f"Starting Providerloop Chains server on http://{config.host}:{config.port}")
    logger.info(f"Chain start endpoint: {config.chain_start_path}")
    logger.info(f"Agent webhook endpoint: {config.webhook_path}")

    app.run(host=config.host, port=config.port, debug=debug, use_reloader=False)
