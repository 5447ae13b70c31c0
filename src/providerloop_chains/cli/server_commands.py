"""Local server CLI commands."""

import logging
from pathlib import Path
from typing import Optional

import click

from providerloop_chains.cli.errors import exit_with_error
from providerloop_chains.server.app import run_server
from providerloop_chains.server.config import load_server_config
from providerloop_chains.utils.exceptions import ConfigurationError

logger = logging.getLogger(__name__)


@click.group()
def server() -> None:
    """Run the local chain-start mock and agent webhook server."""
    pass


@server.command("start")
@click.option("--host", help="Bind address (default from server config)")
@click.option("--port", type=int, help="Port (default from server config)")
@click.option(
    "--server-config",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help="Server configuration JSON (default: config/server.json)",
)
@click.pass_context
def start(
    ctx: click.Context,
    host: Optional[str],
    port: Optional[int],
    server_config: Optional[Path],
) -> None:
    """Start the server in the foreground.

    The dispatch log defaults to the one in the main configuration, so agent
    responses are attached to records written by 'dispatch' commands.
    """
    try:
        config = load_server_config(server_config)
    except ConfigurationError as e:
        exit_with_error(e)

    if "dispatch_log_path" not in config.model_fields_set:
        config = config.model_copy(
            update={"dispatch_log_path": ctx.obj["config"].storage.dispatch_log_path}
        )

    click.echo(f"Starting server on http://{host or config.host}:{port or config.port}")
    run_server(host=host, port=port, config=config)
