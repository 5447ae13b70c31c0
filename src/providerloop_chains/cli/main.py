"""Main CLI entry point for Providerloop Chains.

This module provides the main Click command group for the providerloop-chains CLI.
"""

from pathlib import Path
from typing import Optional

import click

from providerloop_chains import __version__
from providerloop_chains.cli.chains_commands import chains
from providerloop_chains.cli.dispatch_commands import dispatch
from providerloop_chains.cli.extract_commands import extract
from providerloop_chains.cli.logs_commands import logs
from providerloop_chains.cli.patient_commands import patient
from providerloop_chains.cli.server_commands import server
from providerloop_chains.cli.transcribe_commands import transcribe
from providerloop_chains.config import load_config
from providerloop_chains.logging_audit import configure_logging
from providerloop_chains.utils.exceptions import ConfigurationError


@click.group()
@click.version_option(version=__version__, prog_name="providerloop-chains")
@click.option(
    "--config",
    type=click.Path(exists=True, path_type=Path),
    default=None,
    help="Path to configuration file (default: ./config/config.json)",
)
@click.option("--verbose", is_flag=True, help="Enable verbose logging (DEBUG level)")
@click.option(
    "--log-file",
    type=click.Path(path_type=Path),
    default=None,
    help="Path to log file (overrides config file)",
)
@click.option(
    "--redact-pii/--no-redact-pii",
    default=None,
    help="Redact patient names, dates of birth and Source IDs from logs",
)
@click.pass_context
def cli(
    ctx: click.Context,
    config: Optional[Path],
    verbose: bool,
    log_file: Optional[Path],
    redact_pii: Optional[bool],
) -> None:
    """Providerloop Chains - patient capture and automation chain trigger.

    Extracts patient identity from documents, insurance cards, screenshots and
    recordings, derives the patient's Source ID, and triggers automation chains.

    Common usage:

        # Find the patient in a transcript
        providerloop-chains patient parse "Patient is John Smith, born 01/15/1980"

        # Transcribe a visit recording and trigger a chain
        providerloop-chains transcribe visit.webm --dispatch

        # Trigger a chain for a known patient
        providerloop-chains dispatch trigger --source-id Smith_John__01_15_1980

        # Enable verbose logging for debugging
        providerloop-chains --verbose logs summary

    Use --help with any command for more information.
    """
    ctx.ensure_object(dict)

    try:
        config_obj = load_config(config)
        ctx.obj["config"] = config_obj
    except ConfigurationError as e:
        click.echo(f"Error loading configuration: {e}", err=True)
        ctx.exit(1)

    ctx.obj["verbose"] = verbose
    ctx.obj["log_file"] = log_file

    # Precedence: CLI flags > config file > defaults
    log_level = "DEBUG" if verbose else config_obj.logging.level
    log_file_path = log_file if log_file else config_obj.logging.log_file
    redact_pii_setting = config_obj.logging.redact_pii if redact_pii is None else redact_pii
    ctx.obj["redact_pii"] = redact_pii_setting

    configure_logging(
        level=log_level, log_file=log_file_path, redact_pii=redact_pii_setting
    )


cli.add_command(extract)
cli.add_command(transcribe)
cli.add_command(patient)
cli.add_command(dispatch)
cli.add_command(chains)
cli.add_command(logs)
cli.add_command(server)


@cli.group()
def config() -> None:
    """Configuration management commands."""
    pass


@config.command()
@click.argument("config_file", type=click.Path(exists=True, path_type=Path))
def validate(config_file: Path) -> None:
    """Validate a configuration file.

    Example:
        providerloop-chains config validate config/config.json
    """
    try:
        config_obj = load_config(config_file)

        click.echo(click.style("✓", fg="green", bold=True) + " Configuration is valid")
        click.echo(f"\nConfiguration file: {config_file}")
        click.echo("\nEndpoints:")
        click.echo(f"  Automation URL: {config_obj.endpoints.automation_url}")
        click.echo(f"  Card scan URL:  {config_obj.endpoints.cardscan_url}")

        click.echo("\nAutomation:")
        click.echo(f"  Run email:      {config_obj.automation.run_email}")
        click.echo(f"  Default chain:  {config_obj.automation.default_chain}")
        click.echo(f"  Timeout:        {config_obj.automation.timeout_seconds}s")

        click.echo("\nOpenAI:")
        click.echo(f"  Vision model:   {config_obj.openai.vision_model}")
        click.echo(f"  Speech model:   {config_obj.openai.transcription_model}")
        click.echo(f"  API key var:    {config_obj.openai.api_key_env_var}")

        click.echo("\nTransport:")
        click.echo(f"  Verify TLS:     {config_obj.transport.verify_tls}")
        click.echo(f"  Retries:        {config_obj.transport.max_retries}")

        click.echo("\nLogging:")
        click.echo(f"  Level:          {config_obj.logging.level}")
        click.echo(f"  Log file:       {config_obj.logging.log_file}")
        click.echo(f"  Redact PII:     {config_obj.logging.redact_pii}")

    except ConfigurationError as e:
        click.echo(click.style("✗", fg="red", bold=True) + " Configuration validation failed")
        click.echo(f"\n{e}", err=True)
        raise click.exceptions.Exit(1)


cli.add_command(config)


@cli.command()
def version() -> None:
    """Display version information."""
    click.echo(f"providerloop-chains version {__version__}")


if __name__ == "__main__":
    cli()
