"""Audio transcription CLI command."""

import logging
from pathlib import Path
from typing import Optional

import click

from providerloop_chains.automation.dispatcher import AutomationDispatcher
from providerloop_chains.automation.workflows import process_transcript
from providerloop_chains.cli.dispatch_commands import echo_record, resolve_chain
from providerloop_chains.cli.errors import exit_with_error
from providerloop_chains.extraction.oracle import TranscriptionOracle
from providerloop_chains.utils.exceptions import ProviderloopError

logger = logging.getLogger(__name__)


@click.command()
@click.argument("audio", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("--dispatch", "dispatch_run", is_flag=True, help="Trigger a chain with the transcript")
@click.option("--chain", help="Chain to run (default: configured default chain)")
@click.option("--idempotency-key", help="Key of an earlier submission to retry")
@click.option("--json", "json_output", is_flag=True, help="Output the transcription as JSON")
@click.pass_context
def transcribe(
    ctx: click.Context,
    audio: Path,
    dispatch_run: bool,
    chain: Optional[str],
    idempotency_key: Optional[str],
    json_output: bool,
) -> None:
    """Transcribe a recording and identify the patient mentioned in it.

    Examples:

        providerloop-chains transcribe visit.webm

        providerloop-chains transcribe visit.webm --dispatch --chain "ATTACHMENT PROCESSING (LABS)"
    """
    config = ctx.obj["config"]

    try:
        result = TranscriptionOracle(config).transcribe(audio, is_final=True)
    except ProviderloopError as e:
        exit_with_error(e)

    if json_output:
        click.echo(result.model_dump_json(indent=2))
    else:
        click.echo(result.text)
        click.echo()
        info = result.patient_info
        if info and info.source_id:
            click.secho(f"Patient: {info.first_name} {info.last_name} ({info.date_of_birth})", fg="green")
            click.secho(f"Source ID: {info.source_id}", fg="green")
        else:
            click.secho("Patient not fully identified in transcript", fg="yellow")

    if not dispatch_run:
        return

    try:
        chain_name = resolve_chain(config, chain)
        dispatcher = AutomationDispatcher(config)
        try:
            record = process_transcript(
                result.text, chain_name, dispatcher, method="upload",
                idempotency_key=idempotency_key,
            )
        finally:
            dispatcher.session.close()
    except ProviderloopError as e:
        exit_with_error(e)

    echo_record(record)
