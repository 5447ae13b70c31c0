"""Chain dispatch CLI commands.

This module provides commands that trigger automation chains, either for a
known patient or as a full patient intake from document and card images.
"""

import logging
from pathlib import Path
from typing import Optional

import click

from providerloop_chains.automation.chains import ChainRegistry
from providerloop_chains.automation.dispatcher import AutomationDispatcher
from providerloop_chains.automation.workflows import INTAKE_CHAIN, process_intake
from providerloop_chains.cli.errors import exit_with_error
from providerloop_chains.config.schema import Config
from providerloop_chains.extraction.oracle import VisionOracle
from providerloop_chains.models.dispatch import DispatchRecord, DispatchStatus
from providerloop_chains.reconciliation.source_id import derive_source_id, parse_source_id
from providerloop_chains.utils.exceptions import ProviderloopError, ValidationError

logger = logging.getLogger(__name__)


def resolve_chain(config: Config, chain: Optional[str]) -> str:
    """Validate a chain selection, falling back to the configured default."""
    registry = ChainRegistry(config.storage.custom_chains_path)
    return registry.resolve(chain or config.automation.default_chain)


def parse_variables(pairs: tuple[str, ...]) -> dict[str, str]:
    """Parse repeated KEY=VALUE options.

    Raises:
        click.BadParameter: If an entry has no '='
    """
    variables: dict[str, str] = {}
    for pair in pairs:
        key, sep, value = pair.partition("=")
        if not sep or not key.strip():
            raise click.BadParameter(f"Expected KEY=VALUE, got '{pair}'", param_hint="--var")
        variables[key.strip()] = value
    return variables


def echo_record(record: DispatchRecord) -> None:
    """Print the outcome of a dispatch and exit 1 if it failed."""
    if record.status is DispatchStatus.SUCCEEDED:
        click.secho(click.style("✓", bold=True) + " Chain triggered", fg="green")
        click.echo(f"  Chain:           {record.payload.chain_to_run}")
        click.echo(f"  Source ID:       {record.payload.source_id or '-'}")
        click.echo(f"  ChainRun_ID:     {record.chain_run_id or 'not returned'}")
        click.echo(f"  Idempotency key: {record.idempotency_key}")
        return

    click.secho(click.style("✗", bold=True) + " Chain trigger failed", fg="red", err=True)
    click.echo(f"  {record.error_message}", err=True)
    click.echo(
        f"  Retry with --idempotency-key {record.idempotency_key} to reuse this submission.",
        err=True,
    )
    raise click.exceptions.Exit(1)


@click.group()
def dispatch() -> None:
    """Trigger automation chains."""
    pass


@dispatch.command("trigger")
@click.option("--chain", help="Chain to run (default: configured default chain)")
@click.option("--source-id", help="Patient Source ID (LASTNAME_FIRSTNAME__MM_DD_YYYY)")
@click.option("--first", "first_name", help="Patient first name")
@click.option("--last", "last_name", help="Patient last name")
@click.option("--dob", help="Patient date of birth")
@click.option("--var", "variables", multiple=True, help="Starting variable KEY=VALUE (repeatable)")
@click.option("--input", "first_step_user_input", help="Input for the chain's first step")
@click.option("--idempotency-key", help="Key of an earlier submission to retry")
@click.pass_context
def trigger(
    ctx: click.Context,
    chain: Optional[str],
    source_id: Optional[str],
    first_name: Optional[str],
    last_name: Optional[str],
    dob: Optional[str],
    variables: tuple[str, ...],
    first_step_user_input: Optional[str],
    idempotency_key: Optional[str],
) -> None:
    """Trigger a chain run for one patient.

    Examples:

        providerloop-chains dispatch trigger --source-id Smith_John__01_15_1980

        providerloop-chains dispatch trigger --first John --last Smith --dob 01/15/1980 \\
            --chain "ATTACHMENT PROCESSING (SLEEP STUDY)" --var note="follow up"
    """
    config: Config = ctx.obj["config"]
    starting_variables = parse_variables(variables)

    try:
        chain_name = resolve_chain(config, chain)
        if source_id:
            identity = parse_source_id(source_id)
        else:
            source_id = derive_source_id(last_name, first_name, dob)
            if source_id is None:
                raise ValidationError(
                    "Provide --source-id, or all of --first, --last and --dob"
                )
            identity = parse_source_id(source_id)
        starting_variables.setdefault("first_name", identity.first_name or "")
        starting_variables.setdefault("last_name", identity.last_name or "")
        starting_variables.setdefault("date_of_birth", identity.date_of_birth or "")

        dispatcher = AutomationDispatcher(config)
        try:
            payload = dispatcher.payload_for(
                source_id, chain_name, starting_variables, first_step_user_input
            )
            record = dispatcher.dispatch(payload, idempotency_key)
        finally:
            dispatcher.session.close()
    except ProviderloopError as e:
        exit_with_error(e, source_id=source_id)

    echo_record(record)


@dispatch.command("intake")
@click.option(
    "--document",
    required=True,
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help="Photo of the patient's ID or document",
)
@click.option(
    "--insurance-front",
    required=True,
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help="Photo of the insurance card front",
)
@click.option(
    "--insurance-back",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help="Photo of the insurance card back",
)
@click.option("--chain", default=INTAKE_CHAIN, show_default=True, help="Chain to run")
@click.option("--idempotency-key", help="Key of an earlier submission to retry")
@click.pass_context
def intake(
    ctx: click.Context,
    document: Path,
    insurance_front: Path,
    insurance_back: Optional[Path],
    chain: str,
    idempotency_key: Optional[str],
) -> None:
    """Extract a patient intake from images and submit it."""
    config: Config = ctx.obj["config"]
    oracle = VisionOracle(config)

    try:
        chain_name = resolve_chain(config, chain)
        click.echo("Processing patient document...")
        document_result = oracle.extract_patient_document(document)
        click.echo("Processing insurance card front...")
        front = oracle.extract_insurance_card(insurance_front)
        back = None
        if insurance_back is not None:
            click.echo("Processing insurance card back...")
            back = oracle.extract_insurance_card(insurance_back)

        dispatcher = AutomationDispatcher(config)
        try:
            record = process_intake(
                document_result,
                front,
                dispatcher,
                insurance_back=back,
                chain=chain_name,
                idempotency_key=idempotency_key,
            )
        finally:
            dispatcher.session.close()
    except ProviderloopError as e:
        exit_with_error(e)

    echo_record(record)
