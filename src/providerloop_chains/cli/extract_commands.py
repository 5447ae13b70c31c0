"""Image extraction CLI commands.

This module provides commands that send an image to the vision oracle or the
card-scanning API and print the normalized result.
"""

import logging
from pathlib import Path

import click
from pydantic import BaseModel

from providerloop_chains.cli.errors import exit_with_error
from providerloop_chains.extraction.cardscan import CardScanClient
from providerloop_chains.extraction.normalizers import to_identity
from providerloop_chains.extraction.oracle import VisionOracle
from providerloop_chains.models.extraction import SCREENSHOT_FIELDS
from providerloop_chains.utils.exceptions import ProviderloopError

logger = logging.getLogger(__name__)

IMAGE_ARGUMENT = click.argument("image", type=click.Path(exists=True, dir_okay=False, path_type=Path))
JSON_OPTION = click.option("--json", "json_output", is_flag=True, help="Output the result as JSON")


def _print_result(result: BaseModel, json_output: bool) -> None:
    if json_output:
        click.echo(result.model_dump_json(indent=2))
        return

    identity = to_identity(result)
    click.echo(f"First name:    {identity.first_name or '-'}")
    click.echo(f"Last name:     {identity.last_name or '-'}")
    click.echo(f"Date of birth: {identity.date_of_birth or '-'}")
    try:
        source_id = identity.source_id
    except ProviderloopError:
        source_id = None
    if source_id:
        click.secho(f"Source ID:     {source_id}", fg="green")
    else:
        click.secho("Source ID:     not available (incomplete identity)", fg="yellow")


@click.group()
def extract() -> None:
    """Extract patient and insurance data from images."""
    pass


@extract.command("document")
@IMAGE_ARGUMENT
@JSON_OPTION
@click.pass_context
def extract_document(ctx: click.Context, image: Path, json_output: bool) -> None:
    """Extract patient identity from an ID card or document image.

    Example:

        providerloop-chains extract document license.jpg
    """
    try:
        result = VisionOracle(ctx.obj["config"]).extract_patient_document(image)
    except ProviderloopError as e:
        exit_with_error(e)
    _print_result(result, json_output)
    if not json_output:
        click.echo(f"Address:       {result.address or '-'}")
        click.echo(f"Confidence:    {result.confidence:.0%}")


@extract.command("insurance")
@IMAGE_ARGUMENT
@JSON_OPTION
@click.pass_context
def extract_insurance(ctx: click.Context, image: Path, json_output: bool) -> None:
    """Extract insurance card fields from a card image."""
    try:
        result = VisionOracle(ctx.obj["config"]).extract_insurance_card(image)
    except ProviderloopError as e:
        exit_with_error(e)
    if json_output:
        click.echo(result.model_dump_json(indent=2))
        return
    click.echo(f"Insurer:    {result.insurer.name or '-'}")
    click.echo(f"Plan:       {result.insurer.plan_name or '-'}")
    click.echo(f"Member ID:  {result.member.member_id or '-'}")
    click.echo(f"Group:      {result.insurer.group_number or '-'}")
    click.echo(f"Subscriber: {result.member.subscriber_name or '-'}")
    click.echo(f"Card side:  {result.metadata.image_side}")
    click.echo(f"Confidence: {result.metadata.ocr_confidence.overall:.0%}")


@extract.command("epic")
@IMAGE_ARGUMENT
@JSON_OPTION
@click.pass_context
def extract_epic(ctx: click.Context, image: Path, json_output: bool) -> None:
    """Extract primary and secondary coverage from an Epic insurance screenshot."""
    try:
        result = VisionOracle(ctx.obj["config"]).extract_epic_insurance(image)
    except ProviderloopError as e:
        exit_with_error(e)
    if json_output:
        click.echo(result.model_dump_json(indent=2))
        return
    for label, coverage in (("Primary", result.primary), ("Secondary", result.secondary)):
        if coverage.is_empty:
            click.echo(f"{label}: none")
            continue
        click.echo(f"{label}: {coverage.payer} / {coverage.plan}")
        click.echo(f"  Subscriber: {coverage.subscriber_name} ({coverage.subscriber_id})")
        click.echo(f"  Group:      {coverage.group_number} {coverage.group_name}".rstrip())
    click.echo(f"Confidence: {result.metadata.extraction_confidence:.0%}")


@extract.command("screenshot")
@IMAGE_ARGUMENT
@click.option(
    "--type",
    "extraction_type",
    type=click.Choice(list(SCREENSHOT_FIELDS)),
    default="medical_system",
    show_default=True,
    help="Kind of screen captured",
)
@JSON_OPTION
@click.pass_context
def extract_screenshot(
    ctx: click.Context, image: Path, extraction_type: str, json_output: bool
) -> None:
    """Extract patient fields from a medical system screenshot."""
    try:
        result = VisionOracle(ctx.obj["config"]).extract_screenshot(image, extraction_type)
    except ProviderloopError as e:
        exit_with_error(e)
    if json_output:
        click.echo(result.model_dump_json(indent=2))
        return
    for name, value in result.fields.items():
        if value:
            click.echo(f"{name}: {value}")
    _print_result(result, json_output=False)


@extract.command("cardscan")
@IMAGE_ARGUMENT
@JSON_OPTION
@click.pass_context
def extract_cardscan(ctx: click.Context, image: Path, json_output: bool) -> None:
    """Scan an insurance card with the card-scanning API."""
    client = CardScanClient(ctx.obj["config"])
    try:
        result = client.scan_insurance_card(image)
    except ProviderloopError as e:
        exit_with_error(e)
    finally:
        client.session.close()
    if json_output:
        click.echo(result.model_dump_json(indent=2))
        return
    click.echo(f"Insurer:    {result.insurer.name or '-'}")
    click.echo(f"Member ID:  {result.member.member_id or '-'}")
    click.echo(f"Subscriber: {result.member.subscriber_name or '-'}")
    click.echo(f"Confidence: {result.metadata.ocr_confidence.overall:.0%}")
