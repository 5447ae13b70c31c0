"""Patient identity CLI commands.

This module provides commands for recognizing patients in text, deriving
Source IDs, and adding Source IDs to a roster CSV.
"""

import json as json_lib
import logging
from dataclasses import asdict
from pathlib import Path
from typing import Optional

import click

from providerloop_chains.cli.errors import exit_with_error
from providerloop_chains.reconciliation.roster import parse_roster
from providerloop_chains.reconciliation.source_id import derive_source_id
from providerloop_chains.reconciliation.transcript import extract_patient_info
from providerloop_chains.utils.exceptions import IncompleteIdentityError, ValidationError

logger = logging.getLogger(__name__)


@click.group()
def patient() -> None:
    """Patient identity and Source ID commands."""
    pass


@patient.command("parse")
@click.argument("text", required=False)
@click.option(
    "--file",
    "text_file",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help="Read the transcript from a file",
)
@click.option("--json", "json_output", is_flag=True, help="Output as JSON")
def parse_text(text: Optional[str], text_file: Optional[Path], json_output: bool) -> None:
    """Find a patient's name and date of birth in transcript text.

    Example:

        providerloop-chains patient parse "Patient is John Smith, born 01/15/1980"
    """
    if text_file is not None:
        text = text_file.read_text(encoding="utf-8")
    if not text:
        raise click.UsageError("Provide TEXT or --file")

    info = extract_patient_info(text)
    if json_output:
        click.echo(json_lib.dumps(asdict(info), indent=2))
        return

    click.echo(f"First name:    {info.first_name or '-'}")
    click.echo(f"Last name:     {info.last_name or '-'}")
    click.echo(f"Date of birth: {info.date_of_birth or '-'}")
    if info.source_id:
        click.secho(f"Source ID:     {info.source_id}", fg="green")
    else:
        missing = info.to_identity().missing_fields
        click.secho(f"Source ID:     not available (missing {', '.join(missing)})", fg="yellow")


@patient.command("source-id")
@click.option("--first", "first_name", required=True, help="First name")
@click.option("--last", "last_name", required=True, help="Last name")
@click.option("--dob", required=True, help="Date of birth (MM/DD/YYYY, 'March 15, 1980', ...)")
def source_id(first_name: str, last_name: str, dob: str) -> None:
    """Derive the Source ID for a patient.

    Example:

        providerloop-chains patient source-id --first John --last Smith --dob 1/15/80
    """
    try:
        result = derive_source_id(last_name, first_name, dob)
        if result is None:
            raise IncompleteIdentityError(
                "First name, last name and date of birth are all required",
                missing_fields=[
                    name
                    for name, value in (("first_name", first_name), ("last_name", last_name), ("date_of_birth", dob))
                    if not value.strip()
                ],
            )
    except (ValidationError, IncompleteIdentityError) as e:
        exit_with_error(e)
    click.echo(result)


@patient.command("roster")
@click.argument("csv_file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option(
    "--output",
    type=click.Path(dir_okay=False, path_type=Path),
    help="Write the roster with source_id column to this CSV",
)
def roster(csv_file: Path, output: Optional[Path]) -> None:
    """Derive Source IDs for every patient in a roster CSV.

    The CSV needs first_name, last_name and dob columns.
    """
    try:
        df, issues = parse_roster(csv_file)
    except ValidationError as e:
        exit_with_error(e)

    if output is not None:
        df.to_csv(output, index=False)
        click.echo(f"Wrote {len(df)} row(s) to {output}")
    else:
        for _, row in df.iterrows():
            click.echo(row["source_id"] or click.style("(incomplete)", fg="yellow"))

    if issues:
        click.secho(f"\n{len(issues)} issue(s):", fg="yellow", err=True)
        for issue in issues:
            click.echo(f"  Row {issue.row_number} [{issue.column_name}]: {issue.message}", err=True)
