"""Dispatch log CLI commands."""

import json as json_lib

import click

from providerloop_chains.automation.dispatch_log import DispatchLog, summarize
from providerloop_chains.cli.errors import exit_with_error
from providerloop_chains.models.dispatch import DispatchStatus
from providerloop_chains.utils.exceptions import ValidationError

_STATUS_COLORS = {
    DispatchStatus.SUCCEEDED: "green",
    DispatchStatus.FAILED: "red",
    DispatchStatus.PENDING: "yellow",
}


def _dispatch_log(ctx: click.Context) -> DispatchLog:
    return DispatchLog(ctx.obj["config"].storage.dispatch_log_path)


@click.group()
def logs() -> None:
    """Inspect the dispatch log."""
    pass


@logs.command("list")
@click.option("--limit", default=20, show_default=True, help="Number of most recent entries")
@click.option("--json", "json_output", is_flag=True, help="Output as JSON")
@click.pass_context
def list_logs(ctx: click.Context, limit: int, json_output: bool) -> None:
    """Show recent chain dispatches."""
    try:
        records = _dispatch_log(ctx).all()[-limit:]
    except ValidationError as e:
        exit_with_error(e)

    if json_output:
        click.echo(json_lib.dumps([r.to_dict() for r in records], indent=2))
        return
    if not records:
        click.echo("No dispatches recorded")
        return

    for record in reversed(records):
        status = click.style(record.status.value.upper(), fg=_STATUS_COLORS[record.status])
        line = f"{record.created_at}  {status}  {record.payload.chain_to_run}"
        if record.chain_run_id:
            line += f"  run={record.chain_run_id}"
        if record.is_completed:
            line += f"  agent={record.agent_name}"
        click.echo(line)
        if record.status is DispatchStatus.FAILED and record.error_message:
            click.echo(f"    {record.error_message}")


@logs.command("summary")
@click.pass_context
def summary(ctx: click.Context) -> None:
    """Summarize dispatch outcomes."""
    try:
        result = summarize(_dispatch_log(ctx).all())
    except ValidationError as e:
        exit_with_error(e)

    click.echo(f"Total dispatches: {result.total}")
    click.echo(f"  Succeeded:      {result.succeeded}")
    click.echo(f"  Failed:         {result.failed}")
    click.echo(f"  Pending:        {result.pending}")
    click.echo(f"  Success rate:   {result.success_rate:.0%}")
    click.echo(f"  Agent replies:  {result.completed}")
    click.echo(f"  Last 24 hours:  {result.last_24h}")
    if result.per_chain:
        click.echo("Per chain:")
        for chain, count in result.per_chain.items():
            click.echo(f"  {chain}: {count}")


@logs.command("clear")
@click.confirmation_option(prompt="Delete all dispatch records?")
@click.pass_context
def clear(ctx: click.Context) -> None:
    """Delete all dispatch records."""
    count = _dispatch_log(ctx).clear()
    click.echo(f"Deleted {count} dispatch record(s)")
