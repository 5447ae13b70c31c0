"""Chain menu CLI commands."""

import click

from providerloop_chains.automation.chains import DEFAULT_CHAINS, ChainRegistry
from providerloop_chains.cli.errors import exit_with_error
from providerloop_chains.utils.exceptions import ProviderloopError


@click.group()
def chains() -> None:
    """List and add automation chains."""
    pass


@chains.command("list")
@click.pass_context
def list_chains(ctx: click.Context) -> None:
    """List selectable chains."""
    config = ctx.obj["config"]
    try:
        registry = ChainRegistry(config.storage.custom_chains_path)
    except ProviderloopError as e:
        exit_with_error(e)
    for name in registry.list_chains():
        marker = "" if name in DEFAULT_CHAINS else " (custom)"
        default = " [default]" if name == config.automation.default_chain else ""
        click.echo(f"{name}{marker}{default}")


@chains.command("add")
@click.argument("name")
@click.pass_context
def add_chain(ctx: click.Context, name: str) -> None:
    """Add a custom chain name."""
    try:
        registry = ChainRegistry(ctx.obj["config"].storage.custom_chains_path)
        added = registry.add(name)
    except ProviderloopError as e:
        exit_with_error(e)
    click.secho(f"Added chain: {added}", fg="green")
