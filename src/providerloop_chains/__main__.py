"""Entry point for running providerloop_chains as a module.

This allows the package to be executed as:
    python -m providerloop_chains
"""

from providerloop_chains.cli.main import cli

if __name__ == "__main__":
    cli()
