"""Error reporting shared by CLI commands."""

import logging
import sys
from typing import NoReturn, Optional

import click

from providerloop_chains.utils.exceptions import ErrorTier, create_error_info

logger = logging.getLogger(__name__)

_TIER_LABELS = {
    ErrorTier.INPUT_VALIDATION: "Invalid input",
    ErrorTier.REMOTE: "Service error",
    ErrorTier.PARSE: "Could not read result",
}


def exit_with_error(exception: Exception, source_id: Optional[str] = None) -> NoReturn:
    """Print a user-facing error with remediation and exit with code 1."""
    info = create_error_info(exception, source_id=source_id)
    click.secho(f"{_TIER_LABELS[info.tier]}: {info.message}", fg="red", err=True)
    click.echo(f"  {info.remediation}", err=True)
    if info.technical_details:
        logger.debug(info.technical_details)
    logger.error(f"{info.error_type}: {info.message}")
    sys.exit(1)
