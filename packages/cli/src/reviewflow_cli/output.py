"""Logging setup and error reporting shared by the commands."""

from __future__ import annotations

import logging
import sys

import click

logger = logging.getLogger(__name__)


def configure_logging(debug: bool) -> None:
    """Send log records to stderr; DEBUG only when asked for.

    stdout is reserved for the report so it can be piped.
    """
    log_level = logging.DEBUG if debug else logging.WARNING
    log_format = "%(asctime)s [%(levelname)-8s] %(name)s: %(message)s"
    logging.basicConfig(level=log_level, format=log_format, datefmt="%H:%M:%S", stream=sys.stderr, force=True)


def fail(error: BaseException, debug: bool) -> None:
    """Abort the command with one message; log the full chain first in debug mode."""
    if debug:
        logger.debug("Command failed", exc_info=error)
    raise click.ClickException(str(error)) from error
