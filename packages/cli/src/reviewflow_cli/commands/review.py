"""review command: review the current checkout."""

from __future__ import annotations

import logging
import os

import click

from reviewflow_cli.auth import build_hosting
from reviewflow_cli.output import configure_logging, fail
from reviewflow_core.config import PlatformConfig
from reviewflow_core.errors import ReviewError
from reviewflow_core.report import FORMATS
from reviewflow_core.review import ReviewOptions, run_review
from reviewflow_core.service import HttpAnalysisService
from reviewflow_vcs.base import RepoError

logger = logging.getLogger(__name__)


def _build_service(platform: PlatformConfig, config: dict) -> HttpAnalysisService:
    """Build the analysis service client from the platform settings.

    Lives in the CLI so reviewflow_core only ever sees the AnalysisService
    interface.
    """
    return HttpAnalysisService(
        base_url=platform.service_url(),
        token=config.get("token"),
        timeout=platform.service_timeout(),
    )


@click.command("review")
@click.option(
    "--rules-file",
    "rules_path",
    default=None,
    help="A rules file to review with. If not set, .tenets.yml files are read from the checkout.",
)
@click.option("--output", default=None, help="File to save found issues to.")
@click.option(
    "--format",
    "fmt",
    type=click.Choice(FORMATS),
    default=None,
    help="How to format the found issues.  [default: json-pretty]",
)
@click.option("--interactive", is_flag=True, help="Be prompted to confirm each issue.")
@click.option(
    "--directory",
    default=None,
    type=click.Path(exists=True, file_okay=False),
    help="Review a given directory.",
)
@click.option("--debug", is_flag=True, help="Display debug messages.")
@click.pass_context
def review_cmd(
    ctx,
    rules_path: str | None,
    output: str | None,
    fmt: str | None,
    interactive: bool,
    directory: str | None,
    debug: bool,
):
    """Review the code in the current checkout.

    Syncs the checkout to the review platform, streams back the issues the
    analysis service finds and prints them as JSON.

    \b
    "$ reviewflow review" reviews all code from the checkout root down.
    "$ reviewflow review --interactive" asks before keeping each issue.
    """
    configure_logging(debug)
    logger.debug("review called")

    if directory:
        try:
            os.chdir(directory)
        except OSError as e:
            fail(e, debug)

    config = ctx.obj["config"] if ctx.obj else {}
    fmt = fmt or config.get("format") or "json-pretty"
    if fmt not in FORMATS:
        raise click.UsageError(f"Unknown format {fmt!r} in configuration. Choose one of: {', '.join(FORMATS)}.")

    options = ReviewOptions(interactive=interactive, output=output, fmt=fmt, rules_path=rules_path)
    platform = PlatformConfig(config)

    try:
        service = _build_service(platform, config)
        message = run_review(
            platform,
            service,
            options,
            git_hosting=build_hosting(config),
            logger=logger,
        )
    except (ReviewError, RepoError, OSError) as e:
        fail(e, debug)

    click.echo(message)
