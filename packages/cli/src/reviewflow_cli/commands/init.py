"""init command: start tracking the current checkout for review.

Creates the review mirror (a hosted repository for git, a depot for
Perforce) so later `reviewflow review` runs only have to sync. Running it
on a checkout that is already tracked is harmless.
"""

from __future__ import annotations

import logging
import os

import click
from rich.console import Console

from reviewflow_cli.auth import build_hosting
from reviewflow_cli.output import configure_logging, fail
from reviewflow_core.config import PlatformConfig
from reviewflow_core.errors import ReviewError
from reviewflow_core.lifecycle import initialize, open_repository
from reviewflow_vcs.base import RepoError, RepoErrorKind

console = Console()
logger = logging.getLogger(__name__)


@click.command("init")
@click.option(
    "--directory",
    default=None,
    type=click.Path(exists=True, file_okay=False),
    help="Track a given directory.",
)
@click.option("--debug", is_flag=True, help="Display debug messages.")
@click.pass_context
def init_cmd(ctx, directory: str | None, debug: bool):
    """Track the current checkout for review."""
    configure_logging(debug)

    if directory:
        try:
            os.chdir(directory)
        except OSError as e:
            fail(e, debug)

    config = ctx.obj["config"] if ctx.obj else {}
    platform = PlatformConfig(config)

    try:
        repo = open_repository(".", git_hosting=build_hosting(config), review_remote=platform.review_remote())
        try:
            repo.assert_not_tracked()
        except RepoError as e:
            if e.kind is not RepoErrorKind.ALREADY_EXISTS:
                raise
            console.print(f"[yellow]Already tracked: {e}[/yellow]")
            return
        initialize(repo)
        owner, name = repo.owner_and_name_from_remote()
    except (ReviewError, RepoError, OSError) as e:
        fail(e, debug)

    console.print(f"[green]Tracking {owner}/{name} ({repo.vcs_type.value}) for review.[/green]")
    console.print("Run a review with: [bold]reviewflow review[/bold]")
