"""CLI entry point for reviewflow.

Commands:
  review   Review the current checkout and print the confirmed issues
  init     Start tracking the current checkout for review
"""

from __future__ import annotations

import click

from reviewflow_cli.commands.init import init_cmd
from reviewflow_cli.commands.review import review_cmd
from reviewflow_core.config import DEFAULT_CONFIG_PATH


@click.group()
@click.version_option(package_name="reviewflow", prog_name="reviewflow")
@click.option(
    "--config",
    "config_path",
    default=DEFAULT_CONFIG_PATH,
    show_default=True,
    help="Path to the platform configuration file.",
    envvar="REVIEWFLOW_CONFIG",
)
@click.pass_context
def main(ctx: click.Context, config_path: str):
    """Review local checkouts against your team's rules."""
    from reviewflow_core.config import load_config
    from reviewflow_core.errors import ConfigError
    from reviewflow_cli.auth import resolve_token

    ctx.ensure_object(dict)

    try:
        config = load_config(config_path)
    except ConfigError as e:
        raise click.UsageError(str(e))

    # Resolve the token once so every subcommand shares the same credentials.
    token = resolve_token(config.get("git_remote_name"))
    if token:
        config["token"] = token

    ctx.obj["config"] = config


main.add_command(review_cmd)
main.add_command(init_cmd)
