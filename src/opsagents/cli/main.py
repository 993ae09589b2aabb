"""CLI entrypoint for OpsAgents."""

import logging
from pathlib import Path

import click

from opsagents.cli.commands import agent, cleanup, config_group, deploy, status
from opsagents.cli.state import CliState
from opsagents.config.paths import cli_config_path
from opsagents.core.settings import get_settings

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR")


@click.group()
@click.option(
    "--config",
    "config_path",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="Configuration file to use instead of the user default.",
)
@click.option(
    "--log-level",
    type=click.Choice(LOG_LEVELS, case_sensitive=False),
    default=None,
    help="Log level for library output. Defaults to OPSAGENTS_LOG_LEVEL or INFO.",
)
@click.pass_context
def cli(ctx: click.Context, config_path: Path | None, log_level: str | None) -> None:
    """Deploy and manage the web application stack on AWS ECS.

    Args:
        ctx: Click context for the command invocation.
        config_path: Optional configuration file override.
        log_level: Optional log level override.
    """
    settings = get_settings()
    logging.basicConfig(
        level=(log_level or settings.log_level).upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    logging.getLogger("botocore").setLevel(logging.WARNING)
    ctx.obj = CliState(config_path=cli_config_path(config_path), settings=settings)


cli.add_command(deploy)
cli.add_command(cleanup)
cli.add_command(status)
cli.add_command(agent)
cli.add_command(config_group)


def main() -> None:
    """Run the CLI."""
    cli()
