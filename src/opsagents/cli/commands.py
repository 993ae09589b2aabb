"""CLI commands for deploying and managing the ECS stack."""

import json

import click
from botocore.exceptions import BotoCoreError, ClientError

from opsagents.cli.configuration.models import CliConfig
from opsagents.cli.configuration.store import ConfigError, remember_efs_volume, save_config
from opsagents.cli.env import load_env_values
from opsagents.cli.errors import report_aws_error
from opsagents.cli.state import CliState
from opsagents.cli.ui import cleanup_table, confirm, console, report_progress
from opsagents.core.agent import OpsAgent, create_model
from opsagents.core.deployments.aws_ecs.aws_provider import AwsInfrastructureProvider
from opsagents.core.deployments.aws_ecs.cleanup import cleanup_stack
from opsagents.core.deployments.aws_ecs.deploy import deploy_stack
from opsagents.core.deployments.aws_ecs.provider import InfrastructureProvider
from opsagents.core.deployments.aws_ecs.session import AwsCredentials, create_session
from opsagents.core.deployments.aws_ecs.status import format_service_status, get_service_status
from opsagents.core.tools.dispatcher import OrchestratorToolHandlers, ToolDispatcher

EXIT_COMMANDS = frozenset({"exit", "quit"})


def build_provider(credentials: AwsCredentials) -> InfrastructureProvider:
    """Create the AWS provider for a command."""
    return AwsInfrastructureProvider.from_credentials(credentials)


def build_agent(state: CliState, config: CliConfig, credentials: AwsCredentials) -> OpsAgent:
    """Create the conversational agent wired to the deployment tools."""
    handlers = OrchestratorToolHandlers(
        provider_factory=lambda: build_provider(credentials),
        spec=config.ecs.to_spec(),
        reporter=report_progress,
        environ=load_env_values(),
    )
    model = create_model(state.model_name(config), create_session(credentials))
    return OpsAgent(
        ToolDispatcher(handlers),
        model=model,
        temperature=config.agent.temperature,
        max_tokens=config.agent.max_tokens,
    )


@click.command()
@click.option("--service", "service_name", default=None, help="Override the service name.")
@click.option(
    "--wait/--no-wait",
    default=False,
    help="Wait up to ten minutes for the service to become stable.",
)
@click.pass_obj
def deploy(state: CliState, service_name: str | None, wait: bool) -> None:
    """Deploy the application stack to ECS.

    Args:
        state: Shared CLI state.
        service_name: Optional service name override.
        wait: Whether to wait for the service to stabilise.
    """
    config = _load_config(state)
    spec = config.ecs.to_spec(service_name)
    console.print(
        f"[bold]Deploying {spec.service_name} to cluster {spec.cluster_name}[/bold]"
    )

    try:
        provider = build_provider(state.credentials(config))
        result = deploy_stack(provider, spec, report_progress, wait=wait, environ=load_env_values())
    except (RuntimeError, BotoCoreError) as exc:
        report_aws_error(exc, "Deployment")
        raise SystemExit(1) from exc

    console.print(f"[green]{result.summary()}[/green]")
    if result.efs_volume_id and state.config_path.exists():
        try:
            saved = remember_efs_volume(config, state.config_path, result.efs_volume_id)
        except OSError as exc:
            console.print(f"[yellow]Could not record the EFS volume id: {exc}[/yellow]")
        else:
            if saved:
                console.print(
                    f"[dim]Recorded EFS volume {result.efs_volume_id} in "
                    f"{state.config_path}[/dim]"
                )


@click.command()
@click.option("--service", "service_name", default=None, help="Override the service name.")
@click.option("--yes", "-y", "assume_yes", is_flag=True, help="Skip the confirmation prompt.")
@click.pass_obj
def cleanup(state: CliState, service_name: str | None, assume_yes: bool) -> None:
    """Delete the ECS resources of the stack.

    The command exits with status 0 even when some steps fail.

    Args:
        state: Shared CLI state.
        service_name: Optional service name override.
        assume_yes: Skip the confirmation prompt.
    """
    config = _load_config(state)
    spec = config.ecs.to_spec(service_name)

    if not assume_yes and not confirm(
        f"Delete all ECS resources for service '{spec.service_name}'?"
    ):
        console.print("[yellow]Cleanup cancelled.[/yellow]")
        return

    try:
        provider = build_provider(state.credentials(config))
        report = cleanup_stack(provider, spec, report_progress)
    except (RuntimeError, BotoCoreError) as exc:
        report_aws_error(exc, "Cleanup")
        return

    console.print(cleanup_table(report))
    colour = "green" if report.succeeded else "yellow"
    console.print(f"[{colour}]{report.summary()}[/{colour}]")


@click.command()
@click.option("--service", "service_name", default=None, help="Override the service name.")
@click.pass_obj
def status(state: CliState, service_name: str | None) -> None:
    """Show the task counts of the ECS service.

    Args:
        state: Shared CLI state.
        service_name: Optional service name override.
    """
    config = _load_config(state)
    try:
        provider = build_provider(state.credentials(config))
        service = get_service_status(
            provider,
            config.ecs.cluster_name,
            service_name or config.ecs.service_name,
        )
    except (RuntimeError, BotoCoreError) as exc:
        report_aws_error(exc, "Status check")
        raise SystemExit(1) from exc

    console.print(format_service_status(service))


@click.command()
@click.pass_obj
def agent(state: CliState) -> None:
    """Chat with the assistant, which can deploy, inspect and clean up the stack.

    Args:
        state: Shared CLI state.
    """
    config = _load_config(state)
    try:
        ops_agent = build_agent(state, config, state.credentials(config))
    except (RuntimeError, BotoCoreError) as exc:
        report_aws_error(exc, "Agent start-up")
        raise SystemExit(1) from exc

    console.print("[bold]OpsAgents is ready.[/bold] Type 'exit' or 'quit' to leave.")
    while True:
        try:
            text = console.input("[bold cyan]> [/bold cyan]").strip()
        except (EOFError, KeyboardInterrupt):
            console.print()
            break

        if not text:
            continue
        if text.lower() in EXIT_COMMANDS:
            break

        try:
            reply = ops_agent.send_message(text)
        except (RuntimeError, BotoCoreError, ClientError) as exc:
            report_aws_error(exc, "Request")
            continue

        console.print(reply.render())

    console.print("Goodbye.")


@click.group(name="config")
def config_group() -> None:
    """Manage the OpsAgents configuration file."""


@config_group.command(name="init")
@click.option("--force", is_flag=True, help="Overwrite an existing configuration file.")
@click.pass_obj
def config_init(state: CliState, force: bool) -> None:
    """Write the default configuration file.

    Args:
        state: Shared CLI state.
        force: Overwrite an existing file.
    """
    if state.config_path.exists() and not force:
        console.print(
            f"[yellow]Configuration already exists at {state.config_path}. "
            "Use --force to overwrite it.[/yellow]"
        )
        return

    path = save_config(CliConfig(), state.config_path)
    console.print(f"[green]Default configuration created: {path}[/green]")


@config_group.command(name="show")
@click.pass_obj
def config_show(state: CliState) -> None:
    """Print the effective configuration.

    Args:
        state: Shared CLI state.
    """
    config = _load_config(state)
    console.print(f"[dim]{state.config_path}[/dim]")
    console.print_json(json.dumps(config.model_dump(mode="json")))


def _load_config(state: CliState) -> CliConfig:
    """Load the configuration or exit with an error message."""
    try:
        return state.load_config()
    except ConfigError as exc:
        console.print(f"[red]{exc}[/red]")
        raise SystemExit(1) from exc
