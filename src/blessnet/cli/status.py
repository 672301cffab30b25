"""Project summary printed when blessnet runs without a subcommand."""

from __future__ import annotations

from datetime import date, datetime, timezone
from typing import Any

from rich.console import Console
from rich.markup import escape
from rich.table import Table

from blessnet.cli.context import InvocationContext
from blessnet.cli.descriptor import DESCRIPTOR_FILENAME, ProjectDescriptor, load_project_descriptor
from blessnet.cli.gates import EXIT_SUCCESS, ExitDecision
from blessnet.cli.render import LOGOUT_COMMAND, login_status_markup

_DISPLAY_FORMAT = "%Y-%m-%d %H:%M:%S"


def format_created(value: Any) -> str:
    """Render a deployment timestamp in local time.

    Accepts TOML datetimes, ISO-8601 strings and epoch milliseconds. Values
    that cannot be interpreted are shown as-is.
    """
    if value is None:
        return "unknown"
    if isinstance(value, datetime):
        return value.astimezone().strftime(_DISPLAY_FORMAT)
    if isinstance(value, date):
        return value.isoformat()
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        try:
            moment = datetime.fromtimestamp(value / 1000, tz=timezone.utc)
        except (ValueError, OverflowError, OSError):
            return str(value)
        return moment.astimezone().strftime(_DISPLAY_FORMAT)
    text = str(value)
    try:
        moment = datetime.fromisoformat(text.replace("Z", "+00:00"))
    except ValueError:
        return text
    return moment.astimezone().strftime(_DISPLAY_FORMAT)


def render_project_status(
    console: Console,
    descriptor: ProjectDescriptor,
    *,
    is_logged_in: bool,
    docs_url: str,
) -> None:
    table = Table()
    table.add_column("Project Name")
    table.add_column("Version")
    table.add_column("Type")
    table.add_row(escape(descriptor.name), escape(descriptor.version), escape(descriptor.type))
    console.print(table)

    if descriptor.deployments:
        deployment = descriptor.deployments[0]
        console.print("[yellow]Deployment Status:[/yellow] [green]Deployed[/green]")
        console.print(f"[yellow]CID: {escape(deployment.cid)}[/yellow]")
        console.print(f"[yellow]Created:[/yellow]  {escape(format_created(deployment.created))}\n")
        if deployment.host:
            console.print(f"[yellow]Web2 Host:[/yellow] https://{escape(deployment.host)}\n")
    else:
        console.print("[yellow]Deployment Status: Not Deployed[/yellow]\n")

    console.print("Deploy this project to the BLESS network using the command:")
    console.print("[green]blessnet deploy[/green]\n")
    console.print("Preview this project using the command:")
    console.print("[green]blessnet preview[/green] or [green]blessnet preview serve[/green]\n")
    console.print("Change the project settings using the command:")
    console.print("[green]blessnet manage[/green]\n")
    console.print("Need more help?:")
    console.print("[green]blessnet help[/green]\n")

    console.print(login_status_markup(is_logged_in=is_logged_in, docs_url=docs_url))
    console.print(f"To log out, run [blue]{LOGOUT_COMMAND}[/blue]\n")


def report_project_status(
    context: InvocationContext,
    console: Console,
    *,
    docs_url: str,
) -> ExitDecision:
    descriptor = load_project_descriptor(context.cwd, DESCRIPTOR_FILENAME)
    render_project_status(
        console,
        descriptor,
        is_logged_in=context.is_logged_in,
        docs_url=docs_url,
    )
    return ExitDecision(EXIT_SUCCESS, "project status")
