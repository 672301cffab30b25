"""Terminal presentation helpers built on rich."""

from __future__ import annotations

import io
from typing import IO

from rich.console import Console, RenderableType
from rich.panel import Panel

LOGIN_COMMAND = "npx blessnet options account login"
LOGOUT_COMMAND = "npx blessnet options account logout"

HELP_BANNER = """\
[yellow]To scaffold a new project, run:[/yellow]
    npx blessnet init <project-name>

[yellow]If you already have a project set up and would
like to add, remove, or update its structure, run:[/yellow]
    npx blessnet manage

[yellow]Preview your project results in the terminal or web:[/yellow]
    npx blessnet preview [yellow]\\[serve][/yellow]"""


def make_console(stream: IO[str], *, width: int | None = None) -> Console:
    return Console(file=stream, width=width, highlight=False, soft_wrap=False)


def render_to_text(renderable: RenderableType, *, width: int = 80) -> str:
    buffer = io.StringIO()
    make_console(buffer, width=width).print(renderable)
    return buffer.getvalue()


def help_banner(width: int = 80) -> str:
    return render_to_text(Panel(HELP_BANNER, expand=True, padding=(1, 2)), width=width)


def login_status_markup(*, is_logged_in: bool, docs_url: str) -> str:
    state = "[green]logged in[/green]" if is_logged_in else "[red]logged out[/red]"
    lines = [
        f"visit [blue]{docs_url}[/blue] for more information.",
        f"you are currently {state} to [yellow]bless.network[/yellow]",
    ]
    if not is_logged_in:
        lines.append(f"To log in, run [blue]{LOGIN_COMMAND}[/blue]")
    return "\n".join(lines)


def help_epilog(*, is_logged_in: bool, docs_url: str) -> str:
    return render_to_text(login_status_markup(is_logged_in=is_logged_in, docs_url=docs_url))
